"""
Gateway Utilities
================

Core utilities for:
- storage.py: Supabase Storage signed upload URLs
- rate_limiter.py: Per-form, per-email submission throttling
- validation.py: Public form validation and normalization
- duplicates.py: Advisory duplicate submission checks
- captcha.py: reCAPTCHA verification
- audit_log.py: Append-only admin audit trail
"""

"""
TAPT Portal Gateway
===================

Server-side back end for the TAPT association website.

Features:
- Public form submissions (conference registrations, Hall of Fame
  nominations, membership applications) with validation, rate limiting
  and duplicate checks
- Admin back office behind a bearer token + role gate
- Signed upload URLs for member and public files
- Period rollover with archiving and an append-only audit trail
"""

__version__ = "1.0.0"
__author__ = "TAPT Web Team"

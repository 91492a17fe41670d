"""
Gateway Configuration
====================

Loads all environment variables for the TAPT portal gateway.

Environment variables should be set in .env file in project root.
"""

import logging
import os
import warnings

from dotenv import load_dotenv

# Load environment variables from .env file (if present)
load_dotenv()

# ============================================================
# Gateway Build Info
# ============================================================
BUILD_ID = os.getenv("BUILD_ID", "dev-local")
GITHUB_COMMIT = os.getenv("GITHUB_SHA", "unknown")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# ============================================================
# Supabase (rows, auth and storage)
# ============================================================
SUPABASE_URL = os.getenv("SUPABASE_URL")
SUPABASE_ANON_KEY = os.getenv("SUPABASE_ANON_KEY")  # Public forms are called with this key
SUPABASE_SERVICE_ROLE_KEY = os.getenv("SUPABASE_SERVICE_ROLE_KEY")  # Gateway uses this

# Warn if Supabase credentials missing (but don't block import for testing)
if not SUPABASE_URL:
    warnings.warn("SUPABASE_URL environment variable not set - database calls will fail")
if not SUPABASE_SERVICE_ROLE_KEY:
    warnings.warn("SUPABASE_SERVICE_ROLE_KEY environment variable not set - database calls will fail")

# ============================================================
# CORS
# ============================================================
ALLOWED_ORIGINS = [
    origin.strip()
    for origin in os.getenv(
        "ALLOWED_ORIGINS",
        "https://tapt.org,https://admin.tapt.org,http://localhost:5173,https://localhost:5173",
    ).split(",")
    if origin.strip()
]

# ============================================================
# Public Submission Throttling
# ============================================================
RATE_LIMIT_WINDOW_SECONDS = int(os.getenv("RATE_LIMIT_WINDOW_SECONDS", "3600"))  # 1 hour rolling window
RATE_LIMIT_MAX_ATTEMPTS = int(os.getenv("RATE_LIMIT_MAX_ATTEMPTS", "3"))  # per form type + email

# Admin role assignments allowed per requesting user per hour
ROLE_CHANGE_LIMIT_PER_HOUR = int(os.getenv("ROLE_CHANGE_LIMIT_PER_HOUR", "5"))

# ============================================================
# reCAPTCHA (tech conference registration)
# ============================================================
# When unset, CAPTCHA verification is skipped (local development)
RECAPTCHA_SECRET_KEY = os.getenv("RECAPTCHA_SECRET_KEY")
RECAPTCHA_VERIFY_URL = os.getenv(
    "RECAPTCHA_VERIFY_URL",
    "https://www.google.com/recaptcha/api/siteverify"
)
RECAPTCHA_TIMEOUT_SECONDS = float(os.getenv("RECAPTCHA_TIMEOUT_SECONDS", "10"))

if not RECAPTCHA_SECRET_KEY:
    warnings.warn("RECAPTCHA_SECRET_KEY not set - tech conference CAPTCHA verification is disabled")

# ============================================================
# Storage (signed uploads)
# ============================================================
SIGNED_UPLOAD_BUCKETS = [
    bucket.strip()
    for bucket in os.getenv("SIGNED_UPLOAD_BUCKETS", "private,public").split(",")
    if bucket.strip()
]
BOARD_MEMBER_IMAGE_BUCKET = os.getenv("BOARD_MEMBER_IMAGE_BUCKET", "board-members")


# ============================================================
# Logging
# ============================================================

def configure_logging(level: str = None):
    """
    Configure root logging once for the gateway process.

    Uvicorn installs its own handlers; basicConfig is a no-op when
    handlers already exist, so this is safe to call at import time.
    """
    logging.basicConfig(
        level=(level or LOG_LEVEL).upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


# ============================================================
# Configuration Validation
# ============================================================

def validate_config():
    """
    Validates that all required configuration is present.
    Called on application startup.
    """
    errors = []

    if not SUPABASE_URL:
        errors.append("SUPABASE_URL is not set")
    if not SUPABASE_SERVICE_ROLE_KEY:
        errors.append("SUPABASE_SERVICE_ROLE_KEY is not set")
    if RATE_LIMIT_MAX_ATTEMPTS < 1:
        errors.append("RATE_LIMIT_MAX_ATTEMPTS must be at least 1")
    if RATE_LIMIT_WINDOW_SECONDS < 1:
        errors.append("RATE_LIMIT_WINDOW_SECONDS must be positive")

    if errors:
        raise ValueError("Configuration errors:\n" + "\n".join(f"  - {e}" for e in errors))

    return True


def print_config_summary():
    """
    Prints a summary of the configuration (for debugging).
    NEVER prints secrets!
    """
    print("=" * 60)
    print("Gateway Configuration Summary")
    print("=" * 60)
    print(f"Build ID: {BUILD_ID}")
    print(f"GitHub Commit: {GITHUB_COMMIT}")
    print(f"Supabase URL: {SUPABASE_URL}")
    print(f"Allowed Origins: {', '.join(ALLOWED_ORIGINS)}")
    print(f"Rate Limit: {RATE_LIMIT_MAX_ATTEMPTS} per {RATE_LIMIT_WINDOW_SECONDS}s")
    print(f"Role Changes: {ROLE_CHANGE_LIMIT_PER_HOUR}/hour")
    print(f"reCAPTCHA: {'Enabled' if RECAPTCHA_SECRET_KEY else 'Disabled'}")
    print(f"Upload Buckets: {', '.join(SIGNED_UPLOAD_BUCKETS)}")
    print("=" * 60)

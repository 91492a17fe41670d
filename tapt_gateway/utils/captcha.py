"""
reCAPTCHA Verification
======================

Verifies the browser's reCAPTCHA token against Google's siteverify endpoint.
Only tech conference registrations carry a token.
"""

import logging
from typing import Optional

import httpx

from tapt_gateway import config
from tapt_gateway.errors import BadRequest

logger = logging.getLogger(__name__)

CAPTCHA_FAILED_MESSAGE = "CAPTCHA verification failed. Please try again."


class RecaptchaVerifier:
    """Server-side check of a reCAPTCHA v2/v3 response token."""

    def __init__(self, secret: str, verify_url: str = None, timeout: float = None,
                 transport: Optional[httpx.BaseTransport] = None):
        self.secret = secret
        self.transport = transport
        self.verify_url = verify_url or config.RECAPTCHA_VERIFY_URL
        self.timeout = timeout if timeout is not None else config.RECAPTCHA_TIMEOUT_SECONDS

    def verify(self, token: Optional[str], remote_ip: Optional[str] = None) -> bool:
        """
        Returns True only when Google reports success.

        Network errors and malformed responses count as failure.
        """
        if not token:
            return False

        data = {"secret": self.secret, "response": token}
        if remote_ip:
            data["remoteip"] = remote_ip

        try:
            with httpx.Client(timeout=self.timeout, transport=self.transport) as client:
                response = client.post(self.verify_url, data=data)
                response.raise_for_status()
                result = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.warning(f"⚠️  reCAPTCHA verification request failed: {e}")
            return False

        if not result.get("success"):
            logger.info(f"🔒 reCAPTCHA rejected token: {result.get('error-codes')}")
            return False
        return True

    def require(self, token: Optional[str], remote_ip: Optional[str] = None):
        """Raise BadRequest unless the token verifies."""
        if not self.verify(token, remote_ip):
            raise BadRequest(CAPTCHA_FAILED_MESSAGE)


def get_default_verifier() -> Optional[RecaptchaVerifier]:
    """Verifier from config, or None when no secret is configured (CAPTCHA disabled)."""
    if not config.RECAPTCHA_SECRET_KEY:
        return None
    return RecaptchaVerifier(config.RECAPTCHA_SECRET_KEY)

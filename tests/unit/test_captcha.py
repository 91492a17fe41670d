from urllib.parse import parse_qs

import httpx
import pytest

from tapt_gateway.errors import BadRequest
from tapt_gateway.utils.captcha import CAPTCHA_FAILED_MESSAGE, RecaptchaVerifier

VERIFY_URL = "https://recaptcha.test/siteverify"


def verifier(handler):
    return RecaptchaVerifier("secret", verify_url=VERIFY_URL, timeout=1, transport=httpx.MockTransport(handler))


def test_successful_token_posts_form_fields():
    seen = {}

    def handler(request):
        seen.update({k: v[0] for k, v in parse_qs(request.content.decode()).items()})
        return httpx.Response(200, json={"success": True})

    assert verifier(handler).verify("tok", remote_ip="203.0.113.9") is True
    assert seen == {"secret": "secret", "response": "tok", "remoteip": "203.0.113.9"}


def test_rejected_token():
    v = verifier(lambda request: httpx.Response(200, json={"success": False, "error-codes": ["timeout-or-duplicate"]}))

    with pytest.raises(BadRequest) as exc_info:
        v.require("tok")
    assert exc_info.value.message == CAPTCHA_FAILED_MESSAGE


def test_network_errors_count_as_failure():
    def handler(request):
        raise httpx.ConnectError("unreachable", request=request)

    assert verifier(handler).verify("tok") is False


def test_missing_token_never_calls_out():
    def handler(request):
        raise AssertionError("should not be called")

    assert verifier(handler).verify(None) is False

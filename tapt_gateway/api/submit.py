"""
POST /submit/{kind} - Public form submissions
=============================================

Kinds:
- conference-registration
- tech-conference-registration (reCAPTCHA when configured)
- hof-nomination
- membership

Flow:
1. Parse JSON body (malformed -> 400)
2. Validate + normalize (all field errors reported together)
3. Check the active period window
4. Rate limit per form + email
5. Duplicate guard
6. Insert row (+ attendee rows for registrations)

No authentication: these are called from the public website.
"""

from datetime import datetime
from typing import Any, Optional

from fastapi import APIRouter, Depends, Request

from tapt_gateway.api.deps import client_ip, get_captcha_verifier, get_now, get_store, read_json_body
from tapt_gateway.db.store import RowStore
from tapt_gateway.models.submissions import SubmissionKind
from tapt_gateway.submissions import submit
from tapt_gateway.utils.captcha import RecaptchaVerifier

router = APIRouter(prefix="/submit", tags=["Submission"])


def _handle(kind: SubmissionKind, request: Request, payload: Any, store: RowStore,
            now: datetime, captcha: Optional[RecaptchaVerifier]):
    return submit(kind, payload, store, now, captcha=captcha, remote_ip=client_ip(request))


@router.post("/conference-registration")
def submit_conference_registration(
    request: Request,
    payload: Any = Depends(read_json_body),
    store: RowStore = Depends(get_store),
    now: datetime = Depends(get_now),
):
    return _handle(SubmissionKind.CONFERENCE_REGISTRATION, request, payload, store, now, None)


@router.post("/tech-conference-registration")
def submit_tech_conference_registration(
    request: Request,
    payload: Any = Depends(read_json_body),
    store: RowStore = Depends(get_store),
    now: datetime = Depends(get_now),
    captcha: Optional[RecaptchaVerifier] = Depends(get_captcha_verifier),
):
    return _handle(SubmissionKind.TECH_CONFERENCE_REGISTRATION, request, payload, store, now, captcha)


@router.post("/hof-nomination")
def submit_hof_nomination(
    request: Request,
    payload: Any = Depends(read_json_body),
    store: RowStore = Depends(get_store),
    now: datetime = Depends(get_now),
):
    return _handle(SubmissionKind.HOF_NOMINATION, request, payload, store, now, None)


@router.post("/membership")
def submit_membership(
    request: Request,
    payload: Any = Depends(read_json_body),
    store: RowStore = Depends(get_store),
    now: datetime = Depends(get_now),
):
    return _handle(SubmissionKind.MEMBERSHIP, request, payload, store, now, None)

"""
Public Submission Pipeline
==========================

One pipeline for all public forms, specialised per SubmissionKind:

    validate -> CAPTCHA (tech conference only) -> period check
             -> rate limit -> duplicate guard -> insert (+ attendees)

Each step raises a GatewayError subclass; nothing is written before the
rate limit step, and the rate limit counter is the only write made for a
submission that is later rejected as a duplicate.
"""

import logging
import re
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

from dateutil import parser as date_parser

from tapt_gateway import config
from tapt_gateway.db.store import RowStore
from tapt_gateway.errors import PeriodClosed, StorageError
from tapt_gateway.models.submissions import (
    MembershipSubmission,
    NominationSubmission,
    RegistrationSubmission,
    ReviewStatus,
    SubmissionKind,
)
from tapt_gateway.utils import duplicates, rate_limiter
from tapt_gateway.utils.captcha import RecaptchaVerifier
from tapt_gateway.utils.validation import validate_submission

logger = logging.getLogger(__name__)

DATE_ONLY = re.compile(r"^\d{4}-\d{2}-\d{2}$")


# ============================================================
# Period windows
# ============================================================

def parse_period_bound(value: Any, end: bool = False) -> Optional[datetime]:
    """
    Parse a settings date into an aware UTC datetime.

    Date-only values cover the whole day: as an end bound "2025-03-01" means
    "until 2025-03-02T00:00Z (exclusive)".
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        text = str(value).strip()
        parsed = date_parser.isoparse(text)
        if DATE_ONLY.match(text) and end:
            parsed = parsed + timedelta(days=1)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _display_date(value: Any) -> str:
    return str(value)[:10]


def load_active_settings(store: RowStore, table: str) -> Optional[Dict[str, Any]]:
    return store.select_one(table, [("is_active", "eq", True)])


# ============================================================
# Strategies
# ============================================================

class SubmissionStrategy:
    """Per-form hooks plugged into submit()."""

    kind: SubmissionKind
    table: str
    settings_table: Optional[str] = None
    requires_captcha = False

    def check_period(self, settings: Optional[Dict[str, Any]], now: datetime):
        pass

    def rate_identity(self, submission) -> str:
        raise NotImplementedError

    def duplicate_check(self, submission):
        """(filters, message) or None when the form has no uniqueness rule."""
        return None

    def build_row(self, submission, settings: Optional[Dict[str, Any]]) -> Dict[str, Any]:
        raise NotImplementedError

    def after_insert(self, store: RowStore, row: Dict[str, Any], submission) -> Dict[str, Any]:
        """Extra response fields; may write dependent rows."""
        return {}


class RegistrationStrategy(SubmissionStrategy):
    """Conference and tech conference registrations (with attendee rows)."""

    def __init__(self, kind: SubmissionKind, table: str, attendee_table: str,
                 settings_table: str, requires_captcha: bool = False):
        self.kind = kind
        self.table = table
        self.attendee_table = attendee_table
        self.settings_table = settings_table
        self.requires_captcha = requires_captcha

    def check_period(self, settings, now):
        if not settings:
            raise PeriodClosed("Registration is not currently open")
        closes = settings.get("registration_end_date") or settings.get("end_date")
        closes_at = parse_period_bound(closes, end=True)
        if closes_at is not None and now >= closes_at:
            raise PeriodClosed(f"Registration closed on {_display_date(closes)}")

    def rate_identity(self, submission: RegistrationSubmission):
        return submission.email

    def build_row(self, submission: RegistrationSubmission, settings):
        fee = float(settings.get("fee") or 0)
        return {
            "school_district": submission.school_district,
            "first_name": submission.first_name,
            "last_name": submission.last_name,
            "street_address": submission.street_address,
            "city": submission.city,
            "state": submission.state,
            "zip_code": submission.zip_code,
            "email": submission.email,
            "phone": submission.phone,
            "total_attendees": submission.total_attendees,
            "total_amount": round(fee * submission.total_attendees, 2),
            "conference_id": settings.get("id"),
        }

    def after_insert(self, store, row, submission: RegistrationSubmission):
        registration_id = row["id"]
        attendees = [
            {
                "registration_id": registration_id,
                "first_name": attendee.first_name,
                "last_name": attendee.last_name,
                "email": attendee.email,
            }
            for attendee in submission.additional_attendees
        ]
        if attendees:
            try:
                store.insert(self.attendee_table, attendees)
            except StorageError:
                logger.error(f"❌ Attendee insert failed for {self.table} {registration_id}; removing registration")
                try:
                    store.delete(self.table, [("id", "eq", registration_id)])
                except StorageError as cleanup_error:
                    logger.error(f"❌ Could not remove orphaned registration {registration_id}: {cleanup_error}")
                raise
        return {"registrationId": registration_id}


class NominationStrategy(SubmissionStrategy):
    kind = SubmissionKind.HOF_NOMINATION
    table = "hall_of_fame_nominations"
    settings_table = "hall_of_fame_settings"

    def check_period(self, settings, now):
        if not settings:
            raise PeriodClosed("Nominations are not currently open")
        opens_at = parse_period_bound(settings.get("start_date"))
        closes_at = parse_period_bound(settings.get("end_date"), end=True)
        if opens_at is not None and now < opens_at:
            raise PeriodClosed(f"Nominations open on {_display_date(settings.get('start_date'))}")
        if closes_at is not None and now >= closes_at:
            raise PeriodClosed(f"Nominations closed on {_display_date(settings.get('end_date'))}")

    def rate_identity(self, submission: NominationSubmission):
        return submission.supervisor_email

    def duplicate_check(self, submission):
        return duplicates.nomination_key(submission), "A nomination for this person already exists"

    def build_row(self, submission: NominationSubmission, settings):
        row = submission.model_dump(mode="json")
        row["status"] = ReviewStatus.PENDING.value
        return row


class MembershipStrategy(SubmissionStrategy):
    kind = SubmissionKind.MEMBERSHIP
    table = "membership_applications"

    def rate_identity(self, submission: MembershipSubmission):
        return submission.email

    def duplicate_check(self, submission):
        return duplicates.membership_key(submission), "You already have a pending membership application"

    def build_row(self, submission: MembershipSubmission, settings):
        row = submission.model_dump(mode="json")
        row["status"] = ReviewStatus.PENDING.value
        return row


STRATEGIES = {
    SubmissionKind.CONFERENCE_REGISTRATION: RegistrationStrategy(
        SubmissionKind.CONFERENCE_REGISTRATION,
        table="conference_registrations",
        attendee_table="conference_attendees",
        settings_table="conference_settings",
    ),
    SubmissionKind.TECH_CONFERENCE_REGISTRATION: RegistrationStrategy(
        SubmissionKind.TECH_CONFERENCE_REGISTRATION,
        table="tech_conference_registrations",
        attendee_table="tech_conference_attendees",
        settings_table="tech_conference_settings",
        requires_captcha=True,
    ),
    SubmissionKind.HOF_NOMINATION: NominationStrategy(),
    SubmissionKind.MEMBERSHIP: MembershipStrategy(),
}


# ============================================================
# Pipeline
# ============================================================

def submit(kind: SubmissionKind, payload: Any, store: RowStore, now: datetime,
           captcha: Optional[RecaptchaVerifier] = None,
           remote_ip: Optional[str] = None) -> Dict[str, Any]:
    """
    Run one public submission end to end.

    Args:
        kind: Form type
        payload: Parsed JSON body
        store: Row store for this request
        now: Current time (aware UTC)
        captcha: Verifier, or None when CAPTCHA is disabled
        remote_ip: Client address forwarded to reCAPTCHA

    Returns:
        {"success": True, "id": ..., "data": <inserted row>, ...}

    Raises:
        BadRequest, ValidationError, PeriodClosed, RateLimited,
        DuplicateSubmission, StorageError
    """
    strategy = STRATEGIES[SubmissionKind(kind)]

    submission = validate_submission(strategy.kind, payload)

    if strategy.requires_captcha and captcha is not None:
        captcha.require(submission.captcha_token, remote_ip)

    settings = None
    if strategy.settings_table:
        settings = load_active_settings(store, strategy.settings_table)
        strategy.check_period(settings, now)

    rate_limiter.check_and_record(
        store,
        rate_limiter.make_key(strategy.kind.value, strategy.rate_identity(submission)),
        now=now,
        window_seconds=config.RATE_LIMIT_WINDOW_SECONDS,
        max_attempts=config.RATE_LIMIT_MAX_ATTEMPTS,
    )

    duplicate = strategy.duplicate_check(submission)
    if duplicate:
        filters, message = duplicate
        duplicates.ensure_unique(store, strategy.table, filters, message)

    inserted: List[Dict[str, Any]] = store.insert(strategy.table, [strategy.build_row(submission, settings)])
    if not inserted:
        raise StorageError(f"Insert into {strategy.table} returned no row")
    row = inserted[0]

    result = {"success": True, "id": row.get("id"), "data": row}
    result.update(strategy.after_insert(store, row, submission))

    logger.info(f"✅ {strategy.kind.value} accepted: {strategy.table} id={row.get('id')}")
    return result

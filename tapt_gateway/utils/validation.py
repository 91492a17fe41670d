"""
Submission Validator
====================

Server-side validation and normalization of public form payloads.

validate_submission() is pure: it never touches storage. It collects every
violation before raising, so the form can highlight all bad fields at once.

Payload keys:
- Registrations use the form's camelCase keys (firstName, zipCode, ...)
- Nominations and membership applications use column names directly
"""

import re
from typing import Any, Dict, List, Optional

from tapt_gateway.errors import BadRequest, ValidationError
from tapt_gateway.models.submissions import (
    AttendeeInput,
    MembershipSubmission,
    MembershipType,
    NominationSubmission,
    RegistrationSubmission,
    Region,
    ReviewStatus,
    SubmissionKind,
)

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
PHONE_PATTERN = re.compile(r"^\(?\d{3}\)?[-.\s]?\d{3}[-.\s]?\d{4}$")
ZIP_PATTERN = re.compile(r"^\d{5}(-\d{4})?$")
STATE_PATTERN = re.compile(r"^[A-Za-z]{2}$")

NAME_MAX_LENGTH = 100
STREET_MAX_LENGTH = 200
REASON_MAX_LENGTH = 500
MAX_ATTENDEES = 20


def is_valid_email(value: Any) -> bool:
    return isinstance(value, str) and EMAIL_PATTERN.fullmatch(value.strip()) is not None


def is_valid_phone(value: Any) -> bool:
    return isinstance(value, str) and PHONE_PATTERN.fullmatch(re.sub(r"\s", "", value)) is not None


class FieldErrors:
    """Accumulates {field, message} violations while reading a payload."""

    def __init__(self, payload: Dict[str, Any], prefix: str = ""):
        self.payload = payload
        self.prefix = prefix
        self.errors: List[Dict[str, str]] = []

    def add(self, field: str, message: str):
        self.errors.append({"field": f"{self.prefix}{field}", "message": message})

    def _present(self, field: str) -> bool:
        # Presence, not truthiness: 0 and False are values
        value = self.payload.get(field)
        return value is not None and not (isinstance(value, str) and not value.strip())

    def text(self, field: str, label: str, max_length: Optional[int] = NAME_MAX_LENGTH,
             required: bool = True) -> Optional[str]:
        if not self._present(field):
            if required:
                self.add(field, f"{label} is required")
            return None
        value = self.payload[field]
        if not isinstance(value, str):
            self.add(field, f"{label} must be text")
            return None
        value = value.strip()
        if max_length is not None and len(value) > max_length:
            self.add(field, f"{label} must be at most {max_length} characters")
            return None
        return value

    def email(self, field: str, label: str = "Email") -> Optional[str]:
        value = self.text(field, label, max_length=None)
        if value is None:
            return None
        if not is_valid_email(value):
            self.add(field, f"{label} must be a valid email address")
            return None
        return value.lower()

    def phone(self, field: str, label: str = "Phone number") -> Optional[str]:
        value = self.text(field, label, max_length=None)
        if value is None:
            return None
        if not is_valid_phone(value):
            self.add(field, f"{label} must be a valid 10-digit phone number")
            return None
        return value

    def pattern(self, field: str, label: str, pattern, message: str) -> Optional[str]:
        value = self.text(field, label, max_length=None)
        if value is None:
            return None
        if pattern.fullmatch(value) is None:
            self.add(field, message)
            return None
        return value

    def integer(self, field: str, label: str, minimum: int, maximum: int) -> Optional[int]:
        if not self._present(field):
            self.add(field, f"{label} is required")
            return None
        value = self.payload[field]
        if isinstance(value, bool) or not isinstance(value, int):
            self.add(field, f"{label} must be a whole number")
            return None
        if value < minimum or value > maximum:
            self.add(field, f"{label} must be between {minimum} and {maximum}")
            return None
        return value

    def choice(self, field: str, label: str, choices) -> Optional[str]:
        value = self.text(field, label, max_length=None)
        if value is None:
            return None
        allowed = [c.value if hasattr(c, "value") else c for c in choices]
        if value not in allowed:
            self.add(field, f"{label} must be one of: {', '.join(allowed)}")
            return None
        return value

    def boolean(self, field: str, label: str, default: Optional[bool] = None) -> Optional[bool]:
        if self.payload.get(field) is None:
            if default is None:
                self.add(field, f"{label} is required")
            return default
        value = self.payload[field]
        if not isinstance(value, bool):
            self.add(field, f"{label} must be true or false")
            return None
        return value

    def identifier(self, field: str, label: str = "Record id"):
        value = self.payload.get(field)
        if isinstance(value, bool) or not isinstance(value, (str, int)) or (isinstance(value, str) and not value.strip()):
            self.add(field, f"{label} is required")
            return None
        return value.strip() if isinstance(value, str) else value

    def raise_if_any(self):
        if self.errors:
            raise ValidationError(self.errors)


# ============================================================
# Per-kind validators
# ============================================================

def _validate_attendees(payload: Dict[str, Any], errors: FieldErrors,
                        total_attendees: Optional[int]) -> List[AttendeeInput]:
    raw = payload.get("additionalAttendees")
    if raw is None:
        return []
    if not isinstance(raw, list):
        errors.add("additionalAttendees", "Additional attendees must be a list")
        return []

    if total_attendees is not None and len(raw) > total_attendees - 1:
        errors.add(
            "additionalAttendees",
            f"At most {total_attendees - 1} additional attendees allowed for {total_attendees} total",
        )

    attendees = []
    for index, item in enumerate(raw):
        if not isinstance(item, dict):
            errors.add(f"additionalAttendees[{index}]", "Attendee must be an object")
            continue
        item_errors = FieldErrors(item, prefix=f"additionalAttendees[{index}].")
        first_name = item_errors.text("firstName", "First name")
        last_name = item_errors.text("lastName", "Last name")
        email = item_errors.email("email")
        errors.errors.extend(item_errors.errors)
        if not item_errors.errors:
            attendees.append(AttendeeInput(first_name=first_name, last_name=last_name, email=email))
    return attendees


def validate_registration(payload: Dict[str, Any]) -> RegistrationSubmission:
    errors = FieldErrors(payload)
    values = {
        "school_district": errors.text("schoolDistrict", "School district"),
        "first_name": errors.text("firstName", "First name"),
        "last_name": errors.text("lastName", "Last name"),
        "street_address": errors.text("streetAddress", "Street address", max_length=STREET_MAX_LENGTH),
        "city": errors.text("city", "City"),
        "state": errors.pattern("state", "State", STATE_PATTERN, "State must be a 2-letter code"),
        "zip_code": errors.pattern("zipCode", "ZIP code", ZIP_PATTERN, "ZIP code must be 12345 or 12345-6789"),
        "email": errors.email("email"),
        "phone": errors.phone("phone"),
        "total_attendees": errors.integer("totalAttendees", "Total attendees", 1, MAX_ATTENDEES),
    }
    values["additional_attendees"] = _validate_attendees(payload, errors, values["total_attendees"])
    errors.raise_if_any()

    values["state"] = values["state"].upper()
    captcha_token = payload.get("captchaToken")
    values["captcha_token"] = captcha_token if isinstance(captcha_token, str) else None
    return RegistrationSubmission(**values)


def validate_nomination(payload: Dict[str, Any]) -> NominationSubmission:
    errors = FieldErrors(payload)
    values = {
        "nominee_first_name": errors.text("nominee_first_name", "Nominee first name"),
        "nominee_last_name": errors.text("nominee_last_name", "Nominee last name"),
        "district": errors.text("district", "District"),
        "years_of_service": errors.integer("years_of_service", "Years of service", 0, 100),
        "is_tapt_member": errors.boolean("is_tapt_member", "TAPT membership", default=False),
        "nomination_reason": errors.text("nomination_reason", "Nomination reason", max_length=REASON_MAX_LENGTH),
        "supervisor_first_name": errors.text("supervisor_first_name", "Supervisor first name"),
        "supervisor_last_name": errors.text("supervisor_last_name", "Supervisor last name"),
        "supervisor_email": errors.email("supervisor_email", "Supervisor email"),
        "nominee_city": errors.text("nominee_city", "Nominee city"),
        "region": errors.choice("region", "Region", Region),
    }
    errors.raise_if_any()
    return NominationSubmission(**values)


def _validate_interests(payload: Dict[str, Any], errors: FieldErrors) -> Optional[List[str]]:
    raw = payload.get("interests")
    if not isinstance(raw, list) or not raw:
        errors.add("interests", "At least one interest must be selected")
        return None
    interests = []
    for item in raw:
        if not isinstance(item, str) or not item.strip():
            errors.add("interests", "Interests must be non-empty text")
            return None
        if item.strip() not in interests:
            interests.append(item.strip())
    return interests


def validate_membership(payload: Dict[str, Any]) -> MembershipSubmission:
    errors = FieldErrors(payload)
    values = {
        "first_name": errors.text("first_name", "First name"),
        "last_name": errors.text("last_name", "Last name"),
        "email": errors.email("email"),
        "phone": errors.phone("phone"),
        "organization": errors.text("organization", "Organization", max_length=STREET_MAX_LENGTH),
        "position": errors.text("position", "Position"),
        "membership_type": errors.choice("membership_type", "Membership type", MembershipType),
        "hear_about_us": errors.text("hear_about_us", "How you heard about us",
                                     max_length=STREET_MAX_LENGTH, required=False),
        "interests": _validate_interests(payload, errors),
    }

    is_new_member = payload.get("is_new_member")
    if is_new_member is None or (isinstance(is_new_member, str) and not is_new_member.strip()):
        errors.add("is_new_member", "New member status is required")
    elif not isinstance(is_new_member, (bool, str)):
        errors.add("is_new_member", "New member status must be true/false or text")
    values["is_new_member"] = is_new_member.strip() if isinstance(is_new_member, str) else is_new_member

    if payload.get("agree_to_terms") is not True:
        errors.add("agree_to_terms", "Must agree to terms and conditions")
    values["agree_to_terms"] = True

    errors.raise_if_any()
    return MembershipSubmission(**values)


VALIDATORS = {
    SubmissionKind.CONFERENCE_REGISTRATION: validate_registration,
    SubmissionKind.TECH_CONFERENCE_REGISTRATION: validate_registration,
    SubmissionKind.HOF_NOMINATION: validate_nomination,
    SubmissionKind.MEMBERSHIP: validate_membership,
}


def validate_submission(kind: SubmissionKind, payload: Any):
    """
    Validate and normalize a public form payload.

    Args:
        kind: Form type
        payload: Parsed JSON body

    Returns:
        The normalized pydantic model for `kind`

    Raises:
        BadRequest: payload is not a JSON object
        ValidationError: one entry per violated field
    """
    if not isinstance(payload, dict):
        raise BadRequest("Request body must be a JSON object")
    return VALIDATORS[SubmissionKind(kind)](payload)


def validate_review_status(payload: Dict[str, Any]):
    """Admin status change body: {id, status in (approved, rejected)}."""
    errors = FieldErrors(payload)
    record_id = errors.identifier("id")
    status = errors.choice("status", "Status", [ReviewStatus.APPROVED, ReviewStatus.REJECTED])
    errors.raise_if_any()
    return record_id, status

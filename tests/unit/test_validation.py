import pytest

from tapt_gateway.errors import BadRequest, ValidationError
from tapt_gateway.models.submissions import SubmissionKind
from tapt_gateway.utils.validation import is_valid_phone, validate_review_status, validate_submission


def registration(**overrides):
    payload = {
        "schoolDistrict": "Austin ISD",
        "firstName": " Ana ",
        "lastName": "Lopez",
        "streetAddress": "1 Main St",
        "city": "Austin",
        "state": "tx",
        "zipCode": "78701",
        "email": "Ana@Example.org",
        "phone": "(512) 555-0100",
        "totalAttendees": 3,
        "additionalAttendees": [
            {"firstName": "Bo", "lastName": "Kim", "email": "bo@example.org"},
            {"firstName": "Cy", "lastName": "Diaz", "email": "cy@example.org"},
        ],
    }
    payload.update(overrides)
    return payload


def nomination(**overrides):
    payload = {
        "nominee_first_name": "Dana",
        "nominee_last_name": "Reyes",
        "district": "Round Rock ISD",
        "years_of_service": 25,
        "nomination_reason": "Decades of safe routes.",
        "supervisor_first_name": "Eli",
        "supervisor_last_name": "Moss",
        "supervisor_email": "eli@rrisd.org",
        "nominee_city": "Round Rock",
        "region": "Middle",
    }
    payload.update(overrides)
    return payload


def membership(**overrides):
    payload = {
        "first_name": "Fay",
        "last_name": "Ngo",
        "email": "fay@example.org",
        "phone": "512.555.0199",
        "organization": "Leander ISD",
        "position": "Director",
        "membership_type": "district",
        "is_new_member": "yes",
        "interests": ["safety", "training", "safety"],
        "agree_to_terms": True,
    }
    payload.update(overrides)
    return payload


def error_fields(payload, kind):
    with pytest.raises(ValidationError) as exc_info:
        validate_submission(kind, payload)
    return exc_info.value.fields


def test_registration_is_normalized():
    result = validate_submission(SubmissionKind.CONFERENCE_REGISTRATION, registration())

    assert result.first_name == "Ana"
    assert result.state == "TX"
    assert result.email == "ana@example.org"
    assert result.total_attendees == 3
    assert [a.first_name for a in result.additional_attendees] == ["Bo", "Cy"]


def test_registration_reports_every_invalid_field():
    payload = registration(firstName="", zipCode="7870", state="Texas", phone="555-01", totalAttendees=0)

    fields = error_fields(payload, SubmissionKind.CONFERENCE_REGISTRATION)

    assert set(fields) == {"firstName", "zipCode", "state", "phone", "totalAttendees"}


@pytest.mark.parametrize("missing", ["schoolDistrict", "streetAddress", "city", "email", "totalAttendees"])
def test_registration_missing_field_is_named(missing):
    payload = registration()
    del payload[missing]

    assert missing in error_fields(payload, SubmissionKind.TECH_CONFERENCE_REGISTRATION)


def test_registration_rejects_too_many_additional_attendees():
    payload = registration(totalAttendees=2)

    assert "additionalAttendees" in error_fields(payload, SubmissionKind.CONFERENCE_REGISTRATION)


def test_registration_attendee_errors_are_indexed():
    payload = registration(additionalAttendees=[{"firstName": "Bo", "lastName": "Kim", "email": "nope"}])

    assert error_fields(payload, SubmissionKind.CONFERENCE_REGISTRATION) == ["additionalAttendees[0].email"]


def test_total_attendees_rejects_booleans_and_upper_bound():
    assert "totalAttendees" in error_fields(registration(totalAttendees=True), SubmissionKind.CONFERENCE_REGISTRATION)
    assert "totalAttendees" in error_fields(
        registration(totalAttendees=21, additionalAttendees=[]), SubmissionKind.CONFERENCE_REGISTRATION
    )


def test_zip_plus_four_accepted():
    result = validate_submission(SubmissionKind.CONFERENCE_REGISTRATION, registration(zipCode="78701-1234"))
    assert result.zip_code == "78701-1234"


@pytest.mark.parametrize("phone", ["5125550100", "(512)555-0100", "512 555 0100", "512.555.0100"])
def test_phone_formats_accepted(phone):
    assert is_valid_phone(phone)


@pytest.mark.parametrize("phone", ["555-0100", "51255501000", "phone"])
def test_phone_formats_rejected(phone):
    assert not is_valid_phone(phone)


def test_nomination_zero_years_of_service_is_present():
    result = validate_submission(SubmissionKind.HOF_NOMINATION, nomination(years_of_service=0))

    assert result.years_of_service == 0
    assert result.is_tapt_member is False


def test_nomination_bounds_and_enums():
    payload = nomination(years_of_service=101, region="North", nomination_reason="x" * 501)

    fields = error_fields(payload, SubmissionKind.HOF_NOMINATION)

    assert set(fields) == {"years_of_service", "region", "nomination_reason"}


def test_nomination_reason_at_limit_is_accepted():
    result = validate_submission(SubmissionKind.HOF_NOMINATION, nomination(nomination_reason="x" * 500))
    assert len(result.nomination_reason) == 500


def test_membership_deduplicates_interests():
    result = validate_submission(SubmissionKind.MEMBERSHIP, membership())

    assert result.interests == ["safety", "training"]
    assert result.membership_type.value == "district"


def test_membership_requires_terms_and_interests():
    fields = error_fields(membership(agree_to_terms=False, interests=[]), SubmissionKind.MEMBERSHIP)

    assert set(fields) == {"agree_to_terms", "interests"}


def test_membership_rejects_unknown_type():
    assert error_fields(membership(membership_type="corporate"), SubmissionKind.MEMBERSHIP) == ["membership_type"]


def test_non_object_payload_is_bad_request():
    with pytest.raises(BadRequest):
        validate_submission(SubmissionKind.MEMBERSHIP, ["not", "an", "object"])


def test_review_status_only_accepts_decisions():
    assert validate_review_status({"id": "m-1", "status": "approved"}) == ("m-1", "approved")

    with pytest.raises(ValidationError) as exc_info:
        validate_review_status({"id": "m-1", "status": "pending"})
    assert exc_info.value.fields == ["status"]

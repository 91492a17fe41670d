from datetime import datetime, timezone

import pytest

from tapt_gateway.errors import DuplicateSubmission, PeriodClosed, RateLimited, StorageError
from tapt_gateway.models.submissions import SubmissionKind
from tapt_gateway.submissions import parse_period_bound, submit


def registration(**overrides):
    payload = {
        "schoolDistrict": "Austin ISD",
        "firstName": "Ana",
        "lastName": "Lopez",
        "streetAddress": "1 Main St",
        "city": "Austin",
        "state": "TX",
        "zipCode": "78701",
        "email": "ana@example.org",
        "phone": "512-555-0100",
        "totalAttendees": 2,
        "additionalAttendees": [{"firstName": "Bo", "lastName": "Kim", "email": "bo@example.org"}],
    }
    payload.update(overrides)
    return payload


def nomination(**overrides):
    payload = {
        "nominee_first_name": "Dana",
        "nominee_last_name": "Reyes",
        "district": "Round Rock ISD",
        "years_of_service": 0,
        "nomination_reason": "Safe routes",
        "supervisor_first_name": "Eli",
        "supervisor_last_name": "Moss",
        "supervisor_email": "eli@rrisd.org",
        "nominee_city": "Round Rock",
        "region": "East",
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def conference(store):
    return store.seed("conference_settings", {
        "id": "conf-2025", "is_active": True, "fee": "125.50",
        "start_date": "2025-06-10", "end_date": "2025-06-12",
        "registration_end_date": "2025-05-31",
    })[0]


@pytest.fixture
def hall_of_fame(store):
    return store.seed("hall_of_fame_settings", {
        "id": "hof-2025", "is_active": True, "start_date": "2025-02-01", "end_date": "2025-03-01",
    })[0]


def test_date_only_end_bound_covers_whole_day():
    assert parse_period_bound("2025-03-01", end=True) == datetime(2025, 3, 2, tzinfo=timezone.utc)
    assert parse_period_bound("2025-03-01") == datetime(2025, 3, 1, tzinfo=timezone.utc)
    assert parse_period_bound("2025-03-01T08:00:00", end=True) == datetime(2025, 3, 1, 8, tzinfo=timezone.utc)
    assert parse_period_bound(None) is None


def test_registration_writes_row_and_attendees(store, now, conference):
    result = submit(SubmissionKind.CONFERENCE_REGISTRATION, registration(), store, now)

    assert result["success"] is True
    assert result["registrationId"] == result["id"]
    row = store.rows("conference_registrations")[0]
    assert row["total_amount"] == 251.0
    assert row["conference_id"] == "conf-2025"
    assert "captcha_token" not in row
    attendees = store.rows("conference_attendees")
    assert [(a["registration_id"], a["email"]) for a in attendees] == [(row["id"], "bo@example.org")]


def test_registration_without_active_settings_is_closed(store, now):
    with pytest.raises(PeriodClosed) as exc_info:
        submit(SubmissionKind.CONFERENCE_REGISTRATION, registration(), store, now)

    assert exc_info.value.message == "Registration is not currently open"
    assert store.writes == []


def test_registration_after_deadline_is_closed(store, now, conference):
    conference["registration_end_date"] = "2025-02-28"

    with pytest.raises(PeriodClosed) as exc_info:
        submit(SubmissionKind.CONFERENCE_REGISTRATION, registration(), store, now)

    assert exc_info.value.message == "Registration closed on 2025-02-28"


def test_attendee_failure_removes_registration(store, now, conference):
    store.fail_on.add(("insert", "conference_attendees"))

    with pytest.raises(StorageError):
        submit(SubmissionKind.CONFERENCE_REGISTRATION, registration(), store, now)

    assert store.rows("conference_registrations") == []
    assert ("delete", "conference_registrations") in store.writes


def test_nomination_on_last_day_is_accepted(store, now, hall_of_fame):
    result = submit(SubmissionKind.HOF_NOMINATION, nomination(), store, now)

    row = store.rows("hall_of_fame_nominations")[0]
    assert result["id"] == row["id"]
    assert row["status"] == "pending"
    assert row["years_of_service"] == 0
    assert row["region"] == "East"


def test_nomination_before_opening(store, now, hall_of_fame):
    hall_of_fame["start_date"] = "2025-04-01"
    hall_of_fame["end_date"] = "2025-05-01"

    with pytest.raises(PeriodClosed) as exc_info:
        submit(SubmissionKind.HOF_NOMINATION, nomination(), store, now)

    assert exc_info.value.message == "Nominations open on 2025-04-01"


def test_duplicate_nomination_records_only_rate_limit(store, now, hall_of_fame):
    submit(SubmissionKind.HOF_NOMINATION, nomination(), store, now)
    store.writes.clear()

    with pytest.raises(DuplicateSubmission):
        submit(SubmissionKind.HOF_NOMINATION, nomination(supervisor_email="other@rrisd.org"), store, now)

    assert store.writes == [("upsert", "rate_limits")]
    assert len(store.rows("hall_of_fame_nominations")) == 1


def test_membership_rate_limited_after_three(store, now):
    for index in range(3):
        submit(SubmissionKind.MEMBERSHIP, {
            "first_name": "Fay", "last_name": "Ngo", "email": "fay@example.org",
            "phone": "5125550199", "organization": f"Org {index}", "position": "Director",
            "membership_type": "individual", "is_new_member": True,
            "interests": ["safety"], "agree_to_terms": True,
        }, store, now)
        # Clear the pending application so only the rate limit applies
        store.tables["membership_applications"] = []

    with pytest.raises(RateLimited):
        submit(SubmissionKind.MEMBERSHIP, {
            "first_name": "Fay", "last_name": "Ngo", "email": "FAY@example.org",
            "phone": "5125550199", "organization": "Org", "position": "Director",
            "membership_type": "individual", "is_new_member": True,
            "interests": ["safety"], "agree_to_terms": True,
        }, store, now)

from datetime import timedelta

import pytest

from tapt_gateway.errors import RateLimited
from tapt_gateway.utils.rate_limiter import check_and_record, make_key


def test_key_is_form_type_and_normalized_email():
    assert make_key("membership", " Jane@Example.org ") == "membership:jane@example.org"


def test_allows_up_to_max_attempts_then_rejects(store, now):
    key = make_key("membership", "jane@example.org")

    counts = [check_and_record(store, key, now + timedelta(minutes=i), window_seconds=3600, max_attempts=3)
              for i in range(3)]
    assert counts == [1, 2, 3]

    writes_before = len(store.writes)
    with pytest.raises(RateLimited) as exc_info:
        check_and_record(store, key, now + timedelta(minutes=10), window_seconds=3600, max_attempts=3)

    assert exc_info.value.status_code == 429
    assert exc_info.value.retry_after > 0
    assert len(store.writes) == writes_before
    assert store.rows("rate_limits")[0]["count"] == 3


def test_counter_resets_after_window(store, now):
    key = make_key("hof-nomination", "sup@example.org")
    for i in range(3):
        check_and_record(store, key, now, window_seconds=3600, max_attempts=3)

    later = now + timedelta(seconds=3600)
    assert check_and_record(store, key, later, window_seconds=3600, max_attempts=3) == 1

    row = store.rows("rate_limits")[0]
    assert row["count"] == 1
    assert row["last_attempt"] == later.isoformat()


def test_keys_are_independent(store, now):
    for _ in range(3):
        check_and_record(store, "membership:a@example.org", now, window_seconds=3600, max_attempts=3)

    assert check_and_record(store, "membership:b@example.org", now, window_seconds=3600, max_attempts=3) == 1


def test_parses_postgres_timestamps(store, now):
    store.seed("rate_limits", {"key": "k", "count": 3, "last_attempt": "2025-03-01T11:30:00.12345Z"})

    with pytest.raises(RateLimited):
        check_and_record(store, "k", now, window_seconds=3600, max_attempts=3)

from datetime import datetime, timezone
from types import SimpleNamespace
from unittest.mock import MagicMock, call

import pytest

from tapt_gateway.db.identity import USERS_PAGE_SIZE, SupabaseIdentityService
from tapt_gateway.errors import StorageError


def auth_user(n):
    return SimpleNamespace(id=f"user-{n}", email=f"user{n}@example.org",
                           created_at=datetime(2025, 1, 1, tzinfo=timezone.utc))


@pytest.fixture
def client():
    return MagicMock()


def test_list_users_reads_every_page(client):
    pages = [
        [auth_user(n) for n in range(USERS_PAGE_SIZE)],
        [auth_user(n) for n in range(USERS_PAGE_SIZE, USERS_PAGE_SIZE + 3)],
    ]
    client.auth.admin.list_users.side_effect = pages

    users = SupabaseIdentityService(client).list_users()

    assert len(users) == USERS_PAGE_SIZE + 3
    assert users[-1].id == f"user-{USERS_PAGE_SIZE + 2}"
    assert users[0].created_at == "2025-01-01T00:00:00+00:00"
    assert client.auth.admin.list_users.call_args_list == [
        call(page=1, per_page=USERS_PAGE_SIZE),
        call(page=2, per_page=USERS_PAGE_SIZE),
    ]


def test_list_users_stops_on_empty_page(client):
    client.auth.admin.list_users.return_value = []

    assert SupabaseIdentityService(client).list_users() == []
    client.auth.admin.list_users.assert_called_once_with(page=1, per_page=USERS_PAGE_SIZE)


def test_list_users_error_becomes_storage_error(client):
    client.auth.admin.list_users.side_effect = RuntimeError("auth service unavailable")

    with pytest.raises(StorageError):
        SupabaseIdentityService(client).list_users()

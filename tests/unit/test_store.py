from unittest.mock import MagicMock

import pytest
from postgrest.exceptions import APIError

from tapt_gateway.db.store import SupabaseRowStore
from tapt_gateway.errors import StorageError


@pytest.fixture
def client():
    return MagicMock()


def test_filters_map_to_postgrest_calls(client):
    query = client.table.return_value.select.return_value
    query.eq.return_value = query
    query.in_.return_value = query
    query.not_.is_.return_value = query
    query.order.return_value = query
    query.range.return_value = query
    query.execute.return_value = MagicMock(data=[{"id": "a"}])

    rows = SupabaseRowStore(client).select(
        "content",
        [("type", "eq", "news"), ("id", "in", ("a", "b")), ("title", "not_null", None)],
        order_by="created_at", descending=True, limit=20, offset=40,
    )

    assert rows == [{"id": "a"}]
    client.table.assert_called_with("content")
    query.eq.assert_called_once_with("type", "news")
    query.in_.assert_called_once_with("id", ["a", "b"])
    query.not_.is_.assert_called_once_with("title", "null")
    query.order.assert_called_once_with("created_at", desc=True)
    query.range.assert_called_once_with(40, 59)


def test_unknown_operator_rejected(client):
    with pytest.raises(ValueError):
        SupabaseRowStore(client).select("content", [("type", "like", "%x%")])


def test_delete_requires_filters(client):
    with pytest.raises(ValueError):
        SupabaseRowStore(client).delete("content", [])


def test_api_error_becomes_storage_error(client):
    query = client.table.return_value.insert.return_value
    query.execute.side_effect = APIError({"message": "duplicate key", "code": "23505"})

    with pytest.raises(StorageError) as exc_info:
        SupabaseRowStore(client).insert("users", [{"id": "u-1"}])

    assert exc_info.value.code == "23505"
    assert exc_info.value.message == "A record with this information already exists."

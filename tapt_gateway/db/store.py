"""
Row Store
=========

Thin table-level interface over the Supabase PostgREST client.

Handlers depend on RowStore only, so the same code runs against Supabase in
production and an in-memory double in tests.

Filters are (column, operator, value) tuples. Supported operators:
    eq, neq, gt, gte, lt, lte, in, is_null, not_null
"""

import logging
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from postgrest.exceptions import APIError
from supabase import Client

from tapt_gateway.errors import StorageError

logger = logging.getLogger(__name__)

Filter = Tuple[str, str, Any]
Row = Dict[str, Any]

OPERATORS = ("eq", "neq", "gt", "gte", "lt", "lte", "in", "is_null", "not_null")


class RowStore:
    """Interface consumed by every handler."""

    def select(self, table: str, filters: Sequence[Filter] = (), columns: str = "*",
               order_by: Optional[str] = None, descending: bool = False,
               limit: Optional[int] = None, offset: Optional[int] = None) -> List[Row]:
        raise NotImplementedError

    def select_one(self, table: str, filters: Sequence[Filter] = (), columns: str = "*") -> Optional[Row]:
        rows = self.select(table, filters, columns=columns, limit=1)
        return rows[0] if rows else None

    def count(self, table: str, filters: Sequence[Filter] = ()) -> int:
        raise NotImplementedError

    def insert(self, table: str, rows: Iterable[Row]) -> List[Row]:
        raise NotImplementedError

    def update(self, table: str, values: Row, filters: Sequence[Filter]) -> List[Row]:
        raise NotImplementedError

    def upsert(self, table: str, row: Row, on_conflict: str = "id") -> List[Row]:
        raise NotImplementedError

    def delete(self, table: str, filters: Sequence[Filter]) -> List[Row]:
        raise NotImplementedError


def _check_filters(filters: Sequence[Filter]):
    for column, op, _ in filters:
        if op not in OPERATORS:
            raise ValueError(f"Unsupported filter operator '{op}' on column '{column}'")


class SupabaseRowStore(RowStore):
    """RowStore backed by a supabase-py client (PostgREST)."""

    def __init__(self, client: Client):
        self.client = client

    @staticmethod
    def _apply_filters(query, filters: Sequence[Filter]):
        _check_filters(filters)
        for column, op, value in filters:
            if op == "not_null":
                query = query.not_.is_(column, "null")
            elif op == "is_null":
                query = query.is_(column, "null")
            elif op == "in":
                query = query.in_(column, list(value))
            else:
                query = getattr(query, op)(column, value)
        return query

    @staticmethod
    def _execute(query, table: str):
        try:
            return query.execute()
        except APIError as e:
            logger.error(f"❌ PostgREST error on '{table}': code={e.code} message={e.message}")
            raise StorageError(e.message or "PostgREST request failed", code=e.code) from e

    def select(self, table, filters=(), columns="*", order_by=None, descending=False,
               limit=None, offset=None):
        query = self._apply_filters(self.client.table(table).select(columns), filters)
        if order_by:
            query = query.order(order_by, desc=descending)
        if offset is not None and limit is not None:
            query = query.range(offset, offset + limit - 1)
        elif limit is not None:
            query = query.limit(limit)
        return self._execute(query, table).data or []

    def count(self, table, filters=()):
        query = self._apply_filters(
            self.client.table(table).select("*", count="exact", head=True), filters
        )
        return self._execute(query, table).count or 0

    def insert(self, table, rows):
        rows = list(rows)
        if not rows:
            return []
        return self._execute(self.client.table(table).insert(rows), table).data or []

    def update(self, table, values, filters):
        if not filters:
            raise ValueError("update() requires at least one filter")
        query = self._apply_filters(self.client.table(table).update(values), filters)
        return self._execute(query, table).data or []

    def upsert(self, table, row, on_conflict="id"):
        query = self.client.table(table).upsert(row, on_conflict=on_conflict)
        return self._execute(query, table).data or []

    def delete(self, table, filters):
        if not filters:
            raise ValueError("delete() requires at least one filter")
        query = self._apply_filters(self.client.table(table).delete(), filters)
        return self._execute(query, table).data or []

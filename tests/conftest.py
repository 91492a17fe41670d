"""
Shared fixtures: in-memory row store, identity service and object storage
wired into the FastAPI app through dependency overrides.
"""

import copy
import itertools
from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient

from tapt_gateway.api import deps
from tapt_gateway.db.identity import Identity, IdentityService
from tapt_gateway.db.store import RowStore
from tapt_gateway.errors import BadRequest, StorageError
from tapt_gateway.main import app
from tapt_gateway.utils.captcha import CAPTCHA_FAILED_MESSAGE
from tapt_gateway.utils.storage import ObjectStorage

FIXED_NOW = datetime(2025, 3, 1, 12, 0, tzinfo=timezone.utc)


def _matches(row, filters):
    for column, op, value in filters:
        current = row.get(column)
        if op == "eq":
            ok = current == value
        elif op == "neq":
            # SQL semantics: NULL <> x is not true
            ok = current is not None and current != value
        elif op == "gt":
            ok = current is not None and current > value
        elif op == "gte":
            ok = current is not None and current >= value
        elif op == "lt":
            ok = current is not None and current < value
        elif op == "lte":
            ok = current is not None and current <= value
        elif op == "in":
            ok = current in list(value)
        elif op == "is_null":
            ok = current is None
        elif op == "not_null":
            ok = current is not None
        else:
            raise ValueError(op)
        if not ok:
            return False
    return True


class FakeRowStore(RowStore):
    """
    Dict-of-lists table store with PostgREST-like filter semantics.

    Timestamps are ISO strings and compare lexicographically, as they do
    when sent to PostgREST as filter values.
    """

    def __init__(self):
        self.tables = {}
        self.writes = []
        self.fail_on = set()
        self._ids = itertools.count(1)

    def seed(self, table, *rows):
        for row in rows:
            row = dict(row)
            row.setdefault("id", f"{table}-{next(self._ids)}")
            self.tables.setdefault(table, []).append(row)
        return self.tables[table]

    def rows(self, table):
        return self.tables.get(table, [])

    def _check_failure(self, op, table):
        if (op, table) in self.fail_on:
            raise StorageError(f"simulated {op} failure on {table}", code="XX000")

    def _write(self, op, table):
        self._check_failure(op, table)
        self.writes.append((op, table))

    def data_writes(self, *audit_tables):
        skip = set(audit_tables) or {"admin_logs", "role_change_audit", "upload_audit"}
        return [w for w in self.writes if w[1] not in skip]

    def select(self, table, filters=(), columns="*", order_by=None, descending=False,
               limit=None, offset=None):
        self._check_failure("select", table)
        rows = [copy.deepcopy(r) for r in self.rows(table) if _matches(r, filters)]
        if order_by:
            rows.sort(key=lambda r: (r.get(order_by) is None, r.get(order_by)), reverse=descending)
        if offset:
            rows = rows[offset:]
        if limit is not None:
            rows = rows[:limit]
        return rows

    def count(self, table, filters=()):
        self._check_failure("count", table)
        return sum(1 for r in self.rows(table) if _matches(r, filters))

    def insert(self, table, rows):
        self._write("insert", table)
        inserted = []
        for row in rows:
            row = dict(row)
            row.setdefault("id", f"{table}-{next(self._ids)}")
            row.setdefault("created_at", FIXED_NOW.isoformat())
            self.tables.setdefault(table, []).append(row)
            inserted.append(copy.deepcopy(row))
        return inserted

    def update(self, table, values, filters):
        assert filters, "update without filters"
        self._write("update", table)
        updated = []
        for row in self.rows(table):
            if _matches(row, filters):
                row.update(values)
                updated.append(copy.deepcopy(row))
        return updated

    def upsert(self, table, row, on_conflict="id"):
        self._write("upsert", table)
        for existing in self.rows(table):
            if on_conflict in row and existing.get(on_conflict) == row[on_conflict]:
                existing.update(row)
                return [copy.deepcopy(existing)]
        row = dict(row)
        row.setdefault("id", f"{table}-{next(self._ids)}")
        self.tables.setdefault(table, []).append(row)
        return [copy.deepcopy(row)]

    def delete(self, table, filters):
        assert filters, "delete without filters"
        self._write("delete", table)
        kept, deleted = [], []
        for row in self.rows(table):
            (deleted if _matches(row, filters) else kept).append(row)
        self.tables[table] = kept
        return deleted


class FakeIdentity(IdentityService):
    def __init__(self):
        self.users = {}
        self.tokens = {}
        self.fail_delete = False
        self._ids = itertools.count(1)

    def add_user(self, user_id, email, token=None):
        self.users[user_id] = Identity(id=user_id, email=email, created_at=FIXED_NOW.isoformat())
        if token:
            self.tokens[token] = user_id
        return self.users[user_id]

    def get_user(self, token):
        user_id = self.tokens.get(token)
        return self.users.get(user_id) if user_id else None

    def get_user_by_id(self, user_id):
        return self.users.get(user_id)

    def create_user(self, email, password):
        return self.add_user(f"auth-{next(self._ids)}", email)

    def delete_user(self, user_id):
        if self.fail_delete:
            raise StorageError("simulated auth failure")
        self.users.pop(user_id, None)

    def list_users(self):
        return list(self.users.values())


class FakeStorage(ObjectStorage):
    def __init__(self):
        self.signed = []
        self.removed = []
        self.fail_remove = False

    def create_signed_upload_url(self, bucket, path):
        self.signed.append((bucket, path))
        return {"signed_url": f"https://storage.test/{bucket}/{path}?token=t", "token": "t", "path": path}

    def get_public_url(self, bucket, path):
        return f"https://storage.test/object/public/{bucket}/{path}"

    def remove(self, bucket, paths):
        if self.fail_remove:
            raise StorageError("simulated storage failure")
        self.removed.append((bucket, list(paths)))


class FakeCaptcha:
    def __init__(self, accept=True):
        self.accept = accept
        self.tokens = []

    def require(self, token, remote_ip=None):
        self.tokens.append(token)
        if not (self.accept and token):
            raise BadRequest(CAPTCHA_FAILED_MESSAGE)


@pytest.fixture
def store():
    return FakeRowStore()


@pytest.fixture
def identity():
    return FakeIdentity()


@pytest.fixture
def storage():
    return FakeStorage()


@pytest.fixture
def captcha():
    return FakeCaptcha()


@pytest.fixture
def now():
    return FIXED_NOW


@pytest.fixture
def client(store, identity, storage, captcha, now):
    ids = itertools.count(1)
    app.dependency_overrides[deps.get_store] = lambda: store
    app.dependency_overrides[deps.get_identity] = lambda: identity
    app.dependency_overrides[deps.get_storage] = lambda: storage
    app.dependency_overrides[deps.get_captcha_verifier] = lambda: captcha
    app.dependency_overrides[deps.get_now] = lambda: now
    app.dependency_overrides[deps.get_id_factory] = lambda: (lambda: f"gen-{next(ids)}")
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def admin(store, identity):
    user = identity.add_user("admin-1", "admin@tapt.org", token="admin-token")
    store.seed("users", {"id": "admin-1", "role": "admin"})
    return user


@pytest.fixture
def admin_headers(admin):
    return {"Authorization": "Bearer admin-token"}


@pytest.fixture
def member_headers(store, identity):
    identity.add_user("member-1", "member@tapt.org", token="member-token")
    store.seed("users", {"id": "member-1", "role": "user"})
    return {"Authorization": "Bearer member-token"}

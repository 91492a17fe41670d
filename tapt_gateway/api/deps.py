"""
Shared FastAPI Dependencies
===========================

Per-request clients, the clock, and the authorization gate.

Every request builds its own Supabase client (no module-level singleton);
tests replace get_store / get_identity / get_storage / get_now through
app.dependency_overrides.
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Callable, Optional

from fastapi import Depends, Header, Request
from supabase import Client

from tapt_gateway.db.client import create_service_client
from tapt_gateway.db.identity import Identity, IdentityService, SupabaseIdentityService
from tapt_gateway.db.store import RowStore, SupabaseRowStore
from tapt_gateway.errors import BadRequest, Forbidden, Unauthenticated
from tapt_gateway.utils.captcha import RecaptchaVerifier, get_default_verifier
from tapt_gateway.utils.storage import ObjectStorage, SupabaseObjectStorage

logger = logging.getLogger(__name__)

ADMIN_ROLE = "admin"
USER_ROLE = "user"


# ============================================================
# Clients
# ============================================================

def get_supabase() -> Client:
    return create_service_client()


def get_store(client: Client = Depends(get_supabase)) -> RowStore:
    return SupabaseRowStore(client)


def get_identity(client: Client = Depends(get_supabase)) -> IdentityService:
    return SupabaseIdentityService(client)


def get_storage(client: Client = Depends(get_supabase)) -> ObjectStorage:
    return SupabaseObjectStorage(client)


def get_captcha_verifier() -> Optional[RecaptchaVerifier]:
    return get_default_verifier()


def get_now() -> datetime:
    return datetime.now(timezone.utc)


def get_id_factory() -> Callable[[], str]:
    return lambda: str(uuid.uuid4())


# ============================================================
# Request body
# ============================================================

async def read_json_body(request: Request) -> Any:
    """Parsed JSON body; malformed or empty bodies are a BadRequest."""
    try:
        return await request.json()
    except ValueError:
        raise BadRequest("Invalid JSON body")


async def read_json_object(body: Any = Depends(read_json_body)) -> dict:
    if not isinstance(body, dict):
        raise BadRequest("Request body must be a JSON object")
    return body


def client_ip(request: Request) -> Optional[str]:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else None


# ============================================================
# Authorization gate
# ============================================================

def parse_bearer(authorization: Optional[str]) -> str:
    if not authorization or not authorization.startswith("Bearer "):
        raise Unauthenticated("No authorization header")
    token = authorization[len("Bearer "):].strip()
    if not token:
        raise Unauthenticated("No authorization header")
    return token


def get_role(store: RowStore, user_id: str) -> Optional[str]:
    row = store.select_one("users", [("id", "eq", user_id)], columns="role")
    return row.get("role") if row else None


def authenticate_token(identity: IdentityService, authorization: Optional[str]) -> Identity:
    """Resolve the bearer token to an identity (no role check)."""
    user = identity.get_user(parse_bearer(authorization))
    if user is None:
        raise Unauthenticated()
    return user


def authorize(store: RowStore, identity: IdentityService, authorization: Optional[str]) -> Identity:
    """
    Admin gate: valid bearer token AND users.role == "admin".

    Raises:
        Unauthenticated: missing/invalid token (401)
        Forbidden: authenticated but not an admin (403)
    """
    user = authenticate_token(identity, authorization)
    if get_role(store, user.id) != ADMIN_ROLE:
        logger.warning(f"🔒 Non-admin {user.id} attempted an admin operation")
        raise Forbidden()
    return user


def authenticate(
    authorization: Optional[str] = Header(None),
    identity: IdentityService = Depends(get_identity),
) -> Identity:
    return authenticate_token(identity, authorization)


def require_admin(
    authorization: Optional[str] = Header(None),
    store: RowStore = Depends(get_store),
    identity: IdentityService = Depends(get_identity),
) -> Identity:
    return authorize(store, identity, authorization)

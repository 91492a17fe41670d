"""
POST /admin/role - Assign the admin role
========================================

Rules:
- Caller must be authenticated (any role)
- If no admin exists yet, any authenticated user may bootstrap one
- Otherwise only an existing admin may assign the role
- At most ROLE_CHANGE_LIMIT_PER_HOUR attempts per caller per hour,
  counted from role_change_audit

Every attempt, successful or not, is written to role_change_audit.
"""

import logging
from datetime import datetime, timedelta

from fastapi import APIRouter, Depends

from tapt_gateway import config
from tapt_gateway.api.deps import ADMIN_ROLE, authenticate, get_identity, get_now, get_role, get_store, read_json_object
from tapt_gateway.db.identity import Identity, IdentityService
from tapt_gateway.db.store import RowStore
from tapt_gateway.errors import Forbidden, NotFound, RateLimited
from tapt_gateway.utils.audit_log import FAILURE, SUCCESS, record_role_change
from tapt_gateway.utils.validation import FieldErrors

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin/role", tags=["Admin"])

ACTION = "assign_admin"


def assign_admin(store: RowStore, identity: IdentityService, requester: Identity,
                 target_user_id: str, now: datetime) -> bool:
    """
    Grant admin to `target_user_id`.

    Returns:
        True when this call bootstrapped the first admin
    """
    one_hour_ago = (now - timedelta(hours=1)).isoformat()
    recent = store.count("role_change_audit", [
        ("requesting_user_id", "eq", requester.id),
        ("timestamp", "gte", one_hour_ago),
    ])
    if recent >= config.ROLE_CHANGE_LIMIT_PER_HOUR:
        raise RateLimited("Rate limit exceeded for role changes")

    if identity.get_user_by_id(target_user_id) is None:
        raise NotFound("User not found")

    bootstrap = store.count("users", [("role", "eq", ADMIN_ROLE)]) == 0
    if not bootstrap and get_role(store, requester.id) != ADMIN_ROLE:
        raise Forbidden("Only existing admins can assign admin role")

    store.upsert("users", {"id": target_user_id, "role": ADMIN_ROLE})
    return bootstrap


@router.post("")
def assign_admin_role(
    requester: Identity = Depends(authenticate),
    body: dict = Depends(read_json_object),
    store: RowStore = Depends(get_store),
    identity: IdentityService = Depends(get_identity),
    now: datetime = Depends(get_now),
):
    target_user_id = body.get("userId")
    try:
        errors = FieldErrors(body)
        target_user_id = errors.identifier("userId", "User ID")
        errors.raise_if_any()

        bootstrap = assign_admin(store, identity, requester, target_user_id, now)
    except Exception as e:
        record_role_change(store, ACTION, requester.id, target_user_id, FAILURE, error=e, now=now)
        raise

    record_role_change(
        store, ACTION, requester.id, target_user_id, SUCCESS,
        details={"message": "Admin role assigned successfully", "bootstrap": bootstrap},
        now=now,
    )
    logger.info(f"✅ Admin role assigned to {target_user_id} by {requester.id}"
                + (" (bootstrap)" if bootstrap else ""))
    return {"success": True, "message": "Admin role assigned successfully"}

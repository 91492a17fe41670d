"""
/admin/users - Back office user management
==========================================

GET     auth users joined with their stored role
POST    {email, password, role} create auth user + users row
DELETE  {userId}

Auth user and users row live in two systems with no shared transaction,
so each mutation compensates by hand:
- create: users row insert fails -> delete the new auth user
- delete: auth deletion fails -> re-insert the users row
"""

import logging

from fastapi import APIRouter, Depends

from tapt_gateway.api.deps import ADMIN_ROLE, USER_ROLE, get_identity, get_store, read_json_object, require_admin
from tapt_gateway.db.identity import Identity, IdentityService
from tapt_gateway.db.store import RowStore
from tapt_gateway.errors import DuplicateSubmission, LastAdminProtected, NotFound, StorageError
from tapt_gateway.utils.audit_log import audited
from tapt_gateway.utils.validation import FieldErrors

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin/users", tags=["Admin"])

MIN_PASSWORD_LENGTH = 8


@router.get("")
def list_users(
    admin: Identity = Depends(require_admin),
    store: RowStore = Depends(get_store),
    identity: IdentityService = Depends(get_identity),
):
    with audited(store, "list_users", admin.id):
        auth_users = identity.list_users()
        roles = {row["id"]: row.get("role") for row in store.select("users", columns="id, role")}

    users = [
        {
            "id": user.id,
            "email": user.email,
            "role": roles.get(user.id) or USER_ROLE,
            "created_at": user.created_at,
        }
        for user in auth_users
    ]
    return {"success": True, "users": users}


@router.post("")
def create_user(
    admin: Identity = Depends(require_admin),
    body: dict = Depends(read_json_object),
    store: RowStore = Depends(get_store),
    identity: IdentityService = Depends(get_identity),
):
    # Never log or audit the password
    with audited(store, "create_user", admin.id, {"email": body.get("email"), "role": body.get("role")}) as details:
        errors = FieldErrors(body)
        email = errors.email("email")
        password = errors.text("password", "Password", max_length=None)
        if password is not None and len(password) < MIN_PASSWORD_LENGTH:
            errors.add("password", f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
        role = errors.choice("role", "Role", [USER_ROLE, ADMIN_ROLE])
        errors.raise_if_any()

        if any((user.email or "").lower() == email for user in identity.list_users()):
            raise DuplicateSubmission("A user with this email already exists")

        new_user = identity.create_user(email, password)
        details["created_user"] = new_user.id

        try:
            store.insert("users", [{"id": new_user.id, "role": role}])
        except StorageError:
            logger.error(f"❌ Role insert failed for {new_user.id}; removing auth user")
            try:
                identity.delete_user(new_user.id)
            except StorageError as cleanup_error:
                logger.error(f"❌ Could not remove auth user {new_user.id}: {cleanup_error}")
            raise

    logger.info(f"✅ User {new_user.id} created with role {role}")
    return {"success": True, "user": {"id": new_user.id, "email": new_user.email, "role": role}}


@router.delete("")
def delete_user(
    admin: Identity = Depends(require_admin),
    body: dict = Depends(read_json_object),
    store: RowStore = Depends(get_store),
    identity: IdentityService = Depends(get_identity),
):
    with audited(store, "delete_user", admin.id, {"deleted_user": body.get("userId")}):
        errors = FieldErrors(body)
        user_id = errors.identifier("userId", "User ID")
        errors.raise_if_any()

        if identity.get_user_by_id(user_id) is None:
            raise NotFound("User not found in auth system")

        user_row = store.select_one("users", [("id", "eq", user_id)], columns="id, role")
        role = (user_row or {}).get("role") or USER_ROLE

        if role == ADMIN_ROLE and store.count("users", [("role", "eq", ADMIN_ROLE)]) <= 1:
            raise LastAdminProtected()

        store.delete("users", [("id", "eq", user_id)])

        try:
            identity.delete_user(user_id)
        except StorageError:
            logger.error(f"❌ Auth deletion failed for {user_id}; restoring users row")
            if user_row:
                try:
                    store.insert("users", [{"id": user_id, "role": role}])
                except StorageError as restore_error:
                    logger.error(f"❌ Could not restore users row for {user_id}: {restore_error}")
            raise

    logger.info(f"🗑️  User {user_id} deleted")
    return {"success": True}

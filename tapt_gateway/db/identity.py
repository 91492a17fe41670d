"""
Identity Service
================

Wraps Supabase Auth: bearer token resolution plus the admin-only user
management calls used by the users handler.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional

from supabase import Client

from tapt_gateway.errors import StorageError

logger = logging.getLogger(__name__)

# GoTrue returns 50 users per page unless asked for more
USERS_PAGE_SIZE = 1000


@dataclass
class Identity:
    """An authenticated principal as known to the auth service."""

    id: str
    email: Optional[str] = None
    created_at: Optional[str] = None


def _to_identity(user) -> Identity:
    created_at = getattr(user, "created_at", None)
    return Identity(
        id=str(user.id),
        email=getattr(user, "email", None),
        created_at=created_at.isoformat() if hasattr(created_at, "isoformat") else created_at,
    )


class IdentityService:
    """Interface consumed by the authorization gate and the users handler."""

    def get_user(self, token: str) -> Optional[Identity]:
        raise NotImplementedError

    def get_user_by_id(self, user_id: str) -> Optional[Identity]:
        raise NotImplementedError

    def create_user(self, email: str, password: str) -> Identity:
        raise NotImplementedError

    def delete_user(self, user_id: str) -> None:
        raise NotImplementedError

    def list_users(self) -> List[Identity]:
        raise NotImplementedError


class SupabaseIdentityService(IdentityService):
    """IdentityService backed by supabase.auth (GoTrue)."""

    def __init__(self, client: Client):
        self.client = client

    def get_user(self, token):
        """Resolve a bearer token. Returns None for any invalid/expired token."""
        try:
            response = self.client.auth.get_user(token)
        except Exception as e:
            logger.info(f"🔒 Token rejected by auth service: {e}")
            return None
        if not response or not response.user:
            return None
        return _to_identity(response.user)

    def get_user_by_id(self, user_id):
        try:
            response = self.client.auth.admin.get_user_by_id(user_id)
        except Exception as e:
            logger.info(f"Auth lookup failed for {user_id}: {e}")
            return None
        if not response or not response.user:
            return None
        return _to_identity(response.user)

    def create_user(self, email, password):
        try:
            response = self.client.auth.admin.create_user({
                "email": email,
                "password": password,
                "email_confirm": True,
            })
        except Exception as e:
            logger.error(f"❌ Auth user creation failed for {email}: {e}")
            raise StorageError(str(e), code=getattr(e, "code", None)) from e
        if not response or not response.user:
            raise StorageError("Auth service returned no user")
        return _to_identity(response.user)

    def delete_user(self, user_id):
        try:
            self.client.auth.admin.delete_user(user_id)
        except Exception as e:
            logger.error(f"❌ Auth user deletion failed for {user_id}: {e}")
            raise StorageError(str(e), code=getattr(e, "code", None)) from e

    def list_users(self):
        identities = []
        page = 1
        while True:
            try:
                users = self.client.auth.admin.list_users(page=page, per_page=USERS_PAGE_SIZE) or []
            except Exception as e:
                logger.error(f"❌ Listing auth users failed on page {page}: {e}")
                raise StorageError(str(e), code=getattr(e, "code", None)) from e
            identities.extend(_to_identity(u) for u in users)
            if len(users) < USERS_PAGE_SIZE:
                return identities
            page += 1

"""
Gateway Database Module
=======================

Per-request Supabase client construction and the row store / identity
interfaces the handlers depend on.
"""

from tapt_gateway.db.client import create_service_client
from tapt_gateway.db.identity import Identity, IdentityService, SupabaseIdentityService
from tapt_gateway.db.store import RowStore, SupabaseRowStore

__all__ = [
    "create_service_client",
    "Identity",
    "IdentityService",
    "SupabaseIdentityService",
    "RowStore",
    "SupabaseRowStore",
]

"""
Audit Logging
=============

Append-only audit trail for privileged actions:
- admin_logs: every admin mutation (content, users, settings, rollover, ...)
- role_change_audit: admin role assignment attempts
- upload_audit: signed upload URL requests

Audit writes are fire-and-forget. A failed audit insert is logged and
swallowed; it never fails or blocks the operation being audited. The only
exception is write_admin_log(), used by /admin/log where the audit row IS
the operation.
"""

import json
import logging
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from tapt_gateway.db.store import RowStore
from tapt_gateway.errors import GatewayError

logger = logging.getLogger(__name__)

SUCCESS = "success"
FAILURE = "failure"


def _now(now: Optional[datetime]) -> str:
    return (now or datetime.now(timezone.utc)).isoformat()


def _details_json(details: Optional[Dict[str, Any]]) -> Optional[str]:
    if not details:
        return None
    return json.dumps(details, default=str, sort_keys=True)


def _error_text(error) -> Optional[str]:
    if error is None:
        return None
    if isinstance(error, GatewayError):
        # Internal detail is fine here: audit rows are never shown to the public
        return getattr(error, "detail", None) or error.message
    return str(error)


def _insert_quietly(store: RowStore, table: str, row: Dict[str, Any]) -> bool:
    try:
        store.insert(table, [row])
        return True
    except Exception as e:
        logger.error(f"❌ Audit write to {table} failed (action={row.get('action')}): {e}")
        return False


def build_admin_log(action: str, actor_id: Optional[str], outcome: str,
                    details: Optional[Dict[str, Any]] = None, error=None,
                    now: Optional[datetime] = None) -> Dict[str, Any]:
    return {
        "action": action,
        "user_id": actor_id,
        "outcome": outcome,
        "error": _error_text(error),
        "details": _details_json(details),
        "timestamp": _now(now),
    }


def record(store: RowStore, action: str, actor_id: Optional[str], outcome: str,
           details: Optional[Dict[str, Any]] = None, error=None,
           now: Optional[datetime] = None) -> bool:
    """
    Append one admin_logs row. Never raises.

    Returns:
        True if the row was written
    """
    row = build_admin_log(action, actor_id, outcome, details, error, now)
    written = _insert_quietly(store, "admin_logs", row)
    if written:
        logger.info(f"📝 Audit: {action} by {actor_id} -> {outcome}")
    return written


def write_admin_log(store: RowStore, action: str, actor_id: str, outcome: str = SUCCESS,
                    details: Optional[Dict[str, Any]] = None, error=None,
                    now: Optional[datetime] = None) -> Dict[str, Any]:
    """Append one admin_logs row and let storage failures propagate."""
    row = build_admin_log(action, actor_id, outcome, details, error, now)
    store.insert("admin_logs", [row])
    return row


@contextmanager
def audited(store: RowStore, action: str, actor_id: Optional[str],
            details: Optional[Dict[str, Any]] = None, now: Optional[datetime] = None):
    """
    Record the true outcome of the enclosed block in admin_logs.

    Yields the details dict so the block can add to it (e.g. the new row id).
    Exceptions are recorded as failures and re-raised unchanged.

    Example:
        >>> with audited(store, "create_content", admin.id, {"type": "news"}) as details:
        ...     row = store.insert("content", [values])[0]
        ...     details["id"] = row["id"]
    """
    details = dict(details or {})
    try:
        yield details
    except Exception as e:
        record(store, action, actor_id, FAILURE, details, error=e, now=now)
        raise
    record(store, action, actor_id, SUCCESS, details, now=now)


def record_role_change(store: RowStore, action: str, requesting_user_id: Optional[str],
                       target_user_id: Optional[str], outcome: str,
                       details: Optional[Dict[str, Any]] = None, error=None,
                       now: Optional[datetime] = None) -> bool:
    """Append one role_change_audit row. Never raises."""
    return _insert_quietly(store, "role_change_audit", {
        "action": action,
        "requesting_user_id": requesting_user_id,
        "target_user_id": target_user_id,
        "success": outcome == SUCCESS,
        "error": _error_text(error),
        "details": _details_json(details),
        "timestamp": _now(now),
    })


def record_upload(store: RowStore, user_id: Optional[str], outcome: str,
                  bucket: Optional[str] = None, folder: Optional[str] = None,
                  file_name: Optional[str] = None, content_type: Optional[str] = None,
                  file_path: Optional[str] = None, error=None,
                  now: Optional[datetime] = None) -> bool:
    """Append one upload_audit row. Never raises."""
    return _insert_quietly(store, "upload_audit", {
        "action": "secure_upload",
        "user_id": user_id,
        "outcome": outcome,
        "error": _error_text(error),
        "bucket": bucket,
        "folder": folder,
        "file_name": file_name,
        "content_type": content_type,
        "file_path": file_path,
        "timestamp": _now(now),
    })

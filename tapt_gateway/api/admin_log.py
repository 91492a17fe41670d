"""
POST /admin/log - Audit entries reported by the admin UI
========================================================

Body: {action, outcome: success|failure, error?, details?}

Unlike the handlers' own audit records, the row here is the operation
itself, so a storage failure is returned to the caller.
"""

from datetime import datetime

from fastapi import APIRouter, Depends

from tapt_gateway.api.deps import get_now, get_store, read_json_object, require_admin
from tapt_gateway.db.identity import Identity
from tapt_gateway.db.store import RowStore
from tapt_gateway.utils.audit_log import FAILURE, SUCCESS, write_admin_log
from tapt_gateway.utils.validation import FieldErrors

router = APIRouter(prefix="/admin/log", tags=["Admin"])


@router.post("")
def log_admin_action(
    admin: Identity = Depends(require_admin),
    body: dict = Depends(read_json_object),
    store: RowStore = Depends(get_store),
    now: datetime = Depends(get_now),
):
    errors = FieldErrors(body)
    action = errors.text("action", "Action", max_length=100)
    outcome = errors.choice("outcome", "Outcome", [SUCCESS, FAILURE])
    error = errors.text("error", "Error", max_length=None, required=False)
    details = body.get("details")
    if details is not None and not isinstance(details, dict):
        errors.add("details", "Details must be an object")
    errors.raise_if_any()

    write_admin_log(store, action, admin.id, outcome, details=details, error=error, now=now)
    return {"success": True}

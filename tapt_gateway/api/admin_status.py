"""
Review decisions on nominations and membership applications
===========================================================

POST /admin/membership-status  {id, status: approved|rejected}
POST /admin/nomination-status  {id, status: approved|rejected}
"""

from datetime import datetime

from fastapi import APIRouter, Depends

from tapt_gateway.api.deps import get_now, get_store, read_json_object, require_admin
from tapt_gateway.db.identity import Identity
from tapt_gateway.db.store import RowStore
from tapt_gateway.errors import NotFound
from tapt_gateway.utils.audit_log import audited
from tapt_gateway.utils.validation import validate_review_status

router = APIRouter(prefix="/admin", tags=["Admin"])


def set_status(store: RowStore, table: str, action: str, admin: Identity, body: dict, now: datetime):
    with audited(store, action, admin.id, {"id": body.get("id"), "status": body.get("status")}, now=now):
        record_id, status = validate_review_status(body)
        rows = store.update(table, {"status": status}, [("id", "eq", record_id)])
        if not rows:
            raise NotFound("Record not found")
    return {"success": True, "data": rows[0]}


@router.post("/membership-status")
def update_membership_status(
    admin: Identity = Depends(require_admin),
    body: dict = Depends(read_json_object),
    store: RowStore = Depends(get_store),
    now: datetime = Depends(get_now),
):
    return set_status(store, "membership_applications", "update_membership_status", admin, body, now)


@router.post("/nomination-status")
def update_nomination_status(
    admin: Identity = Depends(require_admin),
    body: dict = Depends(read_json_object),
    store: RowStore = Depends(get_store),
    now: datetime = Depends(get_now),
):
    return set_status(store, "hall_of_fame_nominations", "update_nomination_status", admin, body, now)

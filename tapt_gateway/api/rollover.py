"""
POST /rollover - Close a period and activate the next one
=========================================================

Body: {type: conference|tech-conference|hall-of-fame, settings: {...}}

Admin only. Settings are validated like POST /admin/settings/{type}.
See tapt_gateway.rollover for the step sequence and the manual recovery
procedure when a run is left with status=failed.
"""

from datetime import datetime
from typing import Callable

from fastapi import APIRouter, Depends

from tapt_gateway.api.admin_settings import SettingsType, validate_settings
from tapt_gateway.api.deps import get_id_factory, get_now, get_store, read_json_body, require_admin
from tapt_gateway.db.identity import Identity
from tapt_gateway.db.store import RowStore
from tapt_gateway.rollover import RolloverEngine, parse_rollover_request
from tapt_gateway.utils.audit_log import FAILURE, record

router = APIRouter(tags=["Rollover"])


@router.post("/rollover")
def rollover(
    admin: Identity = Depends(require_admin),
    body=Depends(read_json_body),
    store: RowStore = Depends(get_store),
    now: datetime = Depends(get_now),
    new_id: Callable[[], str] = Depends(get_id_factory),
):
    try:
        rollover_type, settings, year = parse_rollover_request(body)
        # Same rules as POST /admin/settings; unknown columns are dropped
        settings = {**validate_settings(SettingsType(rollover_type.value), settings), "id": settings["id"]}
    except Exception as e:
        rollover_name = body.get("type") if isinstance(body, dict) else None
        record(store, f"rollover_{rollover_name or 'unknown'}", admin.id, FAILURE, error=e, now=now)
        raise

    engine = RolloverEngine(store, rollover_type, now=now, id_factory=new_id)
    return engine.run(settings, year, admin.id)

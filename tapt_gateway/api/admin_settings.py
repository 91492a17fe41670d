"""
/admin/settings/{type} - Period settings (one active row per table)
===================================================================

Types: conference, tech-conference, hall-of-fame

GET     the active settings row (or null)
POST    save; every other row is deactivated, the saved row becomes active
DELETE  {clear: true} deactivates the active row
"""

import logging
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Dict, Optional

from fastapi import APIRouter, Depends

from tapt_gateway.api.deps import get_id_factory, get_now, get_store, read_json_object, require_admin
from tapt_gateway.db.identity import Identity
from tapt_gateway.db.store import RowStore
from tapt_gateway.errors import BadRequest
from tapt_gateway.submissions import load_active_settings, parse_period_bound
from tapt_gateway.utils.audit_log import audited
from tapt_gateway.utils.validation import FieldErrors

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin/settings", tags=["Admin"])


class SettingsType(str, Enum):
    CONFERENCE = "conference"
    TECH_CONFERENCE = "tech-conference"
    HALL_OF_FAME = "hall-of-fame"


SETTINGS_TABLES = {
    SettingsType.CONFERENCE: "conference_settings",
    SettingsType.TECH_CONFERENCE: "tech_conference_settings",
    SettingsType.HALL_OF_FAME: "hall_of_fame_settings",
}

CONFERENCE_TEXT_FIELDS = ("location", "venue", "payment_instructions")
HALL_OF_FAME_TEXT_FIELDS = ("nomination_instructions", "eligibility_criteria")


def _date(errors: FieldErrors, field: str, label: str, end: bool = False):
    raw = errors.text(field, label, max_length=None)
    if raw is None:
        return None, None
    try:
        return raw, parse_period_bound(raw, end=end)
    except (ValueError, OverflowError):
        errors.add(field, f"{label} must be a valid date")
        return None, None


def validate_settings(settings_type: SettingsType, body: Dict[str, Any]) -> Dict[str, Any]:
    """Required fields per type plus date ordering and fee rules."""
    errors = FieldErrors(body)
    values = {"name": errors.text("name", "Name", max_length=200)}

    start_raw, start = _date(errors, "start_date", "Start date")
    end_raw, end = _date(errors, "end_date", "End date")
    values["start_date"] = start_raw
    values["end_date"] = end_raw
    if start and end and parse_period_bound(end_raw) <= start:
        errors.add("end_date", "End date must be after start date")

    values["description"] = errors.text("description", "Description", max_length=None, required=False)

    if settings_type == SettingsType.HALL_OF_FAME:
        for field in HALL_OF_FAME_TEXT_FIELDS:
            values[field] = errors.text(field, field.replace("_", " ").capitalize(),
                                        max_length=None, required=False)
    else:
        reg_end_raw, reg_end = _date(errors, "registration_end_date", "Registration end date")
        values["registration_end_date"] = reg_end_raw
        if start and reg_end and parse_period_bound(reg_end_raw) > start:
            errors.add("registration_end_date", "Registration end date must be before or on start date")

        for field in CONFERENCE_TEXT_FIELDS:
            values[field] = errors.text(field, field.replace("_", " ").capitalize(), max_length=None)

        fee = body.get("fee")
        if fee is None or fee == "":
            errors.add("fee", "Fee is required")
        elif isinstance(fee, bool) or not isinstance(fee, (int, float)):
            errors.add("fee", "Fee must be a number")
        elif fee < 0:
            errors.add("fee", "Fee must not be negative")
        values["fee"] = fee

    errors.raise_if_any()
    return values


def _resolve(settings_type: str) -> SettingsType:
    try:
        return SettingsType(settings_type)
    except ValueError:
        raise BadRequest("Invalid settings type")


@router.get("/{settings_type}")
def get_active_settings(
    settings_type: str,
    admin: Identity = Depends(require_admin),
    store: RowStore = Depends(get_store),
):
    table = SETTINGS_TABLES[_resolve(settings_type)]
    return {"success": True, "data": load_active_settings(store, table)}


@router.post("/{settings_type}")
def save_settings(
    settings_type: str,
    admin: Identity = Depends(require_admin),
    body: dict = Depends(read_json_object),
    store: RowStore = Depends(get_store),
    now: datetime = Depends(get_now),
    new_id: Callable[[], str] = Depends(get_id_factory),
):
    kind = _resolve(settings_type)
    table = SETTINGS_TABLES[kind]
    settings_id = body.get("id") or new_id()

    with audited(store, f"update_{table}", admin.id, {"settings_id": settings_id}, now=now):
        values = validate_settings(kind, body)
        values.update({"id": settings_id, "is_active": True, "updated_at": now.isoformat()})

        store.update(table, {"is_active": False}, [("id", "neq", settings_id)])
        rows = store.upsert(table, values)

    logger.info(f"✅ {table} {settings_id} saved and activated")
    return {"success": True, "data": rows[0] if rows else values}


@router.delete("/{settings_type}")
def clear_settings(
    settings_type: str,
    admin: Identity = Depends(require_admin),
    body: dict = Depends(read_json_object),
    store: RowStore = Depends(get_store),
):
    table = SETTINGS_TABLES[_resolve(settings_type)]

    with audited(store, f"clear_{table}", admin.id) as details:
        if body.get("clear") is not True:
            raise BadRequest("Missing clear flag")
        active: Optional[Dict[str, Any]] = load_active_settings(store, table)
        if active:
            store.update(table, {"is_active": False}, [("id", "eq", active["id"])])
            details["settings_id"] = active["id"]

    return {"success": True}

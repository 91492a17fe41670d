"""
Period Rollover
===============

Closes a registration / nomination period and activates the next one:

    1. Guard     - refuse if this type+year was already rolled over
    2. Marker    - write-ahead row in rollover_runs (status in_progress)
    3. Snapshot  - read live rows (registrations + their attendees)
    4. Archive   - copy rows to <table>_archive under one archive_id
    5. Re-check  - guard again (ignoring this run), then clear live rows
    6. Settings  - deactivate every other row, upsert new one as active
    7. Finish    - marker -> completed, audit, return archiveId

The steps are NOT one transaction. If a step after archiving fails, the
live tables and archive may both hold the rows; the marker is left with
status=failed and last_step set so the partial state can be found and
repaired by hand (delete the archive rows for that archive_id and rerun).
If only the final marker write fails, the rollover still succeeds and the
run stays in_progress, which blocks a rerun for that year until its status
is set to completed by hand.
"""

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from tapt_gateway.db.store import RowStore
from tapt_gateway.errors import AlreadyRolledOver, BadRequest, GatewayError
from tapt_gateway.submissions import parse_period_bound
from tapt_gateway.utils.audit_log import audited

logger = logging.getLogger(__name__)

RUNS_TABLE = "rollover_runs"

# PostgREST puts `in` filters in the URL; keep each request short
DELETE_BATCH_SIZE = 100

# PostgREST caps a response at 1000 rows no matter the requested range
SNAPSHOT_PAGE_SIZE = 1000

# Never copied into the audit trail
AUDIT_EXCLUDED_SETTINGS = ("id", "description", "payment_instructions")


class RolloverType(str, Enum):
    CONFERENCE = "conference"
    TECH_CONFERENCE = "tech-conference"
    HALL_OF_FAME = "hall-of-fame"


class RunStatus(str, Enum):
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass(frozen=True)
class RolloverTables:
    primary: str
    settings: str
    children: Optional[str] = None  # attendee table, keyed by registration_id

    @property
    def primary_archive(self) -> str:
        return f"{self.primary}_archive"

    @property
    def children_archive(self) -> Optional[str]:
        return f"{self.children}_archive" if self.children else None


TABLES = {
    RolloverType.CONFERENCE: RolloverTables(
        primary="conference_registrations",
        children="conference_attendees",
        settings="conference_settings",
    ),
    RolloverType.TECH_CONFERENCE: RolloverTables(
        primary="tech_conference_registrations",
        children="tech_conference_attendees",
        settings="tech_conference_settings",
    ),
    RolloverType.HALL_OF_FAME: RolloverTables(
        primary="hall_of_fame_nominations",
        settings="hall_of_fame_settings",
    ),
}


def _batches(items: List[Any], size: int = DELETE_BATCH_SIZE):
    for start in range(0, len(items), size):
        yield items[start:start + size]


def parse_rollover_request(payload: Any):
    """
    Validate a rollover body: {"type": ..., "settings": {...}}.

    Returns:
        (RolloverType, settings dict, year)
    """
    if not isinstance(payload, dict) or not payload.get("type") or not payload.get("settings"):
        raise BadRequest("Missing required fields")

    try:
        rollover_type = RolloverType(payload["type"])
    except ValueError:
        raise BadRequest("Invalid rollover type")

    settings = payload["settings"]
    if not isinstance(settings, dict) or not all(settings.get(k) for k in ("id", "start_date", "end_date")):
        raise BadRequest("Missing required settings fields")

    try:
        year = parse_period_bound(settings["start_date"]).year
    except (ValueError, OverflowError):
        raise BadRequest("Invalid settings start_date")

    return rollover_type, settings, year


def settings_summary(settings: Dict[str, Any]) -> Dict[str, Any]:
    return {k: v for k, v in settings.items() if k not in AUDIT_EXCLUDED_SETTINGS}


class RolloverEngine:
    """
    One rollover of one settings type. Not reusable: run() once.

    Args:
        store: Row store for this request
        rollover_type: Which period to roll over
        now: Time stamped on archive rows and the marker
        id_factory: New row ids (uuid4 strings by default)
    """

    def __init__(self, store: RowStore, rollover_type: RolloverType, now: datetime = None,
                 id_factory: Callable[[], str] = None):
        self.store = store
        self.type = RolloverType(rollover_type)
        self.tables = TABLES[self.type]
        self.now = now or datetime.now(timezone.utc)
        self.new_id = id_factory or (lambda: str(uuid.uuid4()))
        self.run_id: Optional[str] = None
        self.archive_id: Optional[str] = None
        self.last_step = "init"

    # ------------------------------------------------------------
    # Guard
    # ------------------------------------------------------------

    def check_not_rolled_over(self, year: int):
        """Raise AlreadyRolledOver if an archive row or a live/completed run exists for `year`."""
        year_start = datetime(year, 1, 1, tzinfo=timezone.utc).isoformat()
        next_year_start = datetime(year + 1, 1, 1, tzinfo=timezone.utc).isoformat()

        archive_filters = [
            ("archived_at", "gte", year_start),
            ("archived_at", "lt", next_year_start),
        ]
        if self.archive_id:
            archive_filters.append(("archive_id", "neq", self.archive_id))
        if self.store.select(self.tables.primary_archive, archive_filters, columns="id", limit=1):
            raise AlreadyRolledOver(year)

        run_filters = [
            ("type", "eq", self.type.value),
            ("year", "eq", year),
            ("status", "in", [RunStatus.IN_PROGRESS.value, RunStatus.COMPLETED.value]),
        ]
        if self.run_id:
            run_filters.append(("id", "neq", self.run_id))
        if self.store.select(RUNS_TABLE, run_filters, columns="id", limit=1):
            raise AlreadyRolledOver(year)

    # ------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------

    def _start_run(self, year: int):
        self.last_step = "marker"
        self.run_id = self.new_id()
        self.store.insert(RUNS_TABLE, [{
            "id": self.run_id,
            "type": self.type.value,
            "year": year,
            "status": RunStatus.IN_PROGRESS.value,
            "started_at": self.now.isoformat(),
        }])

    def _finish_run(self, status: RunStatus, error: Optional[Exception] = None):
        values = {
            "status": status.value,
            "archive_id": self.archive_id,
            "last_step": self.last_step,
            "finished_at": datetime.now(timezone.utc).isoformat(),
        }
        if error is not None:
            values["error"] = getattr(error, "detail", None) or str(error)
        self.store.update(RUNS_TABLE, values, [("id", "eq", self.run_id)])

    def _archive_copy(self, rows: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        archived_at = self.now.isoformat()
        return [
            {**row, "id": self.new_id(), "original_id": row["id"],
             "archived_at": archived_at, "archive_id": self.archive_id}
            for row in rows
        ]

    def _select_all(self, table: str, filters=()) -> List[Dict[str, Any]]:
        """Page through every matching row, ordered by id so pages don't overlap."""
        rows: List[Dict[str, Any]] = []
        offset = 0
        while True:
            page = self.store.select(table, filters, order_by="id", limit=SNAPSHOT_PAGE_SIZE, offset=offset)
            rows.extend(page)
            if len(page) < SNAPSHOT_PAGE_SIZE:
                return rows
            offset += SNAPSHOT_PAGE_SIZE

    def _archive(self):
        """Snapshot and copy live rows. Returns (primary ids, child ids) that were archived."""
        self.last_step = "snapshot"
        primary_rows = self._select_all(self.tables.primary)
        primary_ids = [row["id"] for row in primary_rows]

        child_rows: List[Dict[str, Any]] = []
        if self.tables.children and primary_ids:
            for batch in _batches(primary_ids):
                child_rows.extend(self._select_all(self.tables.children, [("registration_id", "in", batch)]))
        child_ids = [row["id"] for row in child_rows]

        if not primary_rows:
            logger.info(f"ℹ️  Rollover {self.type.value}: no live rows to archive")
            return primary_ids, child_ids

        self.archive_id = self.new_id()

        self.last_step = "archive_primary"
        self.store.insert(self.tables.primary_archive, self._archive_copy(primary_rows))

        if child_rows:
            self.last_step = "archive_children"
            self.store.insert(self.tables.children_archive, self._archive_copy(child_rows))

        logger.info(
            f"📦 Rollover {self.type.value}: archived {len(primary_rows)} {self.tables.primary}"
            f" and {len(child_rows)} {self.tables.children or 'child'} rows under {self.archive_id}"
        )
        return primary_ids, child_ids

    def _clear(self, primary_ids: List[str], child_ids: List[str]):
        """Delete exactly the snapshotted rows; anything written since stays live."""
        if child_ids:
            self.last_step = "clear_children"
            for batch in _batches(child_ids):
                self.store.delete(self.tables.children, [("id", "in", batch)])

        if not primary_ids:
            return

        self.last_step = "clear_primary"
        for batch in _batches(primary_ids):
            self.store.delete(self.tables.primary, [("id", "in", batch)])

    def _activate(self, settings: Dict[str, Any]):
        self.last_step = "deactivate_settings"
        self.store.update(self.tables.settings, {"is_active": False}, [("id", "neq", settings["id"])])

        self.last_step = "activate_settings"
        self.store.upsert(self.tables.settings, {
            **settings,
            "is_active": True,
            "updated_at": self.now.isoformat(),
        })

    # ------------------------------------------------------------
    # Entry point
    # ------------------------------------------------------------

    def run(self, settings: Dict[str, Any], year: int, actor_id: Optional[str]) -> Dict[str, Any]:
        """
        Perform the rollover and audit it as rollover_<type>.

        Returns:
            {"success": True, "archiveId": <uuid or None when nothing was archived>}

        Raises:
            AlreadyRolledOver: guard failed (nothing written)
            StorageError: a step failed (marker left as failed)
        """
        details = {"type": self.type.value, "year": year, "settings": settings_summary(settings)}

        with audited(self.store, f"rollover_{self.type.value}", actor_id, details, now=self.now) as audit:
            self.last_step = "guard"
            self.check_not_rolled_over(year)
            self._start_run(year)

            try:
                primary_ids, child_ids = self._archive()
                audit["archive_id"] = self.archive_id

                self.last_step = "recheck"
                self.check_not_rolled_over(year)

                self._clear(primary_ids, child_ids)
                self._activate(settings)
            except Exception as e:
                logger.error(f"❌ Rollover {self.type.value} {year} failed at {self.last_step}: {e}")
                audit["last_step"] = self.last_step
                try:
                    self._finish_run(RunStatus.FAILED, e)
                except GatewayError as marker_error:
                    logger.error(f"❌ Could not mark rollover run {self.run_id} failed: {marker_error}")
                raise

            self.last_step = "done"
            try:
                self._finish_run(RunStatus.COMPLETED)
            except GatewayError as marker_error:
                # Data and settings are already switched over; only the marker is stale
                logger.error(f"❌ Could not mark rollover run {self.run_id} completed: {marker_error}")
                audit["marker_error"] = str(marker_error)

        logger.info(f"✅ Rollover {self.type.value} {year} complete (archive {self.archive_id})")
        return {"success": True, "archiveId": self.archive_id}

"""
/admin/board-members - Board of directors listing
=================================================

GET     list ordered by display order
POST    upsert {id?, name, title, district?, bio?, image?, order?}
DELETE  {id, remove_image?} (image removal failures are only logged)
PATCH   reorder {items: [{id, order}, ...]}
"""

import logging
from typing import Callable

from fastapi import APIRouter, Depends

from tapt_gateway import config
from tapt_gateway.api.deps import get_id_factory, get_storage, get_store, read_json_object, require_admin
from tapt_gateway.db.identity import Identity
from tapt_gateway.db.store import RowStore
from tapt_gateway.errors import NotFound, StorageError
from tapt_gateway.utils.audit_log import audited
from tapt_gateway.utils.storage import ObjectStorage, object_path_from_url
from tapt_gateway.utils.validation import FieldErrors

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin/board-members", tags=["Admin"])


def _order_value(errors: FieldErrors, field: str = "order") -> int:
    if errors.payload.get(field) is None:
        return 0
    return errors.integer(field, "Display order", 0, 10_000)


@router.get("")
def list_board_members(
    admin: Identity = Depends(require_admin),
    store: RowStore = Depends(get_store),
):
    return {"success": True, "data": store.select("board_members", order_by="order")}


@router.post("")
def save_board_member(
    admin: Identity = Depends(require_admin),
    body: dict = Depends(read_json_object),
    store: RowStore = Depends(get_store),
    new_id: Callable[[], str] = Depends(get_id_factory),
):
    member_id = body.get("id") or new_id()

    with audited(store, "upsert_board_member", admin.id, {"board_member_id": member_id}):
        errors = FieldErrors(body)
        values = {
            "id": member_id,
            "name": errors.text("name", "Name"),
            "title": errors.text("title", "Title"),
            "district": errors.text("district", "District", required=False),
            "bio": errors.text("bio", "Bio", max_length=None, required=False),
            "image": errors.text("image", "Image URL", max_length=None, required=False),
            "order": _order_value(errors),
        }
        errors.raise_if_any()
        rows = store.upsert("board_members", values)

    return {"success": True, "data": rows[0] if rows else values}


@router.delete("")
def delete_board_member(
    admin: Identity = Depends(require_admin),
    body: dict = Depends(read_json_object),
    store: RowStore = Depends(get_store),
    storage: ObjectStorage = Depends(get_storage),
):
    with audited(store, "delete_board_member", admin.id, {"board_member_id": body.get("id")}) as details:
        errors = FieldErrors(body)
        member_id = errors.identifier("id", "Board member ID")
        errors.raise_if_any()

        member = store.select_one("board_members", [("id", "eq", member_id)])
        if not member:
            raise NotFound("Board member not found")
        store.delete("board_members", [("id", "eq", member_id)])

        image_path = object_path_from_url(member.get("image"), config.BOARD_MEMBER_IMAGE_BUCKET)
        if image_path and body.get("remove_image", True):
            try:
                storage.remove(config.BOARD_MEMBER_IMAGE_BUCKET, [image_path])
                details["image_removed"] = image_path
            except StorageError as e:
                logger.warning(f"⚠️  Board member {member_id} deleted but image {image_path} was not: {e}")

    return {"success": True}


@router.patch("")
def reorder_board_members(
    admin: Identity = Depends(require_admin),
    body: dict = Depends(read_json_object),
    store: RowStore = Depends(get_store),
):
    with audited(store, "reorder_board_members", admin.id) as details:
        items = body.get("items")
        errors = FieldErrors(body)
        if not isinstance(items, list) or not items:
            errors.add("items", "Items must be a non-empty list of {id, order}")
            errors.raise_if_any()

        updates = []
        for index, item in enumerate(items):
            if not isinstance(item, dict):
                errors.add(f"items[{index}]", "Item must be an object")
                continue
            item_errors = FieldErrors(item, prefix=f"items[{index}].")
            updates.append((item_errors.identifier("id", "Board member ID"),
                            item_errors.integer("order", "Display order", 0, 10_000)))
            errors.errors.extend(item_errors.errors)
        errors.raise_if_any()

        for member_id, order in updates:
            store.update("board_members", {"order": order}, [("id", "eq", member_id)])
        details["count"] = len(updates)

    return {"success": True}

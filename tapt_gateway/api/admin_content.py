"""
/admin/content - Site content (events, announcements, resources, news)
======================================================================

GET     list (optional ?type=, page / page_size range pagination)
POST    create, or update when body carries an id
DELETE  {id}

All methods require an admin bearer token; every mutation is audited.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from tapt_gateway.api.deps import get_store, read_json_object, require_admin
from tapt_gateway.db.identity import Identity
from tapt_gateway.db.store import RowStore
from tapt_gateway.errors import NotFound
from tapt_gateway.utils.audit_log import audited
from tapt_gateway.utils.validation import FieldErrors

router = APIRouter(prefix="/admin/content", tags=["Admin"])

CONTENT_TYPES = ["event", "announcement", "resource", "news"]
CONTENT_STATUSES = ["draft", "published"]
NEWS_CATEGORIES = ["announcements", "events", "safety", "regulations", "industry"]


def validate_content(body: dict) -> dict:
    errors = FieldErrors(body)
    title = errors.text("title", "Title", max_length=200)
    description = errors.text("description", "Description", max_length=None)
    content_type = errors.choice("type", "Content type", CONTENT_TYPES)
    status = errors.choice("status", "Status", CONTENT_STATUSES)
    category = errors.text("category", "Category", max_length=None, required=False)
    if content_type == "news" and category not in NEWS_CATEGORIES:
        errors.add("category", f"News category must be one of: {', '.join(NEWS_CATEGORIES)}")
    errors.raise_if_any()

    return {
        "title": title,
        "description": description,
        "type": content_type,
        "status": status,
        "featured": bool(body.get("featured", False)),
        "is_featured": bool(body.get("is_featured", False)),
        "image_url": body.get("image_url") or None,
        "date": body.get("date") or None,
        "category": category,
        "link": body.get("link") or None,
    }


@router.get("")
def list_content(
    admin: Identity = Depends(require_admin),
    store: RowStore = Depends(get_store),
    content_type: Optional[str] = Query(None, alias="type"),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
):
    filters = [("type", "eq", content_type)] if content_type else []
    rows = store.select(
        "content", filters,
        order_by="created_at", descending=True,
        limit=page_size, offset=(page - 1) * page_size,
    )
    return {
        "success": True,
        "data": rows,
        "count": store.count("content", filters),
        "page": page,
        "page_size": page_size,
    }


@router.post("")
def save_content(
    admin: Identity = Depends(require_admin),
    body: dict = Depends(read_json_object),
    store: RowStore = Depends(get_store),
):
    content_id = body.get("id")
    action = "update_content" if content_id else "create_content"

    with audited(store, action, admin.id, {"content_type": body.get("type")}) as details:
        values = validate_content(body)
        if content_id:
            rows = store.update("content", values, [("id", "eq", content_id)])
            if not rows:
                raise NotFound("Content not found")
        else:
            rows = store.insert("content", [values])
        details["content_id"] = rows[0].get("id")

    return {"success": True, "data": rows[0]}


@router.delete("")
def delete_content(
    admin: Identity = Depends(require_admin),
    body: dict = Depends(read_json_object),
    store: RowStore = Depends(get_store),
):
    with audited(store, "delete_content", admin.id, {"content_id": body.get("id")}) as details:
        errors = FieldErrors(body)
        content_id = errors.identifier("id", "Content ID")
        errors.raise_if_any()

        existing = store.select_one("content", [("id", "eq", content_id)], columns="id, type")
        if not existing:
            raise NotFound("Content not found")
        details["content_type"] = existing.get("type")
        store.delete("content", [("id", "eq", content_id)])

    return {"success": True}

"""
/admin/resources - Downloadable member resources
================================================

GET     list (newest first)
POST    create, or update when body carries an id
DELETE  {id}
"""

from fastapi import APIRouter, Depends

from tapt_gateway.api.deps import get_store, read_json_object, require_admin
from tapt_gateway.db.identity import Identity
from tapt_gateway.db.store import RowStore
from tapt_gateway.errors import NotFound
from tapt_gateway.utils.audit_log import audited
from tapt_gateway.utils.validation import FieldErrors

router = APIRouter(prefix="/admin/resources", tags=["Admin"])

RESOURCE_CATEGORIES = ["manuals", "forms", "laws", "training", "safety"]
RESOURCE_FILE_TYPES = ["PDF", "DOC", "DOCX", "XLS", "XLSX"]


def validate_resource(body: dict) -> dict:
    errors = FieldErrors(body)
    values = {
        "title": errors.text("title", "Title", max_length=200),
        "description": errors.text("description", "Description", max_length=None, required=False),
        "category": errors.choice("category", "Category", RESOURCE_CATEGORIES),
        "file_url": errors.text("file_url", "File URL", max_length=None),
        "type": errors.choice("type", "File type", RESOURCE_FILE_TYPES),
    }
    errors.raise_if_any()
    return values


@router.get("")
def list_resources(
    admin: Identity = Depends(require_admin),
    store: RowStore = Depends(get_store),
):
    return {"success": True, "data": store.select("resources", order_by="created_at", descending=True)}


@router.post("")
def save_resource(
    admin: Identity = Depends(require_admin),
    body: dict = Depends(read_json_object),
    store: RowStore = Depends(get_store),
):
    resource_id = body.get("id")
    action = "update_resource" if resource_id else "create_resource"

    with audited(store, action, admin.id, {"category": body.get("category")}) as details:
        values = validate_resource(body)
        if resource_id:
            rows = store.update("resources", values, [("id", "eq", resource_id)])
            if not rows:
                raise NotFound("Resource not found")
        else:
            rows = store.insert("resources", [values])
        details["resource_id"] = rows[0].get("id")

    return {"success": True, "data": rows[0]}


@router.delete("")
def delete_resource(
    admin: Identity = Depends(require_admin),
    body: dict = Depends(read_json_object),
    store: RowStore = Depends(get_store),
):
    with audited(store, "delete_resource", admin.id, {"resource_id": body.get("id")}):
        errors = FieldErrors(body)
        resource_id = errors.identifier("id", "Resource ID")
        errors.raise_if_any()

        deleted = store.delete("resources", [("id", "eq", resource_id)])
        if not deleted:
            raise NotFound("Resource not found")

    return {"success": True}

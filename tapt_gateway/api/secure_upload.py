"""
POST /secure-upload - Signed upload URLs
========================================

Body: {fileName, contentType, bucket, folder}

Flow:
1. Authenticate the caller (any signed-in user)
2. Check content type against the allow-list and bucket against config
3. Private bucket: folder must equal the caller's user id
4. Randomize the object name (<folder>/<uuid>.<ext>)
5. Audit to upload_audit, then return the signed URL

The browser uploads the file bytes directly to storage with the signed URL.
"""

import logging
import re
from datetime import datetime
from typing import Callable

from fastapi import APIRouter, Depends

from tapt_gateway import config
from tapt_gateway.api.deps import authenticate, get_id_factory, get_now, get_storage, get_store, read_json_object
from tapt_gateway.db.identity import Identity
from tapt_gateway.db.store import RowStore
from tapt_gateway.errors import BadRequest, Forbidden
from tapt_gateway.utils.audit_log import FAILURE, SUCCESS, record_upload
from tapt_gateway.utils.storage import ObjectStorage
from tapt_gateway.utils.validation import FieldErrors

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Upload"])

PRIVATE_BUCKET = "private"
PUBLIC_BUCKET = "public"

ALLOWED_CONTENT_TYPES = [
    "image/jpeg",
    "image/png",
    "image/gif",
    "application/pdf",
    "application/msword",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "application/vnd.ms-excel",
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
]

FOLDER_PATTERN = re.compile(r"^[A-Za-z0-9_-]+(/[A-Za-z0-9_-]+)*$")
EXTENSION_PATTERN = re.compile(r"^[A-Za-z0-9]{1,10}$")


def build_object_path(folder: str, file_name: str, new_id: Callable[[], str]) -> str:
    """<folder>/<uuid>.<ext>; the client's file name is never used as-is."""
    extension = file_name.rsplit(".", 1)[-1] if "." in file_name else ""
    if EXTENSION_PATTERN.match(extension):
        return f"{folder}/{new_id()}.{extension.lower()}"
    return f"{folder}/{new_id()}"


@router.post("/secure-upload")
def create_secure_upload(
    user: Identity = Depends(authenticate),
    body: dict = Depends(read_json_object),
    store: RowStore = Depends(get_store),
    storage: ObjectStorage = Depends(get_storage),
    now: datetime = Depends(get_now),
    new_id: Callable[[], str] = Depends(get_id_factory),
):
    audit = {
        "bucket": body.get("bucket"),
        "folder": body.get("folder"),
        "file_name": body.get("fileName"),
        "content_type": body.get("contentType"),
    }

    try:
        errors = FieldErrors(body)
        file_name = errors.text("fileName", "File name", max_length=255)
        content_type = errors.choice("contentType", "Content type", ALLOWED_CONTENT_TYPES)
        bucket = errors.choice("bucket", "Bucket", config.SIGNED_UPLOAD_BUCKETS)
        folder = errors.pattern("folder", "Folder", FOLDER_PATTERN, "Folder contains invalid characters")
        errors.raise_if_any()

        if bucket == PRIVATE_BUCKET and folder != user.id:
            raise Forbidden("Invalid folder: must match your user ID")

        path = build_object_path(folder, file_name, new_id)
        audit["file_path"] = path
        signed = storage.create_signed_upload_url(bucket, path)
    except Exception as e:
        record_upload(store, user.id, FAILURE, error=e, now=now, **audit)
        raise

    record_upload(store, user.id, SUCCESS, now=now, **audit)
    logger.info(f"📤 User {user.id} granted upload to {bucket}/{path} ({content_type})")

    response = {"success": True, "signedUrl": signed["signed_url"], "path": path}
    if bucket == PUBLIC_BUCKET:
        response["publicUrl"] = storage.get_public_url(bucket, path)
    return response

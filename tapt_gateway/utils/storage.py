"""
Storage Utility
===============

Signed upload URL generation and object removal for Supabase Storage.

The gateway never proxies file bytes: it hands the browser a short-lived
signed URL and the browser uploads directly to the bucket.
"""

import logging
from typing import List, Optional

from supabase import Client

from tapt_gateway.errors import StorageError

logger = logging.getLogger(__name__)


class ObjectStorage:
    """Interface consumed by the signed-upload and board member handlers."""

    def create_signed_upload_url(self, bucket: str, path: str) -> dict:
        raise NotImplementedError

    def get_public_url(self, bucket: str, path: str) -> str:
        raise NotImplementedError

    def remove(self, bucket: str, paths: List[str]) -> None:
        raise NotImplementedError


class SupabaseObjectStorage(ObjectStorage):
    """ObjectStorage backed by supabase.storage."""

    def __init__(self, client: Client):
        self.client = client

    def create_signed_upload_url(self, bucket, path):
        """
        Generate a signed upload URL for `path` inside `bucket`.

        Returns:
            {
                "signed_url": "https://<project>.supabase.co/storage/v1/...",
                "token": "...",
                "path": "<user-id>/<uuid>.pdf"
            }

        Notes:
            - storage3 has returned both "signed_url" and "signedUrl"
              across releases; both are accepted
        """
        try:
            result = self.client.storage.from_(bucket).create_signed_upload_url(path)
        except Exception as e:
            logger.error(f"❌ Signed upload URL failed for {bucket}/{path}: {e}")
            raise StorageError(str(e)) from e

        signed_url = result.get("signed_url") or result.get("signedUrl")
        if not signed_url:
            raise StorageError("Storage returned no signed URL")

        logger.info(f"🔍 Signed upload URL generated for {bucket}/{path}")
        return {
            "signed_url": signed_url,
            "token": result.get("token"),
            "path": result.get("path") or path,
        }

    def get_public_url(self, bucket, path):
        return self.client.storage.from_(bucket).get_public_url(path)

    def remove(self, bucket, paths):
        try:
            self.client.storage.from_(bucket).remove(list(paths))
        except Exception as e:
            logger.error(f"❌ Removing {paths} from {bucket} failed: {e}")
            raise StorageError(str(e)) from e


def object_path_from_url(url: Optional[str], bucket: str) -> Optional[str]:
    """
    Recover the object path from a public URL of the form
    .../storage/v1/object/public/<bucket>/<path>.

    Returns None when the URL does not point into `bucket`.
    """
    if not url:
        return None
    marker = f"/{bucket}/"
    index = url.find(marker)
    if index == -1:
        return None
    path = url[index + len(marker):].split("?", 1)[0]
    return path or None

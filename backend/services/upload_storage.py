"""
Video upload storage.

Files go to a Supabase Storage bucket for regular users and to a local
directory (served under /uploads) in demo mode. Either way the caller gets
back the same record the upload widget hands to the page:
``{"url", "name", "size", "key"}``.
"""
import logging
import os
import re
import uuid
from pathlib import Path
from typing import Optional

from config import UPLOAD_BUCKET, UPLOAD_DIR, VIDEO_EXTENSIONS, demo_mode_enabled
from exceptions import StorageError, ValidationError
from services.db_utils import with_retry, CircuitBreakerOpen
from shared_dependencies import get_supabase

logger = logging.getLogger(__name__)

LOCAL_URL_PREFIX = "/uploads"


def sanitize_filename(filename: str) -> str:
    """Keep letters, digits, dot, dash and underscore"""
    name = os.path.basename(filename or "").strip()
    name = re.sub(r"[^A-Za-z0-9._-]+", "_", name)
    name = name.lstrip(".")
    return name[:120] or "video"


def validate_video_filename(filename: Optional[str]) -> str:
    if not filename:
        raise ValidationError("No file provided", field="file")
    extension = os.path.splitext(filename)[1].lower()
    if extension not in VIDEO_EXTENSIONS:
        raise ValidationError(
            f"Invalid video format. Supported formats: {', '.join(VIDEO_EXTENSIONS)}",
            field="file"
        )
    return extension


def build_object_key(user_id: str, filename: str) -> str:
    return f"{user_id}/{uuid.uuid4().hex}-{sanitize_filename(filename)}"


class UploadStorage:
    def __init__(self, bucket: str = UPLOAD_BUCKET, local_dir: str = UPLOAD_DIR):
        self.bucket = bucket
        self.local_dir = Path(local_dir)

    def ensure_local_dir(self) -> Path:
        self.local_dir.mkdir(parents=True, exist_ok=True)
        return self.local_dir

    async def save(self, user_id: str, filename: str, content: bytes,
                   content_type: Optional[str] = None) -> dict:
        validate_video_filename(filename)
        key = build_object_key(user_id, filename)

        if demo_mode_enabled():
            url = self._save_local(key, content)
        else:
            url = await self._save_remote(key, content, content_type or "video/mp4")

        logger.info(f"Stored upload {key} ({len(content)} bytes) for user {user_id}")
        return {
            "url": url,
            "name": filename,
            "size": len(content),
            "key": key,
        }

    def _save_local(self, key: str, content: bytes) -> str:
        path = self.ensure_local_dir() / key
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(content)
        return f"{LOCAL_URL_PREFIX}/{key}"

    async def _save_remote(self, key: str, content: bytes, content_type: str) -> str:
        client = get_supabase()
        if client is None:
            raise StorageError("Supabase client not configured")

        bucket = client.storage.from_(self.bucket)

        async def upload_file():
            bucket.upload(key, content, {"content-type": content_type})
            return bucket.get_public_url(key)

        try:
            url = await with_retry(upload_file)
        except CircuitBreakerOpen as breaker_error:
            raise StorageError(str(breaker_error))
        except Exception as upload_error:
            logger.error(f"Upload of {key} to bucket {self.bucket} failed: {upload_error}")
            raise StorageError(str(upload_error))
        return url.rstrip("?")


# Global instance
upload_storage = UploadStorage()

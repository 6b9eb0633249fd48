import logging

from fastapi import APIRouter, Depends, File, UploadFile

from config import MAX_UPLOAD_MB
from exceptions import UploadTooLargeError
from services.upload_storage import upload_storage, validate_video_filename
from shared_dependencies import User, get_current_user

logger = logging.getLogger(__name__)

router = APIRouter()

CHUNK_SIZE = 1024 * 1024


async def read_limited(file: UploadFile, max_bytes: int) -> bytes:
    """Read the upload, stopping as soon as it goes past max_bytes"""
    buffer = bytearray()
    while True:
        chunk = await file.read(CHUNK_SIZE)
        if not chunk:
            break
        buffer.extend(chunk)
        if len(buffer) > max_bytes:
            raise UploadTooLargeError(MAX_UPLOAD_MB, file.filename)
    return bytes(buffer)


@router.post("/api/uploads")
async def upload_video(
    file: UploadFile = File(...),
    current_user: User = Depends(get_current_user)
):
    """
    Store a video and answer with the upload widget's callback shape: a
    list with one ``{url, name, size, key}`` entry.
    """
    validate_video_filename(file.filename)
    content = await read_limited(file, MAX_UPLOAD_MB * 1024 * 1024)

    record = await upload_storage.save(
        current_user.id,
        file.filename,
        content,
        content_type=file.content_type
    )
    return [record]

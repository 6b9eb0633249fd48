import logging
import time
from typing import Optional

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from config import BACKEND_PENDING_MESSAGE
from exceptions import StorageError
from services.job_storage import job_storage, JobStatus
from shared_dependencies import User, get_optional_user

logger = logging.getLogger(__name__)

router = APIRouter()


def new_mock_job_id() -> str:
    return f"mock-{int(time.time() * 1000)}"


@router.post("/api/edit")
async def start_edit(request: Request, current_user: Optional[User] = Depends(get_optional_user)):
    """
    Accept an edit request and hand back a job id.

    Only the presence of the authorization header is enforced; the AI
    backend is not wired yet, so the id is a placeholder.
    """
    auth_header = request.headers.get("authorization")
    if not auth_header:
        return JSONResponse({"error": "Unauthorized"}, status_code=401)

    try:
        payload = await request.json()
    except ValueError:
        payload = {}
    if not isinstance(payload, dict):
        payload = {}

    video_url = payload.get("videoUrl")
    prompt = payload.get("prompt")
    job_id = new_mock_job_id()

    if current_user is not None:
        try:
            await job_storage.create_job({
                "id": job_id,
                "user_id": current_user.id,
                "video_url": video_url,
                "prompt": prompt,
                "status": JobStatus.PROCESSING.value,
            })
        except StorageError as storage_error:
            logger.warning(f"Job {job_id} not recorded: {storage_error.detail}")
        else:
            logger.info(f"Edit requested by {current_user.id}: job {job_id}")
    else:
        logger.info(f"Edit requested without a verified user: job {job_id}")

    return {
        "jobId": job_id,
        "message": BACKEND_PENDING_MESSAGE
    }

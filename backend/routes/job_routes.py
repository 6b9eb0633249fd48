"""Job status endpoints polled by the editor page."""
import logging

from fastapi import APIRouter, Depends

from exceptions import AuthorizationError, NotFoundError
from services.job_storage import job_storage, JobStatus
from shared_dependencies import User, get_current_user

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/jobs", tags=["jobs"])


def serialize_job(job: dict) -> dict:
    status = JobStatus.parse(job.get("status"))
    data = {
        "job_id": job["id"],
        "status": status.value,
        "terminal": status.is_terminal,
        "result_url": job.get("result_url"),
        "prompt": job.get("prompt"),
        "video_url": job.get("video_url"),
        "created_at": job.get("created_at"),
        "updated_at": job.get("updated_at"),
    }
    if status == JobStatus.FAILED:
        data["error"] = job.get("error")
    return data


@router.get("")
async def list_jobs(limit: int = 20, current_user: User = Depends(get_current_user)):
    """Recent jobs of the current user, newest first"""
    jobs = await job_storage.get_user_jobs(current_user.id, limit=max(1, min(limit, 100)))
    return {
        "success": True,
        "jobs": [serialize_job(job) for job in jobs],
        "total": len(jobs)
    }


@router.get("/{job_id}/status")
async def get_job_status(job_id: str, current_user: User = Depends(get_current_user)):
    job = await job_storage.get_job(job_id)
    if not job:
        raise NotFoundError("Job", job_id)

    if job.get("user_id") and job.get("user_id") != current_user.id:
        logger.warning(f"User {current_user.id} asked for job {job_id} owned by someone else")
        raise AuthorizationError("Access denied - job belongs to different user")

    return {
        "success": True,
        "data": serialize_job(job)
    }

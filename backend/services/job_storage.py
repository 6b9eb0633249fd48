"""
Edit job storage: Supabase ``jobs`` table for signed-in users, process
memory for the demo user.

Rows are created here when an edit is submitted; the (future) processing
backend moves them to a terminal status and fills ``result_url``.
"""
import logging
from datetime import datetime
from enum import Enum
from typing import Optional, Dict, List

from config import DEMO_USER_ID, demo_mode_enabled
from exceptions import StorageError
from services.db_utils import with_retry, CircuitBreakerOpen
from shared_dependencies import get_supabase

logger = logging.getLogger(__name__)


class JobStatus(str, Enum):
    IDLE = "idle"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"

    @classmethod
    def parse(cls, value) -> "JobStatus":
        """Unknown values from the processing backend count as processing"""
        try:
            return cls(value)
        except ValueError:
            return cls.PROCESSING

    @property
    def is_terminal(self) -> bool:
        return self in (JobStatus.COMPLETED, JobStatus.FAILED)


class JobStorage:
    """Jobs in Supabase for regular users, local storage for demo users"""

    def __init__(self, table_name: str = "jobs"):
        self.table_name = table_name
        self._demo_jobs: Dict[str, dict] = {}

    def _is_demo_user(self, user_id: str = None) -> bool:
        return demo_mode_enabled() or user_id == DEMO_USER_ID

    def _client(self):
        client = get_supabase()
        if client is None:
            raise StorageError("Supabase client not configured")
        return client

    async def _run(self, operation, description: str):
        try:
            return await with_retry(operation)
        except CircuitBreakerOpen as breaker_error:
            logger.error(f"{description} rejected: {breaker_error}")
            raise StorageError(str(breaker_error))
        except StorageError:
            raise
        except Exception as db_error:
            logger.error(f"{description} failed: {db_error}")
            raise StorageError(str(db_error))

    async def create_job(self, job_data: dict) -> str:
        """Insert a job row; ``id`` and ``user_id`` are required"""
        job_id = job_data.get("id")
        if not job_id:
            raise ValueError("Job ID is required")

        now = datetime.utcnow().isoformat()
        job = {
            "status": JobStatus.PROCESSING.value,
            "result_url": None,
            "created_at": now,
            "updated_at": now,
        }
        job.update(job_data)

        if self._is_demo_user(job.get("user_id")):
            self._demo_jobs[job_id] = job
            logger.info(f"Created demo job {job_id} in local storage")
            return job_id

        client = self._client()

        async def insert_job():
            return client.table(self.table_name).insert(job).execute()

        result = await self._run(insert_job, f"Creating job {job_id}")
        if not result.data:
            raise StorageError(f"insert returned no row for job {job_id}")

        logger.info(f"Created job {job_id} in Supabase")
        return job_id

    async def get_job(self, job_id: str) -> Optional[dict]:
        """Fetch a job by id; demo storage is checked first"""
        if job_id in self._demo_jobs:
            return self._demo_jobs[job_id].copy()

        if demo_mode_enabled():
            return None

        client = self._client()

        async def fetch_job():
            return client.table(self.table_name).select("*").eq("id", job_id).execute()

        result = await self._run(fetch_job, f"Fetching job {job_id}")
        if result.data:
            return result.data[0]
        return None

    async def get_user_jobs(self, user_id: str, limit: int = 20) -> List[dict]:
        """Newest first"""
        if self._is_demo_user(user_id):
            jobs = [job.copy() for job in self._demo_jobs.values() if job.get("user_id") == user_id]
            jobs.sort(key=lambda job: job.get("created_at", ""), reverse=True)
            return jobs[:limit]

        client = self._client()

        async def fetch_user_jobs():
            return (
                client.table(self.table_name)
                .select("*")
                .eq("user_id", user_id)
                .order("created_at", desc=True)
                .limit(limit)
                .execute()
            )

        result = await self._run(fetch_user_jobs, f"Fetching jobs for user {user_id}")
        return result.data or []

    async def update_job(self, job_id: str, updates: dict) -> bool:
        updates = dict(updates)
        updates["updated_at"] = datetime.utcnow().isoformat()

        if job_id in self._demo_jobs:
            self._demo_jobs[job_id].update(updates)
            return True

        if demo_mode_enabled():
            return False

        client = self._client()

        async def perform_update():
            return client.table(self.table_name).update(updates).eq("id", job_id).execute()

        result = await self._run(perform_update, f"Updating job {job_id}")
        return bool(result.data)

    async def update_status(self, job_id: str, status: JobStatus) -> bool:
        return await self.update_job(job_id, {"status": JobStatus(status).value})

    async def complete_job(self, job_id: str, result_url: str) -> bool:
        """Mark a job completed with the URL of the edited video"""
        updated = await self.update_job(job_id, {
            "status": JobStatus.COMPLETED.value,
            "result_url": result_url,
            "completed_at": datetime.utcnow().isoformat()
        })
        if updated:
            logger.info(f"Completed job {job_id}")
        return updated

    async def fail_job(self, job_id: str, error: str) -> bool:
        updated = await self.update_job(job_id, {
            "status": JobStatus.FAILED.value,
            "error": error,
            "failed_at": datetime.utcnow().isoformat()
        })
        if updated:
            logger.error(f"Failed job {job_id}: {error}")
        return updated

    def clear_demo_jobs(self) -> None:
        self._demo_jobs.clear()


# Global instance
job_storage = JobStorage()

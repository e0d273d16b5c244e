"""Job execution tracking and monitoring for scheduled jobs."""

import logging
from collections.abc import Awaitable, Callable
from datetime import UTC, datetime
from typing import Any


logger = logging.getLogger(__name__)

MAX_ERROR_LENGTH = 500


class JobTracker:
    """Track job execution history and health status in memory."""

    def __init__(self) -> None:
        """Initialize job tracker."""
        self._jobs: dict[str, dict[str, Any]] = {}

    def _entry(self, job_name: str) -> dict[str, Any]:
        return self._jobs.setdefault(job_name, {})

    def record_job_start(self, job_name: str) -> None:
        """Record job execution start."""
        self._entry(job_name)["current_run"] = datetime.now(UTC).isoformat()

    def record_job_success(self, job_name: str) -> None:
        """Record successful job execution."""
        entry = self._entry(job_name)
        entry["last_success"] = datetime.now(UTC).isoformat()
        entry["consecutive_failures"] = 0
        entry["success_count"] = entry.get("success_count", 0) + 1
        entry.pop("current_run", None)

    def record_job_failure(self, job_name: str, error: str) -> int:
        """Record failed job execution.

        Args:
            job_name: Name of the scheduled job
            error: Error message

        Returns:
            Number of consecutive failures including this one
        """
        entry = self._entry(job_name)
        entry["last_failure"] = datetime.now(UTC).isoformat()
        entry["last_error"] = error[:MAX_ERROR_LENGTH]
        entry["consecutive_failures"] = entry.get("consecutive_failures", 0) + 1
        entry["failure_count"] = entry.get("failure_count", 0) + 1
        entry.pop("current_run", None)
        return entry["consecutive_failures"]

    def get_job_status(self, job_name: str) -> dict[str, Any]:
        """Get job execution status.

        Args:
            job_name: Name of the scheduled job

        Returns:
            Dict with job status information
        """
        job_data = self._jobs.get(job_name, {})
        return {
            "job_name": job_name,
            "last_success": job_data.get("last_success"),
            "last_failure": job_data.get("last_failure"),
            "last_error": job_data.get("last_error"),
            "consecutive_failures": job_data.get("consecutive_failures", 0),
            "success_count": job_data.get("success_count", 0),
            "failure_count": job_data.get("failure_count", 0),
            "currently_running": "current_run" in job_data,
            "current_run_started": job_data.get("current_run"),
        }


# Global job tracker instance
job_tracker = JobTracker()


async def run_tracked_job(job_func: Callable[[], Awaitable[None]], job_name: str) -> None:
    """Execute a job once, recording its outcome.

    Failures are logged and recorded, never retried or re-raised, so a broken
    run does not take the scheduler down.
    """
    job_tracker.record_job_start(job_name)
    try:
        logger.info("Executing %s", job_name)
        await job_func()
    except Exception as e:
        failures = job_tracker.record_job_failure(job_name, str(e))
        logger.exception("%s failed (%d consecutive failures)", job_name, failures)
        return

    job_tracker.record_job_success(job_name)
    logger.info("%s completed successfully", job_name)

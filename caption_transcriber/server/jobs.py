"""In-memory job store with TTL cleanup for transcript requests.

WHY: Producing a transcript takes from seconds (captions) to minutes
(audio download plus Whisper). The HTTP API therefore returns a job ID
immediately and runs the pipeline in the background; clients poll the job.
An in-memory store is sufficient for a single-process service with no
persistence requirements.

HOW: Three components work together:
  JobStatus: enum of valid job states
  Job: dataclass holding the request, status, and result
  JobStore: thread-safe dict-based store with create/update/get/list/delete
            and TTL cleanup

RULES:
- All store mutations are protected by threading.Lock for thread safety
- TTL-based expiry removes finished jobs after DEFAULT_TTL_SECONDS
- Job IDs are UUID4 hex strings generated at creation time
- create_job() raises ValueError when max_jobs is reached
"""

from __future__ import annotations

import enum
import logging
import threading
import time
import uuid
from dataclasses import dataclass, field
from typing import Dict, List, Optional

logger = logging.getLogger(__name__)

# Default time-to-live for completed/failed jobs (seconds)
DEFAULT_TTL_SECONDS = 3600


class JobStatus(str, enum.Enum):
    """Valid states for a transcript job.

    RULES:
    - pending: job created, not yet started
    - running: caption or audio path in progress
    - completed: transcript available
    - failed: both caption and audio paths failed
    """

    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


_TERMINAL = (JobStatus.COMPLETED, JobStatus.FAILED)


@dataclass
class Job:
    """Request, state and result of a single transcript job."""

    id: str
    video_id: Optional[str]
    status: JobStatus
    created_at: float
    updated_at: float
    summarize: bool = False
    filename: Optional[str] = None
    completed_at: Optional[float] = None
    error: Optional[str] = None
    source: Optional[str] = None
    text: Optional[str] = None
    summary: Optional[str] = None
    warnings: List[str] = field(default_factory=list)


class JobStore:
    """Thread-safe in-memory store for transcript jobs.

    WHY: API request handlers and background tasks touch job state from
    different threads. A centralized store with locking prevents races.

    RULES:
    - get_job() returns None for missing job IDs (no exceptions)
    - update_job() applies only non-None arguments and bumps updated_at
    - completed_at is set when a job reaches a terminal state
    """

    def __init__(
        self,
        ttl_seconds: int = DEFAULT_TTL_SECONDS,
        max_jobs: int = 100,
    ) -> None:
        self._jobs: Dict[str, Job] = {}
        self._lock = threading.Lock()
        self._ttl_seconds = ttl_seconds
        self.max_jobs = max_jobs

    def create_job(
        self,
        video_id: Optional[str] = None,
        summarize: bool = False,
        filename: Optional[str] = None,
    ) -> Job:
        """Register a PENDING job for a video id or an uploaded audio file."""
        with self._lock:
            if len(self._jobs) >= self.max_jobs:
                raise ValueError(
                    "Maximum number of concurrent jobs ({}) reached".format(
                        self.max_jobs
                    )
                )

            now = time.time()
            job = Job(
                id=uuid.uuid4().hex,
                video_id=video_id,
                status=JobStatus.PENDING,
                created_at=now,
                updated_at=now,
                summarize=summarize,
                filename=filename,
            )
            self._jobs[job.id] = job

        logger.info("Created job %s for %s", job.id, video_id or filename)
        return job

    def get_job(self, job_id: str) -> Optional[Job]:
        with self._lock:
            return self._jobs.get(job_id)

    def list_jobs(self) -> List[Job]:
        """Snapshot of all jobs, oldest first."""
        with self._lock:
            return sorted(self._jobs.values(), key=lambda j: j.created_at)

    def update_job(
        self,
        job_id: str,
        status: Optional[JobStatus] = None,
        error: Optional[str] = None,
        source: Optional[str] = None,
        text: Optional[str] = None,
        summary: Optional[str] = None,
        warnings: Optional[List[str]] = None,
    ) -> Optional[Job]:
        """Update a job's mutable fields; returns None if the job is gone."""
        with self._lock:
            job = self._jobs.get(job_id)
            if job is None:
                return None

            now = time.time()

            if status is not None:
                job.status = status
            if error is not None:
                job.error = error
            if source is not None:
                job.source = source
            if text is not None:
                job.text = text
            if summary is not None:
                job.summary = summary
            if warnings is not None:
                job.warnings = list(warnings)

            job.updated_at = now

            if job.status in _TERMINAL:
                job.completed_at = now

            return job

    def delete_job(self, job_id: str) -> bool:
        with self._lock:
            job = self._jobs.pop(job_id, None)

        if job is None:
            return False
        logger.info("Deleted job %s", job_id)
        return True

    def cleanup_expired(self) -> int:
        """Remove finished jobs whose completed_at is older than the TTL.

        RULES:
        - Only terminal-state jobs (COMPLETED, FAILED) are candidates
        - TTL is measured from completed_at, not created_at
        - Returns the count of removed jobs
        """
        now = time.time()
        expired: List[Job] = []

        with self._lock:
            for job_id, job in list(self._jobs.items()):
                if job.status not in _TERMINAL or job.completed_at is None:
                    continue
                if now - job.completed_at > self._ttl_seconds:
                    expired.append(self._jobs.pop(job_id))

        for job in expired:
            logger.info("Expired job %s (completed %.0fs ago)", job.id, now - job.completed_at)
        return len(expired)

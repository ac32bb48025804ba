"""FastAPI application exposing transcript jobs over HTTP.

WHY: Other tools (a chat bot, n8n, curl) need to request transcripts
without shelling out to the CLI. Producing a transcript can take minutes,
so the API is job based: submit, poll, fetch the text.

HOW: POST /transcripts validates the video reference, creates a job and
schedules the pipeline as a FastAPI background task. The task runs the
async pipeline with asyncio.run() and records the Ok/Err outcome in the
job store. POST /audio-transcripts does the same for an uploaded audio
file, saved into its own temporary directory for the job. GET /transcripts
lists every job. A lifespan task expires finished jobs every five minutes.

RULES:
- Invalid video references are rejected with 400 before a job exists
- Uploads with an extension outside the supported and convertible audio
  formats are rejected with 400; the upload directory is removed once the
  job finishes
- GET /transcripts/{id}/text answers 409 until the job has completed
- The job store is a module-level singleton
- Python 3.9+ compatible (no match/case, no PEP 604 unions)
"""

from __future__ import annotations

import asyncio
import logging
import shutil
import tempfile
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Annotated, List

from fastapi import BackgroundTasks, FastAPI, File, Form, HTTPException, UploadFile
from fastapi.responses import Response

from caption_transcriber import __version__
from caption_transcriber.config import (
    CONVERTIBLE_AUDIO_FORMATS,
    LOG_LEVEL,
    TRANSCRIPTION_SUPPORTED_FORMATS,
    Settings,
)
from caption_transcriber.core.models import Transcript
from caption_transcriber.core.result import Err, Result
from caption_transcriber.core.youtube import extract_video_id
from caption_transcriber.pipeline import transcribe_audio_file, transcribe_video
from caption_transcriber.server.jobs import Job, JobStatus, JobStore
from caption_transcriber.server.models import (
    ErrorResponse,
    HealthResponse,
    JobCreatedResponse,
    JobResponse,
    TranscriptRequest,
    TranscriptTextResponse,
)

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# App and store setup
# ---------------------------------------------------------------------------

job_store = JobStore()


async def _periodic_cleanup() -> None:
    """Run job cleanup every 5 minutes."""
    while True:
        await asyncio.sleep(300)
        job_store.cleanup_expired()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Start periodic cleanup on startup, cancel on shutdown."""
    task = asyncio.create_task(_periodic_cleanup())
    yield
    task.cancel()
    try:
        await task
    except asyncio.CancelledError:
        pass


app = FastAPI(
    lifespan=lifespan,
    title="Caption Transcriber API",
    description=(
        "Produce clean text transcripts of YouTube videos from their captions, "
        "with punctuation restoration and an audio transcription fallback. "
        "Submit a video, poll for status, and fetch the text."
    ),
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _job_to_response(job: Job) -> JobResponse:
    return JobResponse(
        id=job.id,
        status=job.status.value,
        video_id=job.video_id,
        filename=job.filename,
        created_at=job.created_at,
        summarize=job.summarize,
        source=job.source,
        error=job.error,
        warnings=job.warnings,
    )


def _get_job_or_404(job_id: str) -> Job:
    job = job_store.get_job(job_id)
    if job is None:
        raise HTTPException(status_code=404, detail="Job not found: {}".format(job_id))
    return job


def _record_result(store: JobStore, job_id: str, result: Result[Transcript]) -> None:
    """Store an Ok transcript as completed, an Err as failed."""
    if isinstance(result, Err):
        store.update_job(job_id, status=JobStatus.FAILED, error=result.reason)
        return

    transcript = result.value
    store.update_job(
        job_id,
        status=JobStatus.COMPLETED,
        source=transcript.source.value,
        text=transcript.text,
        summary=transcript.summary,
        warnings=transcript.warnings,
    )


async def _run_transcript_job(job_id: str, store: JobStore) -> None:
    """Run the pipeline for one job and record the outcome.

    RULES:
    - Err results mark the job failed with the fallback's error message
    - Unexpected exceptions (e.g. missing API key) also mark it failed
    """
    job = store.get_job(job_id)
    if job is None:
        return

    store.update_job(job_id, status=JobStatus.RUNNING)
    try:
        result = await transcribe_video(
            job.video_id, Settings.from_env(), summarize=job.summarize
        )
    except Exception as exc:
        logger.exception("Transcript pipeline crashed for job %s", job_id)
        store.update_job(job_id, status=JobStatus.FAILED, error=str(exc))
        return

    _record_result(store, job_id, result)


def _run_transcript_sync(job_id: str, store: JobStore) -> None:
    """Synchronous wrapper so BackgroundTasks can run the async pipeline."""
    asyncio.run(_run_transcript_job(job_id, store))


async def _run_audio_job(job_id: str, store: JobStore, audio_path: Path) -> None:
    """Transcribe an uploaded audio file and record the outcome.

    RULES:
    - The upload directory (audio_path's parent) is removed afterwards,
      whatever the outcome
    """
    try:
        job = store.get_job(job_id)
        if job is None:
            return

        store.update_job(job_id, status=JobStatus.RUNNING)
        try:
            result = await transcribe_audio_file(
                audio_path, Settings.from_env(), summarize=job.summarize
            )
        except Exception as exc:
            logger.exception("Audio pipeline crashed for job %s", job_id)
            store.update_job(job_id, status=JobStatus.FAILED, error=str(exc))
            return

        _record_result(store, job_id, result)
    finally:
        try:
            shutil.rmtree(audio_path.parent)
        except OSError as exc:
            logger.warning("Could not remove upload dir %s: %s", audio_path.parent, exc)


def _run_audio_sync(job_id: str, store: JobStore, audio_path: Path) -> None:
    """Synchronous wrapper so BackgroundTasks can run the audio pipeline."""
    asyncio.run(_run_audio_job(job_id, store, audio_path))


async def _save_upload(upload: UploadFile, name: str) -> Path:
    """Write an uploaded file into a fresh temporary directory."""
    target = Path(tempfile.mkdtemp(prefix="upload_")) / name
    content = await upload.read()
    target.write_bytes(content)
    return target


# ---------------------------------------------------------------------------
# Endpoints: Transcripts
# ---------------------------------------------------------------------------


@app.post(
    "/transcripts",
    response_model=JobCreatedResponse,
    status_code=201,
    tags=["transcripts"],
    summary="Submit a transcript job",
    description=(
        "Submit a YouTube URL or video id. Returns a job ID immediately; the "
        "transcript is produced in the background. Poll GET /transcripts/{id}."
    ),
    responses={
        400: {"model": ErrorResponse, "description": "Not a YouTube URL or video id"},
        429: {"model": ErrorResponse, "description": "Too many concurrent jobs"},
    },
)
async def create_transcript(
    request: TranscriptRequest,
    background_tasks: BackgroundTasks,
) -> JobCreatedResponse:
    video_id = extract_video_id(request.video)
    if video_id is None:
        raise HTTPException(
            status_code=400,
            detail="Not a YouTube URL or video id: '{}'".format(request.video),
        )

    try:
        job = job_store.create_job(video_id, summarize=request.summarize)
    except ValueError as exc:
        raise HTTPException(status_code=429, detail=str(exc))

    background_tasks.add_task(_run_transcript_sync, job.id, job_store)

    return JobCreatedResponse(id=job.id, status=job.status.value, video_id=job.video_id)


@app.get(
    "/transcripts",
    response_model=List[JobResponse],
    tags=["transcripts"],
    summary="List transcript jobs",
    description="All jobs currently held by the server, oldest first.",
)
async def list_transcripts() -> List[JobResponse]:
    return [_job_to_response(job) for job in job_store.list_jobs()]


@app.post(
    "/audio-transcripts",
    response_model=JobCreatedResponse,
    status_code=201,
    tags=["transcripts"],
    summary="Submit an audio file for transcription",
    description=(
        "Upload an audio file (e.g. an .oga voice message) as multipart form "
        "data. Formats Whisper does not accept are converted with ffmpeg. "
        "Poll GET /transcripts/{id} like any other job."
    ),
    responses={
        400: {"model": ErrorResponse, "description": "Unsupported audio format"},
        429: {"model": ErrorResponse, "description": "Too many concurrent jobs"},
    },
)
async def create_audio_transcript(
    background_tasks: BackgroundTasks,
    file: Annotated[UploadFile, File(description="Audio file to transcribe")],
    summarize: Annotated[bool, Form()] = False,
) -> JobCreatedResponse:
    name = Path(file.filename or "").name
    ext = Path(name).suffix.lower()
    if ext not in TRANSCRIPTION_SUPPORTED_FORMATS | CONVERTIBLE_AUDIO_FORMATS:
        raise HTTPException(
            status_code=400,
            detail="Unsupported audio format '{}'. Supported formats: {}".format(
                ext,
                ", ".join(sorted(TRANSCRIPTION_SUPPORTED_FORMATS | CONVERTIBLE_AUDIO_FORMATS)),
            ),
        )

    try:
        job = job_store.create_job(summarize=summarize, filename=name)
    except ValueError as exc:
        raise HTTPException(status_code=429, detail=str(exc))

    audio_path = await _save_upload(file, name)
    background_tasks.add_task(_run_audio_sync, job.id, job_store, audio_path)

    return JobCreatedResponse(id=job.id, status=job.status.value, filename=job.filename)


@app.get(
    "/transcripts/{job_id}",
    response_model=JobResponse,
    tags=["transcripts"],
    summary="Get transcript job status",
    responses={404: {"model": ErrorResponse, "description": "Job not found"}},
)
async def get_transcript(job_id: str) -> JobResponse:
    return _job_to_response(_get_job_or_404(job_id))


@app.get(
    "/transcripts/{job_id}/text",
    response_model=TranscriptTextResponse,
    tags=["transcripts"],
    summary="Fetch the transcript of a completed job",
    responses={
        404: {"model": ErrorResponse, "description": "Job not found"},
        409: {"model": ErrorResponse, "description": "Job not yet completed"},
    },
)
async def get_transcript_text(job_id: str) -> TranscriptTextResponse:
    job = _get_job_or_404(job_id)
    if job.status != JobStatus.COMPLETED:
        raise HTTPException(
            status_code=409,
            detail="Job is not completed (current status: {}).".format(job.status.value),
        )
    return TranscriptTextResponse(
        id=job.id,
        video_id=job.video_id,
        filename=job.filename,
        source=job.source or "",
        text=job.text or "",
        summary=job.summary,
    )


@app.delete(
    "/transcripts/{job_id}",
    status_code=204,
    tags=["transcripts"],
    summary="Delete a transcript job",
    responses={404: {"model": ErrorResponse, "description": "Job not found"}},
)
async def delete_transcript(job_id: str) -> Response:
    if not job_store.delete_job(job_id):
        raise HTTPException(status_code=404, detail="Job not found: {}".format(job_id))
    return Response(status_code=204)


# ---------------------------------------------------------------------------
# Endpoints: Health
# ---------------------------------------------------------------------------


@app.get(
    "/health",
    response_model=HealthResponse,
    tags=["health"],
    summary="Health check",
)
async def health_check() -> HealthResponse:
    return HealthResponse(status="ok", version=__version__)


def run_api() -> None:
    """Entry point for the caption-transcriber-api console script."""
    import uvicorn

    logging.basicConfig(
        level=LOG_LEVEL,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )
    uvicorn.run(app, host="0.0.0.0", port=8000)

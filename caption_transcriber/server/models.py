"""Pydantic request/response models for the HTTP API.

WHY: FastAPI uses these schemas for request validation, response
serialization, and the OpenAPI documentation at /docs.

RULES:
- All models use Field(description=...) for OpenAPI documentation
- Response models never expose internal implementation details
- Python 3.9+ compatible (no PEP 604 unions, use Optional from typing)
"""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


class TranscriptRequest(BaseModel):
    video: str = Field(
        description="YouTube URL (watch, youtu.be, /v/ forms) or bare 11-character video id.",
    )
    summarize: bool = Field(
        default=False,
        description="Also summarize the transcript once it is available.",
    )


# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------


class JobCreatedResponse(BaseModel):
    id: str = Field(description="Unique job identifier.")
    status: str = Field(description="Initial job status (always 'pending').")
    video_id: Optional[str] = Field(
        default=None,
        description="Video id extracted from the request (video jobs only).",
    )
    filename: Optional[str] = Field(
        default=None,
        description="Name of the uploaded audio file (audio jobs only).",
    )


class JobResponse(BaseModel):
    """Transcript job status response.

    RULES:
    - error is only set when status is 'failed'
    - source is only set when status is 'completed'
    """

    id: str = Field(description="Unique job identifier.")
    status: str = Field(description="Current job status.")
    video_id: Optional[str] = Field(default=None, description="YouTube video id, if any.")
    filename: Optional[str] = Field(default=None, description="Uploaded audio file name, if any.")
    created_at: float = Field(description="Job creation timestamp (Unix epoch seconds).")
    summarize: bool = Field(description="Whether a summary was requested.")
    source: Optional[str] = Field(
        default=None,
        description="Where the text came from: captions, captions_punctuated, audio, or audio_file.",
    )
    error: Optional[str] = Field(
        default=None,
        description="Error message, only present when status is 'failed'.",
    )
    warnings: List[str] = Field(
        default_factory=list,
        description="Non-fatal notes, e.g. why the audio fallback ran.",
    )


class TranscriptTextResponse(BaseModel):
    id: str = Field(description="Unique job identifier.")
    video_id: Optional[str] = Field(default=None, description="YouTube video id, if any.")
    filename: Optional[str] = Field(default=None, description="Uploaded audio file name, if any.")
    source: str = Field(description="Where the text came from.")
    text: str = Field(description="The transcript.")
    summary: Optional[str] = Field(
        default=None,
        description="Summary of the transcript, when requested and successful.",
    )


class HealthResponse(BaseModel):
    status: str = Field(description="Service health status.")
    version: str = Field(description="API version.")


class ErrorResponse(BaseModel):
    detail: str = Field(description="Human-readable error message.")

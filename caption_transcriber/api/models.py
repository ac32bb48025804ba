"""Response dataclasses for the completion and transcription endpoints.

WHY: The API returns nested JSON; typed dataclasses keep the parsing in
one place and give the client a clear error when a field is missing.

HOW: Each dataclass has a from_dict() factory that takes the decoded
response body.

RULES:
- CompletionResponse.text is the first choice's message content
- TranscriptionResponse.text is the "text" field of the Whisper response
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass
class CompletionResponse:
    """Response of POST /chat/completions, reduced to what the pipeline uses."""

    id: str
    model: str
    text: str
    finish_reason: Optional[str] = None

    @classmethod
    def from_dict(cls, data: dict) -> CompletionResponse:
        choice = data["choices"][0]
        return cls(
            id=data.get("id", ""),
            model=data.get("model", ""),
            text=choice["message"]["content"] or "",
            finish_reason=choice.get("finish_reason"),
        )


@dataclass
class TranscriptionResponse:
    text: str
    language: Optional[str] = None
    duration: Optional[float] = None

    @classmethod
    def from_dict(cls, data: dict) -> TranscriptionResponse:
        return cls(
            text=data["text"],
            language=data.get("language"),
            duration=data.get("duration"),
        )

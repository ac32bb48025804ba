"""Tagged result type used at the orchestrator's stage boundaries.

WHY: The caption path may fail in many ways, and every failure must switch
the request over to the audio path. Returning Ok/Err values makes that
switch an explicit branch in the orchestrator instead of an exception that
happens to propagate to the right place.

RULES:
- Ok.value holds the successful payload
- Err.error is the cause of the failure being reported
- Err.primary_error keeps the caption-path cause when the audio fallback
  failed as well (diagnostics only)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, Optional, TypeVar, Union

from caption_transcriber.errors import TranscriptError

T = TypeVar("T")


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class Err:
    error: TranscriptError
    primary_error: Optional[TranscriptError] = None

    @property
    def ok(self) -> bool:
        return False

    @property
    def reason(self) -> str:
        return str(self.error)


Result = Union[Ok[T], Err]

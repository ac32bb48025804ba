"""Error taxonomy for the caption and audio transcription paths.

WHY: The orchestrator must tell a caller *why* a transcript could not be
produced, and tests need to assert on specific failure kinds. A small,
typed hierarchy replaces the single catch-all exception of a chat bot.

HOW: Every error derives from TranscriptError. Errors that carry data
(exit code, HTTP status) store it as attributes as well as in the message.

RULES:
- Primary-path errors never reach callers; the orchestrator recovers them
- Fallback-path errors are returned inside an Err result
- PromptTooLongError is also a ValueError (input validation failure)
"""

from __future__ import annotations


class TranscriptError(Exception):
    """Base class for every failure the pipeline reports."""


class CaptionsUnavailableError(TranscriptError):
    """The video has no (auto-generated) captions in the requested language."""


class ToolExecutionError(TranscriptError):
    """An external tool (yt-dlp) exited with a non-zero code.

    RULES:
    - exit_code is the process return code, or None when it never finished
    """

    def __init__(self, exit_code: int | None, message: str = "") -> None:
        self.exit_code = exit_code
        self.message = message
        detail = f": {message}" if message else ""
        super().__init__(f"Tool execution failed (exit code {exit_code}){detail}")


class SubtitleFileNotFoundError(TranscriptError):
    """yt-dlp succeeded but no .srt file with the expected prefix appeared."""


class PromptTooLongError(TranscriptError, ValueError):
    """A completion prompt exceeds the configured character limit."""

    def __init__(self, length: int, limit: int) -> None:
        self.length = length
        self.limit = limit
        super().__init__(
            f"Prompt length ({length:,} characters) exceeds the limit "
            f"of {limit:,} characters"
        )


class ChunkCountExceededError(TranscriptError):
    """Text splits into more chunks than the pipeline may send."""

    def __init__(self, count: int, limit: int, chunk_size: int) -> None:
        self.count = count
        self.limit = limit
        super().__init__(
            f"Text too long: {count} chunks of up to {chunk_size} characters "
            f"(max {limit} chunks). Please try a shorter video."
        )


class TranscriptionFailedError(TranscriptError):
    """Audio could not be transcribed (too large, bad format, empty result)."""


class UpstreamServiceError(TranscriptError):
    """The completion or transcription API failed or answered unusably.

    RULES:
    - status_code is None when no response arrived (connect/read errors)
    """

    def __init__(self, status_code: int | None, message: str) -> None:
        self.status_code = status_code
        self.message = message
        if status_code is None:
            super().__init__(f"Upstream API unreachable: {message}")
        else:
            super().__init__(f"Upstream API error {status_code}: {message}")

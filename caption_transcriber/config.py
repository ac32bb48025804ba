"""Configuration constants, service limits, and .env loading.

WHY: Tool paths, API credentials, and the numeric limits that shape the
pipeline (prompt size, chunk count, punctuation threshold) must be easy to
find and override. The orchestrator receives them as one explicit Settings
object instead of reading the environment deep inside the pipeline.

HOW: python-dotenv loads the .env file on import. Fixed service limits are
module-level constants. Settings.from_env() snapshots the environment into
a frozen dataclass; tests build Settings directly.

RULES:
- API key is loaded from .env via python-dotenv, never hardcoded
- OPENAI_API_KEY wins over the legacy OPENAPI_TOKEN name
- Chunk size for punctuation restoration is prompt_size_limit - 1024,
  leaving room for the instruction and the completion's own tokens
- All defaults can be overridden via environment variables
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

# Load .env from the project root (where the script is run from)
load_dotenv()

# ---------------------------------------------------------------------------
# Service limits
# ---------------------------------------------------------------------------

PROMPT_SIZE_LIMIT = 4096
"""Maximum prompt length (characters) accepted by the completion service."""

PROMPT_HEADROOM = 1024
"""Characters reserved for the instruction prefix when sizing chunks."""

MAX_CHUNKS = 10
PUNCTUATION_RATIO_THRESHOLD = 10.0

MAX_AUDIO_BYTES = 25 * 1024 * 1024
"""Upload limit of the transcription endpoint (25 MB)."""

TRANSCRIPTION_SUPPORTED_FORMATS: set[str] = {
    ".m4a", ".mp3", ".webm", ".mp4", ".mpga", ".wav", ".mpeg",
}
"""Audio file extensions accepted by the transcription endpoint."""

CONVERTIBLE_AUDIO_FORMATS: set[str] = {".oga", ".ogg", ".opus", ".flac", ".aac", ".amr"}
"""Audio file extensions that are re-encoded to mp3 with ffmpeg before upload."""

# ---------------------------------------------------------------------------
# API and tool defaults
# ---------------------------------------------------------------------------

OPENAI_BASE_URL = os.getenv("OPENAI_BASE_URL", "https://api.openai.com/v1")
COMPLETION_MODEL = os.getenv("COMPLETION_MODEL", "gpt-4o-mini")
TRANSCRIPTION_MODEL = os.getenv("TRANSCRIPTION_MODEL", "whisper-1")
YTDLP_PATH = os.getenv("YTDLP_PATH", "yt-dlp")
SUBTITLE_LANGUAGE = os.getenv("SUBTITLE_LANGUAGE", ".*orig")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()


def load_api_key() -> str:
    """Load the OpenAI API key from the environment.

    RULES:
    - Reads OPENAI_API_KEY, then the legacy OPENAPI_TOKEN
    - Raises ValueError if neither is set
    """
    key = os.getenv("OPENAI_API_KEY", "").strip() or os.getenv("OPENAPI_TOKEN", "").strip()
    if not key:
        raise ValueError(
            "OpenAI API key not configured. "
            "Add OPENAI_API_KEY to the .env file in the app folder."
        )
    return key


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    return int(raw) if raw else default


def _env_float(name: str, default: Optional[float]) -> Optional[float]:
    raw = os.getenv(name, "").strip()
    return float(raw) if raw else default


@dataclass(frozen=True)
class Settings:
    """Everything the orchestrator and its services need to run.

    WHY: Replaces scattered environment lookups with one object passed in
    at construction time, so tests and concurrent requests can use
    different settings side by side.

    RULES:
    - api_key may be None; the HTTP client then calls load_api_key()
    - request_timeout_s None means no overall deadline per path
    - chunk_size is derived, never configured directly
    """

    api_key: Optional[str] = None
    base_url: str = OPENAI_BASE_URL
    completion_model: str = COMPLETION_MODEL
    transcription_model: str = TRANSCRIPTION_MODEL
    ytdlp_path: str = YTDLP_PATH
    ffmpeg_path: Optional[str] = None
    subtitle_language: str = SUBTITLE_LANGUAGE
    prompt_size_limit: int = PROMPT_SIZE_LIMIT
    max_chunks: int = MAX_CHUNKS
    punctuation_threshold: float = PUNCTUATION_RATIO_THRESHOLD
    tool_timeout_s: float = 600.0
    http_timeout_s: float = 120.0
    request_timeout_s: Optional[float] = None

    @property
    def chunk_size(self) -> int:
        return self.prompt_size_limit - PROMPT_HEADROOM

    @classmethod
    def from_env(cls) -> Settings:
        """Build Settings from the current environment (after .env loading)."""
        return cls(
            api_key=(os.getenv("OPENAI_API_KEY", "").strip()
                     or os.getenv("OPENAPI_TOKEN", "").strip() or None),
            base_url=os.getenv("OPENAI_BASE_URL", OPENAI_BASE_URL),
            completion_model=os.getenv("COMPLETION_MODEL", COMPLETION_MODEL),
            transcription_model=os.getenv("TRANSCRIPTION_MODEL", TRANSCRIPTION_MODEL),
            ytdlp_path=os.getenv("YTDLP_PATH", YTDLP_PATH),
            ffmpeg_path=os.getenv("FFMPEG_PATH") or None,
            subtitle_language=os.getenv("SUBTITLE_LANGUAGE", SUBTITLE_LANGUAGE),
            prompt_size_limit=_env_int("PROMPT_SIZE_LIMIT", PROMPT_SIZE_LIMIT),
            max_chunks=_env_int("MAX_CHUNKS", MAX_CHUNKS),
            punctuation_threshold=_env_float(
                "PUNCTUATION_RATIO_THRESHOLD", PUNCTUATION_RATIO_THRESHOLD
            ),
            tool_timeout_s=_env_float("TOOL_TIMEOUT_S", 600.0),
            http_timeout_s=_env_float("HTTP_TIMEOUT_S", 120.0),
            request_timeout_s=_env_float("REQUEST_TIMEOUT_S", None),
        )

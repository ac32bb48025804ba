"""Async HTTP client for the OpenAI completion and transcription endpoints.

WHY: The pipeline needs two remote services: a text completion model that
restores punctuation (and writes summaries), and the Whisper endpoint that
transcribes audio when captions are unusable. This module hides the HTTP
details behind one client class so the orchestrator only sees
complete(prompt) and transcribe(audio_path).

HOW: Uses httpx.AsyncClient for non-blocking HTTP. OpenAIClient is an
async context manager. Enter it to get an authenticated client, exit to
close the connection pool. Limits are validated locally before any
request is made so failures are immediate and typed.

RULES:
- Always use the async context manager (async with OpenAIClient(...) as client:)
- Prompts longer than prompt_size_limit raise PromptTooLongError, unsent
- Audio larger than 25 MB or with an unsupported extension raises
  TranscriptionFailedError, unsent
- Non-2xx responses raise UpstreamServiceError(status_code, body)
- Transport failures (connect, read timeout) and unparseable bodies also
  raise UpstreamServiceError, so callers only ever see TranscriptError
- A completion cut off by max_tokens (finish_reason "length") raises
  UpstreamServiceError rather than returning partial text
- Completions use max_tokens=1024 and stop=["###"]; the instruction
  prompts end with that stop sequence
"""

from __future__ import annotations

import logging
import mimetypes
from pathlib import Path
from typing import Callable, Optional, TypeVar

import httpx

from caption_transcriber.api.models import CompletionResponse, TranscriptionResponse
from caption_transcriber.config import (
    COMPLETION_MODEL,
    MAX_AUDIO_BYTES,
    OPENAI_BASE_URL,
    PROMPT_SIZE_LIMIT,
    TRANSCRIPTION_MODEL,
    TRANSCRIPTION_SUPPORTED_FORMATS,
    Settings,
    load_api_key,
)
from caption_transcriber.errors import (
    PromptTooLongError,
    TranscriptionFailedError,
    UpstreamServiceError,
)

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

_COMPLETION_MAX_TOKENS = 1024
_STOP_SEQUENCE = "###"
_CONNECT_TIMEOUT_S = 30.0

T = TypeVar("T")


class OpenAIClient:
    """Async client for chat completions and audio transcriptions.

    RULES:
    - Use as: async with OpenAIClient() as client: ...
    - api_key defaults to load_api_key() from .env
    - transport is only for tests (httpx.MockTransport)
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        completion_model: Optional[str] = None,
        transcription_model: Optional[str] = None,
        prompt_size_limit: int = PROMPT_SIZE_LIMIT,
        timeout_s: float = 120.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._api_key = api_key or load_api_key()
        self._base_url = (base_url or OPENAI_BASE_URL).rstrip("/")
        self._completion_model = completion_model or COMPLETION_MODEL
        self._transcription_model = transcription_model or TRANSCRIPTION_MODEL
        self._prompt_size_limit = prompt_size_limit
        self._timeout_s = timeout_s
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> OpenAIClient:
        return cls(
            api_key=settings.api_key,
            base_url=settings.base_url,
            completion_model=settings.completion_model,
            transcription_model=settings.transcription_model,
            prompt_size_limit=settings.prompt_size_limit,
            timeout_s=settings.http_timeout_s,
            transport=transport,
        )

    @property
    def prompt_size_limit(self) -> int:
        return self._prompt_size_limit

    async def __aenter__(self) -> OpenAIClient:
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            headers={"Authorization": f"Bearer {self._api_key}"},
            # uploads to Whisper of up to 25 MB may take a while
            timeout=httpx.Timeout(self._timeout_s, connect=_CONNECT_TIMEOUT_S),
            transport=self._transport,
        )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:  # noqa: ANN001
        if self._client:
            await self._client.aclose()
            self._client = None

    def _ensure_client(self) -> httpx.AsyncClient:
        """Return the active httpx client, raising if not in context manager."""
        if self._client is None:
            raise RuntimeError(
                "OpenAIClient must be used as an async context manager: "
                "async with OpenAIClient() as client: ..."
            )
        return self._client

    # ------------------------------------------------------------------
    # Completions
    # ------------------------------------------------------------------

    async def complete(self, prompt: str) -> str:
        """Send *prompt* to the completion model and return its trimmed answer.

        WHY: Punctuation restoration and summaries are single-turn prompts;
        the pipeline only ever needs the text of the first choice.

        HOW: Validates the prompt length, POSTs a one-message chat
        completion, and parses the first choice.

        RULES:
        - Raises PromptTooLongError before sending if the prompt is too long
        - Raises UpstreamServiceError on non-200 responses, transport
          failures, malformed bodies and finish_reason "length"
        """
        if len(prompt) > self._prompt_size_limit:
            raise PromptTooLongError(len(prompt), self._prompt_size_limit)

        client = self._ensure_client()
        body = {
            "model": self._completion_model,
            "messages": [{"role": "user", "content": prompt}],
            "max_tokens": _COMPLETION_MAX_TOKENS,
            "stop": [_STOP_SEQUENCE],
        }
        logger.debug("Completion request: %d prompt characters", len(prompt))

        try:
            resp = await client.post("/chat/completions", json=body)
        except httpx.HTTPError as exc:
            raise UpstreamServiceError(None, f"{type(exc).__name__}: {exc}") from exc
        if resp.status_code != 200:
            raise UpstreamServiceError(resp.status_code, resp.text)

        completion = _parse(resp, CompletionResponse.from_dict)
        logger.debug(
            "Completion %s finished (%s)", completion.id, completion.finish_reason
        )
        if completion.finish_reason == "length":
            logger.warning(
                "Completion %s hit max_tokens=%d", completion.id, _COMPLETION_MAX_TOKENS
            )
            raise UpstreamServiceError(
                resp.status_code,
                f"completion truncated at max_tokens={_COMPLETION_MAX_TOKENS}",
            )
        return completion.text.strip()

    # ------------------------------------------------------------------
    # Transcriptions
    # ------------------------------------------------------------------

    async def transcribe(self, audio_path: Path) -> str:
        """Transcribe an audio file through the Whisper endpoint.

        WHY: The audio fallback turns a downloaded soundtrack into text
        when no usable captions exist.

        HOW: Checks extension and size locally, then uploads the file as
        multipart/form-data together with the model name.

        RULES:
        - Accepted extensions: TRANSCRIPTION_SUPPORTED_FORMATS
        - Files above 25 MB raise TranscriptionFailedError
        - An empty transcription raises TranscriptionFailedError
        - Raises UpstreamServiceError on non-200 responses

        Args:
            audio_path: Path to the audio file to upload.

        Returns:
            The transcribed text, trimmed.
        """
        audio_path = Path(audio_path)
        ext = audio_path.suffix.lower()
        if ext not in TRANSCRIPTION_SUPPORTED_FORMATS:
            raise TranscriptionFailedError(
                "Unsupported audio format '{}'. Supported formats: {}".format(
                    ext, ", ".join(sorted(TRANSCRIPTION_SUPPORTED_FORMATS))
                )
            )

        size = audio_path.stat().st_size
        if size > MAX_AUDIO_BYTES:
            raise TranscriptionFailedError(
                "File size is too large. Max size is 25MB, but is {:,} bytes".format(size)
            )

        client = self._ensure_client()
        mime_type = mimetypes.guess_type(audio_path.name)[0] or "application/octet-stream"
        logger.info("Uploading %s (%d bytes) for transcription", audio_path.name, size)

        with open(audio_path, "rb") as f:
            try:
                resp = await client.post(
                    "/audio/transcriptions",
                    files={"file": (audio_path.name, f, mime_type)},
                    data={"model": self._transcription_model},
                )
            except httpx.HTTPError as exc:
                raise UpstreamServiceError(None, f"{type(exc).__name__}: {exc}") from exc

        if resp.status_code != 200:
            raise UpstreamServiceError(resp.status_code, resp.text)

        text = _parse(resp, TranscriptionResponse.from_dict).text.strip()
        if not text:
            raise TranscriptionFailedError("Transcription service returned empty text")
        return text


def _parse(resp: httpx.Response, factory: Callable[[dict], T]) -> T:
    """Decode a 200 response body with *factory*; malformed bodies are upstream errors."""
    try:
        return factory(resp.json())
    except (KeyError, IndexError, TypeError, ValueError) as exc:
        raise UpstreamServiceError(
            resp.status_code, f"malformed response body ({type(exc).__name__}: {exc})"
        ) from exc

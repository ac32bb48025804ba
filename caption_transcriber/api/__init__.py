"""OpenAI API client package: completions and Whisper transcriptions.

WHY: Punctuation restoration, summaries and the audio fallback all talk
to the same provider. This package keeps that HTTP traffic in one place.

RULES:
- All HTTP calls go through OpenAIClient (no direct httpx usage elsewhere)
- Authentication is via Bearer token from config
"""

from caption_transcriber.api.client import OpenAIClient
from caption_transcriber.api.models import CompletionResponse, TranscriptionResponse

__all__ = ["CompletionResponse", "OpenAIClient", "TranscriptionResponse"]

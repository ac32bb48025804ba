"""Transcript dataclass returned by the orchestrator.

WHY: Callers (CLI, HTTP API) want the text plus a little provenance: did
it come from captions or from audio, was punctuation restored, and what
went wrong on the way.

RULES:
- text is the final flat string, space-joined and trimmed
- video_id is None for transcripts of uploaded or local audio files
- ratio is None when the text never reached classification (audio path)
- chunk_count is 0 unless punctuation was restored
- summary is only set when the caller asked for one
- warnings collects human-readable notes (e.g. why the fallback ran)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional


class TranscriptSource(str, Enum):
    CAPTIONS = "captions"
    CAPTIONS_PUNCTUATED = "captions_punctuated"
    AUDIO = "audio"
    AUDIO_FILE = "audio_file"


@dataclass
class Transcript:
    video_id: Optional[str]
    text: str
    source: TranscriptSource
    ratio: Optional[float] = None
    chunk_count: int = 0
    summary: Optional[str] = None
    warnings: List[str] = field(default_factory=list)

"""Pure text transforms: caption reconstruction, quality ratio, chunking.

WHY: These steps hold the only real algorithmic content of the pipeline.
Keeping them free of I/O makes them trivially testable and lets the
orchestrator treat them as non-suspending stages.
"""

from caption_transcriber.core.captions import reconstruct
from caption_transcriber.core.chunker import chunk_text, ensure_chunk_limit
from caption_transcriber.core.quality import alphanumeric_ratio, needs_punctuation

__all__ = [
    "alphanumeric_ratio",
    "chunk_text",
    "ensure_chunk_limit",
    "needs_punctuation",
    "reconstruct",
]

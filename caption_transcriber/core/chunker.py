"""Split text into word-aligned chunks bounded by a maximum size.

WHY: The completion service rejects prompts above a fixed character
limit. Punctuation restoration therefore sends the transcript in pieces,
and a piece must never cut a word in half or the model will "repair" it.

HOW: Greedy packing on whitespace-separated words. Each word is appended
with one trailing space; when the next word plus its space would push the
current chunk past max_size, the chunk is closed and a new one starts.

RULES:
- Chunks keep their trailing space, as built
- A chunk of two or more words is at most max_size characters, trailing
  space included; a word longer than the limit gets a chunk of its own
  and is emitted whole, never split
- " ".join(c.strip() for c in chunks) equals " ".join(text.split())
- Empty or whitespace-only text yields no chunks
"""

from __future__ import annotations

from typing import List

from caption_transcriber.errors import ChunkCountExceededError


def chunk_text(text: str, max_size: int) -> List[str]:
    """Break *text* into chunks of at most *max_size* characters."""
    if max_size < 1:
        raise ValueError(f"max_size must be positive, got {max_size}")

    chunks: List[str] = []
    current: List[str] = []
    current_len = 0

    for word in text.split():
        if current and current_len + len(word) + 1 > max_size:
            chunks.append("".join(current))
            current = []
            current_len = 0
        current.append(word + " ")
        current_len += len(word) + 1

    if current:
        chunks.append("".join(current))
    return chunks


def ensure_chunk_limit(chunks: List[str], max_chunks: int, chunk_size: int) -> None:
    """Raise ChunkCountExceededError when there are more than *max_chunks*."""
    if len(chunks) > max_chunks:
        raise ChunkCountExceededError(len(chunks), max_chunks, chunk_size)

"""Reconstruct continuous prose from a scrolling SRT caption stream.

WHY: Auto-generated captions are rendered as a sliding window: every
block repeats the previous line(s) next to the new one. Concatenating the
blocks naively repeats almost every sentence twice. Comparing each block
only with the lines carried over from its predecessor removes that
overlap while keeping the text in spoken order.

HOW: A single forward scan over the lines keeps two insertion-ordered
sets (plain dicts): `window`, the flushed-but-pending lines, and `block`,
the lines of the caption block being read. A timestamp line closes the
block. If the block shares no line with the window, the window is
emitted; either way the block is merged into the window. At the end the
window is emitted, followed by the final block minus the lines it
repeats.

RULES:
- Blank lines, pure integers (sequence numbers) and timestamp ranges
  ("00:00:01,000 --> 00:00:02,500") never become caption text
- Lines are stripped; equality is exact (no fuzzy matching)
- A line repeated within one block counts once
- Only adjacent blocks are compared; repeats in non-adjacent blocks stay
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from typing import Dict, List, Union

# 00:00:00,000 --> 00:00:01,429
TIMESTAMP_PATTERN = re.compile(
    r"\d{2}:\d{2}:\d{2},\d{3} --> \d{2}:\d{2}:\d{2},\d{3}"
)

_SEQUENCE_PATTERN = re.compile(r"[+-]?\d+")


def is_timestamp(line: str) -> bool:
    """True if the whole (stripped) line is an SRT timestamp range."""
    return TIMESTAMP_PATTERN.fullmatch(line.strip()) is not None


def is_sequence_number(line: str) -> bool:
    """True if the line is a bare integer (an SRT cue number)."""
    return _SEQUENCE_PATTERN.fullmatch(line.strip()) is not None


def is_caption_line(line: str) -> bool:
    """True for a non-empty line that is neither a cue number nor a timestamp."""
    stripped = line.strip()
    return bool(stripped) and not is_sequence_number(stripped) and not is_timestamp(stripped)


def reconstruct(lines: Union[str, Iterable[str]]) -> str:
    """Turn raw SRT lines into one deduplicated, space-joined transcript.

    Args:
        lines: The raw caption stream, either as one string or as an
            iterable of lines. It is consumed once, in order.

    Returns:
        The reconstructed text, trimmed. Empty string if the stream holds
        no caption text.
    """
    if isinstance(lines, str):
        lines = lines.splitlines()

    window: Dict[str, None] = {}
    block: Dict[str, None] = {}
    output: List[str] = []

    for raw in lines:
        line = raw.strip()
        if not line or is_sequence_number(line):
            continue

        if is_timestamp(line):
            if block:
                if window.keys().isdisjoint(block):
                    output.extend(window)
                    window.clear()
                window.update(block)
                block.clear()
            continue

        block[line] = None

    if window:
        output.extend(window)
        output.extend(line for line in block if line not in window)
    elif block:
        output.extend(block)

    return " ".join(output).strip()

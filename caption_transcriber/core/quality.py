"""Heuristic that decides whether a transcript needs punctuation restored.

WHY: Auto-generated captions usually carry no punctuation at all, while
manually authored subtitles are punctuated. Sending already punctuated
text through the completion service wastes calls and risks rewording.

HOW: Counts Unicode alphanumeric characters (A) and Unicode punctuation
characters (P, general category "P*") and compares A / P against a
threshold. Unpunctuated text scores very high (or +inf).

RULES:
- P == 0 and A > 0 → +inf
- A == 0 and P == 0 → NaN (no signal either way)
- A == 0 and P > 0 → 0.0
- needs_punctuation() is ratio > threshold; NaN never needs punctuation
"""

from __future__ import annotations

import math
import unicodedata

from caption_transcriber.config import PUNCTUATION_RATIO_THRESHOLD


def _is_punctuation(char: str) -> bool:
    return unicodedata.category(char).startswith("P")


def alphanumeric_ratio(text: str) -> float:
    """Ratio of alphanumeric to punctuation characters in *text*."""
    alphanumeric = sum(1 for char in text if char.isalnum())
    punctuation = sum(1 for char in text if _is_punctuation(char))

    if punctuation == 0:
        return math.inf if alphanumeric else math.nan
    return alphanumeric / punctuation


def needs_punctuation(text: str, threshold: float = PUNCTUATION_RATIO_THRESHOLD) -> bool:
    return alphanumeric_ratio(text) > threshold

"""Recognize YouTube links and pull the 11-character video id out of them.

RULES:
- Accepted hosts: youtube.com, youtu.be (with or without "www.")
- The id follows one of v=, v/, vi=, vi/, youtu.be/, yt.be/
- A bare 11-character id is accepted as-is
"""

from __future__ import annotations

import re
from typing import Optional
from urllib.parse import urlparse

YOUTUBE_DOMAIN_PATTERN = re.compile(r"^(www\.)?youtu(\.be|be\.com)$")
YOUTUBE_VIDEO_ID_PATTERN = re.compile(
    r"(?:v=|v/|vi=|vi/|youtu\.be/|yt\.be/)([a-zA-Z0-9_-]{11})"
)
_BARE_ID_PATTERN = re.compile(r"[a-zA-Z0-9_-]{11}")


def is_youtube_url(text: str) -> bool:
    try:
        host = urlparse(text.strip()).hostname or ""
    except ValueError:
        return False
    return YOUTUBE_DOMAIN_PATTERN.match(host) is not None


def extract_video_id(text: str) -> Optional[str]:
    """Return the video id from a URL or bare id, or None if there is none."""
    text = text.strip()
    if _BARE_ID_PATTERN.fullmatch(text):
        return text
    match = YOUTUBE_VIDEO_ID_PATTERN.search(text)
    return match.group(1) if match else None


def video_url(video_id: str) -> str:
    return f"https://www.youtube.com/watch?v={video_id}"

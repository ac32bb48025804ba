"""Shared test fixtures for the caption_transcriber test suite.

WHY: The pipeline tests need the same scrolling-caption sample and the
same in-memory stand-ins for the external services (caption extraction,
audio extraction, audio conversion, completion, transcription).

HOW: Fake services record their calls and either return canned values or
raise a configured exception. They write real files into the work
directory so temp-file cleanup can be asserted.

RULES:
- No test talks to yt-dlp or the network
- Fakes are plain classes; each test gets fresh instances
"""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional

import pytest

from caption_transcriber.config import Settings


# ---------------------------------------------------------------------------
# Sample caption streams
# ---------------------------------------------------------------------------

# Auto-generated captions: every block repeats the previous line.
SCROLLING_SRT = """\
1
00:00:00,000 --> 00:00:02,000
as a nutritionist I am of course

2
00:00:02,000 --> 00:00:04,000
as a nutritionist I am of course
often asked by many different people

3
00:00:04,000 --> 00:00:06,000
often asked by many different people
what one should actually eat

4
00:00:06,000 --> 00:00:08,000
what one should actually eat
"""

SCROLLING_TEXT = (
    "as a nutritionist I am of course "
    "often asked by many different people "
    "what one should actually eat"
)

PUNCTUATED_SRT = """\
1
00:00:00,000 --> 00:00:02,500
Hello, and welcome back!

2
00:00:02,500 --> 00:00:05,000
Today, we talk about soup.
"""


@pytest.fixture
def scrolling_srt() -> str:
    return SCROLLING_SRT


@pytest.fixture
def scrolling_text() -> str:
    return SCROLLING_TEXT


@pytest.fixture
def punctuated_srt() -> str:
    return PUNCTUATED_SRT


@pytest.fixture
def settings() -> Settings:
    return Settings(api_key="test-key")


# ---------------------------------------------------------------------------
# Fake services
# ---------------------------------------------------------------------------


class FakeCaptionService:
    def __init__(self, srt: str = "", error: Optional[Exception] = None) -> None:
        self.srt = srt
        self.error = error
        self.calls: List[str] = []
        self.work_dirs: List[Path] = []

    async def fetch(self, video_id: str, work_dir: Path) -> str:
        self.calls.append(video_id)
        self.work_dirs.append(work_dir)
        (work_dir / "captions.en-orig.srt").write_text(self.srt, encoding="utf-8")
        if self.error is not None:
            raise self.error
        return self.srt


class FakeAudioService:
    def __init__(self, error: Optional[Exception] = None) -> None:
        self.error = error
        self.calls: List[str] = []
        self.paths: List[Path] = []

    async def fetch(self, video_id: str, work_dir: Path) -> Path:
        self.calls.append(video_id)
        if self.error is not None:
            raise self.error
        path = work_dir / "audio.m4a"
        path.write_bytes(b"fake audio")
        self.paths.append(path)
        return path


class FakeTranscriptionService:
    def __init__(self, text: str = "transcribed from audio", error: Optional[Exception] = None) -> None:
        self.text = text
        self.error = error
        self.calls: List[Path] = []

    async def transcribe(self, audio_path: Path) -> str:
        self.calls.append(audio_path)
        assert audio_path.exists(), "audio must still exist while transcribing"
        if self.error is not None:
            raise self.error
        return self.text


class FakeCompletionService:
    """Returns the chunk text upper-cased with a full stop, in call order."""

    def __init__(self, error: Optional[Exception] = None) -> None:
        self.error = error
        self.prompts: List[str] = []

    async def complete(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        body = prompt.split("### ", 1)[-1].strip()
        return "{}.".format(body.capitalize())


class FakeAudioConverter:
    """Writes converted.mp3 into the work directory, like ffmpeg would."""

    def __init__(self, error: Optional[Exception] = None) -> None:
        self.error = error
        self.calls: List[Path] = []
        self.outputs: List[Path] = []

    async def convert(self, source: Path, work_dir: Path) -> Path:
        self.calls.append(source)
        if self.error is not None:
            raise self.error
        output = work_dir / "converted.mp3"
        output.write_bytes(b"ID3 converted")
        self.outputs.append(output)
        return output


@pytest.fixture
def caption_service() -> FakeCaptionService:
    return FakeCaptionService(SCROLLING_SRT)


@pytest.fixture
def audio_service() -> FakeAudioService:
    return FakeAudioService()


@pytest.fixture
def transcription_service() -> FakeTranscriptionService:
    return FakeTranscriptionService()


@pytest.fixture
def completion_service() -> FakeCompletionService:
    return FakeCompletionService()


@pytest.fixture
def audio_converter() -> FakeAudioConverter:
    return FakeAudioConverter()

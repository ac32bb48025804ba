"""Caption and audio extraction through the yt-dlp command-line tool.

WHY: YouTube offers no stable API for auto-generated captions or audio.
yt-dlp does both, and it is the tool the pipeline already depends on for
the audio fallback, so both extraction services wrap it.

HOW: Each service builds a yt-dlp command line, runs it as an asyncio
subprocess inside the request's work directory, streams the tool output
to the debug log, and then looks for the produced file. The caption
service returns the raw SRT text; the audio service returns the path of
the audio file, which stays in the work directory until the orchestrator
removes it.

RULES:
- Non-zero exit codes raise ToolExecutionError(exit_code)
- A missing executable or a timeout raises ToolExecutionError(None)
- Cancellation kills the child process before propagating
- Caption runs that finish without an .srt file raise
  CaptionsUnavailableError when yt-dlp reported no captions, otherwise
  SubtitleFileNotFoundError
- Files are written only below the work_dir passed in by the caller
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import List, Optional

from caption_transcriber.config import YTDLP_PATH, SUBTITLE_LANGUAGE, Settings
from caption_transcriber.core.youtube import video_url
from caption_transcriber.errors import (
    CaptionsUnavailableError,
    SubtitleFileNotFoundError,
    ToolExecutionError,
)
from caption_transcriber.extract.process import run_tool

logger = logging.getLogger(__name__)

CAPTION_FILE_STEM = "captions"
AUDIO_FILE_STEM = "audio"
AUDIO_FORMAT = "m4a"

_NO_CAPTIONS_PATTERN = re.compile(
    r"no subtitles for the requested languages|has no automatic captions|has no subtitles",
    re.IGNORECASE,
)


def find_subtitle_file(work_dir: Path, stem: str) -> Path:
    """Return the first .srt file in *work_dir* whose name starts with *stem*.

    yt-dlp appends the language to the output name
    (``captions.en-orig.srt``), so the exact filename is not known upfront.
    """
    for candidate in sorted(work_dir.iterdir()):
        if candidate.name.startswith(stem) and candidate.suffix == ".srt":
            return candidate
    raise SubtitleFileNotFoundError("Subtitle file not found.")


class _YtDlpService:
    def __init__(
        self,
        ytdlp_path: str = YTDLP_PATH,
        ffmpeg_path: Optional[str] = None,
        timeout_s: float = 600.0,
    ) -> None:
        self._ytdlp_path = ytdlp_path
        self._ffmpeg_path = ffmpeg_path
        self._timeout_s = timeout_s

    def _ffmpeg_args(self) -> List[str]:
        return ["--ffmpeg-location", self._ffmpeg_path] if self._ffmpeg_path else []


class YtDlpCaptionExtractor(_YtDlpService):
    """Download a video's auto-generated captions as SRT text."""

    def __init__(
        self,
        ytdlp_path: str = YTDLP_PATH,
        ffmpeg_path: Optional[str] = None,
        subtitle_language: str = SUBTITLE_LANGUAGE,
        timeout_s: float = 600.0,
    ) -> None:
        super().__init__(ytdlp_path, ffmpeg_path, timeout_s)
        self._subtitle_language = subtitle_language

    @classmethod
    def from_settings(cls, settings: Settings) -> YtDlpCaptionExtractor:
        return cls(
            ytdlp_path=settings.ytdlp_path,
            ffmpeg_path=settings.ffmpeg_path,
            subtitle_language=settings.subtitle_language,
            timeout_s=settings.tool_timeout_s,
        )

    def build_command(self, video_id: str, output_base: Path) -> List[str]:
        return [
            self._ytdlp_path,
            *self._ffmpeg_args(),
            "--write-auto-sub",
            "--sub-lang", self._subtitle_language,
            "--skip-download",
            "--convert-subs", "srt",
            "--sub-format", "srt",
            "-o", str(output_base),
            video_url(video_id),
        ]

    async def fetch(self, video_id: str, work_dir: Path) -> str:
        output_base = work_dir / CAPTION_FILE_STEM
        logger.info("Fetching captions for %s into %s", video_id, work_dir)
        output = await run_tool(
            self.build_command(video_id, output_base), work_dir, self._timeout_s
        )

        try:
            srt_path = find_subtitle_file(work_dir, CAPTION_FILE_STEM)
        except SubtitleFileNotFoundError:
            if _NO_CAPTIONS_PATTERN.search(output):
                raise CaptionsUnavailableError(
                    f"No captions available for video {video_id}"
                ) from None
            raise

        logger.debug("Found srt file: %s", srt_path)
        try:
            return srt_path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise SubtitleFileNotFoundError(f"Could not read {srt_path.name}: {exc}") from exc


class YtDlpAudioExtractor(_YtDlpService):
    """Download a video's best audio stream and convert it to m4a."""

    @classmethod
    def from_settings(cls, settings: Settings) -> YtDlpAudioExtractor:
        return cls(
            ytdlp_path=settings.ytdlp_path,
            ffmpeg_path=settings.ffmpeg_path,
            timeout_s=settings.tool_timeout_s,
        )

    def build_command(self, video_id: str, output_path: Path) -> List[str]:
        return [
            self._ytdlp_path,
            "-f", "ba",
            "-x",
            "--audio-format", AUDIO_FORMAT,
            *self._ffmpeg_args(),
            "-o", str(output_path),
            video_url(video_id),
        ]

    async def fetch(self, video_id: str, work_dir: Path) -> Path:
        output_path = work_dir / f"{AUDIO_FILE_STEM}.{AUDIO_FORMAT}"
        logger.info("Extracting audio for %s to %s", video_id, output_path)
        await run_tool(self.build_command(video_id, output_path), work_dir, self._timeout_s)

        if output_path.is_file():
            return output_path

        # yt-dlp sometimes keeps the source container extension
        for candidate in sorted(work_dir.glob(f"{AUDIO_FILE_STEM}.*")):
            if candidate.is_file():
                return candidate
        raise ToolExecutionError(0, "audio file was not produced")

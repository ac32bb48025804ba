"""Audio conversion through ffmpeg for formats Whisper does not accept.

WHY: Voice messages typically arrive as Ogg/Opus (.oga, .ogg, .opus),
which the transcription endpoint rejects. Re-encoding to mp3 first lets
any audio file ffmpeg can read be transcribed.

RULES:
- Output is <work_dir>/converted.mp3, encoded with libmp3lame at VBR q=2
- Existing output is overwritten (-y)
- The source file is only read, never modified or deleted
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List

from caption_transcriber.config import Settings
from caption_transcriber.errors import ToolExecutionError
from caption_transcriber.extract.process import run_tool

logger = logging.getLogger(__name__)

CONVERTED_FILE_NAME = "converted.mp3"


class FfmpegAudioConverter:
    """Re-encode an audio file to mp3 inside a work directory."""

    def __init__(self, ffmpeg_path: str = "ffmpeg", timeout_s: float = 600.0) -> None:
        self._ffmpeg_path = ffmpeg_path
        self._timeout_s = timeout_s

    @classmethod
    def from_settings(cls, settings: Settings) -> FfmpegAudioConverter:
        return cls(
            ffmpeg_path=settings.ffmpeg_path or "ffmpeg",
            timeout_s=settings.tool_timeout_s,
        )

    def build_command(self, source: Path, output_path: Path) -> List[str]:
        return [
            self._ffmpeg_path,
            "-y",
            "-i", str(source),
            "-codec:a", "libmp3lame",
            "-q:a", "2",
            str(output_path),
        ]

    async def convert(self, source: Path, work_dir: Path) -> Path:
        output_path = work_dir / CONVERTED_FILE_NAME
        logger.info("Converting %s to mp3", source.name)
        await run_tool(self.build_command(source, output_path), work_dir, self._timeout_s)

        if not output_path.is_file():
            raise ToolExecutionError(0, "converted file was not produced")
        return output_path

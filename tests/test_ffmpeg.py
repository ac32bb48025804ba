"""Tests for the ffmpeg audio converter.

HOW: The command line is checked directly; convert() runs with run_tool
patched to an async fake that writes the mp3 ffmpeg would have produced.
"""

import asyncio
from pathlib import Path
from unittest.mock import AsyncMock, patch

import pytest

from caption_transcriber.config import Settings
from caption_transcriber.errors import ToolExecutionError
from caption_transcriber.extract.ffmpeg import CONVERTED_FILE_NAME, FfmpegAudioConverter


@pytest.fixture
def voice_message(tmp_path):
    path = tmp_path / "voice.oga"
    path.write_bytes(b"OggS voice")
    return path


@pytest.fixture
def work_dir(tmp_path):
    path = tmp_path / "work"
    path.mkdir()
    return path


class TestCommand:

    def test_mp3_reencode(self, voice_message, work_dir):
        converter = FfmpegAudioConverter(ffmpeg_path="/usr/bin/ffmpeg")
        command = converter.build_command(voice_message, work_dir / "converted.mp3")

        assert command == [
            "/usr/bin/ffmpeg",
            "-y",
            "-i", str(voice_message),
            "-codec:a", "libmp3lame",
            "-q:a", "2",
            str(work_dir / "converted.mp3"),
        ]

    def test_from_settings(self):
        converter = FfmpegAudioConverter.from_settings(
            Settings(api_key="k", ffmpeg_path="/opt/ffmpeg/bin/ffmpeg", tool_timeout_s=30.0)
        )

        assert converter.build_command(Path("a.oga"), Path("b.mp3"))[0] == "/opt/ffmpeg/bin/ffmpeg"
        assert converter._timeout_s == 30.0

    def test_from_settings_defaults_to_path_lookup(self):
        converter = FfmpegAudioConverter.from_settings(Settings(api_key="k"))
        assert converter.build_command(Path("a.oga"), Path("b.mp3"))[0] == "ffmpeg"


class TestConvert:

    def test_returns_converted_path(self, voice_message, work_dir):
        calls = []

        async def fake_run_tool(command, cwd, timeout_s):
            calls.append((command, cwd, timeout_s))
            Path(command[-1]).write_bytes(b"ID3")
            return ""

        converter = FfmpegAudioConverter(timeout_s=12.0)
        with patch("caption_transcriber.extract.ffmpeg.run_tool", fake_run_tool):
            output = asyncio.run(converter.convert(voice_message, work_dir))

        assert output == work_dir / CONVERTED_FILE_NAME
        assert output.read_bytes() == b"ID3"
        assert calls[0][1] == work_dir
        assert calls[0][2] == 12.0
        assert voice_message.read_bytes() == b"OggS voice"

    def test_missing_output_raises(self, voice_message, work_dir):
        with patch("caption_transcriber.extract.ffmpeg.run_tool", AsyncMock(return_value="")):
            with pytest.raises(ToolExecutionError, match="converted file was not produced"):
                asyncio.run(FfmpegAudioConverter().convert(voice_message, work_dir))

    def test_tool_failure_propagates(self, voice_message, work_dir):
        failing = AsyncMock(side_effect=ToolExecutionError(1, "Invalid data found"))

        with patch("caption_transcriber.extract.ffmpeg.run_tool", failing):
            with pytest.raises(ToolExecutionError) as excinfo:
                asyncio.run(FfmpegAudioConverter().convert(voice_message, work_dir))

        assert excinfo.value.exit_code == 1

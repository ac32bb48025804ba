"""yt-dlp extraction and ffmpeg conversion services."""

from caption_transcriber.extract.ffmpeg import FfmpegAudioConverter
from caption_transcriber.extract.ytdlp import YtDlpAudioExtractor, YtDlpCaptionExtractor

__all__ = ["FfmpegAudioConverter", "YtDlpAudioExtractor", "YtDlpCaptionExtractor"]

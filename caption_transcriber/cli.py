"""Command-line interface for the caption transcriber.

WHY: The quickest way to get a clean transcript of a YouTube video is a
single command that prints it, ready to pipe into a summarizer or file.

HOW: argparse accepts a YouTube URL (or bare video id), or --audio with a
local audio file such as a voice message, and a few options.
The async pipeline runs via asyncio.run(). Status messages go to stderr;
the transcript (and summary, if requested) goes to stdout or --output.

RULES:
- Positional argument: YouTube URL or 11-character video id, or --audio FILE
  (exactly one of the two)
- Exit code 2 when no video id can be extracted or the audio file is missing
- Exit code 1 when the pipeline fails or configuration is missing
- Exit code 130 on Ctrl+C
- Python 3.9+ compatible (no match/case)
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import List, Optional

from caption_transcriber.config import LOG_LEVEL, Settings
from caption_transcriber.core.models import Transcript
from caption_transcriber.core.result import Err
from caption_transcriber.core.youtube import extract_video_id
from caption_transcriber.pipeline import transcribe_audio_file, transcribe_video


def _status(msg: str) -> None:
    """Print a status message to stderr so stdout stays pipeable."""
    print(msg, file=sys.stderr, flush=True)


def render_transcript(transcript: Transcript) -> str:
    """Format the transcript (and optional summary) for output."""
    if transcript.summary is None:
        return transcript.text + "\n"
    return "{}\n\n--- Summary ---\n{}\n".format(transcript.text, transcript.summary)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="caption_transcriber",
        description="Produce a clean text transcript of a YouTube video from its "
                    "captions, falling back to audio transcription.",
    )
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument(
        "video",
        nargs="?",
        help="YouTube URL or 11-character video id.",
    )
    source.add_argument(
        "--audio",
        default=None,
        metavar="FILE",
        help="Transcribe a local audio file (e.g. an .oga voice message) instead.",
    )
    parser.add_argument(
        "--summarize",
        action="store_true",
        help="Also produce a summary of the transcript.",
    )
    parser.add_argument(
        "--output",
        default=None,
        help="Write the transcript to this file instead of stdout.",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Log debug output (tool output, chunk progress).",
    )
    return parser


def main(argv: Optional[List[str]] = None) -> None:
    """Entry point for ``python -m caption_transcriber`` and the console script.

    RULES:
    - argv=None means use sys.argv (normal CLI invocation)
    - Explicit argv is for testing
    """
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else LOG_LEVEL,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )

    if args.audio:
        audio_path = Path(args.audio)
        if not audio_path.is_file():
            print("Error: Audio file not found: {}".format(audio_path), file=sys.stderr)
            sys.exit(2)
        _status("Transcribing audio file {}...".format(audio_path.name))
        what = "audio file"
    else:
        video_id = extract_video_id(args.video)
        if video_id is None:
            print("Error: Not a YouTube URL or video id: {}".format(args.video), file=sys.stderr)
            sys.exit(2)
        _status("Transcribing video {}...".format(video_id))
        what = "YouTube video"

    try:
        settings = Settings.from_env()
        if args.audio:
            pipeline = transcribe_audio_file(audio_path, settings, summarize=args.summarize)
        else:
            pipeline = transcribe_video(video_id, settings, summarize=args.summarize)
        result = asyncio.run(pipeline)
    except KeyboardInterrupt:
        _status("\nCancelled by user.")
        sys.exit(130)
    except ValueError as e:
        # Config errors (missing API key, malformed numeric settings)
        print("Error: {}".format(e), file=sys.stderr)
        sys.exit(1)

    if isinstance(result, Err):
        print("Error while processing {}: {}".format(what, result.reason), file=sys.stderr)
        if result.primary_error is not None:
            _status("  Caption path failed first: {}".format(result.primary_error))
        sys.exit(1)

    transcript = result.value
    for warning in transcript.warnings:
        _status("Warning: {}".format(warning))
    _status("Done ({}, {} characters).".format(transcript.source.value, len(transcript.text)))

    rendered = render_transcript(transcript)
    if args.output:
        Path(args.output).write_text(rendered, encoding="utf-8")
        _status("Saved: {}".format(args.output))
    else:
        sys.stdout.write(rendered)


if __name__ == "__main__":
    main()

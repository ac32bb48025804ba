"""Caption Transcriber: clean text transcripts from captioned videos.

WHY: Auto-generated YouTube captions arrive as a scrolling SRT stream in
which every block repeats the previous line, with little or no
punctuation. Summarizers need one continuous, readable text instead.

HOW: Four stages. Fetch captions (yt-dlp), reconstruct continuous prose
from overlapping caption blocks (core), restore punctuation chunk by chunk
when the text looks unpunctuated (completion API), and fall back to full
audio transcription (Whisper API) when any caption step fails.

RULES:
- The core text transforms (captions, quality, chunker) are pure
- Only the orchestrator in pipeline.py decides about fallbacks
- Temporary files live in a per-request directory that is always removed
"""

__version__ = "0.1.0"

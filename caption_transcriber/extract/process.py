"""Run an external command-line tool as an asyncio subprocess.

WHY: yt-dlp and ffmpeg are both driven as child processes. They share one
way of starting, timing out, cancelling and reporting failure, so the
extraction and conversion services only build command lines.

RULES:
- The child runs in the caller's work directory
- Non-zero exit codes raise ToolExecutionError(exit_code)
- A missing executable or a timeout raises ToolExecutionError(None)
- Cancellation kills the child process before propagating
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import List

from caption_transcriber.errors import ToolExecutionError

logger = logging.getLogger(__name__)


async def run_tool(command: List[str], cwd: Path, timeout_s: float) -> str:
    """Run *command* in *cwd* and return its combined stdout/stderr text.

    RULES:
    - stderr is merged into stdout and logged line by line at DEBUG
    - Raises ToolExecutionError on non-zero exit, timeout, or missing binary
    """
    logger.info("Running %s in %s", command[0], cwd)
    try:
        proc = await asyncio.create_subprocess_exec(
            *command,
            cwd=str(cwd),
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.STDOUT,
        )
    except FileNotFoundError as exc:
        raise ToolExecutionError(None, f"executable not found: {command[0]}") from exc

    try:
        stdout, _ = await asyncio.wait_for(proc.communicate(), timeout=timeout_s)
    except asyncio.TimeoutError as exc:
        await _kill(proc)
        raise ToolExecutionError(None, f"timed out after {timeout_s:.0f}s") from exc
    except asyncio.CancelledError:
        await _kill(proc)
        raise

    output = stdout.decode("utf-8", errors="replace") if stdout else ""
    for line in output.splitlines():
        logger.debug(line)

    if proc.returncode != 0:
        logger.warning("%s failed. Exit code: %s", command[0], proc.returncode)
        tail = output.strip().splitlines()[-1] if output.strip() else ""
        raise ToolExecutionError(proc.returncode, tail)
    return output


async def _kill(proc: asyncio.subprocess.Process) -> None:
    if proc.returncode is None:
        proc.kill()
        await proc.wait()

"""SRT rendering for subtitle cues."""

from __future__ import annotations

import logging
import math
from pathlib import Path
from typing import Iterable

from .schemas import SubtitleCue

LOG = logging.getLogger(__name__)


def format_timestamp(seconds: float) -> str:
    """Format ``seconds`` as ``HH:MM:SS,mmm`` with every field floored.

    Milliseconds are derived from the total millisecond count (rounded to
    three decimal places first) so values such as 3723.005 do not lose a
    millisecond to binary float representation.
    """
    if seconds < 0:
        raise ValueError("seconds must be >= 0")
    total_ms = int(math.floor(round(seconds * 1000, 3)))
    hours, rem = divmod(total_ms, 3_600_000)
    minutes, rem = divmod(rem, 60_000)
    secs, millis = divmod(rem, 1000)
    return f"{hours:02d}:{minutes:02d}:{secs:02d},{millis:03d}"


def render_srt(cues: Iterable[SubtitleCue]) -> str:
    blocks = []
    for number, cue in enumerate(cues, start=1):
        blocks.append(
            f"{number}\n"
            f"{format_timestamp(cue.start_seconds)} --> {format_timestamp(cue.end_seconds)}\n"
            f"{cue.text}\n\n"
        )
    return "".join(blocks)


def write_srt(cues: Iterable[SubtitleCue], path: Path) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(render_srt(cues), encoding="utf-8")
    LOG.info("Subtitles generated: %s", path)
    return path


__all__ = ["format_timestamp", "render_srt", "write_srt"]

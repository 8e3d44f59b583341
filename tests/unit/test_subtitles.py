from __future__ import annotations

import re
from pathlib import Path

import pytest

from reelsmith.adapters.script import fallback_script
from reelsmith.schemas import SubtitleCue
from reelsmith.subtitles import format_timestamp, render_srt, write_srt

TIMESTAMP_RE = re.compile(r"^\d{2}:\d{2}:\d{2},\d{3}$")


@pytest.mark.parametrize(
    "seconds, expected",
    [
        (0, "00:00:00,000"),
        (3665, "01:01:05,000"),
        (3723.5, "01:02:03,500"),
        (3723.005, "01:02:03,005"),
        (59.9999, "00:00:59,999"),
        (10, "00:00:10,000"),
        (86399.999, "23:59:59,999"),
    ],
)
def test_format_timestamp(seconds, expected):
    assert format_timestamp(seconds) == expected


def test_format_timestamp_shape_holds_across_values():
    for value in (0.001, 1.25, 61.061, 599.5, 3600, 7322.75):
        assert TIMESTAMP_RE.match(format_timestamp(value))


def test_format_timestamp_rejects_negative():
    with pytest.raises(ValueError):
        format_timestamp(-0.5)


def test_render_srt_numbers_blocks_from_one():
    cues = [
        SubtitleCue(start_seconds=0, end_seconds=2.5, text="Hello"),
        SubtitleCue(start_seconds=2.5, end_seconds=5, text="World"),
    ]
    assert render_srt(cues) == (
        "1\n00:00:00,000 --> 00:00:02,500\nHello\n\n"
        "2\n00:00:02,500 --> 00:00:05,000\nWorld\n\n"
    )


def test_write_srt_for_fallback_script(tmp_path: Path):
    script = fallback_script("space exploration")
    out = write_srt(script.subtitle_cues, tmp_path / "nested" / "job_subtitles.srt")

    text = out.read_text(encoding="utf-8")
    assert text.startswith("1\n00:00:00,000 --> 00:00:10,000\nThis is a video about space exploration.\n")
    assert "3\n00:00:20,000 --> 00:00:30,000\nin detail.\n" in text

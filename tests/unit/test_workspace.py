from __future__ import annotations

import json
from pathlib import Path

from reelsmith.workspace import JobWorkspace


def test_job_paths_are_prefixed(tmp_path: Path):
    ws = JobWorkspace(tmp_path / "temp", tmp_path / "debug")
    assert ws.job_path("job_1", "audio.mp3") == tmp_path / "temp" / "job_1_audio.mp3"


def test_save_debug_accepts_json_text_and_bytes(tmp_path: Path):
    ws = JobWorkspace(tmp_path / "temp", tmp_path / "debug")

    ws.save_debug("a.json", {"script": "hi"})
    ws.save_debug("b.txt", "text")
    ws.save_debug("c.bin", b"\x01\x02")

    assert json.loads((tmp_path / "debug" / "a.json").read_text()) == {"script": "hi"}
    assert (tmp_path / "debug" / "b.txt").read_text() == "text"
    assert (tmp_path / "debug" / "c.bin").read_bytes() == b"\x01\x02"
    assert not [p for p in (tmp_path / "debug").iterdir() if p.name.startswith(".tmp-")]


def test_cleanup_job_only_touches_that_job(tmp_path: Path):
    ws = JobWorkspace(tmp_path / "temp", tmp_path / "debug")
    ws.ensure_directories()
    for name in ("job_1_audio.mp3", "job_1_output.mp4", "job_10_audio.mp3", "job_2_clip_0.mp4"):
        (tmp_path / "temp" / name).write_bytes(b"x")
    ws.save_debug("job_1_script.json", {})

    removed = ws.cleanup_job("job_1")

    assert sorted(p.name for p in removed) == ["job_1_audio.mp3", "job_1_output.mp4"]
    remaining = sorted(p.name for p in (tmp_path / "temp").iterdir())
    assert remaining == ["job_10_audio.mp3", "job_2_clip_0.mp4"]
    assert (tmp_path / "debug" / "job_1_script.json").exists()


def test_cleanup_missing_directory_is_noop(tmp_path: Path):
    assert JobWorkspace(tmp_path / "nope", tmp_path / "debug").cleanup_job("job_1") == []

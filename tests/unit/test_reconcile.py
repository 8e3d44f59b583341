from __future__ import annotations

from pathlib import Path
from typing import List

import pytest

from reelsmith import reconcile
from reelsmith.errors import CommandError, ProbeError
from reelsmith.reconcile import Reconciler, plan_reconciliation, reconcile_command
from reelsmith.workspace import JobWorkspace


def test_longer_video_is_trimmed():
    plan = plan_reconciliation(30.0, 20.0)
    assert plan.mode == "trim"
    assert plan.loop_count == 1
    assert plan.extra_loops == 0
    assert plan.target_s == 20.0


def test_equal_durations_trim():
    plan = plan_reconciliation(20.0, 20.0)
    assert plan.mode == "trim"
    assert plan.loop_count == 1


@pytest.mark.parametrize(
    "video, audio, loops",
    [(10.0, 25.0, 3), (10.0, 30.0, 3), (10.0, 30.5, 4), (7.0, 8.0, 2)],
)
def test_shorter_video_loops_ceil(video, audio, loops):
    plan = plan_reconciliation(video, audio)
    assert plan.mode == "loop"
    assert plan.loop_count == loops
    assert plan.extra_loops == loops - 1
    assert plan.target_s == audio


def test_non_positive_durations_rejected():
    with pytest.raises(ValueError):
        plan_reconciliation(0.0, 10.0)
    with pytest.raises(ValueError):
        plan_reconciliation(10.0, -1.0)


def test_loop_command_repeats_input_and_cuts_to_audio(tmp_path: Path):
    cmd = reconcile_command("in.mp4", plan_reconciliation(10.0, 25.0), tmp_path / "out.mp4")
    assert cmd[:4] == ["ffmpeg", "-y", "-stream_loop", "2"]
    assert cmd[cmd.index("-t") + 1] == "25.000"


def test_trim_command_has_no_stream_loop(tmp_path: Path):
    cmd = reconcile_command("in.mp4", plan_reconciliation(30.0, 20.0), tmp_path / "out.mp4")
    assert "-stream_loop" not in cmd
    assert cmd[cmd.index("-t") + 1] == "20.000"


def _reconciler(pipeline_config) -> Reconciler:
    return Reconciler(pipeline_config, JobWorkspace(pipeline_config.temp_dir, pipeline_config.debug_dir))


def test_reconciler_loops_short_video(monkeypatch, pipeline_config):
    durations = {"video.mp4": 10.0, "audio.mp3": 25.0}
    calls: List[List[str]] = []
    monkeypatch.setattr(reconcile, "probe_duration", lambda path, **_: durations[str(path)])
    monkeypatch.setattr(reconcile, "run_command", lambda cmd, **_: calls.append(cmd))

    out = _reconciler(pipeline_config).reconcile("video.mp4", "audio.mp3", "job_1")

    assert out == str(pipeline_config.temp_dir / "job_1_looped.mp4")
    assert len(calls) == 1
    assert "-stream_loop" in calls[0]


def test_reconciler_trims_long_video(monkeypatch, pipeline_config):
    durations = {"video.mp4": 30.0, "audio.mp3": 12.0}
    monkeypatch.setattr(reconcile, "probe_duration", lambda path, **_: durations[str(path)])
    monkeypatch.setattr(reconcile, "run_command", lambda cmd, **_: None)

    out = _reconciler(pipeline_config).reconcile("video.mp4", "audio.mp3", "job_1")

    assert out.endswith("job_1_trimmed.mp4")


@pytest.mark.parametrize("exc", [ProbeError("no duration"), CommandError("ffprobe exited with 1", exit_code=1)])
def test_probe_failure_returns_original_video(monkeypatch, pipeline_config, exc):
    def _probe(path, **_):
        raise exc

    def _run(cmd, **_):
        raise AssertionError("no render expected")

    monkeypatch.setattr(reconcile, "probe_duration", _probe)
    monkeypatch.setattr(reconcile, "run_command", _run)

    assert _reconciler(pipeline_config).reconcile("video.mp4", "audio.mp3", "job_1") == "video.mp4"


def test_render_failure_propagates(monkeypatch, pipeline_config):
    def _run(cmd, **_):
        raise CommandError("ffmpeg exited with 1", exit_code=1)

    monkeypatch.setattr(reconcile, "probe_duration", lambda path, **_: 5.0 if path == "video.mp4" else 9.0)
    monkeypatch.setattr(reconcile, "run_command", _run)

    with pytest.raises(CommandError):
        _reconciler(pipeline_config).reconcile("video.mp4", "audio.mp3", "job_1")

from __future__ import annotations

import dataclasses
from pathlib import Path
from typing import List

import httpx
import pytest

from reelsmith import telemetry
from reelsmith.adapters import clip
from reelsmith.adapters.clip import ClipAdapter, ClipRequest, escape_drawtext
from reelsmith.errors import CommandError
from reelsmith.schemas import VisualCue
from reelsmith.workspace import JobWorkspace


def _request(tmp_path: Path, descriptor: str = "Rocket launch at dawn") -> ClipRequest:
    cue = VisualCue(index=0, descriptor=descriptor, duration_seconds=10)
    return ClipRequest(cue=cue, output_path=tmp_path / "temp" / "job_1_clip_0.mp4")


@pytest.fixture
def ffmpeg_calls(monkeypatch) -> List[List[str]]:
    calls: List[List[str]] = []

    def _run(cmd, **_):
        calls.append(list(cmd))
        Path(cmd[-1]).write_bytes(b"placeholder")

    monkeypatch.setattr(clip, "run_command", _run)
    return calls


def _hf_client(status: int, content: bytes) -> httpx.Client:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.headers["Authorization"] == "Bearer hf-key"
        return httpx.Response(status, content=content)

    return httpx.Client(transport=httpx.MockTransport(handler))


def test_escape_drawtext_truncates_and_escapes():
    assert escape_drawtext("a" * 80) == "a" * 50
    assert escape_drawtext("Time: 10 o'clock") == "Time\\: 10 o’clock"
    assert escape_drawtext("back\\slash") == "back\\\\slash"


def test_unconfigured_renders_placeholder(tmp_path, pipeline_config, ffmpeg_calls):
    request = _request(tmp_path)

    out = ClipAdapter(pipeline_config).produce(request)

    assert out == request.output_path
    assert len(ffmpeg_calls) == 1
    cmd = ffmpeg_calls[0]
    assert "color=c=blue:s=1280x720:d=10" in cmd
    drawtext = cmd[cmd.index("-vf") + 1]
    assert drawtext.startswith("drawtext=text='Rocket launch at dawn'")


def test_generated_clip_is_written(tmp_path, pipeline_config, ffmpeg_calls):
    config = dataclasses.replace(pipeline_config, huggingface_api_key="hf-key")
    request = _request(tmp_path)

    out = ClipAdapter(config, client=_hf_client(200, b"\x00\x00mp4")).produce(request)

    assert out.read_bytes() == b"\x00\x00mp4"
    assert ffmpeg_calls == []


@pytest.mark.parametrize("status, body", [(410, b"gone"), (503, b"loading"), (200, b"")])
def test_failed_generation_falls_back(tmp_path, pipeline_config, ffmpeg_calls, status, body):
    config = dataclasses.replace(pipeline_config, huggingface_api_key="hf-key")

    ClipAdapter(config, client=_hf_client(status, body)).produce(_request(tmp_path))

    assert len(ffmpeg_calls) == 1
    assert telemetry.get_events("stage.degraded")[-1]["payload"]["stage"] == "clip"


def test_placeholder_failure_is_fatal(tmp_path, pipeline_config, monkeypatch):
    def _run(cmd, **_):
        raise CommandError("ffmpeg exited with 1", exit_code=1)

    monkeypatch.setattr(clip, "run_command", _run)

    with pytest.raises(CommandError):
        ClipAdapter(pipeline_config).produce(_request(tmp_path))


def test_generated_clip_is_copied_to_debug(tmp_path, pipeline_config, ffmpeg_calls):
    config = dataclasses.replace(pipeline_config, huggingface_api_key="hf-key")
    workspace = JobWorkspace(tmp_path / "temp", tmp_path / "debug")

    ClipAdapter(config, client=_hf_client(200, b"\x00\x00mp4"), workspace=workspace).produce(_request(tmp_path))

    assert (tmp_path / "debug" / "job_1_clip_0.mp4").read_bytes() == b"\x00\x00mp4"


def test_placeholder_clip_is_not_copied_to_debug(tmp_path, pipeline_config, ffmpeg_calls):
    workspace = JobWorkspace(tmp_path / "temp", tmp_path / "debug")

    ClipAdapter(pipeline_config, workspace=workspace).produce(_request(tmp_path))

    assert not (tmp_path / "debug").exists()

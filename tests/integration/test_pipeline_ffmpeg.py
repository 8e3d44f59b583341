from __future__ import annotations

import shutil
import subprocess
from pathlib import Path

import pytest

from reelsmith import telemetry
from reelsmith.orchestrator import JobOrchestrator
from reelsmith.queue_runner import JobQueue
from reelsmith.schemas import GenerationRequest
from reelsmith.toolchain import probe_duration
from reelsmith.workspace import JobWorkspace

pytestmark = pytest.mark.integration


def _ffmpeg_has_filters(*names: str) -> bool:
    if not shutil.which("ffmpeg") or not shutil.which("ffprobe"):
        return False
    proc = subprocess.run(["ffmpeg", "-hide_banner", "-filters"], capture_output=True, text=True, check=False)
    listing = proc.stdout
    return all(f" {name} " in listing for name in names)


requires_ffmpeg = pytest.mark.skipif(
    not _ffmpeg_has_filters("drawtext", "subtitles"),
    reason="ffmpeg with drawtext and subtitles filters is not available",
)


@requires_ffmpeg
def test_all_unconfigured_pipeline_reaches_done(pipeline_config):
    queue = JobQueue(JobOrchestrator.from_config(pipeline_config), pipeline_config, scheduler=lambda task: task())

    handle = queue.submit(GenerationRequest(prompt="space exploration"))
    status = queue.status(handle.job_id)

    assert status.state == "completed", status.error
    assert status.progress == 100
    result = status.result
    assert result.upload_urls == {}
    assert "space exploration" in result.script_data.narration

    final = Path(result.final_video_path)
    assert final.name == f"{handle.job_id}_output.mp4"
    assert probe_duration(final) == pytest.approx(30.0, abs=1.0)

    temp = pipeline_config.temp_dir
    assert all((temp / f"{handle.job_id}_clip_{i}.mp4").exists() for i in range(3))
    assert probe_duration(temp / f"{handle.job_id}_audio.mp3") == pytest.approx(30.0, abs=0.5)

    degraded = {e["payload"]["stage"] for e in telemetry.get_events("stage.degraded")}
    assert degraded == {"script", "audio", "clip"}
    assert (pipeline_config.debug_dir / f"{handle.job_id}_script.json").exists()

    removed = JobWorkspace(temp, pipeline_config.debug_dir).cleanup_job(handle.job_id)
    assert final in removed

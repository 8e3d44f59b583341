"""Fit the concatenated video to the narration length.

A video at least as long as the audio is trimmed to the audio duration. A
shorter video is looped ``ceil(audio / video)`` times and then cut to the
audio duration. Equal durations count as trim.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from pathlib import Path
from typing import Literal

from .config import PipelineConfig
from .errors import CommandError, ProbeError
from .toolchain import probe_duration, run_command
from .workspace import JobWorkspace

LOG = logging.getLogger(__name__)

ReconcileMode = Literal["trim", "loop"]


@dataclass(frozen=True)
class ReconcilePlan:
    mode: ReconcileMode
    loop_count: int
    extra_loops: int
    target_s: float


def plan_reconciliation(video_s: float, audio_s: float) -> ReconcilePlan:
    if video_s <= 0 or audio_s <= 0:
        raise ValueError("durations must be greater than zero")
    if video_s >= audio_s:
        return ReconcilePlan(mode="trim", loop_count=1, extra_loops=0, target_s=audio_s)
    loop_count = math.ceil(audio_s / video_s)
    return ReconcilePlan(mode="loop", loop_count=loop_count, extra_loops=loop_count - 1, target_s=audio_s)


def reconcile_command(video_path: Path | str, plan: ReconcilePlan, output_path: Path, ffmpeg_bin: str = "ffmpeg") -> list[str]:
    cmd = [ffmpeg_bin, "-y"]
    if plan.mode == "loop":
        cmd += ["-stream_loop", str(plan.extra_loops)]
    cmd += [
        "-i",
        str(video_path),
        "-t",
        f"{plan.target_s:.3f}",
        "-c:v",
        "libx264",
        "-pix_fmt",
        "yuv420p",
        str(output_path),
    ]
    return cmd


class Reconciler:
    def __init__(self, config: PipelineConfig, workspace: JobWorkspace) -> None:
        self.config = config
        self.workspace = workspace

    def reconcile(self, video_path: Path | str, audio_path: Path | str, job_id: str) -> str:
        """Return the path of a video whose length matches ``audio_path``.

        If either duration cannot be probed the input video is returned
        unchanged. Failures of the trim or loop render propagate.
        """
        try:
            video_s = self._probe(video_path)
            audio_s = self._probe(audio_path)
        except (ProbeError, CommandError) as exc:
            LOG.warning("Could not probe durations, skipping reconciliation: %s", exc)
            return str(video_path)

        LOG.info("Video duration: %.3fs, audio duration: %.3fs", video_s, audio_s)
        plan = plan_reconciliation(video_s, audio_s)
        suffix = "trimmed.mp4" if plan.mode == "trim" else "looped.mp4"
        output = self.workspace.job_path(job_id, suffix)
        if plan.mode == "loop":
            LOG.info("Looping video %d times to match audio", plan.loop_count)
        else:
            LOG.info("Trimming video to %.3fs", plan.target_s)
        run_command(
            reconcile_command(video_path, plan, output, self.config.ffmpeg_bin),
            timeout_s=self.config.ffmpeg_timeout_s,
        )
        return str(output)

    def _probe(self, path: Path | str) -> float:
        return probe_duration(path, ffprobe_bin=self.config.ffprobe_bin, timeout_s=self.config.probe_timeout_s)


__all__ = ["ReconcilePlan", "Reconciler", "plan_reconciliation", "reconcile_command"]

"""Narration synthesis with the edge-tts CLI; silent track fallback."""

from __future__ import annotations

import logging
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from ..config import PipelineConfig
from ..errors import ExternalServiceError
from ..toolchain import run_command
from ..workspace import JobWorkspace
from .base import Result, StageAdapter, guarded

LOG = logging.getLogger(__name__)


@dataclass(frozen=True)
class AudioRequest:
    narration: str
    output_path: Path


def silent_audio_command(output_path: Path, config: PipelineConfig) -> list[str]:
    return [
        config.ffmpeg_bin,
        "-y",
        "-f",
        "lavfi",
        "-i",
        "anullsrc=r=44100:cl=mono",
        "-t",
        f"{config.silent_audio_s:g}",
        "-q:a",
        "9",
        "-acodec",
        "libmp3lame",
        str(output_path),
    ]


class AudioAdapter(StageAdapter[AudioRequest, Path]):
    name = "audio"

    def __init__(self, config: PipelineConfig, *, workspace: Optional[JobWorkspace] = None) -> None:
        self.config = config
        self.workspace = workspace

    def is_configured(self) -> bool:
        return shutil.which(self.config.edge_tts_bin) is not None

    def attempt(self, request: AudioRequest) -> Result[Path]:
        return guarded(lambda: self._synthesize(request))

    def fallback(self, request: AudioRequest, reason: ExternalServiceError) -> Path:
        request.output_path.parent.mkdir(parents=True, exist_ok=True)
        run_command(silent_audio_command(request.output_path, self.config), timeout_s=self.config.ffmpeg_timeout_s)
        LOG.info("Created silent audio: %s", request.output_path)
        return request.output_path

    def _synthesize(self, request: AudioRequest) -> Path:
        request.output_path.parent.mkdir(parents=True, exist_ok=True)
        cmd = [self.config.edge_tts_bin, "--text", request.narration, "--write-media", str(request.output_path)]
        if self.config.tts_voice:
            cmd += ["--voice", self.config.tts_voice]
        run_command(cmd, timeout_s=self.config.tts_timeout_s)
        LOG.info("Audio generated: %s", request.output_path)
        if self.workspace is not None:
            out = request.output_path
            self.workspace.save_debug(f"{out.stem}_raw{out.suffix}", out.read_bytes())
        return request.output_path


__all__ = ["AudioAdapter", "AudioRequest", "silent_audio_command"]

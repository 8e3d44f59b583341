"""Per-cue clip generation via Hugging Face text-to-video, with placeholder clips."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import httpx

from ..config import PipelineConfig
from ..errors import ErrorKind, ExternalServiceError
from ..schemas import VisualCue
from ..toolchain import run_command
from ..workspace import JobWorkspace
from .base import Result, StageAdapter, guarded

LOG = logging.getLogger(__name__)

PLACEHOLDER_TEXT_LIMIT = 50


@dataclass(frozen=True)
class ClipRequest:
    cue: VisualCue
    output_path: Path


def escape_drawtext(text: str, limit: int = PLACEHOLDER_TEXT_LIMIT) -> str:
    """Truncate ``text`` and escape it for a quoted drawtext ``text=`` value."""

    clipped = text[:limit]
    return clipped.replace("\\", "\\\\").replace("'", "’").replace(":", "\\:")


def placeholder_command(request: ClipRequest, config: PipelineConfig) -> list[str]:
    cue = request.cue
    text = escape_drawtext(cue.descriptor)
    return [
        config.ffmpeg_bin,
        "-y",
        "-f",
        "lavfi",
        "-i",
        f"color=c={config.placeholder_color}:s={config.placeholder_size}:d={cue.duration_seconds:g}",
        "-vf",
        (
            f"drawtext=text='{text}':expansion=none:fontsize=24:fontcolor=white:"
            "x=(w-text_w)/2:y=(h-text_h)/2"
        ),
        "-c:v",
        "libx264",
        "-pix_fmt",
        "yuv420p",
        str(request.output_path),
    ]


class ClipAdapter(StageAdapter[ClipRequest, Path]):
    name = "clip"

    def __init__(
        self,
        config: PipelineConfig,
        *,
        client: Optional[httpx.Client] = None,
        workspace: Optional[JobWorkspace] = None,
    ) -> None:
        self.config = config
        self._client = client
        self.workspace = workspace

    def is_configured(self) -> bool:
        return bool(self.config.huggingface_api_key)

    def attempt(self, request: ClipRequest) -> Result[Path]:
        return guarded(lambda: self._generate(request))

    def fallback(self, request: ClipRequest, reason: ExternalServiceError) -> Path:
        # no substitute exists for a failed placeholder; CommandError propagates
        request.output_path.parent.mkdir(parents=True, exist_ok=True)
        run_command(placeholder_command(request, self.config), timeout_s=self.config.ffmpeg_timeout_s)
        LOG.info("Created placeholder video: %s", request.output_path)
        return request.output_path

    def _generate(self, request: ClipRequest) -> Path:
        LOG.info("Generating video for: %s", request.cue.descriptor)
        client = self._client or httpx.Client()
        try:
            response = client.post(
                self.config.resolved_inference_url,
                json={"inputs": request.cue.descriptor},
                headers={
                    "Authorization": f"Bearer {self.config.huggingface_api_key}",
                    "Accept": "video/mp4",
                },
                timeout=self.config.clip_timeout_s,
            )
        finally:
            if self._client is None:
                client.close()
        if response.status_code == 410:
            LOG.error(
                "Hugging Face model is no longer available (410); update HUGGINGFACE_VIDEO_MODEL "
                "or HUGGINGFACE_INFERENCE_URL. Current model: %s",
                self.config.huggingface_video_model,
            )
        response.raise_for_status()
        if not response.content:
            raise ExternalServiceError(ErrorKind.INVALID_RESPONSE, "inference returned an empty body")
        request.output_path.parent.mkdir(parents=True, exist_ok=True)
        request.output_path.write_bytes(response.content)
        LOG.info("Video generated: %s", request.output_path)
        if self.workspace is not None:
            self.workspace.save_debug(request.output_path.name, response.content)
        return request.output_path


__all__ = ["ClipAdapter", "ClipRequest", "escape_drawtext", "placeholder_command", "PLACEHOLDER_TEXT_LIMIT"]

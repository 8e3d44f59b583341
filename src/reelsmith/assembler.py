"""Concatenate clips, fit them to the narration, and burn in subtitles."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, Sequence

from .config import PipelineConfig
from .errors import AssemblyError, CommandError
from .reconcile import Reconciler
from .schemas import MediaArtifacts
from .toolchain import run_command
from .workspace import JobWorkspace

LOG = logging.getLogger(__name__)


def escape_subtitle_filter_path(path: Path | str) -> str:
    """Escape ``path`` for use inside ``subtitles='...'`` in an ffmpeg filter graph.

    Backslash is literal inside the quotes, so an apostrophe closes the quote,
    emits ``\\\\\\'`` (``\\'`` once the graph level unescapes it) and reopens.
    """

    return str(path).replace("\\", "/").replace(":", "\\:").replace("'", r"'\\\''")


def _concat_line(path: Path | str) -> str:
    resolved = str(Path(path).resolve()).replace("'", "'\\''")
    return f"file '{resolved}'\n"


def mux_command(
    video_path: Path | str,
    audio_path: Path | str,
    subtitle_path: Path | str,
    output_path: Path,
    ffmpeg_bin: str = "ffmpeg",
) -> list[str]:
    return [
        ffmpeg_bin,
        "-y",
        "-i",
        str(video_path),
        "-i",
        str(audio_path),
        "-map",
        "0:v:0",
        "-map",
        "1:a:0",
        "-c:v",
        "libx264",
        "-c:a",
        "aac",
        "-shortest",
        "-vf",
        f"subtitles='{escape_subtitle_filter_path(subtitle_path)}'",
        str(output_path),
    ]


class MediaAssembler:
    def __init__(
        self,
        config: PipelineConfig,
        workspace: JobWorkspace,
        *,
        reconciler: Optional[Reconciler] = None,
    ) -> None:
        self.config = config
        self.workspace = workspace
        self.reconciler = reconciler or Reconciler(config, workspace)

    def assemble(self, media: MediaArtifacts, job_id: str) -> str:
        LOG.info("Starting video assembly for %s", job_id)
        concatenated = self.concatenate(media.clip_paths, job_id)
        fitted = self.reconciler.reconcile(concatenated, media.audio_path, job_id)
        return self.mux(fitted, media.audio_path, media.subtitle_path, job_id)

    def concatenate(self, clip_paths: Sequence[str], job_id: str) -> str:
        if not clip_paths:
            raise AssemblyError("no clips to concatenate", metadata={"job_id": job_id})
        list_path = self.workspace.job_path(job_id, "concat.txt")
        output = self.workspace.job_path(job_id, "concatenated.mp4")
        list_path.parent.mkdir(parents=True, exist_ok=True)
        list_path.write_text("".join(_concat_line(p) for p in clip_paths), encoding="utf-8")
        cmd = [
            self.config.ffmpeg_bin,
            "-y",
            "-f",
            "concat",
            "-safe",
            "0",
            "-i",
            str(list_path),
            "-c",
            "copy",
            str(output),
        ]
        self._run("concat", cmd, job_id)
        LOG.info("Videos concatenated: %s", output)
        return str(output)

    def mux(self, video_path: str, audio_path: str, subtitle_path: str, job_id: str) -> str:
        output = self.workspace.job_path(job_id, "output.mp4")
        cmd = mux_command(video_path, audio_path, subtitle_path, output, self.config.ffmpeg_bin)
        self._run("mux", cmd, job_id)
        LOG.info("Final video created: %s", output)
        return str(output)

    def _run(self, step: str, cmd: list[str], job_id: str) -> None:
        try:
            run_command(cmd, timeout_s=self.config.ffmpeg_timeout_s)
        except CommandError as exc:
            raise AssemblyError(
                f"{step} failed: {exc}",
                metadata={"job_id": job_id, "step": step, "exit_code": exc.exit_code, "stderr": exc.stderr_tail},
            ) from exc


__all__ = ["MediaAssembler", "escape_subtitle_filter_path", "mux_command"]

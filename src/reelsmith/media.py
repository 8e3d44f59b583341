from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import List

from .adapters.audio import AudioAdapter, AudioRequest
from .adapters.clip import ClipAdapter, ClipRequest
from .schemas import MediaArtifacts, ScriptData, VisualCue
from .subtitles import write_srt
from .workspace import JobWorkspace

LOG = logging.getLogger(__name__)


class MediaStage:
    """Media boundary: narration audio, one clip per visual cue, and an SRT file.

    Audio and each clip degrade independently through their adapters. Output
    files are keyed by job id so a redelivered job overwrites its own files.
    """

    def __init__(
        self,
        audio: AudioAdapter,
        clips: ClipAdapter,
        workspace: JobWorkspace,
        *,
        clip_workers: int = 1,
    ) -> None:
        self.audio = audio
        self.clips = clips
        self.workspace = workspace
        self.clip_workers = max(1, clip_workers)

    def generate(self, script: ScriptData, job_id: str) -> MediaArtifacts:
        LOG.info("Starting media generation for %s", job_id)
        audio_path = self.audio.produce(
            AudioRequest(narration=script.narration, output_path=self.workspace.job_path(job_id, "audio.mp3"))
        )
        clip_paths = self._generate_clips(script.visual_cues, job_id)
        subtitle_path = write_srt(script.subtitle_cues, self.workspace.job_path(job_id, "subtitles.srt"))
        return MediaArtifacts(
            audio_path=str(audio_path),
            subtitle_path=str(subtitle_path),
            clip_paths=[str(p) for p in clip_paths],
        )

    def _generate_clips(self, cues: List[VisualCue], job_id: str) -> List[Path]:
        LOG.info("Generating %d video clips", len(cues))
        requests = [
            ClipRequest(cue=cue, output_path=self.workspace.job_path(job_id, f"clip_{cue.index}.mp4"))
            for cue in cues
        ]
        if self.clip_workers == 1 or len(requests) < 2:
            return [self.clips.produce(req) for req in requests]
        with ThreadPoolExecutor(max_workers=self.clip_workers, thread_name_prefix="clip") as pool:
            # map() yields in submission order, which is cue order
            return list(pool.map(self.clips.produce, requests))


__all__ = ["MediaStage"]

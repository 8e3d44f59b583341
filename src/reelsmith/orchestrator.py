"""Run one job through script, media, assembly and publishing."""

from __future__ import annotations

import logging
import threading
from typing import Callable, Optional

from . import telemetry
from .adapters import AudioAdapter, ClipAdapter, ScriptAdapter, ScriptStage
from .assembler import MediaAssembler
from .config import PipelineConfig
from .media import MediaStage
from .publisher import Publisher
from .schemas import GenerationRequest, JobResult, Progress
from .workspace import JobWorkspace

LOG = logging.getLogger(__name__)

ProgressCallback = Callable[[int], None]


class ProgressReporter:
    """Forward progress values, clamped to [0, 100] and never decreasing."""

    def __init__(self, job_id: str, callback: Optional[ProgressCallback] = None) -> None:
        self.job_id = job_id
        self._callback = callback
        self._value = 0
        self._lock = threading.Lock()

    @property
    def value(self) -> int:
        return self._value

    def __call__(self, value: int) -> None:
        clamped = max(0, min(100, int(value)))
        with self._lock:
            if clamped < self._value:
                return
            self._value = clamped
        telemetry.emit_event("job.progress", {"job_id": self.job_id, "progress": clamped})
        if self._callback is not None:
            self._callback(clamped)


class JobOrchestrator:
    def __init__(
        self,
        script_stage: ScriptStage,
        media_stage: MediaStage,
        assembler: MediaAssembler,
        publisher: Publisher,
    ) -> None:
        self.script_stage = script_stage
        self.media_stage = media_stage
        self.assembler = assembler
        self.publisher = publisher

    @classmethod
    def from_config(cls, config: PipelineConfig) -> JobOrchestrator:
        workspace = JobWorkspace(config.temp_dir, config.debug_dir)
        workspace.ensure_directories()
        return cls(
            script_stage=ScriptStage(ScriptAdapter(config), workspace),
            media_stage=MediaStage(
                AudioAdapter(config, workspace=workspace),
                ClipAdapter(config, workspace=workspace),
                workspace,
                clip_workers=config.clip_workers,
            ),
            assembler=MediaAssembler(config, workspace),
            publisher=Publisher.from_config(config),
        )

    def run(
        self,
        job_id: str,
        request: GenerationRequest,
        report_progress: Optional[ProgressCallback] = None,
    ) -> JobResult:
        """Produce the final video for ``request``.

        Progress is reported after each stage completes: 10 on start, 25
        after the script, 50 after media, 75 after assembly, 90 after
        publishing, 100 on completion. Script, media and assembly failures
        propagate to the caller; publishing failures never do.
        """
        progress = ProgressReporter(job_id, report_progress)
        LOG.info("Processing job %s: %s", job_id, request.prompt)
        try:
            progress(Progress.ACCEPTED)

            script = self.script_stage.generate(request.prompt, job_id)
            progress(Progress.SCRIPT_READY)

            media = self.media_stage.generate(script, job_id)
            progress(Progress.MEDIA_READY)

            final_video = self.assembler.assemble(media, job_id)
            progress(Progress.ASSEMBLED)
        except Exception as exc:
            LOG.error("Job %s failed: %s", job_id, exc)
            telemetry.emit_event("job.failed", {"job_id": job_id, "error": str(exc)[:200]})
            raise

        upload_urls = {}
        destinations = request.destinations()
        if destinations:
            upload_urls = self.publisher.publish(
                final_video,
                title=request.resolved_title(),
                description=request.resolved_description(),
                tags=request.resolved_tags(),
                destinations=destinations,
            )
        progress(Progress.PUBLISHED)

        result = JobResult(
            success=True,
            job_id=job_id,
            final_video_path=final_video,
            upload_urls=upload_urls,
            script_data=script,
        )
        progress(Progress.DONE)
        LOG.info("Job %s completed: %s", job_id, final_video)
        telemetry.emit_event("job.completed", {"job_id": job_id, "final_video_path": final_video})
        return result


__all__ = ["JobOrchestrator", "ProgressReporter", "ProgressCallback"]

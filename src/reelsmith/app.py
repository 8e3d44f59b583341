"""HTTP surface: submit a prompt, poll job status, list recent jobs."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, PlainTextResponse
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .config import PipelineConfig
from .errors import JobNotFoundError
from .orchestrator import JobOrchestrator
from .queue_runner import JobQueue
from .schemas import GenerationRequest, UploadFlags

LOG = logging.getLogger(__name__)

HEALTH_MESSAGE = "Reelsmith video generation API is running!"


class GenerateVideoBody(BaseModel):
    model_config = ConfigDict(extra="ignore")

    prompt: str = Field(..., min_length=1)
    uploadToYoutube: bool = False
    uploadToTiktok: bool = False
    title: Optional[str] = None
    description: Optional[str] = None
    tags: Optional[str] = None

    def to_request(self) -> GenerationRequest:
        return GenerationRequest(
            prompt=self.prompt,
            upload=UploadFlags(to_youtube=self.uploadToYoutube, to_tiktok=self.uploadToTiktok),
            title=self.title,
            description=self.description,
            tags_csv=self.tags,
        )


def _bad_request(exc: RequestValidationError | ValidationError) -> JSONResponse:
    detail = [{"loc": list(err.get("loc", ())), "msg": err.get("msg", "")} for err in exc.errors()]
    return JSONResponse(status_code=400, content={"error": "Invalid request", "detail": detail})


def create_app(queue: Optional[JobQueue] = None, config: Optional[PipelineConfig] = None) -> FastAPI:
    """Build the API around ``queue``; a default queue is wired from ``config``."""

    if queue is None:
        cfg = config or PipelineConfig.from_env()
        queue = JobQueue(JobOrchestrator.from_config(cfg), cfg)

    app = FastAPI(title="Reelsmith")
    app.state.queue = queue

    @app.exception_handler(RequestValidationError)
    async def _validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        return _bad_request(exc)

    @app.get("/video", response_class=PlainTextResponse)
    def health() -> str:
        return HEALTH_MESSAGE

    @app.post("/video/generate", status_code=201)
    def generate(body: GenerateVideoBody):
        try:
            request = body.to_request()
        except ValidationError as exc:
            return _bad_request(exc)
        handle = queue.submit(request)
        LOG.info("Accepted job %s", handle.job_id)
        return {"message": "Video generation job started", "jobId": handle.job_id, "status": "queued"}

    @app.get("/video/status/{job_id}")
    def status(job_id: str):
        try:
            job = queue.status(job_id)
        except JobNotFoundError:
            return JSONResponse(status_code=404, content={"error": "Job not found"})
        payload: Dict[str, Any] = {
            "jobId": job.job_id,
            "state": job.state,
            "progress": job.progress,
            "attempts": job.attempts,
            "result": job.result.to_wire() if job.result else None,
        }
        if job.error:
            payload["error"] = job.error
        return payload

    @app.get("/video/jobs")
    def jobs() -> Dict[str, Any]:
        summary = queue.list_jobs()
        return {
            "waiting": summary.waiting,
            "active": summary.active,
            "delayed": summary.delayed,
            "completed": summary.completed,
            "failed": summary.failed,
            "jobs": {
                state: [
                    {
                        "id": entry.id,
                        "prompt": entry.prompt,
                        "result": entry.result.to_wire() if entry.result else None,
                        "error": entry.error,
                    }
                    for entry in entries
                ]
                for state, entries in summary.jobs.items()
            },
        }

    return app


__all__ = ["GenerateVideoBody", "HEALTH_MESSAGE", "create_app"]

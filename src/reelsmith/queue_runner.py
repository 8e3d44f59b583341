"""In-process job queue with at-least-once delivery and exponential retry.

Submitting a request returns a handle immediately; the job is delivered to
the orchestrator by the scheduler. A raised exception moves the job to
``delayed`` and it is redelivered after a backoff until ``max_attempts`` is
reached, after which it is ``failed`` with the last error message.
"""

from __future__ import annotations

import logging
import threading
import time
import uuid
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional

from . import telemetry
from .config import PipelineConfig
from .errors import JobNotFoundError
from .orchestrator import JobOrchestrator
from .retry import exponential_backoff
from .schemas import GenerationRequest, JobResult, JobsSummary, JobState, JobStatus, JobSummaryEntry

LOG = logging.getLogger(__name__)

RECENT_LIMIT = 10
FINISHED_RETENTION = 500

Scheduler = Callable[[Callable[[], None]], None]


def _default_scheduler(task: Callable[[], None]) -> None:
    thread = threading.Thread(target=task, name="job-delivery", daemon=True)
    thread.start()


def new_job_id(clock: Callable[[], float] = time.time) -> str:
    return f"job_{int(clock() * 1000)}_{uuid.uuid4().hex[:9]}"


@dataclass(frozen=True)
class JobHandle:
    job_id: str


@dataclass
class JobRecord:
    job_id: str
    request: GenerationRequest
    state: JobState = "waiting"
    progress: int = 0
    attempts: int = 0
    result: Optional[JobResult] = None
    error: Optional[str] = None
    created_at: float = field(default_factory=time.time)
    finished_at: Optional[float] = None

    def to_status(self) -> JobStatus:
        return JobStatus(
            job_id=self.job_id,
            state=self.state,
            progress=self.progress,
            attempts=self.attempts,
            result=self.result if self.state == "completed" else None,
            error=self.error if self.state == "failed" else None,
        )

    def to_entry(self) -> JobSummaryEntry:
        return JobSummaryEntry(id=self.job_id, prompt=self.request.prompt, result=self.result, error=self.error)


class JobQueue:
    def __init__(
        self,
        orchestrator: JobOrchestrator,
        config: PipelineConfig,
        *,
        scheduler: Optional[Scheduler] = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.time,
        retain_finished: int = FINISHED_RETENTION,
    ) -> None:
        self.orchestrator = orchestrator
        self.retain_finished = max(RECENT_LIMIT, retain_finished)
        self.max_attempts = config.max_attempts
        self.backoff = exponential_backoff(
            base=config.backoff_base_s,
            factor=config.backoff_factor,
            max_backoff=config.backoff_max_s,
        )
        self._scheduler = scheduler or _default_scheduler
        self._sleep = sleep
        self._clock = clock
        self._slots = threading.BoundedSemaphore(config.queue_workers)
        self._jobs: Dict[str, JobRecord] = {}
        self._lock = threading.Lock()

    def submit(self, request: GenerationRequest) -> JobHandle:
        job_id = new_job_id(self._clock)
        record = JobRecord(job_id=job_id, request=request, created_at=self._clock())
        with self._lock:
            self._jobs[job_id] = record
        LOG.info("Queued job %s", job_id)
        self._scheduler(lambda: self._deliver(record))
        return JobHandle(job_id=job_id)

    def status(self, job_id: str) -> JobStatus:
        with self._lock:
            record = self._jobs.get(job_id)
            if record is None:
                raise JobNotFoundError(job_id)
            return record.to_status()

    def list_jobs(self) -> JobsSummary:
        with self._lock:
            records = list(self._jobs.values())
        by_state: Dict[str, List[JobRecord]] = {s: [] for s in ("waiting", "active", "delayed", "completed", "failed")}
        for record in records:
            by_state[record.state].append(record)
        for finished in ("completed", "failed"):
            by_state[finished].sort(key=lambda r: r.finished_at or 0.0, reverse=True)
        jobs = {
            state: [r.to_entry() for r in (items[:RECENT_LIMIT] if state in ("completed", "failed") else items)]
            for state, items in by_state.items()
        }
        return JobsSummary(
            waiting=len(by_state["waiting"]),
            active=len(by_state["active"]),
            delayed=len(by_state["delayed"]),
            completed=len(by_state["completed"]),
            failed=len(by_state["failed"]),
            jobs=jobs,
        )

    def _evict_finished(self) -> None:
        """Drop the oldest finished records beyond ``retain_finished``. Caller holds the lock."""

        finished = [r for r in self._jobs.values() if r.state in ("completed", "failed")]
        if len(finished) <= self.retain_finished:
            return
        finished.sort(key=lambda r: r.finished_at or 0.0)
        for record in finished[: len(finished) - self.retain_finished]:
            del self._jobs[record.job_id]
            LOG.debug("Evicted finished job %s", record.job_id)

    def _set_progress(self, record: JobRecord, value: int) -> None:
        with self._lock:
            record.progress = max(record.progress, value)

    def _deliver(self, record: JobRecord) -> None:
        while True:
            with self._slots:
                with self._lock:
                    record.state = "active"
                    record.attempts += 1
                    attempt = record.attempts
                LOG.info("Starting job %s (attempt %d/%d)", record.job_id, attempt, self.max_attempts)
                try:
                    result = self.orchestrator.run(
                        record.job_id,
                        record.request,
                        lambda value: self._set_progress(record, value),
                    )
                except Exception as exc:
                    error = str(exc) or type(exc).__name__
                else:
                    with self._lock:
                        record.state = "completed"
                        record.result = result
                        record.error = None
                        record.finished_at = self._clock()
                        self._evict_finished()
                    return

            if attempt >= self.max_attempts:
                with self._lock:
                    record.state = "failed"
                    record.error = error
                    record.finished_at = self._clock()
                    self._evict_finished()
                LOG.error("Job %s failed after %d attempts: %s", record.job_id, attempt, error)
                return

            delay = self.backoff(attempt)
            with self._lock:
                record.state = "delayed"
                record.error = error
            LOG.warning("Job %s attempt %d failed, retrying in %.1fs: %s", record.job_id, attempt, delay, error)
            telemetry.emit_event(
                "job.retry_scheduled",
                {"job_id": record.job_id, "attempt": attempt, "delay_s": delay, "error": error[:200]},
            )
            self._sleep(delay)


__all__ = ["FINISHED_RETENTION", "JobHandle", "JobQueue", "JobRecord", "Scheduler", "new_job_id", "RECENT_LIMIT"]

"""Error types shared by the pipeline.

Two classes of failure exist. :class:`ExternalServiceError` is the degraded
class: stage adapters return it from ``attempt`` and substitute a fallback.
:class:`AssemblyError` and anything uncaught by an adapter are fatal and
propagate to the queue boundary, which retries the job.
"""

from __future__ import annotations

import enum
from typing import Any, Mapping


class ReelsmithError(RuntimeError):
    """Base error for the package."""


class ErrorKind(str, enum.Enum):
    UNCONFIGURED = "unconfigured"
    REQUEST_FAILED = "request_failed"
    TIMEOUT = "timeout"
    INVALID_RESPONSE = "invalid_response"


class ExternalServiceError(ReelsmithError):
    def __init__(self, kind: ErrorKind, detail: str) -> None:
        super().__init__(f"{kind.value}: {detail}")
        self.kind = kind
        self.detail = detail


class CommandError(ReelsmithError):
    def __init__(self, message: str, *, stdout: str = "", stderr: str = "", exit_code: int = -1) -> None:
        super().__init__(message)
        self.stdout = stdout
        self.stderr = stderr
        self.exit_code = exit_code

    @property
    def stderr_tail(self) -> str:
        return self.stderr[-1024:]


class CommandTimeoutError(CommandError):
    pass


class ProbeError(ReelsmithError):
    """Raised when ffprobe output has no usable duration."""


class AssemblyError(ReelsmithError):
    def __init__(self, message: str, *, metadata: Mapping[str, Any] | None = None) -> None:
        super().__init__(message)
        self.metadata = dict(metadata or {})


class JobNotFoundError(ReelsmithError, KeyError):
    def __init__(self, job_id: str) -> None:
        super().__init__(f"Job not found: {job_id}")
        self.job_id = job_id

    def __str__(self) -> str:
        return f"Job not found: {self.job_id}"


__all__ = [
    "ReelsmithError",
    "ErrorKind",
    "ExternalServiceError",
    "CommandError",
    "CommandTimeoutError",
    "ProbeError",
    "AssemblyError",
    "JobNotFoundError",
]

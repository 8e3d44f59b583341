"""Uniform attempt-then-fallback contract for stage adapters.

``attempt`` reports failure as an :class:`Err` value instead of raising, and
``produce`` is the only entry point the pipeline uses: it short-circuits to
the deterministic fallback when the capability is unconfigured and
substitutes it whenever ``attempt`` returns an error.
"""

from __future__ import annotations

import abc
import logging
from dataclasses import dataclass
from typing import Callable, Generic, TypeVar, Union

import httpx
from pydantic import ValidationError

from .. import telemetry
from ..errors import CommandTimeoutError, ErrorKind, ExternalServiceError

LOG = logging.getLogger(__name__)

In = TypeVar("In")
Out = TypeVar("Out")
T = TypeVar("T")


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T


@dataclass(frozen=True)
class Err:
    error: ExternalServiceError


Result = Union[Ok[T], Err]


def classify_exception(exc: BaseException) -> ExternalServiceError:
    """Map an exception raised by a capability call onto an error kind."""

    if isinstance(exc, ExternalServiceError):
        return exc
    if isinstance(exc, (httpx.TimeoutException, CommandTimeoutError)):
        return ExternalServiceError(ErrorKind.TIMEOUT, str(exc) or type(exc).__name__)
    if isinstance(exc, (ValidationError, ValueError)):
        return ExternalServiceError(ErrorKind.INVALID_RESPONSE, str(exc))
    return ExternalServiceError(ErrorKind.REQUEST_FAILED, str(exc) or type(exc).__name__)


def guarded(fn: Callable[[], T]) -> Result[T]:
    try:
        return Ok(fn())
    except Exception as exc:
        return Err(classify_exception(exc))


class StageAdapter(abc.ABC, Generic[In, Out]):
    name: str = "stage"

    @abc.abstractmethod
    def is_configured(self) -> bool:
        ...

    @abc.abstractmethod
    def attempt(self, request: In) -> Result[Out]:
        ...

    @abc.abstractmethod
    def fallback(self, request: In, reason: ExternalServiceError) -> Out:
        ...

    def produce(self, request: In) -> Out:
        if not self.is_configured():
            reason = ExternalServiceError(ErrorKind.UNCONFIGURED, f"{self.name} capability is not configured")
            LOG.info("%s not configured, using fallback", self.name)
            self._record_degraded(reason)
            return self.fallback(request, reason)
        outcome = self.attempt(request)
        if isinstance(outcome, Ok):
            return outcome.value
        LOG.warning("%s failed (%s), using fallback: %s", self.name, outcome.error.kind.value, outcome.error.detail)
        self._record_degraded(outcome.error)
        return self.fallback(request, outcome.error)

    def _record_degraded(self, reason: ExternalServiceError) -> None:
        telemetry.emit_event(
            "stage.degraded",
            {"stage": self.name, "kind": reason.kind.value, "detail": reason.detail[:200]},
        )


__all__ = ["Ok", "Err", "Result", "StageAdapter", "classify_exception", "guarded"]

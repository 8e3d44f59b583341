"""Bounded subprocess invocation for ffmpeg, ffprobe and edge-tts."""

from __future__ import annotations

import json
import logging
import os
import shlex
import signal
import subprocess
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Sequence

from .errors import CommandError, CommandTimeoutError, ProbeError

LOG = logging.getLogger(__name__)


@dataclass(frozen=True)
class CommandResult:
    exit_code: int
    stdout: str
    stderr: str
    duration_s: float


def run_command(
    cmd: Sequence[str],
    *,
    timeout_s: float | None = 600.0,
    cwd: Path | None = None,
    env: Mapping[str, str] | None = None,
) -> CommandResult:
    """Run ``cmd`` to completion; raise unless it exits 0 within ``timeout_s``."""

    argv = [str(part) for part in cmd]
    LOG.debug("exec: %s", shlex.join(argv))
    start = time.monotonic()
    try:
        proc = subprocess.Popen(  # noqa: S603
            argv,
            cwd=str(cwd) if cwd else None,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
            encoding="utf-8",
            errors="replace",
            env=dict(env) if env is not None else None,
            start_new_session=True,
        )
    except FileNotFoundError as exc:
        raise CommandError(f"{argv[0]} not found", stderr=str(exc), exit_code=127) from exc

    try:
        stdout, stderr = proc.communicate(timeout=timeout_s)
    except subprocess.TimeoutExpired:
        _terminate_process(proc)
        stdout, stderr = proc.communicate()
        raise CommandTimeoutError(
            f"{argv[0]} timed out after {timeout_s}s",
            stdout=stdout or "",
            stderr=stderr or "",
            exit_code=proc.returncode if proc.returncode is not None else -9,
        )
    duration = time.monotonic() - start
    if proc.returncode != 0:
        LOG.debug("%s stderr tail: %s", argv[0], (stderr or "")[-1024:])
        raise CommandError(
            f"{argv[0]} exited with {proc.returncode}",
            stdout=stdout or "",
            stderr=stderr or "",
            exit_code=proc.returncode,
        )
    return CommandResult(exit_code=0, stdout=stdout or "", stderr=stderr or "", duration_s=duration)


def probe_duration(path: Path | str, *, ffprobe_bin: str = "ffprobe", timeout_s: float = 30.0) -> float:
    result = run_command(
        [ffprobe_bin, "-v", "error", "-show_entries", "format=duration", "-of", "json", str(path)],
        timeout_s=timeout_s,
    )
    try:
        duration = float(json.loads(result.stdout)["format"]["duration"])
    except (ValueError, KeyError, TypeError) as exc:
        raise ProbeError(f"no duration reported for {path}") from exc
    if duration <= 0:
        raise ProbeError(f"non-positive duration {duration} for {path}")
    return duration


def _terminate_process(proc: subprocess.Popen[str]) -> None:
    try:
        os.killpg(os.getpgid(proc.pid), signal.SIGKILL)
    except (AttributeError, ProcessLookupError, PermissionError):
        proc.kill()


__all__ = ["CommandResult", "run_command", "probe_duration"]

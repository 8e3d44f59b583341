from __future__ import annotations

import json
import logging
import os
import threading
from collections import deque
from typing import Any, Deque, Dict, List, Optional

LOG = logging.getLogger(__name__)

MAX_EVENTS = 10_000

_EVENTS: Deque[Dict[str, Any]] = deque(maxlen=MAX_EVENTS)
_LOCK = threading.Lock()


def emit_event(name: str, payload: Optional[Dict[str, Any]] = None) -> None:
    """Record a telemetry event in-process and optionally append it to a JSONL file.

    Tests can inspect `get_events()` to verify expected emissions. Set
    ``REELSMITH_TELEMETRY_LOG`` to persist events.
    """
    ev: Dict[str, Any] = {"name": name, "payload": payload or {}}
    with _LOCK:
        _EVENTS.append(ev)
    log_path = os.environ.get("REELSMITH_TELEMETRY_LOG")
    if log_path:
        try:
            with open(log_path, "a", encoding="utf-8") as fh:
                fh.write(json.dumps(ev, default=str) + "\n")
        except OSError as exc:
            LOG.debug("telemetry sink unavailable: %s", exc)


def get_events(name: Optional[str] = None) -> List[Dict[str, Any]]:
    """Return a copy of recorded events, optionally filtered by name."""
    with _LOCK:
        events = list(_EVENTS)
    if name is None:
        return events
    return [ev for ev in events if ev["name"] == name]


def clear_events() -> None:
    with _LOCK:
        _EVENTS.clear()


__all__ = ["emit_event", "get_events", "clear_events", "MAX_EVENTS"]

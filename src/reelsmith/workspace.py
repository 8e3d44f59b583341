"""Job-scoped file layout for intermediate and final artifacts.

All files produced for a job live in ``temp_dir`` and are named
``<job_id>_<suffix>`` so concurrent jobs never collide and cleanup can be
scoped to a single job. Debug copies (script JSON, raw audio/clips) go to
``debug_dir`` and are never removed by :meth:`JobWorkspace.cleanup_job`.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, List

LOG = logging.getLogger(__name__)


class JobWorkspace:
    def __init__(self, temp_dir: Path | str, debug_dir: Path | str) -> None:
        self.temp_dir = Path(temp_dir)
        self.debug_dir = Path(debug_dir)

    def ensure_directories(self) -> None:
        for directory in (self.temp_dir, self.debug_dir):
            if not directory.exists():
                directory.mkdir(parents=True, exist_ok=True)
                LOG.info("Created directory: %s", directory)

    def temp_path(self, name: str) -> Path:
        return self.temp_dir / name

    def debug_path(self, name: str) -> Path:
        return self.debug_dir / name

    def job_path(self, job_id: str, suffix: str) -> Path:
        return self.temp_dir / f"{job_id}_{suffix}"

    def save_debug(self, name: str, content: Any) -> Path:
        path = self.debug_path(name)
        if isinstance(content, bytes):
            data = content
        elif isinstance(content, str):
            data = content.encode("utf-8")
        else:
            data = json.dumps(content, indent=2, ensure_ascii=False).encode("utf-8")
        _atomic_write_bytes(path, data)
        LOG.debug("Saved debug file: %s", path)
        return path

    def cleanup_job(self, job_id: str) -> List[Path]:
        """Delete temp files for ``job_id``; return the removed paths."""

        removed: List[Path] = []
        if not self.temp_dir.exists():
            return removed
        prefix = f"{job_id}_"
        for entry in sorted(self.temp_dir.iterdir()):
            if entry.is_file() and entry.name.startswith(prefix):
                entry.unlink()
                removed.append(entry)
                LOG.info("Cleaned up: %s", entry)
        return removed


def _atomic_write_bytes(path: Path, data: bytes) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_path = tempfile.mkstemp(prefix=".tmp-", dir=str(path.parent))
    try:
        with os.fdopen(fd, "wb") as fh:
            fh.write(data)
            fh.flush()
            os.fsync(fh.fileno())
        os.replace(tmp_path, path)
        tmp_path = None
    finally:
        if tmp_path is not None and os.path.exists(tmp_path):
            os.remove(tmp_path)


__all__ = ["JobWorkspace"]

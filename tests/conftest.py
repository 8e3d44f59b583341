"""Test configuration helpers."""
from __future__ import annotations

import sys
from pathlib import Path
from typing import Iterator

import pytest


def _ensure_src_on_path() -> None:
    root = Path(__file__).resolve().parents[1]
    src = root / "src"
    for entry in (src, root):
        entry_str = str(entry)
        if entry_str not in sys.path:
            sys.path.insert(0, entry_str)


_ensure_src_on_path()

from reelsmith import telemetry  # noqa: E402
from reelsmith.config import PipelineConfig  # noqa: E402


@pytest.fixture
def pipeline_config(tmp_path: Path) -> PipelineConfig:
    """Config with every capability unconfigured and files rooted at ``tmp_path``."""

    return PipelineConfig(
        temp_dir=tmp_path / "temp",
        debug_dir=tmp_path / "debug",
        edge_tts_bin="edge-tts-not-installed",
        backoff_base_s=0.0,
    )


@pytest.fixture(autouse=True)
def _clean_telemetry(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    monkeypatch.delenv("REELSMITH_TELEMETRY_LOG", raising=False)
    telemetry.clear_events()
    yield
    telemetry.clear_events()

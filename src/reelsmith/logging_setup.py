from __future__ import annotations

import logging
import os
from typing import Optional

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: Optional[str] = None) -> None:
    """Install a root handler for the CLI and server entry points.

    ``level`` defaults to ``REELSMITH_LOG_LEVEL`` or INFO.
    """
    name = (level or os.environ.get("REELSMITH_LOG_LEVEL") or "INFO").upper()
    logging.basicConfig(level=getattr(logging, name, logging.INFO), format=LOG_FORMAT)


__all__ = ["configure_logging", "LOG_FORMAT"]

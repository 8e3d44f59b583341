"""reelsmith package.

Prompt-to-video pipeline: script, media, assembly and publishing stages run
by a job orchestrator behind an in-process retrying queue.
"""

from . import config, errors, schemas, telemetry

__all__ = ["config", "errors", "schemas", "telemetry"]
__version__ = "0.1.0"

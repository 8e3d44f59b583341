"""Stage adapters wrapping external capabilities behind attempt/fallback."""

from .audio import AudioAdapter, AudioRequest
from .base import Err, Ok, Result, StageAdapter
from .clip import ClipAdapter, ClipRequest
from .script import ScriptAdapter, ScriptStage

__all__ = [
    "AudioAdapter",
    "AudioRequest",
    "ClipAdapter",
    "ClipRequest",
    "Err",
    "Ok",
    "Result",
    "ScriptAdapter",
    "ScriptStage",
    "StageAdapter",
]

"""Configuration for the video generation pipeline.

Every pipeline component receives a :class:`PipelineConfig` through its
constructor. Values come from the environment and may be overridden by a YAML
file whose top-level keys are the dataclass field names.
"""

from __future__ import annotations

import dataclasses
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping, Optional

import yaml

from .utils.env import EnvMapping, env_float, env_int, env_str

_HF_INFERENCE_BASE = "https://api-inference.huggingface.co/models"
_GEMINI_BASE = "https://generativelanguage.googleapis.com/v1beta"


@dataclass(frozen=True)
class PipelineConfig:
    """Resolved configuration shared by the stages, assembler and queue."""

    # capability credentials
    gemini_api_key: Optional[str] = None
    gemini_model: str = "gemini-pro"
    gemini_base_url: str = _GEMINI_BASE
    huggingface_api_key: Optional[str] = None
    huggingface_video_model: str = "damo-vilab/text-to-video-ms-1.7b"
    huggingface_inference_url: Optional[str] = None
    youtube_client_id: Optional[str] = None
    youtube_client_secret: Optional[str] = None
    youtube_refresh_token: Optional[str] = None
    youtube_category_id: str = "22"
    youtube_privacy_status: str = "public"
    tiktok_access_token: Optional[str] = None

    # external tools
    ffmpeg_bin: str = "ffmpeg"
    ffprobe_bin: str = "ffprobe"
    edge_tts_bin: str = "edge-tts"
    tts_voice: Optional[str] = None

    # timeouts (seconds)
    script_timeout_s: float = 60.0
    clip_timeout_s: float = 120.0
    tts_timeout_s: float = 120.0
    ffmpeg_timeout_s: float = 600.0
    probe_timeout_s: float = 30.0
    upload_timeout_s: float = 600.0

    # queue retry policy
    max_attempts: int = 3
    backoff_base_s: float = 5.0
    backoff_factor: float = 2.0
    backoff_max_s: float = 300.0

    # file roots
    temp_dir: Path = Path("./temp")
    debug_dir: Path = Path("./debug")

    # concurrency
    queue_workers: int = 1
    clip_workers: int = 1

    # degraded outputs
    placeholder_color: str = "blue"
    placeholder_size: str = "1280x720"
    silent_audio_s: float = 30.0

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.queue_workers < 1 or self.clip_workers < 1:
            raise ValueError("queue_workers and clip_workers must be at least 1")
        for name in (
            "script_timeout_s",
            "clip_timeout_s",
            "tts_timeout_s",
            "ffmpeg_timeout_s",
            "probe_timeout_s",
            "upload_timeout_s",
        ):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be greater than zero")
        # frozen: coerce path-like values through object.__setattr__
        object.__setattr__(self, "temp_dir", Path(self.temp_dir))
        object.__setattr__(self, "debug_dir", Path(self.debug_dir))

    @property
    def resolved_inference_url(self) -> str:
        return self.huggingface_inference_url or f"{_HF_INFERENCE_BASE}/{self.huggingface_video_model}"

    @property
    def youtube_configured(self) -> bool:
        return bool(self.youtube_client_id and self.youtube_client_secret and self.youtube_refresh_token)

    @classmethod
    def from_env(cls, env: EnvMapping | None = None) -> PipelineConfig:
        data = os.environ if env is None else env
        defaults = cls()
        return cls(
            gemini_api_key=env_str(data, "GEMINI_API_KEY"),
            gemini_model=env_str(data, "GEMINI_MODEL", defaults.gemini_model),
            gemini_base_url=env_str(data, "GEMINI_BASE_URL", defaults.gemini_base_url),
            huggingface_api_key=env_str(data, "HUGGINGFACE_API_KEY"),
            huggingface_video_model=env_str(data, "HUGGINGFACE_VIDEO_MODEL", defaults.huggingface_video_model),
            huggingface_inference_url=env_str(data, "HUGGINGFACE_INFERENCE_URL"),
            youtube_client_id=env_str(data, "YOUTUBE_CLIENT_ID"),
            youtube_client_secret=env_str(data, "YOUTUBE_CLIENT_SECRET"),
            youtube_refresh_token=env_str(data, "YOUTUBE_REFRESH_TOKEN"),
            youtube_category_id=env_str(data, "YOUTUBE_CATEGORY_ID", defaults.youtube_category_id),
            youtube_privacy_status=env_str(data, "YOUTUBE_PRIVACY_STATUS", defaults.youtube_privacy_status),
            tiktok_access_token=env_str(data, "TIKTOK_ACCESS_TOKEN"),
            ffmpeg_bin=env_str(data, "FFMPEG_PATH", defaults.ffmpeg_bin),
            ffprobe_bin=env_str(data, "FFPROBE_PATH", defaults.ffprobe_bin),
            edge_tts_bin=env_str(data, "EDGE_TTS_PATH", defaults.edge_tts_bin),
            tts_voice=env_str(data, "TTS_VOICE"),
            script_timeout_s=env_float(data, "REELSMITH_SCRIPT_TIMEOUT_S", defaults.script_timeout_s),
            clip_timeout_s=env_float(data, "REELSMITH_CLIP_TIMEOUT_S", defaults.clip_timeout_s),
            tts_timeout_s=env_float(data, "REELSMITH_TTS_TIMEOUT_S", defaults.tts_timeout_s),
            ffmpeg_timeout_s=env_float(data, "REELSMITH_FFMPEG_TIMEOUT_S", defaults.ffmpeg_timeout_s),
            probe_timeout_s=env_float(data, "REELSMITH_PROBE_TIMEOUT_S", defaults.probe_timeout_s),
            upload_timeout_s=env_float(data, "REELSMITH_UPLOAD_TIMEOUT_S", defaults.upload_timeout_s),
            max_attempts=env_int(data, "REELSMITH_MAX_ATTEMPTS", defaults.max_attempts),
            backoff_base_s=env_float(data, "REELSMITH_BACKOFF_BASE_S", defaults.backoff_base_s),
            backoff_factor=env_float(data, "REELSMITH_BACKOFF_FACTOR", defaults.backoff_factor),
            backoff_max_s=env_float(data, "REELSMITH_BACKOFF_MAX_S", defaults.backoff_max_s),
            temp_dir=Path(env_str(data, "TEMP_DIR", str(defaults.temp_dir))),
            debug_dir=Path(env_str(data, "DEBUG_DIR", str(defaults.debug_dir))),
            queue_workers=env_int(data, "REELSMITH_QUEUE_WORKERS", defaults.queue_workers),
            clip_workers=env_int(data, "REELSMITH_CLIP_WORKERS", defaults.clip_workers),
            placeholder_color=env_str(data, "REELSMITH_PLACEHOLDER_COLOR", defaults.placeholder_color),
            placeholder_size=env_str(data, "REELSMITH_PLACEHOLDER_SIZE", defaults.placeholder_size),
            silent_audio_s=env_float(data, "REELSMITH_SILENT_AUDIO_S", defaults.silent_audio_s),
        )

    @classmethod
    def load(cls, path: Path | str | None = None, env: EnvMapping | None = None) -> PipelineConfig:
        """Resolve env configuration, then apply the YAML overrides at ``path``."""

        base = cls.from_env(env)
        if path is None:
            return base
        overrides = _load_yaml(Path(path))
        return base.with_overrides(overrides)

    def with_overrides(self, overrides: Mapping[str, Any]) -> PipelineConfig:
        known = {f.name for f in dataclasses.fields(self)}
        unknown = sorted(set(overrides) - known)
        if unknown:
            raise ValueError(f"Unknown configuration keys: {', '.join(unknown)}")
        return dataclasses.replace(self, **dict(overrides))


def _load_yaml(path: Path) -> Mapping[str, Any]:
    with path.open("r", encoding="utf-8") as fh:
        data = yaml.safe_load(fh)
    if data is None:
        return {}
    if not isinstance(data, Mapping):
        raise ValueError(f"Configuration file {path} must contain a mapping")
    return data


__all__ = ["PipelineConfig"]

from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

DEFAULT_TAGS = ("AI", "Generated", "Video")

JobState = Literal["waiting", "active", "delayed", "completed", "failed"]
Platform = Literal["youtube", "tiktok"]


class Progress:
    """Progress checkpoints reported by the orchestrator."""

    ACCEPTED = 10
    SCRIPT_READY = 25
    MEDIA_READY = 50
    ASSEMBLED = 75
    PUBLISHED = 90
    DONE = 100


class UploadFlags(BaseModel):
    model_config = ConfigDict(frozen=True)

    to_youtube: bool = False
    to_tiktok: bool = False


class GenerationRequest(BaseModel):
    """A prompt plus optional publishing metadata. Immutable once accepted."""

    model_config = ConfigDict(frozen=True)

    prompt: str
    upload: UploadFlags = Field(default_factory=UploadFlags)
    title: Optional[str] = None
    description: Optional[str] = None
    tags_csv: Optional[str] = None

    @field_validator("prompt")
    @classmethod
    def _prompt_not_blank(cls, value: str) -> str:
        if not value or not value.strip():
            raise ValueError("prompt must be a non-empty string")
        return value.strip()

    def destinations(self) -> List[Platform]:
        out: List[Platform] = []
        if self.upload.to_youtube:
            out.append("youtube")
        if self.upload.to_tiktok:
            out.append("tiktok")
        return out

    def resolved_title(self) -> str:
        return self.title or f"AI Generated Video: {self.prompt}"

    def resolved_description(self) -> str:
        return self.description or f"This video was automatically generated about: {self.prompt}"

    def resolved_tags(self) -> List[str]:
        if not self.tags_csv:
            return list(DEFAULT_TAGS)
        tags = [tag.strip() for tag in self.tags_csv.split(",")]
        return [tag for tag in tags if tag] or list(DEFAULT_TAGS)


class VisualCue(BaseModel):
    """One visual segment; ``index`` orders playback."""

    model_config = ConfigDict(populate_by_name=True)

    index: int = Field(..., ge=0)
    descriptor: str = Field(..., alias="prompt", min_length=1)
    duration_seconds: float = Field(..., alias="duration", gt=0)


class SubtitleCue(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    start_seconds: float = Field(..., alias="start", ge=0)
    end_seconds: float = Field(..., alias="end")
    text: str = Field(..., min_length=1)

    @model_validator(mode="after")
    def _end_after_start(self) -> "SubtitleCue":
        if self.end_seconds <= self.start_seconds:
            raise ValueError("end must be greater than start")
        return self


class ScriptData(BaseModel):
    """Narration, visual cues and subtitle cues for one video.

    Field aliases match the JSON contract the script model is asked to emit
    (``script``, ``visual_prompts``, ``timestamps``); :meth:`to_wire` produces
    that shape again for persistence and API responses.
    """

    model_config = ConfigDict(populate_by_name=True)

    narration: str = Field(..., alias="script")
    visual_cues: List[VisualCue] = Field(..., alias="visual_prompts", min_length=1)
    subtitle_cues: List[SubtitleCue] = Field(..., alias="timestamps", min_length=1)

    @model_validator(mode="after")
    def _unique_indexes(self) -> "ScriptData":
        seen = set()
        for cue in self.visual_cues:
            if cue.index in seen:
                raise ValueError(f"duplicate visual cue index {cue.index}")
            seen.add(cue.index)
        return self

    @property
    def total_visual_seconds(self) -> float:
        return sum(cue.duration_seconds for cue in self.visual_cues)

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)


class MediaArtifacts(BaseModel):
    audio_path: str
    subtitle_path: str
    clip_paths: List[str] = Field(default_factory=list)


class JobResult(BaseModel):
    success: bool
    job_id: str
    final_video_path: str
    upload_urls: Dict[str, str] = Field(default_factory=dict)
    script_data: ScriptData

    def to_wire(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "jobId": self.job_id,
            "finalVideoPath": self.final_video_path,
            "uploadUrls": dict(self.upload_urls),
            "scriptData": self.script_data.to_wire(),
        }


class JobStatus(BaseModel):
    job_id: str
    state: JobState
    progress: int = Field(0, ge=0, le=100)
    attempts: int = 0
    result: Optional[JobResult] = None
    error: Optional[str] = None


class JobSummaryEntry(BaseModel):
    id: str
    prompt: str
    result: Optional[JobResult] = None
    error: Optional[str] = None


class JobsSummary(BaseModel):
    waiting: int = 0
    active: int = 0
    delayed: int = 0
    completed: int = 0
    failed: int = 0
    jobs: Dict[str, List[JobSummaryEntry]] = Field(default_factory=dict)


__all__ = [
    "DEFAULT_TAGS",
    "JobState",
    "Platform",
    "Progress",
    "UploadFlags",
    "GenerationRequest",
    "VisualCue",
    "SubtitleCue",
    "ScriptData",
    "MediaArtifacts",
    "JobResult",
    "JobStatus",
    "JobSummaryEntry",
    "JobsSummary",
]

"""Script generation: Gemini when configured, a prompt-derived template otherwise."""

from __future__ import annotations

import json
import logging
import re
from typing import Any, Dict, Mapping, Optional

import httpx

from ..config import PipelineConfig
from ..errors import ErrorKind, ExternalServiceError
from ..schemas import ScriptData, SubtitleCue, VisualCue
from ..workspace import JobWorkspace
from .base import Result, StageAdapter, guarded

LOG = logging.getLogger(__name__)

_FENCE_RE = re.compile(r"```(?:json)?\s*", re.IGNORECASE)
_FALLBACK_CUE_SECONDS = 10.0

SYSTEM_PROMPT = """You are a video script writer. Given a user prompt, generate a structured JSON response for a short video (30-60 seconds).

The response must be valid JSON with this exact structure:
{{
  "script": "The complete narration text that will be spoken",
  "visual_prompts": [
    {{
      "index": 0,
      "prompt": "Detailed visual description for video generation",
      "duration": 5
    }}
  ],
  "timestamps": [
    {{
      "start": 0,
      "end": 5,
      "text": "Text to display as subtitle"
    }}
  ]
}}

Guidelines:
- The script should be engaging and informative
- Create 3-6 visual prompts, each 5-10 seconds long
- Each visual prompt should describe what should be shown in the video
- Timestamps should align with the script for subtitle generation
- Total duration should be 30-60 seconds

User Prompt: {prompt}

Generate the JSON response now:"""


def fallback_script(prompt: str) -> ScriptData:
    """Deterministic three-cue script used when generation is unavailable."""

    topic = prompt.strip()
    descriptors = (
        f"Cinematic scene showing {topic}",
        f"Close-up details of {topic}",
        f"Wide angle view of {topic}",
    )
    captions = (
        f"This is a video about {topic}.",
        "We'll explore this fascinating topic",
        "in detail.",
    )
    return ScriptData(
        narration=f"This is a video about {topic}. We'll explore this fascinating topic in detail.",
        visual_cues=[
            VisualCue(index=i, descriptor=text, duration_seconds=_FALLBACK_CUE_SECONDS)
            for i, text in enumerate(descriptors)
        ],
        subtitle_cues=[
            SubtitleCue(
                start_seconds=i * _FALLBACK_CUE_SECONDS,
                end_seconds=(i + 1) * _FALLBACK_CUE_SECONDS,
                text=text,
            )
            for i, text in enumerate(captions)
        ],
    )


def strip_code_fences(text: str) -> str:
    return _FENCE_RE.sub("", text).replace("```", "").strip()


def normalize_script_payload(data: Mapping[str, Any]) -> Dict[str, Any]:
    """Fill in pieces a model commonly omits before schema validation."""

    payload = dict(data)
    narration = payload.get("script")
    if not isinstance(narration, str) or not narration.strip():
        narration = "Generated video content."
    payload["script"] = narration
    visual = payload.get("visual_prompts")
    if not isinstance(visual, list) or not visual:
        payload["visual_prompts"] = [{"index": 0, "prompt": "Cinematic video scene", "duration": 10}]
    stamps = payload.get("timestamps")
    if not isinstance(stamps, list) or not stamps:
        payload["timestamps"] = [{"start": 0, "end": 10, "text": narration[:100]}]
    return payload


def parse_script_response(text: str) -> ScriptData:
    try:
        data = json.loads(strip_code_fences(text))
    except json.JSONDecodeError as exc:
        raise ExternalServiceError(ErrorKind.INVALID_RESPONSE, f"script is not valid JSON: {exc}") from exc
    if not isinstance(data, Mapping):
        raise ExternalServiceError(ErrorKind.INVALID_RESPONSE, "script payload must be a JSON object")
    return ScriptData.model_validate(normalize_script_payload(data))


class ScriptAdapter(StageAdapter[str, ScriptData]):
    name = "script"

    def __init__(self, config: PipelineConfig, *, client: Optional[httpx.Client] = None) -> None:
        self.config = config
        self._client = client

    def is_configured(self) -> bool:
        return bool(self.config.gemini_api_key)

    def attempt(self, request: str) -> Result[ScriptData]:
        return guarded(lambda: parse_script_response(self._generate_text(request)))

    def fallback(self, request: str, reason: ExternalServiceError) -> ScriptData:
        return fallback_script(request)

    def _generate_text(self, prompt: str) -> str:
        url = f"{self.config.gemini_base_url.rstrip('/')}/models/{self.config.gemini_model}:generateContent"
        body = {"contents": [{"parts": [{"text": SYSTEM_PROMPT.format(prompt=prompt)}]}]}
        client = self._client or httpx.Client()
        try:
            response = client.post(
                url,
                params={"key": self.config.gemini_api_key},
                json=body,
                timeout=self.config.script_timeout_s,
            )
            response.raise_for_status()
            payload = response.json()
        finally:
            if self._client is None:
                client.close()
        try:
            text = payload["candidates"][0]["content"]["parts"][0]["text"]
        except (KeyError, IndexError, TypeError) as exc:
            raise ExternalServiceError(ErrorKind.INVALID_RESPONSE, "response has no candidate text") from exc
        if not isinstance(text, str):
            raise ExternalServiceError(ErrorKind.INVALID_RESPONSE, "candidate text is not a string")
        return text


class ScriptStage:
    """Script boundary: ``generate(prompt) -> ScriptData``, never failing on the capability."""

    def __init__(self, adapter: ScriptAdapter, workspace: JobWorkspace) -> None:
        self.adapter = adapter
        self.workspace = workspace

    def generate(self, prompt: str, job_id: str) -> ScriptData:
        LOG.info("Generating script for prompt: %s", prompt)
        script = self.adapter.produce(prompt)
        self.workspace.save_debug(f"{job_id}_script.json", script.to_wire())
        return script


__all__ = [
    "SYSTEM_PROMPT",
    "ScriptAdapter",
    "ScriptStage",
    "fallback_script",
    "normalize_script_payload",
    "parse_script_response",
    "strip_code_fences",
]

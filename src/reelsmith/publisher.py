"""Upload the final video to the requested platforms.

Each platform is attempted on its own: a failure is logged and the platform
is left out of the returned URL mapping, so one rejected upload never affects
another or the job outcome.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Protocol

import httpx
from google.oauth2.credentials import Credentials
from googleapiclient.discovery import build
from googleapiclient.http import MediaFileUpload

from . import telemetry
from .config import PipelineConfig
from .errors import ErrorKind, ExternalServiceError
from .schemas import Platform

LOG = logging.getLogger(__name__)

YOUTUBE_SCOPES = ["https://www.googleapis.com/auth/youtube.upload"]
GOOGLE_TOKEN_URI = "https://oauth2.googleapis.com/token"
TIKTOK_API_BASE = "https://open.tiktokapis.com/v2"


class Uploader(Protocol):
    platform: Platform

    def upload(self, video_path: Path, title: str, description: str, tags: List[str]) -> str:
        ...


class YouTubeUploader:
    platform: Platform = "youtube"

    def __init__(self, config: PipelineConfig, *, service: Any = None) -> None:
        self.config = config
        self._service = service

    def _youtube(self) -> Any:
        if self._service is not None:
            return self._service
        if not self.config.youtube_configured:
            raise ExternalServiceError(ErrorKind.UNCONFIGURED, "YouTube credentials not configured")
        credentials = Credentials(
            token=None,
            refresh_token=self.config.youtube_refresh_token,
            client_id=self.config.youtube_client_id,
            client_secret=self.config.youtube_client_secret,
            token_uri=GOOGLE_TOKEN_URI,
            scopes=YOUTUBE_SCOPES,
        )
        self._service = build("youtube", "v3", credentials=credentials, cache_discovery=False)
        return self._service

    def upload(self, video_path: Path, title: str, description: str, tags: List[str]) -> str:
        youtube = self._youtube()
        body = {
            "snippet": {
                "title": title,
                "description": description,
                "tags": tags,
                "categoryId": self.config.youtube_category_id,
            },
            "status": {"privacyStatus": self.config.youtube_privacy_status},
        }
        media = MediaFileUpload(str(video_path), chunksize=-1, resumable=True, mimetype="video/*")
        LOG.info("Uploading to YouTube: %s", title)
        request = youtube.videos().insert(part=",".join(body.keys()), body=body, media_body=media)
        response = None
        while response is None:
            _, response = request.next_chunk()
        video_id = response.get("id") if isinstance(response, Mapping) else None
        if not video_id:
            raise ExternalServiceError(ErrorKind.INVALID_RESPONSE, "YouTube response has no video id")
        url = f"https://www.youtube.com/watch?v={video_id}"
        LOG.info("Uploaded to YouTube: %s", url)
        return url


class TikTokUploader:
    """Single-chunk upload through the TikTok Content Posting API."""

    platform: Platform = "tiktok"

    def __init__(self, config: PipelineConfig, *, client: Optional[httpx.Client] = None) -> None:
        self.config = config
        self._client = client

    def upload(self, video_path: Path, title: str, description: str, tags: List[str]) -> str:
        token = self.config.tiktok_access_token
        if not token:
            raise ExternalServiceError(ErrorKind.UNCONFIGURED, "TikTok access token not configured")
        size = Path(video_path).stat().st_size
        client = self._client or httpx.Client()
        try:
            init = client.post(
                f"{TIKTOK_API_BASE}/post/publish/video/init/",
                headers={"Authorization": f"Bearer {token}", "Content-Type": "application/json; charset=UTF-8"},
                json={
                    "post_info": {"title": title[:150], "privacy_level": "SELF_ONLY"},
                    "source_info": {
                        "source": "FILE_UPLOAD",
                        "video_size": size,
                        "chunk_size": size,
                        "total_chunk_count": 1,
                    },
                },
                timeout=self.config.upload_timeout_s,
            )
            init.raise_for_status()
            body = init.json()
            data = body.get("data") if isinstance(body, Mapping) else None
            if not isinstance(data, Mapping):
                raise ExternalServiceError(ErrorKind.INVALID_RESPONSE, "TikTok init response has no data object")
            publish_id = data.get("publish_id")
            upload_url = data.get("upload_url")
            if not publish_id or not upload_url:
                raise ExternalServiceError(ErrorKind.INVALID_RESPONSE, "TikTok init response missing publish_id/upload_url")
            LOG.info("Uploading to TikTok: %s", title)
            put = client.put(
                upload_url,
                content=Path(video_path).read_bytes(),
                headers={"Content-Type": "video/mp4", "Content-Range": f"bytes 0-{size - 1}/{size}"},
                timeout=self.config.upload_timeout_s,
            )
            put.raise_for_status()
        finally:
            if self._client is None:
                client.close()
        url = f"https://www.tiktok.com/upload?publish_id={publish_id}"
        LOG.info("Uploaded to TikTok: %s", url)
        return url


class Publisher:
    def __init__(self, uploaders: Iterable[Uploader]) -> None:
        self.uploaders: Dict[str, Uploader] = {u.platform: u for u in uploaders}

    @classmethod
    def from_config(cls, config: PipelineConfig) -> Publisher:
        return cls([YouTubeUploader(config), TikTokUploader(config)])

    def publish(
        self,
        video_path: Path | str,
        *,
        title: str,
        description: str,
        tags: List[str],
        destinations: Iterable[Platform],
    ) -> Dict[str, str]:
        urls: Dict[str, str] = {}
        for platform in destinations:
            uploader = self.uploaders.get(platform)
            if uploader is None:
                LOG.error("No uploader registered for %s", platform)
                continue
            try:
                urls[platform] = uploader.upload(Path(video_path), title, description, tags)
            except Exception as exc:
                LOG.error("Failed to upload to %s: %s", platform, exc)
                telemetry.emit_event("publish.failed", {"platform": platform, "error": str(exc)[:200]})
        return urls


__all__ = ["Publisher", "TikTokUploader", "Uploader", "YouTubeUploader"]

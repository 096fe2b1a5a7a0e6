"""
Metadata Resolver
Resolves YouTube references to video metadata through the YouTube Data API v3
API docs: https://developers.google.com/youtube/v3/docs/videos/list
"""
from typing import Any, Dict, Optional
import logging

import httpx
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from clients.base import BaseClient
from config import Settings
from core import VideoMetadata
from media import extract_video_id, format_duration, parse_iso_duration
from utils.exceptions import MetadataError


logger = logging.getLogger(__name__)

DEFAULT_DURATION = "PT10M"
UNKNOWN_TITLE = "Неизвестно заглавие"
UNKNOWN_AUTHOR = "Неизвестен автор"


class MetadataResolver(BaseClient):
    """
    YouTube metadata lookup.

    Transport failures are retried up to `general.max_retries` attempts;
    upstream HTTP errors and "not found" answers fail immediately.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        *,
        max_attempts: Optional[int] = None,
        retry_delay: Optional[float] = None,
    ):
        super().__init__(settings)
        self._youtube = self.settings.youtube
        self._max_attempts = max(1, int(max_attempts or self.settings.general.max_retries))
        self._retry_delay = float(self.settings.general.retry_delay if retry_delay is None else retry_delay)

    @property
    def name(self) -> str:
        return "YouTube"

    def is_configured(self) -> bool:
        return bool(self._youtube.api_key)

    async def resolve(self, reference: str) -> VideoMetadata:
        """
        Resolve a video reference.

        Args:
            reference: raw YouTube URL

        Returns:
            VideoMetadata for the referenced video

        Raises:
            MetadataError: invalid reference, network failure, non-200
                response, or video not found
        """
        video_id = extract_video_id(reference)
        if not video_id:
            raise MetadataError("Invalid YouTube URL", reference=reference)
        if not self.is_configured():
            raise MetadataError("YouTube API key not configured", reference=reference)

        self._log_request("Resolving metadata", video_id)
        params = {
            "part": "snippet,contentDetails",
            "id": video_id,
            "key": self._youtube.api_key,
        }

        try:
            response = await self._fetch(params)
        except httpx.HTTPError as exc:
            self._log_error(f"Metadata request failed for '{video_id}'", exc)
            raise MetadataError(f"Network error: {exc}", reference=reference) from exc

        if response.status_code != 200:
            raise MetadataError(
                f"YouTube API error: {response.status_code}",
                reference=reference,
                status_code=response.status_code,
            )

        items = self._safe_json(response).get("items") or []
        if not items:
            raise MetadataError("Video not found", reference=reference, status_code=404)

        return self._to_metadata(video_id, items[0])

    async def _fetch(self, params: Dict[str, Any]):
        retrying = AsyncRetrying(
            stop=stop_after_attempt(self._max_attempts),
            wait=wait_exponential(multiplier=self._retry_delay, max=10),
            retry=retry_if_exception_type(httpx.TransportError),
            reraise=True,
        )
        async with httpx.AsyncClient(timeout=self._timeout()) as client:
            async for attempt in retrying:
                with attempt:
                    return await client.get(self._youtube.api_url, params=params)

    @staticmethod
    def _to_metadata(video_id: str, item: Dict[str, Any]) -> VideoMetadata:
        snippet = item.get("snippet") or {}
        details = item.get("contentDetails") or {}
        thumbnails = snippet.get("thumbnails") or {}

        duration = parse_iso_duration(details.get("duration") or DEFAULT_DURATION)
        thumbnail = (thumbnails.get("high") or {}).get("url") or (thumbnails.get("default") or {}).get("url") or ""

        return VideoMetadata(
            video_id=video_id,
            title=snippet.get("title") or UNKNOWN_TITLE,
            author=snippet.get("channelTitle") or UNKNOWN_AUTHOR,
            duration_seconds=duration,
            duration_formatted=format_duration(duration),
            thumbnail_url=thumbnail,
        )

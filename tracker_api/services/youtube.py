"""
YouTube Data API v3 client.

Only the three calls the importer needs. Every failure surfaces as
UpstreamFailure with a reason the API layer can report.
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional, Sequence

import httpx
from pydantic import BaseModel, ValidationError

from tracker_api.config import settings
from tracker_api.errors import UpstreamFailure, UpstreamReason

logger = logging.getLogger(__name__)

QUOTA_REASONS = {"quotaExceeded", "rateLimitExceeded", "userRateLimitExceeded", "dailyLimitExceeded"}
INVALID_KEY_REASONS = {"keyInvalid", "keyExpired", "accessNotConfigured", "ipRefererBlocked"}
NOT_FOUND_REASONS = {"playlistNotFound", "videoNotFound", "notFound"}


class PlaylistMetadata(BaseModel):
    title: str
    description: str = ""
    thumbnails: dict = {}


class PlaylistItemsPage(BaseModel):
    # Entries are passed through unchecked; the normalizer skips bad ones
    items: List[Any]
    next_page_token: Optional[str] = None


def classify_error(response: httpx.Response) -> UpstreamReason:
    """Map an error response to a failure reason."""
    try:
        error = response.json().get("error", {})
    except (ValueError, AttributeError):
        error = {}
    if not isinstance(error, dict):
        error = {}

    reasons = {e.get("reason") for e in error.get("errors", []) if isinstance(e, dict)}
    message = str(error.get("message", ""))

    if reasons & QUOTA_REASONS or response.status_code == 429:
        return UpstreamReason.QUOTA
    if reasons & INVALID_KEY_REASONS or "API key not valid" in message:
        return UpstreamReason.INVALID_KEY
    if reasons & NOT_FOUND_REASONS or response.status_code == 404:
        return UpstreamReason.NOT_FOUND
    return UpstreamReason.GENERIC


class YouTubeClient:
    """Async client; use as `async with YouTubeClient() as client`."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        max_retries: Optional[int] = None,
        backoff: float = 1.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key if api_key is not None else settings.YOUTUBE_API_KEY
        self.base_url = (base_url or settings.YOUTUBE_API_URL).rstrip("/")
        self.timeout = timeout or settings.YOUTUBE_TIMEOUT
        self.max_retries = max(1, max_retries or settings.YOUTUBE_MAX_RETRIES)
        self.backoff = backoff
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def __aenter__(self) -> "YouTubeClient":
        self._client = httpx.AsyncClient(timeout=self.timeout, transport=self._transport)
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.aclose()

    async def aclose(self):
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def _get(self, resource: str, params: dict) -> dict:
        if not self.api_key:
            raise UpstreamFailure(UpstreamReason.INVALID_KEY, "YOUTUBE_API_KEY is not configured")
        if self._client is None:
            raise RuntimeError("YouTubeClient used outside of 'async with'")

        url = f"{self.base_url}/{resource}"
        params = {**params, "key": self.api_key}

        for attempt in range(1, self.max_retries + 1):
            try:
                resp = await self._client.get(url, params=params)
                logger.debug(f"HTTP {resp.status_code} {resource}")
            except httpx.TransportError as e:
                logger.warning(f"Attempt {attempt}/{self.max_retries} failed for {resource}: {e}")
                if attempt == self.max_retries:
                    raise UpstreamFailure(UpstreamReason.GENERIC, f"YouTube unreachable: {e}")
                await asyncio.sleep(min(self.backoff * 2 ** (attempt - 1), 10))
                continue

            if resp.status_code >= 500 and attempt < self.max_retries:
                logger.warning(f"Attempt {attempt}/{self.max_retries} got HTTP {resp.status_code} for {resource}")
                await asyncio.sleep(min(self.backoff * 2 ** (attempt - 1), 10))
                continue

            if resp.is_error:
                reason = classify_error(resp)
                logger.error(f"YouTube {resource} failed with HTTP {resp.status_code} ({reason.value})")
                raise UpstreamFailure(reason, f"YouTube returned HTTP {resp.status_code}")

            try:
                data = resp.json()
            except ValueError:
                raise UpstreamFailure(UpstreamReason.GENERIC, f"Malformed response from {resource}")
            if not isinstance(data, dict):
                raise UpstreamFailure(UpstreamReason.GENERIC, f"Malformed response from {resource}")
            return data

        raise UpstreamFailure(UpstreamReason.GENERIC, f"Failed to fetch {resource}")

    async def fetch_playlist_metadata(self, playlist_id: str) -> PlaylistMetadata:
        data = await self._get("playlists", {"part": "snippet", "id": playlist_id})
        items = data.get("items") or []
        if not items:
            raise UpstreamFailure(UpstreamReason.NOT_FOUND, f"Playlist {playlist_id} not found")

        if not isinstance(items, list) or not isinstance(items[0], dict):
            raise UpstreamFailure(UpstreamReason.GENERIC, "Malformed response from playlists")

        snippet = items[0].get("snippet")
        if not isinstance(snippet, dict):
            snippet = {}
        try:
            return PlaylistMetadata(
                title=snippet.get("title") or playlist_id,
                description=snippet.get("description") or "",
                thumbnails=snippet.get("thumbnails") or {},
            )
        except ValidationError as e:
            raise UpstreamFailure(UpstreamReason.GENERIC, f"Malformed playlist metadata: {e}")

    async def fetch_playlist_items(
        self,
        playlist_id: str,
        page_token: Optional[str] = None,
        page_size: Optional[int] = None,
    ) -> PlaylistItemsPage:
        params = {
            "part": "snippet,contentDetails",
            "playlistId": playlist_id,
            "maxResults": page_size or settings.YOUTUBE_PAGE_SIZE,
        }
        if page_token:
            params["pageToken"] = page_token

        data = await self._get("playlistItems", params)
        items = data.get("items")
        if not isinstance(items, list):
            raise UpstreamFailure(UpstreamReason.GENERIC, "playlistItems response has no items list")
        try:
            return PlaylistItemsPage(items=items, next_page_token=data.get("nextPageToken"))
        except ValidationError as e:
            raise UpstreamFailure(UpstreamReason.GENERIC, f"Malformed response from playlistItems: {e}")

    async def fetch_video_durations(self, video_ids: Sequence[str]) -> Dict[str, str]:
        """Map video id -> ISO-8601 duration for one batch of ids."""
        if not video_ids:
            return {}

        data = await self._get("videos", {"part": "contentDetails", "id": ",".join(video_ids)})
        durations = {}
        items = data.get("items") or []
        if not isinstance(items, list):
            raise UpstreamFailure(UpstreamReason.GENERIC, "Malformed response from videos")

        for item in items:
            if not isinstance(item, dict):
                logger.warning(f"Ignoring malformed videos entry: {item!r}")
                continue
            video_id = item.get("id")
            details = item.get("contentDetails")
            duration = details.get("duration") if isinstance(details, dict) else None
            if isinstance(video_id, str) and isinstance(duration, str):
                durations[video_id] = duration
        return durations

"""
Playlist import normalization.

Turns raw YouTube playlistItems records plus a video-id -> duration map into
an ordered list of Video entries. Each optional field goes through its own
resolver so the fallback order is one named policy:

- video id:  contentDetails.videoId, then snippet.resourceId.videoId;
             items without one are skipped
- title:     snippet.title, then "Video <position+1>"
- thumbnail: maxres, standard, high, medium, default, then ""
- duration:  the matching detail record, then 0
"""

import logging
from typing import Dict, Iterable, List, Optional

from pydantic import BaseModel

from tracker_api.errors import NoVideosImported
from tracker_api.models.playlists import Video
from tracker_api.services.duration import parse_duration

logger = logging.getLogger(__name__)

THUMBNAIL_PRIORITY = ("maxres", "standard", "high", "medium", "default")


class NormalizedPlaylist(BaseModel):
    """Result of normalizing one import."""
    videos: List[Video]
    skipped: int = 0


def _get(data: Optional[dict], *keys: str):
    """Walk nested dicts, returning None as soon as a level is missing."""
    for key in keys:
        if not isinstance(data, dict):
            return None
        data = data.get(key)
    return data


def resolve_video_id(item: dict) -> Optional[str]:
    video_id = _get(item, "contentDetails", "videoId") or _get(item, "snippet", "resourceId", "videoId")
    if isinstance(video_id, str) and video_id.strip():
        return video_id.strip()
    return None


def resolve_title(item: dict, position: int) -> str:
    title = _get(item, "snippet", "title")
    if isinstance(title, str) and title.strip():
        return title.strip()
    return f"Video {position + 1}"


def resolve_thumbnail(thumbnails: Optional[dict]) -> str:
    """Pick the highest resolution thumbnail URL available."""
    for size in THUMBNAIL_PRIORITY:
        url = _get(thumbnails, size, "url")
        if isinstance(url, str) and url:
            return url
    return ""


def resolve_duration(video_id: str, durations: Dict[str, str]) -> int:
    return parse_duration(durations.get(video_id))


def normalize_playlist_items(
    items: Iterable[dict],
    durations: Dict[str, str],
) -> NormalizedPlaylist:
    """
    Build the ordered video list for a playlist import.

    Positions are contiguous over the surviving items. An item that cannot be
    normalized is dropped and counted; the import only fails when nothing
    survives.

    Raises:
        NoVideosImported: if no item could be normalized
    """
    videos: List[Video] = []
    seen = set()
    skipped = 0

    for index, item in enumerate(items):
        try:
            video_id = resolve_video_id(item)
            if video_id is None:
                logger.warning(f"Skipping playlist item {index}: no video id")
                skipped += 1
                continue
            if video_id in seen:
                logger.warning(f"Skipping playlist item {index}: duplicate video {video_id}")
                skipped += 1
                continue

            position = len(videos)
            videos.append(Video(
                video_id=video_id,
                title=resolve_title(item, position),
                duration_seconds=resolve_duration(video_id, durations),
                thumbnail_url=resolve_thumbnail(_get(item, "snippet", "thumbnails")),
                position=position,
            ))
            seen.add(video_id)
        except (AttributeError, TypeError, ValueError) as e:
            logger.warning(f"Skipping playlist item {index}: {e}")
            skipped += 1

    if not videos:
        raise NoVideosImported(skipped=skipped)

    if skipped:
        logger.info(f"Normalized {len(videos)} videos, skipped {skipped}")

    return NormalizedPlaylist(videos=videos, skipped=skipped)

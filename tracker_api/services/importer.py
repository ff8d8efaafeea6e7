"""
Playlist import pipeline.

All platform fetches happen before anything is written: a failed fetch
aborts the import with no partial playlist. Item-level problems are handled
by the normalizer and only reduce the imported video count.
"""

import logging
from typing import Dict, Iterator, List, Optional, Sequence
from uuid import UUID

import asyncpg
from pydantic import BaseModel

from tracker_api.config import settings
from tracker_api.models.playlists import Playlist, Video
from tracker_api.services.normalizer import (
    normalize_playlist_items,
    resolve_thumbnail,
    resolve_video_id,
)
from tracker_api.services.youtube import YouTubeClient

logger = logging.getLogger(__name__)


class ImportResult(BaseModel):
    playlist: Playlist
    skipped: int = 0


def chunked(values: Sequence[str], size: int) -> Iterator[List[str]]:
    for start in range(0, len(values), size):
        yield list(values[start:start + size])


async def collect_playlist_items(
    client: YouTubeClient,
    playlist_id: str,
    max_pages: Optional[int] = None,
) -> List[dict]:
    """Follow nextPageToken until the listing is exhausted."""
    max_pages = max_pages or settings.YOUTUBE_MAX_PAGES
    items: List[dict] = []
    page_token = None

    for page in range(1, max_pages + 1):
        result = await client.fetch_playlist_items(playlist_id, page_token=page_token)
        items.extend(result.items)
        logger.debug(f"Fetched page {page} of {playlist_id}: {len(result.items)} items")

        page_token = result.next_page_token
        if not page_token:
            break
    else:
        logger.warning(f"Stopped listing {playlist_id} after {max_pages} pages")

    return items


async def collect_durations(
    client: YouTubeClient,
    video_ids: Sequence[str],
    batch_size: Optional[int] = None,
) -> Dict[str, str]:
    """Look up durations in batches and merge the responses."""
    batch_size = batch_size or settings.YOUTUBE_BATCH_SIZE
    unique_ids = list(dict.fromkeys(video_ids))
    durations: Dict[str, str] = {}

    for batch in chunked(unique_ids, batch_size):
        durations.update(await client.fetch_video_durations(batch))

    return durations


async def save_playlist(
    pool: asyncpg.Pool,
    user_id: UUID,
    playlist_id: str,
    title: str,
    description: str,
    thumbnail_url: str,
    videos: List[Video],
) -> Playlist:
    """Insert the playlist and every video in one transaction."""
    async with pool.acquire() as conn:
        async with conn.transaction():
            row = await conn.fetchrow(
                """
                INSERT INTO playlists (
                    user_id, playlist_id, title, description, thumbnail_url, video_count
                ) VALUES ($1, $2, $3, $4, $5, $6)
                RETURNING *
                """,
                user_id,
                playlist_id,
                title,
                description,
                thumbnail_url,
                len(videos)
            )

            await conn.executemany(
                """
                INSERT INTO playlist_videos (
                    playlist_uuid, position, video_id, title, duration_seconds, thumbnail_url
                ) VALUES ($1, $2, $3, $4, $5, $6)
                """,
                [
                    (row["id"], v.position, v.video_id, v.title, v.duration_seconds, v.thumbnail_url)
                    for v in videos
                ]
            )

    return Playlist(**dict(row), videos=videos)


async def import_playlist(
    pool: asyncpg.Pool,
    client: YouTubeClient,
    user_id: UUID,
    playlist_id: str,
) -> ImportResult:
    """
    Import a playlist for a user.

    Raises:
        UpstreamFailure: if any platform call fails (nothing is persisted)
        NoVideosImported: if no playlist item could be normalized
    """
    metadata = await client.fetch_playlist_metadata(playlist_id)
    items = await collect_playlist_items(client, playlist_id)

    video_ids = [vid for vid in (resolve_video_id(item) for item in items) if vid]
    durations = await collect_durations(client, video_ids)

    normalized = normalize_playlist_items(items, durations)

    playlist = await save_playlist(
        pool,
        user_id,
        playlist_id,
        metadata.title,
        metadata.description,
        resolve_thumbnail(metadata.thumbnails),
        normalized.videos,
    )

    logger.info(
        f"Imported playlist {playlist_id} for user {user_id}: "
        f"{len(normalized.videos)} videos, {normalized.skipped} skipped"
    )
    return ImportResult(playlist=playlist, skipped=normalized.skipped)

import logging
import uuid as uuid_lib
from datetime import date
from typing import Any, Dict, List

import asyncpg
from fastapi import APIRouter, Depends, HTTPException, status

from tracker_api.auth.dependencies import require_auth
from tracker_api.database import get_pool
from tracker_api.errors import NoVideosImported, UpstreamFailure, UpstreamReason
from tracker_api.models.auth import CurrentUser
from tracker_api.models.playlists import Playlist, PlaylistImportRequest, SpeedUpdate, Video
from tracker_api.routers.analytics import transform_activity, transform_streak, transform_total_stats
from tracker_api.services.activity import fetch_overall_progress, record_activity
from tracker_api.services.clock import get_today
from tracker_api.services.importer import import_playlist
from tracker_api.services.ledger import ActivityEvent
from tracker_api.services.progress import compute_progress, compute_remaining_time
from tracker_api.services.youtube import YouTubeClient

logger = logging.getLogger(__name__)

router = APIRouter()

UPSTREAM_STATUS = {
    UpstreamReason.NOT_FOUND: (status.HTTP_404_NOT_FOUND, "Playlist not found on YouTube"),
    UpstreamReason.QUOTA: (status.HTTP_429_TOO_MANY_REQUESTS, "YouTube API quota exceeded"),
    UpstreamReason.INVALID_KEY: (status.HTTP_502_BAD_GATEWAY, "YouTube API key is invalid"),
    UpstreamReason.GENERIC: (status.HTTP_502_BAD_GATEWAY, "Failed to fetch playlist from YouTube"),
}


async def get_youtube_client():
    """Dependency yielding a YouTube client for the request."""
    async with YouTubeClient() as client:
        yield client


def parse_playlist_uuid(playlist_uuid: str) -> uuid_lib.UUID:
    try:
        return uuid_lib.UUID(playlist_uuid)
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid UUID format")


def transform_video(video: Video) -> Dict[str, Any]:
    return {
        "videoId": video.video_id,
        "title": video.title,
        "durationSeconds": video.duration_seconds,
        "thumbnailUrl": video.thumbnail_url,
        "position": video.position,
        "completed": video.completed,
        "completedAt": video.completed_at.isoformat() if video.completed_at else None,
    }


def transform_remaining(videos: List[Video], speed: float) -> Dict[str, Any]:
    remaining = compute_remaining_time(videos, speed)
    return {"seconds": remaining.seconds, "formatted": remaining.formatted}


def transform_playlist(playlist: Playlist, include_videos: bool = True) -> Dict[str, Any]:
    """Playlist with derived progress and remaining time, camelCase keys."""
    result = {
        "id": str(playlist.id),
        "playlistId": playlist.playlist_id,
        "title": playlist.title,
        "description": playlist.description,
        "thumbnailUrl": playlist.thumbnail_url,
        "videoCount": playlist.video_count,
        "playbackSpeed": playlist.playback_speed,
        "createdAt": playlist.created_at.isoformat() if playlist.created_at else None,
        "progress": compute_progress(playlist.videos).model_dump(),
        "remainingTime": transform_remaining(playlist.videos, playlist.playback_speed),
    }
    if include_videos:
        result["videos"] = [transform_video(v) for v in playlist.videos]
    return result


async def fetch_videos(conn: asyncpg.Connection, playlist_uuid: uuid_lib.UUID) -> List[Video]:
    rows = await conn.fetch(
        "SELECT * FROM playlist_videos WHERE playlist_uuid = $1 ORDER BY position",
        playlist_uuid
    )
    return [Video(**dict(row)) for row in rows]


async def fetch_playlist(
    conn: asyncpg.Connection,
    playlist_uuid: uuid_lib.UUID,
    user_id: uuid_lib.UUID,
) -> Playlist:
    row = await conn.fetchrow(
        "SELECT * FROM playlists WHERE id = $1 AND user_id = $2",
        playlist_uuid,
        user_id
    )
    if row is None:
        raise HTTPException(status_code=404, detail="Playlist not found")

    return Playlist(**dict(row), videos=await fetch_videos(conn, playlist_uuid))


@router.post("/import", status_code=status.HTTP_201_CREATED)
async def import_from_youtube(
    payload: PlaylistImportRequest,
    user: CurrentUser = Depends(require_auth),
    pool: asyncpg.Pool = Depends(get_pool),
    client: YouTubeClient = Depends(get_youtube_client)
):
    """Import a YouTube playlist with every video's duration."""
    try:
        result = await import_playlist(pool, client, user.id, payload.playlist_id)
    except UpstreamFailure as e:
        code, detail = UPSTREAM_STATUS[e.reason]
        logger.error(f"Import of {payload.playlist_id} failed: {e}")
        raise HTTPException(status_code=code, detail={"reason": e.reason.value, "message": detail})
    except NoVideosImported as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail={"reason": "no_videos", "message": "No videos processed", "skipped": e.skipped}
        )

    response = transform_playlist(result.playlist)
    response["skipped"] = result.skipped
    return response


@router.get("")
async def list_playlists(
    user: CurrentUser = Depends(require_auth),
    pool: asyncpg.Pool = Depends(get_pool)
):
    """List the user's playlists with progress, without video lists."""
    async with pool.acquire() as conn:
        rows = await conn.fetch(
            "SELECT * FROM playlists WHERE user_id = $1 ORDER BY created_at",
            user.id
        )
        playlists = [
            Playlist(**dict(row), videos=await fetch_videos(conn, row["id"]))
            for row in rows
        ]

    return [transform_playlist(p, include_videos=False) for p in playlists]


@router.get("/{playlist_uuid}")
async def get_playlist(
    playlist_uuid: str,
    user: CurrentUser = Depends(require_auth),
    pool: asyncpg.Pool = Depends(get_pool)
):
    """Get one playlist with its videos."""
    playlist_id = parse_playlist_uuid(playlist_uuid)

    async with pool.acquire() as conn:
        playlist = await fetch_playlist(conn, playlist_id, user.id)

    return transform_playlist(playlist)


@router.post("/{playlist_uuid}/videos/{video_id}/toggle")
async def toggle_video(
    playlist_uuid: str,
    video_id: str,
    user: CurrentUser = Depends(require_auth),
    today: date = Depends(get_today),
    pool: asyncpg.Pool = Depends(get_pool)
):
    """
    Flip a video's completed flag and record it in today's activity.

    The flip, the ledger update and the returned totals share one transaction.
    """
    playlist_id = parse_playlist_uuid(playlist_uuid)

    async with pool.acquire() as conn:
        async with conn.transaction():
            owner = await conn.fetchrow(
                "SELECT id, playback_speed FROM playlists WHERE id = $1 AND user_id = $2",
                playlist_id,
                user.id
            )
            if owner is None:
                raise HTTPException(status_code=404, detail="Playlist not found")

            row = await conn.fetchrow(
                """
                UPDATE playlist_videos
                SET completed = NOT completed,
                    completed_at = CASE WHEN completed THEN NULL ELSE NOW() END
                WHERE playlist_uuid = $1 AND video_id = $2
                RETURNING *
                """,
                playlist_id,
                video_id
            )
            if row is None:
                raise HTTPException(status_code=404, detail="Video not found")

            video = Video(**dict(row))
            event = ActivityEvent.completed() if video.completed else ActivityEvent.uncompleted()
            ledger, update = await record_activity(conn, user.id, video_id, today, event)

            videos = await fetch_videos(conn, playlist_id)
            overall = await fetch_overall_progress(conn, user.id)

    return {
        "video": transform_video(video),
        "progress": compute_progress(videos).model_dump(),
        "remainingTime": transform_remaining(videos, owner["playback_speed"]),
        "totalStats": transform_total_stats(overall, ledger.totals),
        "streak": transform_streak(ledger.streak, today),
        "todayActivity": transform_activity(update.entry),
    }


@router.post("/{playlist_uuid}/speed")
async def update_speed(
    playlist_uuid: str,
    payload: SpeedUpdate,
    user: CurrentUser = Depends(require_auth),
    pool: asyncpg.Pool = Depends(get_pool)
):
    """Set the playback speed used for remaining-time estimates."""
    playlist_id = parse_playlist_uuid(playlist_uuid)

    async with pool.acquire() as conn:
        row = await conn.fetchrow(
            "UPDATE playlists SET playback_speed = $1 WHERE id = $2 AND user_id = $3 RETURNING id",
            payload.speed,
            playlist_id,
            user.id
        )
        if row is None:
            raise HTTPException(status_code=404, detail="Playlist not found")

        videos = await fetch_videos(conn, playlist_id)

    return {
        "speed": payload.speed,
        "remainingTime": transform_remaining(videos, payload.speed),
    }


@router.delete("/{playlist_uuid}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_playlist(
    playlist_uuid: str,
    user: CurrentUser = Depends(require_auth),
    pool: asyncpg.Pool = Depends(get_pool)
):
    """Delete a playlist and its videos. Recorded activity is kept."""
    playlist_id = parse_playlist_uuid(playlist_uuid)

    async with pool.acquire() as conn:
        result = await conn.execute(
            "DELETE FROM playlists WHERE id = $1 AND user_id = $2",
            playlist_id,
            user.id
        )

    if result == "DELETE 0":
        raise HTTPException(status_code=404, detail="Playlist not found")

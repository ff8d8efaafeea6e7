from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field


class Video(BaseModel):
    """A video inside an imported playlist."""
    video_id: str
    title: str
    duration_seconds: int = Field(0, ge=0)
    thumbnail_url: str = ""
    position: int = Field(..., ge=0)
    completed: bool = False
    completed_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class PlaylistBase(BaseModel):
    """Base playlist model."""
    playlist_id: str
    title: str
    description: str = ""
    thumbnail_url: str = ""
    video_count: int = 0
    playback_speed: float = 1.0


class Playlist(PlaylistBase):
    """Full playlist model."""
    id: UUID
    user_id: UUID
    created_at: Optional[datetime] = None
    videos: List[Video] = []

    class Config:
        from_attributes = True


class PlaylistImportRequest(BaseModel):
    """Import request; the id is the platform's playlist id."""
    playlist_id: str = Field(..., alias="playlistId", min_length=1, max_length=64)

    class Config:
        populate_by_name = True


class SpeedUpdate(BaseModel):
    """Playback speed update."""
    speed: float = Field(..., gt=0, le=16)


class Progress(BaseModel):
    """Completion progress for one playlist."""
    completed: int
    total: int
    percentage: float


class RemainingTime(BaseModel):
    """Watch time left on incomplete videos, adjusted for playback speed."""
    seconds: float
    hours: int
    minutes: int
    formatted: str

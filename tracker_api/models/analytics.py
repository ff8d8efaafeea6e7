from datetime import date
from typing import List, Optional

from pydantic import BaseModel, Field


class DailyActivity(BaseModel):
    """One user's learning activity for a single calendar day."""
    date: date
    videos_watched: int = 0
    watch_time_minutes: int = 0
    completed_video_ids: List[str] = []


class StreakState(BaseModel):
    """Consecutive-day streak."""
    current: int = 0
    longest: int = 0
    last_active_date: Optional[date] = None


class TotalStats(BaseModel):
    """Running counters kept in lockstep with the ledger."""
    total_videos_watched: int = 0
    total_watch_time_minutes: int = 0
    total_active_days: int = 0


class CalendarDay(BaseModel):
    """Heatmap cell."""
    date: date
    count: int
    intensity: int  # 0-4


class OverallProgress(BaseModel):
    """Completion across every playlist a user owns."""
    total_watched: int
    total_videos: int
    completion_percentage: float


class TrackWatchRequest(BaseModel):
    """Watch time reported by the player."""
    video_id: str = Field(..., alias="videoId", min_length=1)
    watch_time_minutes: int = Field(..., alias="watchTimeMinutes", ge=0, le=24 * 60)
    playlist_id: Optional[str] = Field(None, alias="playlistId")

    class Config:
        populate_by_name = True

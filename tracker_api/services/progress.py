from typing import Iterable, Optional, Sequence, Tuple

from tracker_api.models.analytics import OverallProgress
from tracker_api.models.playlists import Progress, RemainingTime, Video


def compute_progress(videos: Sequence[Video]) -> Progress:
    """Completed/total counts and the completion percentage (0-100)."""
    total = len(videos)
    completed = sum(1 for v in videos if v.completed)
    percentage = completed / total * 100 if total > 0 else 0.0
    return Progress(completed=completed, total=total, percentage=percentage)


def compute_remaining_time(videos: Iterable[Video], speed: Optional[float] = 1.0) -> RemainingTime:
    """
    Seconds left on incomplete videos at the given playback speed.

    A missing or non-positive speed counts as 1.0.
    """
    if not speed or speed <= 0:
        speed = 1.0

    seconds = sum(v.duration_seconds for v in videos if not v.completed) / speed
    hours = int(seconds // 3600)
    minutes = int(seconds // 60) % 60

    return RemainingTime(
        seconds=seconds,
        hours=hours,
        minutes=minutes,
        formatted=f"{hours}h {minutes}m",
    )


def compute_overall_progress(counts: Iterable[Tuple[int, int]]) -> OverallProgress:
    """Completion totals from per-playlist (completed, total) pairs."""
    total_watched = 0
    total_videos = 0
    for completed, total in counts:
        total_watched += completed
        total_videos += total

    percentage = round(total_watched / total_videos * 100, 1) if total_videos > 0 else 0.0
    return OverallProgress(
        total_watched=total_watched,
        total_videos=total_videos,
        completion_percentage=percentage,
    )

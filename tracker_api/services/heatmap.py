from datetime import date, timedelta
from typing import Iterable, List

from tracker_api.models.analytics import CalendarDay, DailyActivity

DEFAULT_WINDOW_DAYS = 364  # 52 weeks
MAX_INTENSITY = 4


def render_calendar(
    entries: Iterable[DailyActivity],
    reference_date: date,
    window_days: int = DEFAULT_WINDOW_DAYS,
) -> List[CalendarDay]:
    """Heatmap cells for the `window_days` days ending at `reference_date`, oldest first."""
    counts = {e.date: e.videos_watched for e in entries}
    start = reference_date - timedelta(days=window_days - 1)

    calendar = []
    for offset in range(window_days):
        day = start + timedelta(days=offset)
        count = counts.get(day, 0)
        calendar.append(CalendarDay(date=day, count=count, intensity=min(count, MAX_INTENSITY)))
    return calendar

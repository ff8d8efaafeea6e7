import re
from typing import Optional

DURATION_PATTERN = re.compile(r"^PT(?:(\d+)H)?(?:(\d+)M)?(?:(\d+)S)?$")


def parse_duration(token: Optional[str]) -> int:
    """
    Convert a YouTube duration such as "PT1H2M3S" to whole seconds.

    Missing, malformed or unmatched tokens return 0 rather than raising,
    so one bad record from the platform cannot abort an import.
    """
    if not token or not isinstance(token, str):
        return 0

    match = DURATION_PATTERN.match(token.strip())
    if not match:
        return 0

    hours, minutes, seconds = (int(part) if part else 0 for part in match.groups())
    return hours * 3600 + minutes * 60 + seconds

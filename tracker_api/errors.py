"""
Domain errors raised by the service layer.

Routers translate these to HTTPException; nothing here is fatal to the process.
Missing rows are not modelled here: routers raise HTTPException(404) directly.
"""

from enum import Enum


class UpstreamReason(str, Enum):
    NOT_FOUND = "not_found"
    QUOTA = "quota"
    INVALID_KEY = "invalid_key"
    GENERIC = "generic"


class UpstreamFailure(Exception):
    """The video platform could not be used; the import is aborted wholesale."""

    def __init__(self, reason: UpstreamReason, message: str = ""):
        self.reason = reason
        self.message = message or reason.value
        super().__init__(f"{reason.value}: {self.message}")


class NoVideosImported(Exception):
    """Every playlist item failed normalization."""

    def __init__(self, skipped: int = 0):
        self.skipped = skipped
        super().__init__(f"No videos processed ({skipped} skipped)")

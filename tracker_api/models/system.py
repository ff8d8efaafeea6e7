from datetime import datetime

from pydantic import BaseModel


class HealthStatus(BaseModel):
    """Health status response."""
    status: str
    database: str
    youtube: str
    version: str
    timestamp: datetime

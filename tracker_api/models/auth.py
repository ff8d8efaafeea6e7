import uuid

from pydantic import BaseModel, Field
from typing import Optional


class UserUpdate(BaseModel):
    """Model for updating user profile (self-service)."""
    display_name: Optional[str] = Field(None, max_length=100)


class SessionRequest(BaseModel):
    """Request body for creating a session from Firebase token."""
    id_token: str = Field(..., description="Firebase ID token from client")


class CurrentUser(BaseModel):
    """Minimal user info for auth dependency."""
    id: uuid.UUID
    email: str
    is_active: bool = True

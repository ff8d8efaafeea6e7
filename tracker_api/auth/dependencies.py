"""
FastAPI authentication dependencies.

These dependencies turn the session cookie into the user id every tracker
operation is scoped to.
"""

import logging
import uuid
from typing import Optional

from fastapi import Depends, HTTPException, Request, status
import asyncpg

from tracker_api.config import settings
from tracker_api.database import get_pool
from tracker_api.models.auth import CurrentUser
from .firebase import verify_session_cookie, is_firebase_initialized

logger = logging.getLogger(__name__)


async def get_current_user_optional(
    request: Request,
    pool: asyncpg.Pool = Depends(get_pool)
) -> Optional[CurrentUser]:
    """
    Extract user from session cookie.

    Returns None if no valid session.
    """
    if not is_firebase_initialized():
        logger.debug("Firebase not initialized, skipping auth")
        return None

    session_cookie = request.cookies.get(settings.SESSION_COOKIE_NAME)
    if not session_cookie:
        return None

    try:
        decoded = await verify_session_cookie(session_cookie)
    except ValueError as e:
        # Invalid/expired session - not an error, just not authenticated
        logger.debug(f"Invalid session: {e}")
        return None

    firebase_uid = decoded.get("uid")
    if not firebase_uid:
        logger.warning("Session cookie missing uid claim")
        return None

    try:
        async with pool.acquire() as conn:
            row = await conn.fetchrow(
                """
                SELECT id, email, is_active
                FROM users
                WHERE firebase_uid = $1 AND is_active = TRUE
                """,
                firebase_uid
            )
    except asyncpg.PostgresError as e:
        logger.error(f"Error getting current user: {e}")
        return None

    if not row:
        logger.debug(f"User with firebase_uid {firebase_uid} not found in database")
        return None

    return CurrentUser(
        id=row["id"] if isinstance(row["id"], uuid.UUID) else uuid.UUID(str(row["id"])),
        email=row["email"],
        is_active=row["is_active"]
    )


async def require_auth(
    user: Optional[CurrentUser] = Depends(get_current_user_optional)
) -> CurrentUser:
    """
    Require authenticated user.

    Raises 401 if not authenticated.
    """
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Please login",
            headers={"WWW-Authenticate": "Bearer"}
        )
    return user

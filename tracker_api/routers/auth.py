"""
Authentication router for the Playlist Tracker API.

Handles Firebase session creation and the current user's profile.
"""

import logging

import asyncpg
from fastapi import APIRouter, Depends, HTTPException, Response, status

from tracker_api.auth.dependencies import require_auth
from tracker_api.auth.firebase import (
    create_session_cookie,
    is_firebase_initialized,
    verify_firebase_token,
)
from tracker_api.config import settings
from tracker_api.database import get_pool
from tracker_api.models.auth import CurrentUser, SessionRequest, UserUpdate

logger = logging.getLogger(__name__)

router = APIRouter()


def transform_user_response(row: dict) -> dict:
    """Transform database row to API response with camelCase fields."""
    result = dict(row)

    if 'id' in result and result['id']:
        result['id'] = str(result['id'])

    if 'firebase_uid' in result:
        result['firebaseUid'] = result['firebase_uid']
    if 'email_verified' in result:
        result['emailVerified'] = result['email_verified']
    if 'display_name' in result:
        result['displayName'] = result['display_name']
    if 'avatar_url' in result:
        result['avatarUrl'] = result['avatar_url']
    if 'is_active' in result:
        result['isActive'] = result['is_active']
    if 'created_at' in result and result['created_at']:
        result['createdAt'] = result['created_at'].isoformat()
    if 'updated_at' in result and result['updated_at']:
        result['updatedAt'] = result['updated_at'].isoformat()
    if 'last_login_at' in result and result['last_login_at']:
        result['lastLoginAt'] = result['last_login_at'].isoformat()

    return result


@router.post("/session")
async def create_session(
    response: Response,
    body: SessionRequest,
    pool: asyncpg.Pool = Depends(get_pool)
):
    """
    Create a session from a Firebase ID token.

    Verifies the token, creates or updates the user row and sets an
    httpOnly session cookie. Returns the user profile.
    """
    if not is_firebase_initialized():
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Authentication service not available"
        )

    try:
        decoded = await verify_firebase_token(body.id_token)
        firebase_uid = decoded.get("uid")
        email = decoded.get("email")

        if not firebase_uid or not email:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Invalid token: missing user information"
            )

        async with pool.acquire() as conn:
            user = await conn.fetchrow(
                """
                INSERT INTO users (
                    firebase_uid, email, email_verified, display_name, avatar_url, last_login_at
                ) VALUES ($1, $2, $3, $4, $5, NOW())
                ON CONFLICT (firebase_uid) DO UPDATE
                  SET last_login_at = NOW(),
                      updated_at = NOW(),
                      email_verified = EXCLUDED.email_verified,
                      display_name = COALESCE(EXCLUDED.display_name, users.display_name),
                      avatar_url = COALESCE(EXCLUDED.avatar_url, users.avatar_url)
                RETURNING *
                """,
                firebase_uid,
                email,
                decoded.get("email_verified", False),
                decoded.get("name"),
                decoded.get("picture")
            )

        if not user["is_active"]:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Account is disabled"
            )

        session_cookie = await create_session_cookie(
            body.id_token,
            expires_in=settings.SESSION_COOKIE_MAX_AGE
        )

        response.set_cookie(
            key=settings.SESSION_COOKIE_NAME,
            value=session_cookie,
            max_age=settings.SESSION_COOKIE_MAX_AGE,
            httponly=settings.SESSION_COOKIE_HTTPONLY,
            secure=settings.SESSION_COOKIE_SECURE,
            samesite=settings.SESSION_COOKIE_SAMESITE
        )

        logger.info(f"Session created for {email}")
        return {
            "user": transform_user_response(dict(user)),
            "message": "Session created successfully"
        }

    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(e)
        )
    except asyncpg.PostgresError as e:
        logger.error(f"Error creating session: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create session"
        )


@router.post("/logout")
async def logout(
    response: Response,
    user: CurrentUser = Depends(require_auth)
):
    """Log out the current user by clearing the session cookie."""
    response.delete_cookie(
        key=settings.SESSION_COOKIE_NAME,
        httponly=settings.SESSION_COOKIE_HTTPONLY,
        secure=settings.SESSION_COOKIE_SECURE,
        samesite=settings.SESSION_COOKIE_SAMESITE
    )
    logger.debug(f"User {user.id} logged out")
    return {"message": "Logged out"}


@router.get("/me")
async def get_me(
    user: CurrentUser = Depends(require_auth),
    pool: asyncpg.Pool = Depends(get_pool)
):
    """Get the current user's profile."""
    async with pool.acquire() as conn:
        row = await conn.fetchrow(
            "SELECT * FROM users WHERE id = $1",
            user.id
        )

    if not row:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found"
        )

    return transform_user_response(dict(row))


@router.patch("/me")
async def update_me(
    body: UserUpdate,
    user: CurrentUser = Depends(require_auth),
    pool: asyncpg.Pool = Depends(get_pool)
):
    """
    Update the current user's profile.

    Only display_name can be updated by the user.
    """
    async with pool.acquire() as conn:
        row = await conn.fetchrow(
            """
            UPDATE users
            SET display_name = COALESCE($2, display_name),
                updated_at = NOW()
            WHERE id = $1
            RETURNING *
            """,
            user.id,
            body.display_name
        )

    if not row:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found"
        )

    return transform_user_response(dict(row))

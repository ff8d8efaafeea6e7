"""
Firebase Admin SDK wrapper for authentication.

Verifies ID tokens and manages the session cookies that identify a user to
every tracker endpoint.
"""

import logging
import os
from datetime import timedelta

import firebase_admin
from firebase_admin import auth, credentials
from firebase_admin.exceptions import FirebaseError

from tracker_api.config import settings

logger = logging.getLogger(__name__)

# Firebase app instance (singleton)
_firebase_app: firebase_admin.App | None = None


def initialize_firebase() -> bool:
    """
    Initialize Firebase Admin SDK.

    Returns True if initialization was successful, False otherwise.
    Should be called once during app startup.
    """
    global _firebase_app

    if _firebase_app is not None:
        logger.debug("Firebase already initialized")
        return True

    service_account_path = settings.FIREBASE_SERVICE_ACCOUNT_PATH

    if not os.path.exists(service_account_path):
        logger.warning(
            f"Firebase service account file not found at {service_account_path}. "
            "Sessions cannot be created until this file is provided."
        )
        return False

    try:
        cred = credentials.Certificate(service_account_path)
        _firebase_app = firebase_admin.initialize_app(cred)
        logger.info("Firebase Admin SDK initialized successfully")
        return True
    except (ValueError, OSError, FirebaseError) as e:
        logger.error(f"Failed to initialize Firebase Admin SDK: {e}")
        return False


def is_firebase_initialized() -> bool:
    """Check if Firebase Admin SDK is initialized."""
    return _firebase_app is not None


async def verify_firebase_token(id_token: str) -> dict:
    """
    Verify a Firebase ID token.

    Raises:
        ValueError: If token is invalid or expired
        RuntimeError: If Firebase is not initialized
    """
    if not is_firebase_initialized():
        raise RuntimeError("Firebase Admin SDK not initialized")

    try:
        return auth.verify_id_token(id_token)
    except auth.ExpiredIdTokenError as e:
        logger.warning(f"Expired Firebase ID token: {e}")
        raise ValueError("Authentication token has expired")
    except auth.RevokedIdTokenError as e:
        logger.warning(f"Revoked Firebase ID token: {e}")
        raise ValueError("Authentication token has been revoked")
    except auth.InvalidIdTokenError as e:
        logger.warning(f"Invalid Firebase ID token: {e}")
        raise ValueError("Invalid authentication token")
    except FirebaseError as e:
        logger.error(f"Firebase error verifying token: {e}")
        raise ValueError("Authentication verification failed")


async def create_session_cookie(id_token: str, expires_in: int = None) -> str:
    """
    Create a session cookie from a Firebase ID token.

    Raises:
        ValueError: If token is invalid
        RuntimeError: If Firebase is not initialized
    """
    if not is_firebase_initialized():
        raise RuntimeError("Firebase Admin SDK not initialized")

    if expires_in is None:
        expires_in = settings.SESSION_COOKIE_MAX_AGE

    try:
        return auth.create_session_cookie(id_token, expires_in=timedelta(seconds=expires_in))
    except auth.InvalidIdTokenError as e:
        logger.warning(f"Invalid ID token for session cookie: {e}")
        raise ValueError("Invalid authentication token")
    except FirebaseError as e:
        logger.error(f"Firebase error creating session cookie: {e}")
        raise ValueError("Failed to create session")


async def verify_session_cookie(session_cookie: str, check_revoked: bool = True) -> dict:
    """
    Verify a Firebase session cookie.

    Raises:
        ValueError: If cookie is invalid or expired
        RuntimeError: If Firebase is not initialized
    """
    if not is_firebase_initialized():
        raise RuntimeError("Firebase Admin SDK not initialized")

    try:
        return auth.verify_session_cookie(session_cookie, check_revoked=check_revoked)
    except auth.ExpiredSessionCookieError as e:
        logger.debug(f"Expired session cookie: {e}")
        raise ValueError("Session has expired")
    except auth.RevokedSessionCookieError as e:
        logger.debug(f"Revoked session cookie: {e}")
        raise ValueError("Session has been revoked")
    except auth.InvalidSessionCookieError as e:
        logger.debug(f"Invalid session cookie: {e}")
        raise ValueError("Invalid session")
    except FirebaseError as e:
        logger.error(f"Firebase error verifying session cookie: {e}")
        raise ValueError("Session verification failed")

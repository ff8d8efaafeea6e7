"""
Authentication module for the Playlist Tracker API.

Firebase Auth integration with httpOnly session cookies.
"""

from .dependencies import (
    get_current_user_optional,
    require_auth,
)
from .firebase import (
    create_session_cookie,
    initialize_firebase,
    is_firebase_initialized,
    verify_firebase_token,
    verify_session_cookie,
)

__all__ = [
    # Firebase functions
    "initialize_firebase",
    "is_firebase_initialized",
    "verify_firebase_token",
    "create_session_cookie",
    "verify_session_cookie",
    # Dependencies
    "get_current_user_optional",
    "require_auth",
]

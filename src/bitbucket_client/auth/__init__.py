"""
Authentication: session state, its persistence and the login flows.
"""

from .session_store import SessionStore, KeyringSessionStore, FileSessionStore, create_session_store
from .session_manager import SessionManager
from .authenticator import Authenticator

__all__ = [
    "SessionStore",
    "KeyringSessionStore",
    "FileSessionStore",
    "create_session_store",
    "SessionManager",
    "Authenticator"
]

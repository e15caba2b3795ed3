"""
Error types raised by the Bitbucket client.
"""

from .exceptions import (
    BitbucketClientError, NotAuthenticatedError, AuthenticationError,
    UnsupportedAuthError, ApiError, NoChangesSpecifiedError, ValidationError,
    NoTeamsAvailableError, SessionStorageError
)

__all__ = [
    "BitbucketClientError",
    "NotAuthenticatedError",
    "AuthenticationError",
    "UnsupportedAuthError",
    "ApiError",
    "NoChangesSpecifiedError",
    "ValidationError",
    "NoTeamsAvailableError",
    "SessionStorageError"
]

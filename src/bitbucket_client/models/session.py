"""
Session data model holding resolved authentication state.
"""

import base64
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Dict, Any

from ..error_handling import SessionStorageError


class AuthType(Enum):
    """How the session authenticates against the API."""
    BASIC = "Basic"
    BEARER = "Bearer"


@dataclass
class Session:
    """
    Authenticated session state.

    ``credential`` holds the header material: the base64 encoded
    ``user:password`` pair for basic auth, or the access token for bearer
    auth. ``display_name`` is resolved from the API at login, and
    ``selected_team`` is set later by team selection.
    """

    auth_type: AuthType
    credential: str
    display_name: Optional[str] = None
    selected_team: Optional[str] = None

    @classmethod
    def basic(cls, username: str, password: str) -> "Session":
        """Build an unresolved basic-auth session from a username and password."""
        encoded = base64.b64encode(f"{username}:{password}".encode("utf-8")).decode("ascii")
        return cls(auth_type=AuthType.BASIC, credential=encoded)

    @classmethod
    def bearer(cls, token: str) -> "Session":
        """Build an unresolved bearer session from an access token."""
        return cls(auth_type=AuthType.BEARER, credential=token)

    @property
    def is_bearer(self) -> bool:
        return self.auth_type is AuthType.BEARER

    @property
    def is_resolved(self) -> bool:
        """Whether the user identity has been fetched."""
        return bool(self.display_name)

    def auth_header(self) -> str:
        """
        Get the Authorization header value for this session.

        Returns:
            ``Basic <base64>`` or ``Bearer <token>``
        """
        return f"{self.auth_type.value} {self.credential}"

    def to_dict(self) -> Dict[str, Any]:
        """Serialize the session for persistence."""
        return {
            "auth_type": self.auth_type.value,
            "credential": self.credential,
            "display_name": self.display_name,
            "selected_team": self.selected_team
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Session":
        """
        Rebuild a session from its persisted form.

        Args:
            data: Dictionary produced by ``to_dict``

        Returns:
            Session instance

        Raises:
            SessionStorageError: If the data is not a valid persisted session
        """
        try:
            return cls(
                auth_type=AuthType(data["auth_type"]),
                credential=data["credential"],
                display_name=data.get("display_name"),
                selected_team=data.get("selected_team")
            )
        except (KeyError, TypeError, ValueError) as e:
            raise SessionStorageError("Persisted session is malformed", cause=e)

    def __repr__(self) -> str:
        return (
            f"Session(auth_type={self.auth_type.value}, display_name={self.display_name!r}, "
            f"selected_team={self.selected_team!r})"
        )

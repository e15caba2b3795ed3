"""
Persistent storage for the serialized session.

The session is stored as an opaque JSON blob either in the OS keyring
or in a file readable only by its owner.
"""

import json
import logging
from pathlib import Path
from typing import Optional, Dict, Any, Union

import keyring
from keyring.errors import KeyringError, PasswordDeleteError

from ..config import SessionConfig
from ..error_handling import SessionStorageError

logger = logging.getLogger(__name__)

KEYRING_SESSION_KEY = "session"


class SessionStore:
    """Interface for save/load/clear of a serialized session."""

    name = "base"

    def save(self, data: Dict[str, Any]) -> None:
        raise NotImplementedError

    def load(self) -> Optional[Dict[str, Any]]:
        raise NotImplementedError

    def clear(self) -> None:
        raise NotImplementedError


class KeyringSessionStore(SessionStore):
    """Stores the session in the OS keyring."""

    name = "keyring"

    def __init__(self, service: str, key: str = KEYRING_SESSION_KEY):
        self.service = service
        self.key = key

    def save(self, data: Dict[str, Any]) -> None:
        try:
            keyring.set_password(self.service, self.key, json.dumps(data))
        except KeyringError as e:
            raise SessionStorageError("Failed to save session to keyring", storage=self.name, cause=e)
        logger.debug(f"Session saved to keyring service '{self.service}'")

    def load(self) -> Optional[Dict[str, Any]]:
        try:
            blob = keyring.get_password(self.service, self.key)
        except KeyringError as e:
            raise SessionStorageError("Failed to read session from keyring", storage=self.name, cause=e)

        if not blob:
            return None
        try:
            return json.loads(blob)
        except json.JSONDecodeError as e:
            raise SessionStorageError("Persisted session is not valid JSON", storage=self.name, cause=e)

    def clear(self) -> None:
        try:
            keyring.delete_password(self.service, self.key)
        except PasswordDeleteError:
            logger.debug("No session stored in keyring")
        except KeyringError as e:
            raise SessionStorageError("Failed to remove session from keyring", storage=self.name, cause=e)


class FileSessionStore(SessionStore):
    """Stores the session as a JSON file with owner-only permissions."""

    name = "file"

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path).expanduser()

    def save(self, data: Dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.touch(mode=0o600, exist_ok=True)
        self.path.chmod(0o600)
        with open(self.path, 'w', encoding='utf-8') as f:
            json.dump(data, f)
        logger.debug(f"Session saved to {self.path}")

    def load(self) -> Optional[Dict[str, Any]]:
        if not self.path.exists():
            return None
        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                return json.load(f)
        except json.JSONDecodeError as e:
            raise SessionStorageError(
                f"Persisted session at {self.path} is not valid JSON",
                storage=self.name,
                cause=e
            )

    def clear(self) -> None:
        if self.path.exists():
            self.path.unlink()
            logger.debug(f"Removed session file {self.path}")


def create_session_store(config: SessionConfig) -> SessionStore:
    """
    Create the session store selected by configuration.

    Args:
        config: Session section of the application config

    Returns:
        Session store instance
    """
    if config.storage == "file":
        return FileSessionStore(config.file_path)
    return KeyringSessionStore(config.keyring_service)

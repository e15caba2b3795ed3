"""
Composition root wiring configuration, session and API components together.
"""

import logging
from typing import Optional

import requests

from .auth import Authenticator, SessionManager, create_session_store
from .confirmation import ConfirmationPolicy, always_confirm
from .config import AppConfig
from .repository import BitbucketClient, RepositoryManager, TeamManager, ChoiceResolver

logger = logging.getLogger(__name__)


class ClientContext:
    """
    Builds the components one command invocation needs.

    The persisted session, if any, is loaded on construction so every
    component shares the same session handle.
    """

    def __init__(
        self,
        config: AppConfig,
        confirm: ConfirmationPolicy = always_confirm,
        resolver: Optional[ChoiceResolver] = None,
        http: Optional[requests.Session] = None,
        load_session: bool = True
    ):
        """
        Initialize the client context.

        Args:
            config: Application configuration
            confirm: Confirmation policy for mutating operations
            resolver: Chooses a team when selection is ambiguous
            http: HTTP session shared by all requests
            load_session: Rehydrate the persisted session
        """
        self.config = config

        self.session_manager = SessionManager(create_session_store(config.session))
        self.client = BitbucketClient(self.session_manager, config.bitbucket, http)
        self.authenticator = Authenticator(self.client, self.session_manager)
        self.repositories = RepositoryManager(self.client, confirm)
        self.teams = TeamManager(self.client, resolver)

        if load_session:
            self.session_manager.load()

    def close(self) -> None:
        self.client.close()

    def __enter__(self) -> "ClientContext":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

"""
Login flows: basic credentials and the OAuth2 password grant.
"""

import logging
from typing import Any, Dict, TYPE_CHECKING

import requests

from ..error_handling import ApiError, AuthenticationError
from ..models import AtlassianCredential, BasicCredential, OAuthConsumer, Session
from .session_manager import SessionManager

if TYPE_CHECKING:
    from ..repository.bitbucket_client import BitbucketClient

logger = logging.getLogger(__name__)

REJECTED_STATUSES = (401, 403)


class Authenticator:
    """
    Turns caller credentials into an open session.

    A login succeeds only once the user identity has been fetched with the
    new credentials; on failure the session manager is left untouched.
    """

    def __init__(self, client: "BitbucketClient", session_manager: SessionManager):
        """
        Initialize authenticator.

        Args:
            client: API client used for the token exchange and identity lookup
            session_manager: Receives the session on successful login
        """
        self.client = client
        self.session_manager = session_manager

    @property
    def http(self) -> requests.Session:
        return self.client.http

    def login_basic(self, credential: BasicCredential) -> Session:
        """
        Log in with a username and app password.

        Args:
            credential: Username and password

        Returns:
            The opened session

        Raises:
            AuthenticationError: If Bitbucket rejects the credentials
        """
        logger.info(f"Logging in {credential.username} with basic auth")
        return self._resolve_and_open(Session.basic(credential.username, credential.password))

    def login_oauth(self, credential: AtlassianCredential, consumer: OAuthConsumer) -> Session:
        """
        Log in through the OAuth2 password grant.

        Args:
            credential: Atlassian account email and password
            consumer: OAuth consumer key and secret

        Returns:
            The opened bearer session

        Raises:
            AuthenticationError: If the exchange or identity lookup is rejected
        """
        logger.info(f"Logging in {credential.email} with OAuth consumer {consumer.key}")
        token = self.exchange_token(credential, consumer)
        return self._resolve_and_open(Session.bearer(token))

    def exchange_token(self, credential: AtlassianCredential, consumer: OAuthConsumer) -> str:
        """
        Exchange account credentials for an access token scoped to the consumer.

        Args:
            credential: Atlassian account email and password
            consumer: OAuth consumer key and secret

        Returns:
            Access token string

        Raises:
            AuthenticationError: If the token endpoint rejects the exchange
        """
        token_url = self.client.config.oauth_token_url
        response = self.http.post(
            token_url,
            auth=(consumer.key, consumer.secret),
            data={
                "grant_type": "password",
                "username": credential.email,
                "password": credential.password
            },
            timeout=self.client.timeout
        )

        payload = self._json_or_text(response)
        if not response.ok:
            message = f"OAuth2 token exchange rejected ({response.status_code})"
            if isinstance(payload, dict) and payload.get("error"):
                message += f": {payload['error']}"
                if payload.get("error_description"):
                    message += f" - {payload['error_description']}"
            raise AuthenticationError(message, status_code=response.status_code, payload=payload)

        token = payload.get("access_token") if isinstance(payload, dict) else None
        if not token:
            raise AuthenticationError(
                "OAuth2 token endpoint returned no access_token",
                status_code=response.status_code,
                payload=payload
            )

        logger.debug(f"Obtained access token from {token_url}")
        return token

    def _resolve_and_open(self, candidate: Session) -> Session:
        try:
            user = self.client.get_current_user(candidate)
        except ApiError as e:
            if e.status_code in REJECTED_STATUSES:
                raise AuthenticationError(
                    "Bitbucket rejected the supplied credentials",
                    status_code=e.status_code,
                    payload=e.payload,
                    cause=e
                )
            raise

        display_name = self._display_name(user or {})
        if not display_name:
            raise AuthenticationError("Bitbucket did not return a user identity", payload=user)

        candidate.display_name = display_name
        return self.session_manager.open(candidate)

    @staticmethod
    def _display_name(user: Dict[str, Any]) -> str:
        return user.get("display_name") or user.get("username") or user.get("nickname") or ""

    @staticmethod
    def _json_or_text(response: requests.Response) -> Any:
        try:
            return response.json()
        except ValueError:
            return response.text

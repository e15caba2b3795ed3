"""Shared test fixtures for bitbucket_client."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, List, Optional
from unittest.mock import MagicMock

import pytest
import requests

from bitbucket_client.auth import FileSessionStore, SessionManager
from bitbucket_client.config import BitbucketConfig
from bitbucket_client.models import Session
from bitbucket_client.repository import BitbucketClient, RepositoryManager, TeamManager

API = "https://api.bitbucket.org/2.0/"
INTERNAL_API = "https://api.bitbucket.org/internal/"
TOKEN_URL = "https://bitbucket.org/site/oauth2/access_token"


def make_response(status_code: int = 200, payload: Any = None, text: Optional[str] = None) -> MagicMock:
    """Build a stand-in for requests.Response."""
    response = MagicMock()
    response.status_code = status_code
    response.ok = status_code < 400
    if payload is not None:
        body = json.dumps(payload)
        response.json.return_value = payload
        response.content = body.encode()
        response.text = body
    else:
        response.json.side_effect = ValueError("No JSON object could be decoded")
        response.content = (text or "").encode()
        response.text = text or ""
    return response


def requested(http: MagicMock) -> List[tuple]:
    """(method, url) of every request sent through the mock HTTP session."""
    return [(c.args[0], c.args[1]) for c in http.request.call_args_list]


def sent_authorization(http: MagicMock) -> str:
    """Authorization header the last mock request would carry on the wire."""
    prepared = requests.Request("GET", "https://bitbucket.example/").prepare()
    return http.request.call_args.kwargs["auth"](prepared).headers["Authorization"]


@pytest.fixture
def http() -> MagicMock:
    return MagicMock()


@pytest.fixture
def session_file(tmp_path: Path) -> Path:
    return tmp_path / "session.json"


@pytest.fixture
def session_manager(session_file: Path) -> SessionManager:
    return SessionManager(FileSessionStore(session_file))


@pytest.fixture
def client(session_manager: SessionManager, http: MagicMock) -> BitbucketClient:
    return BitbucketClient(session_manager, BitbucketConfig(), http)


@pytest.fixture
def basic_session() -> Session:
    session = Session.basic("jdoe", "app-password")
    session.display_name = "John Doe"
    session.selected_team = "acme"
    return session


@pytest.fixture
def bearer_session() -> Session:
    session = Session.bearer("token-abc")
    session.display_name = "John Doe"
    session.selected_team = "acme"
    return session


@pytest.fixture
def logged_in(session_manager: SessionManager, basic_session: Session) -> Session:
    return session_manager.open(basic_session)


@pytest.fixture
def repositories(client: BitbucketClient) -> RepositoryManager:
    return RepositoryManager(client)


@pytest.fixture
def teams(client: BitbucketClient) -> TeamManager:
    return TeamManager(client)

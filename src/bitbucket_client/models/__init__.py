"""
Data models for the Bitbucket client.
"""

from .credentials import BasicCredential, AtlassianCredential, OAuthConsumer
from .session import AuthType, Session
from .team import Team, TeamRole
from .repository import (
    Repository, RepositoryChanges, ForkPolicy, LANGUAGES,
    validate_language, validate_fork_policy
)

__all__ = [
    "BasicCredential",
    "AtlassianCredential",
    "OAuthConsumer",
    "AuthType",
    "Session",
    "Team",
    "TeamRole",
    "Repository",
    "RepositoryChanges",
    "ForkPolicy",
    "LANGUAGES",
    "validate_language",
    "validate_fork_policy"
]

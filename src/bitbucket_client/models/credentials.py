"""
Credential data models supplied by the caller at login time.

Credentials are transient: only the derived header material is ever
kept on a session.
"""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class BasicCredential:
    """Bitbucket username and app password."""
    username: str
    password: str = field(repr=False)


@dataclass(frozen=True)
class AtlassianCredential:
    """Atlassian account email and password used for the OAuth2 password grant."""
    email: str
    password: str = field(repr=False)


@dataclass(frozen=True)
class OAuthConsumer:
    """OAuth consumer key and secret registered in the workspace settings."""
    key: str
    secret: str = field(repr=False)

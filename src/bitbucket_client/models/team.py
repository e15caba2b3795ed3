"""
Team data model.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Dict, Any


class TeamRole(Enum):
    """Role filter applied when listing teams."""
    ADMIN = "admin"
    CONTRIBUTOR = "contributor"
    MEMBER = "member"


@dataclass
class Team:
    """A Bitbucket team as returned by the ``teams`` endpoint."""

    username: str
    display_name: Optional[str] = None
    uuid: Optional[str] = None
    links: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "Team":
        return cls(
            username=data["username"],
            display_name=data.get("display_name"),
            uuid=data.get("uuid"),
            links=data.get("links", {})
        )

    @property
    def html_url(self) -> Optional[str]:
        return self.links.get("html", {}).get("href")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "username": self.username,
            "display_name": self.display_name,
            "uuid": self.uuid
        }

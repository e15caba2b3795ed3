"""
Team listing and selection.
"""

import logging
from typing import Callable, List, Optional, Union

from ..error_handling import NoTeamsAvailableError, ValidationError
from ..models import Team, TeamRole
from .bitbucket_client import BitbucketClient

logger = logging.getLogger(__name__)

# Picks one identifier out of several visible teams
ChoiceResolver = Callable[[List[str]], str]


def parse_role(role: Union[str, TeamRole]) -> TeamRole:
    if isinstance(role, TeamRole):
        return role
    try:
        return TeamRole(role.strip().lower())
    except ValueError:
        raise ValidationError(
            f"Invalid team role: {role!r}",
            field="role",
            value=role,
            allowed=[r.value for r in TeamRole]
        )


class TeamManager:
    """Lists the caller's teams and records the selected one on the session."""

    def __init__(self, client: BitbucketClient, resolver: Optional[ChoiceResolver] = None):
        """
        Initialize team manager.

        Args:
            client: Bitbucket API client
            resolver: Chooses among several teams when selection is ambiguous
        """
        self.client = client
        self.resolver = resolver

    def list_teams(self, role: Union[str, TeamRole] = TeamRole.MEMBER) -> List[Team]:
        """
        List teams visible to the current user.

        Args:
            role: Only teams where the user has this role

        Returns:
            Teams in server order
        """
        role = parse_role(role)
        values = self.client.invoke(f"teams?role={role.value}", paginated=True)
        return [Team.from_api(item) for item in values]

    def select_team(
        self,
        team: Optional[str] = None,
        role: Union[str, TeamRole] = TeamRole.MEMBER,
        resolver: Optional[ChoiceResolver] = None
    ) -> str:
        """
        Select the team later operations default to.

        With an explicit ``team`` no request is made. Otherwise the visible
        teams are listed: a single team is selected directly, several are
        handed to the resolver.

        Args:
            team: Team identifier to select
            role: Role filter used when listing
            resolver: Resolver overriding the manager's default

        Returns:
            The selected team identifier

        Raises:
            NotAuthenticatedError: If no session is open
            NoTeamsAvailableError: If no team matches ``role``
            ValidationError: If the choice is ambiguous and cannot be resolved
        """
        session_manager = self.client.session_manager
        session_manager.get()

        if team:
            session_manager.select_team(team)
            return team

        role = parse_role(role)
        teams = self.list_teams(role)
        if not teams:
            raise NoTeamsAvailableError(role.value)

        options = [t.username for t in teams]
        if len(options) == 1:
            chosen = options[0]
        else:
            resolver = resolver or self.resolver
            if resolver is None:
                raise ValidationError(
                    f"{len(options)} teams visible; specify which one to select",
                    field="team",
                    allowed=options
                )
            chosen = resolver(options)
            if chosen not in options:
                raise ValidationError(
                    f"Unknown team: {chosen!r}",
                    field="team",
                    value=chosen,
                    allowed=options
                )

        session_manager.select_team(chosen)
        return chosen

    def current_team(self) -> Optional[str]:
        """Selected team of the active session, if any."""
        return self.client.session_manager.get().selected_team

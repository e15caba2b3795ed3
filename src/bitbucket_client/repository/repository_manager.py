"""
Repository lifecycle operations: list, create, update and delete.
"""

import logging
from typing import List, Optional, Dict, Any
from urllib.parse import quote, urlencode

from ..confirmation import ConfirmImpact, ConfirmationPolicy, always_confirm
from ..error_handling import NoChangesSpecifiedError, ValidationError
from ..models import RepositoryChanges
from .bitbucket_client import BitbucketClient

logger = logging.getLogger(__name__)


class RepositoryManager:
    """
    Builds repository endpoints and bodies and hands them to the API client.

    Mutating operations pass through a confirmation gate first: a dry run
    or a declined confirmation returns None without sending anything.
    """

    def __init__(self, client: BitbucketClient, confirm: ConfirmationPolicy = always_confirm):
        """
        Initialize repository manager.

        Args:
            client: Bitbucket API client
            confirm: Default confirmation policy for mutating operations
        """
        self.client = client
        self.confirm = confirm

    def resolve_team(self, team: Optional[str] = None) -> str:
        """
        Pick the team to operate on.

        Args:
            team: Explicit team; the session's selected team when omitted

        Raises:
            NotAuthenticatedError: If no session is open
            ValidationError: If no team is given or selected
        """
        if team:
            return team

        selected = self.client.session_manager.get().selected_team
        if not selected:
            raise ValidationError(
                "No team given and none selected. Run 'bitbucket team select' first.",
                field="team"
            )
        return selected

    @staticmethod
    def _require_slug(slug: Optional[str]) -> str:
        if not slug or not slug.strip():
            raise ValidationError("A repository slug is required", field="slug")
        return slug.strip()

    def _repository_path(self, team: str, slug: str) -> str:
        return f"repositories/{team}/{slug}"

    def list_repositories(
        self,
        slug: Optional[str] = None,
        project_key: Optional[str] = None,
        team: Optional[str] = None
    ) -> List[Dict[str, Any]]:
        """
        List repositories of a team.

        Args:
            slug: Fetch only this repository
            project_key: Only repositories in this project (ignored with ``slug``)
            team: Team to list; defaults to the selected team

        Returns:
            Repository objects; a single element when ``slug`` is given
        """
        team = self.resolve_team(team)

        if slug:
            return [self.get_repository(slug, team)]

        path = f"repositories/{team}"
        if project_key:
            path += f"?q=project.key=%22{quote(project_key, safe='')}%22"

        return self.client.invoke(path, paginated=True)

    def get_repository(self, slug: str, team: Optional[str] = None) -> Dict[str, Any]:
        """Fetch a single repository."""
        slug = self._require_slug(slug)
        return self.client.invoke(self._repository_path(self.resolve_team(team), slug))

    def create_repository(
        self,
        slug: str,
        changes: Optional[RepositoryChanges] = None,
        team: Optional[str] = None,
        dry_run: bool = False,
        confirm: Optional[ConfirmationPolicy] = None
    ) -> Optional[Dict[str, Any]]:
        """
        Create a git repository.

        Args:
            slug: Slug of the new repository
            changes: Settings for the new repository; unset fields use
                private, empty description and language, and ``no_forks``
            team: Owning team; defaults to the selected team
            dry_run: Only log what would be sent
            confirm: Confirmation policy overriding the manager's default

        Returns:
            The created repository, or None when skipped
        """
        slug = self._require_slug(slug)
        team = self.resolve_team(team)
        body = (changes or RepositoryChanges()).to_create_body()
        path = self._repository_path(team, slug)

        if not self._proceed(f"Create repository {team}/{slug}", ConfirmImpact.MEDIUM, "POST", path, body, dry_run, confirm):
            return None

        result = self.client.invoke(path, method="POST", body=body)
        logger.info(f"Created repository {team}/{slug}")
        return result

    def update_repository(
        self,
        slug: str,
        changes: RepositoryChanges,
        team: Optional[str] = None,
        dry_run: bool = False,
        confirm: Optional[ConfirmationPolicy] = None
    ) -> Optional[Dict[str, Any]]:
        """
        Change settings of an existing repository.

        Only fields set on ``changes`` are sent.

        Raises:
            NoChangesSpecifiedError: If ``changes`` sets no field
        """
        slug = self._require_slug(slug)
        body = changes.to_update_body() if changes else {}
        if not body:
            raise NoChangesSpecifiedError(f"No changes specified for repository {slug}")

        team = self.resolve_team(team)
        path = self._repository_path(team, slug)

        if not self._proceed(f"Update repository {team}/{slug}", ConfirmImpact.MEDIUM, "PUT", path, body, dry_run, confirm):
            return None

        result = self.client.invoke(path, method="PUT", body=body)
        logger.info(f"Updated repository {team}/{slug}: {', '.join(body)}")
        return result

    def delete_repository(
        self,
        slug: str,
        redirect_to: Optional[str] = None,
        team: Optional[str] = None,
        dry_run: bool = False,
        confirm: Optional[ConfirmationPolicy] = None
    ) -> bool:
        """
        Delete a repository. Forks are not deleted.

        Args:
            slug: Repository to delete
            redirect_to: URL the old repository location should redirect to
            team: Owning team; defaults to the selected team
            dry_run: Only log what would be sent
            confirm: Confirmation policy overriding the manager's default

        Returns:
            True when the repository was deleted, False when skipped
        """
        slug = self._require_slug(slug)
        team = self.resolve_team(team)
        path = self._repository_path(team, slug)
        if redirect_to:
            path += "?" + urlencode({"redirect_to": redirect_to})

        if not self._proceed(f"Delete repository {team}/{slug}", ConfirmImpact.HIGH, "DELETE", path, None, dry_run, confirm):
            return False

        self.client.invoke(path, method="DELETE")
        logger.info(f"Deleted repository {team}/{slug}")
        return True

    def _proceed(
        self,
        action: str,
        impact: ConfirmImpact,
        method: str,
        path: str,
        body: Optional[Dict[str, Any]],
        dry_run: bool,
        confirm: Optional[ConfirmationPolicy]
    ) -> bool:
        if dry_run:
            logger.warning(f"Dry run: {action} ({method} {self.client.resolve_url(path)} body={body})")
            return False

        policy = confirm or self.confirm
        if not policy(action, impact):
            logger.warning(f"Skipped: {action}")
            return False

        return True

"""
Bitbucket API access: the request client and the repository and team operations.
"""

from .bitbucket_client import BitbucketClient, extract_error_message
from .repository_manager import RepositoryManager
from .team_manager import TeamManager, ChoiceResolver, parse_role

__all__ = [
    "BitbucketClient",
    "extract_error_message",
    "RepositoryManager",
    "TeamManager",
    "ChoiceResolver",
    "parse_role"
]

"""
Repository data models and request body builders.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Dict, Any, List, Tuple

from ..error_handling import ValidationError


class ForkPolicy(Enum):
    """Server-side setting controlling how a repository may be forked."""
    ALLOW_FORKS = "allow_forks"
    NO_PUBLIC_FORKS = "no_public_forks"
    NO_FORKS = "no_forks"


# Languages accepted by the repository ``language`` field. The empty
# string clears the language.
LANGUAGES: Tuple[str, ...] = (
    "",
    "abap",
    "actionscript",
    "ada",
    "arc",
    "apex",
    "asp",
    "assembly",
    "c",
    "c#",
    "c++",
    "clojure",
    "coffeescript",
    "coldfusion",
    "common lisp",
    "css",
    "d",
    "dart",
    "delphi",
    "elixir",
    "erlang",
    "f#",
    "fortran",
    "go",
    "groovy",
    "haskell",
    "haxe",
    "html/css",
    "java",
    "javascript",
    "julia",
    "kotlin",
    "lua",
    "markdown",
    "matlab",
    "objective-c",
    "ocaml",
    "perl",
    "php",
    "powershell",
    "prolog",
    "python",
    "r",
    "ruby",
    "rust",
    "scala",
    "scheme",
    "shell",
    "smalltalk",
    "sql",
    "swift",
    "tcl",
    "typescript",
    "vb.net",
    "verilog",
    "xml",
)

DEFAULT_FORK_POLICY = ForkPolicy.NO_FORKS


def validate_language(language: str) -> str:
    """
    Normalize and validate a repository language.

    Raises:
        ValidationError: If the language is not in ``LANGUAGES``
    """
    normalized = language.strip().lower()
    if normalized not in LANGUAGES:
        raise ValidationError(
            f"Invalid language: {language!r}",
            field="language",
            value=language,
            allowed=LANGUAGES
        )
    return normalized


def validate_fork_policy(fork_policy: Any) -> ForkPolicy:
    """
    Coerce a fork policy value into a ``ForkPolicy``.

    Raises:
        ValidationError: If the value is not a known fork policy
    """
    if isinstance(fork_policy, ForkPolicy):
        return fork_policy
    try:
        return ForkPolicy(fork_policy)
    except ValueError:
        raise ValidationError(
            f"Invalid fork policy: {fork_policy!r}",
            field="fork_policy",
            value=fork_policy,
            allowed=[p.value for p in ForkPolicy]
        )


@dataclass
class RepositoryChanges:
    """
    Optional repository settings.

    Each field is ``None`` unless the caller supplied it. Field order is
    the key order of the serialized body.
    """

    project_key: Optional[str] = None
    is_private: Optional[bool] = None
    description: Optional[str] = None
    language: Optional[str] = None
    fork_policy: Optional[ForkPolicy] = None

    def __post_init__(self):
        if self.language is not None:
            self.language = validate_language(self.language)
        if self.fork_policy is not None:
            self.fork_policy = validate_fork_policy(self.fork_policy)

    @property
    def is_empty(self) -> bool:
        return not self.to_update_body()

    def to_create_body(self) -> Dict[str, Any]:
        """
        Build the body for creating a repository, filling in defaults.

        Returns:
            JSON body with ``scm``, ``is_private``, ``description``,
            ``language``, ``fork_policy`` and, when set, ``project``
        """
        body: Dict[str, Any] = {
            "scm": "git",
            "is_private": True if self.is_private is None else self.is_private,
            "description": self.description or "",
            "language": self.language or "",
            "fork_policy": (self.fork_policy or DEFAULT_FORK_POLICY).value
        }
        if self.project_key:
            body["project"] = {"key": self.project_key}
        return body

    def to_update_body(self) -> Dict[str, Any]:
        """Build a sparse body holding only the supplied fields."""
        body: Dict[str, Any] = {}
        if self.project_key is not None:
            body["project"] = {"key": self.project_key}
        if self.is_private is not None:
            body["is_private"] = self.is_private
        if self.description is not None:
            body["description"] = self.description
        if self.language is not None:
            body["language"] = self.language
        if self.fork_policy is not None:
            body["fork_policy"] = self.fork_policy.value
        return body


@dataclass
class Repository:
    """
    Summary of a Bitbucket repository as returned by the API.
    """

    slug: str
    full_name: Optional[str] = None
    project_key: Optional[str] = None
    is_private: bool = True
    description: str = ""
    language: str = ""
    fork_policy: Optional[str] = None
    updated_on: Optional[str] = None
    links: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "Repository":
        """
        Create repository from an API payload.

        Args:
            data: Repository object from the ``repositories`` endpoint

        Returns:
            Repository instance
        """
        project = data.get("project") or {}
        return cls(
            slug=data["slug"],
            full_name=data.get("full_name"),
            project_key=project.get("key"),
            is_private=data.get("is_private", True),
            description=data.get("description") or "",
            language=data.get("language") or "",
            fork_policy=data.get("fork_policy"),
            updated_on=data.get("updated_on"),
            links=data.get("links", {})
        )

    @property
    def html_url(self) -> Optional[str]:
        return self.links.get("html", {}).get("href")

    @property
    def clone_urls(self) -> List[Dict[str, str]]:
        return self.links.get("clone", [])

    def to_dict(self) -> Dict[str, Any]:
        return {
            "slug": self.slug,
            "full_name": self.full_name,
            "project_key": self.project_key,
            "is_private": self.is_private,
            "description": self.description,
            "language": self.language,
            "fork_policy": self.fork_policy,
            "updated_on": self.updated_on,
            "html_url": self.html_url
        }

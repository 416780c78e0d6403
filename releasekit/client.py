"""Shared types and errors for the release hosting clients."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

__all__ = [
    "CommitAuthor",
    "MilestoneNotFoundError",
    "NotImplementedClientError",
    "ReleaseInfo",
    "Repo",
    "RetriableError",
    "TokenType",
    "is_not_implemented_error",
    "repo_from_ref",
]


class TokenType(str, Enum):
    """Kind of token, which selects the hosting service."""

    GITHUB = "github"
    GITLAB = "gitlab"
    GITEA = "gitea"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class Repo:
    """A repository on a hosting service, named by owner and name."""

    owner: str = ""
    name: str = ""

    def __str__(self) -> str:
        if not self.owner and not self.name:
            return ""
        return f"{self.owner}/{self.name}"


@dataclass(frozen=True)
class CommitAuthor:
    """Name and e-mail used for commits made by a client."""

    name: str = ""
    email: str = ""


@dataclass(frozen=True)
class ReleaseInfo:
    """Everything a client needs to create or update a release."""

    owner: str = ""
    name: str = ""
    tag: str = ""
    commit: str = ""
    title: str = ""
    draft: bool = False
    prerelease: bool = False
    discussion_category: str = ""
    git_url: str = ""

    @property
    def repo(self) -> Repo:
        """The repository the release belongs to."""
        return Repo(owner=self.owner, name=self.name)


class MilestoneNotFoundError(Exception):
    """No milestone with the given title exists."""

    def __init__(self, title: str) -> None:
        super().__init__(f"no milestone found: {title}")
        self.title = title


class RetriableError(Exception):
    """An error after which the action may be tried again."""

    def __init__(self, err: BaseException) -> None:
        super().__init__(str(err))
        self.err = err

    def __str__(self) -> str:
        return str(self.err)


class NotImplementedClientError(Exception):
    """The client for the given token type does not support the action."""

    def __init__(self, token_type: TokenType | str) -> None:
        super().__init__(f"not implemented for {token_type}")
        self.token_type = token_type


def is_not_implemented_error(err: BaseException | None) -> bool:
    """Tell whether ``err`` or one of its causes is a NotImplementedClientError."""
    seen: set[int] = set()
    current = err
    while current is not None and id(current) not in seen:
        if isinstance(current, NotImplementedClientError):
            return True
        seen.add(id(current))
        current = current.__cause__
    return False


def repo_from_ref(ref: Any) -> Repo:
    """Build a Repo from any reference carrying ``owner`` and ``name``."""
    return Repo(owner=ref.owner, name=ref.name)
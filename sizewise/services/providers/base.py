"""Platform independent provider contract and domain models."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class DiffInfo:
    """One changed file in a pull/merge request."""

    old_path: str
    new_path: str
    diff: str  # Empty for binary or oversized files
    is_new_file: bool = False
    is_deleted_file: bool = False
    is_renamed_file: bool = False


@dataclass(frozen=True)
class Comment:
    """A comment (GitHub issue comment or GitLab note) on a pull/merge request."""

    id: str
    body: str
    author_id: str
    created_at: str
    updated_at: str


@dataclass(frozen=True)
class PullRequestInfo:
    """Summary of a pull/merge request."""

    id: str
    title: str
    description: str
    author_id: str
    state: str  # "open", "closed" or "merged"
    created_at: str
    updated_at: str
    labels: list[str] = field(default_factory=list)


class VCSProvider(ABC):
    """Capabilities every version control backend must implement.

    Providers own their network resources and are used as async context managers::

        async with create_provider(config) as provider:
            diffs = await provider.get_diffs("42")
    """

    async def __aenter__(self) -> "VCSProvider":
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        return None

    @abstractmethod
    async def get_diffs(self, pull_request_id: str) -> list[DiffInfo]:
        """Get per-file diffs for a pull/merge request."""

    @abstractmethod
    async def get_comments(self, pull_request_id: str) -> list[Comment]:
        """Get existing comments on a pull/merge request."""

    @abstractmethod
    async def create_comment(self, pull_request_id: str, body: str) -> Comment:
        """Create a new comment on a pull/merge request."""

    @abstractmethod
    async def update_comment(self, pull_request_id: str, comment_id: str, body: str) -> Comment:
        """Replace the body of an existing comment."""

    @abstractmethod
    async def get_labels(self, pull_request_id: str) -> list[str]:
        """Get the current labels of a pull/merge request."""

    @abstractmethod
    async def set_labels(self, pull_request_id: str, labels: list[str]) -> None:
        """Replace the labels of a pull/merge request."""

    @abstractmethod
    async def get_pull_request(self, pull_request_id: str) -> PullRequestInfo:
        """Get summary information about a pull/merge request."""

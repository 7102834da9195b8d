"""GitHub pull request provider."""

from logging import getLogger
from typing import Any
from urllib.parse import urlparse

from sizewise.conf.provider import ProviderConfig

from .base import Comment, DiffInfo, PullRequestInfo, VCSProvider
from .client import APIClient

logger = getLogger(__name__)

GITHUB_API_URL = "https://api.github.com"
GITHUB_HOSTNAMES = {"github.com", "www.github.com", "api.github.com"}


def github_api_url(host: str) -> str:
    """Return the REST API root for a GitHub host (github.com or Enterprise Server)."""
    if not host:
        return GITHUB_API_URL
    hostname = urlparse(host if "://" in host else f"https://{host}").hostname
    if hostname in GITHUB_HOSTNAMES:
        return GITHUB_API_URL
    return f"{host.rstrip('/')}/api/v3"


class GitHubProvider(VCSProvider):
    """Pull request access through the GitHub REST API."""

    def __init__(self, config: ProviderConfig) -> None:
        self.owner, _, self.repo = config.project_id.partition("/")
        self.client = APIClient(
            github_api_url(config.host),
            headers={
                "Authorization": f"Bearer {config.token.get_secret_value()}",
                "Accept": "application/vnd.github+json",
                "X-GitHub-Api-Version": "2022-11-28",
            },
            timeout=config.timeout,
            max_retries=config.max_retries,
        )

    async def __aenter__(self) -> "GitHubProvider":
        await self.client.__aenter__()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.client.__aexit__(exc_type, exc_val, exc_tb)

    @property
    def _repo_path(self) -> str:
        return f"repos/{self.owner}/{self.repo}"

    async def get_diffs(self, pull_request_id: str) -> list[DiffInfo]:
        number = int(pull_request_id)
        logger.debug(f"Fetching PR files from API: {self.owner}/{self.repo}#{number}")
        # GitHub paginates PR files (max 3000 files)
        files = await self.client.get_paginated(f"{self._repo_path}/pulls/{number}/files")

        return [
            DiffInfo(
                old_path=file.get("previous_filename") or file["filename"],
                new_path=file["filename"],
                # No patch for binary files or very large diffs
                diff=file.get("patch") or "",
                is_new_file=file.get("status") == "added",
                is_deleted_file=file.get("status") == "removed",
                is_renamed_file=file.get("status") == "renamed",
            )
            for file in files
        ]

    async def get_comments(self, pull_request_id: str) -> list[Comment]:
        number = int(pull_request_id)
        comments = await self.client.get_paginated(f"{self._repo_path}/issues/{number}/comments")
        return [_to_comment(comment) for comment in comments]

    async def create_comment(self, pull_request_id: str, body: str) -> Comment:
        number = int(pull_request_id)
        comment = await self.client.request_json("POST", f"{self._repo_path}/issues/{number}/comments", json={"body": body})
        return _to_comment(comment)

    async def update_comment(self, pull_request_id: str, comment_id: str, body: str) -> Comment:
        # Issue comments are addressed by id alone on GitHub
        comment = await self.client.request_json(
            "PATCH", f"{self._repo_path}/issues/comments/{int(comment_id)}", json={"body": body}
        )
        return _to_comment(comment)

    async def get_labels(self, pull_request_id: str) -> list[str]:
        pr = await self._get_pull(pull_request_id)
        return _label_names(pr.get("labels"))

    async def set_labels(self, pull_request_id: str, labels: list[str]) -> None:
        number = int(pull_request_id)
        await self.client.request_json("PUT", f"{self._repo_path}/issues/{number}/labels", json={"labels": labels})

    async def get_pull_request(self, pull_request_id: str) -> PullRequestInfo:
        pr = await self._get_pull(pull_request_id)
        if pr.get("merged") or pr.get("merged_at"):
            state = "merged"
        else:
            state = "closed" if str(pr.get("state", "")).lower() == "closed" else "open"

        return PullRequestInfo(
            id=str(pr["id"]),
            title=pr.get("title", ""),
            description=pr.get("body") or "",
            author_id=str((pr.get("user") or {}).get("id", "")),
            state=state,
            labels=_label_names(pr.get("labels")),
            created_at=pr.get("created_at", ""),
            updated_at=pr.get("updated_at", ""),
        )

    async def _get_pull(self, pull_request_id: str) -> dict[str, Any]:
        result: dict[str, Any] = await self.client.request_json(
            "GET", f"{self._repo_path}/pulls/{int(pull_request_id)}"
        )
        return result


def _to_comment(data: dict[str, Any]) -> Comment:
    return Comment(
        id=str(data["id"]),
        body=data.get("body") or "",
        author_id=str((data.get("user") or {}).get("id", "")),
        created_at=data.get("created_at", ""),
        updated_at=data.get("updated_at", ""),
    )


def _label_names(labels: list[Any] | None) -> list[str]:
    names = [label if isinstance(label, str) else (label.get("name") or "") for label in labels or []]
    return [name for name in names if name]

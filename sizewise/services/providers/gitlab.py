"""GitLab merge request provider."""

from logging import getLogger
from typing import Any
from urllib.parse import quote

from sizewise.conf.provider import ProviderConfig

from .base import Comment, DiffInfo, PullRequestInfo, VCSProvider
from .client import APIClient

logger = getLogger(__name__)

_STATE_MAP = {"opened": "open", "merged": "merged", "closed": "closed"}


class GitLabProvider(VCSProvider):
    """Merge request access through the GitLab REST API (v4)."""

    def __init__(self, config: ProviderConfig) -> None:
        self.project_id = config.project_id
        self.client = APIClient(
            f"{config.host.rstrip('/')}/api/v4",
            headers={"PRIVATE-TOKEN": config.token.get_secret_value()},
            timeout=config.timeout,
            max_retries=config.max_retries,
        )

    async def __aenter__(self) -> "GitLabProvider":
        await self.client.__aenter__()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.client.__aexit__(exc_type, exc_val, exc_tb)

    def _mr_path(self, pull_request_id: str) -> str:
        # Project paths such as "group/project" must be URL encoded
        return f"projects/{quote(self.project_id, safe='')}/merge_requests/{int(pull_request_id)}"

    async def get_diffs(self, pull_request_id: str) -> list[DiffInfo]:
        logger.debug(f"Fetching MR diffs from API: {self.project_id}!{pull_request_id}")
        changes = await self.client.get_paginated(f"{self._mr_path(pull_request_id)}/diffs")

        return [
            DiffInfo(
                old_path=change["old_path"],
                new_path=change["new_path"],
                diff=change.get("diff") or "",
                is_new_file=bool(change.get("new_file")),
                is_deleted_file=bool(change.get("deleted_file")),
                is_renamed_file=bool(change.get("renamed_file")),
            )
            for change in changes
        ]

    async def get_comments(self, pull_request_id: str) -> list[Comment]:
        notes = await self.client.get_paginated(f"{self._mr_path(pull_request_id)}/notes")
        return [_to_comment(note) for note in notes]

    async def create_comment(self, pull_request_id: str, body: str) -> Comment:
        note = await self.client.request_json("POST", f"{self._mr_path(pull_request_id)}/notes", json={"body": body})
        return _to_comment(note)

    async def update_comment(self, pull_request_id: str, comment_id: str, body: str) -> Comment:
        note = await self.client.request_json(
            "PUT", f"{self._mr_path(pull_request_id)}/notes/{int(comment_id)}", json={"body": body}
        )
        return _to_comment(note)

    async def get_labels(self, pull_request_id: str) -> list[str]:
        mr = await self._get_merge_request(pull_request_id)
        return _label_names(mr.get("labels"))

    async def set_labels(self, pull_request_id: str, labels: list[str]) -> None:
        await self.client.request_json("PUT", self._mr_path(pull_request_id), json={"labels": ",".join(labels)})

    async def get_pull_request(self, pull_request_id: str) -> PullRequestInfo:
        mr = await self._get_merge_request(pull_request_id)
        return PullRequestInfo(
            id=str(mr["id"]),
            title=mr.get("title", ""),
            description=mr.get("description") or "",
            author_id=str((mr.get("author") or {}).get("id", "")),
            state=_STATE_MAP.get(str(mr.get("state", "")).lower(), "open"),
            labels=_label_names(mr.get("labels")),
            created_at=mr.get("created_at", ""),
            updated_at=mr.get("updated_at", ""),
        )

    async def _get_merge_request(self, pull_request_id: str) -> dict[str, Any]:
        result: dict[str, Any] = await self.client.request_json("GET", self._mr_path(pull_request_id))
        return result


def _to_comment(note: dict[str, Any]) -> Comment:
    return Comment(
        id=str(note["id"]),
        body=note.get("body") or "",
        author_id=str((note.get("author") or {}).get("id", "")),
        created_at=note.get("created_at", ""),
        updated_at=note.get("updated_at", ""),
    )


def _label_names(labels: list[Any] | None) -> list[str]:
    """Normalize labels, which GitLab returns as strings or (with_labels_details) objects."""
    names: list[str] = []
    for label in labels or []:
        if isinstance(label, str):
            names.append(label)
        elif isinstance(label, dict):
            names.append(label.get("name") or label.get("title") or "")
        else:
            names.append(str(label))
    return [name for name in names if name]

import logging

import pytest

from sizewise.conf.sizewise import DEFAULT_CONFIG, SizewiseConfig
from sizewise.services.providers.base import Comment, DiffInfo, PullRequestInfo, VCSProvider


class FakeProvider(VCSProvider):
    """In-memory provider recording every call."""

    def __init__(self, diffs: list[DiffInfo] | None = None, labels: list[str] | None = None) -> None:
        self.diffs = diffs or []
        self.comments: list[Comment] = []
        self.labels = list(labels or [])
        self.calls: list[str] = []
        self._next_id = 1

    async def get_diffs(self, pull_request_id: str) -> list[DiffInfo]:
        self.calls.append("get_diffs")
        return list(self.diffs)

    async def get_comments(self, pull_request_id: str) -> list[Comment]:
        self.calls.append("get_comments")
        return list(self.comments)

    async def create_comment(self, pull_request_id: str, body: str) -> Comment:
        self.calls.append("create_comment")
        comment = Comment(
            id=str(self._next_id),
            body=body,
            author_id="bot",
            created_at="2024-01-01T00:00:00Z",
            updated_at="2024-01-01T00:00:00Z",
        )
        self._next_id += 1
        self.comments.append(comment)
        return comment

    async def update_comment(self, pull_request_id: str, comment_id: str, body: str) -> Comment:
        self.calls.append("update_comment")
        for index, comment in enumerate(self.comments):
            if comment.id == comment_id:
                updated = Comment(
                    id=comment.id,
                    body=body,
                    author_id=comment.author_id,
                    created_at=comment.created_at,
                    updated_at="2024-01-02T00:00:00Z",
                )
                self.comments[index] = updated
                return updated
        raise KeyError(comment_id)

    async def get_labels(self, pull_request_id: str) -> list[str]:
        self.calls.append("get_labels")
        return list(self.labels)

    async def set_labels(self, pull_request_id: str, labels: list[str]) -> None:
        self.calls.append("set_labels")
        self.labels = list(labels)

    async def get_pull_request(self, pull_request_id: str) -> PullRequestInfo:
        self.calls.append("get_pull_request")
        return PullRequestInfo(
            id=pull_request_id,
            title="Test PR",
            description="",
            author_id="1",
            state="open",
            created_at="2024-01-01T00:00:00Z",
            updated_at="2024-01-01T00:00:00Z",
            labels=list(self.labels),
        )


def make_diff(
    path: str,
    added: int = 0,
    removed: int = 0,
    old_path: str | None = None,
    **flags: bool,
) -> DiffInfo:
    """Build a DiffInfo whose diff text has the given number of changed lines."""
    lines = [f"@@ -1,{removed} +1,{added} @@"]
    lines.extend(f"+added line {i}" for i in range(added))
    lines.extend(f"-removed line {i}" for i in range(removed))
    return DiffInfo(
        old_path=old_path or path,
        new_path=path,
        diff="\n".join(lines) if added or removed else "",
        **flags,
    )


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Keep CI detection and PR ids of the host environment out of tests."""
    for var in (
        "GITLAB_CI",
        "CI_SERVER_URL",
        "GITHUB_ACTIONS",
        "GITHUB_SERVER_URL",
        "CI_MERGE_REQUEST_IID",
        "GITLAB_MR_IID",
        "GITHUB_EVENT_NUMBER",
        "PR_NUMBER",
        "SIZEWISE_CONFIG",
    ):
        monkeypatch.delenv(var, raising=False)


@pytest.fixture(autouse=True)
def restore_log_level():
    """Undo level changes the CLI makes to the package logger."""
    package_logger = logging.getLogger("sizewise")
    level = package_logger.level
    yield
    package_logger.setLevel(level)


@pytest.fixture
def fake_provider() -> FakeProvider:
    """Create an empty in-memory provider."""
    return FakeProvider()


@pytest.fixture
def diff_factory():
    """Expose the diff builder to tests."""
    return make_diff


@pytest.fixture
def default_config() -> SizewiseConfig:
    return DEFAULT_CONFIG

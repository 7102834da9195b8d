import itertools
from unittest.mock import AsyncMock

import pytest

from sizewise.exceptions import RetrievalError
from sizewise.services.metrics import PullRequestMetrics, collect_metrics, compute_metrics
from sizewise.services.providers.base import DiffInfo


def test_compute_metrics_empty() -> None:
    """Test metrics for a request without changes."""
    assert compute_metrics([], ["**/*.lock"]) == PullRequestMetrics()


def test_compute_metrics_counts(diff_factory) -> None:
    """Test aggregate counts across several files."""
    diffs = [
        diff_factory("src/app.py", added=10, removed=2),
        diff_factory("src/util.py", added=3, is_new_file=True),
        diff_factory("docs/readme.md", removed=4, is_deleted_file=True),
        diff_factory("lib/new_name.py", old_path="lib/old_name.py", is_renamed_file=True),
    ]

    metrics = compute_metrics(diffs, [])

    assert metrics.files_changed == 4
    assert metrics.lines_added == 13
    assert metrics.lines_removed == 6
    assert metrics.total_lines == 19
    assert metrics.directories_affected == 3
    assert metrics.new_files == 1
    assert metrics.deleted_files == 1
    assert metrics.renamed_files == 1


def test_compute_metrics_root_files_share_directory(diff_factory) -> None:
    """Test that files in the repository root count as one directory."""
    diffs = [diff_factory("README.md", added=1), diff_factory("setup.py", added=1)]
    assert compute_metrics(diffs, []).directories_affected == 1


def test_exclusion_affects_only_line_counts(diff_factory) -> None:
    """Test that excluded files still count towards file, directory and flag counts."""
    diffs = [
        diff_factory("src/app.py", added=5, removed=5),
        diff_factory("frontend/yarn.lock", added=500, removed=300, is_new_file=True),
    ]

    metrics = compute_metrics(diffs, ["**/*.lock"])

    assert metrics.files_changed == 2
    assert metrics.directories_affected == 2
    assert metrics.new_files == 1
    assert metrics.lines_added == 5
    assert metrics.lines_removed == 5
    assert metrics.total_lines == 10


def test_exclusion_matches_old_path(diff_factory) -> None:
    """Test that a file renamed away from an excluded path is still excluded."""
    diffs = [diff_factory("vendor2/lib.js", added=50, old_path="vendor/lib.js", is_renamed_file=True)]

    metrics = compute_metrics(diffs, ["vendor/*"])

    assert metrics.total_lines == 0
    assert metrics.renamed_files == 1


def test_empty_diff_text_is_skipped() -> None:
    """Test that binary files (no diff text) count as files but add no lines."""
    diffs = [DiffInfo(old_path="img/logo.png", new_path="img/logo.png", diff="", is_new_file=True)]

    metrics = compute_metrics(diffs, [])

    assert metrics.files_changed == 1
    assert metrics.total_lines == 0
    assert metrics.new_files == 1


def test_compute_metrics_is_order_independent(diff_factory) -> None:
    """Test that permuting the diffs does not change the metrics."""
    diffs = [
        diff_factory("a/one.py", added=3),
        diff_factory("b/two.py", removed=7, is_deleted_file=True),
        diff_factory("a/three.lock", added=100),
        diff_factory("c/four.py", added=1, removed=1, is_renamed_file=True, old_path="c/4.py"),
    ]
    expected = compute_metrics(diffs, ["*.lock"])

    for permutation in itertools.permutations(diffs):
        assert compute_metrics(list(permutation), ["*.lock"]) == expected


def test_metrics_to_dict_uses_camel_case() -> None:
    """Test serialization keys of the result payload."""
    metrics = PullRequestMetrics(files_changed=1, lines_added=2, lines_removed=3, total_lines=5)
    data = metrics.to_dict()
    assert data["filesChanged"] == 1
    assert data["totalLines"] == 5
    assert set(data) == {
        "filesChanged",
        "linesAdded",
        "linesRemoved",
        "totalLines",
        "directoriesAffected",
        "newFiles",
        "deletedFiles",
        "renamedFiles",
    }


@pytest.mark.asyncio
async def test_collect_metrics_uses_provider(fake_provider, diff_factory) -> None:
    """Test that diffs are fetched from the provider."""
    fake_provider.diffs = [diff_factory("src/app.py", added=2)]

    metrics = await collect_metrics(fake_provider, "7", [])

    assert metrics.lines_added == 2
    assert fake_provider.calls == ["get_diffs"]


@pytest.mark.asyncio
async def test_collect_metrics_wraps_provider_errors() -> None:
    """Test that retrieval failures surface as RetrievalError."""
    provider = AsyncMock()
    provider.get_diffs.side_effect = ConnectionError("boom")

    with pytest.raises(RetrievalError) as exc_info:
        await collect_metrics(provider, "7", [])

    assert exc_info.value.code == "RETRIEVAL_ERROR"
    assert "boom" in str(exc_info.value)
    assert isinstance(exc_info.value.__cause__, ConnectionError)

"""Aggregate change metrics for a pull/merge request."""

import posixpath
from collections.abc import Sequence
from dataclasses import asdict, dataclass
from logging import getLogger

from sizewise.exceptions import RetrievalError

from .diff_parser import is_excluded, parse_diff
from .providers.base import DiffInfo, VCSProvider

logger = getLogger(__name__)


@dataclass
class PullRequestMetrics:
    """Aggregate change metrics of one pull/merge request.

    Exclude patterns only affect the line counts; the file, directory, rename,
    new and deleted counts always cover every changed file.
    """

    files_changed: int = 0
    lines_added: int = 0
    lines_removed: int = 0
    total_lines: int = 0
    directories_affected: int = 0
    renamed_files: int = 0
    new_files: int = 0
    deleted_files: int = 0

    def to_dict(self) -> dict[str, int]:
        """Serialize using the camelCase keys of the JSON result payload."""
        data = asdict(self)
        return {
            "filesChanged": data["files_changed"],
            "linesAdded": data["lines_added"],
            "linesRemoved": data["lines_removed"],
            "totalLines": data["total_lines"],
            "directoriesAffected": data["directories_affected"],
            "newFiles": data["new_files"],
            "deletedFiles": data["deleted_files"],
            "renamedFiles": data["renamed_files"],
        }


def compute_metrics(diffs: Sequence[DiffInfo], exclude_patterns: Sequence[str]) -> PullRequestMetrics:
    """Compute aggregate metrics from per-file diffs.

    Args:
        diffs: One entry per changed file
        exclude_patterns: Glob patterns whose files do not count towards line totals

    Returns:
        PullRequestMetrics for the whole request
    """
    metrics = PullRequestMetrics(
        files_changed=len(diffs),
        directories_affected=len({posixpath.dirname(diff.new_path) for diff in diffs}),
        renamed_files=sum(1 for diff in diffs if diff.is_renamed_file),
        new_files=sum(1 for diff in diffs if diff.is_new_file),
        deleted_files=sum(1 for diff in diffs if diff.is_deleted_file),
    )

    for diff in diffs:
        if not diff.diff:
            continue

        if is_excluded(diff.new_path, exclude_patterns) or is_excluded(diff.old_path, exclude_patterns):
            logger.debug(f"Excluding {diff.new_path} from line counts")
            continue

        stats = parse_diff(diff.diff)
        metrics.lines_added += stats.additions
        metrics.lines_removed += stats.deletions

    metrics.total_lines = metrics.lines_added + metrics.lines_removed
    return metrics


async def collect_metrics(
    provider: VCSProvider,
    pull_request_id: str,
    exclude_patterns: Sequence[str],
) -> PullRequestMetrics:
    """Fetch diffs from the provider and compute metrics.

    Raises:
        RetrievalError: If the diffs cannot be retrieved; no partial metrics are returned
    """
    try:
        diffs = await provider.get_diffs(pull_request_id)
    except Exception as e:
        raise RetrievalError(f"Error getting pull request changes: {e}") from e

    logger.debug(f"Retrieved {len(diffs)} changed files for #{pull_request_id}")
    return compute_metrics(diffs, exclude_patterns)

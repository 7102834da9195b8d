"""PR size categorization utilities."""

from collections.abc import Mapping
from logging import getLogger

from sizewise.conf.sizewise import SizeThreshold
from sizewise.exceptions import ConfigError

from .metrics import PullRequestMetrics

logger = getLogger(__name__)


def threshold_weight(threshold: SizeThreshold) -> float:
    """Collapse a tier's three ceilings into one comparable weight.

    Lines count ten times less and directories five times more than files.
    """
    return max(threshold.files, threshold.lines / 10, threshold.directories * 5)


def rank_thresholds(thresholds: Mapping[str, SizeThreshold]) -> list[tuple[str, SizeThreshold]]:
    """Order size tiers from smallest to largest by weight.

    Tiers with equal weight keep their mapping order.

    Raises:
        ConfigError: If no thresholds are defined
    """
    if not thresholds:
        raise ConfigError("At least one size threshold must be configured")
    return sorted(thresholds.items(), key=lambda item: threshold_weight(item[1]))


def fits_threshold(metrics: PullRequestMetrics, threshold: SizeThreshold) -> bool:
    """Return True if every metric is within the tier's ceilings."""
    return (
        metrics.files_changed <= threshold.files
        and metrics.total_lines <= threshold.lines
        and metrics.directories_affected <= threshold.directories
    )


def classify(metrics: PullRequestMetrics, thresholds: Mapping[str, SizeThreshold]) -> str:
    """Categorize PR size against the configured thresholds.

    Args:
        metrics: Aggregate metrics of the pull request
        thresholds: Mapping of tier name to ceilings, in any order

    Returns:
        Name of the smallest tier the request fits in. Requests exceeding every
        tier are reported as the largest tier.

    Raises:
        ConfigError: If no thresholds are defined
    """
    ranked = rank_thresholds(thresholds)

    for size_name, threshold in ranked:
        if fits_threshold(metrics, threshold):
            return size_name

    largest = ranked[-1][0]
    logger.debug(f"Metrics exceed every threshold, using largest size: {largest}")
    return largest


def largest_tier(thresholds: Mapping[str, SizeThreshold]) -> str:
    """Return the name of the tier with the greatest weight."""
    return rank_thresholds(thresholds)[-1][0]


def get_size_category_color(size_category: str | None, thresholds: Mapping[str, SizeThreshold]) -> str:
    """Get a Rich color for a size tier based on its rank.

    Args:
        size_category: Tier name
        thresholds: Configured thresholds

    Returns:
        Rich color name (green for the smallest tier through red for the largest)
    """
    if not size_category or size_category not in thresholds:
        return "white"

    names = [name for name, _ in rank_thresholds(thresholds)]
    if len(names) == 1:
        return "green"

    palette = ["green", "cyan", "yellow", "magenta", "red"]
    position = names.index(size_category) / (len(names) - 1)
    return palette[round(position * (len(palette) - 1))]

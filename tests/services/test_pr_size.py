import pytest

from sizewise.conf.sizewise import SizeThreshold
from sizewise.exceptions import ConfigError
from sizewise.services.metrics import PullRequestMetrics
from sizewise.services.pr_size import (
    classify,
    get_size_category_color,
    largest_tier,
    rank_thresholds,
    threshold_weight,
)

THRESHOLDS = {
    "small": SizeThreshold(files=5, lines=50, directories=2),
    "medium": SizeThreshold(files=10, lines=200, directories=4),
    "large": SizeThreshold(files=20, lines=500, directories=8),
}


def _metrics(files: int, lines: int, directories: int) -> PullRequestMetrics:
    return PullRequestMetrics(files_changed=files, total_lines=lines, directories_affected=directories)


def test_threshold_weight() -> None:
    """Test the weight is the largest of files, lines / 10 and directories * 5."""
    assert threshold_weight(SizeThreshold(files=5, lines=50, directories=2)) == 10
    assert threshold_weight(SizeThreshold(files=30, lines=50, directories=2)) == 30
    assert threshold_weight(SizeThreshold(files=1, lines=1000, directories=2)) == 100


def test_rank_thresholds_ignores_declaration_order() -> None:
    """Test tiers are ordered by weight, not by mapping order."""
    shuffled = {"large": THRESHOLDS["large"], "small": THRESHOLDS["small"], "medium": THRESHOLDS["medium"]}
    assert [name for name, _ in rank_thresholds(shuffled)] == ["small", "medium", "large"]


def test_rank_thresholds_ties_keep_mapping_order() -> None:
    """Test equal weights keep their mapping order."""
    thresholds = {
        "b": SizeThreshold(files=10, lines=10, directories=1),
        "a": SizeThreshold(files=1, lines=100, directories=1),
    }
    assert [name for name, _ in rank_thresholds(thresholds)] == ["b", "a"]


def test_rank_thresholds_empty() -> None:
    """Test that classification without thresholds is a configuration error."""
    with pytest.raises(ConfigError):
        rank_thresholds({})


def test_classify_small() -> None:
    """Test a request within the smallest tier."""
    assert classify(_metrics(3, 40, 1), THRESHOLDS) == "small"


def test_classify_skips_tiers_failing_any_ceiling() -> None:
    """Test a request exceeding small and medium file ceilings is large."""
    assert classify(_metrics(15, 100, 3), THRESHOLDS) == "large"


def test_classify_boundaries_are_inclusive() -> None:
    """Test that metrics equal to the ceilings fit the tier."""
    assert classify(_metrics(5, 50, 2), THRESHOLDS) == "small"
    assert classify(_metrics(6, 50, 2), THRESHOLDS) == "medium"


def test_classify_directories_alone_bump_tier() -> None:
    """Test that directories affected can move a request to a larger tier."""
    assert classify(_metrics(1, 1, 5), THRESHOLDS) == "large"


def test_classify_oversized_returns_heaviest_tier() -> None:
    """Test requests exceeding every tier fall back to the largest tier."""
    shuffled = {"large": THRESHOLDS["large"], "medium": THRESHOLDS["medium"], "small": THRESHOLDS["small"]}
    assert classify(_metrics(1000, 100000, 100), shuffled) == "large"


def test_classify_single_tier() -> None:
    """Test that a single tier always wins."""
    thresholds = {"only": SizeThreshold(files=1, lines=1, directories=1)}
    assert classify(_metrics(0, 0, 0), thresholds) == "only"
    assert classify(_metrics(50, 50, 50), thresholds) == "only"


@pytest.mark.parametrize("field", ["files", "lines", "directories"])
def test_classify_is_monotonic(field: str) -> None:
    """Test that increasing one metric never moves to a smaller tier."""
    order = [name for name, _ in rank_thresholds(THRESHOLDS)]
    base = {"files": 2, "lines": 20, "directories": 1}

    previous_rank = -1
    for value in range(0, 1200, 7):
        values = {**base, field: value}
        rank = order.index(classify(_metrics(values["files"], values["lines"], values["directories"]), THRESHOLDS))
        assert rank >= previous_rank
        previous_rank = rank


def test_largest_tier() -> None:
    """Test the largest tier is the heaviest one."""
    assert largest_tier(THRESHOLDS) == "large"
    assert largest_tier({"xl": SizeThreshold(files=100, lines=1, directories=1), **THRESHOLDS}) == "xl"


def test_get_size_category_color() -> None:
    """Test colors run from green for the smallest to red for the largest tier."""
    assert get_size_category_color("small", THRESHOLDS) == "green"
    assert get_size_category_color("medium", THRESHOLDS) == "yellow"
    assert get_size_category_color("large", THRESHOLDS) == "red"


def test_get_size_category_color_unknown() -> None:
    """Test unknown or missing categories are white."""
    assert get_size_category_color(None, THRESHOLDS) == "white"
    assert get_size_category_color("huge", THRESHOLDS) == "white"
    assert get_size_category_color("only", {"only": SizeThreshold(files=1, lines=1, directories=1)}) == "green"

import json
from collections.abc import Mapping
from datetime import datetime, timezone
from logging import getLogger
from typing import Any

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from sizewise.conf.sizewise import SizeThreshold
from sizewise.exceptions import handle_error

from .analyzer import AnalysisResult
from .pr_size import get_size_category_color, largest_tier, rank_thresholds

logger = getLogger(__name__)


def format_json_output(
    result: AnalysisResult | None,
    success: bool,
    platform: str | None = None,
    error: str | None = None,
) -> dict[str, Any]:
    """Build the JSON envelope printed in --json mode.

    Args:
        result: Analysis result (None on failure)
        success: Whether the analysis succeeded
        platform: Platform name
        error: Error message on failure

    Returns:
        Dictionary with success, data, error, platform, timestamp and version keys
    """
    from sizewise import __version__

    return {
        "success": success,
        "data": result.to_dict() if result else None,
        "error": error,
        "platform": platform,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "version": __version__,
    }


def display_console_output(result: AnalysisResult, platform: str, verbose: bool = False) -> None:
    """Display analysis results using Rich library.

    Args:
        result: Analysis result
        platform: Platform name
        verbose: Also display the configured thresholds
    """
    console = Console()

    color = get_size_category_color(result.size, result.thresholds)
    summary_lines = [
        f"[dim]Platform:[/dim] {platform.upper()}",
        "",
        f"[bold]Size Classification:[/bold] [{color}]{escape(result.size.upper())}[/{color}]",
        "",
        "[bold]Metrics:[/bold]",
    ]
    summary_lines.extend(f"  • {detail}" for detail in result.details)

    console.print()
    console.print(Panel("\n".join(summary_lines), title="📊 Pull Request Analysis", border_style="cyan"))

    if verbose and result.thresholds:
        console.print(_thresholds_table(result.thresholds))

    console.print()


def _thresholds_table(thresholds: Mapping[str, SizeThreshold]) -> Table:
    """Build a table of thresholds, smallest tier first."""
    table = Table(title="Thresholds", show_header=True, header_style="bold magenta")
    table.add_column("Size", style="white")
    table.add_column("Files", style="cyan", justify="right")
    table.add_column("Lines", style="cyan", justify="right")
    table.add_column("Directories", style="cyan", justify="right")

    for name, threshold in rank_thresholds(thresholds):
        color = get_size_category_color(name, thresholds)
        table.add_row(
            f"[{color}]{escape(name)}[/{color}]",
            str(threshold.files),
            str(threshold.lines),
            str(threshold.directories),
        )
    return table


def display_error(error: BaseException, as_json: bool, platform: str | None = None) -> None:
    """Display an error either as a JSON envelope or as a console message."""
    info = handle_error(error)

    if as_json:
        print(json.dumps(format_json_output(None, False, platform, info.message), indent=2))
        return

    console = Console(stderr=True)
    console.print(f"[red]❌ Error:[/red] [dim]{escape(f'[{info.code}]')}[/dim]")
    console.print(info.message, style="red", markup=False)


def check_size_warning(
    result: AnalysisResult,
    thresholds: Mapping[str, SizeThreshold],
    platform: str,
    as_json: bool = False,
) -> bool:
    """Warn when the request landed in the largest size tier.

    Returns:
        True if the warning was issued
    """
    if result.size != largest_tier(thresholds):
        return False

    kind = "pull" if platform == "github" else "merge"
    message = (
        f"This {kind} request is {result.size.lower()}! Consider breaking it down into smaller chunks."
    )

    if as_json:
        print(json.dumps({"warning": message}, indent=2))
    else:
        console = Console()
        console.print()
        console.print(f"[yellow]⚠️  Warning:[/yellow] {message}")
        console.print()
    return True


def show_progress(message: str) -> Progress:
    """Create and return a progress spinner.

    Args:
        message: Message to display with spinner

    Returns:
        Progress context manager
    """
    progress = Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        transient=True,
    )
    progress.add_task(description=message, total=None)
    return progress

import asyncio
import json
import logging
import os
from collections.abc import Callable
from functools import wraps
from logging import getLogger
from typing import Any

import typer
from rich.console import Console

from .conf.provider import Platform
from .conf.sizewise import (
    DEFAULT_COMMENT_TEMPLATE,
    DEFAULT_CONFIG,
    DEFAULT_LABEL_PREFIX,
    CommentConfig,
    LabelConfig,
    SizewiseConfig,
    load_config,
    write_config_file,
)
from .exceptions import InvalidInputError, PlatformError, SizeWiseError
from .services.analyzer import SizeWiseAnalyzer
from .services.formatter import check_size_warning, display_console_output, display_error, format_json_output, show_progress
from .services.providers.factory import detect_platform, parse_platform, resolve_pull_request_id
from .settings import settings

app = typer.Typer()
logger = getLogger(__name__)
console = Console()


def syncify(f: Callable[..., Any]) -> Callable[..., Any]:
    """This simple decorator converts an async function into a sync function,
    allowing it to work with Typer.
    """

    @wraps(f)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        return asyncio.run(f(*args, **kwargs))

    return wrapper


@app.command(help=f"Display the current installed version of {settings.project_name}.")
def version() -> None:
    from . import __version__

    typer.echo(f"{settings.project_name} - {__version__}")


@app.command(help="Analyze the size of a pull/merge request and optionally comment and label it.")
@syncify
async def analyze(
    pr_id: str | None = typer.Option(None, "--pr-id", help="Pull/Merge request ID to analyze"),
    mr_id: str | None = typer.Option(None, "--mr-id", help="Merge request ID to analyze (alias for --pr-id)"),
    project_id: str | None = typer.Option(
        None,
        "--project-id",
        help="Project ID (GitLab: project-id, GitHub: owner/repo)",
    ),
    token: str | None = typer.Option(None, "--token", help="API token for authentication"),
    host: str | None = typer.Option(
        None,
        "--host",
        help="Platform host URL (e.g., https://gitlab.com, https://github.com)",
    ),
    platform: str | None = typer.Option(
        None,
        "--platform",
        help="Platform to use (gitlab, github) - auto-detected if not specified",
    ),
    config: str | None = typer.Option(None, "--config", "-c", help="Path to configuration file"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show detailed output"),
    json_output: bool = typer.Option(False, "--json", "-j", help="Output results in JSON format"),
    exit_code: bool = typer.Option(
        True,
        "--exit-code/--no-exit-code",
        help="Exit with error code for pull/merge requests in the largest size category",
    ),
) -> None:
    """Analyze a pull/merge request."""
    platform_name: str | None = None
    try:
        selected = parse_platform(platform) if platform else detect_platform(os.environ)
        if selected is None:
            raise PlatformError(
                "Could not auto-detect platform. Please specify --platform (gitlab, github) "
                "or ensure you're running in a supported CI environment."
            )
        platform_name = selected.value

        if not json_output:
            console.print(f"[dim]🔧 Detected platform: {platform_name.upper()}[/dim]")

        pull_request_id = resolve_pull_request_id(selected, os.environ, pr_id or mr_id)
        analyzer_config = load_config(config or settings.sizewise_config)
        if verbose or analyzer_config.verbose:
            logging.getLogger("sizewise").setLevel(logging.INFO)

        analyzer = SizeWiseAnalyzer.create(
            analyzer_config,
            platform=selected,
            environ=os.environ,
            token=token,
            host=host,
            project_id=project_id,
            timeout=settings.sizewise_request_timeout,
            max_retries=settings.sizewise_max_retries,
        )

        async with analyzer.provider:
            if json_output:
                result = await analyzer.analyze(pull_request_id)
            else:
                with show_progress(f"Analyzing #{pull_request_id}..."):
                    result = await analyzer.analyze(pull_request_id)

    except SizeWiseError as e:
        display_error(e, json_output, platform_name)
        raise typer.Exit(1)
    except Exception as e:
        logger.exception("Unexpected error during analysis")
        display_error(e, json_output, platform_name)
        raise typer.Exit(1)

    if json_output:
        typer.echo(_dump_json(format_json_output(result, True, platform_name)))
    else:
        display_console_output(result, platform_name, verbose=verbose)

    if exit_code and check_size_warning(result, analyzer_config.thresholds, platform_name, json_output):
        raise typer.Exit(1)


@app.command(help="Initialize a configuration file, optionally through an interactive wizard.")
def init(
    platform: str | None = typer.Option(
        None,
        "--platform",
        help="Platform to use (gitlab, github) - skips platform selection",
    ),
    force: bool = typer.Option(False, "--force", help="Force overwrite of existing configuration file"),
    wizard: bool = typer.Option(True, "--wizard/--no-wizard", help="Use the interactive wizard"),
) -> None:
    """Create .github/sizewise.config.json or .gitlab/sizewise.config.json."""
    try:
        selected = parse_platform(platform) if platform else None

        if wizard:
            selected, config = _run_config_wizard(selected)
        else:
            if selected is None:
                raise InvalidInputError("Platform is required when not using wizard")
            config = _build_config(enable_comments=True, enable_labels=True)

        path = write_config_file(selected, config, force=force)
    except SizeWiseError as e:
        display_error(e, False)
        raise typer.Exit(1)
    except OSError as e:
        console.print(f"[red]❌ Failed to create configuration file:[/red] {e}")
        raise typer.Exit(1)

    if path is None:
        console.print("[yellow]⚠️  Configuration file already exists[/yellow]")
        console.print("[dim]   Use --force to overwrite[/dim]")
        return

    console.print(f"[green]✅ Successfully created configuration file at {path}[/green]")
    console.print("[dim]   Edit this file to customize your size analysis thresholds and behavior.[/dim]")


def _run_config_wizard(platform: Platform | None) -> tuple[Platform, SizewiseConfig]:
    """Ask the user for the platform and which features to enable.

    Args:
        platform: Platform given on the command line (skips the platform question)

    Returns:
        Tuple of (platform, configuration)
    """
    console.print("[bold]Welcome to SizeWise Configuration Wizard[/bold]")
    console.print("[dim]This wizard will help you create a customized configuration file for your project.[/dim]")

    if platform is None:
        answer = typer.prompt("Which platform are you using? (github, gitlab)", default="github")
        platform = parse_platform(answer)

    enable_comments = typer.confirm("Would you like SizeWise to comment on pull/merge requests?", default=True)
    enable_labels = typer.confirm("Would you like SizeWise to add size labels to pull/merge requests?", default=True)

    return platform, _build_config(enable_comments=enable_comments, enable_labels=enable_labels)


def _build_config(enable_comments: bool, enable_labels: bool) -> SizewiseConfig:
    return DEFAULT_CONFIG.model_copy(
        update={
            "comment": CommentConfig(enabled=enable_comments, template=DEFAULT_COMMENT_TEMPLATE, update_existing=True),
            "label": LabelConfig(enabled=enable_labels, prefix=DEFAULT_LABEL_PREFIX),
        }
    )


def _dump_json(data: dict[str, Any]) -> str:
    return json.dumps(data, indent=2, ensure_ascii=False)


if __name__ == "__main__":
    app()

"""Pull/merge request size analysis and result publishing."""

import os
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from logging import getLogger
from typing import Any

from sizewise.conf.provider import Platform
from sizewise.conf.sizewise import (
    DEFAULT_COMMENT_TEMPLATE,
    DEFAULT_LABEL_PREFIX,
    SizeThreshold,
    SizewiseConfig,
)
from sizewise.exceptions import PlatformError, handle_error

from .metrics import PullRequestMetrics, collect_metrics
from .pr_size import classify
from .providers.base import VCSProvider
from .providers.factory import create_provider, detect_platform, resolve_provider_config

logger = getLogger(__name__)

# Hidden marker identifying the comment managed by sizewise
COMMENT_MARKER = "<!-- sizewise-comment -->"


@dataclass(frozen=True)
class AnalysisResult:
    """Outcome of analyzing one pull/merge request."""

    metrics: PullRequestMetrics
    size: str
    details: list[str] = field(default_factory=list)
    thresholds: dict[str, SizeThreshold] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the JSON result payload."""
        return {
            "metrics": self.metrics.to_dict(),
            "size": self.size,
            "details": list(self.details),
            "thresholds": {name: threshold.model_dump() for name, threshold in self.thresholds.items()},
        }


def generate_details(metrics: PullRequestMetrics) -> list[str]:
    """Build human readable summary lines for the metrics."""
    return [
        f"Files changed: {metrics.files_changed}",
        f"Lines added: {metrics.lines_added}",
        f"Lines removed: {metrics.lines_removed}",
        f"Total lines changed: {metrics.total_lines}",
        f"Directories affected: {metrics.directories_affected}",
        f"Renamed files: {metrics.renamed_files}",
        f"New files: {metrics.new_files}",
        f"Deleted files: {metrics.deleted_files}",
    ]


def render_comment(template: str, size: str) -> str:
    return template.replace("{size}", size)


class SizeWiseAnalyzer:
    """Analyzes pull/merge requests through a VCS provider and determines their size."""

    def __init__(self, config: SizewiseConfig, provider: VCSProvider) -> None:
        """Initialize the analyzer.

        Args:
            config: Analyzer configuration
            provider: Provider for the pull request's platform (already entered if it
                is used as an async context manager)
        """
        self.config = config
        self.provider = provider
        # Progress messages follow the configured verbosity; errors are always logged
        self._log: Callable[[str], None] = logger.info if config.verbose else logger.debug

    @classmethod
    def create(
        cls,
        config: SizewiseConfig,
        platform: Platform | None = None,
        environ: Mapping[str, str] | None = None,
        token: str | None = None,
        host: str | None = None,
        project_id: str | None = None,
        timeout: float = 30.0,
        max_retries: int = 3,
    ) -> "SizeWiseAnalyzer":
        """Create an analyzer, detecting the platform and credentials from the environment.

        Args:
            config: Analyzer configuration
            platform: Platform override (default: detect from environment)
            environ: Environment snapshot (default: os.environ)
            token: API token override
            host: Host URL override
            project_id: Project id override
            timeout: Request timeout in seconds
            max_retries: Retries for timed out or rate limited requests

        Raises:
            PlatformError: If the platform cannot be detected
            InvalidInputError: If required provider values are missing
        """
        env = os.environ if environ is None else environ
        platform = platform or detect_platform(env)
        if platform is None:
            raise PlatformError("Could not auto-detect platform. Please specify platform explicitly.")

        provider_config = resolve_provider_config(
            platform,
            env,
            token=token,
            host=host,
            project_id=project_id,
            timeout=timeout,
            max_retries=max_retries,
        )
        return cls(config, create_provider(provider_config))

    async def analyze(self, pull_request_id: str) -> AnalysisResult:
        """Analyze a pull/merge request, then publish the comment and label if enabled.

        Args:
            pull_request_id: Pull/merge request number

        Returns:
            AnalysisResult with metrics, size, details and thresholds

        Raises:
            RetrievalError: If the diffs cannot be retrieved
            ConfigError: If no thresholds are configured
        """
        self._log(f"🔍 Analyzing PR/MR #{pull_request_id}...")

        metrics = await collect_metrics(self.provider, pull_request_id, self.config.exclude_patterns)
        size = classify(metrics, self.config.thresholds)
        details = generate_details(metrics)

        self._log(
            f"📊 PR/MR Analysis: {metrics.files_changed} files, {metrics.total_lines} lines changed "
            f"→ Size: {size.upper()}"
        )

        await self.sync_comment(pull_request_id, size)
        await self.sync_labels(pull_request_id, size)

        return AnalysisResult(
            metrics=metrics,
            size=size,
            details=details,
            thresholds=dict(self.config.thresholds),
        )

    async def sync_comment(self, pull_request_id: str, size: str) -> None:
        """Create or update the managed size comment. Failures are logged, never raised."""
        comment_config = self.config.comment
        if not comment_config or not comment_config.enabled:
            return

        try:
            self._log("📝 Checking for existing sizewise comments...")
            comments = await self.provider.get_comments(pull_request_id)
            existing = next((comment for comment in comments if COMMENT_MARKER in comment.body), None)
            if existing:
                self._log(f"📝 Found existing sizewise comment: {existing.id}")

            content = render_comment(comment_config.template or DEFAULT_COMMENT_TEMPLATE, size)
            body = f"{COMMENT_MARKER}\n{content}"

            if comment_config.update_existing and existing:
                self._log(f"📝 Updating existing comment ID: {existing.id}")
                try:
                    await self.provider.update_comment(pull_request_id, existing.id, body)
                    self._log(f"✅ Updated existing comment (ID: {existing.id}) with size: {size}")
                except Exception as e:
                    # Some backends reject the HTML marker on edit
                    self._log(f"📝 Edit failed ({e}), trying without HTML marker...")
                    await self.provider.update_comment(pull_request_id, existing.id, content)
                    self._log(f"✅ Updated existing comment (ID: {existing.id}) with fallback content")
            else:
                if existing:
                    self._log("📝 Creating new comment (updateExisting=false, ignoring existing)")
                else:
                    self._log("📝 Creating new comment (no existing comment found)")
                await self.provider.create_comment(pull_request_id, body)
                self._log(f"✅ Created new comment with size: {size}")
        except Exception as e:
            info = handle_error(e)
            logger.error(f"❌ Failed to handle PR/MR comment: [{info.code}] {info.message}")

    async def sync_labels(self, pull_request_id: str, size: str) -> None:
        """Replace any size label with the label for this size. Failures are logged, never raised."""
        label_config = self.config.label
        if not label_config or not label_config.enabled:
            return

        try:
            self._log("🏷️ Checking current PR/MR labels...")
            current_labels = await self.provider.get_labels(pull_request_id)
            self._log(f"🏷️ Current labels: [{', '.join(current_labels) if current_labels else 'none'}]")

            prefix = label_config.prefix or DEFAULT_LABEL_PREFIX
            new_label = f"{prefix}{size}"

            if new_label in current_labels:
                self._log(f'🏷️ Label "{new_label}" already exists - no changes needed')
                return

            old_size_labels = [label for label in current_labels if label.startswith(prefix)]
            kept_labels = [label for label in current_labels if not label.startswith(prefix)]
            if old_size_labels:
                self._log(f"🏷️ Removing existing size labels: [{', '.join(old_size_labels)}]")

            updated_labels = [*kept_labels, new_label]
            self._log(f"🏷️ Setting new labels: [{', '.join(updated_labels)}]")
            await self.provider.set_labels(pull_request_id, updated_labels)

            if old_size_labels:
                self._log(f'✅ Replaced label "{old_size_labels[0]}" with "{new_label}"')
            else:
                self._log(f'✅ Added label "{new_label}"')
        except Exception as e:
            info = handle_error(e)
            logger.error(f"❌ Failed to update PR/MR labels: [{info.code}] {info.message}")

"""Analyzer configuration: size thresholds, exclude patterns, comment and label policies."""

import json
from logging import getLogger
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic.alias_generators import to_camel

from .provider import Platform

logger = getLogger(__name__)

CONFIG_FILENAME = "sizewise.config.json"
DEFAULT_COMMENT_TEMPLATE = "🔍 **Pull Request Size:** {size}"
DEFAULT_LABEL_PREFIX = "size:"


class _ConfigModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


class SizeThreshold(_ConfigModel):
    """Ceilings a pull request must stay within to belong to a size tier."""

    files: int = Field(ge=0, description="Maximum number of files changed")
    lines: int = Field(ge=0, description="Maximum number of lines changed (added + removed)")
    directories: int = Field(ge=0, description="Maximum number of directories affected")


class CommentConfig(_ConfigModel):
    enabled: bool = False
    template: str | None = Field(
        default=None,
        description="Comment text; {size} is replaced with the size tier name",
    )
    update_existing: bool = Field(
        default=True,
        description="Update the existing sizewise comment instead of creating a new one",
    )


class LabelConfig(_ConfigModel):
    enabled: bool = False
    prefix: str | None = Field(default=None, description="Prefix for size labels (default: size:)")


class LoggingConfig(_ConfigModel):
    verbose: bool = True


class SizewiseConfig(_ConfigModel):
    """Immutable analyzer configuration, built once and passed to every component."""

    thresholds: dict[str, SizeThreshold]
    exclude_patterns: list[str] = Field(default_factory=list)
    comment: CommentConfig | None = None
    label: LabelConfig | None = None
    logging: LoggingConfig | None = None

    @field_validator("thresholds")
    @classmethod
    def validate_thresholds(cls, v: dict[str, SizeThreshold]) -> dict[str, SizeThreshold]:
        """At least one size tier is required to classify anything."""
        if not v:
            raise ValueError("at least one size threshold is required")
        return v

    @property
    def verbose(self) -> bool:
        return self.logging.verbose if self.logging else True

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the camelCase JSON shape used by config files."""
        return self.model_dump(by_alias=True, exclude_none=True)


DEFAULT_CONFIG = SizewiseConfig(
    thresholds={
        "small": SizeThreshold(files=5, lines=50, directories=2),
        "medium": SizeThreshold(files=10, lines=200, directories=4),
        "large": SizeThreshold(files=20, lines=500, directories=8),
    },
    exclude_patterns=[
        "**/*.lock",
        "**/package-lock.json",
        "**/yarn.lock",
        "**/pnpm-lock.yaml",
    ],
    comment=CommentConfig(enabled=False, template=DEFAULT_COMMENT_TEMPLATE, update_existing=True),
    label=LabelConfig(enabled=False, prefix=DEFAULT_LABEL_PREFIX),
    logging=LoggingConfig(verbose=True),
)

# Sections merged key by key over the defaults rather than replaced wholesale
_MERGED_SECTIONS = ("thresholds", "comment", "label", "logging")


def find_config_file(cwd: Path | None = None) -> Path | None:
    """Find a config file in the default locations.

    Searches, in order: ./sizewise.config.json, ./.gitlab/sizewise.config.json,
    ./.github/sizewise.config.json.

    Args:
        cwd: Directory to search from (default: current working directory)

    Returns:
        Path of the first existing config file, or None
    """
    base = cwd or Path.cwd()
    for candidate in (base / CONFIG_FILENAME, base / ".gitlab" / CONFIG_FILENAME, base / ".github" / CONFIG_FILENAME):
        if candidate.is_file():
            return candidate
    return None


def merge_config(user_config: dict[str, Any], defaults: SizewiseConfig = DEFAULT_CONFIG) -> SizewiseConfig:
    """Merge a user supplied config mapping over the defaults.

    Top level keys replace the defaults; the thresholds, comment, label and logging
    sections are merged key by key so a partial section keeps the remaining defaults.

    Raises:
        pydantic.ValidationError: If the merged configuration is invalid
    """
    merged = defaults.to_dict()
    for key, value in user_config.items():
        if key in _MERGED_SECTIONS and isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = {**merged[key], **value}
        else:
            merged[key] = value
    return SizewiseConfig.model_validate(merged)


def load_config(config_path: str | Path | None = None, cwd: Path | None = None) -> SizewiseConfig:
    """Load analyzer configuration from a file, falling back to the defaults.

    Args:
        config_path: Explicit config file path (default: search the standard locations)
        cwd: Directory used for the default search

    Returns:
        The merged configuration. Unreadable or invalid files are logged as warnings
        and the default configuration is returned instead.
    """
    path = Path(config_path) if config_path else find_config_file(cwd)
    if path is None:
        logger.debug("No config file found, using default configuration")
        return DEFAULT_CONFIG

    try:
        user_config = json.loads(path.read_text(encoding="utf-8"))
        if not isinstance(user_config, dict):
            raise ValueError(f"expected a JSON object, got {type(user_config).__name__}")
        config = merge_config(user_config)
    except (OSError, ValueError, ValidationError) as e:
        # json.JSONDecodeError is a ValueError subclass
        logger.warning(f"Failed to load config file: {path}. Using default configuration. Error: {e}")
        return DEFAULT_CONFIG

    logger.info(f"Loaded configuration from {path}")
    return config


def config_file_path(platform: Platform, cwd: Path | None = None) -> Path:
    """Return the platform specific config file location (.github/ or .gitlab/)."""
    target_dir = ".github" if platform == Platform.GITHUB else ".gitlab"
    return (cwd or Path.cwd()) / target_dir / CONFIG_FILENAME


def write_config_file(
    platform: Platform,
    config: SizewiseConfig,
    force: bool = False,
    cwd: Path | None = None,
) -> Path | None:
    """Write a configuration file for the given platform.

    Args:
        platform: Platform whose config directory receives the file
        config: Configuration to serialize
        force: Overwrite an existing file
        cwd: Project root (default: current working directory)

    Returns:
        Path of the written file, or None if it already existed and force was not set
    """
    path = config_file_path(platform, cwd)
    if path.exists() and not force:
        logger.warning(f"Configuration file already exists at {path}")
        return None

    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(config.to_dict(), indent=2, ensure_ascii=False) + "\n", encoding="utf-8")
    logger.info(f"Wrote configuration file to {path}")
    return path

"""Provider selection and environment based configuration."""

from collections.abc import Mapping, Sequence
from logging import getLogger

from pydantic import SecretStr
from pydantic import ValidationError as PydanticValidationError

from sizewise.conf.provider import Platform, ProviderConfig
from sizewise.exceptions import InvalidInputError, PlatformError

from .base import VCSProvider
from .github import GitHubProvider
from .gitlab import GitLabProvider

logger = getLogger(__name__)

# Environment variables consulted for each value, in priority order
ENV_MAPPINGS: dict[Platform, dict[str, tuple[str, ...]]] = {
    Platform.GITLAB: {
        "token": ("GITLAB_TOKEN", "CI_JOB_TOKEN"),
        "host": ("GITLAB_HOST", "CI_SERVER_URL"),
        "project_id": ("CI_PROJECT_ID", "GITLAB_PROJECT_ID"),
        "pull_request_id": ("CI_MERGE_REQUEST_IID", "GITLAB_MR_IID"),
    },
    Platform.GITHUB: {
        "token": ("GITHUB_TOKEN", "GH_TOKEN"),
        "host": ("GITHUB_SERVER_URL", "GITHUB_HOST"),
        "project_id": ("GITHUB_REPOSITORY",),
        "pull_request_id": ("GITHUB_EVENT_NUMBER", "PR_NUMBER"),
    },
}


def create_provider(config: ProviderConfig) -> VCSProvider:
    """Create the provider implementation for the configured platform.

    Raises:
        PlatformError: If the platform is not supported
    """
    if config.platform == Platform.GITHUB:
        return GitHubProvider(config)
    if config.platform == Platform.GITLAB:
        return GitLabProvider(config)
    raise PlatformError(f"Unsupported platform: {config.platform}")


def parse_platform(value: str) -> Platform:
    """Parse a platform name.

    Raises:
        InvalidInputError: If the name is not a supported platform
    """
    try:
        return Platform(value.strip().lower())
    except ValueError:
        raise InvalidInputError('Platform must be either "github" or "gitlab"') from None


def detect_platform(environ: Mapping[str, str]) -> Platform | None:
    """Infer the platform from CI environment variables.

    Args:
        environ: Environment snapshot (usually ``os.environ``)

    Returns:
        The detected platform, or None when no CI context is recognised
    """
    if environ.get("GITLAB_CI") or environ.get("CI_SERVER_URL"):
        return Platform.GITLAB
    if environ.get("GITHUB_ACTIONS") or environ.get("GITHUB_SERVER_URL"):
        return Platform.GITHUB
    return None


def get_env_value(keys: Sequence[str], environ: Mapping[str, str]) -> str | None:
    """Return the first non-empty value among the given environment variables."""
    for key in keys:
        value = environ.get(key)
        if value:
            return value
    return None


def resolve_pull_request_id(
    platform: Platform,
    environ: Mapping[str, str],
    pull_request_id: str | None = None,
) -> str:
    """Resolve the pull/merge request id from an explicit value or the environment.

    Raises:
        InvalidInputError: If no id is available or it is not a positive number
    """
    value = pull_request_id or get_env_value(ENV_MAPPINGS[platform]["pull_request_id"], environ)
    if not value:
        raise InvalidInputError(
            "Pull/Merge request ID is required. Please provide a valid PR/MR ID using --pr-id or --mr-id."
        )
    value = value.strip()
    if not (value.isascii() and value.isdigit()) or int(value) == 0:
        raise InvalidInputError(f"Pull/Merge request ID must be a positive integer, got: {value!r}")
    return value


def resolve_provider_config(
    platform: Platform,
    environ: Mapping[str, str],
    token: str | None = None,
    host: str | None = None,
    project_id: str | None = None,
    timeout: float = 30.0,
    max_retries: int = 3,
) -> ProviderConfig:
    """Build provider configuration from explicit values, falling back to the environment.

    Raises:
        InvalidInputError: If required values are missing or invalid
    """
    mapping = ENV_MAPPINGS[platform]
    token = token or get_env_value(mapping["token"], environ)
    host = host or get_env_value(mapping["host"], environ)
    project_id = project_id or get_env_value(mapping["project_id"], environ)

    errors: list[str] = []
    if not token:
        errors.append("API token is required")
    if not host:
        errors.append("Host URL is required")
    if not project_id:
        errors.append("Project ID is required")
    if errors:
        raise InvalidInputError(f"Missing required values: {', '.join(errors)}")

    try:
        return ProviderConfig(
            platform=platform,
            token=SecretStr(token or ""),
            host=host or "",
            project_id=project_id or "",
            timeout=timeout,
            max_retries=max_retries,
        )
    except PydanticValidationError as e:
        messages = "; ".join(error["msg"].removeprefix("Value error, ") for error in e.errors())
        raise InvalidInputError(messages) from e

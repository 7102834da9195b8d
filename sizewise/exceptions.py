"""Error types shared across sizewise.

Every error carries a stable machine-readable ``code`` so the CLI can report
failures consistently in both console and JSON output.
"""

from dataclasses import dataclass


class SizeWiseError(Exception):
    """Base class for all sizewise errors."""

    def __init__(self, message: str, code: str = "UNKNOWN_ERROR") -> None:
        super().__init__(message)
        self.message = message
        self.code = code


class ConfigError(SizeWiseError):
    """Configuration is missing or unusable."""

    def __init__(self, message: str) -> None:
        super().__init__(message, "CONFIG_ERROR")


class AuthError(SizeWiseError):
    """Authentication with the VCS platform failed."""

    def __init__(self, message: str) -> None:
        super().__init__(message, "AUTH_ERROR")


class PlatformError(SizeWiseError):
    """The VCS platform could not be determined or is not supported."""

    def __init__(self, message: str) -> None:
        super().__init__(message, "PLATFORM_ERROR")


class APIError(SizeWiseError):
    """A VCS API call returned an unexpected response."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message, "API_ERROR")
        self.status_code = status_code


class InvalidInputError(SizeWiseError):
    """User supplied values (CLI options, environment) are invalid or incomplete."""

    def __init__(self, message: str) -> None:
        super().__init__(message, "VALIDATION_ERROR")


class RetrievalError(SizeWiseError):
    """Diffs for a pull/merge request could not be retrieved."""

    def __init__(self, message: str) -> None:
        super().__init__(message, "RETRIEVAL_ERROR")


@dataclass(frozen=True)
class ErrorInfo:
    message: str
    code: str


def handle_error(error: BaseException | object) -> ErrorInfo:
    """Map any error to a message and a stable error code.

    Args:
        error: Exception (or arbitrary object) to describe

    Returns:
        ErrorInfo with the error message and code (UNKNOWN_ERROR for foreign exceptions)
    """
    if isinstance(error, SizeWiseError):
        return ErrorInfo(message=error.message, code=error.code)
    return ErrorInfo(message=str(error), code="UNKNOWN_ERROR")

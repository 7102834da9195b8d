from .base import Comment, DiffInfo, PullRequestInfo, VCSProvider
from .factory import ENV_MAPPINGS, create_provider, detect_platform, get_env_value

__all__ = [
    "ENV_MAPPINGS",
    "Comment",
    "DiffInfo",
    "PullRequestInfo",
    "VCSProvider",
    "create_provider",
    "detect_platform",
    "get_env_value",
]

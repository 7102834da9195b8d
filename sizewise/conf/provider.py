from enum import Enum

from pydantic import BaseModel, Field, SecretStr, model_validator


class Platform(str, Enum):
    """Supported version control platforms."""

    GITHUB = "github"
    GITLAB = "gitlab"


class ProviderConfig(BaseModel):
    """Connection details for a VCS provider."""

    platform: Platform
    token: SecretStr = Field(description="API token used to authenticate with the platform")
    host: str = Field(description="Platform host URL (e.g. https://gitlab.com, https://github.com)")
    project_id: str = Field(description="GitLab project id/path or GitHub owner/repo")
    timeout: float = 30.0
    max_retries: int = 3

    @model_validator(mode="after")
    def validate_project_id(self) -> "ProviderConfig":
        """GitHub projects must be addressed as owner/repo."""
        if self.platform == Platform.GITHUB:
            owner, _, repo = self.project_id.partition("/")
            if not owner or not repo:
                raise ValueError('GitHub projectId must be in format "owner/repo"')
        return self

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    project_name: str = "sizewise"
    debug: bool = False

    sizewise_config: str | None = Field(
        default=None,
        description="Path to a sizewise.config.json file (overrides the default search locations)",
    )

    # HTTP behaviour of the VCS providers
    sizewise_request_timeout: float = Field(
        default=30.0,
        description="Timeout in seconds for VCS API requests",
    )
    sizewise_max_retries: int = Field(
        default=3,
        description="Maximum retries for VCS API requests that time out or hit rate limits",
    )

    @field_validator("sizewise_max_retries")
    @classmethod
    def validate_max_retries(cls, v: int) -> int:
        """Validate retry count is not negative."""
        if v < 0:
            raise ValueError("sizewise_max_retries must not be negative")
        return v

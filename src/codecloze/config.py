"""Configuration management for CodeCloze."""

from enum import Enum
from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .errors import ConfigError


class LogLevel(str, Enum):
    """Log level enumeration."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class Environment(str, Enum):
    """Environment enumeration."""
    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"


DEFAULT_INVOCATION_PHRASE = "@codecloze review"


class Settings(BaseSettings):
    """Application settings with environment variable support.

    Credentials are optional at load time so the server can boot and answer
    health checks without them; each stage reports what it is missing when
    it actually needs it.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # GitHub App
    github_webhook_secret: Optional[str] = Field(None, description="Webhook shared secret")
    github_app_id: Optional[str] = Field(None, description="GitHub App identifier")
    github_private_key_base64: Optional[str] = Field(
        None, description="Base64-encoded PEM private key of the GitHub App"
    )
    github_private_key: Optional[str] = Field(
        None, description="Raw PEM private key (used when no base64 key is set)"
    )
    github_api_url: str = Field("https://api.github.com", description="GitHub REST API base URL")
    github_timeout_seconds: float = Field(10.0, gt=0, description="Timeout for GitHub API calls")
    user_agent: str = Field("CodeCloze", description="User-Agent sent to GitHub")

    # Language model (Azure OpenAI)
    azure_openai_endpoint: Optional[str] = Field(None, description="Azure OpenAI endpoint URL")
    azure_openai_api_key: Optional[str] = Field(None, description="Azure OpenAI API key")
    azure_openai_api_version: str = Field("2025-04-01-preview", description="Azure OpenAI API version")
    azure_openai_gating_deployment: Optional[str] = Field(None, description="Gating stage deployment")
    azure_openai_review_deployment: Optional[str] = Field(None, description="Review stage deployment")
    llm_timeout_seconds: float = Field(60.0, gt=0, description="Timeout for model calls")
    gating_max_output_tokens: int = Field(2000, gt=0, description="Output budget for the gating stage")
    review_max_output_tokens: int = Field(4000, gt=0, description="Output budget for the review stage")

    # Review behaviour
    invocation_phrase: str = Field(DEFAULT_INVOCATION_PHRASE, description="Comment text that invokes a review")
    max_rendered_findings: int = Field(3, ge=1, description="Findings shown in the posted comment")

    # Server Configuration
    host: str = Field("0.0.0.0", description="Server host")
    port: int = Field(8000, description="Server port")
    environment: Environment = Field(Environment.DEVELOPMENT, description="Environment")

    # Logging Configuration
    log_level: LogLevel = Field(LogLevel.INFO, description="Logging level")
    log_format: str = Field("json", description="Log format (json or text)")
    log_file: Optional[str] = Field(None, description="Log file path")

    @field_validator("invocation_phrase")
    @classmethod
    def validate_invocation_phrase(cls, v: str) -> str:
        """An empty phrase would match every comment."""
        if not v.strip():
            raise ValueError("invocation_phrase must not be empty")
        return v

    @field_validator("log_file")
    @classmethod
    def validate_log_file(cls, v: Optional[str]) -> Optional[str]:
        """Ensure log directory exists."""
        if v:
            log_path = Path(v)
            log_path.parent.mkdir(parents=True, exist_ok=True)
        return v

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.environment == Environment.DEVELOPMENT

    @property
    def has_webhook_secret(self) -> bool:
        return bool(self.github_webhook_secret)

    @property
    def has_app_credentials(self) -> bool:
        """Check if GitHub App id and key material are configured."""
        return bool(self.github_app_id) and bool(
            self.github_private_key_base64 or self.github_private_key
        )

    @property
    def missing_llm_settings(self) -> list:
        """Names of the model settings that are not configured."""
        required = {
            "AZURE_OPENAI_ENDPOINT": self.azure_openai_endpoint,
            "AZURE_OPENAI_API_KEY": self.azure_openai_api_key,
            "AZURE_OPENAI_GATING_DEPLOYMENT": self.azure_openai_gating_deployment,
            "AZURE_OPENAI_REVIEW_DEPLOYMENT": self.azure_openai_review_deployment,
        }
        return [name for name, value in required.items() if not value]

    def require_llm_settings(self) -> None:
        """Raise ConfigError when the language model is not fully configured."""
        missing = self.missing_llm_settings
        if missing:
            raise ConfigError(
                "Language model is not configured",
                details=f"missing: {', '.join(missing)}",
            )


@lru_cache
def get_settings() -> Settings:
    """Get application settings."""
    return Settings()

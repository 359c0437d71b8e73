"""
Configuration Settings.

This module defines the engine configuration using Pydantic's BaseSettings.
It automatically loads all configuration from environment variables and .env file
without explicit dotenv loading.
"""

from typing import Optional

from pydantic import BaseModel, Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

# =====================================================================
# Grouped Configuration Models
# =====================================================================


class ProviderConfig(BaseModel):
    """Model provider connection configuration."""

    api_key: Optional[SecretStr] = Field(
        default=None, alias="AGENTIC_PROVIDER_API_KEY", description="API key for the model provider"
    )
    base_url: Optional[str] = Field(
        default=None, alias="AGENTIC_PROVIDER_BASE_URL", description="Custom provider API base URL (optional)"
    )

    model_config = {"populate_by_name": True}


class ModelsConfig(BaseModel):
    """Mapping of model keys used by prompts to provider model names."""

    normal: str = Field(default="gpt-4.1-mini", alias="AGENTIC_MODEL_NORMAL", description="Model for 'normal' prompts")
    high: Optional[str] = Field(
        default=None,
        alias="AGENTIC_MODEL_HIGH",
        description="Model for 'high' prompts; falls back to the normal model when unset",
    )

    model_config = {"populate_by_name": True}

    def resolve(self, key: str) -> Optional[str]:
        """Return the provider model name for a model key, or None when unknown."""
        if key == "normal":
            return self.normal
        if key == "high":
            return self.high or self.normal
        return None


class LogfireConfig(BaseModel):
    """Logfire monitoring configuration."""

    enabled: bool = Field(default=False, alias="LOGFIRE_ENABLED", description="Enable Logfire tracing")
    token: Optional[SecretStr] = Field(default=None, alias="LOGFIRE_TOKEN", description="Logfire write token")
    service_name: str = Field(default="agentic-core", alias="LOGFIRE_SERVICE_NAME", description="Traced service name")
    environment: str = Field(
        default="development", alias="LOGFIRE_ENVIRONMENT", description="Deployment environment label"
    )

    model_config = {"populate_by_name": True}


# =====================================================================
# Main Settings Class
# =====================================================================


class Settings(BaseSettings):
    """
    Engine settings model.

    All properties are automatically bound from environment variables and .env file.
    Pydantic's BaseSettings handles dotenv loading automatically via model_config.
    """

    # =====================================================================
    # Pydantic Configuration
    # =====================================================================
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=True,
        populate_by_name=True,
    )

    # =====================================================================
    # Model Provider Configuration
    # =====================================================================
    provider_api_key: Optional[SecretStr] = Field(
        default=None,
        description="API key for the OpenAI-compatible model provider",
        alias="AGENTIC_PROVIDER_API_KEY",
    )
    provider_base_url: Optional[str] = Field(
        default=None,
        description="Base URL of the OpenAI-compatible model provider",
        alias="AGENTIC_PROVIDER_BASE_URL",
    )
    model_normal: str = Field(
        default="gpt-4.1-mini",
        description="Provider model used for prompts with model key 'normal'",
        alias="AGENTIC_MODEL_NORMAL",
    )
    model_high: Optional[str] = Field(
        default=None,
        description="Provider model used for prompts with model key 'high'",
        alias="AGENTIC_MODEL_HIGH",
    )

    # =====================================================================
    # Engine Configuration
    # =====================================================================
    max_rounds: int = Field(
        default=25,
        ge=1,
        description="Maximum number of model rounds per prompt before forced completion",
        alias="AGENTIC_MAX_ROUNDS",
    )

    # =====================================================================
    # Logging Configuration
    # =====================================================================
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
        alias="AGENTIC_LOG_LEVEL",
    )
    log_format: str = Field(
        default="detailed",
        description="Log line format (simple, detailed, json)",
        alias="AGENTIC_LOG_FORMAT",
    )
    enable_file_logging: bool = Field(
        default=False,
        description="Write logs to a file in addition to the console",
        alias="AGENTIC_ENABLE_FILE_LOGGING",
    )
    log_file_dir: str = Field(
        default="logs",
        description="Directory for the log file when file logging is enabled",
        alias="AGENTIC_LOG_FILE_DIR",
    )

    # =====================================================================
    # Monitoring Configuration
    # =====================================================================
    logfire_enabled: bool = Field(default=False, alias="LOGFIRE_ENABLED")
    logfire_token: Optional[SecretStr] = Field(default=None, alias="LOGFIRE_TOKEN")
    logfire_service_name: str = Field(default="agentic-core", alias="LOGFIRE_SERVICE_NAME")
    logfire_environment: str = Field(default="development", alias="LOGFIRE_ENVIRONMENT")

    # =====================================================================
    # Computed Properties (Grouped Configurations)
    # =====================================================================

    @property
    def provider(self) -> ProviderConfig:
        """Get model provider configuration from environment variables."""
        return ProviderConfig.model_validate(self.model_dump(by_alias=True))

    @property
    def models(self) -> ModelsConfig:
        """Get model key mapping from environment variables."""
        return ModelsConfig.model_validate(self.model_dump(by_alias=True))

    @property
    def logfire(self) -> LogfireConfig:
        """Get Logfire configuration from environment variables."""
        return LogfireConfig.model_validate(self.model_dump(by_alias=True))


settings = Settings()

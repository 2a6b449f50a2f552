# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Application configuration settings using Pydantic Settings.

Settings are loaded from environment variables (and an optional ``.env``
file) with defaults suitable for local development.

The Settings class is the main entry point and aggregates all subsettings.
A cached instance is provided via get_settings().

Example:
    >>> from stepcode.core.config.settings import get_settings
    >>> settings = get_settings()
    >>> print(settings.runner.filename)
    'main.py'
"""

from functools import lru_cache
from pathlib import Path
from typing import Literal, Self

from pydantic import Field, SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class LLMSettings(BaseSettings):
    """AI tutor completion configuration.

    Completions go through LiteLLM, so ``model`` carries the provider prefix
    (``groq/...``, ``openai/...``, ``ollama/...``).

    Attributes:
        api_key: Provider API key. Without it the tutor answers with the
            key-required sentinel instead of calling out.
        api_base: Optional custom endpoint.
        model: Model identifier in LiteLLM format.
        temperature: Sampling temperature for tutor answers.
        max_tokens: Maximum tokens per answer.
        request_timeout: Request timeout in seconds.
        max_retries: Retry attempts handled by LiteLLM.
    """

    model_config = SettingsConfigDict(
        env_prefix="LLM_",
        extra="ignore",
        populate_by_name=True,
    )

    api_key: SecretStr | None = Field(
        default=None,
        validation_alias="GROQ_API_KEY",
    )
    api_base: str | None = None
    model: str = "groq/llama-3.3-70b-versatile"
    temperature: float = 0.7
    max_tokens: int = 2048
    request_timeout: float = 60.0
    max_retries: int = 2

    @property
    def is_configured(self) -> bool:
        """Check whether an API key is available."""
        return self.api_key is not None and bool(self.api_key.get_secret_value())


class SupabaseSettings(BaseSettings):
    """Hosted database/auth service configuration.

    Attributes:
        url: Project URL, e.g. ``https://<ref>.supabase.co``.
        anon_key: Public anon key used for learner requests.
        service_role_key: Service role key, required for admin deletion.
        timeout: Request timeout in seconds.
    """

    model_config = SettingsConfigDict(
        env_prefix="SUPABASE_",
        extra="ignore",
    )

    url: str = "http://localhost:54321"
    anon_key: SecretStr = SecretStr("")
    service_role_key: SecretStr = SecretStr("")
    timeout: float = 15.0

    @property
    def has_service_role(self) -> bool:
        """Check whether the service role key is configured."""
        return bool(self.service_role_key.get_secret_value())


class CompilerSettings(BaseSettings):
    """External compile-and-run service configuration (C sandbox path).

    Attributes:
        enabled: Whether to call the compile service at all.
        base_url: Service base URL.
        timeout: Request timeout in seconds.
    """

    model_config = SettingsConfigDict(
        env_prefix="COMPILER_",
        extra="ignore",
    )

    enabled: bool = True
    base_url: str = "http://localhost:3000"
    timeout: float = 20.0


class RunnerSettings(BaseSettings):
    """Script runner configuration.

    Attributes:
        filename: Name shown for learner code in tracebacks.
        max_simulation_rounds: Upper bound on AI simulation round trips for
            one compiled-language run.
    """

    model_config = SettingsConfigDict(
        env_prefix="RUNNER_",
        extra="ignore",
    )

    filename: str = "main.py"
    max_simulation_rounds: int = 20


class CurriculumSettings(BaseSettings):
    """Static curriculum content location.

    Attributes:
        directory: Directory holding one YAML document per track. Defaults
            to ``config/curriculum`` relative to the working directory, so
            the service is started from the project root or points
            ``CURRICULUM_DIRECTORY`` at the content.
    """

    model_config = SettingsConfigDict(
        env_prefix="CURRICULUM_",
        extra="ignore",
    )

    directory: Path = Path("config") / "curriculum"


class CORSSettings(BaseSettings):
    """CORS configuration for the HTTP surface.

    Attributes:
        origins: Comma-separated list of allowed origins.
        allow_credentials: Whether to allow credentials.
    """

    model_config = SettingsConfigDict(
        env_prefix="CORS_",
        extra="ignore",
    )

    origins: str = "http://localhost:3000,http://localhost:5173"
    allow_credentials: bool = True

    @property
    def origins_list(self) -> list[str]:
        """Parse origins string into a list."""
        return [origin.strip() for origin in self.origins.split(",") if origin.strip()]


class APISettings(BaseSettings):
    """API server configuration.

    Attributes:
        host: Host to bind to.
        port: Port to listen on.
    """

    model_config = SettingsConfigDict(
        env_prefix="API_",
        extra="ignore",
    )

    host: str = "0.0.0.0"
    port: int = 3000


class Settings(BaseSettings):
    """Main application settings aggregating all subsettings.

    Use get_settings() to obtain a cached instance.

    Attributes:
        environment: Current environment (development, staging, production).
        debug: Enable debug mode.
        log_level: Logging level.
        llm: AI tutor settings.
        supabase: Persistence/auth service settings.
        compiler: Compile service settings.
        runner: Script runner settings.
        curriculum: Curriculum content settings.
        cors: CORS settings.
        api: API server settings.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    environment: Literal["development", "staging", "production"] = "development"
    debug: bool = True
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "DEBUG"

    llm: LLMSettings = Field(default_factory=LLMSettings)
    supabase: SupabaseSettings = Field(default_factory=SupabaseSettings)
    compiler: CompilerSettings = Field(default_factory=CompilerSettings)
    runner: RunnerSettings = Field(default_factory=RunnerSettings)
    curriculum: CurriculumSettings = Field(default_factory=CurriculumSettings)
    cors: CORSSettings = Field(default_factory=CORSSettings)
    api: APISettings = Field(default_factory=APISettings)

    @model_validator(mode="after")
    def validate_production_settings(self) -> Self:
        """Validate that production settings are properly configured.

        Raises:
            ValueError: If running in production without a tutor API key.
        """
        if self.environment == "production" and not self.llm.is_configured:
            raise ValueError(
                "An LLM API key is required in production. "
                "Set GROQ_API_KEY environment variable."
            )
        return self

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.environment == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == "production"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached settings instance.

    Call clear_settings_cache() to reload settings from the environment.

    Returns:
        Cached Settings instance.
    """
    return Settings()


def clear_settings_cache() -> None:
    """Clear the settings cache.

    Useful for testing or after changing environment variables.
    """
    get_settings.cache_clear()

# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for application settings."""

import os
from pathlib import Path
from unittest.mock import patch

import pytest

from stepcode.core.config.settings import (
    APISettings,
    CompilerSettings,
    CORSSettings,
    CurriculumSettings,
    LLMSettings,
    RunnerSettings,
    Settings,
    SupabaseSettings,
    clear_settings_cache,
    get_settings,
)


class TestLLMSettings:
    """Tests for LLMSettings."""

    def test_default_values(self) -> None:
        """Test default configuration values."""
        settings = LLMSettings()

        assert settings.model == "groq/llama-3.3-70b-versatile"
        assert settings.api_key is None
        assert settings.is_configured is False

    def test_reads_groq_api_key(self) -> None:
        """Test that the key is read from GROQ_API_KEY."""
        with patch.dict(os.environ, {"GROQ_API_KEY": "gsk-test"}, clear=False):
            settings = LLMSettings()

        assert settings.api_key.get_secret_value() == "gsk-test"
        assert settings.is_configured is True

    def test_blank_key_is_not_configured(self) -> None:
        """Test that an empty key counts as missing."""
        with patch.dict(os.environ, {"GROQ_API_KEY": ""}, clear=False):
            settings = LLMSettings()

        assert settings.is_configured is False


class TestSupabaseSettings:
    """Tests for SupabaseSettings."""

    def test_service_role_from_environment(self) -> None:
        """Test that the service role key enables admin features."""
        assert SupabaseSettings().has_service_role is False

        with patch.dict(os.environ, {"SUPABASE_SERVICE_ROLE_KEY": "srk"}, clear=False):
            settings = SupabaseSettings()

        assert settings.has_service_role is True


class TestRunnerAndCompilerSettings:
    """Tests for RunnerSettings and CompilerSettings."""

    def test_default_values(self) -> None:
        """Test default configuration values."""
        assert RunnerSettings().filename == "main.py"
        assert RunnerSettings().max_simulation_rounds == 20
        assert CompilerSettings().enabled is True

    def test_loads_from_environment(self) -> None:
        """Test that settings load from environment variables."""
        env = {"COMPILER_ENABLED": "false", "RUNNER_MAX_SIMULATION_ROUNDS": "5"}

        with patch.dict(os.environ, env, clear=False):
            compiler = CompilerSettings()
            runner = RunnerSettings()

        assert compiler.enabled is False
        assert runner.max_simulation_rounds == 5


class TestCurriculumSettings:
    """Tests for CurriculumSettings."""

    def test_default_directory_is_working_directory_relative(self) -> None:
        """Test that the default does not point into the installed package."""
        directory = CurriculumSettings().directory

        assert directory == Path("config") / "curriculum"
        assert not directory.is_absolute()

    def test_directory_override(self, tmp_path: Path) -> None:
        """Test that CURRICULUM_DIRECTORY overrides the location."""
        with patch.dict(os.environ, {"CURRICULUM_DIRECTORY": str(tmp_path)}, clear=False):
            settings = CurriculumSettings()

        assert settings.directory == tmp_path


class TestCORSAndAPISettings:
    """Tests for CORSSettings and APISettings."""

    def test_origins_list_property(self) -> None:
        """Test that origins are split and trimmed."""
        settings = CORSSettings(origins="http://a.test, http://b.test,")

        assert settings.origins_list == ["http://a.test", "http://b.test"]

    def test_api_defaults(self) -> None:
        """Test default host and port."""
        settings = APISettings()

        assert settings.host == "0.0.0.0"
        assert settings.port == 3000


class TestSettings:
    """Tests for main Settings class."""

    def test_default_values(self) -> None:
        """Test default configuration values."""
        settings = Settings()

        assert settings.environment == "development"
        assert settings.is_development is True
        assert settings.is_production is False

    def test_production_without_llm_key_raises_error(self) -> None:
        """Test that production requires a tutor key."""
        with pytest.raises(ValueError) as exc_info:
            Settings(environment="production")

        assert "GROQ_API_KEY" in str(exc_info.value)

    def test_production_with_llm_key_succeeds(self) -> None:
        """Test that production starts with a tutor key."""
        with patch.dict(os.environ, {"GROQ_API_KEY": "gsk-test"}, clear=False):
            settings = Settings(environment="production")

        assert settings.is_production is True


class TestGetSettings:
    """Tests for get_settings function."""

    def test_returns_cached_instance(self) -> None:
        """Test that get_settings returns the same instance."""
        assert get_settings() is get_settings()

    def test_clear_cache_allows_reload(self) -> None:
        """Test that clearing the cache creates a new instance."""
        first = get_settings()

        clear_settings_cache()

        assert get_settings() is not first

# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Configuration package for StepCode.

This package provides centralized configuration management:
- Settings: Pydantic-based settings loaded from environment variables
- YAML loader: Utilities for loading curriculum YAML documents

Example:
    >>> from stepcode.core.config import get_settings
    >>> settings = get_settings()
    >>> print(settings.environment)
    'development'
"""

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
from stepcode.core.config.yaml_loader import (
    YAMLLoadError,
    load_yaml,
    load_yaml_directory,
)

__all__ = [
    # Settings
    "Settings",
    "get_settings",
    "clear_settings_cache",
    # Subsettings
    "LLMSettings",
    "SupabaseSettings",
    "CompilerSettings",
    "RunnerSettings",
    "CurriculumSettings",
    "CORSSettings",
    "APISettings",
    # YAML utilities
    "load_yaml",
    "load_yaml_directory",
    "YAMLLoadError",
]

# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""YAML file loader utilities.

Curriculum tracks are authored as one YAML document per track. This module
reads those documents into plain dictionaries; validation against the content
models happens in the curriculum loader.

Example:
    >>> from pathlib import Path
    >>> from stepcode.core.config.yaml_loader import load_yaml, load_yaml_directory
    >>> track = load_yaml(Path("config/curriculum/python_basic.yaml"))
    >>> tracks = load_yaml_directory(Path("config/curriculum"))
"""

from pathlib import Path
from typing import Any

import yaml


class YAMLLoadError(Exception):
    """Raised when a YAML file cannot be read or parsed."""

    def __init__(self, path: Path, reason: str) -> None:
        """Initialize YAMLLoadError.

        Args:
            path: Path to the YAML file that failed to load.
            reason: Description of why the file failed to load.
        """
        self.path = path
        self.reason = reason
        super().__init__(f"Failed to load YAML file '{path}': {reason}")


def load_yaml(path: Path) -> dict[str, Any]:
    """Load a single YAML document as a dictionary.

    A leading UTF-8 byte order mark is tolerated, since content files are
    frequently edited with tools that add one.

    Args:
        path: Path to the YAML file.

    Returns:
        Parsed mapping. Empty dict if the document is empty.

    Raises:
        YAMLLoadError: If the file is missing, unreadable, not valid YAML,
            or its root is not a mapping.
    """
    if not path.is_file():
        raise YAMLLoadError(path, "File does not exist")

    try:
        content = path.read_text(encoding="utf-8-sig")
    except OSError as e:
        raise YAMLLoadError(path, f"Cannot read file: {e}") from e

    try:
        parsed = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise YAMLLoadError(path, f"Invalid YAML syntax: {e}") from e

    if parsed is None:
        return {}

    if not isinstance(parsed, dict):
        raise YAMLLoadError(
            path, f"YAML root must be a mapping, got {type(parsed).__name__}"
        )

    return parsed


def load_yaml_directory(path: Path) -> dict[str, dict[str, Any]]:
    """Load every ``.yaml``/``.yml`` file in a directory.

    Args:
        path: Directory containing the YAML files.

    Returns:
        Mapping of file stem to parsed document, in file name order.

    Raises:
        YAMLLoadError: If the path is not a directory or any file fails.
    """
    if not path.is_dir():
        raise YAMLLoadError(path, "Directory does not exist")

    yaml_files = sorted(
        [*path.glob("*.yaml"), *path.glob("*.yml")], key=lambda item: item.name
    )

    return {yaml_file.stem: load_yaml(yaml_file) for yaml_file in yaml_files}

# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for YAML loader utilities."""

from pathlib import Path

import pytest

from stepcode.core.config.yaml_loader import (
    YAMLLoadError,
    load_yaml,
    load_yaml_directory,
)


class TestLoadYaml:
    """Tests for load_yaml function."""

    def test_load_track_document(self, tmp_path: Path) -> None:
        """Test loading a nested track document."""
        yaml_file = tmp_path / "track.yaml"
        yaml_file.write_text("track:\n  id: demo\n  lessons:\n    - id: d1\n")

        result = load_yaml(yaml_file)

        assert result == {"track": {"id": "demo", "lessons": [{"id": "d1"}]}}

    def test_block_scalars_keep_newlines(self, tmp_path: Path) -> None:
        """Test that literal blocks keep code and expected output intact."""
        yaml_file = tmp_path / "page.yaml"
        yaml_file.write_text('code: |-\n  print("Hello")\n  print(10)\n')

        result = load_yaml(yaml_file)

        assert result["code"] == 'print("Hello")\nprint(10)'

    def test_byte_order_mark_is_tolerated(self, tmp_path: Path) -> None:
        """Test that a UTF-8 BOM does not break parsing."""
        yaml_file = tmp_path / "bom.yaml"
        yaml_file.write_bytes("\ufeffid: bom\n".encode("utf-8"))

        assert load_yaml(yaml_file) == {"id": "bom"}

    def test_load_empty_yaml_file_returns_empty_dict(self, tmp_path: Path) -> None:
        """Test that empty YAML files return empty dict."""
        yaml_file = tmp_path / "empty.yaml"
        yaml_file.write_text("# only a comment\n")

        assert load_yaml(yaml_file) == {}

    def test_load_yaml_with_list_root_raises_error(self, tmp_path: Path) -> None:
        """Test that YAML files with list root raise error."""
        yaml_file = tmp_path / "list.yaml"
        yaml_file.write_text("- py1\n- py2\n")

        with pytest.raises(YAMLLoadError) as exc_info:
            load_yaml(yaml_file)

        assert "YAML root must be a mapping" in str(exc_info.value)

    def test_load_nonexistent_file_raises_error(self, tmp_path: Path) -> None:
        """Test that loading non-existent file raises error."""
        with pytest.raises(YAMLLoadError) as exc_info:
            load_yaml(tmp_path / "missing.yaml")

        assert exc_info.value.reason == "File does not exist"

    def test_load_invalid_yaml_syntax_raises_error(self, tmp_path: Path) -> None:
        """Test that invalid YAML syntax raises error."""
        yaml_file = tmp_path / "invalid.yaml"
        yaml_file.write_text("key: value\n  invalid indentation")

        with pytest.raises(YAMLLoadError) as exc_info:
            load_yaml(yaml_file)

        assert "Invalid YAML syntax" in str(exc_info.value)


class TestLoadYamlDirectory:
    """Tests for load_yaml_directory function."""

    def test_loads_yaml_and_yml_in_name_order(self, tmp_path: Path) -> None:
        """Test that both extensions load, ordered by file name."""
        (tmp_path / "b_track.yml").write_text("id: b\n")
        (tmp_path / "a_track.yaml").write_text("id: a\n")
        (tmp_path / "notes.txt").write_text("ignored")

        result = load_yaml_directory(tmp_path)

        assert list(result) == ["a_track", "b_track"]
        assert result["b_track"] == {"id": "b"}

    def test_load_nonexistent_directory_raises_error(self, tmp_path: Path) -> None:
        """Test that a missing directory raises error."""
        with pytest.raises(YAMLLoadError) as exc_info:
            load_yaml_directory(tmp_path / "missing")

        assert "Directory does not exist" in str(exc_info.value)

"""
tests/test_config.py — config.yaml Loading
"""

from __future__ import annotations

import pytest

from questboard.config import QuestboardConfig, load_config


class TestLoadConfig:
    def test_reads_values(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text(
            'default_timezone: "Europe/Stockholm"\nlist_page_size: 50\napi_port: 9000\n',
            encoding="utf-8",
        )
        assert load_config(path) == QuestboardConfig("Europe/Stockholm", 50, 9000)

    def test_empty_file_uses_defaults(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("", encoding="utf-8")
        assert load_config(path) == QuestboardConfig()

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError, match="config.yaml.example"):
            load_config(tmp_path / "nope.yaml")

    @pytest.mark.parametrize("body", ["list_page_size: 0\n", "api_port: -1\n"])
    def test_rejects_non_positive(self, tmp_path, body):
        path = tmp_path / "config.yaml"
        path.write_text(body, encoding="utf-8")
        with pytest.raises(ValueError, match="must be positive"):
            load_config(path)

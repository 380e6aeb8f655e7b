"""Tests for gitreplay.settings module."""

from gitreplay import settings as settings_module
from gitreplay.settings import get_settings, ignore_patterns, save_settings


class TestSettings:
    """Tests for the global YAML settings file."""

    def test_missing_file(self, tmp_path):
        """A missing file gives empty settings."""
        assert get_settings(tmp_path / "config.yml") == {}

    def test_save_and_load(self, tmp_path):
        """Settings round-trip through YAML."""
        path = tmp_path / "sub" / "config.yml"
        save_settings({"chunk_size": 4, "ignore": ["*.lock"]}, path)
        assert get_settings(path) == {"chunk_size": 4, "ignore": ["*.lock"]}

    def test_invalid_yaml(self, tmp_path):
        """Broken YAML is treated as no settings."""
        path = tmp_path / "config.yml"
        path.write_text("chunk_size: [unclosed\n")
        assert get_settings(path) == {}

    def test_non_mapping(self, tmp_path):
        """A YAML list is not a settings mapping."""
        path = tmp_path / "config.yml"
        path.write_text("- a\n- b\n")
        assert get_settings(path) == {}

    def test_default_path(self, tmp_path, monkeypatch):
        """Without a path the global location is used."""
        path = tmp_path / "global.yml"
        monkeypatch.setattr(settings_module, "CONFIG_PATH", path)
        save_settings({"sink": "jsonl"})
        assert path.exists()
        assert get_settings() == {"sink": "jsonl"}


class TestIgnorePatterns:
    """Tests for ignore_patterns."""

    def test_list(self):
        """A YAML list is used as is."""
        assert ignore_patterns({"ignore": ["*.lock", "dist/"]}) == ["*.lock", "dist/"]

    def test_text_block(self):
        """A text block is split into lines."""
        assert ignore_patterns({"ignore": "*.lock\ndist/\n"}) == ["*.lock", "dist/"]

    def test_missing(self):
        """No ignore key means no patterns."""
        assert ignore_patterns({}) == []

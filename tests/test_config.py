"""Tests for gitreplay config module."""

from git import Repo

from gitreplay.config import ProjectConfig, load_config, save_config


class TestProjectConfig:
    """Tests for ProjectConfig dataclass."""

    def test_default_config(self):
        """Should have None defaults."""
        config = ProjectConfig()
        assert config.ignore_file is None
        assert config.chunk_size is None

    def test_custom_config(self):
        """Should accept custom values."""
        config = ProjectConfig(ignore_file=".replayignore", chunk_size=4)
        assert config.ignore_file == ".replayignore"
        assert config.chunk_size == 4


class TestLoadConfig:
    """Tests for load_config function."""

    def test_load_from_nonexistent_dir(self, tmp_path):
        """Should return empty config for nonexistent directory."""
        config = load_config(tmp_path / "nonexistent")
        assert config == ProjectConfig()

    def test_load_from_non_git_dir(self, tmp_path):
        """Should return empty config for non-git directory."""
        assert load_config(tmp_path) == ProjectConfig()

    def test_load_from_git_repo_without_config(self, tmp_path):
        """Should return empty config for git repo without gitreplay config."""
        Repo.init(tmp_path)
        assert load_config(tmp_path) == ProjectConfig()

    def test_load_from_git_repo_with_config(self, tmp_path):
        """Should load config from git repo."""
        repo = Repo.init(tmp_path)
        with repo.config_writer() as writer:
            writer.set_value("gitreplay", "ignoreFile", ".replayignore")
            writer.set_value("gitreplay", "chunkSize", 3)

        config = load_config(tmp_path)
        assert config.ignore_file == ".replayignore"
        assert config.chunk_size == 3

    def test_invalid_chunk_size(self, tmp_path):
        """A non-numeric chunk size is ignored."""
        repo = Repo.init(tmp_path)
        with repo.config_writer() as writer:
            writer.set_value("gitreplay", "chunkSize", "lots")

        assert load_config(tmp_path).chunk_size is None


class TestSaveConfig:
    """Tests for save_config function."""

    def test_save_to_nonexistent_dir(self, tmp_path):
        """Should report failure for nonexistent directory."""
        assert save_config(tmp_path / "nonexistent", ProjectConfig(chunk_size=2)) is False

    def test_save_to_non_git_dir(self, tmp_path):
        """Should report failure for non-git directory."""
        assert save_config(tmp_path, ProjectConfig(chunk_size=2)) is False

    def test_save_and_load(self, tmp_path):
        """Should round-trip through git config."""
        Repo.init(tmp_path)
        assert save_config(tmp_path, ProjectConfig(ignore_file="ignore.txt", chunk_size=5))

        config = load_config(tmp_path)
        assert config.ignore_file == "ignore.txt"
        assert config.chunk_size == 5

    def test_partial_save_keeps_other_values(self, tmp_path):
        """None fields leave existing values alone."""
        Repo.init(tmp_path)
        save_config(tmp_path, ProjectConfig(ignore_file="ignore.txt"))
        save_config(tmp_path, ProjectConfig(chunk_size=7))

        config = load_config(tmp_path)
        assert config.ignore_file == "ignore.txt"
        assert config.chunk_size == 7

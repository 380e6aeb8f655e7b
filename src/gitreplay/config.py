"""Per-repository configuration for gitreplay using git config."""

from __future__ import annotations

import configparser
from dataclasses import dataclass
from pathlib import Path

SECTION = "gitreplay"


@dataclass
class ProjectConfig:
    """Replay settings stored in the replayed repository."""

    ignore_file: str | None = None
    chunk_size: int | None = None


def load_config(repo_path: Path) -> ProjectConfig:
    """Load project configuration from git config.

    Args:
        repo_path: The repository being replayed.

    Returns:
        ProjectConfig with saved settings, or defaults if no config exists.
    """
    from git import Repo
    from git.exc import InvalidGitRepositoryError
    from git.exc import NoSuchPathError

    if not repo_path.exists():
        return ProjectConfig()

    try:
        repo = Repo(repo_path)
        reader = repo.config_reader()

        ignore_file = None
        chunk_size = None

        try:
            ignore_file = str(reader.get_value(SECTION, "ignoreFile"))
        except (configparser.NoSectionError, configparser.NoOptionError):
            pass

        try:
            chunk_size = int(reader.get_value(SECTION, "chunkSize"))
        except (configparser.NoSectionError, configparser.NoOptionError):
            pass
        except ValueError:
            chunk_size = None

        return ProjectConfig(ignore_file=ignore_file, chunk_size=chunk_size)
    except (InvalidGitRepositoryError, NoSuchPathError):
        return ProjectConfig()


def save_config(repo_path: Path, config: ProjectConfig) -> bool:
    """Save project configuration to git config.

    Args:
        repo_path: The repository being replayed.
        config: The configuration to save. None values are left untouched.

    Returns:
        True if the config was written, False if repo_path is not a repository.
    """
    from git import Repo
    from git.exc import InvalidGitRepositoryError
    from git.exc import NoSuchPathError

    if not repo_path.exists():
        return False

    try:
        repo = Repo(repo_path)
        with repo.config_writer() as writer:
            if config.ignore_file is not None:
                writer.set_value(SECTION, "ignoreFile", config.ignore_file)
            if config.chunk_size is not None:
                writer.set_value(SECTION, "chunkSize", config.chunk_size)
        return True
    except (InvalidGitRepositoryError, NoSuchPathError):
        return False

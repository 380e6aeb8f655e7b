"""Shared fixtures for gitreplay tests."""

from pathlib import Path

import pytest
from git import Repo


class RepoBuilder:
    """Creates commits in a throwaway repository."""

    def __init__(self, path: Path):
        self.path = path
        self.repo = Repo.init(path)
        with self.repo.config_writer() as config:
            config.set_value("user", "name", "Test User")
            config.set_value("user", "email", "test@example.com")
            config.set_value("commit", "gpgsign", "false")

    def commit(self, message, files=None, removed=(), renamed=()):
        """Write files, apply removals and renames, then commit everything."""
        for old, new in renamed:
            target = self.path / new
            target.parent.mkdir(parents=True, exist_ok=True)
            (self.path / old).rename(target)
        for name in removed:
            (self.path / name).unlink()
        for name, content in (files or {}).items():
            file_path = self.path / name
            file_path.parent.mkdir(parents=True, exist_ok=True)
            if isinstance(content, bytes):
                file_path.write_bytes(content)
            else:
                file_path.write_text(content)
        self.repo.git.add("-A")
        self.repo.git.commit("-m", message, "--allow-empty")
        return self.repo.head.commit

    def head_files(self):
        """Text files at HEAD, keyed by path."""
        return {
            item.path: item.data_stream.read().decode("utf-8")
            for item in self.repo.head.commit.tree.traverse()
            if item.type == "blob"
        }


@pytest.fixture
def repo_builder(tmp_path):
    """A fresh git repository with a configured committer."""
    return RepoBuilder(tmp_path / "repo")

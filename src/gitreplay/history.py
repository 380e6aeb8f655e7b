"""Commit and patch sources for the replay engine.

GitHistory reads a git repository with GitPython. PatchFiles reads a
directory of `git format-patch` files. Both hand the engine a list of
commits in replay order plus a raw_patch callable, so the engine itself
never talks to git.
"""

from __future__ import annotations

import logging
from pathlib import Path

from git import Repo
from git.exc import BadName, GitCommandError, InvalidGitRepositoryError, NoSuchPathError

from gitreplay.core import Commit
from gitreplay.diff_parser import parse_patch
from gitreplay.errors import HistoryError

logger = logging.getLogger(__name__)

# Keep output stable regardless of the user's diff configuration
PATCH_ARGS = ("-M", "--no-color", "--src-prefix=a/", "--dst-prefix=b/")

# Bytes inspected when deciding whether a blob is binary
BINARY_SNIFF_BYTES = 8000

# GitPython decodes command output with surrogateescape; blobs must match
TEXT_ERRORS = "surrogateescape"


def is_binary(data: bytes) -> bool:
    return b"\0" in data[:BINARY_SNIFF_BYTES]


def _text(value: str | bytes) -> str:
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    return value


class GitHistory:
    """Commits and per-commit patches from a git repository."""

    def __init__(self, repo_path: Path | str):
        try:
            self.repo = Repo(repo_path)
        except (InvalidGitRepositoryError, NoSuchPathError) as e:
            raise HistoryError(f"Not a git repository: {repo_path}") from e
        self.repo_path = Path(repo_path)
        self._ranges: dict[str, tuple[str, str]] = {}

    def commits(
        self,
        rev_range: str | None = None,
        max_count: int | None = None,
    ) -> list[Commit]:
        """List non-merge commits, oldest first.

        Args:
            rev_range: Revision or range such as "v1.0..main". Defaults to HEAD.
            max_count: Only take the most recent N commits of the range.

        Returns:
            Commits numbered by their position in replay order.
        """
        kwargs: dict[str, object] = {"no_merges": True}
        if max_count:
            kwargs["max_count"] = max_count

        try:
            source = list(self.repo.iter_commits(rev_range, **kwargs))
        except ValueError:
            # Empty repository has no commits
            return []
        except GitCommandError as e:
            raise HistoryError(f"Cannot list commits for {rev_range or 'HEAD'}: {e}") from e

        # git log is newest first
        source.reverse()

        commits = [
            Commit(
                sha=commit.hexsha,
                author=commit.author.name,
                message=_text(commit.summary),
                position=position,
                author_email=commit.author.email or "",
                timestamp=commit.committed_datetime.isoformat(),
            )
            for position, commit in enumerate(source)
        ]
        logger.info("Found %d commit(s) to replay", len(commits))
        return commits

    def squashed(self, base: str, head: str) -> Commit:
        """A single synthetic commit covering every change from base to head."""
        try:
            head_commit = self.repo.commit(head)
            self.repo.commit(base)
        except (BadName, ValueError) as e:
            raise HistoryError(f"Unknown revision in {base}..{head}") from e

        sha = f"{base}..{head}"
        self._ranges[sha] = (base, head)
        return Commit(
            sha=sha,
            author=head_commit.author.name,
            message=f"Changes from {base} to {head}",
            author_email=head_commit.author.email or "",
            timestamp=head_commit.committed_datetime.isoformat(),
        )

    def raw_patch(self, commit: Commit) -> str:
        """Return the unified diff for one commit (or a squashed range)."""
        if commit.sha in self._ranges:
            base, head = self._ranges[commit.sha]
            return self.diff_between(base, head)

        try:
            return self.repo.git.format_patch("--stdout", "-1", *PATCH_ARGS, commit.sha)
        except GitCommandError as e:
            raise HistoryError(f"Cannot read patch for {commit.short_sha}: {e}") from e

    def diff_between(self, base: str, head: str) -> str:
        """Return the unified diff between two revisions."""
        try:
            return self.repo.git.diff(*PATCH_ARGS, base, head)
        except GitCommandError as e:
            raise HistoryError(f"Cannot diff {base}..{head}: {e}") from e

    def starting_files(self, commit: Commit) -> dict[str, str]:
        """Text files that exist just before commit is applied.

        Used to seed the virtual store when a replay does not begin at
        the root commit. Binary files are left out.
        """
        if commit.sha in self._ranges:
            tree = self.repo.commit(self._ranges[commit.sha][0]).tree
        else:
            source_commit = self.repo.commit(commit.sha)
            if not source_commit.parents:
                return {}
            tree = source_commit.parents[0].tree

        files: dict[str, str] = {}
        for item in tree.traverse():
            if item.type != "blob":
                continue
            data = item.data_stream.read()
            if is_binary(data):
                logger.debug("Not seeding binary file %s", item.path)
                continue
            files[item.path] = data.decode("utf-8", errors=TEXT_ERRORS)
        return files

    def read_file(self, path: str, rev: str = "HEAD") -> str | None:
        """Read a text file from a revision, or None if it does not exist."""
        try:
            blob = self.repo.commit(rev).tree / path
        except (KeyError, BadName, ValueError):
            return None
        return blob.data_stream.read().decode("utf-8", errors=TEXT_ERRORS)


class PatchFiles:
    """Commits read from `git format-patch` files, replayed in file-name order."""

    def __init__(self, paths: list[Path]):
        self.paths = sorted(paths)
        self._texts: dict[int, str] = {}

    @classmethod
    def from_directory(cls, directory: Path) -> PatchFiles:
        return cls(list(directory.glob("*.patch")))

    def commits(self) -> list[Commit]:
        commits = []
        for position, path in enumerate(self.paths):
            text = path.read_text(encoding="utf-8", errors=TEXT_ERRORS)
            self._texts[position] = text
            header = parse_patch(text)
            commits.append(
                Commit(
                    sha=header.sha or path.stem,
                    author=header.author or "unknown",
                    message=header.subject or path.stem,
                    position=position,
                    author_email=header.author_email or "",
                    timestamp=header.date or "",
                )
            )
        return commits

    def raw_patch(self, commit: Commit) -> str:
        if commit.position not in self._texts:
            path = self.paths[commit.position]
            self._texts[commit.position] = path.read_text(encoding="utf-8", errors=TEXT_ERRORS)
        return self._texts[commit.position]

"""Tests for the top-level gitreplay API."""

import threading

import pytest

from gitreplay import (
    Insert,
    ListSink,
    ReplayConfig,
    replay_patch_files,
    replay_repository,
)
from gitreplay.history import PatchFiles

LONG_TEXT = "".join(f"line {i}\n" for i in range(1, 21))


@pytest.fixture
def history(repo_builder):
    """A repository exercising edits, renames and deletes."""
    builder = repo_builder
    builder.commit(
        "Initial files",
        {
            "notes.txt": LONG_TEXT,
            "app.py": "def main():\n    return 1\n",
        },
    )
    builder.commit(
        "Edit in several places",
        {
            "notes.txt": LONG_TEXT.replace("line 2\n", "")
            .replace("line 10\n", "line ten\nline ten and a half\n")
            .replace("line 19\n", ""),
            "app.py": "import sys\n\n\ndef main():\n    return sys.argv\n",
        },
    )
    builder.commit(
        "Move notes, drop app",
        {"docs/readme.md": "# Title\n\n  indented text\n"},
        removed=["app.py"],
        renamed=[("notes.txt", "docs/notes.txt")],
    )
    builder.commit(
        "Touch moved notes",
        {"docs/notes.txt": (builder.path / "docs/notes.txt").read_text() + "tail\n"},
    )
    return builder


def replayed_files(session):
    return {path: session.store.read(path) + "\n" for path in session.store.paths()}


class TestReplayRepository:
    """End-to-end replays of real repositories."""

    def test_full_history_reproduces_head(self, history):
        """Replaying every commit ends at the HEAD tree."""
        session = replay_repository(history.path)

        assert session.commits_replayed == 4
        assert replayed_files(session) == history.head_files()

    def test_commit_log(self, history):
        """The commit log has one entry per commit."""
        session = replay_repository(history.path)
        assert session.commit_log == [
            "Test User: Initial files",
            "Test User: Edit in several places",
            "Test User: Move notes, drop app",
            "Test User: Touch moved notes",
        ]

    def test_partial_range_is_seeded(self, history):
        """A range that skips the root starts from the parent tree."""
        first = history.repo.git.rev_list("--max-parents=0", "HEAD")
        session = replay_repository(history.path, rev_range=f"{first}..HEAD")

        assert session.commits_replayed == 3
        assert replayed_files(session) == history.head_files()

    def test_max_count(self, history):
        """Only the newest commits are replayed, on top of their parent."""
        session = replay_repository(history.path, max_count=1)
        assert session.commits_replayed == 1
        assert replayed_files(session) == history.head_files()

    def test_squash(self, history):
        """A squashed range ends at the same tree."""
        first = history.repo.git.rev_list("--max-parents=0", "HEAD")
        session = replay_repository(history.path, rev_range=f"{first}..HEAD", squash=True)

        assert session.commits_replayed == 1
        assert replayed_files(session) == history.head_files()

    def test_squash_needs_range(self, history):
        """Squashing without base..head is refused."""
        with pytest.raises(ValueError):
            replay_repository(history.path, squash=True)

    def test_chunked_inserts(self, history):
        """Chunking changes the operation stream, not the result."""
        sink = ListSink()
        session = replay_repository(history.path, config=ReplayConfig(chunk_size=2), sink=sink)

        assert replayed_files(session) == history.head_files()
        inserts = [op for op in sink.operations if isinstance(op, Insert)]
        assert all(len(op.text) <= 2 for op in inserts if op.column > 0)

    def test_ignore_rules(self, history):
        """Ignored files never reach the store."""
        session = replay_repository(history.path, config=ReplayConfig(ignore_text="*.md\n"))
        assert "docs/readme.md" not in session.store
        assert session.files_suppressed == 1

    def test_output_dir(self, history, tmp_path):
        """Files on disk match HEAD after a replay."""
        out = tmp_path / "out"
        replay_repository(history.path, config=ReplayConfig(output_dir=out))

        written = {
            str(p.relative_to(out)).replace("\\", "/"): p.read_text()
            for p in out.rglob("*")
            if p.is_file()
        }
        assert written == history.head_files()

    def test_cancel_event(self, history):
        """A preset cancel event stops the replay immediately."""
        event = threading.Event()
        event.set()
        session = replay_repository(history.path, cancel_event=event)
        assert session.cancelled
        assert session.commits_replayed == 0

    def test_default_sink_is_closed(self, history):
        """Passing a sink collects every operation."""
        sink = ListSink()
        session = replay_repository(history.path, sink=sink)
        assert sink.closed
        assert len(sink.operations) == session.operations_emitted


class TestReplayPatchFiles:
    """Replays of format-patch series."""

    def test_patch_series_reproduces_head(self, history, tmp_path):
        """A full patch series ends at the HEAD tree."""
        out = tmp_path / "patches"
        history.repo.git.format_patch("--root", "HEAD", "-o", str(out))

        session = replay_patch_files(PatchFiles.from_directory(out).paths)

        assert session.commits_replayed == 4
        assert replayed_files(session) == history.head_files()


class TestUndecodableContent:
    """Replays of files that are not valid UTF-8."""

    @pytest.fixture
    def latin1(self, repo_builder):
        repo_builder.commit("Add latin-1 file", {"l.txt": "café\nx\n".encode("latin-1")})
        repo_builder.commit("Edit the accented line", {"l.txt": "café!\nx\n".encode("latin-1")})
        return repo_builder

    def test_seeded_deletion_verifies(self, latin1):
        """A seeded line with undecodable bytes matches the patch's deletion."""
        session = replay_repository(latin1.path, max_count=1)
        assert session.commits_replayed == 1
        assert session.store.lines("l.txt") == ["caf\udce9!", "x"]

    def test_output_dir_keeps_bytes(self, latin1, tmp_path):
        """Files on disk hold the original bytes."""
        out = tmp_path / "out"
        replay_repository(latin1.path, config=ReplayConfig(output_dir=out))
        assert (out / "l.txt").read_bytes() == "café!\nx\n".encode("latin-1")

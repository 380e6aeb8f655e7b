"""gitreplay - Replay git history as fine-grained text edits."""

from __future__ import annotations

import logging
import threading
from pathlib import Path

from gitreplay.compactor import compact_edits
from gitreplay.core import (
    AppendLog,
    BeginCommit,
    Commit,
    CommitPatch,
    CreateFile,
    DeletedRange,
    DeleteFile,
    DeleteRange,
    EditKind,
    EndCommit,
    FileChange,
    Insert,
    LineEdit,
    Operation,
    RenamePath,
    SaveFile,
)
from gitreplay.diff_parser import parse_patch
from gitreplay.errors import DesyncError, HistoryError, MalformedPatch, PathConflict, ReplayError
from gitreplay.history import GitHistory, PatchFiles
from gitreplay.replay import ReplayConfig, Replayer, ReplaySession
from gitreplay.sinks import ListSink, OperationSink
from gitreplay.store import VirtualFileStore

__version__ = "0.1.0"

logger = logging.getLogger(__name__)

__all__ = [
    # Core types
    "Commit",
    "CommitPatch",
    "FileChange",
    "LineEdit",
    "EditKind",
    "DeletedRange",
    # Operations
    "Operation",
    "BeginCommit",
    "EndCommit",
    "CreateFile",
    "DeleteFile",
    "RenamePath",
    "SaveFile",
    "Insert",
    "DeleteRange",
    "AppendLog",
    # Errors
    "ReplayError",
    "MalformedPatch",
    "DesyncError",
    "PathConflict",
    "HistoryError",
    # Engine
    "parse_patch",
    "compact_edits",
    "VirtualFileStore",
    "ReplayConfig",
    "ReplaySession",
    "Replayer",
    "GitHistory",
    "PatchFiles",
    "ListSink",
    "OperationSink",
    # Main functions
    "replay_repository",
    "replay_patch_files",
]


def replay_repository(
    repo_path: Path | str,
    rev_range: str | None = None,
    max_count: int | None = None,
    config: ReplayConfig | None = None,
    sink: OperationSink | None = None,
    squash: bool = False,
    cancel_event: threading.Event | None = None,
) -> ReplaySession:
    """Replay the history of a git repository into a sink.

    When the first replayed commit has a parent, the store is seeded with
    the parent's text files so edits land on the content they expect.

    Args:
        repo_path: Path to the git repository.
        rev_range: Revision or range to replay (e.g. "v1.0..main"). Defaults to HEAD.
        max_count: Only replay the most recent N commits of the range.
        config: Replay settings.
        sink: Receives every operation. Defaults to an in-memory ListSink.
        squash: Replay rev_range ("base..head") as one combined change.
        cancel_event: Set it to stop the replay at the next operation boundary.

    Returns:
        The finished ReplaySession.

    Raises:
        HistoryError: If the repository or revisions cannot be read.
        MalformedPatch, DesyncError, PathConflict: On fatal replay conditions.
    """
    history = GitHistory(repo_path)

    if squash:
        if not rev_range or ".." not in rev_range:
            raise ValueError("squash needs a range of the form base..head")
        base, head = rev_range.split("..", 1)
        commits = [history.squashed(base, head or "HEAD")]
    else:
        commits = history.commits(rev_range, max_count=max_count)

    session = ReplaySession(config, cancel_event=cancel_event)
    if commits:
        starting_files = history.starting_files(commits[0])
        for path, content in starting_files.items():
            session.store.seed(path, content)
            session.store.save(path)
        if starting_files:
            logger.info("Seeded %d file(s) from the parent of the first commit", len(starting_files))

    replayer = Replayer(commits, history.raw_patch, session)
    return replayer.run(sink if sink is not None else ListSink())


def replay_patch_files(
    paths: list[Path],
    config: ReplayConfig | None = None,
    sink: OperationSink | None = None,
) -> ReplaySession:
    """Replay a series of `git format-patch` files in file-name order.

    Args:
        paths: Patch files, typically 0001-*.patch, 0002-*.patch, ...
        config: Replay settings.
        sink: Receives every operation. Defaults to an in-memory ListSink.

    Returns:
        The finished ReplaySession.
    """
    source = PatchFiles(paths)
    replayer = Replayer(source.commits(), source.raw_patch, ReplaySession(config))
    return replayer.run(sink if sink is not None else ListSink())

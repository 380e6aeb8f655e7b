"""Replay commits as an ordered stream of fine-grained edit operations."""

from __future__ import annotations

import logging
import re
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Callable, Iterable, Iterator, Optional

from gitreplay.compactor import compact_edits
from gitreplay.core import (
    AppendLog,
    BeginCommit,
    Commit,
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
from gitreplay.errors import DesyncError, PathConflict
from gitreplay.ignore import IgnoreFilter, IgnoreRules
from gitreplay.positions import LINE_NUMBER_OFFSET, DriftTracker
from gitreplay.store import VirtualFileStore

if TYPE_CHECKING:
    from gitreplay.sinks import OperationSink

logger = logging.getLogger(__name__)

LEADING_WHITESPACE_PATTERN = re.compile(r"^(\s*)(.*)$", re.DOTALL)
WHITESPACE_PATTERN = re.compile(r"\s+")


def squash_whitespace(text: str) -> str:
    """Drop every whitespace character, for desync comparisons."""
    return WHITESPACE_PATTERN.sub("", text)


@dataclass
class ReplayConfig:
    """Settings for a replay run."""

    chunk_size: Optional[int] = None  # characters per Insert, None for whole lines
    ignore_text: str = ""
    verify_deletions: bool = True
    output_dir: Optional[Path] = None


class ReplaySession:
    """State owned by one replay run.

    Holds the virtual file store, the ignore filter with its per-commit
    suppression set, the running commit log and progress counters. Every
    emitted operation is applied here before the consumer sees it, so the
    store always matches what has been delivered.
    """

    def __init__(
        self,
        config: ReplayConfig | None = None,
        store: VirtualFileStore | None = None,
        cancel_event: threading.Event | None = None,
    ):
        self.config = config or ReplayConfig()
        if self.config.chunk_size is not None and self.config.chunk_size < 1:
            raise ValueError("chunk_size must be a positive number of characters")
        self.store = store or VirtualFileStore(root=self.config.output_dir)
        self.ignore = IgnoreFilter(IgnoreRules.from_text(self.config.ignore_text))
        self.commit_log: list[str] = []
        self.commit_log_saved = False
        self.cancelled = False
        self._cancel_event = cancel_event or threading.Event()

        self.commits_replayed = 0
        self.files_replayed = 0
        self.files_suppressed = 0
        self.operations_emitted = 0

    def cancel(self) -> None:
        """Ask the replay to stop at the next operation boundary."""
        self._cancel_event.set()

    @property
    def cancel_requested(self) -> bool:
        return self._cancel_event.is_set()

    @property
    def log_text(self) -> str:
        return "\n".join(self.commit_log)

    def apply(self, operation: Operation) -> None:
        """Apply one operation to the store and bookkeeping."""
        store = self.store
        if isinstance(operation, Insert):
            store.apply_insertion(operation.path, operation.line, operation.text, operation.column)
        elif isinstance(operation, DeleteRange):
            store.apply_deletion(operation.path, operation.start, operation.end)
        elif isinstance(operation, CreateFile):
            store.ensure(operation.path)
        elif isinstance(operation, RenamePath):
            store.rename(operation.source, operation.target)
        elif isinstance(operation, DeleteFile):
            store.delete(operation.path)
        elif isinstance(operation, SaveFile):
            store.save(operation.path)
        elif isinstance(operation, AppendLog):
            self.commit_log.append(operation.text)
            self.commit_log_saved = False
        elif isinstance(operation, BeginCommit):
            pass
        elif isinstance(operation, EndCommit):
            self.commit_log_saved = True
            self.commits_replayed += 1
        else:
            raise TypeError(f"Unknown operation: {operation!r}")
        self.operations_emitted += 1


class Replayer:
    """Drives commits through parsing, filtering, compaction and drift correction.

    Args:
        commits: Commits in replay order (oldest first).
        raw_patch: Returns the unified diff text for one commit.
        session: Replay state. A fresh session is created if omitted.
    """

    def __init__(
        self,
        commits: Iterable[Commit],
        raw_patch: Callable[[Commit], str],
        session: ReplaySession | None = None,
    ):
        self.commits = commits
        self.raw_patch = raw_patch
        self.session = session or ReplaySession()

    def operations(self) -> Iterator[Operation]:
        """Yield every operation of the replay in order.

        Each yield is a suspension point. Cancellation is honored only
        between operations; nothing already applied is rolled back.

        Raises:
            MalformedPatch: If a commit's patch cannot be parsed.
            DesyncError: If buffer content does not match a deletion.
            PathConflict: If a rename target is already tracked.
        """
        session = self.session
        for commit in self.commits:
            if session.cancel_requested:
                self._mark_cancelled(commit)
                return
            for operation in self._commit_operations(commit):
                session.apply(operation)
                yield operation
                if session.cancel_requested:
                    self._mark_cancelled(commit)
                    return

    def run(self, sink: OperationSink) -> ReplaySession:
        """Feed every operation into a sink, then close it."""
        try:
            for operation in self.operations():
                sink.handle(operation)
        finally:
            sink.close()
        return self.session

    def _mark_cancelled(self, commit: Commit) -> None:
        self.session.cancelled = True
        logger.info("Replay cancelled at commit %s", commit.short_sha)

    def _commit_operations(self, commit: Commit) -> Iterator[Operation]:
        session = self.session
        logger.info("Replaying commit %s (%d): %s", commit.short_sha, commit.position, commit.message)

        yield BeginCommit(commit)

        patch = parse_patch(self.raw_patch(commit))
        logger.debug("Commit %s touches %d file(s)", commit.short_sha, len(patch.files))

        session.ignore.begin_commit()
        for change in patch.files:
            if session.ignore.is_suppressed(change):
                session.files_suppressed += 1
                continue
            yield from self._file_operations(commit, change)
            session.files_replayed += 1

        yield AppendLog(commit.log_entry)
        yield EndCommit(commit)

    def _file_operations(self, commit: Commit, change: FileChange) -> Iterator[Operation]:
        store = self.session.store
        source = change.source_path

        if not store.exists(source):
            yield CreateFile(source)

        if change.deleted:
            yield SaveFile(source)
            yield DeleteFile(source)
            return

        path = source
        if change.copied:
            path = change.after_name
            yield from self._copy(source, path)
        elif change.is_rename:
            yield RenamePath(source, change.after_name)
            path = change.after_name

        if change.binary:
            logger.warning("Skipping content of binary file %s", path)

        drift = DriftTracker()
        for item in compact_edits(change.edits):
            if isinstance(item, DeletedRange):
                yield self._deletion(commit, path, item, drift)
            elif isinstance(item, LineEdit):
                yield from self._insertions(path, item, drift)
            else:
                raise TypeError(f"Unexpected compacted item: {item!r}")

        logger.debug(
            "%s: +%d -%d", path, drift.lines_added, drift.lines_deleted
        )
        yield SaveFile(path)

    def _copy(self, source: str, target: str) -> Iterator[Operation]:
        """Create target and type the current lines of source into it."""
        store = self.session.store
        if store.exists(target):
            raise PathConflict(source, target)

        lines = store.lines(source)
        yield CreateFile(target)
        drift = DriftTracker()
        for number, line in enumerate(lines, LINE_NUMBER_OFFSET):
            yield from self._insertions(target, LineEdit(EditKind.ADDED, number, line), drift)
        logger.debug("Copied %s -> %s (%d lines)", source, target, len(lines))

    def _deletion(
        self, commit: Commit, path: str, deleted: DeletedRange, drift: DriftTracker
    ) -> DeleteRange:
        start, end = drift.resolve_deletion(deleted)
        expected = deleted.content

        if self.session.config.verify_deletions:
            actual = self.session.store.read_range(path, start, end)
            if squash_whitespace(actual) != squash_whitespace(expected):
                logger.debug("Desync in %s at %d-%d", path, start, end)
                raise DesyncError(path, start, end, expected, actual, commit.sha)

        return DeleteRange(path, start, end, expected)

    def _insertions(self, path: str, edit: LineEdit, drift: DriftTracker) -> Iterator[Insert]:
        line = drift.resolve_insertion(edit)
        leading, rest = LEADING_WHITESPACE_PATTERN.match(edit.line).groups()

        column = 0
        if leading:
            yield Insert(path, line, 0, leading)
            column = len(leading)
        elif not rest:
            yield Insert(path, line, 0, "")
            return

        for chunk in self._chunks(rest):
            yield Insert(path, line, column, chunk)
            column += len(chunk)

    def _chunks(self, text: str) -> list[str]:
        size = self.session.config.chunk_size
        if not text:
            return []
        if size is None:
            return [text]
        return [text[i:i + size] for i in range(0, len(text), size)]

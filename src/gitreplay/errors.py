"""Exceptions raised by the replay engine."""

from __future__ import annotations

from typing import Optional


class ReplayError(Exception):
    """Base class for fatal replay conditions."""

    pass


class MalformedPatch(ReplayError):
    """Patch text does not follow the unified diff grammar."""

    def __init__(
        self,
        message: str,
        line_number: Optional[int] = None,
        line: Optional[str] = None,
    ):
        self.line_number = line_number
        self.line = line
        if line_number is not None:
            message = f"{message} (patch line {line_number}: {line!r})"
        super().__init__(message)


class DesyncError(ReplayError):
    """Buffer content no longer matches what the patch expects to remove.

    Raised before a deletion is applied. The replay has fallen out of sync
    with the real history and cannot continue.
    """

    def __init__(
        self,
        path: str,
        start: int,
        end: int,
        expected: str,
        actual: str,
        commit: Optional[str] = None,
    ):
        self.path = path
        self.start = start
        self.end = end
        self.expected = expected
        self.actual = actual
        self.commit = commit
        where = f"{path}:{start}-{end}"
        if commit:
            where = f"{where} in commit {commit[:12]}"
        super().__init__(
            f"Buffer out of sync at {where}\n"
            f"expected:\n{expected}\n"
            f"actual:\n{actual}"
        )


class PathConflict(ReplayError):
    """A rename target is already tracked as a different file."""

    def __init__(self, source: str, target: str):
        self.source = source
        self.target = target
        super().__init__(f"Cannot rename {source} to {target}: target already exists")


class HistoryError(ReplayError):
    """Reading commits or patches from the repository failed."""

    pass

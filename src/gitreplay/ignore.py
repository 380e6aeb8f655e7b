"""Ignore-rule matching and per-commit suppression of file changes.

Rules use gitignore syntax (via the pathspec library):
- Comments (# ...) and blank lines
- Directory rules (build/) which also cover everything below them
- Negation (!keep.log)
- Anchored rules (/only-at-root) and globs (*, ?, **)

Suppression spreads across renames within a commit: once either name of
a change is suppressed, any later change touching one of its names is
suppressed as well.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable

import pathspec

from gitreplay.core import FileChange

logger = logging.getLogger(__name__)


class IgnoreRules:
    """A compiled set of gitignore-style rules."""

    def __init__(self, patterns: Iterable[str] = ()):
        self.patterns = [p.rstrip("\r") for p in patterns]
        self._spec = pathspec.GitIgnoreSpec.from_lines(self.patterns)

    @classmethod
    def from_text(cls, text: str | None) -> IgnoreRules:
        """Compile rules from a newline-separated blob."""
        return cls((text or "").splitlines())

    @classmethod
    def from_file(cls, path: Path) -> IgnoreRules:
        """Compile rules from an ignore file. Missing files give no rules."""
        if not path.exists():
            return cls()
        return cls.from_text(path.read_text())

    def __bool__(self) -> bool:
        return any(p.strip() and not p.lstrip().startswith("#") for p in self.patterns)

    def matches(self, path: str) -> bool:
        """Return True if the path is denied by the rules."""
        if not path:
            return False
        return self._spec.match_file(path)


class IgnoreFilter:
    """Decides which file changes of a commit are skipped."""

    def __init__(self, rules: IgnoreRules | None = None):
        self.rules = rules or IgnoreRules()
        self.suppressed: set[str] = set()

    def begin_commit(self) -> None:
        """Forget suppressions carried by the previous commit."""
        self.suppressed.clear()

    def is_suppressed(self, change: FileChange) -> bool:
        """Check a change and record its names if it is suppressed."""
        names = [n for n in (change.before_name, change.after_name) if n]

        suppressed = self.rules.matches(change.source_path) or any(
            name in self.suppressed for name in names
        )
        if suppressed:
            self.suppressed.update(names)
            logger.debug("Suppressed %s", " -> ".join(names))
        return suppressed

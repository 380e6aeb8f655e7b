"""Virtual file store for replayed buffers."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from gitreplay.errors import DesyncError, PathConflict

logger = logging.getLogger(__name__)


@dataclass
class FileEntry:
    """A tracked buffer."""

    path: str
    lines: list[str] = field(default_factory=list)
    open: bool = True

    @property
    def content(self) -> str:
        return "\n".join(self.lines)


class VirtualFileStore:
    """Path -> buffer mapping that the replay driver mutates in order.

    When root is given, every entry is mirrored to a file below root on
    creation, rename, deletion and save.
    """

    def __init__(self, root: Path | None = None):
        self.root = root
        self.entries: dict[str, FileEntry] = {}

    def __contains__(self, path: str) -> bool:
        return path in self.entries

    def __len__(self) -> int:
        return len(self.entries)

    def exists(self, path: str) -> bool:
        return path in self.entries

    def paths(self) -> list[str]:
        return sorted(self.entries)

    def _entry(self, path: str) -> FileEntry:
        try:
            return self.entries[path]
        except KeyError:
            raise KeyError(f"Path is not tracked: {path}") from None

    def _backing_path(self, path: str) -> Path | None:
        if self.root is None:
            return None
        full_path = (self.root / path).resolve()
        root = self.root.resolve()
        if root not in full_path.parents:
            raise ValueError(f"Path escapes the output directory: {path}")
        return full_path

    def ensure(self, path: str) -> bool:
        """Start tracking an empty buffer for path if it is unknown.

        Returns:
            True if a new entry was created.
        """
        if path in self.entries:
            self.entries[path].open = True
            return False

        full_path = self._backing_path(path)
        self.entries[path] = FileEntry(path=path)
        if full_path is not None:
            full_path.parent.mkdir(parents=True, exist_ok=True)
            full_path.write_text("", encoding="utf-8")
        logger.debug("Tracking %s", path)
        return True

    def seed(self, path: str, content: str) -> None:
        """Track path with known content.

        A single trailing newline ends the last line rather than opening
        an empty one, matching how diffs count lines.
        """
        self.ensure(path)
        lines = content.split("\n") if content else []
        if lines and lines[-1] == "":
            lines.pop()
        self.entries[path].lines = lines

    def rename(self, source: str, target: str) -> None:
        """Move a buffer to a new path, keeping its content.

        Raises:
            PathConflict: If target is already tracked as another file.
        """
        if source == target:
            return
        if target in self.entries:
            raise PathConflict(source, target)

        entry = self.entries.pop(source, None) or FileEntry(path=source)
        entry.path = target
        self.entries[target] = entry

        source_path = self._backing_path(source)
        target_path = self._backing_path(target)
        if source_path is not None and target_path is not None:
            target_path.parent.mkdir(parents=True, exist_ok=True)
            if source_path.exists():
                source_path.rename(target_path)
            else:
                target_path.write_text(entry.content, encoding="utf-8", errors="surrogateescape")
        logger.debug("Renamed %s -> %s", source, target)

    def delete(self, path: str) -> bool:
        """Stop tracking path and remove its backing file.

        Deleting an unknown path is a no-op.

        Returns:
            True if an entry was removed.
        """
        entry = self.entries.pop(path, None)
        full_path = self._backing_path(path)
        if full_path is not None:
            full_path.unlink(missing_ok=True)
        if entry is None:
            return False
        logger.debug("Deleted %s", path)
        return True

    def apply_insertion(self, path: str, line_number: int, text: str, column: int = 0) -> None:
        """Insert text into a buffer.

        With column 0 a new line holding text is opened before line_number.
        Otherwise text is spliced into the existing line at column.
        """
        lines = self._entry(path).lines

        if column == 0:
            if not 0 <= line_number <= len(lines):
                raise DesyncError(
                    path, line_number, line_number,
                    expected=f"insertion point within 0-{len(lines)}",
                    actual=f"line {line_number}",
                )
            lines.insert(line_number, text)
            return

        if not 0 <= line_number < len(lines) or column > len(lines[line_number]):
            raise DesyncError(
                path, line_number, line_number,
                expected=f"column {column} on an existing line",
                actual=f"{len(lines)} line(s)",
            )
        current = lines[line_number]
        lines[line_number] = current[:column] + text + current[column:]

    def apply_deletion(self, path: str, start: int, end: int) -> None:
        """Remove lines start..end (0-based, inclusive)."""
        lines = self._entry(path).lines
        if start < 0 or end < start or end >= len(lines):
            raise DesyncError(
                path, start, end,
                expected=f"lines {start}-{end}",
                actual=f"{len(lines)} line(s)",
            )
        del lines[start:end + 1]

    def read(self, path: str) -> str:
        """Return the buffer content with lines joined by newlines."""
        return self._entry(path).content

    def lines(self, path: str) -> list[str]:
        return list(self._entry(path).lines)

    def line_count(self, path: str) -> int:
        return len(self._entry(path).lines)

    def read_range(self, path: str, start: int, end: int) -> str:
        """Return lines start..end (0-based, inclusive), clipped to the buffer."""
        lines = self._entry(path).lines
        return "\n".join(lines[max(start, 0):end + 1])

    def save(self, path: str) -> None:
        """Mark a buffer saved and closed, writing it to disk when backed."""
        entry = self._entry(path)
        entry.open = False
        full_path = self._backing_path(path)
        if full_path is not None:
            full_path.parent.mkdir(parents=True, exist_ok=True)
            text = entry.content + "\n" if entry.lines else ""
            # Undecodable bytes from git come back as they were
            full_path.write_text(text, encoding="utf-8", errors="surrogateescape")

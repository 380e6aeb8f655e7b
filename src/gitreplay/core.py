"""Core dataclasses for gitreplay.

The parsed form of a patch (CommitPatch -> FileChange -> LineEdit), the
compacted deletion ranges derived from it, and the operation stream the
replay driver emits for consumers.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, ClassVar, Optional, Union


class EditKind(str, Enum):
    """Direction of a single line edit."""

    ADDED = "added"
    REMOVED = "removed"


@dataclass(frozen=True)
class Commit:
    """A commit to replay, in oldest-first order."""

    sha: str
    author: str
    message: str
    position: int = 0
    author_email: str = ""
    timestamp: str = ""

    @property
    def short_sha(self) -> str:
        """First 8 characters of the sha for display."""
        return self.sha[:8]

    @property
    def log_entry(self) -> str:
        """Line appended to the running commit log."""
        return f"{self.author}: {self.message}"


@dataclass(frozen=True)
class LineEdit:
    """One added or removed line from a hunk.

    line_number is 1-based: target-side numbering for added lines,
    source-side numbering for removed lines.
    """

    kind: EditKind
    line_number: int
    line: str

    @property
    def added(self) -> bool:
        return self.kind == EditKind.ADDED

    @property
    def removed(self) -> bool:
        return self.kind == EditKind.REMOVED


@dataclass(frozen=True)
class DeletedRange:
    """A maximal run of contiguous removed lines (inclusive, 1-based)."""

    start: int
    end: int
    lines: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if self.start > self.end:
            raise ValueError(f"Invalid range {self.start}-{self.end}")

    @property
    def count(self) -> int:
        return self.end - self.start + 1

    @property
    def content(self) -> str:
        """The removed lines joined with newlines."""
        return "\n".join(self.lines)


# What the compactor yields: a deletion group or a pass-through addition
CompactedEdit = Union[DeletedRange, LineEdit]


@dataclass
class FileChange:
    """Changes to one file within a commit."""

    before_name: Optional[str] = None  # None for newly created files
    after_name: Optional[str] = None  # None for deleted files
    deleted: bool = False
    created: bool = False
    binary: bool = False
    copied: bool = False  # after_name is a new copy, before_name stays
    edits: list[LineEdit] = field(default_factory=list)

    @property
    def is_rename(self) -> bool:
        return (
            not self.copied
            and self.before_name is not None
            and self.after_name is not None
            and self.before_name != self.after_name
        )

    @property
    def path(self) -> str:
        """The name the file lives under once the change is applied."""
        return self.after_name or self.before_name or ""

    @property
    def source_path(self) -> str:
        """The name the file is known by before the change."""
        return self.before_name or self.after_name or ""

    @property
    def lines_added(self) -> int:
        return sum(1 for edit in self.edits if edit.added)

    @property
    def lines_removed(self) -> int:
        return sum(1 for edit in self.edits if edit.removed)


@dataclass
class CommitPatch:
    """A parsed patch for a single commit.

    Header fields are only populated for `git format-patch` output.
    """

    files: list[FileChange] = field(default_factory=list)

    sha: Optional[str] = None
    author: Optional[str] = None
    author_email: Optional[str] = None
    date: Optional[str] = None
    subject: Optional[str] = None
    message: Optional[str] = None

    @property
    def paths(self) -> list[str]:
        return [change.path for change in self.files]


@dataclass(frozen=True)
class Operation:
    """Base for everything the replay driver emits."""

    kind: ClassVar[str] = "operation"

    def to_dict(self) -> dict[str, Any]:
        """Serializable form used by sinks."""
        return {"op": self.kind, **asdict(self)}


@dataclass(frozen=True)
class BeginCommit(Operation):
    kind: ClassVar[str] = "begin_commit"

    commit: Commit


@dataclass(frozen=True)
class EndCommit(Operation):
    kind: ClassVar[str] = "end_commit"

    commit: Commit


@dataclass(frozen=True)
class CreateFile(Operation):
    kind: ClassVar[str] = "create_file"

    path: str


@dataclass(frozen=True)
class DeleteFile(Operation):
    kind: ClassVar[str] = "delete_file"

    path: str


@dataclass(frozen=True)
class RenamePath(Operation):
    kind: ClassVar[str] = "rename_path"

    source: str
    target: str


@dataclass(frozen=True)
class SaveFile(Operation):
    kind: ClassVar[str] = "save_file"

    path: str


@dataclass(frozen=True)
class Insert(Operation):
    """Insert text at a 0-based (line, column).

    An insert at column 0 opens a new line before `line`; later inserts
    at higher columns extend that line.
    """

    kind: ClassVar[str] = "insert"

    path: str
    line: int
    column: int
    text: str


@dataclass(frozen=True)
class DeleteRange(Operation):
    """Remove buffer lines start..end (0-based, inclusive)."""

    kind: ClassVar[str] = "delete_range"

    path: str
    start: int
    end: int
    content: str = ""


@dataclass(frozen=True)
class AppendLog(Operation):
    kind: ClassVar[str] = "append_log"

    text: str

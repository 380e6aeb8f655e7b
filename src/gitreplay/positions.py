"""Translate diff line numbers into current buffer positions."""

from __future__ import annotations

from dataclasses import dataclass

from gitreplay.core import DeletedRange, LineEdit

# Diff line numbers are 1-based, buffer lines are 0-based
LINE_NUMBER_OFFSET = 1


@dataclass
class DriftTracker:
    """Running line drift for one file change.

    Removed-line numbers in a diff refer to the pre-image, so every earlier
    edit to the same file shifts them. Added-line numbers refer to the
    post-image and already land where they belong once all earlier edits
    are in place. Create a fresh tracker for each file change.
    """

    lines_added: int = 0
    lines_deleted: int = 0

    @property
    def drift(self) -> int:
        """Lines removed so far minus lines added so far."""
        return self.lines_deleted - self.lines_added

    @property
    def net_delta(self) -> int:
        """Net change in the file's line count so far."""
        return self.lines_added - self.lines_deleted

    def resolve_deletion(self, deleted: DeletedRange) -> tuple[int, int]:
        """Return the 0-based inclusive buffer range for a deleted range."""
        start = deleted.start - LINE_NUMBER_OFFSET - self.drift
        end = deleted.end - LINE_NUMBER_OFFSET - self.drift
        self.lines_deleted += deleted.count
        return start, end

    def resolve_insertion(self, edit: LineEdit) -> int:
        """Return the 0-based buffer line an added line is inserted before."""
        line = edit.line_number - LINE_NUMBER_OFFSET
        self.lines_added += 1
        return line

"""Group contiguous removed lines into ranges."""

from __future__ import annotations

from typing import Iterable, Iterator

from gitreplay.core import CompactedEdit, DeletedRange, EditKind, LineEdit


def compact_edits(edits: Iterable[LineEdit]) -> Iterator[CompactedEdit]:
    """Merge runs of contiguous removed lines into DeletedRange items.

    Added lines pass through unchanged. A pending range is flushed when an
    added line arrives, when the next removed line is not exactly one past
    the range end, or when the input ends, so the output keeps the input's
    relative order.

    This is a generator: it can only be consumed once. Call it again on
    the original edit list to reprocess.
    """
    start = end = 0
    pending: list[str] = []

    for edit in edits:
        if edit.kind == EditKind.REMOVED:
            if pending and edit.line_number == end + 1:
                end = edit.line_number
                pending.append(edit.line)
                continue
            if pending:
                yield DeletedRange(start, end, tuple(pending))
            start = end = edit.line_number
            pending = [edit.line]
        else:
            if pending:
                yield DeletedRange(start, end, tuple(pending))
                pending = []
            yield edit

    if pending:
        yield DeletedRange(start, end, tuple(pending))


def expand_compacted(items: Iterable[CompactedEdit]) -> list[LineEdit]:
    """Flatten compacted items back into single-line edits."""
    edits: list[LineEdit] = []
    for item in items:
        if isinstance(item, DeletedRange):
            for offset, line in enumerate(item.lines):
                edits.append(LineEdit(EditKind.REMOVED, item.start + offset, line))
        elif isinstance(item, LineEdit):
            edits.append(item)
        else:
            raise TypeError(f"Unexpected compacted item: {item!r}")
    return edits

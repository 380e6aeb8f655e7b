"""Tests for gitreplay.sinks package."""

import io
import json

from rich.console import Console

from gitreplay.core import (
    AppendLog,
    BeginCommit,
    Commit,
    CreateFile,
    DeleteRange,
    EndCommit,
    Insert,
    RenamePath,
    SaveFile,
)
from gitreplay.sinks import ListSink
from gitreplay.sinks.console import ConsoleSink
from gitreplay.sinks.jsonl import JsonlSink

COMMIT = Commit(sha="0123456789abcdef", author="Ann", message="Add things")

OPERATIONS = [
    BeginCommit(COMMIT),
    CreateFile("a.txt"),
    Insert("a.txt", 0, 0, "    "),
    Insert("a.txt", 0, 4, "café"),
    Insert("a.txt", 1, 0, "x"),
    DeleteRange("a.txt", 2, 3, "old\nlines"),
    SaveFile("a.txt"),
    RenamePath("a.txt", "b.txt"),
    AppendLog("Ann: Add things"),
    EndCommit(COMMIT),
]


class TestListSink:
    """Tests for ListSink."""

    def test_collects_operations(self):
        """Operations are kept in order."""
        sink = ListSink()
        for op in OPERATIONS:
            sink.handle(op)
        sink.close()
        assert sink.operations == OPERATIONS
        assert sink.closed


class TestJsonlSink:
    """Tests for JsonlSink."""

    def test_writes_one_object_per_line(self):
        """Every operation is one JSON line."""
        stream = io.StringIO()
        sink = JsonlSink(stream=stream)
        for op in OPERATIONS:
            sink.handle(op)
        sink.close()

        lines = stream.getvalue().splitlines()
        assert len(lines) == len(OPERATIONS)
        records = [json.loads(line) for line in lines]
        assert records[0]["op"] == "begin_commit"
        assert records[0]["commit"]["sha"] == "0123456789abcdef"
        assert records[3] == {"op": "insert", "path": "a.txt", "line": 0, "column": 4, "text": "café"}
        assert records[5]["content"] == "old\nlines"

    def test_keeps_unicode(self):
        """Non-ASCII text is written as is."""
        stream = io.StringIO()
        JsonlSink(stream=stream).handle(Insert("a", 0, 0, "café"))
        assert "café" in stream.getvalue()

    def test_output_file(self, tmp_path):
        """With output, the sink owns and closes the file."""
        path = tmp_path / "out" / "ops.jsonl"
        sink = JsonlSink(output=path)
        sink.handle(CreateFile("a.txt"))
        sink.close()
        assert json.loads(path.read_text()) == {"op": "create_file", "path": "a.txt"}

    def test_output_file_keeps_undecodable_bytes(self, tmp_path):
        """Surrogate-escaped text from git is written as its original bytes."""
        path = tmp_path / "ops.jsonl"
        sink = JsonlSink(output=path)
        sink.handle(Insert("l.txt", 0, 0, "caf\udce9"))
        sink.close()
        assert b'"text": "caf\xe9"' in path.read_bytes()


class TestConsoleSink:
    """Tests for ConsoleSink."""

    def test_summary(self):
        """File events are printed with a per-file tally."""
        output = io.StringIO()
        sink = ConsoleSink(console=Console(file=output, width=120))
        for op in OPERATIONS:
            sink.handle(op)
        sink.close()

        text = output.getvalue()
        assert "01234567" in text
        assert "Add things" in text
        assert "create a.txt" in text
        assert "edit   a.txt +2 -2" in text
        assert "rename a.txt -> b.txt" in text
        assert "Ann: Add things" in text

    def test_markup_is_escaped(self):
        """Paths that look like markup are printed literally."""
        output = io.StringIO()
        sink = ConsoleSink(console=Console(file=output, width=120))
        sink.handle(CreateFile("[bold]x.txt"))
        assert "[bold]x.txt" in output.getvalue()

    def test_output_file(self, tmp_path):
        """With output, the summary is written to that file."""
        path = tmp_path / "out" / "summary.txt"
        sink = ConsoleSink(output=path)
        for op in OPERATIONS:
            sink.handle(op)
        sink.close()

        text = path.read_text()
        assert "create a.txt" in text
        assert "Ann: Add things" in text
        assert sink.console.file.closed

"""Console sink: a readable summary of the replay using rich."""

from __future__ import annotations

from collections import Counter
from pathlib import Path
from typing import IO, Any

from rich.console import Console
from rich.markup import escape

from gitreplay.core import (
    AppendLog,
    BeginCommit,
    CreateFile,
    DeleteFile,
    DeleteRange,
    EndCommit,
    Insert,
    Operation,
    RenamePath,
    SaveFile,
)
from gitreplay.plugins import hookimpl

SINK_NAME = "console"


class ConsoleSink:
    """Prints one line per file-level event and a per-file edit tally.

    Individual character inserts are counted rather than printed. With
    output, the summary goes to that file and the sink closes it.
    """

    def __init__(self, console: Console | None = None, output: Path | None = None):
        self._output_file: IO[str] | None = None
        if console is None and output is not None:
            output.parent.mkdir(parents=True, exist_ok=True)
            self._output_file = open(output, "w", encoding="utf-8", errors="surrogateescape")
            console = Console(file=self._output_file)
        self.console = console or Console()
        self._inserted_lines: Counter[str] = Counter()
        self._deleted_lines: Counter[str] = Counter()

    def handle(self, operation: Operation) -> None:
        console = self.console
        if isinstance(operation, BeginCommit):
            commit = operation.commit
            console.rule(f"[bold]{commit.short_sha}[/bold] {escape(commit.message)}", align="left")
        elif isinstance(operation, CreateFile):
            console.print(f"  [green]create[/green] {escape(operation.path)}")
        elif isinstance(operation, RenamePath):
            console.print(f"  [blue]rename[/blue] {escape(operation.source)} -> {escape(operation.target)}")
        elif isinstance(operation, DeleteFile):
            console.print(f"  [red]delete[/red] {escape(operation.path)}")
        elif isinstance(operation, Insert):
            if operation.column == 0:
                self._inserted_lines[operation.path] += 1
        elif isinstance(operation, DeleteRange):
            self._deleted_lines[operation.path] += operation.end - operation.start + 1
        elif isinstance(operation, SaveFile):
            added = self._inserted_lines.pop(operation.path, 0)
            removed = self._deleted_lines.pop(operation.path, 0)
            if added or removed:
                console.print(
                    f"  [yellow]edit[/yellow]   {escape(operation.path)} "
                    f"[green]+{added}[/green] [red]-{removed}[/red]"
                )
        elif isinstance(operation, AppendLog):
            console.print(f"  [dim]{escape(operation.text)}[/dim]")
        elif isinstance(operation, EndCommit):
            pass

    def close(self) -> None:
        if self._output_file is not None:
            self._output_file.close()


class ConsoleSinkPlugin:
    """Plugin providing the console sink."""

    @hookimpl
    def gitreplay_get_sink_info(self) -> dict[str, str]:
        """Return sink identification info."""
        return {
            "name": SINK_NAME,
            "description": "Human-readable replay summary",
        }

    @hookimpl
    def gitreplay_create_sink(self, name: str, options: dict[str, Any]) -> ConsoleSink | None:
        if name != SINK_NAME:
            return None
        output = options.get("output")
        return ConsoleSink(
            console=options.get("console"),
            output=Path(output) if output else None,
        )

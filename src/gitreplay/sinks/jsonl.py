"""JSON Lines sink: one JSON object per operation."""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import IO, Any

from gitreplay.core import Operation
from gitreplay.plugins import hookimpl

SINK_NAME = "jsonl"


class JsonlSink:
    """Writes each operation as a JSON object on its own line."""

    def __init__(self, stream: IO[str] | None = None, output: Path | None = None):
        self._owns_stream = False
        if output is not None:
            output.parent.mkdir(parents=True, exist_ok=True)
            self.stream: IO[str] = open(output, "w", encoding="utf-8", errors="surrogateescape")
            self._owns_stream = True
        else:
            self.stream = stream or sys.stdout

    def handle(self, operation: Operation) -> None:
        self.stream.write(json.dumps(operation.to_dict(), ensure_ascii=False) + "\n")

    def close(self) -> None:
        if self._owns_stream:
            self.stream.close()
        else:
            self.stream.flush()


class JsonlSinkPlugin:
    """Plugin providing the jsonl sink."""

    @hookimpl
    def gitreplay_get_sink_info(self) -> dict[str, str]:
        """Return sink identification info."""
        return {
            "name": SINK_NAME,
            "description": "Operation stream as JSON Lines",
        }

    @hookimpl
    def gitreplay_create_sink(self, name: str, options: dict[str, Any]) -> JsonlSink | None:
        if name != SINK_NAME:
            return None
        output = options.get("output")
        return JsonlSink(
            stream=options.get("stream"),
            output=Path(output) if output else None,
        )

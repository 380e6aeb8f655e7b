"""Consumers of the replay operation stream."""

from __future__ import annotations

from typing import Protocol

from gitreplay.core import Operation


class OperationSink(Protocol):
    """Anything that applies replay operations in delivery order."""

    def handle(self, operation: Operation) -> None: ...

    def close(self) -> None: ...


class ListSink:
    """Keeps every operation in memory."""

    def __init__(self) -> None:
        self.operations: list[Operation] = []
        self.closed = False

    def handle(self, operation: Operation) -> None:
        self.operations.append(operation)

    def close(self) -> None:
        self.closed = True


__all__ = ["OperationSink", "ListSink"]

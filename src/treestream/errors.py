from __future__ import annotations

from typing import Any, Optional


class StreamError(Exception):
    """Base error for token stream processing.

    Carries the best known originating node and, once intercepted by a pass
    wrapper, the name of the pass that was running.
    """

    def __init__(self, message: str, node: Optional[Any] = None):
        self.message = message
        self.node = node
        self.pass_name: Optional[str] = None
        super().__init__(message)

    def locate(self, node: Optional[Any], pass_name: Optional[str]) -> None:
        if self.node is None or not has_loc(self.node):
            if node is not None:
                self.node = node
        if self.pass_name is None:
            self.pass_name = pass_name

    def __str__(self) -> str:
        msg = self.message
        if self.pass_name is not None:
            msg = f"{msg} during {self.pass_name}"
        loc = node_position(self.node)
        if loc is not None:
            msg = f"{msg} at line {loc[0]}, col {loc[1]}"
        return msg


class ProtocolError(StreamError):
    """Enter/leave pairing, stack or identity violation (a caller bug)."""


class InferenceError(StreamError):
    """A token kind, slot or template position cannot be determined."""


class PlaceholderNotFound(InferenceError):
    pass


class ShapeError(StreamError):
    """A subtree's shape admits none of the expected categories."""


class TemplateSyntaxError(StreamError):
    def __init__(self, message: str, line: Optional[int] = None, column: Optional[int] = None):
        self.line = line
        self.column = column
        super().__init__(
            f"{message} at line {line}, col {column}" if line is not None else message
        )


class TransformError(StreamError):
    """Positioned error produced by a diagnostics reporter."""

    def __init__(self, message: str, node: Optional[Any] = None, frame: str = ""):
        self.frame = frame
        super().__init__(message, node)

    def __str__(self) -> str:
        msg = super().__str__()
        return f"{msg}\n{self.frame}" if self.frame else msg


def has_loc(node: Any) -> bool:
    return isinstance(node, dict) and node.get("loc") is not None


def node_position(node: Any) -> Optional[tuple[int, int]]:
    """(line, column) of a node's start, 1-based line and 0-based column."""
    if not has_loc(node):
        return None
    start = node["loc"].get("start") or {}
    line = start.get("line")
    if line is None:
        return None
    return line, start.get("column", 0)

"""Positioned error reporting for passes run over a known source text."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, List, Optional

from .errors import TransformError, node_position

CONTEXT_LINES = 2


@dataclass
class CodeFrameReporter:
    """Builds `TransformError`s pointing into `source`.

    `root` is the fallback node used when no better location is known.
    """

    source: str
    filename: Optional[str] = None
    root: Optional[Any] = None

    def build_error(self, node: Optional[Any], message: str) -> TransformError:
        if self.filename:
            message = f"{self.filename}: {message}"
        return TransformError(message, node=node, frame=self.code_frame(node))

    def code_frame(self, node: Optional[Any]) -> str:
        pos = node_position(node)
        if pos is None:
            return ""
        line, column = pos
        lines = self.source.splitlines()
        if not 1 <= line <= len(lines):
            return ""

        first = max(1, line - CONTEXT_LINES)
        last = min(len(lines), line + CONTEXT_LINES)
        width = len(str(last))
        out: List[str] = []

        for num in range(first, last + 1):
            marker = ">" if num == line else " "
            out.append(f"{marker} {num:>{width}} | {lines[num - 1]}")
            if num == line:
                out.append(f"  {' ' * width} | {' ' * column}^")
        return "\n".join(out)

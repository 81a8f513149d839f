from __future__ import annotations

from collections import deque
from typing import Any, Deque, Generator, Iterator, List

from ..errors import PlaceholderNotFound
from ..shapes import Tag
from ..symbols import Sym
from ..templates import PLACEHOLDERS, STMT_PLACEHOLDER, toks
from ..tokens import Token
from .output import CtrlTokGen


def _emit_template(t: "TemplateMixin") -> Iterator[Token]:
    yield from t._tstack.pop()


TEMPLATE = CtrlTokGen(_emit_template, "template", frame=True)


def _placeholder_name(i: Token) -> Any:
    node = i.value.node
    return node.get("name") if isinstance(node, dict) else None


class TemplateMixin:
    """Expands token templates through the output stack.

    `template` registers the pending tokens, `open` emits them up to the
    next placeholder and the rest is emitted when the stack entry is
    reached by `leave` or a label replay.
    """

    def __init__(self, *args):
        super().__init__(*args)
        self._tstack: List[Deque[Token]] = []

    def template(self, slot: Sym, node: Any) -> None:
        """`node` is template text, a tree node or a ready token list."""
        if isinstance(node, list) and all(isinstance(i, Token) for i in node):
            pending = deque(node)
        else:
            pending = deque(toks(slot, node))
        self._stack.append(TEMPLATE)
        self._tstack.append(pending)

    def open(self) -> Generator[Token, None, Sym]:
        """Emit the current template up to its next placeholder.

        Returns the slot the placeholder occupied, which is where the caller
        must put the replacement.
        """
        if not self._tstack:
            raise PlaceholderNotFound("no pending template to open")
        arr = self._tstack[-1]
        while arr:
            f = arr.popleft()
            if f.enter:
                if f.kind is Tag.ExpressionStatement:
                    n = arr[0] if arr else None
                    if (
                        n is not None
                        and n.kind is Tag.Identifier
                        and _placeholder_name(n) == STMT_PLACEHOLDER
                    ):
                        _drop_subtree(arr, f)
                        return f.slot
                elif f.kind is Tag.Identifier and _placeholder_name(f) in PLACEHOLDERS:
                    _drop_subtree(arr, f)
                    return f.slot
            yield f
        raise PlaceholderNotFound("next placeholder is not found")


def _drop_subtree(arr: Deque[Token], f: Token) -> None:
    """Discard the rest of the subtree opened by `f`."""
    if f.leave:
        return
    while arr:
        if arr.popleft().value.uid == f.value.uid:
            return

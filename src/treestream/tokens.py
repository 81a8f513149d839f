"""The token model: paired enter/leave events over a flattened tree."""

from __future__ import annotations

import itertools
from dataclasses import dataclass, field, replace
from typing import Any, Iterable, Iterator, List, Optional

from .symbols import Sym, Tag

_uids = itertools.count(1)


@dataclass(eq=False)
class Value:
    """Payload shared by the opening and closing token of one node.

    `uid` is issued at construction and identifies the node in the stream;
    an opener and its close always carry the same `uid`.
    """

    node: Any = None
    opts: Any = None
    sym: Any = None
    type_info: Any = None
    field_info: Any = None
    result: bool = False
    uid: int = field(init=False, default_factory=lambda: next(_uids))

    def __repr__(self) -> str:
        node = self.node
        if isinstance(node, dict):
            descr = node.get("type") or "{}"
        elif isinstance(node, list):
            descr = f"[{len(node)}]"
        else:
            descr = repr(node)
        return f"Value#{self.uid}({descr})"


@dataclass(frozen=True, slots=True)
class Token:
    slot: Sym
    kind: Sym
    value: Value
    enter: bool
    leave: bool

    @property
    def is_open(self) -> bool:
        """Opens a subtree with a separate close token."""
        return self.enter and not self.leave

    @property
    def is_close(self) -> bool:
        return self.leave and not self.enter

    def closes(self, other: "Token") -> bool:
        return self.is_close and self.value.uid == other.value.uid

    def __repr__(self) -> str:
        direction = "|" if self.enter and self.leave else ("\\" if self.enter else "/")
        return f"{direction}{self.slot.name}:{self.kind.name}#{self.value.uid}"


def set_slot(i: Token, slot: Sym) -> Token:
    """Copy of `i` placed at another slot (same value identity)."""
    return replace(i, slot=slot)


def set_kind(i: Token, kind: Sym) -> Token:
    return replace(i, kind=kind)


def clone(s: Iterable[Token]) -> Iterator[Token]:
    """Re-emit a stream with fresh values.

    Every opener gets a copied `Value` (new `uid`) whose node is shallow
    copied, together with comment lists, so in-place edits of one copy do
    not leak into another.
    """
    stack: List[Value] = []
    for i in s:
        value: Optional[Value] = None
        if i.enter:
            value = replace(i.value)
            if i.kind is Tag.Array and isinstance(value.node, list):
                value.node = list(value.node)
            elif isinstance(value.node, dict):
                node = dict(value.node)
                for key in ("leadingComments", "trailingComments"):
                    if node.get(key) is not None:
                        node[key] = list(node[key])
                value.node = node
            stack.append(value)
        if i.leave:
            value = stack.pop()
        yield Token(i.slot, i.kind, value, i.enter, i.leave)

"""Deferred emission: open subtrees now, emit their closes later."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Generator, Iterator, List, Mapping, Optional, Tuple, Union

from ..errors import InferenceError, ProtocolError
from ..shapes import Tag, is_node_kind
from ..symbols import CTRL, Sym
from ..templates import toks
from ..tokens import Token, Value

# ============================================================================
# Stack entries
# ============================================================================


@dataclass(frozen=True, eq=False)
class StoredTok:
    """A buffered close token, emitted by `leave`."""

    tok: Token


@dataclass(frozen=True, eq=False)
class CtrlTok:
    """Side effect run when popped, emits nothing."""

    run: Callable[[Any], None]
    name: str = "ctrl"


@dataclass(frozen=True, eq=False)
class CtrlTokGen:
    """Sub-generator spliced into the output when popped.

    A `frame` entry ends a `leave` like a buffered close does.
    """

    run: Callable[[Any], Iterator[Token]]
    name: str = "gen"
    frame: bool = False


StackEntry = Union[StoredTok, CtrlTok, CtrlTokGen]
KindArg = Union[Sym, Value, Mapping[str, Any], None]
ValueArg = Union[Value, Mapping[str, Any], None]


def _drain(t: "OutputMixin", entries: List[StackEntry]) -> Iterator[Token]:
    for entry in entries:
        if isinstance(entry, StoredTok):
            yield entry.tok
        elif isinstance(entry, CtrlTokGen):
            yield from entry.run(t)
        else:
            entry.run(t)


class OutputMixin:
    """Token construction plus a stack of deferred close tokens.

    `enter` returns an opener and buffers its close; `leave` pops the stack
    until it reaches a buffered close, running any control entries on the
    way. `label` captures the stack depth for later reordering.
    """

    def __init__(self, *args):
        super().__init__(*args)
        self._stack: List[StackEntry] = []

    def value_ctor(self, slot: Sym, kind: KindArg = None, value: ValueArg = None) -> Tuple[Sym, Sym, Value]:
        """Normalize `(slot, kind, value)`, inferring whichever is missing.

        `kind` may be a tag, an existing `Value` or a bare node dict; `value`
        may be a `Value` or a mapping of its fields.
        """
        node = None
        if value is None:
            if isinstance(kind, Value):
                value, kind = kind, None
                node = value.node
            elif isinstance(kind, Mapping):
                node = kind
                value, kind = Value(node=node), None
            else:
                value = Value()
        else:
            if not isinstance(value, Value):
                value = Value(**value)
            node = value.node

        if kind is None:
            if value.type_info is not None:
                kind = value.type_info.kind
            elif isinstance(node, dict) and isinstance(node.get("type"), str):
                kind = Tag.get(node["type"])
            elif isinstance(slot, Sym) and slot.kind == CTRL:
                kind = slot
        if kind is None:
            raise InferenceError("couldn't guess type", node)

        if node is None and kind is not Tag.Null:
            node = [] if kind is Tag.Array else {}
            value.node = node
        if isinstance(node, dict) and "type" not in node and is_node_kind(kind):
            node["type"] = kind.name
        if value.opts is None:
            value.opts = self.opts
        return slot, kind, value

    def enter(self, slot: Sym, kind: KindArg = None, value: ValueArg = None) -> Token:
        slot, kind, value = self.value_ctor(slot, kind, value)
        self._stack.append(StoredTok(Token(slot, kind, value, False, True)))
        return Token(slot, kind, value, True, False)

    def tok(self, slot: Sym, kind: KindArg = None, value: ValueArg = None) -> Token:
        slot, kind, value = self.value_ctor(slot, kind, value)
        return Token(slot, kind, value, True, True)

    def toks(self, slot: Sym, node: Any) -> Iterator[Token]:
        yield from toks(slot, node)

    def leave(self) -> Generator[Token, None, Token]:
        while self._stack:
            entry = self._stack.pop()
            if isinstance(entry, StoredTok):
                yield entry.tok
                return entry.tok
            if isinstance(entry, CtrlTokGen):
                if entry.frame:
                    last = None
                    for last in entry.run(self):
                        yield last
                    return last
                yield from entry.run(self)
            else:
                entry.run(self)
        raise ProtocolError("leave without a matching enter")

    def label(self) -> Callable[[], Iterator[Token]]:
        """Return a replay of everything pushed onto the stack after now."""
        depth = len(self._stack)

        def replay() -> Iterator[Token]:
            entries = self._stack[depth:]
            del self._stack[depth:]
            entries.reverse()
            yield from _drain(self, entries)

        return replay

    @property
    def stack_top(self) -> Optional[StackEntry]:
        return self._stack[-1] if self._stack else None

"""Structural checks for token streams.

`verify` passes a stream through unchanged while checking pairing, slot
placement and field order. It is meant to be dropped between passes
while debugging them.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Iterator, List, Optional

from .errors import ProtocolError, ShapeError
from .shapes import Tag, is_node_kind, node_fields
from .symbols import CTRL, Sym
from .tokens import Token, Value


@dataclass
class _Frame:
    tok: Token
    # index of the last field seen under this node
    field: int = -1


def _check_complete(i: object) -> Token:
    if not isinstance(i, Token):
        raise ProtocolError(f"not a token: {i!r}")
    if not isinstance(i.slot, Sym) or not isinstance(i.kind, Sym):
        raise ProtocolError(f"token without slot or kind: {i!r}")
    if not isinstance(i.value, Value):
        raise ProtocolError(f"token without value: {i!r}")
    if not (i.enter or i.leave):
        raise ProtocolError(f"token neither enters nor leaves: {i!r}")
    return i


def _check_slot(parent: Optional[_Frame], i: Token) -> None:
    # roots, and the content of control tags, may be at any slot
    if parent is None or parent.tok.kind.kind == CTRL:
        return
    kind = parent.tok.kind
    if kind is Tag.Array:
        if i.slot is not Tag.push:
            raise ShapeError(f"{i!r} is not an array element", i.value.node)
        return
    if not is_node_kind(kind):
        raise ShapeError(f"{kind!r} cannot have children", parent.tok.value.node)
    names = [fld.sym for fld in node_fields(kind)]
    if i.slot not in names:
        raise ShapeError(f"{kind!r} has no field {i.slot!r}", i.value.node)
    pos = names.index(i.slot)
    if pos <= parent.field:
        raise ShapeError(f"field {i.slot!r} of {kind!r} is out of order", i.value.node)
    parent.field = pos


def verify(s: Iterable[Token]) -> Iterator[Token]:
    stack: List[_Frame] = []
    for i in s:
        i = _check_complete(i)
        if i.enter:
            _check_slot(stack[-1] if stack else None, i)
            if not i.leave:
                stack.append(_Frame(i))
        else:
            if not stack:
                raise ProtocolError(f"{i!r} closes nothing", i.value.node)
            top = stack.pop().tok
            if top.value.uid != i.value.uid or top.kind is not i.kind or top.slot is not i.slot:
                raise ProtocolError(f"{i!r} does not close {top!r}", i.value.node)
        yield i
    if stack:
        raise ProtocolError(f"{stack[-1].tok!r} is never closed", stack[-1].tok.value.node)

"""Reference producer and consumer between dict trees and token streams."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Iterator, List, Optional, Tuple

from .errors import ProtocolError, ShapeError
from .options import get_opts
from .shapes import Tag, is_node_kind, node_fields
from .symbols import CTRL, Sym
from .tokens import Token, Value


def kind_of(node: Any) -> Sym:
    """Tag for a node value: `Null`, `Array` or the node's registered kind."""
    if node is None:
        return Tag.Null
    if isinstance(node, list):
        return Tag.Array
    name = node.get("type") if isinstance(node, dict) else None
    sym = Tag.get(name) if isinstance(name, str) else None
    if sym is None or not is_node_kind(sym):
        raise ShapeError(f"unknown node type {name!r}", node)
    return sym


def produce(node: Any, slot: Sym = Tag.top) -> Iterator[Token]:
    """Pre-order enter/leave events for `node` placed at `slot`."""
    return _produce(slot, node, get_opts())


def _produce(slot: Sym, node: Any, opts: Any) -> Iterator[Token]:
    kind = kind_of(node)
    value = Value(node=node, opts=opts)

    if kind is Tag.Null:
        yield Token(slot, kind, value, True, True)
        return

    if kind is Tag.Array:
        if not node:
            yield Token(slot, kind, value, True, True)
            return
        yield Token(slot, kind, value, True, False)
        for item in node:
            yield from _produce(Tag.push, item, opts)
        yield Token(slot, kind, value, False, True)
        return

    present = [fld for fld in node_fields(kind) if fld.name in node]
    if not present:
        yield Token(slot, kind, value, True, True)
        return

    yield Token(slot, kind, value, True, False)
    for fld in present:
        yield from _produce(fld.sym, node[fld.name], opts)
    yield Token(slot, kind, value, False, True)


@dataclass
class Consumed:
    """Trees rebuilt by `consume`, keyed by the slot name of each root."""

    roots: Dict[str, Any] = field(default_factory=dict)

    @property
    def top(self) -> Any:
        return self.roots.get(Tag.top.name)


def _new_node(i: Token) -> Any:
    if i.kind is Tag.Array:
        return []
    if i.kind is Tag.Null:
        return None
    if i.kind.kind == CTRL:
        return None
    node = i.value.node if isinstance(i.value.node, dict) else {}
    children = {fld.name for fld in node_fields(i.kind)}
    res = {k: v for k, v in node.items() if k not in children}
    res["type"] = i.kind.name
    return res


def consume(s: Iterable[Token]) -> Consumed:
    """Rebuild dict trees from a well-formed token stream.

    Control tags are transparent: their children are attached to the
    closest enclosing node.
    """
    res = Consumed()
    # (open token, node being built)
    stack: List[Tuple[Token, Any]] = []

    def attach(i: Token, node: Any) -> None:
        for tok, parent in reversed(stack):
            if tok.kind.kind == CTRL:
                continue
            if isinstance(parent, list):
                parent.append(node)
            else:
                parent[i.slot.name] = node
            return
        res.roots[i.slot.name] = node

    for i in s:
        if i.enter:
            node = _new_node(i)
            if i.leave:
                if i.kind.kind != CTRL:
                    attach(i, node)
            else:
                stack.append((i, node))
        elif i.leave:
            if not stack:
                raise ProtocolError("close token without a matching open", i.value.node)
            tok, node = stack.pop()
            if tok.value.uid != i.value.uid:
                raise ProtocolError(
                    f"close of {i!r} does not match open {tok!r}", i.value.node
                )
            if tok.kind.kind != CTRL:
                attach(tok, node)

    if stack:
        raise ProtocolError(f"unclosed {stack[-1][0]!r} at end of stream", stack[-1][1])
    return res

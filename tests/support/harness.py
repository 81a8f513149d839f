from __future__ import annotations

import sys
from pathlib import Path
from typing import Any, Dict, Iterable, List

BASE_DIR = Path(__file__).resolve().parent.parent.parent
SRC_DIR = (BASE_DIR / "src").resolve()

if str(BASE_DIR) not in sys.path:
    sys.path.append(str(BASE_DIR))
if str(SRC_DIR) not in sys.path:
    sys.path.append(str(SRC_DIR))

from treestream.shapes import Tag
from treestream.stream import levels, output
from treestream.symbols import Sym
from treestream.templates import parse_program
from treestream.tokens import Token
from treestream.tree import consume, produce
from treestream.verify import verify

Node = Dict[str, Any]


def js(source: str, locations: bool = False) -> Node:
    """Parse a whole program."""
    return parse_program(source, locations=locations)


def stmt(source: str) -> Node:
    """Parse a single statement."""
    body = js(source)["body"]
    assert len(body) == 1, f"expected one statement in {source!r}, got {len(body)}"
    return body[0]


def expr(source: str) -> Node:
    """Parse a single expression (parenthesized, so literals stay expressions)."""
    node = stmt(f"({source});")
    assert node["type"] == "ExpressionStatement"
    return node["expression"]


def rebuild(s: Iterable[Token]) -> Any:
    """Validate a stream and return the tree at its `top` slot."""
    return consume(verify(s)).top


def mark(ctrl: Sym, slot: Sym, content: Iterable[Token]) -> List[Token]:
    """Wrap `content` into a `ctrl` marker placed at `slot`."""
    o = output()
    return [o.enter(slot, ctrl), *content, *o.leave()]


def in_node(kind: Sym, *children: Iterable[Token], slot: Sym = Tag.top) -> List[Token]:
    """A `kind` node at `slot` whose children are the given token runs."""
    o = output()
    res = [o.enter(slot, kind)]
    for run in children:
        res.extend(run)
    res.extend(o.leave())
    return res


def program(*statements: Iterable[Token]) -> List[Token]:
    """A `Program` whose body holds the given runs (already at `push`)."""
    o = output()
    res = [o.enter(Tag.top, Tag.Program), o.enter(Tag.body, Tag.Array)]
    for run in statements:
        res.extend(run)
    res.extend(o.leave())
    res.extend(o.leave())
    return res


def mark_field(node: Node, slot: Sym, ctrl: Sym) -> List[Token]:
    """Tokens of `node` with its first subtree at `slot` wrapped into `ctrl`."""
    s = levels(produce(node))
    o = output()
    res: List[Token] = []
    done = False
    while True:
        i = s.peek()
        if i is None:
            break
        if not done and i.enter and i.slot is slot:
            res.append(o.enter(slot, ctrl))
            res.extend(s.one())
            res.extend(o.leave())
            done = True
        else:
            res.append(s.take())
    assert done, f"no subtree at {slot!r}"
    return res


def strip_loc(node: Any) -> Any:
    """Copy of a tree without position data."""
    if isinstance(node, list):
        return [strip_loc(item) for item in node]
    if isinstance(node, dict):
        return {k: strip_loc(v) for k, v in node.items() if k != "loc"}
    return node


def describe(s: Iterable[Token]) -> List[str]:
    """Compact `slot:Kind` listing with enter/leave direction markers."""
    res = []
    for i in s:
        if i.enter and i.leave:
            res.append(f"|{i.slot.name}:{i.kind.name}")
        elif i.enter:
            res.append(f"\\{i.slot.name}:{i.kind.name}")
        else:
            res.append(f"/{i.slot.name}:{i.kind.name}")
    return res

from __future__ import annotations

import pytest

from tests.support.harness import in_node, js, mark, stmt
from treestream.errors import ProtocolError, ShapeError
from treestream.shapes import Tag
from treestream.stream import output
from treestream.subst import Subst
from treestream.tokens import Token, set_slot
from treestream.tree import produce
from treestream.verify import verify


def test_well_formed_stream_passes_through() -> None:
    toks = list(produce(js("if (a) { b(); } else c = [1, 2];")))
    assert list(verify(toks)) == toks


def test_close_of_another_node() -> None:
    o = output()
    first = o.enter(Tag.top, Tag.BlockStatement)
    other = output()
    other.enter(Tag.top, Tag.BlockStatement)
    stray = list(other.leave())
    with pytest.raises(ProtocolError, match="does not close"):
        list(verify([first, *stray]))


def test_close_with_another_slot() -> None:
    toks = list(produce(stmt("{ a; }")))
    toks[-1] = set_slot(toks[-1], Tag.push)
    with pytest.raises(ProtocolError, match="does not close"):
        list(verify(toks))


def test_close_without_open() -> None:
    toks = list(produce(stmt("{ a; }")))
    with pytest.raises(ProtocolError, match="closes nothing"):
        list(verify(toks[-1:]))


def test_unclosed_at_end() -> None:
    toks = list(produce(stmt("{ a; }")))
    with pytest.raises(ProtocolError, match="never closed"):
        list(verify(toks[:-1]))


def test_not_a_token() -> None:
    with pytest.raises(ProtocolError, match="not a token"):
        list(verify(["x"]))
    o = output()
    value = o.tok(Tag.top, Tag.Null).value
    with pytest.raises(ProtocolError, match="neither enters nor leaves"):
        list(verify([Token(Tag.top, Tag.Null, value, False, False)]))


def test_array_elements_must_be_pushed() -> None:
    toks = in_node(Tag.Array, produce(stmt("a;"), Tag.body))
    with pytest.raises(ShapeError, match="not an array element"):
        list(verify(toks))


def test_unknown_field() -> None:
    toks = in_node(Tag.ReturnStatement, produce(stmt("a;"), Tag.body))
    with pytest.raises(ShapeError, match="has no field"):
        list(verify(toks))


def test_fields_out_of_order() -> None:
    toks = in_node(
        Tag.IfStatement,
        produce(stmt("a;"), Tag.consequent),
        produce({"type": "Identifier", "name": "t"}, Tag.test),
    )
    with pytest.raises(ShapeError, match="out of order"):
        list(verify(toks))


def test_repeated_field() -> None:
    toks = in_node(
        Tag.ReturnStatement,
        produce({"type": "Identifier", "name": "a"}, Tag.argument),
        produce({"type": "Identifier", "name": "b"}, Tag.argument),
    )
    with pytest.raises(ShapeError):
        list(verify(toks))


def test_leaf_cannot_have_children() -> None:
    toks = in_node(Tag.Identifier, produce({"type": "Identifier", "name": "a"}, Tag.push))
    with pytest.raises(ShapeError, match="has no field"):
        list(verify(toks))


def test_control_content_is_not_slot_checked() -> None:
    # content keeps its own slot until the marker is resolved
    toks = in_node(
        Tag.ReturnStatement,
        mark(Subst, Tag.argument, produce(stmt("a;"), Tag.body)),
    )
    assert list(verify(toks)) == toks


def test_control_marker_is_slot_checked() -> None:
    toks = in_node(Tag.ReturnStatement, mark(Subst, Tag.body, produce(stmt("a;"))))
    with pytest.raises(ShapeError, match="has no field"):
        list(verify(toks))

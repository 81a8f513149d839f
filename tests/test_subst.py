from __future__ import annotations

from tests.support.harness import in_node, js, mark, program, rebuild, stmt
from treestream.shapes import Tag
from treestream.stream import output
from treestream.subst import Subst, complete_subst
from treestream.tokens import Token
from treestream.tree import produce


def _stmts(text: str) -> list:
    return list(output().toks(Tag.top, text))


def test_plain_stream_is_unchanged() -> None:
    node = js("a; if (b) { c(); }")
    assert rebuild(complete_subst(produce(node))) == node


def test_marker_content_takes_the_marker_slot() -> None:
    toks = program(
        produce(stmt("a;"), Tag.push),
        mark(Subst, Tag.push, _stmts("*c(); d();")),
        produce(stmt("e;"), Tag.push),
    )
    out = list(complete_subst(toks))
    assert all(i.kind is not Subst for i in out)
    assert rebuild(out) == js("a; c(); d(); e;")


def test_marker_in_a_node_field() -> None:
    toks = in_node(
        Tag.ReturnStatement,
        mark(Subst, Tag.argument, output().toks(Tag.top, "=f(x)")),
    )
    assert rebuild(complete_subst(toks)) == stmt("return f(x);")


def test_nested_markers() -> None:
    inner = mark(Subst, Tag.body, _stmts("*b(); c();"))
    toks = program(mark(Subst, Tag.push, [*_stmts("a();"), *inner]))
    assert rebuild(complete_subst(toks)) == js("a(); b(); c();")


def test_markers_inside_content_are_resolved() -> None:
    block = in_node(
        Tag.BlockStatement,
        in_node(Tag.Array, mark(Subst, Tag.push, _stmts("*x(); y();")), slot=Tag.body),
        slot=Tag.top,
    )
    toks = program(mark(Subst, Tag.push, block))
    assert rebuild(complete_subst(toks)) == js("{ x(); y(); }")


def test_empty_marker_expands_to_nothing() -> None:
    o = output()
    empty: Token = o.tok(Tag.push, Subst)
    toks = program(produce(stmt("a;"), Tag.push), [empty])
    assert rebuild(complete_subst(toks)) == js("a;")

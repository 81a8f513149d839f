from __future__ import annotations

import contextvars
from dataclasses import dataclass
from typing import List

import pytest

from tests.support.harness import js, mark, program, stmt
from treestream.diagnostics import CodeFrameReporter
from treestream.errors import ShapeError
from treestream.kit import result
from treestream.options import Options, get_opts, opts_scope, opts_scope_lift, set_opts
from treestream.shapes import NO_SHAPE, Shape, field_shape, kind_info, reset_field_info, type_info
from treestream.subst import Subst
from treestream.symbols import CTRL, NODE, Tag, is_ctrl, symbol
from treestream.tree import produce

# options


def test_scope_restores_on_exit() -> None:
    before = get_opts()
    inner = Options(args={"a": 1})
    with opts_scope(inner) as current:
        assert current is inner
        assert get_opts() is inner
    assert get_opts() is before


def test_scope_restores_on_error() -> None:
    before = get_opts()
    with pytest.raises(RuntimeError):
        with opts_scope(Options()):
            raise RuntimeError("stop")
    assert get_opts() is before


def test_set_opts_is_undone_by_the_scope() -> None:
    before = get_opts()
    with opts_scope():
        set_opts(Options(file={"name": "x.js"}))
        assert get_opts().file == {"name": "x.js"}
    assert get_opts() is before


def test_scope_lift() -> None:
    before = get_opts()

    @opts_scope_lift
    def change() -> str:
        set_opts(Options(args={"changed": True}))
        return "ok"

    assert change() == "ok"
    assert change.__name__ == "change"
    assert get_opts() is before


def test_scope_lift_covers_a_generator_pass() -> None:
    before = get_opts()
    seen = []

    @opts_scope_lift
    def tagging_pass(s):
        set_opts(Options(args={"inside": True}))
        for i in s:
            seen.append(get_opts().args)
            yield i
        return "done"

    gen = tagging_pass([1, 2])
    assert get_opts() is before
    assert result(gen, None) == "done"
    assert seen == [{"inside": True}, {"inside": True}]
    assert get_opts() is before
    assert tagging_pass.__name__ == "tagging_pass"


def test_scope_lift_restores_when_a_pass_is_abandoned() -> None:
    before = get_opts()

    @opts_scope_lift
    def endless(s):
        set_opts(Options(args={"inside": True}))
        yield from s

    gen = endless([1, 2, 3])
    assert next(gen) == 1
    gen.close()
    assert get_opts() is before


def test_fresh_contexts_get_their_own_options() -> None:
    def edit() -> Options:
        opts = get_opts()
        opts.args["edited"] = True
        return opts

    first = contextvars.Context().run(edit)
    second = contextvars.Context().run(get_opts)
    assert first is not second
    assert second.args == {}


def test_tokens_snapshot_the_options() -> None:
    opts = Options(args={"mode": "x"})
    with opts_scope(opts):
        toks = list(produce(stmt("a;")))
    assert all(i.value.opts is opts for i in toks)


# shapes


@dataclass(frozen=True)
class KindCase:
    """Expected classification flags of a kind."""

    name: str
    expr: bool = False
    stmt: bool = False
    block: bool = False
    decl: bool = False


KIND_CASES: List[KindCase] = [
    KindCase("Identifier", expr=True),
    KindCase("CallExpression", expr=True),
    KindCase("ExpressionStatement", stmt=True),
    KindCase("BlockStatement", stmt=True, block=True),
    KindCase("VariableDeclaration", stmt=True, decl=True),
    KindCase("FunctionDeclaration", stmt=True, decl=True),
    KindCase("VariableDeclarator"),
    KindCase("Program"),
]


@pytest.mark.parametrize("case", KIND_CASES, ids=lambda case: case.name)
def test_kind_info(case: KindCase) -> None:
    info = kind_info(Tag[case.name])
    assert (info.expr, info.stmt, info.block, info.decl) == (
        case.expr,
        case.stmt,
        case.block,
        case.decl,
    )
    assert not info.ctrl


def test_kind_info_special_kinds() -> None:
    assert kind_info(Tag.Array).array
    null = kind_info(Tag.Null)
    assert not (null.expr or null.stmt or null.array or null.ctrl)
    assert kind_info(Subst).ctrl
    with pytest.raises(ShapeError):
        kind_info(Tag.body)


def test_type_info_prefers_the_override() -> None:
    tok = next(iter(produce(stmt("a;"))))
    assert type_info(tok).stmt
    tok.value.type_info = kind_info(Tag.Identifier)
    assert type_info(tok).expr


def test_field_shape() -> None:
    assert field_shape(Tag.IfStatement, Tag.consequent) == Shape(stmt=True)
    assert field_shape(Tag.ArrowFunctionExpression, Tag.body) == Shape(expr=True, block=True)
    assert field_shape(Tag.ForStatement, Tag.init) == Shape(expr=True, decl=True)
    assert field_shape(Tag.IfStatement, Tag.body) is NO_SHAPE
    assert not NO_SHAPE


def test_shape_parse() -> None:
    assert Shape.parse("") == NO_SHAPE
    assert Shape.parse("stmt|block") == Shape(stmt=True, block=True)
    with pytest.raises(ValueError):
        Shape.parse("expr|bogus")


def _shapes(toks) -> List[tuple]:
    return [
        (i.slot.name, i.kind.name, i.value.field_info)
        for i in reset_field_info(toks)
        if i.enter
    ]


def test_reset_field_info() -> None:
    shapes = _shapes(produce(js("f(a);")))
    assert shapes == [
        ("top", "Program", NO_SHAPE),
        ("body", "Array", NO_SHAPE),
        ("push", "ExpressionStatement", Shape(stmt=True)),
        ("expression", "CallExpression", Shape(expr=True)),
        ("callee", "Identifier", Shape(expr=True)),
        ("arguments", "Array", NO_SHAPE),
        ("push", "Identifier", Shape(expr=True)),
    ]


def test_reset_field_info_through_control_tags() -> None:
    toks = program(mark(Subst, Tag.push, produce(stmt("a;"), Tag.push)))
    shapes = _shapes(toks)
    assert shapes[2] == ("push", "Subst", Shape(stmt=True))
    assert shapes[3] == ("push", "ExpressionStatement", Shape(stmt=True))


def test_unknown_node_type() -> None:
    with pytest.raises(ShapeError, match="unknown node type"):
        list(produce({"type": "WithStatement"}))


def test_symbols_are_interned() -> None:
    tag = symbol("shapesTestMarker")
    assert symbol("shapesTestMarker") is tag
    assert is_ctrl(tag)
    assert repr(tag) == "<shapesTestMarker>"
    assert Tag.shapesTestMarker is tag
    assert not is_ctrl(Tag.Identifier)
    assert Tag.Identifier.kind == NODE
    with pytest.raises(ValueError):
        symbol("Identifier", CTRL)
    with pytest.raises(AttributeError):
        Tag.noSuchTagAnywhere


# diagnostics

SOURCE = "a();\nb();\nif (c) {\n  d();\n}\ne();\nf();"


def test_code_frame() -> None:
    prog = js(SOURCE, locations=True)
    call = prog["body"][2]["consequent"]["body"][0]
    frame = CodeFrameReporter(SOURCE).code_frame(call)
    assert frame.splitlines() == [
        "  2 | b();",
        "  3 | if (c) {",
        "> 4 |   d();",
        "    |   ^",
        "  5 | }",
        "  6 | e();",
    ]


def test_code_frame_without_position() -> None:
    reporter = CodeFrameReporter(SOURCE)
    assert reporter.code_frame(None) == ""
    assert reporter.code_frame(stmt("a;")) == ""
    far = {"type": "Identifier", "loc": {"start": {"line": 99, "column": 0}}}
    assert reporter.code_frame(far) == ""


def test_build_error() -> None:
    prog = js(SOURCE, locations=True)
    reporter = CodeFrameReporter(SOURCE, filename="in.js")
    err = reporter.build_error(prog["body"][1], "bad call")
    assert err.node is prog["body"][1]
    assert str(err).splitlines()[0] == "in.js: bad call at line 2, col 0"
    assert "> 2 | b();" in err.frame

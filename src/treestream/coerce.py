"""Expression/statement shape coercion.

`make_expr_pass` rewrites the content of `MakeExpr` and `MakeStmt` markers
so it fits an expression or a statement position. `adjust_field_type`
does the same for every node whose shape does not match the field it
occupies.

Statements become expressions by wrapping them into an immediately
invoked arrow function, expressions become statements by wrapping them
into an expression statement (or a return statement when the value is
the result of the enclosing function).
"""

from __future__ import annotations

from typing import Iterable, Iterator

from .errors import ShapeError
from .shapes import NO_SHAPE, Tag, kind_info, reset_field_info, type_info
from .stream import auto
from .symbols import Sym, symbol
from .tokens import Token, set_slot

MakeExpr = symbol("makeExpr")
MakeStmt = symbol("makeStmt")

_MARKERS = (MakeExpr, MakeStmt)


def make_expr_pass(s: Iterable[Token]) -> Iterator[Token]:
    s = auto(s)

    def subst(slot: Sym) -> Iterator[Token]:
        yield s.peel(set_slot(s.take(), slot))
        yield from walk()
        yield from s.leave()

    def nested(j: Token, coerce) -> Iterator[Token]:
        # the outer requirement wins over a nested marker
        s.take()
        if j.leave:
            return
        yield from coerce()
        s.close(j)

    def to_expr(slot: Sym) -> Iterator[Token]:
        j = s.current()
        if j is None:
            return
        if j.kind in _MARKERS:
            yield from nested(j, lambda: to_expr(slot))
            return
        ti = type_info(j)
        if ti.block:
            yield s.enter(slot, Tag.CallExpression)
            yield s.enter(Tag.callee, Tag.ArrowFunctionExpression)
            yield s.tok(Tag.params, Tag.Array)
            yield from subst(Tag.body)
            yield from s.leave()
            yield s.tok(Tag.arguments, Tag.Array)
            yield from s.leave()
        elif ti.stmt:
            yield s.enter(slot, Tag.CallExpression)
            lab = s.label()
            yield s.enter(Tag.callee, Tag.ArrowFunctionExpression)
            yield s.tok(Tag.params, Tag.Array)
            yield s.enter(Tag.body, Tag.BlockStatement)
            yield s.enter(Tag.body, Tag.Array)
            yield from subst(Tag.push)
            yield from lab()
            yield s.tok(Tag.arguments, Tag.Array)
            yield from s.leave()
        elif ti.expr:
            yield from subst(slot)
        else:
            raise ShapeError(f"cannot convert {j.kind!r} to expression", j.value.node)

    def to_stmt(slot: Sym) -> Iterator[Token]:
        j = s.current()
        if j is None:
            return
        if j.kind in _MARKERS:
            yield from nested(j, lambda: to_stmt(slot))
            return
        ki = kind_info(j.kind)
        if ki.stmt or ki.block:
            yield from subst(slot)
        elif ki.expr:
            yield s.enter(slot, Tag.ExpressionStatement)
            yield from subst(Tag.expression)
            yield from s.leave()
        else:
            raise ShapeError(f"cannot convert {j.kind!r} to statement", j.value.node)

    def walk() -> Iterator[Token]:
        for i in s.sub():
            if i.kind is MakeExpr:
                if i.is_open:
                    yield from to_expr(i.slot)
            elif i.kind is MakeStmt:
                if i.is_open:
                    yield from to_stmt(i.slot)
            else:
                yield i

    return walk()


def adjust_field_type(s: Iterable[Token]) -> Iterator[Token]:
    """Wrap every node whose shape mismatches its field.

    Field shapes are re-derived first, so the pass may run after any
    reordering.
    """
    s = auto(reset_field_info(s))

    def subst(slot: Sym, i: Token) -> Iterator[Token]:
        if i.leave:
            yield s.tok(slot, i.kind, i.value)
        else:
            yield s.peel(set_slot(i, slot))
            yield from walk()
            yield from s.leave()

    def value_stmt(slot: Sym, i: Token) -> Iterator[Token]:
        if i.value.result:
            yield s.enter(slot, Tag.ReturnStatement)
            yield from subst(Tag.argument, i)
        else:
            yield s.enter(slot, Tag.ExpressionStatement)
            yield from subst(Tag.expression, i)
        yield from s.leave()

    def walk() -> Iterator[Token]:
        for i in s.sub():
            if not i.enter:
                yield i
                continue
            fi = i.value.field_info or NO_SHAPE
            ti = type_info(i)
            if (
                fi.stmt and ti.stmt
                or fi.expr and ti.expr
                or fi.block and ti.block
                or fi.decl and i.kind is Tag.VariableDeclaration
            ):
                yield i
            elif fi.block and (ti.expr or ti.stmt):
                lab = s.label()
                yield s.enter(i.slot, Tag.BlockStatement)
                yield s.enter(Tag.body, Tag.Array)
                if ti.expr:
                    yield from value_stmt(Tag.push, i)
                else:
                    yield from subst(Tag.push, i)
                yield from lab()
            elif fi.stmt and ti.expr:
                yield from value_stmt(i.slot, i)
            elif fi.expr and ti.stmt:
                yield s.enter(i.slot, Tag.CallExpression)
                lab = s.label()
                yield s.enter(Tag.callee, Tag.ArrowFunctionExpression)
                yield s.tok(Tag.params, Tag.Array)
                if ti.block:
                    yield from subst(Tag.body, i)
                else:
                    yield s.enter(Tag.body, Tag.BlockStatement)
                    yield s.enter(Tag.body, Tag.Array)
                    yield from subst(Tag.push, i)
                yield from lab()
                yield s.tok(Tag.arguments, Tag.Array)
                yield from s.leave()
            else:
                yield i

    return walk()

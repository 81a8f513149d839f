"""Node-shape registry for the JavaScript subset handled by the engine.

For each node kind it records the ordered child fields, the grammatical
shape every field requires and the classification of the kind itself.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterator, List, Optional, Tuple

from .errors import ShapeError
from .symbols import CTRL, FIELD, NODE, Sym, Tag, symbol

__all__ = [
    "Tag",
    "Shape",
    "NO_SHAPE",
    "Field",
    "KindInfo",
    "kind_info",
    "type_info",
    "is_node_kind",
    "node_fields",
    "field_of",
    "field_shape",
    "reset_field_info",
]


@dataclass(frozen=True)
class Shape:
    expr: bool = False
    stmt: bool = False
    block: bool = False
    decl: bool = False

    @classmethod
    def parse(cls, spec: str) -> "Shape":
        flags = {part for part in spec.split("|") if part}
        unknown = flags - {"expr", "stmt", "block", "decl"}
        if unknown:
            raise ValueError(f"unknown shape flags {sorted(unknown)}")
        return cls(**{flag: True for flag in flags})

    def __bool__(self) -> bool:
        return self.expr or self.stmt or self.block or self.decl


NO_SHAPE = Shape()


@dataclass(frozen=True)
class Field:
    name: str
    shape: Shape = NO_SHAPE
    array: bool = False

    @property
    def sym(self) -> Sym:
        return Tag[self.name]


@dataclass(frozen=True)
class KindInfo:
    kind: Sym
    expr: bool = False
    stmt: bool = False
    block: bool = False
    decl: bool = False
    ctrl: bool = False
    array: bool = False


def _field(spec: str) -> Field:
    """`"name:shape"`, or `"name:[shape]"` for array fields."""
    name, _, shape = spec.partition(":")
    array = shape.startswith("[")
    if array:
        shape = shape.strip("[]")
    return Field(name, Shape.parse(shape), array)


# kind -> (classification, fields in traversal order)
_NODES: Dict[str, Tuple[str, Tuple[str, ...]]] = {
    "Program": ("", ("body:[stmt]",)),
    "ExpressionStatement": ("stmt", ("expression:expr",)),
    "BlockStatement": ("stmt|block", ("body:[stmt]",)),
    "EmptyStatement": ("stmt", ()),
    "ReturnStatement": ("stmt", ("argument:expr",)),
    "IfStatement": ("stmt", ("test:expr", "consequent:stmt", "alternate:stmt")),
    "WhileStatement": ("stmt", ("test:expr", "body:stmt")),
    "ForStatement": ("stmt", ("init:expr|decl", "test:expr", "update:expr", "body:stmt")),
    "ThrowStatement": ("stmt", ("argument:expr",)),
    "BreakStatement": ("stmt", ("label",)),
    "ContinueStatement": ("stmt", ("label",)),
    "VariableDeclaration": ("stmt|decl", ("declarations:[]",)),
    "VariableDeclarator": ("", ("id", "init:expr")),
    "FunctionDeclaration": ("stmt|decl", ("id", "params:[]", "body:block")),
    "FunctionExpression": ("expr", ("id", "params:[]", "body:block")),
    "ArrowFunctionExpression": ("expr", ("params:[]", "body:block|expr")),
    "CallExpression": ("expr", ("callee:expr", "arguments:[expr]")),
    "MemberExpression": ("expr", ("object:expr", "property")),
    "AssignmentExpression": ("expr", ("left", "right:expr")),
    "BinaryExpression": ("expr", ("left:expr", "right:expr")),
    "LogicalExpression": ("expr", ("left:expr", "right:expr")),
    "UnaryExpression": ("expr", ("argument:expr",)),
    "ConditionalExpression": ("expr", ("test:expr", "consequent:expr", "alternate:expr")),
    "SequenceExpression": ("expr", ("expressions:[expr]",)),
    "ArrayExpression": ("expr", ("elements:[expr]",)),
    "ObjectExpression": ("expr", ("properties:[]",)),
    "ObjectProperty": ("", ("key", "value:expr")),
    "Identifier": ("expr", ()),
    "ThisExpression": ("expr", ()),
    "NumericLiteral": ("expr", ()),
    "StringLiteral": ("expr", ()),
    "BooleanLiteral": ("expr", ()),
    "NullLiteral": ("expr", ()),
}

_FIELDS: Dict[Sym, Tuple[Field, ...]] = {}
_KINDS: Dict[Sym, KindInfo] = {}

for _name, (_flags, _specs) in _NODES.items():
    _sym = symbol(_name, NODE)
    _fields = tuple(_field(spec) for spec in _specs)
    for _fld in _fields:
        symbol(_fld.name, FIELD)
    _FIELDS[_sym] = _fields
    _shape = Shape.parse(_flags)
    _KINDS[_sym] = KindInfo(
        _sym, expr=_shape.expr, stmt=_shape.stmt, block=_shape.block, decl=_shape.decl
    )

_KINDS[Tag.Array] = KindInfo(Tag.Array, array=True)
_KINDS[Tag.Null] = KindInfo(Tag.Null)


def kind_info(kind: Sym) -> KindInfo:
    """Classification flags of a kind; control tags are only `ctrl`."""
    info = _KINDS.get(kind)
    if info is not None:
        return info
    if kind.kind == CTRL:
        return KindInfo(kind, ctrl=True)
    raise ShapeError(f"unknown node kind {kind!r}")


def type_info(tok) -> KindInfo:
    """Classification of a token, honouring an explicit `value.type_info`."""
    value = tok.value
    if value is not None and value.type_info is not None:
        return value.type_info
    return kind_info(tok.kind)


def is_node_kind(kind: Sym) -> bool:
    return kind in _FIELDS


def node_fields(kind: Sym) -> Tuple[Field, ...]:
    try:
        return _FIELDS[kind]
    except KeyError:
        raise ShapeError(f"unknown node kind {kind!r}") from None


def field_of(kind: Sym, slot: Sym) -> Optional[Field]:
    for fld in _FIELDS.get(kind, ()):
        if fld.sym is slot:
            return fld
    return None


def field_shape(kind: Sym, slot: Sym) -> Shape:
    """Required shape of `slot` within a `kind` parent."""
    fld = field_of(kind, slot)
    return fld.shape if fld is not None else NO_SHAPE


def reset_field_info(s) -> Iterator:
    """Re-derive `value.field_info` of every token from its parent's fields.

    Elements of arrays take the element shape of the array's field and
    children of control tags inherit the control tag's own shape.
    """
    # shape handed down to the children of every open token
    stack: List[Tuple[Sym, Shape]] = []
    for i in s:
        if i.enter:
            shape, children = _slot_shapes(stack, i)
            i.value.field_info = shape
            if not i.leave:
                stack.append((i.kind, children))
        elif i.leave and stack:
            stack.pop()
        yield i


def _slot_shapes(stack: List[Tuple[Sym, Shape]], i) -> Tuple[Shape, Shape]:
    """(shape of `i` itself, shape passed to its children)."""
    if not stack:
        return NO_SHAPE, NO_SHAPE
    parent_kind, inherited = stack[-1]
    if parent_kind is Tag.Array or parent_kind.kind == CTRL:
        return inherited, inherited
    fld = field_of(parent_kind, i.slot)
    if fld is None:
        return NO_SHAPE, NO_SHAPE
    if fld.array and i.kind is Tag.Array:
        return NO_SHAPE, fld.shape
    return fld.shape, fld.shape

"""
Template compiler for code insertion.

Template text is JavaScript parsed with a small lark grammar into
Babel-style dict nodes. A leading sigil selects what the template denotes:

    "=..."  a single expression
    "*..."  a list of statements
    ">..."  a variable declarator written as `id = init`
    "..."   a single statement

Placeholders are the identifiers `$$` (statement or expression) and `$E`
(expression only). Compiled templates are cached by their text.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional

from lark import Lark, Transformer, v_args
from lark.exceptions import UnexpectedCharacters, UnexpectedEOF, UnexpectedInput, UnexpectedToken

from .errors import TemplateSyntaxError
from .symbols import Sym
from .tokens import Token, clone
from .tree import produce

logger = logging.getLogger(__name__)

STMT_PLACEHOLDER = "$$"
EXPR_PLACEHOLDER = "$E"
PLACEHOLDERS = frozenset({STMT_PLACEHOLDER, EXPR_PLACEHOLDER})

SIGILS = "=*>"

GRAMMAR_PATH = Path(__file__).parent / "template.lark"

_ESCAPES = {"n": "\n", "t": "\t", "r": "\r", "b": "\b", "f": "\f", "v": "\v", "0": "\0"}

_ESCAPE_RE = re.compile(r"\\(u\{[0-9a-fA-F]+\}|u[0-9a-fA-F]{4}|x[0-9a-fA-F]{2}|.)", re.DOTALL)


def _unescape(m: "re.Match[str]") -> str:
    esc = m.group(1)
    if esc.startswith("u{"):
        return chr(int(esc[2:-1], 16))
    if len(esc) > 1:
        return chr(int(esc[1:], 16))
    return _ESCAPES.get(esc, esc)


def js_string(literal: str) -> str:
    """Value of a quoted JavaScript string literal."""
    text = _ESCAPE_RE.sub(_unescape, literal[1:-1])
    # `\uD83D\uDE00` style surrogate pairs combine into one character
    return text.encode("utf-16", "surrogatepass").decode("utf-16", "surrogatepass")


# ============================================================================
# Parser
# ============================================================================

_parser: Optional[Lark] = None


def get_parser() -> Lark:
    global _parser

    if _parser is None:
        _parser = Lark(
            GRAMMAR_PATH.read_text(encoding="utf-8"),
            parser="earley",
            lexer="basic",
            start="start",
            maybe_placeholders=False,
            propagate_positions=True,
        )
    return _parser


def _loc(line: int, column: int, end_line: int, end_column: int) -> Dict[str, Any]:
    # babel columns are 0-based, lark's are 1-based
    return {
        "start": {"line": line, "column": column - 1},
        "end": {"line": end_line, "column": end_column - 1},
    }


@v_args(inline=True, meta=True)
class _ToNodes(Transformer):
    """Builds Babel-style dict nodes from the parse tree."""

    def __init__(self, locations: bool):
        super().__init__(visit_tokens=False)
        self.locations = locations

    def _node(self, meta, type_: str, **fields: Any) -> Dict[str, Any]:
        node: Dict[str, Any] = {"type": type_, **fields}
        if self.locations and not getattr(meta, "empty", True):
            node["loc"] = _loc(meta.line, meta.column, meta.end_line, meta.end_column)
        return node

    def _ident(self, tok) -> Dict[str, Any]:
        node: Dict[str, Any] = {"type": "Identifier", "name": str(tok)}
        if self.locations and tok.line is not None:
            node["loc"] = _loc(tok.line, tok.column, tok.end_line, tok.end_column)
        return node

    # statements

    def start(self, meta, *body):
        return self._node(meta, "Program", body=list(body))

    def block(self, meta, *body):
        return self._node(meta, "BlockStatement", body=list(body))

    def empty_statement(self, meta):
        return self._node(meta, "EmptyStatement")

    def expression_statement(self, meta, expression):
        return self._node(meta, "ExpressionStatement", expression=expression)

    def var_kind(self, meta, tok):
        return str(tok)

    def var_declaration(self, meta, kind, *declarations):
        return self._node(meta, "VariableDeclaration", kind=kind, declarations=list(declarations))

    def declarator(self, meta, name, init=None):
        return self._node(meta, "VariableDeclarator", id=self._ident(name), init=init)

    def return_statement(self, meta, argument=None):
        return self._node(meta, "ReturnStatement", argument=argument)

    def throw_statement(self, meta, argument):
        return self._node(meta, "ThrowStatement", argument=argument)

    def break_statement(self, meta):
        return self._node(meta, "BreakStatement", label=None)

    def continue_statement(self, meta):
        return self._node(meta, "ContinueStatement", label=None)

    def if_statement(self, meta, test, consequent, alternate=None):
        return self._node(meta, "IfStatement", test=test, consequent=consequent, alternate=alternate)

    def while_statement(self, meta, test, body):
        return self._node(meta, "WhileStatement", test=test, body=body)

    def for_statement(self, meta, init, test, update, body):
        return self._node(meta, "ForStatement", init=init, test=test, update=update, body=body)

    def for_init(self, meta, node=None):
        return node

    for_test = for_init
    for_update = for_init

    def function_declaration(self, meta, name, params, body):
        return self._node(meta, "FunctionDeclaration", id=self._ident(name), params=params, body=body)

    def params(self, meta, *names):
        return [self._ident(name) for name in names]

    # expressions

    def expression(self, meta, *expressions):
        return self._node(meta, "SequenceExpression", expressions=list(expressions))

    def assignment_expression(self, meta, left, operator, right):
        return self._node(meta, "AssignmentExpression", operator=operator, left=left, right=right)

    def arrow_function(self, meta, params, body):
        return self._node(meta, "ArrowFunctionExpression", params=params, body=body)

    def single_param(self, meta, name):
        return [self._ident(name)]

    def arrow_params(self, meta, params):
        return params

    def conditional_expression(self, meta, test, consequent, alternate):
        return self._node(
            meta, "ConditionalExpression", test=test, consequent=consequent, alternate=alternate
        )

    def logical_expression(self, meta, left, operator, right):
        return self._node(meta, "LogicalExpression", operator=operator, left=left, right=right)

    def binary_expression(self, meta, left, operator, right):
        return self._node(meta, "BinaryExpression", operator=operator, left=left, right=right)

    def unary_expression(self, meta, operator, argument):
        return self._node(meta, "UnaryExpression", operator=operator, prefix=True, argument=argument)

    def _op(self, meta, tok):
        return str(tok)

    assign_op = or_op = and_op = eq_op = rel_op = add_op = mul_op = unary_op = _op

    def member_expression(self, meta, obj, name):
        return self._node(meta, "MemberExpression", object=obj, property=self._ident(name), computed=False)

    def computed_member_expression(self, meta, obj, prop):
        return self._node(meta, "MemberExpression", object=obj, property=prop, computed=True)

    def call_expression(self, meta, callee, arguments):
        return self._node(meta, "CallExpression", callee=callee, arguments=arguments)

    def arguments(self, meta, *args):
        return list(args)

    def identifier(self, meta, name):
        return self._ident(name)

    def number(self, meta, tok):
        text = str(tok)
        if text[:2] in ("0x", "0X"):
            value: Any = int(text, 16)
        else:
            value = float(text)
            if value.is_integer() and not any(c in text for c in ".eE"):
                value = int(text)
        return self._node(meta, "NumericLiteral", value=value)

    def string(self, meta, tok):
        return self._node(meta, "StringLiteral", value=js_string(str(tok)))

    def true(self, meta):
        return self._node(meta, "BooleanLiteral", value=True)

    def false(self, meta):
        return self._node(meta, "BooleanLiteral", value=False)

    def null(self, meta):
        return self._node(meta, "NullLiteral")

    def this(self, meta):
        return self._node(meta, "ThisExpression")

    def array(self, meta, *elements):
        return self._node(meta, "ArrayExpression", elements=list(elements))

    def object(self, meta, *properties):
        return self._node(meta, "ObjectExpression", properties=list(properties))

    def property(self, meta, key, value):
        if key.type == "NAME":
            key_node = self._ident(key)
        else:
            key_node = {"type": "StringLiteral", "value": js_string(str(key))}
        return self._node(
            meta, "ObjectProperty", key=key_node, value=value, computed=False, shorthand=False
        )

    def function_expression(self, meta, *children):
        *name, params, body = children
        ident = self._ident(name[0]) if name else None
        return self._node(meta, "FunctionExpression", id=ident, params=params, body=body)


def parse_program(text: str, locations: bool = True) -> Dict[str, Any]:
    """Parse `text` into a `Program` node."""
    try:
        tree = get_parser().parse(text)
    except UnexpectedInput as exc:
        # end of input errors carry no position
        line = exc.line if isinstance(exc.line, int) and exc.line > 0 else None
        column = exc.column if line is not None else None
        raise TemplateSyntaxError(_describe(exc), line, column) from exc
    return _ToNodes(locations).transform(tree)


def _describe(exc: UnexpectedInput) -> str:
    if isinstance(exc, UnexpectedCharacters):
        return f"unexpected character {exc.char!r}"
    if isinstance(exc, UnexpectedToken):
        return f"unexpected token {str(exc.token)!r}"
    if isinstance(exc, UnexpectedEOF):
        return "unexpected end of template"
    return "invalid template"


# ============================================================================
# Compilation
# ============================================================================

_memo: Dict[str, Any] = {}


def compile_template(text: str) -> Any:
    """Tree denoted by template `text`, memoized for the process lifetime."""
    res = _memo.get(text)
    if res is not None:
        return res

    mod = text[0] if text and text[0] in SIGILS else None
    source = text[1:] if mod else text
    logger.debug("compiling template %r", text)
    body = parse_program(source, locations=False)["body"]

    if mod != "*" and len(body) != 1:
        raise TemplateSyntaxError(f"template {text!r} must contain exactly one statement")

    if mod == "=":
        res = _expression_of(text, body[0])
    elif mod == ">":
        expr = _expression_of(text, body[0])
        if expr["type"] != "AssignmentExpression" or expr["operator"] != "=":
            raise TemplateSyntaxError(f"template {text!r} is not a declarator")
        res = {"type": "VariableDeclarator", "id": expr["left"], "init": expr["right"]}
    elif mod == "*":
        res = body
    else:
        res = body[0]

    _memo[text] = res
    return res


def _expression_of(text: str, stmt: Dict[str, Any]) -> Dict[str, Any]:
    if stmt["type"] != "ExpressionStatement":
        raise TemplateSyntaxError(f"template {text!r} is not an expression")
    return stmt["expression"]


def toks(slot: Sym, s: Any) -> Iterator[Token]:
    """Fresh tokens for a template text, a node, a node list or a token list."""
    if isinstance(s, str):
        s = compile_template(s)
    if isinstance(s, list):
        if s and isinstance(s[0], Token):
            yield from clone(s)
            return
        for node in s:
            yield from clone(produce(node, slot))
        return
    yield from clone(produce(s, slot))


def template_nodes(text: str) -> List[Dict[str, Any]]:
    """Compiled template as a list of nodes (statement lists stay lists)."""
    res = compile_template(text)
    return list(res) if isinstance(res, list) else [res]

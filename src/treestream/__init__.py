"""Streaming enter/leave token model for composable syntax tree rewrites."""

from .coerce import MakeExpr, MakeStmt, adjust_field_type, make_expr_pass
from .diagnostics import CodeFrameReporter
from .errors import (
    InferenceError,
    PlaceholderNotFound,
    ProtocolError,
    ShapeError,
    StreamError,
    TemplateSyntaxError,
    TransformError,
)
from .kit import (
    checkpoint,
    checkpoint_lazy,
    pipeline,
    skip,
    transform,
    wrap,
)
from .options import Options, get_opts, opts_scope, opts_scope_lift, set_opts
from .shapes import Tag, kind_info, reset_field_info, type_info
from .stream import auto, levels, lookahead, output
from .subst import Subst, complete_subst
from .symbols import symbol
from .templates import compile_template, parse_program, toks
from .tokens import Token, Value, clone, set_kind, set_slot
from .tree import consume, produce
from .verify import verify

__version__ = "0.1.0"

__all__ = [
    "MakeExpr",
    "MakeStmt",
    "adjust_field_type",
    "make_expr_pass",
    "CodeFrameReporter",
    "InferenceError",
    "PlaceholderNotFound",
    "ProtocolError",
    "ShapeError",
    "StreamError",
    "TemplateSyntaxError",
    "TransformError",
    "checkpoint",
    "checkpoint_lazy",
    "pipeline",
    "skip",
    "transform",
    "wrap",
    "Options",
    "get_opts",
    "opts_scope",
    "opts_scope_lift",
    "set_opts",
    "Tag",
    "kind_info",
    "reset_field_info",
    "type_info",
    "auto",
    "levels",
    "lookahead",
    "output",
    "Subst",
    "complete_subst",
    "symbol",
    "compile_template",
    "parse_program",
    "toks",
    "Token",
    "Value",
    "clone",
    "set_kind",
    "set_slot",
    "consume",
    "produce",
    "verify",
]

"""Composable cursor layers over token streams.

Layers stack in a fixed order, each relying on the one below it:
lookahead -> level -> output -> peel -> template.
"""

from __future__ import annotations

from typing import Dict, Iterable, Tuple

from ..tokens import Token
from .level import LevelMixin
from .lookahead import ArrayLookahead, ExtIterator, Lookahead, NoInput
from .output import CtrlTok, CtrlTokGen, OutputMixin, StoredTok
from .peel import V_CLOSE, PeelMixin
from .template import TemplateMixin

_CLASSES: Dict[Tuple[bool, ...], type] = {}


def stream_class(
    *,
    input: bool = False,
    arr: bool = False,
    level: bool = False,
    output: bool = False,
    peel: bool = False,
    template: bool = False,
) -> type:
    """Compose a cursor class from the requested capabilities."""
    key = (input, arr, level, output, peel, template)
    cls = _CLASSES.get(key)
    if cls is not None:
        return cls

    if input or level or peel:
        base: type = ArrayLookahead if arr else Lookahead
    else:
        base = NoInput

    layers = []
    names = []
    if template:
        layers.append(TemplateMixin)
        names.append("Template")
    if peel:
        layers.append(PeelMixin)
        names.append("Peel")
    if template or output or peel:
        layers.append(OutputMixin)
        names.append("Output")
    if peel or level:
        layers.append(LevelMixin)
        names.append("Level")

    name = "".join(names) + base.__name__
    cls = type(name, (*layers, base), {})
    _CLASSES[key] = cls
    return cls


LookaheadStream = stream_class(input=True)
LevelStream = stream_class(level=True)
AutoStream = stream_class(peel=True, template=True)
AutoArrStream = stream_class(peel=True, template=True, arr=True)
OutputStream = stream_class(template=True)


def lookahead(s: Iterable[Token]):
    return LookaheadStream(s)


def levels(s: Iterable[Token]):
    return LevelStream(s)


def auto(s: Iterable[Token]):
    """Cursor with every capability: level, output, peel and template."""
    if isinstance(s, list):
        return AutoArrStream(s)
    return AutoStream(s)


def output():
    """Output-only stream for building tokens without an input."""
    return OutputStream()


__all__ = [
    "ExtIterator",
    "Lookahead",
    "ArrayLookahead",
    "NoInput",
    "LevelMixin",
    "OutputMixin",
    "PeelMixin",
    "TemplateMixin",
    "StoredTok",
    "CtrlTok",
    "CtrlTokGen",
    "V_CLOSE",
    "stream_class",
    "LookaheadStream",
    "LevelStream",
    "AutoStream",
    "AutoArrStream",
    "OutputStream",
    "lookahead",
    "levels",
    "auto",
    "output",
]

"""Interned tags used for token slots and kinds.

Node kinds and field names are registered by `treestream.shapes`; control
tags (placeholders, shape markers) are created with `symbol`.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict

NODE = "node"
FIELD = "field"
CTRL = "ctrl"
SPECIAL = "special"


@dataclass(frozen=True, eq=False)
class Sym:
    name: str
    kind: str

    def __repr__(self) -> str:
        return f"<{self.name}>" if self.kind == CTRL else self.name


_REGISTRY: Dict[str, Sym] = {}


def symbol(name: str, kind: str = CTRL) -> Sym:
    """Return the interned tag `name`, registering it on first use."""
    sym = _REGISTRY.get(name)
    if sym is not None:
        if sym.kind != kind:
            raise ValueError(f"tag {name!r} already registered as {sym.kind}")
        return sym
    sym = Sym(name, kind)
    _REGISTRY[name] = sym
    return sym


def is_ctrl(sym: object) -> bool:
    return isinstance(sym, Sym) and sym.kind == CTRL


class _Tags:
    """Attribute and item access to registered tags: `Tag.body`, `Tag["If"]`."""

    def __getattr__(self, name: str) -> Sym:
        try:
            return _REGISTRY[name]
        except KeyError:
            raise AttributeError(f"unknown tag {name!r}") from None

    def __getitem__(self, name: str) -> Sym:
        return _REGISTRY[name]

    def __contains__(self, name: object) -> bool:
        return name in _REGISTRY

    def get(self, name: str) -> Sym | None:
        return _REGISTRY.get(name)


Tag = _Tags()

# pseudo slot for array elements, the default root slot and the two
# structural pseudo kinds
symbol("push", FIELD)
symbol("top", FIELD)
symbol("Array", SPECIAL)
symbol("Null", SPECIAL)

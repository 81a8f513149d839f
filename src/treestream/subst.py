"""Substitution markers: reserve a position now, fill it later.

A `Subst` control token wraps content that belongs at the marker's own
slot. `complete_subst` removes the markers and re-slots their content,
recursively for markers nested directly inside other markers.
"""

from __future__ import annotations

from typing import Iterable, Iterator

from .stream import auto
from .symbols import Sym, symbol
from .tokens import Token, set_slot

Subst = symbol("Subst")


def complete_subst(s: Iterable[Token]) -> Iterator[Token]:
    sl = auto(s)

    def subst(slot: Sym) -> Iterator[Token]:
        for i in sl.sub():
            if i.kind is Subst:
                if i.is_open:
                    yield from subst(slot)
            else:
                yield sl.peel(set_slot(i, slot))
                yield from walk()
                yield from sl.leave()

    def walk() -> Iterator[Token]:
        for i in sl.sub():
            if i.kind is Subst:
                # an empty marker expands to nothing
                if i.is_open:
                    yield from subst(i.slot)
            else:
                yield i

    yield from walk()

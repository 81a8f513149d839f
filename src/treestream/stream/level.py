from __future__ import annotations

from typing import Generator, Optional

from typing_extensions import TypeAlias

from ..errors import InferenceError
from ..symbols import Sym
from ..tokens import Token

TokenGen: TypeAlias = Generator[Token, None, Optional[Token]]


def _one(t: "LevelMixin") -> TokenGen:
    c = t.peek()
    if c is None or not c.enter:
        return None
    exit_level = t.level
    i = None
    for i in t:
        yield i
        if exit_level >= t.level:
            return i
    return i


def _sub(t: "LevelMixin") -> TokenGen:
    c = t.peek()
    if c is None or not c.enter:
        return None
    exit_level = t.level
    i = None
    for i in t:
        yield i
        if exit_level >= t.level:
            c = t.peek()
            if c is None or not c.enter or exit_level > t.level:
                return i
    return i


class LevelMixin:
    """Tracks nesting depth of the consumed tokens in `level`."""

    def __init__(self, *args):
        super().__init__(*args)
        self.level = 0

    def take(self) -> Optional[Token]:
        c = super().take()
        if c is None:
            return None
        if c.enter:
            self.level += 1
        if c.leave:
            self.level -= 1
        return c

    def one(self) -> TokenGen:
        """Exactly the next subtree, including its close token."""
        return _one(self)

    def sub(self) -> TokenGen:
        """The run of sibling subtrees starting at the lookahead."""
        return _sub(self)

    def current(self) -> Optional[Token]:
        """The lookahead if it opens a subtree at this level."""
        v = self.peek()
        if v is None or not v.enter:
            return None
        return v

    def until_slot(self, slot: Sym) -> TokenGen:
        """Pass through sibling subtrees until one at `slot` (not consumed)."""
        while True:
            i = self.current()
            if i is None or i.slot is slot:
                return i
            yield from _one(self)

    def find_slot(self, slot: Sym) -> TokenGen:
        """Like `until_slot` but also consumes the found opener."""
        i = yield from self.until_slot(slot)
        if i is not None:
            self.take()
        return i

    def to_slot(self, slot: Sym) -> TokenGen:
        """`find_slot` that requires the slot and re-emits its opener."""
        p = yield from self.find_slot(slot)
        if p is None:
            raise InferenceError(f"cannot find slot {slot!r}")
        yield p
        return p

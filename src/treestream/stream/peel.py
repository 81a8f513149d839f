from __future__ import annotations

from typing import Iterator, Optional

from ..errors import InferenceError, ProtocolError
from ..symbols import Sym
from ..tokens import Token
from .level import TokenGen
from .output import CtrlTok


def _skip_close(expected: Token) -> CtrlTok:
    """The real close of a peeled subtree is still in the input: consume it."""

    def run(t) -> None:
        j = t.take()
        if j is None or not j.closes(expected):
            raise ProtocolError(
                f"expected close of {expected!r}, got {j!r}", expected.value.node
            )

    return CtrlTok(run, "skip")


# the peeled token was a leaf: there is nothing to consume
V_CLOSE = CtrlTok(lambda t: None, "close")


class PeelMixin:
    """Partially opens subtrees so their children can be handed elsewhere.

    While a virtual close is on top of the stack the peeled token had no
    children, so the level operations below yield nothing.
    """

    def peel(self, i: Optional[Token] = None) -> Token:
        """Open `i` (by default the next token) and defer its close."""
        if i is None:
            i = self.take()
        if i is None or not i.enter:
            raise ProtocolError(f"cannot peel {i!r}, an opener is expected")
        res = self.enter(i.slot, i.kind, i.value)
        self._stack.append(V_CLOSE if i.leave else _skip_close(i))
        return res

    def peel_to(self, slot: Sym) -> TokenGen:
        if self.stack_top is V_CLOSE:
            raise ProtocolError(f"cannot search for {slot!r} inside a leaf")
        i = yield from self.find_slot(slot)
        if i is None:
            raise InferenceError(f"cannot find slot {slot!r}")
        yield self.peel(i)
        return i

    def peel_opt(self) -> Optional[Token]:
        v = self.peek()
        if v is None or not v.enter:
            return None
        return self.peel()

    def one(self) -> TokenGen:
        if self.stack_top is not V_CLOSE:
            return (yield from super().one())
        return None

    def sub(self) -> TokenGen:
        if self.stack_top is not V_CLOSE:
            return (yield from super().sub())
        return None

    def find_slot(self, slot: Sym) -> TokenGen:
        if self.stack_top is not V_CLOSE:
            return (yield from super().find_slot(slot))
        return None

    def copy(self, i: Optional[Token] = None) -> Iterator[Token]:
        """Re-emit a whole subtree through the output stack."""
        yield self.peel(i)
        yield from self.sub()
        yield from self.leave()

    def close(self, expected: Token) -> None:
        """Consume the close of `expected` from the input."""
        j = self.take()
        if j is None or j.value.uid != expected.value.uid:
            raise ProtocolError(
                f"expected close of {expected!r}, got {j!r}", expected.value.node
            )

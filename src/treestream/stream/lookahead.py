"""Pull cursors over token sources with a single token of lookahead."""

from __future__ import annotations

from typing import Any, Iterable, Iterator, List, Optional

from ..errors import ProtocolError, StreamError, has_loc
from ..options import get_opts
from ..tokens import Token

_END = object()


class ExtIterator:
    """Iterator protocol on top of `take`, which returns `None` when done."""

    name: Optional[str] = None

    def __iter__(self) -> Iterator[Token]:
        return self

    def __next__(self) -> Token:
        c = self.take()
        if c is None:
            raise StopIteration
        return c

    def take(self) -> Optional[Token]:
        raise NotImplementedError

    def peek(self) -> Optional[Token]:
        raise NotImplementedError

    def error(self, message: str, node: Any = None) -> StreamError:
        """Build an error for `node`.

        Without a positioned node the rest of the stream is scanned for the
        nearest one, so the cursor is exhausted afterwards.
        """
        if self.name is not None:
            message = f"{message} during {self.name}"
        if node is None or not has_loc(node):
            message += " (the position is approximated)"
            for i in self:
                candidate = i.value.node if i.value is not None else None
                if has_loc(candidate):
                    node = candidate
                    break
        return StreamError(message, node)


class Lookahead(ExtIterator):
    """Wraps any token iterable and keeps the next token in `peek()`.

    The source must produce at least one token. `opts` follows the options
    snapshot of the most recently consumed token.
    """

    def __init__(self, cont: Iterable[Token]):
        self._inner = iter(cont)
        self._cur: Any = next(self._inner, _END)
        if self._cur is _END:
            raise ProtocolError("input iterator should be not-empty")
        self.first: Token = self._cur
        first_opts = self.first.value.opts if self.first.value is not None else None
        self.opts = first_opts if first_opts is not None else get_opts()

    def take(self) -> Optional[Token]:
        cur = self._cur
        if cur is _END:
            return None
        if cur.value is not None and cur.value.opts is not None:
            self.opts = cur.value.opts
        self._cur = next(self._inner, _END)
        return cur

    def peek(self) -> Optional[Token]:
        return None if self._cur is _END else self._cur


class ArrayLookahead(ExtIterator):
    """`Lookahead` specialised for token lists, indexing instead of iterating."""

    def __init__(self, cont: List[Token]):
        if not cont:
            raise ProtocolError("input iterator should be not-empty")
        self._cont = cont
        self._x = 0
        self.first = cont[0]
        first_opts = self.first.value.opts if self.first.value is not None else None
        self.opts = first_opts if first_opts is not None else get_opts()

    def take(self) -> Optional[Token]:
        if self._x >= len(self._cont):
            return None
        c = self._cont[self._x]
        self._x += 1
        if c.value is not None and c.value.opts is not None:
            self.opts = c.value.opts
        return c

    def peek(self) -> Optional[Token]:
        return self._cont[self._x] if self._x < len(self._cont) else None


class NoInput(ExtIterator):
    """Base for output-only streams that construct tokens without a source."""

    def __init__(self) -> None:
        self.opts = get_opts()

    def take(self) -> Optional[Token]:
        return None

    def peek(self) -> Optional[Token]:
        return None

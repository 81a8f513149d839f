"""Generic helpers for writing passes over token streams."""

from __future__ import annotations

import logging
from typing import Any, Callable, Iterable, Iterator, List, Optional

from typing_extensions import TypeAlias

from .errors import StreamError, TransformError, has_loc
from .options import Options, get_opts, opts_scope
from .shapes import Tag
from .stream import auto
from .subst import Subst
from .tokens import Token
from .tree import consume, produce

logger = logging.getLogger(__name__)

Pass: TypeAlias = Callable[[Iterable[Token]], Iterable[Token]]
Pred: TypeAlias = Callable[[Token], bool]

APPROXIMATED = " (the position is approximated)"


def skip(s: Iterable[Any]) -> Any:
    """Exhaust `s` and return the generator's return value."""
    return result(s, None)


def result(s: Iterable[Any], buf: Optional[List[Any]]) -> Any:
    """Exhaust `s` into `buf` and return the generator's return value."""
    it = iter(s)
    while True:
        try:
            i = next(it)
        except StopIteration as stop:
            return stop.value
        if buf is not None:
            buf.append(i)


def to_list(s: Iterable[Any]) -> List[Any]:
    return s if isinstance(s, list) else list(s)


def till(pred: Pred, s: Iterable[Token]) -> Iterator[Token]:
    """Tokens up to and including the first one matching `pred`."""
    for i in s:
        yield i
        if pred(i):
            return i
    return None


def till_level(level: int, s) -> Iterator[Token]:
    """Tokens until a close brings the stream back to `level`."""
    for i in s:
        yield i
        if i.leave and s.level == level:
            return


def find(pred: Pred, s) -> Iterator[Token]:
    """Pass tokens through until the lookahead matches `pred`.

    Returns `True` if a match is waiting in the lookahead.
    """
    c = s.peek()
    if c is not None and pred(c):
        return True
    for i in s:
        yield i
        c = s.peek()
        if c is not None and pred(c):
            return True
    return False


def concat(*streams: Iterable[Token]) -> Iterator[Token]:
    for s in streams:
        yield from s


class share:
    """Read-only view of a single iterator.

    Every loop over the view continues where the previous one stopped.
    """

    def __init__(self, s: Iterable[Token]):
        self._it = iter(s)

    def __iter__(self) -> "share":
        return self

    def __next__(self) -> Token:
        return next(self._it)


def tee(s: Iterable[Token], buf: Optional[List[Token]] = None) -> Iterator[Token]:
    """Copy the stream into `buf` while passing it through."""
    if buf is None:
        buf = []
    for i in s:
        yield i
        buf.append(i)
    return buf


def has_annot(node: Any, name: str) -> bool:
    """`node` has a leading comment whose text is exactly `name`."""
    if not isinstance(node, dict):
        return False
    comments = node.get("leadingComments") or ()
    return any(str(c.get("value", "")).strip() == name for c in comments)


def _block_ahead(s) -> bool:
    i = s.peek()
    return i is not None and i.kind is Tag.BlockStatement


def to_block_body(s) -> Iterator[Token]:
    """Start emitting the current statement as items of a block body.

    A block in the lookahead is unwrapped so its statements go directly to
    the enclosing body, anything else is wrapped into a `Subst` marker.
    Returns a generator function that finishes the started frame.
    """
    lab = s.label()
    if _block_ahead(s):
        s.peel()
        skip(s.peel_to(Tag.body))

        def finish() -> Iterator[Token]:
            skip(lab())
            yield from ()

        return finish
    yield s.enter(Tag.push, Subst)
    return lab


def in_block_body(s, inner: Iterable[Token]) -> Iterator[Token]:
    """Emit `inner` in place of the current block's body items."""
    lab = s.label()
    if _block_ahead(s):
        s.peel()
        skip(s.peel_to(Tag.body))
        yield from inner
        skip(lab())
    else:
        yield s.enter(Tag.push, Subst)
        yield from inner
        yield from lab()


# ============================================================================
# Error interception
# ============================================================================


def _message(exc: BaseException) -> str:
    return exc.message if isinstance(exc, StreamError) else str(exc)


def _best_node(*candidates: Any) -> Any:
    """First candidate with a source position, else the first one given."""
    fallback = None
    for node in candidates:
        if has_loc(node):
            return node
        if fallback is None and node is not None:
            fallback = node
    return fallback


def _scan(rest: Optional[Iterable[Token]]) -> Any:
    """Nearest positioned node further in the stream."""
    if rest is None:
        return None
    for i in rest:
        if i.value is not None and has_loc(i.value.node):
            return i.value.node
    return None


def _intercept(
    exc: Exception,
    name: str,
    node: Any,
    rest: Optional[Iterable[Token]],
    reporter: Any,
) -> Optional[Exception]:
    """Locate `exc`; returns a replacement exception or `None` to re-raise."""
    if isinstance(exc, TransformError):
        return None
    approximated = False
    if not has_loc(node):
        scanned = _scan(rest)
        if scanned is not None:
            node, approximated = scanned, True
    logger.debug("%s failed at %r: %s", name, node, _message(exc))

    if reporter is not None:
        if node is None:
            node = getattr(reporter, "root", None)
        msg = f"{_message(exc)} during {name}"
        if approximated:
            msg += APPROXIMATED
        return reporter.build_error(node, msg)

    if isinstance(exc, StreamError):
        exc.locate(node, name)
        if approximated:
            exc.add_note("the position is approximated")
    else:
        exc.add_note(f"during {name}")
    return None


def wrap(name: str, fun: Callable[[Any], Iterable[Token]]) -> Pass:
    """Run `fun` over a full capability stream, locating its failures.

    A failure is attributed to the node of the exception, else to the last
    emitted token, else to the next positioned node in the input.
    """

    def run(s: Iterable[Token]) -> Iterator[Token]:
        reporter = get_opts().reporter
        si = auto(s)
        si.name = name
        it = iter(fun(si))
        last: Optional[Token] = None
        try:
            while True:
                try:
                    i = next(it)
                except StopIteration as stop:
                    return stop.value
                last = i
                yield i
        except Exception as exc:
            node = _best_node(
                getattr(exc, "node", None), last.value.node if last is not None else None
            )
            replacement = _intercept(exc, name, node, si, reporter)
            if replacement is not None:
                raise replacement from exc
            raise

    run.__name__ = name
    return run


def checkpoint_lazy(name: str, s: Iterable[Token]) -> Iterator[Token]:
    """Pass `s` through, locating failures raised while producing it."""
    reporter = get_opts().reporter
    it = iter(s)
    i: Optional[Token] = None
    last_loc = None
    try:
        while True:
            try:
                i = next(it)
            except StopIteration as stop:
                return stop.value
            if i.enter and i.value is not None and has_loc(i.value.node):
                last_loc = i.value.node
            yield i
    except Exception as exc:
        node = _best_node(
            getattr(exc, "node", None), i.value.node if i is not None else None, last_loc
        )
        replacement = _intercept(exc, name, node, None, reporter)
        if replacement is not None:
            raise replacement from exc
        raise


def checkpoint(name: str, s: Iterable[Token]) -> List[Token]:
    return list(checkpoint_lazy(name, s))


# ============================================================================
# Running passes
# ============================================================================


def pipeline(*passes: Pass) -> Pass:
    """Compose passes left to right."""

    def run(s: Iterable[Token]) -> Iterable[Token]:
        for p in passes:
            s = p(s)
        return s

    return run


def transform(pass_: Pass, ast: Any, opts: Optional[Options] = None) -> Any:
    """Run `pass_` over the tree `ast` and return the rebuilt tree.

    The options are scoped to the call, `None` keeps the current ones.
    """
    with opts_scope(opts):
        return consume(pass_(produce(ast))).top


__all__ = [
    "Pass",
    "skip",
    "result",
    "to_list",
    "till",
    "till_level",
    "find",
    "concat",
    "share",
    "tee",
    "has_annot",
    "to_block_body",
    "in_block_body",
    "wrap",
    "checkpoint_lazy",
    "checkpoint",
    "pipeline",
    "transform",
]

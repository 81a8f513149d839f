"""Ambient options threaded through passes.

The current `Options` behave as dynamically scoped state: a pass may
replace them for the duration of a scope and the previous value is
restored on every exit path.
"""

from __future__ import annotations

import functools
import inspect
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterator, Optional, TypeVar

F = TypeVar("F", bound=Callable[..., Any])


@dataclass
class Options:
    """Caller supplied options; the engine itself only reads `reporter`."""

    args: Dict[str, Any] = field(default_factory=dict)
    file: Dict[str, Any] = field(default_factory=dict)
    reporter: Optional[Any] = None


# unset in a fresh context, so no Options instance is shared between contexts
_current: ContextVar[Optional[Options]] = ContextVar("treestream_opts", default=None)


def get_opts() -> Options:
    opts = _current.get()
    if opts is None:
        opts = Options()
        _current.set(opts)
    return opts


def set_opts(opts: Options) -> None:
    _current.set(opts)


@contextmanager
def opts_scope(opts: Optional[Options] = None) -> Iterator[Options]:
    """Run a block with `opts` (or the current options) restored afterwards."""
    saved = get_opts()
    try:
        if opts is not None:
            _current.set(opts)
        yield get_opts()
    finally:
        _current.set(saved)


def opts_scope_lift(fun: F) -> F:
    """Scope the options to each call of `fun`.

    For generator functions, passes included, the scope covers the
    generator's whole run instead of the call that creates it.
    """
    if inspect.isgeneratorfunction(fun):

        @functools.wraps(fun)
        def scoped_gen(*args: Any, **kwargs: Any) -> Any:
            with opts_scope():
                return (yield from fun(*args, **kwargs))

        return scoped_gen  # type: ignore[return-value]

    @functools.wraps(fun)
    def scoped(*args: Any, **kwargs: Any) -> Any:
        with opts_scope():
            return fun(*args, **kwargs)

    return scoped  # type: ignore[return-value]

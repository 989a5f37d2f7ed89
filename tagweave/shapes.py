"""Decorator shapes and the uniform invocation helpers.

Every decorator stored in a ``DecoratorRegistry`` is a *combinator*::

    combinator(func, tag_arg) -> composed_func

The four shape factories below lift a single-argument transform into a
combinator:

============  ==============================  ==============================
Shape         Transform signature             Composed behaviour
============  ==============================  ==============================
argument      ``(args: list) -> list``        rewrite positional args, call
return        ``(result) -> result``          call, rewrite the return value
pre           ``(args: list) -> signal``      ``signal is False`` skips call
post          ``(result) -> signal``          ``signal is False`` drops result
============  ==============================  ==============================

The short-circuit sentinel is exactly ``False`` (an identity check, not
truthiness): ``0``, ``None``, ``""`` and ``[]`` all let the call proceed.
A post transform's own return value is only a continue/suppress signal;
the real result is returned unchanged.

Keyword arguments are never shown to argument or pre transforms; they
are forwarded to the wrapped callable as given.

A raw combinator (any callable taking ``(func, tag_arg)``) can be
registered directly when none of the four shapes fit.
"""

from __future__ import annotations

import functools
from collections.abc import Callable, Mapping, Sequence
from typing import Any

Combinator = Callable[[Callable[..., Any], Any], Callable[..., Any]]
Transform = Callable[[Any], Any]


# ── Invocation helpers ───────────────────────────────


def call(func: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
    """Invoke *func* with a variadic argument list."""
    return apply(func, args, kwargs)


def apply(
    func: Callable[..., Any],
    args: Sequence[Any] = (),
    kwargs: Mapping[str, Any] | None = None,
) -> Any:
    """Invoke *func* with an explicit argument sequence."""
    if kwargs:
        return func(*args, **kwargs)
    return func(*args)


def passthrough(value: Any) -> Any:
    """Identity setter: the base unit of every property pipeline."""
    return value


_ASSIGNED = tuple(a for a in functools.WRAPPER_ASSIGNMENTS if a != "__doc__")


def wrap_unit(func: Callable[..., Any]) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
    """Copy the identity of *func* (name, module, qualname) onto a wrapper.

    Neither ``__doc__`` nor ``__dict__`` is copied: docstring and stamped
    tags stay on the original unit, so composing a composed callable
    again finds no tags and returns it unchanged.
    """
    # Classes and partials lack some attributes; update_wrapper skips those.
    return functools.wraps(func, assigned=_ASSIGNED, updated=())


# ── Shape factories ──────────────────────────────────


def argument_decorator(transform: Transform) -> Combinator:
    """Return a combinator that rewrites positional arguments before the call."""

    def combinator(func: Callable[..., Any], tag_arg: Any = None) -> Callable[..., Any]:
        @wrap_unit(func)
        def composed(*args: Any, **kwargs: Any) -> Any:
            new_args = transform(list(args))
            return apply(func, new_args, kwargs)

        return composed

    combinator.shape = "argument"  # type: ignore[attr-defined]
    combinator.transform = transform  # type: ignore[attr-defined]
    return combinator


def return_decorator(transform: Transform) -> Combinator:
    """Return a combinator that rewrites the return value after the call."""

    def combinator(func: Callable[..., Any], tag_arg: Any = None) -> Callable[..., Any]:
        @wrap_unit(func)
        def composed(*args: Any, **kwargs: Any) -> Any:
            return transform(apply(func, args, kwargs))

        return composed

    combinator.shape = "return"  # type: ignore[attr-defined]
    combinator.transform = transform  # type: ignore[attr-defined]
    return combinator


def pre_decorator(transform: Transform) -> Combinator:
    """Return a combinator that runs *transform* first and may skip the call."""

    def combinator(func: Callable[..., Any], tag_arg: Any = None) -> Callable[..., Any]:
        @wrap_unit(func)
        def composed(*args: Any, **kwargs: Any) -> Any:
            if transform(list(args)) is False:
                return None
            return apply(func, args, kwargs)

        return composed

    combinator.shape = "pre"  # type: ignore[attr-defined]
    combinator.transform = transform  # type: ignore[attr-defined]
    return combinator


def post_decorator(transform: Transform) -> Combinator:
    """Return a combinator that inspects the result and may suppress it."""

    def combinator(func: Callable[..., Any], tag_arg: Any = None) -> Callable[..., Any]:
        @wrap_unit(func)
        def composed(*args: Any, **kwargs: Any) -> Any:
            result = apply(func, args, kwargs)
            if transform(result) is False:
                return None
            return result

        return composed

    combinator.shape = "post"  # type: ignore[attr-defined]
    combinator.transform = transform  # type: ignore[attr-defined]
    return combinator


SHAPES: dict[str, Callable[[Transform], Combinator]] = {
    "argument": argument_decorator,
    "return": return_decorator,
    "pre": pre_decorator,
    "post": post_decorator,
}

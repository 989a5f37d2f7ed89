"""Exception hierarchy for tagweave.

All package errors inherit from ``TagweaveError`` so hosts can catch
them in one place.  Exceptions raised by a composed unit's own body, or
by a decorator's transform, are *never* wrapped in one of these: they
propagate unchanged so the caller sees the true failure origin.
"""

from __future__ import annotations

from typing import Any


class TagweaveError(Exception):
    """Base exception for all tagweave failures."""

    __slots__ = ()


class NotFoundError(TagweaveError, KeyError):
    """Raised when a decorator, unit, or member cannot be resolved."""

    __slots__ = ()

    def __str__(self) -> str:
        # KeyError.__str__ quotes the message; keep it readable.
        return str(self.args[0]) if self.args else ""


class DecoratorNotFoundError(NotFoundError):
    """Raised when a decorator name is not present in the registry."""

    __slots__ = ("name",)

    def __init__(self, name: str) -> None:
        super().__init__(f"Decorator {name!r} is not registered")
        self.name = name


class UnitNotFoundError(NotFoundError):
    """Raised when the inspector cannot resolve a unit or one of its members.

    Attributes
    ----------
    unit : Any
        The unit reference as given (callable, class, instance, or
        dotted path string).
    member : str | None
        The member name, when the failure concerns a method or property.
    """

    __slots__ = ("member", "unit")

    def __init__(self, unit: Any, member: str | None = None, detail: str = "") -> None:
        label = unit if isinstance(unit, str) else getattr(unit, "__qualname__", repr(unit))
        if member is None:
            msg = f"Cannot resolve unit {label!r}"
        else:
            msg = f"Cannot resolve member {member!r} of {label!r}"
        if detail:
            msg = f"{msg}: {detail}"
        super().__init__(msg)
        self.unit = unit
        self.member = member


class UnsupportedOperationError(TagweaveError, TypeError):
    """Raised when a wrapped instance is asked for a coercion it lacks.

    String conversion and direct invocation are forwarded to the
    original instance; if its class defines neither ``__str__`` nor
    ``__call__`` respectively, this error is raised instead.
    """

    __slots__ = ("operation", "type_name")

    def __init__(self, operation: str, type_name: str) -> None:
        super().__init__(f"{type_name!r} object does not support {operation}")
        self.operation = operation
        self.type_name = type_name


class TagConfigError(TagweaveError, ValueError):
    """Raised when a YAML tag file fails validation."""

    __slots__ = ()

"""Decorator registry: named combinators available to the composer.

A registry maps a decorator *name* to a *definition* -- a combinator
``(func, tag_arg) -> composed_func`` (see ``tagweave.shapes``).  Tags
on a unit are matched against these names at composition time.

Registration forms::

    reg.register("trace", combinator)            # ready-made combinator
    reg.register("trace", Hooks, "trace")        # lazy: Hooks.trace
    reg.register("trace", hooks_obj, "trace")    # lazy: hooks_obj.trace
    reg.register("trace", {"trace": fn}, "trace")  # mapping entry
    reg.register("pkg.mod.trace")                # by convention: dotted path

    reg.register_pre("guard", lambda args: bool(args))
    reg.register_return("upper", str.upper)

Last write wins: re-registering a name replaces its definition.

Thread-safety: a single ``threading.RLock`` guards both registration
and lookup, so a ``register`` and a concurrent ``compose`` never see a
half-updated store.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Iterable, Mapping
from types import ModuleType, SimpleNamespace
from typing import Any

from tagweave.exceptions import DecoratorNotFoundError, UnitNotFoundError
from tagweave.inspector import MetadataInspector, module_functions
from tagweave.references import MemberReference, NamedReference
from tagweave.shapes import (
    Combinator,
    Transform,
    argument_decorator,
    post_decorator,
    pre_decorator,
    return_decorator,
)

logger = logging.getLogger(__name__)

Definition = Callable[..., Any]


def _reference(source: Any, key: str | None, name: str) -> Definition:
    """Resolve the ``(source, key)`` registration forms to a callable."""
    if source is None:
        return NamedReference(name)
    if isinstance(source, str):
        return NamedReference(source)
    if isinstance(source, Mapping):
        lookup = name if key is None else key
        try:
            return source[lookup]
        except KeyError:
            raise UnitNotFoundError(source, member=lookup) from None
    if isinstance(source, SimpleNamespace):
        lookup = name if key is None else key
        try:
            return getattr(source, lookup)
        except AttributeError:
            raise UnitNotFoundError(source, member=lookup) from None
    if callable(source) and key is None:
        return source
    return MemberReference(source, name if key is None else key)


def extract_decorators(decorators: Any) -> dict[str, Definition]:
    """Normalise the bulk registration forms to ``{name: definition}``.

    - ``Mapping`` -- used as is
    - ``SimpleNamespace`` -- its attributes
    - iterable of strings -- each name maps to a ``NamedReference`` of itself
    - module -- every function defined in it, under its own name
    - any other class or object -- every method, as a lazy member reference
      (on a class only static and class methods are usable this way)
    """
    if isinstance(decorators, Mapping):
        return dict(decorators)
    if isinstance(decorators, SimpleNamespace):
        return dict(vars(decorators))
    if isinstance(decorators, ModuleType):
        return {f.__name__: f for f in module_functions(decorators)}
    if isinstance(decorators, Iterable) and not isinstance(decorators, str | bytes):
        names = list(decorators)
        if all(isinstance(n, str) for n in names):
            return {n: NamedReference(n) for n in names}
        msg = "a decorator sequence must contain only names"
        raise TypeError(msg)
    methods = MetadataInspector().get_members(decorators).methods
    return {m: MemberReference(decorators, m) for m in methods}


class DecoratorRegistry:
    """Thread-safe store of named decorator definitions.

    Parameters
    ----------
    decorators:
        Optional initial set, in any ``register_many`` form.
    """

    __slots__ = ("_decorators", "_lock")

    def __init__(self, decorators: Any = None) -> None:
        self._lock = threading.RLock()
        self._decorators: dict[str, Definition] = {}
        if decorators is not None:
            self.register_many(decorators)

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def register(self, name: str, decorator: Any = None, key: str | None = None) -> Definition:
        """Register *decorator* under *name* and return the stored definition.

        Parameters
        ----------
        name:
            Decorator name; also the tag name that selects it.
        decorator:
            A combinator; or a source object (class, instance, mapping,
            namespace) to read member *key* from; or ``None`` to treat
            *name* as a dotted path to a callable.
        key:
            Member or mapping key inside *decorator*.  Defaults to *name*.
        """
        if decorator is not None and key is None and callable(decorator):
            definition: Definition = decorator
        else:
            definition = _reference(decorator, key, name)
        with self._lock:
            replaced = name in self._decorators
            self._decorators[name] = definition
        logger.debug("%s decorator %r -> %r", "replaced" if replaced else "registered", name, definition)
        return definition

    def register_many(self, decorators: Any) -> None:
        """Register every entry of *decorators* (see ``extract_decorators``)."""
        entries = extract_decorators(decorators)
        with self._lock:
            self._decorators.update(entries)
        logger.debug("registered %d decorators: %s", len(entries), ", ".join(entries))

    def _register_shape(
        self, factory: Callable[[Transform], Combinator], name: str, transform: Any
    ) -> Definition:
        if transform is None or isinstance(transform, str):
            transform = NamedReference(transform or name)
        return self.register(name, factory(transform))

    def register_pre(self, name: str, transform: Any = None) -> Definition:
        """Register a pre decorator; *transform* ``is False`` skips the call."""
        return self._register_shape(pre_decorator, name, transform)

    def register_post(self, name: str, transform: Any = None) -> Definition:
        """Register a post decorator; *transform* ``is False`` drops the result."""
        return self._register_shape(post_decorator, name, transform)

    def register_argument(self, name: str, transform: Any = None) -> Definition:
        """Register an argument decorator rewriting positional arguments."""
        return self._register_shape(argument_decorator, name, transform)

    def register_return(self, name: str, transform: Any = None) -> Definition:
        """Register a return decorator rewriting the return value."""
        return self._register_shape(return_decorator, name, transform)

    def register_many_pre(self, transforms: Any) -> None:
        for name, transform in extract_decorators(transforms).items():
            self.register_pre(name, transform)

    def register_many_post(self, transforms: Any) -> None:
        for name, transform in extract_decorators(transforms).items():
            self.register_post(name, transform)

    def register_many_argument(self, transforms: Any) -> None:
        for name, transform in extract_decorators(transforms).items():
            self.register_argument(name, transform)

    def register_many_return(self, transforms: Any) -> None:
        for name, transform in extract_decorators(transforms).items():
            self.register_return(name, transform)

    def unregister(self, name: str) -> None:
        """Remove *name*; raises ``DecoratorNotFoundError`` if absent."""
        with self._lock:
            try:
                del self._decorators[name]
            except KeyError:
                raise DecoratorNotFoundError(name) from None

    def clear(self) -> None:
        """Remove all decorators (primarily for test isolation)."""
        with self._lock:
            self._decorators.clear()

    # ------------------------------------------------------------------
    # Query
    # ------------------------------------------------------------------

    def has(self, name: str) -> bool:
        """Return ``True`` if *name* is registered."""
        with self._lock:
            return name in self._decorators

    def get(self, name: str) -> Definition:
        """Return the definition for *name*.

        Raises
        ------
        DecoratorNotFoundError
            If *name* is not registered.
        """
        with self._lock:
            try:
                return self._decorators[name]
            except KeyError:
                raise DecoratorNotFoundError(name) from None

    def lookup(self, name: str) -> Definition | None:
        """Return the definition for *name*, or ``None`` if absent.

        A single locked read: unlike ``has`` followed by ``get``, a
        concurrent ``unregister`` cannot fall between the two.
        """
        with self._lock:
            return self._decorators.get(name)

    def decorators(self) -> dict[str, Definition]:
        """Return a snapshot of all definitions, in registration order."""
        with self._lock:
            return dict(self._decorators)

    def names(self) -> tuple[str, ...]:
        with self._lock:
            return tuple(self._decorators)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self.has(name)

    def __len__(self) -> int:
        with self._lock:
            return len(self._decorators)

    def __repr__(self) -> str:
        return f"DecoratorRegistry({', '.join(self.names())})"

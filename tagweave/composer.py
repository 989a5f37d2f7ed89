"""Composer: fold a unit through its matched decorators.

The heart of the package is ``Composer.compose``::

    result = unit
    for name, arg in tags.items():          # declaration order
        decorator = registry.lookup(name)
        if decorator is not None:
            result = decorator(result, arg)
    return result

Tags with no registered decorator are skipped silently (they may be
plain metadata).  The first matched tag is applied first and therefore
wraps the original most closely; the last matched tag is the outermost
wrapper.  With no matches the unit is returned as is (same object).

Everything else builds on ``compose``:

- ``compose_function`` / ``compose_constructor`` / ``compose_method`` /
  ``compose_property`` fetch tags from the inspector and pick the base
  callable (the function, the class, the bound or unbound method, or
  the identity ``passthrough`` for property setters).
- ``compose_class`` returns the composed constructor directly when no
  method or property carries a matching tag.  Otherwise it returns a
  factory that constructs the instance and wraps it in a
  ``WrappedInstance`` carrying the per-member overrides.

Exceptions raised by a unit or a decorator propagate unchanged.
"""

from __future__ import annotations

import inspect
import logging
from collections.abc import Callable, Iterable, Mapping
from types import ModuleType
from typing import Any

from tagweave.inspector import MetadataInspector, UnitInspector, as_class, module_functions
from tagweave.proxy import WrappedInstance
from tagweave.references import resolve_dotted
from tagweave.registry import DecoratorRegistry
from tagweave.shapes import apply, passthrough, wrap_unit

logger = logging.getLogger(__name__)


class Composer:
    """Builds composed callables and wrapped instances.

    Parameters
    ----------
    registry:
        Decorator registry consulted at composition time.  Composition
        reads the registry when ``compose*`` runs; later registrations
        do not affect callables already composed.
    inspector:
        Tag source.  Defaults to ``MetadataInspector``.
    """

    __slots__ = ("inspector", "registry")

    def __init__(
        self,
        registry: DecoratorRegistry,
        inspector: UnitInspector | None = None,
    ) -> None:
        self.registry = registry
        self.inspector: UnitInspector = inspector if inspector is not None else MetadataInspector()

    # ------------------------------------------------------------------
    # Core fold
    # ------------------------------------------------------------------

    def compose(self, unit: Callable[..., Any], tags: Mapping[str, Any]) -> Callable[..., Any]:
        """Fold *unit* through every tag in *tags* that names a registered decorator."""
        result = unit
        for name, arg in tags.items():
            decorator = self.registry.lookup(name)
            if decorator is None:
                continue
            result = decorator(result, arg)
            logger.debug("composed %r with %r (arg=%r)", _label(unit), name, arg)
        return result

    def matched(self, tags: Mapping[str, Any]) -> list[str]:
        """Names in *tags* that resolve in the registry, in order."""
        return [name for name in tags if self.registry.lookup(name) is not None]

    # ------------------------------------------------------------------
    # Units
    # ------------------------------------------------------------------

    def compose_function(self, func: Callable[..., Any] | str) -> Callable[..., Any]:
        """Compose a function (or dotted path to one) through its own tags."""
        if isinstance(func, str):
            func = resolve_dotted(func)
        return self.compose(func, self.inspector.get_tags(func))

    def compose_functions(self, funcs: Iterable[Callable[..., Any]]) -> list[Callable[..., Any]]:
        return [self.compose_function(f) for f in funcs]

    def compose_constructor(self, cls: Any) -> Callable[..., Any]:
        """Compose the constructor of *cls* through the class-level tags.

        The base unit is the class object itself, so an untagged class
        composes to the class.
        """
        klass = as_class(cls)
        return self.compose(klass, self.inspector.get_tags(klass))

    def compose_method(self, target: Any, name: str) -> Callable[..., Any]:
        """Compose method *name* of *target* (a class or an instance).

        On an instance the base is the bound method, so the result can
        be called without ``self``.  ``"__init__"`` composes the
        constructor.
        """
        if name == "__init__":
            return self.compose_constructor(target)
        tags = self.inspector.get_tags_for(target, name)
        return self.compose(getattr(target, name), tags)

    def compose_property(self, target: Any, name: str) -> Callable[[Any], Any]:
        """Compose the setter pipeline of property *name*.

        The base is ``passthrough``: a property has no body, only the
        chain applied to written values.
        """
        tags = self.inspector.get_tags_for(target, name)
        return self.compose(passthrough, tags)

    def compose_methods(self, target: Any) -> dict[str, Callable[..., Any]]:
        """Compose every method of *target*, tagged or not."""
        methods = self.inspector.get_members(target).methods
        return {m: self.compose_method(target, m) for m in methods}

    def compose_tagged_methods(self, target: Any) -> dict[str, Callable[..., Any]]:
        """Compose only methods carrying at least one matching tag."""
        composed: dict[str, Callable[..., Any]] = {}
        for m in self.inspector.get_members(target).methods:
            tags = self.inspector.get_tags_for(target, m)
            if self.matched(tags):
                composed[m] = self.compose(getattr(target, m), tags)
        return composed

    def compose_tagged_properties(self, target: Any) -> dict[str, Callable[[Any], Any]]:
        """Compose setter pipelines only for properties carrying a matching tag."""
        composed: dict[str, Callable[[Any], Any]] = {}
        for p in self.inspector.get_members(target).properties:
            tags = self.inspector.get_tags_for(target, p)
            if self.matched(tags):
                composed[p] = self.compose(passthrough, tags)
        return composed

    # ------------------------------------------------------------------
    # Classes
    # ------------------------------------------------------------------

    def has_decorated_members(self, cls: Any) -> bool:
        """Return ``True`` if any method or property tag resolves in the registry."""
        members = self.inspector.get_members(cls)
        for name in (*members.methods, *members.properties):
            if self.matched(self.inspector.get_tags_for(cls, name)):
                return True
        return False

    def compose_class(self, cls: Any) -> Callable[..., Any]:
        """Return a callable producing (possibly wrapped) instances of *cls*.

        With no decorated members this is ``compose_constructor(cls)``
        and instances are plain objects.  Otherwise each call builds the
        raw instance through the composed constructor and returns a
        ``WrappedInstance`` with the member overrides bound to it.
        """
        klass = as_class(cls)
        constructor = self.compose_constructor(klass)

        if not self.has_decorated_members(klass):
            return constructor

        @wrap_unit(constructor)
        def factory(*args: Any, **kwargs: Any) -> Any:
            instance = apply(constructor, args, kwargs)
            if instance is None or isinstance(instance, WrappedInstance):
                # Short-circuited constructor, or a decorator already wrapped it.
                return instance
            methods = self.compose_tagged_methods(instance)
            properties = self.compose_tagged_properties(instance)
            logger.debug(
                "wrapped %s instance (methods=%s, properties=%s)",
                klass.__qualname__, sorted(methods), sorted(properties),
            )
            return WrappedInstance(instance, methods, properties)

        return factory

    # ------------------------------------------------------------------
    # Compose-and-call conveniences
    # ------------------------------------------------------------------

    def instantiate(self, cls: Any, *args: Any, **kwargs: Any) -> Any:
        """Compose *cls* and construct an instance with the given arguments."""
        return apply(self.compose_class(cls), args, kwargs)

    def invoke(self, func: Callable[..., Any] | str, *args: Any, **kwargs: Any) -> Any:
        """Compose *func* and call it with the given arguments."""
        return apply(self.compose_function(func), args, kwargs)

    def functions_with_decorators(self, module: ModuleType | str) -> list[Callable[..., Any]]:
        """Functions of *module* with at least one matching tag (not composed)."""
        return [
            f for f in module_functions(module) if self.matched(self.inspector.get_tags(f))
        ]

    def invoke_functions_with_decorator(
        self, module: ModuleType | str, name: str, *args: Any, **kwargs: Any
    ) -> int:
        """Compose and call every function of *module* tagged *name*.

        Returns the number of functions invoked.
        """
        invoked = 0
        for func in module_functions(module):
            if name not in self.inspector.get_tags(func):
                continue
            apply(self.compose_function(func), args, kwargs)
            invoked += 1
        return invoked

    def invoke_decorated_functions(self, module: ModuleType | str, *args: Any, **kwargs: Any) -> int:
        """Compose and call every function of *module* with a matching tag.

        Returns the number of functions invoked.
        """
        invoked = 0
        for func in self.functions_with_decorators(module):
            apply(self.compose_function(func), args, kwargs)
            invoked += 1
        return invoked


def _label(unit: Any) -> str:
    if inspect.isclass(unit) or inspect.isroutine(unit):
        return unit.__qualname__
    return type(unit).__qualname__

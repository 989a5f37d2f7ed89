"""Wrapped instances: per-instance method and property-write overrides.

A ``WrappedInstance`` owns one constructed object plus two override
tables built by the composer:

- ``methods``    -- ``{name: composed_method}``; each composed method
  already closes over the real bound method, so the proxy only decides
  override-vs-original.
- ``properties`` -- ``{name: composed_setter}``; a write computes
  ``value = setter(value)`` and then writes through.

Everything else is forwarded unchanged: reads are never intercepted,
existence checks and deletes go straight to the instance, and the
original object's class is never copied or mutated.

The capability interface is a set of module-level functions, so the
proxy itself exposes no public names that could hide a member of the
wrapped object.  Attribute syntax on the proxy is sugar over them::

    proxy.save(1)      -> invoke_method(proxy, "save", 1)
    proxy.owner        -> get_property(proxy, "owner")
    proxy.owner = "x"  -> set_property(proxy, "owner", "x")
    del proxy.owner    -> delete_property(proxy, "owner")

``WrappedInstance`` defines no class-level behaviour of its own for
the wrapped type: static and class methods are reached through the
original class as usual.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import Any

from tagweave.exceptions import UnsupportedOperationError

MethodTable = dict[str, Callable[..., Any]]
PropertyTable = dict[str, Callable[[Any], Any]]


class WrappedInstance:
    """Proxy routing overridden members through composed callables."""

    __slots__ = ("__instance", "__methods", "__properties")

    def __init__(
        self,
        instance: Any,
        methods: Mapping[str, Callable[..., Any]] | None = None,
        properties: Mapping[str, Callable[[Any], Any]] | None = None,
    ) -> None:
        object.__setattr__(self, "_WrappedInstance__instance", instance)
        object.__setattr__(self, "_WrappedInstance__methods", dict(methods or {}))
        object.__setattr__(self, "_WrappedInstance__properties", dict(properties or {}))

    def __getattr__(self, name: str) -> Any:
        # Only reached when normal lookup on the proxy fails.
        override = self.__methods.get(name)
        if override is not None:
            return override
        return getattr(self.__instance, name)

    def __setattr__(self, name: str, value: Any) -> None:
        set_property(self, name, value)

    def __delattr__(self, name: str) -> None:
        delete_property(self, name)

    def __dir__(self) -> list[str]:
        return sorted(set(dir(self.__instance)) | set(self.__methods))

    # -- coercions ---------------------------------------------------------

    def __str__(self) -> str:
        cls = type(self.__instance)
        if cls.__str__ is object.__str__ and cls.__repr__ is object.__repr__:
            raise UnsupportedOperationError("string conversion", cls.__qualname__)
        return str(self.__instance)

    def __call__(self, *args: Any, **kwargs: Any) -> Any:
        if not callable(self.__instance):
            raise UnsupportedOperationError("invocation", type(self.__instance).__qualname__)
        return self.__instance(*args, **kwargs)

    def __repr__(self) -> str:
        overrides = sorted(self.__methods) + [f"{p}=" for p in sorted(self.__properties)]
        return f"<WrappedInstance of {self.__instance!r} overriding {', '.join(overrides) or 'nothing'}>"


def _state(proxy: WrappedInstance) -> tuple[Any, MethodTable, PropertyTable]:
    return (
        object.__getattribute__(proxy, "_WrappedInstance__instance"),
        object.__getattribute__(proxy, "_WrappedInstance__methods"),
        object.__getattribute__(proxy, "_WrappedInstance__properties"),
    )


# -- capability interface --------------------------------------------------


def invoke_method(proxy: WrappedInstance, name: str, *args: Any, **kwargs: Any) -> Any:
    """Call method *name*: the override if present, else the original."""
    instance, methods, _ = _state(proxy)
    override = methods.get(name)
    if override is not None:
        return override(*args, **kwargs)
    return getattr(instance, name)(*args, **kwargs)


def get_property(proxy: WrappedInstance, name: str) -> Any:
    """Read *name* from the original instance (reads are never intercepted)."""
    return getattr(_state(proxy)[0], name)


def set_property(proxy: WrappedInstance, name: str, value: Any) -> None:
    """Write *name*, passing *value* through its setter override first."""
    instance, _, properties = _state(proxy)
    setter = properties.get(name)
    if setter is not None:
        value = setter(value)
    setattr(instance, name, value)


def has_property(proxy: WrappedInstance, name: str) -> bool:
    return hasattr(_state(proxy)[0], name)


def delete_property(proxy: WrappedInstance, name: str) -> None:
    delattr(_state(proxy)[0], name)


def unwrap(obj: Any) -> Any:
    """Return the original instance owned by *obj*, or *obj* itself."""
    if isinstance(obj, WrappedInstance):
        return _state(obj)[0]
    return obj


def overrides(obj: WrappedInstance) -> tuple[MethodTable, PropertyTable]:
    """Return copies of ``(method_overrides, property_overrides)`` of *obj*."""
    _, methods, properties = _state(obj)
    return dict(methods), dict(properties)

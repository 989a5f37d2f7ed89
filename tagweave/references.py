"""Lazy references to decorator implementations.

A decorator may be registered before the object that implements it is
importable or fully built.  The references here defer resolution to
call time:

- ``NamedReference("pkg.mod.func")`` imports and resolves a dotted path.
- ``MemberReference(source, "key")`` reads ``source.key`` on every call,
  so re-binding a class attribute or instance property is picked up.

Both are plain callables; the registry stores them as decorator
definitions and the composer never needs to know the difference.
"""

from __future__ import annotations

import builtins
import importlib
from typing import Any

from tagweave.exceptions import UnitNotFoundError


def resolve_dotted(path: str) -> Any:
    """Resolve *path* to a Python object.

    Accepted forms:

    - ``"pkg.mod:Qual.Name"`` -- explicit module / attribute split
    - ``"pkg.mod.func"`` -- the longest importable module prefix wins
    - ``"len"`` -- a bare name is looked up in ``builtins``

    Raises
    ------
    UnitNotFoundError
        If no module prefix imports or the attribute chain is missing.
    """
    if not path or not isinstance(path, str):
        raise UnitNotFoundError(path, detail="empty or non-string path")

    if ":" in path:
        module_name, _, attr_path = path.partition(":")
        module = _import(path, module_name)
        return _walk(path, module, attr_path.split("."))

    parts = path.split(".")
    if len(parts) == 1:
        try:
            return getattr(builtins, path)
        except AttributeError:
            raise UnitNotFoundError(path, detail="no such builtin") from None

    for cut in range(len(parts) - 1, 0, -1):
        module_name = ".".join(parts[:cut])
        try:
            module = importlib.import_module(module_name)
        except ImportError:
            continue
        return _walk(path, module, parts[cut:])
    raise UnitNotFoundError(path, detail="no importable module prefix")


def _import(path: str, module_name: str) -> Any:
    try:
        return importlib.import_module(module_name)
    except ImportError as exc:
        raise UnitNotFoundError(path, detail=str(exc)) from exc


def _walk(path: str, obj: Any, attrs: list[str]) -> Any:
    for attr in attrs:
        try:
            obj = getattr(obj, attr)
        except AttributeError:
            raise UnitNotFoundError(path, detail=f"missing attribute {attr!r}") from None
    return obj


class NamedReference:
    """Callable that resolves a dotted path on every invocation."""

    __slots__ = ("path",)

    def __init__(self, path: str) -> None:
        self.path = path

    def resolve(self) -> Any:
        return resolve_dotted(self.path)

    def __call__(self, *args: Any, **kwargs: Any) -> Any:
        return self.resolve()(*args, **kwargs)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, NamedReference):
            return self.path == other.path
        return NotImplemented

    def __hash__(self) -> int:
        return hash((NamedReference, self.path))

    def __repr__(self) -> str:
        return f"NamedReference({self.path!r})"


class MemberReference:
    """Callable that reads ``getattr(source, key)`` on every invocation."""

    __slots__ = ("key", "source")

    def __init__(self, source: Any, key: str) -> None:
        self.source = source
        self.key = key

    def resolve(self) -> Any:
        try:
            return getattr(self.source, self.key)
        except AttributeError:
            raise UnitNotFoundError(self.source, member=self.key) from None

    def __call__(self, *args: Any, **kwargs: Any) -> Any:
        return self.resolve()(*args, **kwargs)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, MemberReference):
            return self.source is other.source and self.key == other.key
        return NotImplemented

    def __hash__(self) -> int:
        return hash((MemberReference, id(self.source), self.key))

    def __repr__(self) -> str:
        owner = getattr(self.source, "__qualname__", type(self.source).__qualname__)
        return f"MemberReference({owner}.{self.key})"

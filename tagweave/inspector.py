"""Unit inspection: tag mappings and class members.

The composer needs exactly three answers from its host:

- ``get_tags(unit)`` -- ordered ``{tag_name: tag_arg}`` for a function,
  constructor (class), or other callable
- ``get_members(cls)`` -- method and property names of a class
- ``get_tags_for(cls, member)`` -- ordered tags of one member

``UnitInspector`` is that contract.  Any tag source satisfying it is
interchangeable; two are provided:

``MetadataInspector``
    Reads tags stamped with ``@tag``, ``Annotated[T, Tag(...)]`` field
    metadata, and ``@name arg`` lines in docstrings.

``MappingInspector``
    Reads tags supplied as plain data keyed by qualified name (for
    example a YAML tag file), delegating to a fallback inspector for
    units it has no entry for.

Tag order is significant: the composer folds decorators in the order
tags appear here.
"""

from __future__ import annotations

import importlib
import inspect
import re
import typing
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass
from types import ModuleType
from typing import Any, Protocol, TypeVar, runtime_checkable

from tagweave.exceptions import UnitNotFoundError
from tagweave.references import resolve_dotted

F = TypeVar("F", bound=Callable[..., Any])

TagMapping = dict[str, Any]

TAGS_ATTR = "_tagweave_tags"

# One annotation per docstring line: "@name" or "@name argument text".
ANNOTATION = re.compile(r"^[ \t*]*@(\S+)(?:[ \t]+(.+?))?[ \t]*$", re.MULTILINE)


# ── Tag metadata ─────────────────────────────────────


@dataclass(frozen=True, slots=True)
class Tag:
    """A declarative tag, usable as ``Annotated`` metadata on a field."""

    name: str
    arg: Any = None


@dataclass(frozen=True, slots=True)
class Members:
    """Method and property names of a class, in declaration order."""

    methods: tuple[str, ...] = ()
    properties: tuple[str, ...] = ()

    def __contains__(self, name: object) -> bool:
        return name in self.methods or name in self.properties


def tag(name: str, arg: Any = None) -> Callable[[F], F]:
    """Attach tag *name* (with optional *arg*) to a function or class.

    Stacked tags read top-to-bottom in source order::

        @tag("reverse")
        @tag("format", "<pre>%s</pre>")
        def render(value): ...

        get_tags(render) == {"reverse": None, "format": "<pre>%s</pre>"}

    Python applies the lower decorator first, so each new tag is
    inserted *ahead* of the ones already stamped.  The unit itself is
    returned unchanged (no wrapper).

    On a ``property`` the tag lands on the getter, or on the setter of a
    write-only property.
    """

    def decorator(unit: F) -> F:
        target: Any = unit
        if isinstance(unit, property):
            accessors = _accessors(unit)
            if not accessors:
                msg = "cannot tag a property with neither getter nor setter"
                raise TypeError(msg)
            target = accessors[0]
        target = getattr(target, "__func__", target)
        existing: TagMapping = dict(target.__dict__.get(TAGS_ATTR, {}))
        existing.pop(name, None)
        setattr(target, TAGS_ATTR, {name: arg, **existing})
        return unit

    return decorator


def _accessors(prop: property) -> list[Callable[..., Any]]:
    return [f for f in (prop.fget, prop.fset) if f is not None]


def get_stamped_tags(unit: Any) -> TagMapping:
    """Return tags stamped by ``@tag`` on *unit* itself (not inherited)."""
    target = getattr(unit, "__func__", unit)
    try:
        stamped = vars(target).get(TAGS_ATTR, {})
    except TypeError:
        return {}
    return dict(stamped)


def parse_annotations(docstring: str | None) -> TagMapping:
    """Parse ``@name [arg]`` lines out of a docstring.

    A repeated name keeps its first position and takes the last value.

    >>> parse_annotations('''Summary.
    ...
    ... @test arg
    ... @another
    ... ''')
    {'test': 'arg', 'another': None}
    """
    annotations: TagMapping = {}
    if not docstring:
        return annotations
    for match in ANNOTATION.finditer(docstring):
        annotations[match.group(1)] = match.group(2)
    return annotations


# ── Contract ─────────────────────────────────────────


@runtime_checkable
class UnitInspector(Protocol):
    """The introspection surface the composer consumes."""

    def get_tags(self, unit: Any) -> TagMapping: ...

    def get_members(self, cls: Any) -> Members: ...

    def get_tags_for(self, cls: Any, member: str) -> TagMapping: ...


# ── Helpers ──────────────────────────────────────────


def qualified_name(unit: Any) -> str:
    """Return ``module.qualname`` for a function, class, or instance."""
    if not (inspect.isclass(unit) or callable(unit)):
        unit = type(unit)
    target = getattr(unit, "__func__", unit)
    module = getattr(target, "__module__", None)
    qualname = getattr(target, "__qualname__", None) or getattr(target, "__name__", None)
    if qualname is None:
        raise UnitNotFoundError(unit, detail="unit has no qualified name")
    return f"{module}.{qualname}" if module else qualname


def as_class(cls: Any) -> type:
    """Accept a class, an instance, or a dotted path; return the class."""
    if isinstance(cls, str):
        cls = resolve_dotted(cls)
    if inspect.isclass(cls):
        return cls
    if cls is None or isinstance(cls, ModuleType) or inspect.isroutine(cls):
        raise UnitNotFoundError(cls, detail="not a class or instance")
    return type(cls)


def _is_method(value: Any) -> bool:
    return isinstance(value, staticmethod | classmethod) or inspect.isfunction(value)


def _field_hints(klass: type) -> dict[str, Any]:
    """Annotated fields declared directly on *klass*, extras preserved."""
    own = inspect.get_annotations(klass)
    if not own:
        return {}
    try:
        hints = typing.get_type_hints(klass, include_extras=True)
    except (NameError, TypeError):
        # One unresolvable forward reference: resolve the others one by one.
        return {name: _resolve_field(klass, name, hint) for name, hint in own.items()}
    return {name: hints.get(name, hint) for name, hint in own.items()}


def _resolve_field(klass: type, name: str, hint: Any) -> Any:
    """Evaluate a single string annotation of *klass*; keep it raw on failure."""
    if not isinstance(hint, str):
        return hint
    holder = type(klass.__name__, (), {"__annotations__": {name: hint}, "__module__": klass.__module__})
    try:
        return typing.get_type_hints(holder, localns=dict(vars(klass)), include_extras=True)[name]
    except (NameError, TypeError):
        return hint


def _is_classvar(hint: Any) -> bool:
    if isinstance(hint, str):
        return hint.startswith(("ClassVar", "typing.ClassVar"))
    return typing.get_origin(hint) is typing.ClassVar


def _lineage(cls: type) -> Iterable[type]:
    return (k for k in cls.__mro__ if k is not object)


# ── Default inspector ────────────────────────────────


class MetadataInspector:
    """Inspector reading tags from stamped metadata and docstrings.

    Tags stamped with ``@tag`` come first, in stacking order; docstring
    annotations whose names are not already stamped follow in docstring
    order.  Only the unit's *own* docstring is consulted: a method
    inherited without override keeps the docstring of its defining
    class, which is what ``getattr`` returns anyway.
    """

    def resolve(self, unit: Any) -> Any:
        """Resolve dotted-path strings; reject anything not callable."""
        if isinstance(unit, str):
            unit = resolve_dotted(unit)
        if not callable(unit) and not isinstance(unit, property):
            raise UnitNotFoundError(unit, detail="not callable")
        return unit

    def get_tags(self, unit: Any) -> TagMapping:
        unit = self.resolve(unit)
        if isinstance(unit, property):
            return self._property_tags(unit)
        target = unit
        tags = get_stamped_tags(target)
        if inspect.isclass(target):
            doc = target.__dict__.get("__doc__")
        else:
            doc = getattr(target, "__doc__", None)
        for name, arg in parse_annotations(doc).items():
            tags.setdefault(name, arg)
        return tags

    def get_members(self, cls: Any) -> Members:
        klass = as_class(cls)
        methods: list[str] = []
        properties: list[str] = []
        seen: set[str] = set()
        for k in _lineage(klass):
            for name, value in vars(k).items():
                if name in seen or (name.startswith("__") and name.endswith("__")):
                    continue
                if _is_method(value):
                    methods.append(name)
                    seen.add(name)
                elif isinstance(value, property):
                    properties.append(name)
                    seen.add(name)
            for name, hint in _field_hints(k).items():
                if name in seen or _is_classvar(hint):
                    continue
                properties.append(name)
                seen.add(name)
        return Members(methods=tuple(methods), properties=tuple(properties))

    def get_tags_for(self, cls: Any, member: str) -> TagMapping:
        klass = as_class(cls)
        if member == "__init__":
            return self.get_tags(klass)
        for k in _lineage(klass):
            value = vars(k).get(member)
            if isinstance(value, property):
                return self._property_tags(value)
            if value is not None and _is_method(value):
                return self.get_tags(getattr(value, "__func__", value))
            hints = _field_hints(k)
            if member in hints:
                return self._field_tags(hints[member])
        raise UnitNotFoundError(klass, member=member)

    def _property_tags(self, prop: property) -> TagMapping:
        """Getter tags, then setter tags not already present."""
        tags: TagMapping = {}
        for accessor in _accessors(prop):
            for name, arg in self.get_tags(accessor).items():
                tags.setdefault(name, arg)
        return tags

    @staticmethod
    def _field_tags(hint: Any) -> TagMapping:
        tags: TagMapping = {}
        for meta in getattr(hint, "__metadata__", ()):
            if isinstance(meta, Tag):
                tags[meta.name] = meta.arg
        return tags


# ── Plain-data inspector ─────────────────────────────


class MappingInspector:
    """Inspector backed by explicitly supplied tag data.

    Parameters
    ----------
    units:
        ``{qualified_name: {tag_name: tag_arg}}`` for functions and
        classes (class entries describe the constructor).
    members:
        ``{qualified_class_name: {member_name: {tag_name: tag_arg}}}``.
    fallback:
        Inspector consulted for tags of units absent from *units*, for
        member enumeration, and for members absent from *members*.
        Defaults to a ``MetadataInspector``.
    """

    def __init__(
        self,
        units: Mapping[str, Mapping[str, Any]] | None = None,
        members: Mapping[str, Mapping[str, Mapping[str, Any]]] | None = None,
        *,
        fallback: UnitInspector | None = None,
    ) -> None:
        self._units = {k: dict(v) for k, v in (units or {}).items()}
        self._members = {
            k: {m: dict(t) for m, t in v.items()} for k, v in (members or {}).items()
        }
        self._fallback: UnitInspector = fallback if fallback is not None else MetadataInspector()

    @classmethod
    def from_document(cls, document: Any, *, fallback: UnitInspector | None = None) -> MappingInspector:
        """Build from a validated ``TagDocument``."""
        units: dict[str, TagMapping] = {}
        members: dict[str, dict[str, TagMapping]] = {}
        for name, entry in document.units.items():
            if entry.tags:
                units[name] = entry.tag_mapping()
            if entry.members:
                members[name] = {m: entry.member_mapping(m) for m in entry.members}
        return cls(units, members, fallback=fallback)

    def _key(self, unit: Any) -> str:
        if isinstance(unit, str):
            unit = resolve_dotted(unit)
        return qualified_name(unit)

    def get_tags(self, unit: Any) -> TagMapping:
        key = self._key(unit)
        if key in self._units:
            return dict(self._units[key])
        return self._fallback.get_tags(unit)

    def get_members(self, cls: Any) -> Members:
        klass = as_class(cls)
        found = self._fallback.get_members(klass)
        configured = self._members.get(qualified_name(klass), {})
        missing = [m for m in configured if m not in found]
        if missing:
            raise UnitNotFoundError(klass, member=missing[0], detail="configured but not defined")
        return found

    def get_tags_for(self, cls: Any, member: str) -> TagMapping:
        klass = as_class(cls)
        if member == "__init__":
            return self.get_tags(klass)
        configured = self._members.get(qualified_name(klass), {})
        if member in configured:
            return dict(configured[member])
        return self._fallback.get_tags_for(klass, member)


# ── Discovery ────────────────────────────────────────


def _module(module: ModuleType | str) -> ModuleType:
    if isinstance(module, ModuleType):
        return module
    try:
        return importlib.import_module(module)
    except ImportError as exc:
        raise UnitNotFoundError(module, detail=str(exc)) from exc


def module_functions(module: ModuleType | str) -> list[Callable[..., Any]]:
    """Functions defined in *module* itself, in definition order."""
    module = _module(module)
    return [
        value
        for value in vars(module).values()
        if inspect.isfunction(value) and value.__module__ == module.__name__
    ]


def module_classes(module: ModuleType | str) -> list[type]:
    """Classes defined in *module* itself, in definition order."""
    module = _module(module)
    return [
        value
        for value in vars(module).values()
        if inspect.isclass(value) and value.__module__ == module.__name__
    ]


def functions_with_tag(
    inspector: UnitInspector, module: ModuleType | str, name: str
) -> list[Callable[..., Any]]:
    """Functions of *module* carrying tag *name*."""
    return [f for f in module_functions(module) if name in inspector.get_tags(f)]


def classes_with_tag(inspector: UnitInspector, module: ModuleType | str, name: str) -> list[type]:
    """Classes of *module* carrying tag *name*."""
    return [c for c in module_classes(module) if name in inspector.get_tags(c)]


def methods_with_tag(inspector: UnitInspector, cls: Any, name: str) -> list[str]:
    """Method names of *cls* carrying tag *name*."""
    return [
        m for m in inspector.get_members(cls).methods if name in inspector.get_tags_for(cls, m)
    ]


def properties_with_tag(inspector: UnitInspector, cls: Any, name: str) -> list[str]:
    """Property names of *cls* carrying tag *name*."""
    return [
        p for p in inspector.get_members(cls).properties if name in inspector.get_tags_for(cls, p)
    ]

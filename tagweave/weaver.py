"""Weaver -- one registry plus one composer behind a single object.

``Weaver`` is the convenience surface most hosts use::

    weaver = Weaver()
    weaver.register_return("upper", str.upper)

    @tag("upper")
    def greet(name):
        return f"hello {name}"

    weaver.invoke(greet, "ada")          # 'HELLO ADA'
    Cart = weaver.compose_class(Cart)    # instances routed through overrides

For isolation in tests or multi-tenant hosts, build separate weavers
(or pass an explicit ``DecoratorRegistry``); nothing here is global.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from tagweave.composer import Composer
from tagweave.config import WeaverSettings, load_tag_document
from tagweave.inspector import MappingInspector, MetadataInspector, UnitInspector
from tagweave.registry import DecoratorRegistry
from tagweave.shapes import apply, call

if TYPE_CHECKING:
    from collections.abc import Callable

logger = logging.getLogger(__name__)

_REGISTRY_METHODS = (
    "register",
    "register_many",
    "register_pre",
    "register_post",
    "register_argument",
    "register_return",
    "register_many_pre",
    "register_many_post",
    "register_many_argument",
    "register_many_return",
    "unregister",
    "has",
    "get",
    "lookup",
    "decorators",
    "names",
)

_COMPOSER_METHODS = (
    "compose",
    "compose_function",
    "compose_functions",
    "compose_constructor",
    "compose_method",
    "compose_property",
    "compose_methods",
    "compose_tagged_methods",
    "compose_tagged_properties",
    "has_decorated_members",
    "compose_class",
    "instantiate",
    "invoke",
    "functions_with_decorators",
    "invoke_functions_with_decorator",
    "invoke_decorated_functions",
)


class Weaver:
    """Registration and composition API over one registry.

    Parameters
    ----------
    decorators:
        Optional initial decorators (any ``register_many`` form).
    registry:
        Use an existing registry instead of creating one.
    inspector:
        Tag source; defaults to ``MetadataInspector``.
    """

    def __init__(
        self,
        decorators: Any = None,
        *,
        registry: DecoratorRegistry | None = None,
        inspector: UnitInspector | None = None,
    ) -> None:
        self.registry = registry if registry is not None else DecoratorRegistry()
        self.composer = Composer(self.registry, inspector)
        if decorators is not None:
            self.registry.register_many(decorators)

    @classmethod
    def from_settings(cls, settings: WeaverSettings | None = None) -> Weaver:
        """Build a weaver from ``WeaverSettings`` (environment by default).

        A configured ``tag_file`` is layered over ``MetadataInspector``:
        units listed in the file use its tags, everything else falls
        back to ``@tag`` and docstring annotations.
        """
        settings = settings if settings is not None else WeaverSettings()
        inspector: UnitInspector = MetadataInspector()
        if settings.tag_file is not None:
            document = load_tag_document(settings.tag_file)
            inspector = MappingInspector.from_document(document, fallback=inspector)
            logger.info(
                "loaded %d tags for %d units from %s",
                document.tag_count, document.unit_count, settings.tag_file,
            )
        return cls(settings.decorators or None, inspector=inspector)

    call = staticmethod(call)
    apply = staticmethod(apply)

    @property
    def inspector(self) -> UnitInspector:
        return self.composer.inspector

    def __getattr__(self, name: str) -> Callable[..., Any]:
        if name in _REGISTRY_METHODS:
            return getattr(self.registry, name)
        if name in _COMPOSER_METHODS:
            return getattr(self.composer, name)
        msg = f"{type(self).__name__!r} object has no attribute {name!r}"
        raise AttributeError(msg)

    def __dir__(self) -> list[str]:
        return sorted({*super().__dir__(), *_REGISTRY_METHODS, *_COMPOSER_METHODS})

    def __repr__(self) -> str:
        return f"Weaver({', '.join(self.registry.names())})"

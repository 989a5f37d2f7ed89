"""tagweave -- metadata-driven decorator composition.

Public API:
    - Weaver                  — registry + composer facade
    - DecoratorRegistry       — named decorator definitions (thread-safe)
    - Composer                — folds units through matched decorators
    - WrappedInstance         — proxy for instances with decorated members
    - unwrap                  — original instance behind a WrappedInstance
    - invoke_method, get_property, set_property, has_property, delete_property
                              — capability functions over a WrappedInstance
    - tag / Tag               — attach tags to functions, classes, methods, fields
    - parse_annotations       — ``@name arg`` docstring tag parser
    - UnitInspector           — protocol the composer consumes
    - MetadataInspector       — tags from @tag, Annotated fields, docstrings
    - MappingInspector        — tags from plain data / YAML tag files
    - argument_decorator, return_decorator, pre_decorator, post_decorator
                              — shape factories lifting transforms to combinators
    - call / apply            — uniform invocation helpers
    - WeaverSettings          — environment settings (TAGWEAVE_*)
    - TagDocument, load_tag_document — YAML tag file schema and loader
    - TagweaveError           — base exception for blanket catch
    - NotFoundError           — base of DecoratorNotFoundError / UnitNotFoundError
    - UnsupportedOperationError — coercion unsupported by a wrapped instance
    - TagConfigError          — invalid YAML tag file
"""

from __future__ import annotations

from tagweave.composer import Composer
from tagweave.config import TagDocument, WeaverSettings, load_tag_document
from tagweave.exceptions import (
    DecoratorNotFoundError,
    NotFoundError,
    TagConfigError,
    TagweaveError,
    UnitNotFoundError,
    UnsupportedOperationError,
)
from tagweave.inspector import (
    MappingInspector,
    Members,
    MetadataInspector,
    Tag,
    UnitInspector,
    parse_annotations,
    tag,
)
from tagweave.proxy import (
    WrappedInstance,
    delete_property,
    get_property,
    has_property,
    invoke_method,
    set_property,
    unwrap,
)
from tagweave.registry import DecoratorRegistry
from tagweave.shapes import (
    apply,
    argument_decorator,
    call,
    passthrough,
    post_decorator,
    pre_decorator,
    return_decorator,
)
from tagweave.weaver import Weaver

__all__ = [
    "Composer",
    "DecoratorNotFoundError",
    "DecoratorRegistry",
    "MappingInspector",
    "Members",
    "MetadataInspector",
    "NotFoundError",
    "Tag",
    "TagConfigError",
    "TagDocument",
    "TagweaveError",
    "UnitInspector",
    "UnitNotFoundError",
    "UnsupportedOperationError",
    "Weaver",
    "WeaverSettings",
    "WrappedInstance",
    "apply",
    "argument_decorator",
    "call",
    "delete_property",
    "get_property",
    "has_property",
    "invoke_method",
    "load_tag_document",
    "parse_annotations",
    "passthrough",
    "post_decorator",
    "pre_decorator",
    "return_decorator",
    "set_property",
    "tag",
    "unwrap",
]

"""Tests for tagweave.registry — named decorator definitions.

Test taxonomy
-------------
Register     direct combinator; (source, key) forms; by-convention names
Shapes       register_pre/post/argument/return wrap transforms
Bulk         register_many from mapping, names, namespace, class, instance, module
Replace      last write wins; unregister; clear
Lookup       has/get/decorators/names; missing name -> DecoratorNotFoundError
Lazy         member references re-read the source on every call
Threads      concurrent register + get never corrupt the store
Property     Hypothesis: after any write sequence get() returns the last write
"""

from __future__ import annotations

import threading
from types import SimpleNamespace
from typing import Any

import pytest
from hypothesis import given
from hypothesis import strategies as st

import sample_tasks
from tagweave.composer import Composer
from tagweave.exceptions import DecoratorNotFoundError, NotFoundError, UnitNotFoundError
from tagweave.references import MemberReference, NamedReference
from tagweave.registry import DecoratorRegistry, extract_decorators


def _identity_combinator(func: Any, arg: Any) -> Any:
    return func


def _wrap_with_arg(func: Any, arg: Any) -> Any:
    def composed(*args: Any) -> Any:
        return (arg, func(*args))

    return composed


class Hooks:
    """Static hooks usable straight off the class."""

    @staticmethod
    def tagged(func: Any, arg: Any) -> Any:
        return lambda *a: f"tagged:{func(*a)}"

    @classmethod
    def labelled(cls, func: Any, arg: Any) -> Any:
        return lambda *a: f"{cls.__name__}:{arg}:{func(*a)}"


class InstanceHooks:
    def __init__(self, prefix: str) -> None:
        self.prefix = prefix

    def prefixed(self, func: Any, arg: Any) -> Any:
        return lambda *a: f"{self.prefix}{func(*a)}"


# ---------------------------------------------------------------------------
# Register
# ---------------------------------------------------------------------------


class TestRegister:
    def test_direct_combinator_stored_as_is(self, registry: DecoratorRegistry) -> None:
        stored = registry.register("ident", _identity_combinator)
        assert stored is _identity_combinator
        assert registry.get("ident") is _identity_combinator

    def test_class_static_member(self, registry: DecoratorRegistry) -> None:
        registry.register("t", Hooks, "tagged")
        composed = registry.get("t")(lambda: "x", None)
        assert composed() == "tagged:x"

    def test_class_method_member(self, registry: DecoratorRegistry) -> None:
        registry.register("l", Hooks, "labelled")
        assert registry.get("l")(lambda: "x", 7)() == "Hooks:7:x"

    def test_instance_member(self, registry: DecoratorRegistry) -> None:
        registry.register("p", InstanceHooks(">>"), "prefixed")
        assert registry.get("p")(lambda: "x", None)() == ">>x"

    def test_instance_key_defaults_to_name(self, registry: DecoratorRegistry) -> None:
        registry.register("prefixed", InstanceHooks("#"))
        assert isinstance(registry.get("prefixed"), MemberReference)
        assert registry.get("prefixed")(lambda: 1, None)() == "#1"

    def test_mapping_entry(self, registry: DecoratorRegistry) -> None:
        registry.register("w", {"wrap": _wrap_with_arg}, "wrap")
        assert registry.get("w") is _wrap_with_arg

    def test_mapping_missing_key(self, registry: DecoratorRegistry) -> None:
        with pytest.raises(UnitNotFoundError):
            registry.register("w", {"wrap": _wrap_with_arg}, "nope")

    def test_namespace_entry(self, registry: DecoratorRegistry) -> None:
        ns = SimpleNamespace(wrap=_wrap_with_arg)
        registry.register("w", ns, "wrap")
        assert registry.get("w") is _wrap_with_arg

    def test_by_convention_name(self, registry: DecoratorRegistry) -> None:
        registry.register("sample_tasks.sync_orders")
        stored = registry.get("sample_tasks.sync_orders")
        assert stored == NamedReference("sample_tasks.sync_orders")
        assert stored() == "synced"

    def test_by_convention_unresolvable_fails_at_call(self, registry: DecoratorRegistry) -> None:
        registry.register("no_such_module_xyz.fn")
        with pytest.raises(UnitNotFoundError):
            registry.get("no_such_module_xyz.fn")(lambda: 1, None)

    def test_string_source(self, registry: DecoratorRegistry) -> None:
        registry.register("sync", "sample_tasks.sync_orders")
        assert registry.get("sync").path == "sample_tasks.sync_orders"


# ---------------------------------------------------------------------------
# Shape registration
# ---------------------------------------------------------------------------


class TestShapes:
    def test_register_pre(self, registry: DecoratorRegistry) -> None:
        registry.register_pre("guard", lambda args: bool(args))
        composed = registry.get("guard")(lambda *a: "ran", None)
        assert composed() is None
        assert composed(1) == "ran"

    def test_register_post(self, registry: DecoratorRegistry) -> None:
        registry.register_post("drop_none", lambda r: r is not None and None)
        composed = registry.get("drop_none")(lambda: 5, None)
        assert composed() == 5

    def test_register_argument(self, registry: DecoratorRegistry) -> None:
        registry.register_argument("rev", lambda args: list(reversed(args)))
        assert registry.get("rev")(lambda a, b: a - b, None)(1, 10) == 9

    def test_register_return(self, registry: DecoratorRegistry) -> None:
        registry.register_return("str", str)
        assert registry.get("str")(lambda: 3, None)() == "3"

    def test_shape_transform_by_name(self, registry: DecoratorRegistry) -> None:
        registry.register_return("builtins_len", "len")
        assert registry.get("builtins_len")(lambda: "abcd", None)() == 4

    def test_shape_transform_defaults_to_name(self, registry: DecoratorRegistry) -> None:
        registry.register_return("abs")
        assert registry.get("abs")(lambda: -3, None)() == 3

    def test_bulk_shapes(self, registry: DecoratorRegistry) -> None:
        registry.register_many_return({"inc": lambda r: r + 1, "neg": lambda r: -r})
        registry.register_many_argument({"swap": lambda a: a[::-1]})
        registry.register_many_pre({"never": lambda a: False})
        registry.register_many_post({"hide": lambda r: False})
        assert registry.get("inc")(lambda: 1, None)() == 2
        assert registry.get("neg")(lambda: 1, None)() == -1
        assert registry.get("swap")(lambda a, b: a + b, None)("x", "y") == "yx"
        assert registry.get("never")(lambda: 1, None)() is None
        assert registry.get("hide")(lambda: 1, None)() is None


# ---------------------------------------------------------------------------
# Bulk registration
# ---------------------------------------------------------------------------


class TestBulk:
    def test_names_register_themselves(self) -> None:
        reg = DecoratorRegistry(["foo", "bar"])
        assert reg.has("foo")
        assert reg.has("bar")
        assert not reg.has("unknown")
        assert reg.get("foo") == NamedReference("foo")
        assert reg.names() == ("foo", "bar")

    def test_mapping(self, registry: DecoratorRegistry) -> None:
        registry.register_many({"a": _identity_combinator, "b": _wrap_with_arg})
        assert registry.decorators() == {"a": _identity_combinator, "b": _wrap_with_arg}

    def test_namespace(self, registry: DecoratorRegistry) -> None:
        registry.register_many(SimpleNamespace(a=_identity_combinator))
        assert registry.get("a") is _identity_combinator

    def test_class_methods_become_decorators(self, registry: DecoratorRegistry) -> None:
        registry.register_many(Hooks)
        assert registry.names() == ("tagged", "labelled")
        assert registry.get("tagged")(lambda: "v", None)() == "tagged:v"

    def test_instance_methods_become_decorators(self, registry: DecoratorRegistry) -> None:
        registry.register_many(InstanceHooks("!"))
        assert registry.names() == ("prefixed",)
        assert registry.get("prefixed")(lambda: "v", None)() == "!v"

    def test_module_functions_become_decorators(self, registry: DecoratorRegistry) -> None:
        registry.register_many(sample_tasks)
        assert registry.names() == ("sync_orders", "rebuild_index", "cleanup", "helper")

    def test_mixed_sequence_rejected(self) -> None:
        with pytest.raises(TypeError):
            extract_decorators(["ok", 3])


# ---------------------------------------------------------------------------
# Replace / remove
# ---------------------------------------------------------------------------


class TestReplace:
    def test_last_write_wins(self, registry: DecoratorRegistry) -> None:
        registry.register("d", _identity_combinator)
        registry.register("d", _wrap_with_arg)
        assert registry.get("d") is _wrap_with_arg
        assert len(registry) == 1

    def test_bulk_overwrites(self, registry: DecoratorRegistry) -> None:
        registry.register("d", _identity_combinator)
        registry.register_many({"d": _wrap_with_arg})
        assert registry.get("d") is _wrap_with_arg

    def test_unregister(self, registry: DecoratorRegistry) -> None:
        registry.register("d", _identity_combinator)
        registry.unregister("d")
        assert not registry.has("d")

    def test_unregister_missing(self, registry: DecoratorRegistry) -> None:
        with pytest.raises(DecoratorNotFoundError):
            registry.unregister("d")

    def test_clear(self, registry: DecoratorRegistry) -> None:
        registry.register_many({"a": _identity_combinator, "b": _identity_combinator})
        registry.clear()
        assert registry.names() == ()


# ---------------------------------------------------------------------------
# Lookup
# ---------------------------------------------------------------------------


class TestLookup:
    def test_get_missing_raises(self, registry: DecoratorRegistry) -> None:
        with pytest.raises(DecoratorNotFoundError) as exc_info:
            registry.get("absent")
        assert exc_info.value.name == "absent"
        assert "absent" in str(exc_info.value)

    def test_missing_is_not_found_and_key_error(self, registry: DecoratorRegistry) -> None:
        with pytest.raises(NotFoundError):
            registry.get("absent")
        with pytest.raises(KeyError):
            registry.get("absent")

    def test_decorators_is_snapshot(self, registry: DecoratorRegistry) -> None:
        registry.register("a", _identity_combinator)
        snap = registry.decorators()
        snap["b"] = _wrap_with_arg
        assert not registry.has("b")

    def test_contains(self, registry: DecoratorRegistry) -> None:
        registry.register("a", _identity_combinator)
        assert "a" in registry
        assert "b" not in registry
        assert 3 not in registry

    def test_repr_lists_names(self, registry: DecoratorRegistry) -> None:
        registry.register_many(["x", "y"])
        assert repr(registry) == "DecoratorRegistry(x, y)"

    def test_lookup_returns_definition(self, registry: DecoratorRegistry) -> None:
        registry.register("a", _identity_combinator)
        assert registry.lookup("a") is _identity_combinator

    def test_lookup_missing_is_none(self, registry: DecoratorRegistry) -> None:
        assert registry.lookup("absent") is None
        registry.register("a", _identity_combinator)
        registry.unregister("a")
        assert registry.lookup("a") is None


# ---------------------------------------------------------------------------
# Lazy member resolution
# ---------------------------------------------------------------------------


class TestLazy:
    def test_rebinding_source_member_is_seen(self, registry: DecoratorRegistry) -> None:
        hooks = InstanceHooks("a")
        registry.register("p", hooks, "prefixed")
        hooks.prefix = "b"
        assert registry.get("p")(lambda: "!", None)() == "b!"

    def test_missing_member_fails_on_use(self, registry: DecoratorRegistry) -> None:
        registry.register("gone", InstanceHooks("a"), "not_there")
        with pytest.raises(UnitNotFoundError):
            registry.get("gone")(lambda: 1, None)


# ---------------------------------------------------------------------------
# Thread-safety
# ---------------------------------------------------------------------------


class TestThreads:
    def test_concurrent_register_and_get(self, registry: DecoratorRegistry) -> None:
        errors: list[BaseException] = []

        def writer(n: int) -> None:
            try:
                for i in range(200):
                    registry.register(f"w{n}-{i}", _identity_combinator)
            except BaseException as exc:  # pragma: no cover - surfaced below
                errors.append(exc)

        def reader() -> None:
            try:
                for _ in range(200):
                    for name in registry.names():
                        assert registry.get(name) is _identity_combinator
            except BaseException as exc:  # pragma: no cover - surfaced below
                errors.append(exc)

        threads = [threading.Thread(target=writer, args=(n,)) for n in range(4)]
        threads += [threading.Thread(target=reader) for _ in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert errors == []
        assert len(registry) == 800

    def test_compose_while_unregistering(self, registry: DecoratorRegistry) -> None:
        composer = Composer(registry)
        errors: list[BaseException] = []
        done = threading.Event()

        def churn() -> None:
            try:
                while not done.is_set():
                    registry.register_return("flip", lambda r: -r)
                    registry.unregister("flip")
            except BaseException as exc:  # pragma: no cover - surfaced below
                errors.append(exc)

        def compose() -> None:
            try:
                for _ in range(2000):
                    assert composer.compose(lambda: 1, {"flip": None})() in (1, -1)
            except BaseException as exc:  # pragma: no cover - surfaced below
                errors.append(exc)

        writer = threading.Thread(target=churn)
        readers = [threading.Thread(target=compose) for _ in range(2)]
        writer.start()
        for t in readers:
            t.start()
        for t in readers:
            t.join()
        done.set()
        writer.join()

        assert errors == []


# ---------------------------------------------------------------------------
# Properties
# ---------------------------------------------------------------------------


class TestProperties:
    @given(st.lists(st.tuples(st.sampled_from(["a", "b", "c"]), st.integers()), min_size=1))
    def test_get_reflects_latest_write(self, writes: list[tuple[str, int]]) -> None:
        reg = DecoratorRegistry()
        latest: dict[str, Any] = {}
        for name, n in writes:
            definition = _make_combinator(n)
            reg.register(name, definition)
            latest[name] = definition
        for name, definition in latest.items():
            assert reg.get(name) is definition
        assert set(reg.names()) == set(latest)


def _make_combinator(n: int) -> Any:
    def combinator(func: Any, arg: Any) -> Any:
        return lambda *a: (n, func(*a))

    return combinator

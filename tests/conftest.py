"""Shared test fixtures for tagweave."""

from __future__ import annotations

from typing import Any

import pytest

import sample_tasks
from tagweave import Composer, DecoratorRegistry, MetadataInspector, Weaver


@pytest.fixture()
def registry() -> DecoratorRegistry:
    """An empty, isolated registry."""
    return DecoratorRegistry()


@pytest.fixture()
def inspector() -> MetadataInspector:
    return MetadataInspector()


@pytest.fixture()
def composer(registry: DecoratorRegistry, inspector: MetadataInspector) -> Composer:
    return Composer(registry, inspector)


@pytest.fixture()
def weaver() -> Weaver:
    """A weaver with the decorators used by ``sample_units``."""
    w = Weaver()
    w.register_return("double", lambda r: r * 2)
    w.register_return("negate", lambda r: -r)
    w.register_return("upper", lambda v: v.upper() if isinstance(v, str) else v)
    return w


@pytest.fixture(autouse=True)
def _reset_task_calls() -> Any:
    sample_tasks.CALLS.clear()
    yield
    sample_tasks.CALLS.clear()

"""
Pytest configuration for model-blueprints tests.

Every test gets its own blueprint registry and record store, so blueprints
and saved records never leak between tests.
"""

from collections.abc import Iterator

import pytest

from model_blueprints import (
    BlueprintEngine,
    BlueprintRegistry,
    RecordStore,
    set_default_registry,
    set_store,
)


@pytest.fixture(autouse=True)
def store() -> Iterator[RecordStore]:
    """Fresh record store used by all BlueprintModel saves."""
    fresh = RecordStore()
    previous = set_store(fresh)
    yield fresh
    set_store(previous)


@pytest.fixture(autouse=True)
def default_registry() -> Iterator[BlueprintRegistry]:
    """Fresh default registry for the module-level make/plan helpers."""
    fresh = BlueprintRegistry()
    previous = set_default_registry(fresh)
    yield fresh
    set_default_registry(previous)


@pytest.fixture
def registry() -> BlueprintRegistry:
    """Isolated registry for engine tests."""
    return BlueprintRegistry()


@pytest.fixture
def engine(registry: BlueprintRegistry) -> BlueprintEngine:
    return BlueprintEngine(registry)

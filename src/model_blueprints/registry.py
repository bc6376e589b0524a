"""
Blueprint registry.

Maps an entity type to its ordered attribute declarations. A registry is a
plain object: tests can create their own for isolation, while the module
keeps one process default used by the module-level construction helpers.

Example::

    from model_blueprints import BlueprintRegistry, Deferred

    registry = BlueprintRegistry()
    registry.define(Post, {"title": "Test", "body": Deferred(lambda ctx: ctx.title)})
    registry.lookup(Post).names  # ("title", "body")
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

from .attributes import AttributeSlot, collect_slots
from .exceptions import UndefinedBlueprint
from .models import get_registered_models

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BlueprintDefinition:
    """The ordered attribute slots declared for one entity type."""

    model: type
    slots: tuple[AttributeSlot, ...] = field(default_factory=tuple)

    @property
    def names(self) -> tuple[str, ...]:
        return tuple(slot.name for slot in self.slots)

    def get_slot(self, name: str) -> AttributeSlot | None:
        for slot in self.slots:
            if slot.name == name:
                return slot
        return None

    def __contains__(self, name: object) -> bool:
        return any(slot.name == name for slot in self.slots)

    def __len__(self) -> int:
        return len(self.slots)


class BlueprintRegistry:
    """
    Table of blueprints keyed by entity type.

    Each type needs its own declaration: a subclass never falls back to the
    blueprint of its parent.
    """

    def __init__(self) -> None:
        self._blueprints: dict[type, BlueprintDefinition] = {}
        self._lock = threading.RLock()

    def define(
        self,
        model: type,
        declarations: Mapping[str, Any] | Iterable[Any] = (),
    ) -> BlueprintDefinition:
        """
        Store the blueprint for ``model``, replacing any previous one.

        Args:
            model: The entity type.
            declarations: Mapping or iterable of ``(name, value)`` pairs and
                ``AttributeSlot`` objects, in declaration order.

        Returns:
            The stored definition.
        """
        definition = BlueprintDefinition(model=model, slots=tuple(collect_slots(declarations)))
        with self._lock:
            replaced = model in self._blueprints
            self._blueprints[model] = definition
        logger.debug(
            "%s blueprint for %s with %d attribute(s)",
            "Redefined" if replaced else "Defined",
            model.__name__,
            len(definition),
        )
        return definition

    def lookup(self, model: type) -> BlueprintDefinition:
        """
        Get the current blueprint for ``model``.

        Raises:
            UndefinedBlueprint: If no blueprint was declared for this exact type.
        """
        with self._lock:
            definition = self._blueprints.get(model)
        if definition is None:
            raise UndefinedBlueprint(model)
        return definition

    def is_defined(self, model: type) -> bool:
        with self._lock:
            return model in self._blueprints

    def undefine(self, model: type) -> bool:
        """Remove the blueprint for ``model``. Returns True if one existed."""
        with self._lock:
            return self._blueprints.pop(model, None) is not None

    def clear(self) -> None:
        """Remove all blueprints. Useful for testing."""
        with self._lock:
            self._blueprints.clear()

    @property
    def models(self) -> list[type]:
        with self._lock:
            return list(self._blueprints)

    def resolve_type(self, name: str) -> type | None:
        """
        Find a type by class name.

        Types with a blueprint in this registry win over model classes that
        are only known to the model registry.
        """
        for model in self.models:
            if model.__name__ == name:
                return model
        for model in get_registered_models():
            if model.__name__ == name:
                return model
        return None

    def __contains__(self, model: object) -> bool:
        return isinstance(model, type) and self.is_defined(model)

    def __len__(self) -> int:
        with self._lock:
            return len(self._blueprints)


_default_registry = BlueprintRegistry()


def get_default_registry() -> BlueprintRegistry:
    """Get the process-wide default registry."""
    return _default_registry


def set_default_registry(registry: BlueprintRegistry) -> BlueprintRegistry:
    """
    Replace the process-wide default registry.

    Returns:
        The previous default registry.
    """
    global _default_registry
    previous = _default_registry
    _default_registry = registry
    return previous


__all__ = [
    "BlueprintDefinition",
    "BlueprintRegistry",
    "get_default_registry",
    "set_default_registry",
]

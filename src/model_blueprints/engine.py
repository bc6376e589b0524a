"""
Blueprint construction engine.

Builds one instance of an entity type by walking its blueprint in
declaration order, then applies the materialization mode.

Example::

    from model_blueprints import make, make_unsaved, plan

    person = await make(Person)                      # saved
    person = await make(Person, name="Bill")         # override by keyword
    person = await make(Person, {"name": "Bill"})    # override by name
    comment = await plan(Comment)                    # comment unsaved, post saved
    comment = await make_unsaved(Comment)            # nothing saved

    async def audit(person):
        await make(AuditEntry, subject=person.name)  # saved

    await make_unsaved(Person, callback=audit)
"""

from __future__ import annotations

import inspect
import logging
from collections.abc import Callable, Mapping
from contextvars import ContextVar
from typing import Any, TypeVar

from .attributes import AttributeSlot
from .context import ResolutionContext
from .exceptions import CallbackFailure, NoAssociationTarget, PersistenceFailure
from .registry import BlueprintRegistry, get_default_registry
from .types import MaterializationMode

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Post-build callback: receives the instance, may be a coroutine function
BuildCallback = Callable[[Any], Any]

# Set while make_unsaved() resolves attributes: no construction saves.
_unsaved_scope: ContextVar[bool] = ContextVar("_blueprint_unsaved_scope", default=False)


def _merge_overrides(overrides: Mapping[Any, Any] | None, attrs: dict[str, Any]) -> dict[str, Any]:
    """Normalize mapping and keyword overrides to text keys."""
    merged: dict[str, Any] = {}
    for key, value in (overrides or {}).items():
        if not isinstance(key, str):
            raise TypeError(f"Override keys must be attribute names, got {key!r}")
        merged[str(key)] = value
    merged.update(attrs)
    return merged


def _camelize(name: str) -> str:
    return "".join(part[:1].upper() + part[1:] for part in name.split("_") if part)


async def _resolve(value: Any) -> Any:
    if inspect.isawaitable(value):
        return await value
    return value


class BlueprintEngine:
    """
    Construction engine bound to a blueprint registry.

    Args:
        registry: Registry to read blueprints from. Defaults to the
            process-wide default registry, looked up on every call.
    """

    def __init__(self, registry: BlueprintRegistry | None = None) -> None:
        self._registry = registry

    @property
    def registry(self) -> BlueprintRegistry:
        if self._registry is not None:
            return self._registry
        return get_default_registry()

    async def construct(
        self,
        model: type[T],
        overrides: Mapping[str, Any] | None = None,
        mode: MaterializationMode = MaterializationMode.PERSISTED,
        callback: BuildCallback | None = None,
    ) -> T:
        """
        Build one fully resolved instance of ``model``.

        Slots are resolved in declaration order. An override always wins and
        prevents the slot's computation from running. Literal values are
        used as declared, deferred computations are evaluated with the
        resolution context, and bare slots build the related type through
        its own blueprint (always saved, unless inside ``make_unsaved``).

        Args:
            model: Entity type to build.
            overrides: Attribute values replacing the blueprint's.
            mode: Whether the instance is saved.
            callback: Called with the instance after the save step.

        Raises:
            UndefinedBlueprint: If ``model`` has no blueprint.
            NoAssociationTarget: If a bare slot can't be mapped to a type.
            PersistenceFailure: If saving the instance fails.
            CallbackFailure: If the callback raises.
        """
        instance = model()
        definition = self.registry.lookup(model)
        overrides = _merge_overrides(overrides, {})
        mode = MaterializationMode(mode)

        logger.debug("Constructing %s (%s, %d attribute(s))", model.__name__, mode, len(definition))

        ctx = ResolutionContext(instance, overrides)

        # Overrides without a slot are assigned up front
        for name, value in overrides.items():
            if name not in definition:
                self._assign(instance, name, value)

        for slot in definition.slots:
            if slot.name in overrides:
                value = overrides[slot.name]
            elif slot.is_literal:
                value = slot.value
            elif slot.is_deferred:
                value = await _resolve(slot.value(ctx))
            else:
                value = await self._build_association(model, slot)

            self._assign(instance, slot.name, value)
            ctx._record(slot.name, value)

        if mode.saves and not _unsaved_scope.get():
            await self._persist(instance)

        if callback is not None:
            await self._run_callback(instance, callback)

        return instance

    async def make(
        self,
        model: type[T],
        overrides: Mapping[str, Any] | None = None,
        /,
        *,
        callback: BuildCallback | None = None,
        **attrs: Any,
    ) -> T:
        """
        Build and save an instance.

        Overrides can be passed as a mapping, as keywords, or both.
        """
        return await self.construct(
            model,
            _merge_overrides(overrides, attrs),
            MaterializationMode.PERSISTED,
            callback,
        )

    async def plan(
        self,
        model: type[T],
        overrides: Mapping[str, Any] | None = None,
        /,
        **attrs: Any,
    ) -> T:
        """
        Build an instance without saving it.

        Associated instances built from bare slots are still saved.
        """
        return await self.construct(
            model,
            _merge_overrides(overrides, attrs),
            MaterializationMode.TRANSIENT,
        )

    async def make_unsaved(
        self,
        model: type[T],
        overrides: Mapping[str, Any] | None = None,
        /,
        *,
        callback: BuildCallback | None = None,
        **attrs: Any,
    ) -> T:
        """
        Build an instance and its associations without saving anything.

        The callback runs after attribute resolution, outside the unsaved
        scope: instances it builds with ``make()`` are saved.
        """
        token = _unsaved_scope.set(True)
        try:
            instance = await self.construct(
                model,
                _merge_overrides(overrides, attrs),
                MaterializationMode.TRANSIENT,
            )
        finally:
            _unsaved_scope.reset(token)

        if callback is not None:
            await self._run_callback(instance, callback)
        return instance

    async def make_batch(
        self,
        model: type[T],
        count: int,
        overrides: Mapping[str, Any] | None = None,
        /,
        *,
        callback: BuildCallback | None = None,
        **attrs: Any,
    ) -> list[T]:
        """
        Build and save ``count`` instances, one after another.

        Returns:
            A list of saved instances.
        """
        instances = []
        for _ in range(count):
            instance = await self.make(model, overrides, callback=callback, **attrs)
            instances.append(instance)
        return instances

    async def plan_batch(
        self,
        model: type[T],
        count: int,
        overrides: Mapping[str, Any] | None = None,
        /,
        **attrs: Any,
    ) -> list[T]:
        """Build ``count`` unsaved instances."""
        return [await self.plan(model, overrides, **attrs) for _ in range(count)]

    async def _build_association(self, model: type, slot: AttributeSlot) -> Any:
        target = self._association_target(model, slot)
        logger.debug("Building %s for %s.%s", target.__name__, model.__name__, slot.name)
        return await self.construct(target, None, MaterializationMode.PERSISTED)

    def _association_target(self, model: type, slot: AttributeSlot) -> type:
        """
        Find the related type of a bare slot.

        Checked in order: the slot's explicit target, the model's
        association map, then the attribute name in CamelCase.
        """
        target = slot.value
        if target is None:
            target = self._association_map(model).get(slot.name)
        if target is None:
            target = _camelize(slot.name)

        if isinstance(target, str):
            resolved = self.registry.resolve_type(target)
            if resolved is None:
                raise NoAssociationTarget(model, slot.name)
            return resolved
        if isinstance(target, type):
            return target
        raise NoAssociationTarget(model, slot.name)

    @staticmethod
    def _association_map(model: type) -> Mapping[str, Any]:
        getter = getattr(model, "get_associations", None)
        if callable(getter):
            return getter()
        return getattr(model, "__associations__", None) or {}

    @staticmethod
    def _assign(instance: Any, name: str, value: Any) -> None:
        """Write a field through the privileged path."""
        setter = getattr(instance, "set_field", None)
        if callable(setter):
            setter(name, value)
        else:
            object.__setattr__(instance, name, value)

    @staticmethod
    async def _persist(instance: Any) -> None:
        try:
            saved = await _resolve(instance.save())
        except Exception as e:
            logger.debug("Saving %s failed: %s", type(instance).__name__, e)
            raise PersistenceFailure(instance, f"Can't save {type(instance).__name__} instance: {e}") from e
        if saved is False:
            logger.debug("Saving %s was rejected", type(instance).__name__)
            raise PersistenceFailure(instance)

    @staticmethod
    async def _run_callback(instance: Any, callback: BuildCallback) -> None:
        try:
            await _resolve(callback(instance))
        except Exception as e:
            logger.debug("Post-build callback for %s failed: %s", type(instance).__name__, e)
            raise CallbackFailure(instance, f"Post-build callback failed for {type(instance).__name__}: {e}") from e


_default_engine = BlueprintEngine()

# Module-level entry points read the default registry
construct = _default_engine.construct
make = _default_engine.make
plan = _default_engine.plan
make_unsaved = _default_engine.make_unsaved
make_batch = _default_engine.make_batch
plan_batch = _default_engine.plan_batch


__all__ = [
    "BlueprintEngine",
    "BuildCallback",
    "construct",
    "make",
    "make_batch",
    "make_unsaved",
    "plan",
    "plan_batch",
]

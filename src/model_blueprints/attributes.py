"""
Attribute declarations for blueprints.

A blueprint is an ordered sequence of ``AttributeSlot`` objects. Each slot
holds a literal value, a deferred computation evaluated on every
construction, or a bare association resolved by building the related type
through its own blueprint.

A bare ``lambda`` is read as ``Deferred(lambda)``. Other callables, such as
classes or named functions, are literal values: wrap them in ``Deferred`` to
have them called.

Example::

    from model_blueprints import Association, Deferred, collect_slots

    slots = collect_slots(
        {
            "title": "Test",
            "body": Deferred(lambda ctx: ctx.title),
            "author": Association("Person"),
        }
    )
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass
from types import FunctionType
from typing import TYPE_CHECKING, Any, Literal

from .exceptions import InvalidBlueprint

if TYPE_CHECKING:
    from .context import ResolutionContext

SlotKind = Literal["literal", "deferred", "association"]


def _is_lambda(value: Any) -> bool:
    return isinstance(value, FunctionType) and value.__name__ == "<lambda>"


class Deferred:
    """
    A computation evaluated lazily, once per construction call.

    The wrapped callable receives the ``ResolutionContext`` as its only
    argument. It may be a coroutine function, in which case the engine
    awaits its result.

    Example::

        body = Deferred(lambda ctx: f"{ctx.title} body")
    """

    def __init__(self, func: Callable[[ResolutionContext], Any]) -> None:
        if not callable(func):
            raise InvalidBlueprint(f"Deferred() expects a callable, got {func!r}")
        self.func = func

    def __call__(self, ctx: ResolutionContext) -> Any:
        return self.func(ctx)

    def __repr__(self) -> str:
        return f"Deferred({getattr(self.func, '__name__', self.func)!r})"


def deferred(func: Callable[[ResolutionContext], Any]) -> Deferred:
    """
    Decorator form of ``Deferred`` for blueprint class bodies.

    Example::

        class PostBlueprint(Blueprint):
            class Meta:
                model = Post

            title = "Test"

            @deferred
            def body(ctx):
                return ctx.title
    """
    return Deferred(func)


class Association:
    """
    Bare declaration: build one instance of a related type.

    Without a target, the related type is derived from the owning entity's
    association map or from the attribute name itself.

    Args:
        target: Related type, or its class name.
    """

    def __init__(self, target: type | str | None = None) -> None:
        if target is not None and not isinstance(target, (type, str)):
            raise InvalidBlueprint(f"Association target must be a type or a name, got {target!r}")
        self.target = target

    def __repr__(self) -> str:
        if self.target is None:
            return "Association()"
        name = self.target if isinstance(self.target, str) else self.target.__name__
        return f"Association({name!r})"


@dataclass(frozen=True, slots=True)
class AttributeSlot:
    """One named declaration within a blueprint."""

    name: str
    kind: SlotKind
    value: Any = None

    @classmethod
    def from_declaration(cls, name: str, value: Any) -> AttributeSlot:
        """Classify a raw declared value into a slot."""
        if not isinstance(name, str) or not name:
            raise InvalidBlueprint(f"Attribute names must be non-empty strings, got {name!r}")
        if isinstance(value, AttributeSlot):
            return cls(name, value.kind, value.value)
        if isinstance(value, Deferred):
            return cls(name, "deferred", value)
        # A lambda is a computation; named callables are literal values
        if _is_lambda(value):
            return cls(name, "deferred", Deferred(value))
        if isinstance(value, Association) or value is Association:
            target = value.target if isinstance(value, Association) else None
            return cls(name, "association", target)
        return cls(name, "literal", value)

    @property
    def is_literal(self) -> bool:
        return self.kind == "literal"

    @property
    def is_deferred(self) -> bool:
        return self.kind == "deferred"

    @property
    def is_association(self) -> bool:
        return self.kind == "association"


def collect_slots(declarations: Mapping[str, Any] | Iterable[Any]) -> list[AttributeSlot]:
    """
    Translate declarations into slots, in declaration order.

    Accepts a mapping of name to declared value, or an iterable of
    ``(name, value)`` pairs and ``AttributeSlot`` objects. Declaring a name
    twice replaces its value but keeps its first position.

    Raises:
        InvalidBlueprint: If an item is neither a pair nor a slot.
    """
    items: Iterable[Any] = declarations.items() if isinstance(declarations, Mapping) else declarations

    slots: dict[str, AttributeSlot] = {}
    for item in items:
        if isinstance(item, AttributeSlot):
            slot = item
        elif isinstance(item, tuple) and len(item) == 2:
            slot = AttributeSlot.from_declaration(*item)
        else:
            raise InvalidBlueprint(f"Can't read attribute declaration {item!r}")
        slots[slot.name] = slot
    return list(slots.values())


__all__ = [
    "Association",
    "AttributeSlot",
    "Deferred",
    "SlotKind",
    "collect_slots",
    "deferred",
]

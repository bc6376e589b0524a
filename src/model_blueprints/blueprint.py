"""
Declarative blueprints.

Subclasses of ``Blueprint`` declare attribute values as class attributes,
in order. Defining the class registers the blueprint for ``Meta.model``.

Example::

    from model_blueprints import Association, Blueprint, deferred

    class PostBlueprint(Blueprint):
        class Meta:
            model = Post

        title = "Test"

        @deferred
        def body(ctx):
            return f"Body of {ctx.title}"

    class CommentBlueprint(Blueprint):
        class Meta:
            model = Comment

        post = Association()
        author = Association("Person")

    comment = await CommentBlueprint.make()
    draft = await PostBlueprint.make_unsaved(title="Draft")
"""

from __future__ import annotations

from collections.abc import Mapping
from types import FunctionType
from typing import Any

from .attributes import AttributeSlot, _is_lambda
from .engine import BlueprintEngine, BuildCallback
from .exceptions import InvalidBlueprint
from .registry import BlueprintDefinition, BlueprintRegistry, get_default_registry

_IGNORED_TYPES = (FunctionType, classmethod, staticmethod, property)

# Class-level entry points a slot must not hide
_RESERVED_NAMES = frozenset({"definition", "make", "make_batch", "make_unsaved", "plan", "plan_batch"})


class _BlueprintMeta(type):
    """Metaclass that collects attribute declarations from the class body."""

    def __new__(
        mcs,
        name: str,
        bases: tuple[type, ...],
        namespace: dict[str, Any],
    ) -> type:
        # Inherited declarations come first, in their original order
        declarations: dict[str, AttributeSlot] = {}
        for base in bases:
            if hasattr(base, "_slots"):
                declarations.update({slot.name: slot for slot in base._slots})

        for attr_name, attr_value in namespace.items():
            if attr_name.startswith("_") or attr_name == "Meta":
                continue
            if isinstance(attr_value, _IGNORED_TYPES) and not _is_lambda(attr_value):
                continue
            if attr_name in _RESERVED_NAMES:
                raise InvalidBlueprint(
                    f"{name}.{attr_name} would hide Blueprint.{attr_name}(); "
                    "declare this attribute with BlueprintRegistry.define() instead"
                )
            declarations[attr_name] = AttributeSlot.from_declaration(attr_name, attr_value)

        cls = super().__new__(mcs, name, bases, namespace)
        cls._slots = tuple(declarations.values())  # type: ignore[attr-defined]

        model = getattr(cls.Meta, "model", None) if "Meta" in namespace else None  # type: ignore[attr-defined]
        if model is not None:
            cls._get_registry().define(model, cls._slots)  # type: ignore[attr-defined]
        return cls


class Blueprint(metaclass=_BlueprintMeta):
    """
    Base class for declarative blueprints.

    Class attributes become attribute slots: plain values are literals,
    ``Deferred``/``@deferred`` values are computed per construction and
    ``Association()`` builds a related instance. A ``lambda`` is a
    computation, like ``Deferred``. Methods and names starting with an
    underscore are not slots. The names of the class-level entry points
    (``make``, ``plan``, ``make_unsaved``, ``make_batch``, ``plan_batch``,
    ``definition``) can't be declared here and raise ``InvalidBlueprint``.

    ``Meta.model`` is the entity type. ``Meta.registry`` selects the
    registry the blueprint is stored in (default: the process default).
    """

    _slots: tuple[AttributeSlot, ...]

    class Meta:
        model: type
        registry: BlueprintRegistry

    @classmethod
    def _get_model(cls) -> type:
        """Get the model class from Meta."""
        model = getattr(cls.Meta, "model", None)
        if model is None:
            raise ValueError(f"{cls.__name__}.Meta.model is not set. Define a Meta class with a model attribute.")
        return model  # type: ignore[no-any-return]

    @classmethod
    def _get_registry(cls) -> BlueprintRegistry:
        registry = getattr(cls.Meta, "registry", None)
        if registry is None:
            return get_default_registry()
        return registry  # type: ignore[no-any-return]

    @classmethod
    def _get_engine(cls) -> BlueprintEngine:
        return BlueprintEngine(cls._get_registry())

    @classmethod
    def definition(cls) -> BlueprintDefinition:
        """The blueprint currently registered for ``Meta.model``."""
        return cls._get_registry().lookup(cls._get_model())

    @classmethod
    async def make(
        cls,
        overrides: Mapping[str, Any] | None = None,
        /,
        *,
        callback: BuildCallback | None = None,
        **attrs: Any,
    ) -> Any:
        """Build and save an instance of ``Meta.model``."""
        return await cls._get_engine().make(cls._get_model(), overrides, callback=callback, **attrs)

    @classmethod
    async def plan(cls, overrides: Mapping[str, Any] | None = None, /, **attrs: Any) -> Any:
        """Build an unsaved instance; associations are saved."""
        return await cls._get_engine().plan(cls._get_model(), overrides, **attrs)

    @classmethod
    async def make_unsaved(
        cls,
        overrides: Mapping[str, Any] | None = None,
        /,
        *,
        callback: BuildCallback | None = None,
        **attrs: Any,
    ) -> Any:
        """Build an instance without saving it or its associations."""
        return await cls._get_engine().make_unsaved(cls._get_model(), overrides, callback=callback, **attrs)

    @classmethod
    async def make_batch(
        cls,
        count: int,
        overrides: Mapping[str, Any] | None = None,
        /,
        *,
        callback: BuildCallback | None = None,
        **attrs: Any,
    ) -> list[Any]:
        """Build and save ``count`` instances."""
        return await cls._get_engine().make_batch(cls._get_model(), count, overrides, callback=callback, **attrs)

    @classmethod
    async def plan_batch(cls, count: int, overrides: Mapping[str, Any] | None = None, /, **attrs: Any) -> list[Any]:
        """Build ``count`` unsaved instances."""
        return await cls._get_engine().plan_batch(cls._get_model(), count, overrides, **attrs)


__all__ = ["Blueprint"]

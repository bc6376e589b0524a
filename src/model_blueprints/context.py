"""
Resolution context passed to deferred computations.

The context lives for a single construction call. It exposes the
in-progress instance and the attributes resolved so far, in declaration
order. Attributes declared later are not visible: reading them raises
``UnresolvedAttribute``.

A resolved attribute wins over the context member of the same name
(``object``, ``instance``, ``model``, ``overrides``, ``resolved``, ``get``):
with a ``model`` slot, ``ctx.model`` is that slot's value.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from types import MappingProxyType
from typing import Any

from .exceptions import UnresolvedAttribute

_MISSING = object()


class ResolutionContext:
    """
    View over one construction in progress.

    Example::

        Deferred(lambda ctx: ctx.title.upper())
        Deferred(lambda ctx: ctx["title"] if "title" in ctx else "untitled")
        Deferred(lambda ctx: type(ctx.object).__name__)
    """

    __slots__ = ("_instance", "_overrides", "_resolved")

    def __init__(self, instance: Any, overrides: Mapping[str, Any] | None = None) -> None:
        self._instance = instance
        self._overrides: Mapping[str, Any] = MappingProxyType(dict(overrides or {}))
        self._resolved: dict[str, Any] = {}

    @property
    def object(self) -> Any:
        """The instance being constructed."""
        return self._instance

    @property
    def instance(self) -> Any:
        return self._instance

    @property
    def model(self) -> type:
        return type(self._instance)

    @property
    def overrides(self) -> Mapping[str, Any]:
        """Overrides passed to this construction call."""
        return self._overrides

    @property
    def resolved(self) -> Mapping[str, Any]:
        """Resolved attributes, in resolution order."""
        return MappingProxyType(self._resolved)

    def _record(self, name: str, value: Any) -> None:
        """Make a resolved value visible to later slots."""
        self._resolved[name] = value

    def get(self, name: str, default: Any = None) -> Any:
        return self._resolved.get(name, default)

    def __getitem__(self, name: str) -> Any:
        value = self._resolved.get(name, _MISSING)
        if value is _MISSING:
            raise UnresolvedAttribute(name)
        return value

    def __getattribute__(self, name: str) -> Any:
        if not name.startswith("_"):
            resolved = object.__getattribute__(self, "_resolved")
            if name in resolved:
                return resolved[name]
        return object.__getattribute__(self, name)

    def __getattr__(self, name: str) -> Any:
        # Private names go through ctx["_name"]
        if name.startswith("_"):
            raise AttributeError(name)
        return self[name]

    def __contains__(self, name: object) -> bool:
        return name in self._resolved

    def __iter__(self) -> Iterator[str]:
        return iter(self._resolved)

    def __repr__(self) -> str:
        return f"ResolutionContext({type(self._instance).__name__}, resolved={list(self._resolved)!r})"


__all__ = ["ResolutionContext"]

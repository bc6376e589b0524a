"""
Model Blueprints Exceptions.

Custom exception hierarchy for blueprint definition and construction.
"""

from typing import Any


class BlueprintError(Exception):
    """Base exception for all blueprint errors."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class InvalidBlueprint(BlueprintError):
    """Raised when a blueprint declaration cannot be understood."""

    pass


class UndefinedBlueprint(BlueprintError):
    """Raised when constructing a type that has no blueprint."""

    def __init__(self, model: type):
        self.model = model
        super().__init__(f"No blueprint defined for {model.__name__}.")


class NoAssociationTarget(BlueprintError):
    """Raised when a bare attribute cannot be mapped to a related type."""

    def __init__(self, model: type, attribute: str):
        self.model = model
        self.attribute = attribute
        super().__init__(f"Can't find an association target for {model.__name__}.{attribute}.")


class PersistenceFailure(BlueprintError):
    """Raised when the entity's save contract rejects the instance."""

    def __init__(self, instance: Any, message: str | None = None):
        self.instance = instance
        super().__init__(message or f"Can't save {type(instance).__name__} instance.")


class CallbackFailure(BlueprintError):
    """Raised when a post-build callback fails."""

    def __init__(self, instance: Any, message: str | None = None):
        self.instance = instance
        super().__init__(message or f"Post-build callback failed for {type(instance).__name__} instance.")


class UnresolvedAttribute(BlueprintError, AttributeError):
    """Raised when reading an attribute that has not been resolved yet."""

    def __init__(self, name: str):
        self.attribute = name
        super().__init__(f"Attribute {name!r} is not resolved yet.")


class ProtectedFieldError(BlueprintError, AttributeError):
    """Raised when a protected field is written outside the privileged path."""

    def __init__(self, model: type, field: str):
        self.model = model
        self.field = field
        super().__init__(f"{model.__name__}.{field} is protected, use set_field() to assign it.")

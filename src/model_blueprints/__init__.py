"""
Model Blueprints: declarative test fixtures for entity models.

Declare once per entity type how to build a valid instance, then build
instances on demand with selective overrides.

Example::

    from model_blueprints import Association, Blueprint, deferred, make, make_unsaved, plan

    class PostBlueprint(Blueprint):
        class Meta:
            model = Post

        title = "Test"

        @deferred
        def body(ctx):
            return ctx.title

    class CommentBlueprint(Blueprint):
        class Meta:
            model = Comment

        post = Association()

    post = await make(Post, title="Override")   # saved
    comment = await plan(Comment)               # unsaved, its post saved
    comment = await make_unsaved(Comment)       # nothing saved
"""

from .attributes import Association, AttributeSlot, Deferred, collect_slots, deferred
from .blueprint import Blueprint
from .context import ResolutionContext
from .engine import (
    BlueprintEngine,
    construct,
    make,
    make_batch,
    make_unsaved,
    plan,
    plan_batch,
)
from .exceptions import (
    BlueprintError,
    CallbackFailure,
    InvalidBlueprint,
    NoAssociationTarget,
    PersistenceFailure,
    ProtectedFieldError,
    UndefinedBlueprint,
    UnresolvedAttribute,
)
from .models import BlueprintConfigDict, BlueprintModel, clear_model_registry, get_registered_models
from .registry import BlueprintDefinition, BlueprintRegistry, get_default_registry, set_default_registry
from .store import RecordStore, get_store, set_store
from .types import MaterializationMode

__all__ = [
    # Declarations
    "Association",
    "AttributeSlot",
    "Blueprint",
    "Deferred",
    "collect_slots",
    "deferred",
    # Registry
    "BlueprintDefinition",
    "BlueprintRegistry",
    "get_default_registry",
    "set_default_registry",
    # Construction
    "BlueprintEngine",
    "MaterializationMode",
    "ResolutionContext",
    "construct",
    "make",
    "make_batch",
    "make_unsaved",
    "plan",
    "plan_batch",
    # Reference models
    "BlueprintConfigDict",
    "BlueprintModel",
    "RecordStore",
    "clear_model_registry",
    "get_registered_models",
    "get_store",
    "set_store",
    # Exceptions
    "BlueprintError",
    "CallbackFailure",
    "InvalidBlueprint",
    "NoAssociationTarget",
    "PersistenceFailure",
    "ProtectedFieldError",
    "UndefinedBlueprint",
    "UnresolvedAttribute",
]

import logging
from typing import Any, Self

from pydantic import BaseModel, ConfigDict, PrivateAttr

from .exceptions import ProtectedFieldError
from .store import get_store

logger = logging.getLogger(__name__)

# Global registry of all blueprint models, used to resolve association names
_MODEL_REGISTRY: list[type["BlueprintModel"]] = []


def get_registered_models() -> list[type["BlueprintModel"]]:
    """
    Get all registered blueprint models.

    Returns:
        List of all model classes that inherit from BlueprintModel
    """
    return _MODEL_REGISTRY.copy()


def clear_model_registry() -> None:
    """
    Clear the model registry. Useful for testing.
    """
    _MODEL_REGISTRY.clear()


class BlueprintConfigDict(ConfigDict):
    """
    BlueprintConfigDict is a configuration dictionary for blueprint models.

    Extends Pydantic's ConfigDict with persistence and construction options.

    Attributes:
        table_name: Override the default table name (default: class name)
        protected_fields: Field names that can't be assigned with a plain
            ``setattr``. Blueprints still write them through ``set_field``.
            ``id`` is always protected.
        associations: Mapping of attribute name to related model (class or
            class name) used to build bare blueprint attributes, e.g.
            ``{"author": "Person"}``.
    """

    table_name: str | None
    protected_fields: list[str] | None
    associations: dict[str, type | str] | None


class BlueprintModel(BaseModel):
    """
    Base class for entities built by blueprints.

    Implements the collaborator contract of the construction engine:
    no-argument instantiation, a privileged ``set_field`` write path,
    an async ``save`` and ``is_new``.

    Example:
        class Person(BlueprintModel):
            model_config = BlueprintConfigDict(protected_fields=["password"])

            id: int | None = None
            name: str | None = None
            password: str | None = None

        class Comment(BlueprintModel):
            model_config = BlueprintConfigDict(associations={"author": "Person"})

            id: int | None = None
            post: Post | None = None
            author: Person | None = None
    """

    model_config = ConfigDict(
        populate_by_name=True,
    )

    # Tracks whether this instance has been written to the store.
    _db_persisted: bool = PrivateAttr(default=False)

    def __init_subclass__(cls, **kwargs: Any) -> None:
        """Register subclasses in the model registry for association lookup."""
        super().__init_subclass__(**kwargs)
        # Only register concrete models, not intermediate base classes
        if cls.__name__ != "BlueprintModel" and not cls.__name__.startswith("_"):
            if cls not in _MODEL_REGISTRY:
                _MODEL_REGISTRY.append(cls)

    @classmethod
    def get_table_name(cls) -> str:
        """
        Get the table name for the model.

        Returns the table_name from model_config if set,
        otherwise returns the class name.
        """
        table_name = cls.model_config.get("table_name", None)
        if isinstance(table_name, str):
            return table_name
        return cls.__name__

    @classmethod
    def get_protected_fields(cls) -> set[str]:
        protected = cls.model_config.get("protected_fields", None)
        if isinstance(protected, list):
            return {"id", *protected}
        return {"id"}

    @classmethod
    def get_associations(cls) -> dict[str, type | str]:
        """
        Get the association map of the model.

        Returns:
            Dict of attribute name to related model or model name
        """
        associations = cls.model_config.get("associations", None)
        if isinstance(associations, dict):
            return dict(associations)
        return {}

    def __setattr__(self, name: str, value: Any) -> None:
        if name in self.get_protected_fields():
            raise ProtectedFieldError(type(self), name)
        super().__setattr__(name, value)

    def set_field(self, name: str, value: Any) -> None:
        """
        Assign a field, protected or not.

        This is the privileged path used by blueprint construction.
        """
        BaseModel.__setattr__(self, name, value)

    def get_id(self) -> Any:
        return getattr(self, "id", None)

    def is_new(self) -> bool:
        """True until the instance has been saved."""
        return not self._db_persisted

    def _dump_record(self) -> dict[str, Any]:
        """Build the stored record, replacing related models with their ids."""
        record: dict[str, Any] = {}
        for key, value in dict(self).items():
            if key == "id":
                continue
            if isinstance(value, BlueprintModel):
                value = value.get_id()
            record[key] = value
        return record

    async def save(self) -> Self:
        """
        Save the model instance to the store.

        The instance is re-validated through pydantic first, so field
        values written without validation are checked here.

        For persisted records or new records with an ID: upserts.
        For new records without ID: inserts and assigns the generated ID.

        Raises:
            pydantic.ValidationError: If the current field values are invalid.
        """
        type(self).model_validate(dict(self))

        store = get_store()
        table = self.get_table_name()
        record_id = self.get_id()
        data = self._dump_record()

        if record_id is not None:
            store.upsert(table, record_id, data)
        else:
            self.set_field("id", store.insert(table, data))

        self._db_persisted = True
        logger.debug(f"Record saved -> {table}:{self.get_id()}.")
        return self

    async def delete(self) -> None:
        """
        Delete the model instance from the store.

        Raises:
            LookupError: If the instance was never saved.
        """
        record_id = self.get_id()
        if self.is_new() or record_id is None:
            raise LookupError(f"Can't delete unsaved {type(self).__name__} record.")

        get_store().delete(self.get_table_name(), record_id)
        self._db_persisted = False
        logger.info(f"Record deleted -> {self.get_table_name()}:{record_id}.")

    @classmethod
    def count(cls) -> int:
        """Number of stored records for this model."""
        return get_store().count(cls.get_table_name())

    @classmethod
    def get_record(cls, record_id: Any) -> dict[str, Any] | None:
        """Get the stored record with the given id, or None."""
        return get_store().get(cls.get_table_name(), record_id)


__all__ = [
    "BlueprintConfigDict",
    "BlueprintModel",
    "clear_model_registry",
    "get_registered_models",
]

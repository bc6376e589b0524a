"""Tests for attribute declarations and slot collection."""

from __future__ import annotations

import pytest

from model_blueprints import Association, AttributeSlot, Deferred, InvalidBlueprint, collect_slots, deferred


class TestAttributeSlot:
    def test_literal(self) -> None:
        slot = AttributeSlot.from_declaration("name", "Fred")
        assert slot == AttributeSlot("name", "literal", "Fred")
        assert slot.is_literal

    def test_none_is_a_literal(self) -> None:
        slot = AttributeSlot.from_declaration("name", None)
        assert slot.is_literal
        assert slot.value is None

    def test_callable_literal(self) -> None:
        """Classes and named functions are values, not computations."""
        slot = AttributeSlot.from_declaration("factory", dict)
        assert slot.is_literal
        assert slot.value is dict

        def formatter(value: str) -> str:
            return value.upper()

        slot = AttributeSlot.from_declaration("formatter", formatter)
        assert slot.is_literal
        assert slot.value is formatter

    def test_lambda_is_deferred(self) -> None:
        slot = AttributeSlot.from_declaration("label", lambda ctx: "Civic")
        assert slot.is_deferred
        assert isinstance(slot.value, Deferred)
        assert slot.value(None) == "Civic"

    def test_collected_lambda_is_deferred(self) -> None:
        (slot,) = collect_slots({"label": lambda ctx: ctx.title})
        assert slot.kind == "deferred"

    def test_deferred(self) -> None:
        computation = Deferred(lambda ctx: "Fred")
        slot = AttributeSlot.from_declaration("name", computation)
        assert slot.is_deferred
        assert slot.value is computation

    def test_bare_association(self) -> None:
        slot = AttributeSlot.from_declaration("post", Association())
        assert slot.is_association
        assert slot.value is None

    def test_association_class_is_bare(self) -> None:
        slot = AttributeSlot.from_declaration("post", Association)
        assert slot.is_association
        assert slot.value is None

    def test_association_target(self) -> None:
        slot = AttributeSlot.from_declaration("author", Association("Person"))
        assert slot.value == "Person"

    def test_renames_existing_slot(self) -> None:
        original = AttributeSlot("title", "literal", "Test")
        slot = AttributeSlot.from_declaration("heading", original)
        assert slot == AttributeSlot("heading", "literal", "Test")

    @pytest.mark.parametrize("name", ["", None, 3])
    def test_invalid_name(self, name: object) -> None:
        with pytest.raises(InvalidBlueprint, match="non-empty strings"):
            AttributeSlot.from_declaration(name, "x")  # type: ignore[arg-type]


class TestDeclarations:
    def test_deferred_requires_callable(self) -> None:
        with pytest.raises(InvalidBlueprint, match="expects a callable"):
            Deferred("Fred")  # type: ignore[arg-type]

    def test_deferred_decorator(self) -> None:
        @deferred
        def body(ctx: object) -> str:
            return "text"

        assert isinstance(body, Deferred)
        assert body(None) == "text"  # type: ignore[arg-type]
        assert repr(body) == "Deferred('body')"

    def test_association_rejects_bad_target(self) -> None:
        with pytest.raises(InvalidBlueprint, match="type or a name"):
            Association(42)  # type: ignore[arg-type]

    def test_association_repr(self) -> None:
        assert repr(Association()) == "Association()"
        assert repr(Association("Person")) == "Association('Person')"
        assert repr(Association(dict)) == "Association('dict')"


class TestCollectSlots:
    def test_mapping_keeps_order(self) -> None:
        slots = collect_slots({"title": "Test", "body": Deferred(lambda ctx: ctx.title), "post": Association()})
        assert [slot.name for slot in slots] == ["title", "body", "post"]
        assert [slot.kind for slot in slots] == ["literal", "deferred", "association"]

    def test_pairs_and_slots(self) -> None:
        slots = collect_slots([("title", "Test"), AttributeSlot("body", "literal", "Body")])
        assert [slot.name for slot in slots] == ["title", "body"]

    def test_redeclared_name_keeps_first_position(self) -> None:
        slots = collect_slots([("title", "First"), ("body", "Body"), ("title", "Second")])
        assert [(slot.name, slot.value) for slot in slots] == [("title", "Second"), ("body", "Body")]

    def test_empty(self) -> None:
        assert collect_slots({}) == []

    def test_rejects_unknown_items(self) -> None:
        with pytest.raises(InvalidBlueprint, match="Can't read"):
            collect_slots(["title"])

"""Tests for declarative Blueprint classes."""

from __future__ import annotations

import types
from typing import Any

import pytest

from model_blueprints import (
    Association,
    AttributeSlot,
    Blueprint,
    BlueprintConfigDict,
    BlueprintModel,
    BlueprintRegistry,
    Deferred,
    InvalidBlueprint,
    ResolutionContext,
    deferred,
)

# ---------------------------------------------------------------------------
# Test models
# ---------------------------------------------------------------------------


class Writer(BlueprintModel):
    model_config = BlueprintConfigDict(protected_fields=["secret"])

    id: int | None = None
    name: str | None = None
    secret: str | None = None


class Article(BlueprintModel):
    id: int | None = None
    title: str | None = None
    body: str | None = None
    tags: list[str] | None = None


class Remark(BlueprintModel):
    model_config = BlueprintConfigDict(associations={"writer": Writer})

    id: int | None = None
    article: Article | None = None
    writer: Writer | None = None


@pytest.fixture
def reg(registry: BlueprintRegistry) -> BlueprintRegistry:
    """The test registry, under a name Meta bodies can read from the enclosing test."""
    return registry


# ---------------------------------------------------------------------------
# Declaration
# ---------------------------------------------------------------------------


class TestBlueprintDeclaration:
    def test_registers_in_meta_registry(self, reg: BlueprintRegistry) -> None:
        class WriterBlueprint(Blueprint):
            class Meta:
                model = Writer
                registry = reg

            name = "Fred"

        assert reg.lookup(Writer).names == ("name",)
        assert WriterBlueprint.definition() is reg.lookup(Writer)

    def test_registers_in_default_registry(self, default_registry: BlueprintRegistry) -> None:
        class WriterBlueprint(Blueprint):
            class Meta:
                model = Writer

            name = "Fred"

        assert default_registry.is_defined(Writer)

    def test_slot_kinds_and_order(self, reg: BlueprintRegistry) -> None:
        class ArticleBlueprint(Blueprint):
            class Meta:
                model = Article
                registry = reg

            title = "Test"
            tags = Deferred(lambda ctx: ["news"])

            @deferred
            def body(ctx: ResolutionContext) -> str:
                return ctx.title

        definition = reg.lookup(Article)
        assert definition.names == ("title", "tags", "body")
        assert [slot.kind for slot in definition.slots] == ["literal", "deferred", "deferred"]

    def test_methods_and_private_names_are_not_slots(self, reg: BlueprintRegistry) -> None:
        class WriterBlueprint(Blueprint):
            class Meta:
                model = Writer
                registry = reg

            name = "Fred"
            _cache = {}

            def helper(self) -> str:
                return "x"

            @staticmethod
            def static_helper() -> str:
                return "y"

            @classmethod
            def class_helper(cls) -> str:
                return "z"

        assert reg.lookup(Writer).names == ("name",)

    def test_lambda_is_a_computation(self, reg: BlueprintRegistry) -> None:
        class ArticleBlueprint(Blueprint):
            class Meta:
                model = Article
                registry = reg

            title = "Civic"
            body = lambda ctx: ctx["title"]  # noqa: E731

        definition = reg.lookup(Article)
        assert definition.names == ("title", "body")
        assert definition.get_slot("body").is_deferred

    @pytest.mark.parametrize("reserved", ["make", "plan", "make_unsaved", "make_batch", "plan_batch", "definition"])
    def test_entry_point_names_are_rejected(self, reg: BlueprintRegistry, reserved: str) -> None:
        namespace = {"Meta": type("Meta", (), {"model": Article, "registry": reg}), reserved: "x"}
        with pytest.raises(InvalidBlueprint, match=f"ArticleBlueprint.{reserved}"):
            types.new_class("ArticleBlueprint", (Blueprint,), exec_body=lambda ns: ns.update(namespace))
        assert not reg.is_defined(Article)

    def test_entry_point_can_still_be_overridden_by_method(self, reg: BlueprintRegistry) -> None:
        class ArticleBlueprint(Blueprint):
            class Meta:
                model = Article
                registry = reg

            title = "Test"

            @classmethod
            async def make(cls, *args: Any, **kwargs: Any) -> Any:
                return "custom"

        assert reg.lookup(Article).names == ("title",)

    def test_inherits_declarations(self, reg: BlueprintRegistry) -> None:
        class BaseArticleBlueprint(Blueprint):
            title = "Base"
            body = "Body"

        class ArticleBlueprint(BaseArticleBlueprint):
            class Meta:
                model = Article
                registry = reg

            tags = ["extra"]
            title = "Child"

        definition = reg.lookup(Article)
        assert definition.names == ("title", "body", "tags")
        assert definition.get_slot("title") == AttributeSlot("title", "literal", "Child")

    def test_base_without_model_is_not_registered(self, reg: BlueprintRegistry) -> None:
        class AbstractBlueprint(Blueprint):
            class Meta:
                registry = reg

            title = "Base"

        assert len(reg) == 0
        with pytest.raises(ValueError, match="Meta.model is not set"):
            AbstractBlueprint.definition()

    def test_redeclaring_class_replaces_blueprint(self, reg: BlueprintRegistry) -> None:
        class FirstBlueprint(Blueprint):
            class Meta:
                model = Writer
                registry = reg

            name = "Fred"
            secret = "pw"

        class SecondBlueprint(Blueprint):
            class Meta:
                model = Writer
                registry = reg

            name = "George"

        assert reg.lookup(Writer).names == ("name",)
        assert FirstBlueprint.definition() is SecondBlueprint.definition()


# ---------------------------------------------------------------------------
# Construction through the class
# ---------------------------------------------------------------------------


class TestBlueprintConstruction:
    async def test_make(self, reg: BlueprintRegistry) -> None:
        class WriterBlueprint(Blueprint):
            class Meta:
                model = Writer
                registry = reg

            name = "Fred"
            secret = "hunter2"

        writer = await WriterBlueprint.make(name="Bill")
        assert isinstance(writer, Writer)
        assert writer.name == "Bill"
        assert writer.secret == "hunter2"
        assert not writer.is_new()

    async def test_make_with_callback(self, reg: BlueprintRegistry) -> None:
        class WriterBlueprint(Blueprint):
            class Meta:
                model = Writer
                registry = reg

        seen: list[Any] = []
        writer = await WriterBlueprint.make(callback=seen.append)
        assert seen == [writer]

    async def test_plan_and_make_unsaved(self, reg: BlueprintRegistry) -> None:
        class ArticleBlueprint(Blueprint):
            class Meta:
                model = Article
                registry = reg

            title = "Hello"

        class RemarkBlueprint(Blueprint):
            class Meta:
                model = Remark
                registry = reg

            article = Association()

        planned = await RemarkBlueprint.plan()
        assert planned.is_new()
        assert not planned.article.is_new()
        assert planned.article.title == "Hello"

        unsaved = await RemarkBlueprint.make_unsaved({"id": 99})
        assert unsaved.id == 99
        assert unsaved.is_new()
        assert unsaved.article.is_new()
        assert Article.count() == 1

    async def test_association_map_with_class(self, reg: BlueprintRegistry) -> None:
        class WriterBlueprint(Blueprint):
            class Meta:
                model = Writer
                registry = reg

            name = "Ann"

        class RemarkBlueprint(Blueprint):
            class Meta:
                model = Remark
                registry = reg

            writer = Association()

        remark = await RemarkBlueprint.make()
        assert remark.writer.name == "Ann"

    async def test_make_resolves_lambda(self, reg: BlueprintRegistry) -> None:
        class ArticleBlueprint(Blueprint):
            class Meta:
                model = Article
                registry = reg

            title = "Civic"
            body = lambda ctx: f"About {ctx.title}"  # noqa: E731

        article = await ArticleBlueprint.make()
        assert article.body == "About Civic"

        article = await ArticleBlueprint.make(title="Jazz")
        assert article.body == "About Jazz"

    async def test_batches(self, reg: BlueprintRegistry) -> None:
        class ArticleBlueprint(Blueprint):
            class Meta:
                model = Article
                registry = reg

            @deferred
            def title(ctx: ResolutionContext) -> str:
                return f"Article {Article.count() + 1}"

        articles = await ArticleBlueprint.make_batch(3)
        assert [a.title for a in articles] == ["Article 1", "Article 2", "Article 3"]

        drafts = await ArticleBlueprint.plan_batch(2, {"title": "Draft"})
        assert [d.title for d in drafts] == ["Draft", "Draft"]
        assert Article.count() == 3

"""Tests for insertion zones and the insertion planner."""

from __future__ import annotations

import pytest

from formtree.domain.errors import StructuralError
from formtree.domain.ids import IdGenerator
from formtree.domain.items import Field, Section, Tree
from formtree.domain.planner import (
    FieldTemplate,
    SectionTemplate,
    insert_field,
    insert_fields,
    insert_section,
    plan_target,
)
from formtree.domain.tree import Location, find_section, remove
from formtree.domain.types import DEFAULT_FIELD_TYPE, DataType
from formtree.domain.zones import InsertionZone, ZoneKind, parse_zone
from tests.conftest import child_ids, root_ids


class TestZones:
    @pytest.mark.parametrize(
        "text",
        [
            "root-start",
            "root-end",
            "root:2",
            "section-start:section-1",
            "section:section-1:0",
            "section-end:section-1",
        ],
    )
    def test_text_round_trip(self, text: str) -> None:
        assert str(parse_zone(text)) == text

    def test_between_section_fields(self) -> None:
        zone = parse_zone("section:sec-1:3")
        assert zone.kind is ZoneKind.BETWEEN_SECTION_FIELDS
        assert zone.section_id == "sec-1"
        assert zone.index == 3
        assert not zone.is_root

    @pytest.mark.parametrize(
        "text",
        ["", "middle", "root:", "root:x", "root:-1", "section-end", "section:s", "root-end:x"],
    )
    def test_invalid_zones(self, text: str) -> None:
        with pytest.raises(ValueError):
            parse_zone(text)

    def test_constructor_checks(self) -> None:
        with pytest.raises(ValueError):
            InsertionZone(ZoneKind.SECTION_END)
        with pytest.raises(ValueError):
            InsertionZone(ZoneKind.ROOT_END, section_id="s")


class TestPlanTarget:
    def test_root_zones(self, tree: Tree) -> None:
        assert plan_target(tree, InsertionZone.root_start()) == Location(None, 0)
        assert plan_target(tree, InsertionZone.root_end()) == Location(None, 3)
        assert plan_target(tree, InsertionZone.between_root_items(1)) == Location(None, 1)
        assert plan_target(tree, InsertionZone.between_root_items(50)) == Location(None, 3)

    def test_section_zones(self, tree: Tree) -> None:
        assert plan_target(tree, InsertionZone.section_start("section-site")) == Location(
            "section-site", 0
        )
        assert plan_target(tree, InsertionZone.section_end("section-site")) == Location(
            "section-site", 3
        )
        assert plan_target(
            tree, InsertionZone.between_section_fields("section-site", 9)
        ) == Location("section-site", 3)

    def test_unknown_section(self, tree: Tree) -> None:
        with pytest.raises(StructuralError) as exc_info:
            plan_target(tree, InsertionZone.section_end("missing"))
        assert exc_info.value.code == "NOT_FOUND"


class TestInsertField:
    def test_insert_into_empty_section(self, ids: IdGenerator) -> None:
        tree: Tree = (Section(id="eqp"),)
        new_tree, field = insert_field(tree, InsertionZone.section_end("eqp"), ids)
        section = find_section(new_tree, "eqp")
        assert section is not None
        assert section.children == (field,)
        assert field.is_required is False
        assert field.is_system_field is False
        assert field.label == FieldTemplate().label
        assert field.type == DEFAULT_FIELD_TYPE

    def test_template_values(self, tree: Tree, ids: IdGenerator) -> None:
        template = FieldTemplate(label="Due", type=DataType.DATE, is_required=True)
        new_tree, field = insert_field(tree, InsertionZone.root_start(), ids, template)
        assert root_ids(new_tree)[0] == field.id
        assert field.label == "Due"
        assert field.type == DataType.DATE
        assert field.id.startswith("field-")

    def test_insert_then_remove_restores_structure(self, tree: Tree, ids: IdGenerator) -> None:
        zone = InsertionZone.between_section_fields("section-site", 1)
        new_tree, field = insert_field(tree, zone, ids)
        assert child_ids(new_tree, "section-site")[1] == field.id
        assert remove(new_tree, field.id) == tree

    def test_insert_fields_keep_order(self, tree: Tree, ids: IdGenerator) -> None:
        templates = [FieldTemplate(label="A"), FieldTemplate(label="B"), FieldTemplate(label="C")]
        zone = InsertionZone.section_start("section-site")
        new_tree, fields = insert_fields(tree, zone, ids, templates)
        assert [f.label for f in fields] == ["A", "B", "C"]
        assert child_ids(new_tree, "section-site")[:3] == [f.id for f in fields]
        assert len({f.id for f in fields}) == 3

    def test_generated_ids_skip_taken(self) -> None:
        ids = IdGenerator(clock=lambda: 0, token=lambda: "t")
        tree: Tree = (Field(id="field-0-0001-t"),)
        new_tree, field = insert_field(tree, InsertionZone.root_end(), ids)
        assert field.id == "field-0-0002-t"
        assert len(new_tree) == 2


class TestInsertSection:
    def test_defaults(self, tree: Tree, ids: IdGenerator) -> None:
        new_tree, section = insert_section(tree, InsertionZone.root_end(), ids)
        assert root_ids(new_tree)[-1] == section.id
        assert section.label == SectionTemplate().label
        assert section.is_expanded is True
        assert section.is_system is False
        assert section.children == ()

    def test_with_field(self, tree: Tree, ids: IdGenerator) -> None:
        _, section = insert_section(tree, InsertionZone.root_start(), ids, with_field=True)
        assert len(section.children) == 1
        assert section.children[0].id != section.id

    def test_rejects_section_zone(self, tree: Tree, ids: IdGenerator) -> None:
        with pytest.raises(StructuralError) as exc_info:
            insert_section(tree, InsertionZone.section_end("section-site"), ids)
        assert exc_info.value.code == "NESTED_SECTION"

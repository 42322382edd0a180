"""InsertionPlanner — turn an insertion zone plus a template into a new tree.

The planner resolves the symbolic zone against the current tree to a
concrete :class:`Location`, builds the new item from its template with a
freshly generated id, and delegates to :func:`formtree.domain.tree.insert`.
"""

from __future__ import annotations

from collections.abc import Sequence

from pydantic import BaseModel

from formtree.domain.errors import StructuralError
from formtree.domain.ids import IdGenerator
from formtree.domain.items import Field, Section, Tree
from formtree.domain.tree import Location, all_ids, find_section, insert
from formtree.domain.types import DEFAULT_FIELD_TYPE, DataType
from formtree.domain.zones import InsertionZone, ZoneKind


class FieldTemplate(BaseModel):
    """Defaults for a newly created Field."""

    model_config = {"frozen": True}

    label: str = "New Field"
    type: DataType = DEFAULT_FIELD_TYPE
    is_required: bool = False
    is_system_field: bool = False
    data_type_locked: bool = False
    key: str | None = None
    id_prefix: str = "field"

    def build(self, item_id: str) -> Field:
        return Field(
            id=item_id,
            label=self.label,
            type=self.type,
            is_required=self.is_required,
            is_system_field=self.is_system_field,
            data_type_locked=self.data_type_locked,
            key=self.key,
        )


class SectionTemplate(BaseModel):
    """Defaults for a newly created Section."""

    model_config = {"frozen": True}

    label: str = "New Section"
    is_expanded: bool = True
    is_system: bool = False
    id_prefix: str = "section"

    def build(self, item_id: str, children: tuple[Field, ...] = ()) -> Section:
        return Section(
            id=item_id,
            label=self.label,
            is_expanded=self.is_expanded,
            is_system=self.is_system,
            children=children,
        )


def plan_target(tree: Tree, zone: InsertionZone) -> Location:
    """Resolve *zone* to a concrete location in *tree*.

    Raises:
        StructuralError: If the zone names a section that is not in the tree.
    """
    if zone.kind is ZoneKind.ROOT_START:
        return Location(None, 0)
    if zone.kind is ZoneKind.ROOT_END:
        return Location(None, len(tree))
    if zone.kind is ZoneKind.BETWEEN_ROOT_ITEMS:
        assert zone.index is not None
        return Location(None, min(zone.index, len(tree)))

    assert zone.section_id is not None
    section = find_section(tree, zone.section_id)
    if section is None:
        raise StructuralError(
            f"No section found with ID: {zone.section_id}",
            code="NOT_FOUND",
            zone=str(zone),
        )
    if zone.kind is ZoneKind.SECTION_START:
        return Location(section.id, 0)
    if zone.kind is ZoneKind.SECTION_END:
        return Location(section.id, len(section.children))
    assert zone.index is not None
    return Location(section.id, min(zone.index, len(section.children)))


def insert_field(
    tree: Tree,
    zone: InsertionZone,
    ids: IdGenerator,
    template: FieldTemplate | None = None,
) -> tuple[Tree, Field]:
    """Create a field from *template* and insert it at *zone*."""
    new_tree, fields = insert_fields(tree, zone, ids, [template or FieldTemplate()])
    return new_tree, fields[0]


def insert_fields(
    tree: Tree,
    zone: InsertionZone,
    ids: IdGenerator,
    templates: Sequence[FieldTemplate],
) -> tuple[Tree, list[Field]]:
    """Insert one field per template at *zone*, keeping template order."""
    target = plan_target(tree, zone)
    taken = set(all_ids(tree))
    created: list[Field] = []
    for offset, template in enumerate(templates):
        field = template.build(ids.next_id(template.id_prefix, taken))
        taken.add(field.id)
        tree = insert(tree, field, Location(target.container_id, target.index + offset))
        created.append(field)
    return tree, created


def insert_section(
    tree: Tree,
    zone: InsertionZone,
    ids: IdGenerator,
    *,
    template: SectionTemplate | None = None,
    with_field: bool = False,
    field_template: FieldTemplate | None = None,
) -> tuple[Tree, Section]:
    """Create a section (optionally seeded with one field) at a root *zone*.

    Raises:
        StructuralError: If *zone* is inside a section.
    """
    if not zone.is_root:
        raise StructuralError(
            f"Sections cannot be inserted inside a section (zone {zone})",
            code="NESTED_SECTION",
        )
    template = template or SectionTemplate()
    target = plan_target(tree, zone)
    taken = set(all_ids(tree))
    section_id = ids.next_id(template.id_prefix, taken)
    taken.add(section_id)

    children: tuple[Field, ...] = ()
    if with_field:
        seed = field_template or FieldTemplate()
        children = (seed.build(ids.next_id(seed.id_prefix, taken)),)

    section = template.build(section_id, children)
    return insert(tree, section, target), section

"""Edits — typed editing commands and the pure ``apply(tree, edit)`` core.

Each edit is a frozen pydantic model tagged by ``op`` so adapters can
build them from plain data (a script step, a UI event)::

    {"op": "rename-field", "field_id": "field-status", "label": "State"}

:func:`run_edit` applies one edit to a tree and reports what it created;
:func:`apply_edit` is the tree-only shorthand. Both are pure. Protection
of system items is *not* enforced here, that policy belongs to the
command layer (``EditorService``).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Annotated, Any, Literal

from pydantic import AfterValidator, BaseModel, Discriminator, TypeAdapter

from formtree.domain.errors import StructuralError
from formtree.domain.history import ActionType
from formtree.domain.ids import IdGenerator
from formtree.domain.items import Field, Section, Tree
from formtree.domain.moves import DragResult, apply_move, describe_drop, parse_drop_target
from formtree.domain.planner import (
    FieldTemplate,
    SectionTemplate,
    insert_field,
    insert_fields,
    insert_section,
)
from formtree.domain.templates import get_template
from formtree.domain.tree import (
    Location,
    all_ids,
    find_by_id,
    find_section,
    insert,
    locate_container,
    remove,
    replace,
)
from formtree.domain.types import DataType, ItemKind
from formtree.domain.zones import parse_zone

_EDIT_CONFIG = {"frozen": True, "extra": "forbid"}


class BulkAction(StrEnum):
    DELETE = "delete"
    DUPLICATE = "duplicate"
    SET_REQUIRED = "set-required"
    SET_OPTIONAL = "set-optional"


def _check_zone(value: str) -> str:
    parse_zone(value)
    return value


def _check_target(value: str) -> str:
    parse_drop_target(value)
    return value


ZoneText = Annotated[str, AfterValidator(_check_zone)]
DropTargetText = Annotated[str, AfterValidator(_check_target)]


# --- section edits ---


class ToggleSection(BaseModel):
    model_config = _EDIT_CONFIG

    op: Literal["toggle-section"] = "toggle-section"
    section_id: str


class RenameSection(BaseModel):
    model_config = _EDIT_CONFIG

    op: Literal["rename-section"] = "rename-section"
    section_id: str
    label: str


class DeleteSection(BaseModel):
    model_config = _EDIT_CONFIG

    op: Literal["delete-section"] = "delete-section"
    section_id: str
    force: bool = False


class InsertSection(BaseModel):
    model_config = _EDIT_CONFIG

    op: Literal["insert-section"] = "insert-section"
    zone: ZoneText = "root-end"
    label: str | None = None
    with_field: bool = False


# --- field edits ---


class RenameField(BaseModel):
    model_config = _EDIT_CONFIG

    op: Literal["rename-field"] = "rename-field"
    field_id: str
    label: str


class UpdateField(BaseModel):
    """Partial field update (``type``, ``is_required``, ``data_type_locked``, ...)."""

    model_config = _EDIT_CONFIG

    op: Literal["update-field"] = "update-field"
    field_id: str
    changes: dict[str, Any]


class DeleteField(BaseModel):
    model_config = _EDIT_CONFIG

    op: Literal["delete-field"] = "delete-field"
    field_id: str
    force: bool = False


class InsertField(BaseModel):
    model_config = _EDIT_CONFIG

    op: Literal["insert-field"] = "insert-field"
    zone: ZoneText = "root-end"
    template: FieldTemplate | None = None
    label: str | None = None
    type: DataType | None = None
    is_required: bool | None = None


class InsertTemplate(BaseModel):
    model_config = _EDIT_CONFIG

    op: Literal["insert-template"] = "insert-template"
    zone: ZoneText = "root-end"
    template_id: str


class BulkEdit(BaseModel):
    model_config = _EDIT_CONFIG

    op: Literal["bulk"] = "bulk"
    action: BulkAction
    field_ids: tuple[str, ...]
    force: bool = False


# --- moves ---


class MoveItem(BaseModel):
    """Drop *item_id* onto a drop target in text form (``item:<id>``, ``end:root``, ...)."""

    model_config = _EDIT_CONFIG

    op: Literal["move"] = "move"
    item_id: str
    to: DropTargetText


class ResolveDrag(BaseModel):
    """A raw, already normalized drag result."""

    model_config = _EDIT_CONFIG

    op: Literal["drag"] = "drag"
    active_id: str
    active_kind: ItemKind
    source_container_id: str | None = None
    source_index: int = 0
    dest_container_id: str | None = None
    dest_index: int

    @classmethod
    def from_result(cls, result: DragResult) -> ResolveDrag:
        return cls(
            active_id=result.active_id,
            active_kind=result.active_kind,
            source_container_id=result.source_container_id,
            source_index=result.source_index,
            dest_container_id=result.dest_container_id,
            dest_index=result.dest_index,
        )

    def to_result(self) -> DragResult:
        return DragResult(
            active_id=self.active_id,
            active_kind=self.active_kind,
            source_container_id=self.source_container_id,
            source_index=self.source_index,
            dest_container_id=self.dest_container_id,
            dest_index=self.dest_index,
        )


Edit = Annotated[
    ToggleSection
    | RenameSection
    | DeleteSection
    | InsertSection
    | RenameField
    | UpdateField
    | DeleteField
    | InsertField
    | InsertTemplate
    | BulkEdit
    | MoveItem
    | ResolveDrag,
    Discriminator("op"),
]

EDIT_ADAPTER: TypeAdapter[Any] = TypeAdapter(Edit)


def parse_edit(data: Any) -> Any:
    """Validate a dict into the matching edit model.

    Raises:
        pydantic.ValidationError: If *data* is not a valid edit.
    """
    return EDIT_ADAPTER.validate_python(data)


# ---------------------------------------------------------------------------
# Application
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class EditDefaults:
    """Templates used for items created without explicit values."""

    field_template: FieldTemplate = field(default_factory=FieldTemplate)
    section_template: SectionTemplate = field(default_factory=SectionTemplate)


@dataclass(frozen=True)
class EditOutcome:
    """New tree plus bookkeeping for history and reporting."""

    tree: Tree
    action_type: ActionType
    description: str
    created_ids: tuple[str, ...] = ()
    removed_ids: tuple[str, ...] = ()


def _require_section(tree: Tree, section_id: str) -> Section:
    section = find_section(tree, section_id)
    if section is None:
        raise StructuralError(f"No section found with ID: {section_id}", code="NOT_FOUND")
    return section


def _require_field(tree: Tree, field_id: str) -> Field:
    item = find_by_id(tree, field_id)
    if not isinstance(item, Field):
        raise StructuralError(f"No field found with ID: {field_id}", code="NOT_FOUND")
    return item


def _bulk(tree: Tree, edit: BulkEdit, ids: IdGenerator) -> EditOutcome:
    fields = [_require_field(tree, field_id) for field_id in dict.fromkeys(edit.field_ids)]
    created: list[str] = []
    removed: list[str] = []
    if edit.action is BulkAction.DELETE:
        for f in fields:
            tree = remove(tree, f.id)
            removed.append(f.id)
    elif edit.action is BulkAction.DUPLICATE:
        taken = set(all_ids(tree))
        for f in fields:
            location = locate_container(tree, f.id)
            assert location is not None
            copy = Field(
                id=ids.next_id("field", taken),
                label=f"{f.label} (Copy)",
                type=f.type,
                is_required=f.is_required,
            )
            taken.add(copy.id)
            tree = insert(tree, copy, Location(location.container_id, location.index + 1))
            created.append(copy.id)
    else:
        required = edit.action is BulkAction.SET_REQUIRED
        for f in fields:
            tree = replace(tree, f.id, {"is_required": required})
    return EditOutcome(
        tree=tree,
        action_type=ActionType.BULK_UPDATE,
        description=f"Bulk {edit.action} on {len(fields)} field(s)",
        created_ids=tuple(created),
        removed_ids=tuple(removed),
    )


def _move(tree: Tree, result: DragResult) -> EditOutcome:
    moved = apply_move(tree, result)
    is_section = result.active_kind is ItemKind.SECTION
    return EditOutcome(
        tree=moved,
        action_type=ActionType.REORDER_SECTION if is_section else ActionType.REORDER_FIELD,
        description=(
            f"Move {result.active_kind} {result.active_id} to "
            f"{result.dest_container_id or 'root'}[{result.dest_index}]"
        ),
    )


def run_edit(
    tree: Tree,
    edit: Any,
    ids: IdGenerator,
    *,
    defaults: EditDefaults | None = None,
) -> EditOutcome:
    """Apply *edit* to *tree* and describe the result.

    Raises:
        StructuralError: If the edit targets a missing item or would break
            tree invariants.
        DragResolutionError: If a move cannot be resolved.
        KeyError: If an ``insert-template`` names an unknown template.
    """
    defaults = defaults or EditDefaults()

    if isinstance(edit, ToggleSection):
        section = _require_section(tree, edit.section_id)
        verb = "Collapse" if section.is_expanded else "Expand"
        return EditOutcome(
            tree=replace(tree, section.id, {"is_expanded": not section.is_expanded}),
            action_type=ActionType.TOGGLE_SECTION,
            description=f"{verb} section {section.label!r}",
        )

    if isinstance(edit, RenameSection):
        section = _require_section(tree, edit.section_id)
        return EditOutcome(
            tree=replace(tree, section.id, {"label": edit.label}),
            action_type=ActionType.RENAME_SECTION,
            description=f"Rename section {section.label!r} to {edit.label!r}",
        )

    if isinstance(edit, DeleteSection):
        section = _require_section(tree, edit.section_id)
        return EditOutcome(
            tree=remove(tree, section.id),
            action_type=ActionType.DELETE_SECTION,
            description=f"Delete section {section.label!r}",
            removed_ids=(section.id, *(child.id for child in section.children)),
        )

    if isinstance(edit, InsertSection):
        template = defaults.section_template
        if edit.label is not None:
            template = template.model_copy(update={"label": edit.label})
        new_tree, section = insert_section(
            tree,
            parse_zone(edit.zone),
            ids,
            template=template,
            with_field=edit.with_field,
            field_template=defaults.field_template,
        )
        return EditOutcome(
            tree=new_tree,
            action_type=ActionType.ADD_SECTION,
            description=f"Add section {section.label!r}",
            created_ids=(section.id, *(child.id for child in section.children)),
        )

    if isinstance(edit, RenameField):
        f = _require_field(tree, edit.field_id)
        return EditOutcome(
            tree=replace(tree, f.id, {"label": edit.label}),
            action_type=ActionType.UPDATE_FIELD,
            description=f"Rename field {f.label!r} to {edit.label!r}",
        )

    if isinstance(edit, UpdateField):
        f = _require_field(tree, edit.field_id)
        return EditOutcome(
            tree=replace(tree, f.id, edit.changes),
            action_type=ActionType.UPDATE_FIELD,
            description=f"Update field {f.label!r}: {', '.join(sorted(edit.changes))}",
        )

    if isinstance(edit, DeleteField):
        f = _require_field(tree, edit.field_id)
        return EditOutcome(
            tree=remove(tree, f.id),
            action_type=ActionType.DELETE_FIELD,
            description=f"Delete field {f.label!r}",
            removed_ids=(f.id,),
        )

    if isinstance(edit, InsertField):
        overrides = {"label": edit.label, "type": edit.type, "is_required": edit.is_required}
        base = edit.template or defaults.field_template
        template = base.model_copy(
            update={key: value for key, value in overrides.items() if value is not None}
        )
        new_tree, f = insert_field(tree, parse_zone(edit.zone), ids, template)
        return EditOutcome(
            tree=new_tree,
            action_type=ActionType.ADD_FIELD,
            description=f"Add field {f.label!r} at {edit.zone}",
            created_ids=(f.id,),
        )

    if isinstance(edit, InsertTemplate):
        form_template = get_template(edit.template_id)
        new_tree, fields = insert_fields(tree, parse_zone(edit.zone), ids, form_template.fields)
        return EditOutcome(
            tree=new_tree,
            action_type=ActionType.ADD_FIELD,
            description=f"Insert template {form_template.name!r} at {edit.zone}",
            created_ids=tuple(f.id for f in fields),
        )

    if isinstance(edit, BulkEdit):
        return _bulk(tree, edit, ids)

    if isinstance(edit, MoveItem):
        return _move(tree, describe_drop(tree, edit.item_id, parse_drop_target(edit.to)))

    if isinstance(edit, ResolveDrag):
        return _move(tree, edit.to_result())

    msg = f"Unsupported edit: {edit!r}"
    raise TypeError(msg)


def apply_edit(
    tree: Tree,
    edit: Any,
    ids: IdGenerator,
    *,
    defaults: EditDefaults | None = None,
) -> Tree:
    """Pure ``apply(tree, edit) -> tree``; see :func:`run_edit`."""
    return run_edit(tree, edit, ids, defaults=defaults).tree

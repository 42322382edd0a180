"""EditorService — editing commands over a FormStore.

Every committing command runs one pipeline:

    VALIDATE → APPLY → COMMIT → DISPATCH → RESPOND

VALIDATE enforces the protection policy (blank labels, system items,
locked types). APPLY runs the pure :func:`run_edit`. COMMIT swaps the
store's tree and records one history action. DISPATCH fires the
``post_commit`` plugin hook.

Drag resolution and history are lenient: a drop that cannot be resolved,
or an undo or redo with nothing left, returns ``ok=True`` with
``data["applied"] = False`` and a warning.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import Any

from pydantic import BaseModel, ValidationError

from formtree.domain.edits import (
    BulkAction,
    BulkEdit,
    DeleteField,
    DeleteSection,
    InsertField,
    InsertSection,
    InsertTemplate,
    MoveItem,
    RenameField,
    RenameSection,
    ResolveDrag,
    ToggleSection,
    UpdateField,
    run_edit,
)
from formtree.domain.errors import DragResolutionError, StructuralError
from formtree.domain.items import Field, Section, Tree, tree_to_data
from formtree.domain.moves import DragResult, DropTarget, parse_drop_target
from formtree.domain.planner import FieldTemplate
from formtree.domain.templates import get_template
from formtree.domain.tree import all_fields, count_fields, count_sections, find_by_id, find_section
from formtree.domain.types import ItemKind
from formtree.domain.zones import InsertionZone
from formtree.services.base import BaseService
from formtree.services.result import ErrorCode, ServiceError, ServiceResult
from formtree.services.telemetry import trace_span, traced

logger = logging.getLogger(__name__)

# Field attributes an update may touch; id and kind are immutable.
UPDATABLE_FIELD_KEYS = frozenset({"label", "type", "is_required", "data_type_locked", "key"})

_STRUCTURAL_CODES: dict[str, str] = {
    "NESTED_SECTION": ErrorCode.INVALID_ZONE,
    "IMMUTABLE": ErrorCode.VALIDATION_FAILED,
    "UNKNOWN_ATTRIBUTE": ErrorCode.VALIDATION_FAILED,
    "STRUCTURAL_ERROR": ErrorCode.VALIDATION_FAILED,
}


def _validation_message(exc: ValidationError) -> str:
    return "; ".join(
        f"{'.'.join(str(part) for part in err['loc']) or 'value'}: {err['msg']}"
        for err in exc.errors()
    )


def _invalid_input(op: str, exc: ValidationError) -> ServiceResult:
    locs = {err["loc"][0] for err in exc.errors() if err["loc"]}
    code = ErrorCode.INVALID_ZONE if "zone" in locs else ErrorCode.VALIDATION_FAILED
    return ServiceResult.failure(op, code, _validation_message(exc))


def _blank_label(label: str | None) -> ServiceError | None:
    if label is not None and not label.strip():
        return ServiceError(code=ErrorCode.VALIDATION_FAILED, message="Label must not be blank")
    return None


def _protected(message: str, **detail: Any) -> ServiceError:
    return ServiceError(code=ErrorCode.PROTECTED, message=message, detail=detail)


class EditorService(BaseService):
    """Command entry points for editing the store's form tree."""

    # ------------------------------------------------------------------
    # Core pipeline
    # ------------------------------------------------------------------

    @traced
    def apply(self, edit: Any, *, op: str | None = None) -> ServiceResult:
        """Validate, apply and commit one edit command."""
        op = op or edit.op.replace("-", "_")
        warnings: list[str] = []
        tree = self._store.tree

        # ── VALIDATE ─────────────────────────────────────────
        with trace_span("validate"):
            error = self._check_policy(tree, edit)
        if error is not None:
            logger.debug("Rejected %s: %s", op, error.message)
            return ServiceResult(ok=False, op=op, error=error)

        # ── APPLY ────────────────────────────────────────────
        try:
            with trace_span("apply"):
                outcome = run_edit(tree, edit, self._store.ids, defaults=self._store.defaults)
        except DragResolutionError as exc:
            logger.warning("Drop ignored: %s", exc.message)
            return ServiceResult(
                ok=True,
                op=op,
                data={"applied": False, **self._state()},
                warnings=[f"Drop ignored: {exc.message}"],
            )
        except StructuralError as exc:
            logger.debug("Rejected %s: %s", op, exc.message)
            code = _STRUCTURAL_CODES.get(exc.code, exc.code)
            return ServiceResult.failure(op, code, exc.message, dict(exc.detail))
        except ValidationError as exc:
            return ServiceResult.failure(op, ErrorCode.VALIDATION_FAILED, _validation_message(exc))

        # ── COMMIT ───────────────────────────────────────────
        applied = self._store.commit(
            outcome.tree,
            action_type=outcome.action_type,
            description=outcome.description,
        )

        # ── DISPATCH ─────────────────────────────────────────
        if applied:
            self._dispatch_event(
                "post_commit",
                {
                    "action_type": str(outcome.action_type),
                    "description": outcome.description,
                    "created_ids": list(outcome.created_ids),
                    "removed_ids": list(outcome.removed_ids),
                },
                warnings,
            )

        # ── RESPOND ──────────────────────────────────────────
        return ServiceResult(
            ok=True,
            op=op,
            data={
                "applied": applied,
                "action": str(outcome.action_type),
                "description": outcome.description,
                "created_ids": list(outcome.created_ids),
                "removed_ids": list(outcome.removed_ids),
                **self._state(),
            },
            warnings=warnings,
        )

    def _submit(self, op: str, edit_cls: type[BaseModel], **values: Any) -> ServiceResult:
        try:
            edit = edit_cls(**values)
        except ValidationError as exc:
            return _invalid_input(op, exc)
        return self.apply(edit, op=op)

    # ------------------------------------------------------------------
    # Protection policy
    # ------------------------------------------------------------------

    def _check_policy(self, tree: Tree, edit: Any) -> ServiceError | None:
        if isinstance(edit, (RenameSection, RenameField)):
            return _blank_label(edit.label)
        if isinstance(edit, InsertSection):
            return _blank_label(edit.label)
        if isinstance(edit, InsertField):
            label = edit.label
            if label is None and edit.template is not None:
                label = edit.template.label
            return _blank_label(label)
        if isinstance(edit, InsertTemplate):
            try:
                get_template(edit.template_id)
            except KeyError:
                return ServiceError(
                    code=ErrorCode.UNKNOWN_TEMPLATE,
                    message=f"Unknown template: {edit.template_id}",
                )
            return None
        if isinstance(edit, UpdateField):
            return self._check_field_update(tree, edit)
        if isinstance(edit, DeleteSection) and not edit.force:
            section = find_section(tree, edit.section_id)
            if section is not None:
                system_children = [child.id for child in section.children if child.is_protected]
                if section.is_protected or system_children:
                    return _protected(
                        f"Section {section.id} is a system section or holds system fields; "
                        "use force to delete it",
                        section_id=section.id,
                        system_fields=system_children,
                    )
            return None
        if isinstance(edit, DeleteField) and not edit.force:
            item = find_by_id(tree, edit.field_id)
            if isinstance(item, Field) and item.is_protected:
                return _protected(
                    f"Field {item.id} is a system field; use force to delete it", field_id=item.id
                )
            return None
        if isinstance(edit, BulkEdit):
            if not edit.field_ids:
                return ServiceError(code=ErrorCode.VALIDATION_FAILED, message="No field ids given")
            if edit.action is BulkAction.DELETE and not edit.force:
                system = [
                    item.id
                    for item in (find_by_id(tree, field_id) for field_id in edit.field_ids)
                    if isinstance(item, Field) and item.is_protected
                ]
                if system:
                    return _protected(
                        f"Bulk delete includes system fields: {', '.join(system)}",
                        field_ids=system,
                    )
        return None

    def _check_field_update(self, tree: Tree, edit: UpdateField) -> ServiceError | None:
        if not edit.changes:
            return ServiceError(code=ErrorCode.VALIDATION_FAILED, message="No changes given")
        unknown = sorted(set(edit.changes) - UPDATABLE_FIELD_KEYS)
        if unknown:
            return ServiceError(
                code=ErrorCode.VALIDATION_FAILED,
                message=f"Cannot update {', '.join(unknown)}",
                detail={"allowed": sorted(UPDATABLE_FIELD_KEYS)},
            )
        if "label" in edit.changes:
            error = _blank_label(str(edit.changes["label"]))
            if error is not None:
                return error

        item = find_by_id(tree, edit.field_id)
        if not isinstance(item, Field):
            return None  # APPLY reports NOT_FOUND

        new_type = edit.changes.get("type")
        if new_type is not None and str(new_type) != item.type:
            if item.is_system_field:
                return _protected(f"Cannot change the type of system field {item.id}")
            if item.data_type_locked:
                return _protected(f"Type of field {item.id} is locked")
        if item.is_system_field and edit.changes.get("data_type_locked") is False:
            return _protected(f"Cannot unlock the type of system field {item.id}")
        return None

    # ------------------------------------------------------------------
    # Section commands
    # ------------------------------------------------------------------

    def toggle_section(self, section_id: str) -> ServiceResult:
        return self._submit("toggle_section", ToggleSection, section_id=section_id)

    def rename_section(self, section_id: str, label: str) -> ServiceResult:
        return self._submit("rename_section", RenameSection, section_id=section_id, label=label)

    def delete_section(self, section_id: str, *, force: bool = False) -> ServiceResult:
        return self._submit("delete_section", DeleteSection, section_id=section_id, force=force)

    def insert_section(
        self,
        zone: InsertionZone | str = "root-end",
        *,
        label: str | None = None,
        with_field: bool = False,
    ) -> ServiceResult:
        return self._submit(
            "insert_section", InsertSection, zone=str(zone), label=label, with_field=with_field
        )

    # ------------------------------------------------------------------
    # Field commands
    # ------------------------------------------------------------------

    def rename_field(self, field_id: str, label: str) -> ServiceResult:
        return self._submit("rename_field", RenameField, field_id=field_id, label=label)

    def delete_field(self, field_id: str, *, force: bool = False) -> ServiceResult:
        return self._submit("delete_field", DeleteField, field_id=field_id, force=force)

    def update_field(self, field_id: str, changes: Mapping[str, Any]) -> ServiceResult:
        return self._submit("update_field", UpdateField, field_id=field_id, changes=dict(changes))

    def lock_field_type(self, field_id: str) -> ServiceResult:
        return self._submit(
            "lock_field_type", UpdateField, field_id=field_id, changes={"data_type_locked": True}
        )

    def insert_field(
        self,
        zone: InsertionZone | str = "root-end",
        template: FieldTemplate | None = None,
        *,
        label: str | None = None,
        type: str | None = None,  # noqa: A002
        is_required: bool | None = None,
    ) -> ServiceResult:
        return self._submit(
            "insert_field",
            InsertField,
            zone=str(zone),
            template=template,
            label=label,
            type=type,
            is_required=is_required,
        )

    def insert_template(self, zone: InsertionZone | str, template_id: str) -> ServiceResult:
        return self._submit(
            "insert_template", InsertTemplate, zone=str(zone), template_id=template_id
        )

    def bulk(
        self, action: BulkAction | str, field_ids: Iterable[str], *, force: bool = False
    ) -> ServiceResult:
        """Apply *action* to every field in *field_ids* as one history action."""
        return self._submit(
            "bulk", BulkEdit, action=action, field_ids=tuple(field_ids), force=force
        )

    # ------------------------------------------------------------------
    # Kind-agnostic commands
    # ------------------------------------------------------------------

    def rename_item(self, item_id: str, label: str) -> ServiceResult:
        """Rename a section or a field, whichever *item_id* names."""
        if isinstance(find_by_id(self._store.tree, item_id), Section):
            return self.rename_section(item_id, label)
        return self.rename_field(item_id, label)

    def delete_item(self, item_id: str, *, force: bool = False) -> ServiceResult:
        """Delete a section (with its fields) or a field."""
        if isinstance(find_by_id(self._store.tree, item_id), Section):
            return self.delete_section(item_id, force=force)
        return self.delete_field(item_id, force=force)

    # ------------------------------------------------------------------
    # Moves and drag sessions
    # ------------------------------------------------------------------

    def move(self, item_id: str, target: DropTarget | str) -> ServiceResult:
        """Drop *item_id* onto *target* in one call."""
        return self._submit("move", MoveItem, item_id=item_id, to=str(target))

    def resolve_drag(self, result: DragResult) -> ServiceResult:
        """Commit an already normalized drag result."""
        return self.apply(ResolveDrag.from_result(result), op="resolve_drag")

    @traced
    def drag_start(self, active_id: str) -> ServiceResult:
        op = "drag_start"
        item = find_by_id(self._store.tree, active_id)
        if item is None:
            return ServiceResult.failure(
                op, ErrorCode.NOT_FOUND, f"No item found with ID: {active_id}"
            )
        kind = ItemKind.SECTION if isinstance(item, Section) else ItemKind.FIELD
        self._store.drag.start(active_id, kind)
        return ServiceResult(ok=True, op=op, data=self._drag_state())

    @traced
    def drag_over(self, over_id: str | None) -> ServiceResult:
        op = "drag_over"
        if not self._store.drag.is_active:
            return ServiceResult(
                ok=True, op=op, data=self._drag_state(), warnings=["No drag in progress"]
            )
        self._store.drag.over(over_id)
        return ServiceResult(ok=True, op=op, data=self._drag_state())

    @traced
    def drag_drop(self, target: DropTarget | str | None = None) -> ServiceResult:
        """End the active drag over *target* and commit the resulting move."""
        op = "drag_drop"
        tracker = self._store.drag
        if not tracker.is_active:
            return self._drop_ignored(op, "No drag in progress")
        try:
            if isinstance(target, str):
                target = parse_drop_target(target)
            result = tracker.drop(self._store.tree, target)
        except (DragResolutionError, ValueError) as exc:
            tracker.reset()
            message = exc.message if isinstance(exc, DragResolutionError) else str(exc)
            logger.warning("Drop ignored: %s", message)
            return self._drop_ignored(op, message)
        if result is None:
            return self._drop_ignored(op, "no drop target")
        return self.apply(ResolveDrag.from_result(result), op=op)

    @traced
    def drag_cancel(self) -> ServiceResult:
        self._store.drag.cancel()
        return ServiceResult(ok=True, op="drag_cancel", data=self._drag_state())

    def _drop_ignored(self, op: str, reason: str) -> ServiceResult:
        return ServiceResult(
            ok=True,
            op=op,
            data={"applied": False, **self._state()},
            warnings=[f"Drop ignored: {reason}"],
        )

    def _history_exhausted(self, op: str, message: str) -> ServiceResult:
        return ServiceResult(
            ok=True,
            op=op,
            data={"applied": False, **self._state()},
            warnings=[message],
        )

    # ------------------------------------------------------------------
    # History
    # ------------------------------------------------------------------

    @traced
    def undo(self) -> ServiceResult:
        op = "undo"
        history = self._store.history
        if not history.can_undo:
            return self._history_exhausted(op, "Nothing to undo")
        action = history.actions[history.history_index]
        tree = history.undo()
        assert tree is not None
        self._store.restore(tree)
        return ServiceResult(
            ok=True,
            op=op,
            data={"description": action.description, "action": str(action.type), **self._state()},
        )

    @traced
    def redo(self) -> ServiceResult:
        op = "redo"
        history = self._store.history
        tree = history.redo()
        if tree is None:
            return self._history_exhausted(op, "Nothing to redo")
        self._store.restore(tree)
        action = history.actions[history.history_index]
        return ServiceResult(
            ok=True,
            op=op,
            data={"description": action.description, "action": str(action.type), **self._state()},
        )

    # ------------------------------------------------------------------
    # Snapshot and persistence boundary
    # ------------------------------------------------------------------

    @traced
    def snapshot(self) -> ServiceResult:
        """Read-only view of the tree, with a rendered preview per field."""
        warnings: list[str] = []
        tree = self._store.tree
        return ServiceResult(
            ok=True,
            op="snapshot",
            data={
                "name": self._store.name,
                "items": tree_to_data(tree),
                "previews": self._render_previews(tree, warnings),
                "dirty": self._store.is_dirty,
                "history": [action.description for action in self._store.history.actions],
                **self._state(),
            },
            warnings=warnings,
        )

    @traced
    def save(self) -> ServiceResult:
        """Hand the tree to the store's save callback and reset the baseline."""
        op = "save"
        warnings: list[str] = []
        store = self._store
        if store.on_save is None:
            return ServiceResult.failure(op, ErrorCode.SAVE_FAILED, "No save target configured")
        try:
            store.on_save(store.name, store.tree)
        except OSError as exc:
            return ServiceResult.failure(op, ErrorCode.SAVE_FAILED, f"Save failed: {exc}")
        store.mark_saved()

        field_count = count_fields(store.tree)
        section_count = count_sections(store.tree)
        self._dispatch_event(
            "post_save",
            {"name": store.name, "field_count": field_count, "section_count": section_count},
            warnings,
        )
        return ServiceResult(
            ok=True,
            op=op,
            data={"name": store.name, "field_count": field_count, "section_count": section_count},
            warnings=warnings,
        )

    @traced
    def cancel(self) -> ServiceResult:
        """Discard in-memory edits without persisting."""
        warnings: list[str] = []
        discarded = self._store.discard()
        self._dispatch_event("post_cancel", {"discarded_actions": discarded}, warnings)
        return ServiceResult(
            ok=True,
            op="cancel",
            data={"discarded_actions": discarded, **self._state()},
            warnings=warnings,
        )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _state(self) -> dict[str, Any]:
        history = self._store.history
        return {
            "field_count": count_fields(self._store.tree),
            "section_count": count_sections(self._store.tree),
            "can_undo": history.can_undo,
            "can_redo": history.can_redo,
        }

    def _drag_state(self) -> dict[str, Any]:
        tracker = self._store.drag
        return {
            "phase": str(tracker.phase),
            "active_id": tracker.active_id,
            "active_kind": str(tracker.active_kind) if tracker.active_kind else None,
            "over_id": tracker.over_id,
        }

    def _render_previews(self, tree: Tree, warnings: list[str]) -> dict[str, str]:
        """Render each field through the ``render_field`` hook.

        Fields no plugin claims fall back to ``<TYPE>``.
        """
        pm = self._store.plugins
        previews: dict[str, str] = {}
        failed = False
        for f in all_fields(tree):
            rendered: str | None = None
            if pm is not None and not failed:
                try:
                    rendered = pm.hook.render_field(field=f)
                except Exception:
                    logger.debug("render_field failed for %s", f.id, exc_info=True)
                    warnings.append("Field rendering plugin failed; using placeholders")
                    failed = True
            previews[f.id] = rendered or f"<{f.type}>"
        return previews

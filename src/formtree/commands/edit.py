"""Command group: single edits applied to a form document.

Each subcommand opens FORM, applies one edit through the EditorService
and saves the document when the edit changed the tree.
"""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from typing import TYPE_CHECKING, Any

import click

from formtree.commands._base import FormtreeGroup
from formtree.domain.edits import BulkAction
from formtree.domain.types import DataType

if TYPE_CHECKING:
    from formtree.commands._context import AppContext
    from formtree.infrastructure.store import FormStore
    from formtree.services.editor import EditorService
    from formtree.services.result import ServiceResult


class EditSession:
    """One open form for the duration of an ``edit`` subcommand."""

    def __init__(self, app: AppContext, form: Path, *, dry_run: bool = False) -> None:
        self.app = app
        self.form = form
        self.dry_run = dry_run
        self._store: FormStore | None = None

    @property
    def store(self) -> FormStore:
        if self._store is None:
            self._store = self.app.open_store(self.form)
        return self._store

    def run(self, action: Callable[[EditorService], ServiceResult]) -> None:
        """Apply *action*, save when it changed the tree, then emit its result."""
        from formtree.services.editor import EditorService

        svc = EditorService(self.store)
        result = action(svc)
        if result.applied and not self.dry_run:
            saved = svc.save()
            if not saved.ok:
                self.app.emit(saved)
        self.app.emit(result)


pass_session = click.make_pass_decorator(EditSession)

_ZONE_HELP = (
    "Where to insert: root-start, root-end, root:<i>, section-start:<id>, "
    "section:<id>:<i> or section-end:<id>."
)

_EDIT_EXAMPLES = """\
  formtree edit form.json insert-section --label "Equipment" --with-field
  formtree edit form.json insert-field --zone section-end:section-1 --type DATE
  formtree edit form.json insert-template basic-inspection --zone root-end
  formtree edit form.json move field-2 end:section-1
  formtree edit form.json rename section-1 "Site details"
  formtree edit --dry-run form.json delete section-1 --force"""


@click.group(cls=FormtreeGroup, examples=_EDIT_EXAMPLES)
@click.argument("form", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--dry-run", is_flag=True, help="Show the result without saving FORM.")
@click.pass_context
def edit(ctx: click.Context, form: Path, dry_run: bool) -> None:
    """Apply a single edit to FORM."""
    ctx.obj = EditSession(ctx.obj, form, dry_run=dry_run)


# ── Insertion ─────────────────────────────────────────────────────────


@edit.command(
    "insert-field",
    examples="""\
  formtree edit form.json insert-field
  formtree edit form.json insert-field --zone root-start --label "Inspector"
  formtree edit form.json insert-field --zone section:section-1:0 --type DATE --required""",
)
@click.option("--zone", default="root-end", show_default=True, help=_ZONE_HELP)
@click.option("--label", default=None, help="Field label.")
@click.option(
    "--type",
    "data_type",
    type=click.Choice([t.value for t in DataType]),
    default=None,
    help="Field data type.",
)
@click.option("--required/--optional", "is_required", default=None, help="Required flag.")
@pass_session
def insert_field(
    session: EditSession,
    zone: str,
    label: str | None,
    data_type: str | None,
    is_required: bool | None,
) -> None:
    """Insert a new field."""
    session.run(
        lambda svc: svc.insert_field(zone, label=label, type=data_type, is_required=is_required)
    )


@edit.command(
    "insert-section",
    examples="""\
  formtree edit form.json insert-section
  formtree edit form.json insert-section --zone root-start --label "Site" --with-field""",
)
@click.option("--zone", default="root-end", show_default=True, help=_ZONE_HELP)
@click.option("--label", default=None, help="Section label.")
@click.option("--with-field", is_flag=True, help="Seed the section with one default field.")
@pass_session
def insert_section(session: EditSession, zone: str, label: str | None, with_field: bool) -> None:
    """Insert a new section at a root-level zone."""
    session.run(lambda svc: svc.insert_section(zone, label=label, with_field=with_field))


@edit.command(
    "insert-template",
    examples="""\
  formtree edit form.json insert-template safety-checklist
  formtree edit form.json insert-template meter-readings --zone section-end:section-1""",
)
@click.argument("template_id")
@click.option("--zone", default="root-end", show_default=True, help=_ZONE_HELP)
@pass_session
def insert_template(session: EditSession, template_id: str, zone: str) -> None:
    """Insert every field of TEMPLATE_ID (see 'formtree templates')."""
    session.run(lambda svc: svc.insert_template(zone, template_id))


# ── Structure ─────────────────────────────────────────────────────────


@edit.command(
    examples="""\
  formtree edit form.json move field-2 item:field-1
  formtree edit form.json move field-2 end:section-1
  formtree edit form.json move section-2 end:root
  formtree edit form.json move field-3 header:section-1""",
)
@click.argument("item_id")
@click.argument("target")
@pass_session
def move(session: EditSession, item_id: str, target: str) -> None:
    """Drop ITEM_ID onto TARGET.

    TARGET is item:<id>, end:root, end:<section id> or header:<section id>.
    A drop that resolves to no change is reported and not saved.
    """
    session.run(lambda svc: svc.move(item_id, target))


@edit.command(
    examples="""\
  formtree edit form.json toggle section-1""",
)
@click.argument("section_id")
@pass_session
def toggle(session: EditSession, section_id: str) -> None:
    """Expand or collapse SECTION_ID."""
    session.run(lambda svc: svc.toggle_section(section_id))


@edit.command(
    examples="""\
  formtree edit form.json rename section-1 "Site details"
  formtree edit form.json rename field-2 Serial-number""",
)
@click.argument("item_id")
@click.argument("label")
@pass_session
def rename(session: EditSession, item_id: str, label: str) -> None:
    """Set the label of a section or field."""
    session.run(lambda svc: svc.rename_item(item_id, label))


@edit.command(
    examples="""\
  formtree edit form.json delete field-2
  formtree edit form.json delete section-1 --force""",
)
@click.argument("item_id")
@click.option("--force", is_flag=True, help="Allow deleting system items.")
@pass_session
def delete(session: EditSession, item_id: str, force: bool) -> None:
    """Delete a field, or a section with all of its fields."""
    session.run(lambda svc: svc.delete_item(item_id, force=force))


# ── Field properties ──────────────────────────────────────────────────


@edit.command(
    examples="""\
  formtree edit form.json update field-2 --type DOUBLE --required
  formtree edit form.json update field-2 --key serial_number""",
)
@click.argument("field_id")
@click.option("--label", default=None, help="New label.")
@click.option(
    "--type",
    "data_type",
    type=click.Choice([t.value for t in DataType]),
    default=None,
    help="New data type.",
)
@click.option("--required/--optional", "is_required", default=None, help="Required flag.")
@click.option("--key", default=None, help="Export key.")
@pass_session
def update(
    session: EditSession,
    field_id: str,
    label: str | None,
    data_type: str | None,
    is_required: bool | None,
    key: str | None,
) -> None:
    """Change properties of FIELD_ID."""
    changes: dict[str, Any] = {
        k: v
        for k, v in (
            ("label", label),
            ("type", data_type),
            ("is_required", is_required),
            ("key", key),
        )
        if v is not None
    }
    if not changes:
        raise click.UsageError("Nothing to update. Pass at least one option.")
    session.run(lambda svc: svc.update_field(field_id, changes))


@edit.command(
    "lock-type",
    examples="""\
  formtree edit form.json lock-type field-2""",
)
@click.argument("field_id")
@pass_session
def lock_type(session: EditSession, field_id: str) -> None:
    """Lock the data type of FIELD_ID."""
    session.run(lambda svc: svc.lock_field_type(field_id))


@edit.command(
    examples="""\
  formtree edit form.json bulk set-required field-1 field-2
  formtree edit form.json bulk duplicate field-3
  formtree edit form.json bulk delete field-1 field-date --force""",
)
@click.argument("action", type=click.Choice([a.value for a in BulkAction]))
@click.argument("field_ids", nargs=-1, required=True)
@click.option("--force", is_flag=True, help="Allow deleting system fields.")
@pass_session
def bulk(session: EditSession, action: str, field_ids: tuple[str, ...], force: bool) -> None:
    """Apply ACTION to every listed field as one edit."""
    session.run(lambda svc: svc.bulk(action, field_ids, force=force))

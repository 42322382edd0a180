"""Command: run an edit script against a form."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

import click

from formtree.commands._base import FormtreeCommand

if TYPE_CHECKING:
    from formtree.commands._context import AppContext


@click.command(
    cls=FormtreeCommand,
    examples="""\
  formtree apply inspection.json steps.yaml
  formtree apply inspection.json steps.yaml --dry-run
  formtree --json apply inspection.json steps.yaml

  # steps.yaml
  - op: insert-section
    label: Equipment
  - op: move
    item_id: field-pressure-reading
    to: end:root
  - op: undo""",
)
@click.argument("form", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument("script", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--dry-run", is_flag=True, help="Run the steps without saving FORM.")
@click.pass_obj
def apply(app: AppContext, form: Path, script: Path, dry_run: bool) -> None:
    """Apply the steps in SCRIPT to FORM and save it.

    Nothing is saved when any step fails.
    """
    from formtree.services.editor import EditorService
    from formtree.services.script import ScriptError, ScriptService, load_script

    try:
        steps = load_script(script)
    except ScriptError as exc:
        raise click.ClickException(str(exc)) from exc

    store = app.open_store(form)
    result = ScriptService(store).run(steps)
    if result.ok and not dry_run and store.is_dirty:
        saved = EditorService(store).save()
        if not saved.ok:
            app.emit(saved)
    app.emit(result)

"""Command: create a new form document."""

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
  formtree new inspection.json
  formtree new inspection.json --name "Boiler inspection"
  formtree new inspection.json --starter
  formtree new inspection.json --starter --force""",
)
@click.argument("path", type=click.Path(dir_okay=False, path_type=Path))
@click.option("--name", default=None, help="Form name (defaults to the configured name).")
@click.option("--starter", is_flag=True, help="Seed the form with the starter sections.")
@click.option("--force", is_flag=True, help="Overwrite an existing file.")
@click.pass_obj
def new(app: AppContext, path: Path, name: str | None, starter: bool, force: bool) -> None:
    """Create a form document at PATH."""
    from formtree.infrastructure.documents import DEFAULT_FORM_NAME
    from formtree.services.form import FormService

    svc = FormService(indent=app.settings.document.indent)
    app.emit(svc.create(path, name=name or DEFAULT_FORM_NAME, starter=starter, force=force))

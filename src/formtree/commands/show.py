"""Command: display a form as a tree."""

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
  formtree show inspection.json
  formtree -v show inspection.json
  formtree -q show inspection.json
  formtree --json show inspection.json""",
)
@click.argument("form", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.pass_obj
def show(app: AppContext, form: Path) -> None:
    """Show the sections and fields of FORM."""
    from formtree.services.editor import EditorService

    app.emit(EditorService(app.open_store(form)).snapshot())

"""Command: document validation."""

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
  formtree check inspection.json
  formtree --json check inspection.json""",
)
@click.argument("form", type=click.Path(dir_okay=False, path_type=Path))
@click.pass_obj
def check(app: AppContext, form: Path) -> None:
    """Check FORM for structural and content issues."""
    from formtree.services.form import FormService

    app.emit(FormService(indent=app.settings.document.indent).check(form))

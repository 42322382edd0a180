"""Command: convert between the legacy section format and the tree format."""

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
  formtree migrate old-form.json
  formtree migrate old-form.json -o form.json
  formtree migrate form.json -o legacy.json --to-legacy""",
)
@click.argument("source", type=click.Path(dir_okay=False, path_type=Path))
@click.option(
    "-o",
    "--output",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Write here instead of overwriting SOURCE.",
)
@click.option("--to-legacy", is_flag=True, help="Write the legacy list-of-sections format.")
@click.pass_obj
def migrate(app: AppContext, source: Path, output: Path | None, to_legacy: bool) -> None:
    """Rewrite SOURCE in the current document format."""
    from formtree.services.form import FormService

    svc = FormService(indent=app.settings.document.indent)
    app.emit(svc.migrate(source, output, to_legacy=to_legacy))

"""Command: list the built-in field templates."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from formtree.commands._base import FormtreeCommand
from formtree.domain.templates import TemplateCategory

if TYPE_CHECKING:
    from formtree.commands._context import AppContext


@click.command(
    cls=FormtreeCommand,
    examples="""\
  formtree templates
  formtree templates --category safety
  formtree -q templates""",
)
@click.option(
    "--category",
    type=click.Choice([c.value for c in TemplateCategory]),
    default=None,
    help="Only list templates in this category.",
)
@click.pass_obj
def templates(app: AppContext, category: str | None) -> None:
    """List templates usable with 'formtree edit FORM insert-template'."""
    from formtree.services.form import FormService

    app.emit(FormService().templates(category))

"""Click classes that carry usage examples.

``--help`` stays short; ``--examples`` prints the command's examples and
exits before any argument is validated, so ``formtree edit --examples``
works without a FORM.
"""

from __future__ import annotations

from typing import Any

import click


class ExamplesMixin:
    """Adds an ``examples=`` keyword and the eager ``--examples`` flag."""

    params: list[click.Parameter]

    def __init__(self, *args: Any, examples: str | None = None, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.examples = examples
        if examples:
            self.params.append(
                click.Option(
                    ["--examples"],
                    is_flag=True,
                    expose_value=False,
                    is_eager=True,
                    callback=self._print_examples,
                    help="Show usage examples and exit.",
                )
            )

    def _print_examples(self, ctx: click.Context, _param: click.Parameter, value: bool) -> None:
        if not value or ctx.resilient_parsing:
            return
        click.echo(f"Examples for '{ctx.command_path}':\n\n{self.examples}")
        ctx.exit(0)


class FormtreeCommand(ExamplesMixin, click.Command):
    """A command accepting ``examples=``."""


class FormtreeGroup(ExamplesMixin, click.Group):
    """A group accepting ``examples=``; its subcommands accept it too."""

    command_class = FormtreeCommand

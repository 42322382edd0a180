"""Subcommand modules for formtree.

Provides register_commands() which uses deferred imports to keep
``formtree --help`` fast.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import click


def register_commands(cli: click.Group) -> None:
    """Register the ``edit`` group and the standalone commands on the root group."""
    # --- Groups ---
    from formtree.commands.edit import edit

    cli.add_command(edit)

    # --- Standalone commands ---
    from formtree.commands.apply import apply
    from formtree.commands.check import check
    from formtree.commands.migrate import migrate
    from formtree.commands.new import new
    from formtree.commands.show import show
    from formtree.commands.templates import templates

    cli.add_command(new)
    cli.add_command(show)
    cli.add_command(check)
    cli.add_command(migrate)
    cli.add_command(apply)
    cli.add_command(templates)

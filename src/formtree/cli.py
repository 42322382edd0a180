"""The ``formtree`` entry point: root flags, then one subcommand per verb."""

from __future__ import annotations

import click

from formtree import __version__
from formtree.commands import register_commands
from formtree.commands._base import FormtreeGroup
from formtree.commands._context import AppContext
from formtree.config.settings import FormtreeSettings


@click.group(
    cls=FormtreeGroup,
    invoke_without_command=True,
    examples="""\
  formtree new inspection.json --starter
  formtree show inspection.json
  formtree edit inspection.json insert-section --label Equipment
  formtree --json check inspection.json""",
)
@click.version_option(version=__version__, prog_name="formtree")
@click.option("--json", "json_output", is_flag=True, help="Print results as JSON.")
@click.option("-q", "--quiet", is_flag=True, help="Print ids or a status line only.")
@click.option("-v", "--verbose", is_flag=True, help="Debug logging and timing spans.")
@click.option("--log-json", is_flag=True, help="Write log records to stderr as JSON.")
@click.option("--no-plugins", is_flag=True, help="Do not load entry-point or local plugins.")
@click.option(
    "-c",
    "--config",
    "config_path",
    default=None,
    help="Config file to use instead of searching for formtree.toml.",
)
@click.pass_context
def cli(
    ctx: click.Context,
    json_output: bool,
    quiet: bool,
    verbose: bool,
    log_json: bool,
    no_plugins: bool,
    config_path: str | None,
) -> None:
    """formtree — build and edit two-level form definitions.

    A form is an ordered list of sections and standalone fields; each
    section holds fields. Run a subcommand with --examples for usage.
    """
    ctx.obj = AppContext(
        FormtreeSettings.from_cli(
            config_path=config_path,
            json_output=json_output,
            quiet=quiet,
            verbose=verbose,
            log_json=log_json,
            no_plugins=no_plugins,
        )
    )
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


register_commands(cli)

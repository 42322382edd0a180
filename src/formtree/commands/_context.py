"""AppContext — what the root group hands to every subcommand.

Holds the invocation's settings, opens form documents into stores and
turns ServiceResults into output and exit codes.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from formtree.output.formatters import OutputSettings, format_result

if TYPE_CHECKING:
    from pathlib import Path

    from formtree.config.settings import FormtreeSettings
    from formtree.domain.items import Tree
    from formtree.infrastructure.store import FormStore
    from formtree.services.result import ServiceResult


class AppContext:
    """Per-invocation state, reached through ``@click.pass_obj``.

    Nothing is read from disk until a command opens a form, so ``--help``
    and ``--version`` stay side-effect free.
    """

    def __init__(self, settings: FormtreeSettings) -> None:
        from formtree.config.logging import configure_logging
        from formtree.services.telemetry import enable_telemetry

        self.settings = settings
        configure_logging(verbose=settings.verbose, log_json=settings.log_json)
        if settings.verbose:
            enable_telemetry()

    @property
    def output_settings(self) -> OutputSettings:
        return OutputSettings(
            json_output=self.settings.json_output,
            quiet=self.settings.quiet,
            verbose=self.settings.verbose,
        )

    @property
    def plugins_enabled(self) -> bool:
        return self.settings.plugins.enabled and not self.settings.no_plugins

    def open_store(self, path: Path) -> FormStore:
        """Read the form at *path* into a store whose saves write back to it.

        Raises:
            click.ClickException: If the document cannot be read.
        """
        from formtree.domain.errors import DocumentError
        from formtree.infrastructure.documents import FormDocument, read_document, write_document
        from formtree.infrastructure.store import FormStore

        try:
            document = read_document(path)
        except DocumentError as exc:
            raise click.ClickException(exc.message) from exc

        indent = self.settings.document.indent

        def write_back(name: str, tree: Tree) -> None:
            write_document(path, FormDocument(name=name, tree=tree), indent=indent)

        store = FormStore.from_settings(
            self.settings, document.tree, name=document.name, on_save=write_back
        )
        if self.plugins_enabled:
            store.init_plugins(
                local_dir=self.settings.project_root / self.settings.plugins.local_dir
            )
        return store

    def emit(self, result: ServiceResult) -> None:
        """Print *result*; a failure goes to stderr and exits with status 1.

        Warnings of a successful result are printed to stderr as
        ``WARNING:`` lines, except in JSON mode where they are part of
        the payload.
        """
        settings = self.output_settings
        text = format_result(result, settings=settings)
        if not result.ok:
            click.echo(text, err=True)
            raise SystemExit(1)
        click.echo(text)
        if not settings.json_output:
            for warning in result.warnings:
                click.echo(f"WARNING: {warning}", err=True)

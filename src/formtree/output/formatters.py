"""Output mode selection for ServiceResult.

The CLI renders a ServiceResult for humans (Rich), for scripts (--quiet)
or for machines (--json). :func:`format_result` picks the mode; the Rich
renderers live in :mod:`formtree.output.renderers`.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from pydantic import BaseModel

from formtree.output.renderers import render_quiet, render_result

if TYPE_CHECKING:
    from formtree.services.result import ServiceResult


class OutputSettings(BaseModel):
    """Output flags taken from the CLI root group."""

    model_config = {"frozen": True}

    json_output: bool = False
    quiet: bool = False
    verbose: bool = False


def format_result(result: ServiceResult, *, settings: OutputSettings | None = None) -> str:
    """Format a ServiceResult for display.

    ``--json`` wins over ``--quiet``; quiet output is one line per id (or a
    status line); the default is the Rich rendering.
    """
    settings = settings or OutputSettings()
    if settings.json_output:
        return result.model_dump_json(indent=2)
    if settings.quiet:
        return render_quiet(result)
    return render_result(result, verbose=settings.verbose)

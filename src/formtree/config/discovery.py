"""Locate and read the formtree configuration.

A project is configured by ``formtree.toml`` or by a ``[tool.formtree]``
table in ``pyproject.toml``. The nearest directory holding either one
wins, searching upward from the working directory. ``FORMTREE_CONFIG``
names a file explicitly and disables the search.
"""

from __future__ import annotations

import os
import tomllib
from pathlib import Path
from typing import Any

import click

CONFIG_FILENAME = "formtree.toml"
PYPROJECT_FILENAME = "pyproject.toml"
CONFIG_ENV_VAR = "FORMTREE_CONFIG"


def _parse(path: Path) -> dict[str, Any]:
    try:
        return tomllib.loads(path.read_text(encoding="utf-8"))
    except tomllib.TOMLDecodeError as exc:
        msg = f"Invalid TOML in {path}: {exc}"
        raise click.ClickException(msg) from exc


def _has_tool_table(pyproject: Path) -> bool:
    return "formtree" in _parse(pyproject).get("tool", {})


def find_config(start: Path | None = None) -> Path | None:
    """Return the config file governing *start* (default: cwd), or None.

    In each directory ``formtree.toml`` is preferred over a
    ``pyproject.toml``; the latter only counts when it has a
    ``[tool.formtree]`` table.
    """
    explicit = os.environ.get(CONFIG_ENV_VAR)
    if explicit:
        path = Path(explicit)
        return path if path.is_file() else None

    directory = (start or Path.cwd()).resolve()
    for candidate_dir in (directory, *directory.parents):
        config = candidate_dir / CONFIG_FILENAME
        if config.is_file():
            return config
        pyproject = candidate_dir / PYPROJECT_FILENAME
        if pyproject.is_file() and _has_tool_table(pyproject):
            return pyproject
    return None


def read_config_table(path: Path | None) -> dict[str, Any]:
    """Read the formtree settings table from *path*.

    Returns the whole document for ``formtree.toml`` and the
    ``[tool.formtree]`` table for ``pyproject.toml``; an empty dict when
    *path* is None or missing.

    Raises:
        click.ClickException: If the file is not valid TOML.
    """
    if path is None or not path.is_file():
        return {}
    data = _parse(path)
    if path.name == PYPROJECT_FILENAME:
        table = data.get("tool", {}).get("formtree", {})
        return dict(table) if isinstance(table, dict) else {}
    return data

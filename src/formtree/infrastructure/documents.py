"""Form documents — JSON files holding one form tree.

A document is a JSON object::

    {"formtree": 1, "name": "Boiler inspection", "items": [...]}

``items`` is the serialized tree (camelCase keys, ``kind`` discriminator).
Two legacy shapes are accepted on load and migrated to a tree: a bare
list of legacy sections, and an object whose ``sections`` key holds one.
Writing always produces the current shape.

INVARIANT: A loaded tree always passes :func:`validate_tree`.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from formtree.domain.errors import DocumentError
from formtree.domain.items import Tree, tree_from_data, tree_to_data
from formtree.domain.migration import is_legacy_sections, migrate_sections_to_tree
from formtree.domain.tree import validate_tree

logger = logging.getLogger(__name__)

DOCUMENT_VERSION = 1
DEFAULT_FORM_NAME = "Untitled form"


@dataclass(frozen=True)
class FormDocument:
    """A named form tree, plus whether it was migrated on load."""

    name: str
    tree: Tree
    migrated: bool = False


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------


def _parse_items(raw: Any) -> tuple[Tree, bool]:
    if is_legacy_sections(raw):
        return migrate_sections_to_tree(raw), True
    return tree_from_data(raw), False


def parse_document(data: Any, *, source: str = "<data>") -> FormDocument:
    """Build a :class:`FormDocument` from decoded JSON.

    Raises:
        DocumentError: If *data* is not a form document or its tree breaks
            the tree invariants.
    """
    name = DEFAULT_FORM_NAME
    if isinstance(data, list):
        raw_items: Any = data
    elif isinstance(data, dict):
        name = str(data.get("name") or DEFAULT_FORM_NAME)
        if "items" in data:
            raw_items = data["items"]
        elif "sections" in data:
            raw_items = data["sections"]
        else:
            raise DocumentError(f"{source}: no 'items' or 'sections' key", source=source)
    else:
        raise DocumentError(f"{source}: expected a JSON object or list", source=source)

    try:
        tree, migrated = _parse_items(raw_items)
    except (ValidationError, KeyError, TypeError) as exc:
        raise DocumentError(f"{source}: {exc}", source=source) from exc

    problems = validate_tree(tree)
    if problems:
        raise DocumentError(
            f"{source}: {'; '.join(problems)}", source=source, problems=problems
        )
    if migrated:
        logger.info("Migrated legacy sections in %s", source)
    return FormDocument(name=name, tree=tree, migrated=migrated)


def document_to_data(document: FormDocument) -> dict[str, Any]:
    """Serialize *document* in the current shape."""
    return {
        "formtree": DOCUMENT_VERSION,
        "name": document.name,
        "items": tree_to_data(document.tree),
    }


# ---------------------------------------------------------------------------
# File I/O
# ---------------------------------------------------------------------------


def read_document(path: Path) -> FormDocument:
    """Read and validate the form document at *path*.

    Raises:
        DocumentError: If the file is missing, not JSON, or not a valid form.
    """
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise DocumentError(f"Cannot read {path}: {exc.strerror}", source=str(path)) from exc
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise DocumentError(f"{path}: invalid JSON ({exc.msg})", source=str(path)) from exc
    return parse_document(data, source=str(path))


def write_document(path: Path, document: FormDocument, *, indent: int = 2) -> None:
    """Write *document* to *path* as JSON.

    Creates parent directories if they don't exist.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    rendered = json.dumps(document_to_data(document), indent=indent, ensure_ascii=False)
    path.write_text(rendered + "\n", encoding="utf-8")
    logger.debug("Wrote form document %s", path)

"""Legacy section format conversion.

Older form definitions were a flat list of sections, each holding its
fields and a redundant ``order`` number::

    [{"id": "s1", "name": "Status", "isExpanded": true, "isSystem": true,
      "fields": [...], "order": 0}]

Migration is one-way at load time: each legacy section becomes a
Section whose children are its fields in their original order. Ordering
comes from list position, the ``order`` value is dropped. The reverse
conversion exists for exporting to consumers that still read the legacy
shape.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

from formtree.domain.items import Field, Section, Tree
from formtree.domain.types import DataType

LEGACY_KEYS = frozenset({"name", "fields"})

# Lowercase type names used by early form definitions.
LEGACY_TYPE_MAP: dict[str, DataType] = {
    "text": DataType.STRING,
    "textarea": DataType.TEXT,
    "number": DataType.DOUBLE,
    "email": DataType.STRING,
    "phone": DataType.STRING,
    "date": DataType.DATE,
    "select": DataType.SELECT,
    "radio": DataType.MULTIPLE_CHOICE,
    "checkbox": DataType.CHECKBOX,
    "file": DataType.FILES,
    "signature": DataType.SIGNATURE,
}


def is_legacy_sections(data: Any) -> bool:
    """Heuristic: a list whose entries all carry ``name`` and ``fields`` keys."""
    if not isinstance(data, list) or not data:
        return False
    return all(
        isinstance(entry, Mapping) and LEGACY_KEYS.issubset(entry.keys()) for entry in data
    )


def _migrate_field(data: Mapping[str, Any]) -> Field:
    raw_type = data.get("type")
    if isinstance(raw_type, str):
        data = {**data, "type": LEGACY_TYPE_MAP.get(raw_type, raw_type.upper())}
    return Field.model_validate(data)


def migrate_sections_to_tree(sections: Iterable[Mapping[str, Any]]) -> Tree:
    """Convert legacy sections into a tree of Sections.

    Raises:
        pydantic.ValidationError: If a section or field is malformed.
    """
    tree: list[Section] = []
    for entry in sections:
        children = tuple(_migrate_field(field) for field in entry.get("fields") or ())
        tree.append(
            Section(
                id=str(entry["id"]),
                label=str(entry.get("name", "")),
                is_expanded=bool(entry.get("isExpanded", True)),
                is_system=bool(entry.get("isSystem", False)),
                children=children,
            )
        )
    return tuple(tree)


def _legacy_field(field: Field) -> dict[str, Any]:
    return field.model_dump(mode="json", by_alias=True, exclude_none=True, exclude={"kind"})


def tree_to_legacy_sections(tree: Tree) -> tuple[list[dict[str, Any]], list[str]]:
    """Convert *tree* back to legacy sections.

    Returns:
        ``(sections, dropped_ids)`` — standalone root fields have no place
        in the legacy shape and are reported in ``dropped_ids``.
    """
    sections: list[dict[str, Any]] = []
    dropped: list[str] = []
    for item in tree:
        if not isinstance(item, Section):
            dropped.append(item.id)
            continue
        sections.append(
            {
                "id": item.id,
                "name": item.label,
                "isExpanded": item.is_expanded,
                "isSystem": item.is_system,
                "fields": [_legacy_field(child) for child in item.children],
                "order": len(sections),
            }
        )
    return sections, dropped

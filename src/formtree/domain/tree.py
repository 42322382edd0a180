"""ItemTree — pure structural operations over a two-level form tree.

A tree is a tuple of root items. A root item is either a Section (whose
``children`` are Fields) or a standalone Field. Every function here
returns a new tree and leaves its input untouched.

Fail-soft contract: an id that cannot be found is not an exception.
``remove``, ``replace`` and ``insert`` into an unknown section return the
*same* tree object, so callers detect "no effect" with ``new is old``.
Caller errors that would corrupt the tree (a Section inside a Section, a
duplicate id) raise :class:`StructuralError`.
"""

from __future__ import annotations

import logging
from collections import Counter
from collections.abc import Callable, Iterator, Mapping
from dataclasses import dataclass
from typing import Any

from formtree.domain.errors import StructuralError
from formtree.domain.ids import validate_item_id
from formtree.domain.items import Field, Item, Section, Tree

logger = logging.getLogger(__name__)

Updater = Mapping[str, Any] | Callable[[Item], Item]


@dataclass(frozen=True)
class Location:
    """Position of an item: container (``None`` = root) and index within it."""

    container_id: str | None
    index: int


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------


def iter_items(tree: Tree) -> Iterator[Item]:
    """Yield every item, root first, each Section followed by its children."""
    for item in tree:
        yield item
        if isinstance(item, Section):
            yield from item.children


def all_ids(tree: Tree) -> list[str]:
    """Return every id in tree order (duplicates included)."""
    return [item.id for item in iter_items(tree)]


def all_fields(tree: Tree) -> list[Field]:
    """Flatten the tree into its fields, standalone and nested, in order."""
    return [item for item in iter_items(tree) if isinstance(item, Field)]


def count_fields(tree: Tree) -> int:
    return len(all_fields(tree))


def count_sections(tree: Tree) -> int:
    return sum(1 for item in tree if isinstance(item, Section))


def find_by_id(tree: Tree, item_id: str) -> Item | None:
    """Find an item at root, then one level into each Section's children."""
    for item in tree:
        if item.id == item_id:
            return item
    for item in tree:
        if isinstance(item, Section):
            for child in item.children:
                if child.id == item_id:
                    return child
    return None


def find_section(tree: Tree, section_id: str) -> Section | None:
    """Return the root Section with *section_id*, or None."""
    for item in tree:
        if isinstance(item, Section) and item.id == section_id:
            return item
    return None


def locate_container(tree: Tree, item_id: str) -> Location | None:
    """Return where *item_id* lives, or None if it is not in the tree."""
    for index, item in enumerate(tree):
        if item.id == item_id:
            return Location(None, index)
    for item in tree:
        if isinstance(item, Section):
            for index, child in enumerate(item.children):
                if child.id == item_id:
                    return Location(item.id, index)
    return None


def find_parent_section(tree: Tree, item_id: str) -> Section | None:
    """Return the Section containing field *item_id* (None for root items)."""
    location = locate_container(tree, item_id)
    if location is None or location.container_id is None:
        return None
    return find_section(tree, location.container_id)


def is_standalone(tree: Tree, item_id: str) -> bool:
    """True when *item_id* is a Field placed directly at root."""
    return any(isinstance(item, Field) and item.id == item_id for item in tree)


def container_items(tree: Tree, container_id: str | None) -> tuple[Item, ...] | None:
    """Return the ordered items of a container, or None if it does not exist."""
    if container_id is None:
        return tree
    section = find_section(tree, container_id)
    return None if section is None else section.children


def validate_tree(tree: Tree) -> list[str]:
    """Return a list of invariant violations (empty when the tree is sound)."""
    errors: list[str] = []
    counts = Counter(all_ids(tree))
    for item_id, count in counts.items():
        if count > 1:
            errors.append(f"Duplicate id {item_id!r} appears {count} times")
        if not validate_item_id(item_id):
            errors.append(f"Invalid id {item_id!r}")
    for item in tree:
        if isinstance(item, Section):
            for child in item.children:
                if not isinstance(child, Field):
                    errors.append(f"Section {item.id!r} contains a non-field child")
    return errors


# ---------------------------------------------------------------------------
# Mutations (allocation-returning)
# ---------------------------------------------------------------------------


def _clamp(index: int, length: int) -> int:
    return max(0, min(index, length))


def insert(tree: Tree, item: Item, target: Location) -> Tree:
    """Insert *item* at *target*; an index past the end appends.

    Raises:
        StructuralError: If *item* (or one of its children) reuses an id
            already in the tree, or a Section is targeted into a Section.
    """
    incoming = [item.id]
    if isinstance(item, Section):
        incoming.extend(child.id for child in item.children)
    existing = set(all_ids(tree))
    clashes = [item_id for item_id in incoming if item_id in existing]
    if clashes:
        raise StructuralError(
            f"Id already present in tree: {clashes[0]}",
            code="DUPLICATE_ID",
            ids=clashes,
        )

    if target.container_id is None:
        index = _clamp(target.index, len(tree))
        return (*tree[:index], item, *tree[index:])

    if isinstance(item, Section):
        raise StructuralError(
            f"Cannot place section {item.id!r} inside section {target.container_id!r}",
            code="NESTED_SECTION",
        )

    for position, root_item in enumerate(tree):
        if isinstance(root_item, Section) and root_item.id == target.container_id:
            children = root_item.children
            index = _clamp(target.index, len(children))
            updated = root_item.model_copy(
                update={"children": (*children[:index], item, *children[index:])}
            )
            return (*tree[:position], updated, *tree[position + 1 :])

    logger.debug("insert: no section %s; tree unchanged", target.container_id)
    return tree


def remove(tree: Tree, item_id: str) -> Tree:
    """Remove *item_id* from root or from a Section; no-op if absent."""
    for position, item in enumerate(tree):
        if item.id == item_id:
            return (*tree[:position], *tree[position + 1 :])
    for position, item in enumerate(tree):
        if isinstance(item, Section):
            for index, child in enumerate(item.children):
                if child.id == item_id:
                    updated = item.model_copy(
                        update={"children": (*item.children[:index], *item.children[index + 1 :])}
                    )
                    return (*tree[:position], updated, *tree[position + 1 :])
    logger.debug("remove: no item %s; tree unchanged", item_id)
    return tree


def _attribute_names(item: Item) -> dict[str, str]:
    """Map every accepted key, field name or camelCase alias, to its field name."""
    names: dict[str, str] = {}
    for name, info in type(item).model_fields.items():
        names[name] = name
        if info.alias:
            names[info.alias] = name
    return names


def _apply_update(item: Item, updater: Updater) -> Item:
    if callable(updater):
        return updater(item)
    names = _attribute_names(item)
    changes: dict[str, Any] = {}
    for key, value in updater.items():
        if key not in names:
            raise StructuralError(
                f"Unknown attribute {key!r} for {item.id!r}", code="UNKNOWN_ATTRIBUTE"
            )
        changes[names[key]] = value
    for immutable in ("id", "kind", "children"):
        if immutable in changes:
            raise StructuralError(f"Cannot replace {immutable!r} of {item.id!r}", code="IMMUTABLE")
    # Round-trip through validation so bad values are rejected up front.
    return type(item).model_validate({**item.model_dump(), **changes})


def replace(tree: Tree, item_id: str, updater: Updater) -> Tree:
    """Apply a partial update to *item_id* without touching its siblings.

    *updater* is either a mapping of attribute changes
    (``{"label": "Status"}``) or a callable returning the new item.
    Keys may be field names or their camelCase aliases; any other key
    raises :class:`StructuralError`.
    Returns *tree* itself when the id is absent.
    """
    for position, item in enumerate(tree):
        if item.id == item_id:
            updated = _apply_update(item, updater)
            return (*tree[:position], updated, *tree[position + 1 :])
        if isinstance(item, Section):
            for index, child in enumerate(item.children):
                if child.id == item_id:
                    new_child = _apply_update(child, updater)
                    if not isinstance(new_child, Field):
                        raise StructuralError(
                            f"Replacement for {item_id!r} must remain a field",
                            code="NESTED_SECTION",
                        )
                    section = item.model_copy(
                        update={
                            "children": (
                                *item.children[:index],
                                new_child,
                                *item.children[index + 1 :],
                            )
                        }
                    )
                    return (*tree[:position], section, *tree[position + 1 :])
    logger.debug("replace: no item %s; tree unchanged", item_id)
    return tree

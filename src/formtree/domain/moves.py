"""MoveResolver — resolve a finished drag into a new tree.

A drag ends with a normalized :class:`DragResult`: which item moved, where
it came from and where it should land. ``dest_index`` is the item's
final index inside the destination container, counted *after* the item
has left its source. Resolution therefore always removes first and
inserts second, against one intermediate tree:

    tree' = remove(tree, active_id)
    tree'' = insert(tree', item, Location(dest_container_id, dest_index))

This keeps same-container moves symmetric (moving up and moving down
use the same rule) and makes a drop onto the item's own position a
no-op. Cross-container moves are the same two steps; callers only ever
see the final tree.

Drag input is noisy: invalid drops raise :class:`DragResolutionError`
from the strict :func:`apply_move`, and :func:`resolve` turns them into a
logged no-op.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import StrEnum

from formtree.domain.errors import DragResolutionError
from formtree.domain.items import Field, Section, Tree
from formtree.domain.tree import Location, container_items, find_by_id, insert, locate_container
from formtree.domain.tree import remove as remove_item
from formtree.domain.types import ItemKind

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DragResult:
    """Normalized drag-end description consumed by :func:`resolve`.

    ``None`` container ids mean the root list.
    """

    active_id: str
    active_kind: ItemKind
    source_container_id: str | None
    source_index: int
    dest_container_id: str | None
    dest_index: int

    def __post_init__(self) -> None:
        object.__setattr__(self, "active_kind", ItemKind(self.active_kind))

    @property
    def is_same_position(self) -> bool:
        return (
            self.source_container_id == self.dest_container_id
            and self.source_index == self.dest_index
        )


class DropTargetKind(StrEnum):
    OVER_ITEM = "item"
    CONTAINER_END = "end"
    SECTION_HEADER = "header"


@dataclass(frozen=True)
class DropTarget:
    """What the pointer was over when the drag ended.

    - ``over_item(id)``: another section or field.
    - ``container_end(container_id)``: the append sentinel of a section,
      or of the root list when *container_id* is None.
    - ``section_header(section_id)``: the header of a (collapsed) section.
    """

    kind: DropTargetKind
    target_id: str | None = None

    @classmethod
    def over_item(cls, item_id: str) -> DropTarget:
        return cls(DropTargetKind.OVER_ITEM, item_id)

    @classmethod
    def container_end(cls, container_id: str | None = None) -> DropTarget:
        return cls(DropTargetKind.CONTAINER_END, container_id)

    @classmethod
    def section_header(cls, section_id: str) -> DropTarget:
        return cls(DropTargetKind.SECTION_HEADER, section_id)

    def __str__(self) -> str:
        if self.kind is DropTargetKind.CONTAINER_END and self.target_id is None:
            return "end:root"
        return f"{self.kind}:{self.target_id}"


def parse_drop_target(text: str) -> DropTarget:
    """Parse ``item:<id>``, ``end:root``, ``end:<section id>`` or ``header:<id>``.

    Raises:
        ValueError: If *text* is not a recognised drop target.
    """
    head, _, rest = text.strip().partition(":")
    if not rest:
        msg = f"Invalid drop target {text!r}"
        raise ValueError(msg)
    if head == DropTargetKind.OVER_ITEM:
        return DropTarget.over_item(rest)
    if head == DropTargetKind.CONTAINER_END:
        return DropTarget.container_end(None if rest == "root" else rest)
    if head == DropTargetKind.SECTION_HEADER:
        return DropTarget.section_header(rest)
    msg = f"Invalid drop target {text!r}"
    raise ValueError(msg)


# ---------------------------------------------------------------------------
# Normalization: drop target -> DragResult
# ---------------------------------------------------------------------------


def _kind_of(item: Section | Field) -> ItemKind:
    return ItemKind.SECTION if isinstance(item, Section) else ItemKind.FIELD


def _append_index(tree: Tree, container_id: str | None, source: Location) -> int:
    items = container_items(tree, container_id)
    if items is None:
        raise DragResolutionError(
            f"Drop container not found: {container_id}", container_id=container_id
        )
    # Length of the destination once the active item has left it.
    return len(items) - 1 if source.container_id == container_id else len(items)


def describe_drop(tree: Tree, active_id: str, target: DropTarget) -> DragResult:
    """Turn a raw drop over *target* into a :class:`DragResult`.

    Raises:
        DragResolutionError: If the active item is unknown or the target is
            not a valid destination for it.
    """
    active = find_by_id(tree, active_id)
    source = locate_container(tree, active_id)
    if active is None or source is None:
        raise DragResolutionError(f"Dragged item not found: {active_id}", active_id=active_id)
    kind = _kind_of(active)

    dest: Location
    if target.kind is DropTargetKind.CONTAINER_END:
        if kind is ItemKind.SECTION and target.target_id is not None:
            raise DragResolutionError(
                "Sections can only be dropped at root", active_id=active_id, target=str(target)
            )
        dest = Location(target.target_id, _append_index(tree, target.target_id, source))
    else:
        if target.target_id is None:
            raise DragResolutionError("Drop target has no id", target=str(target))
        over = find_by_id(tree, target.target_id)
        over_location = locate_container(tree, target.target_id)
        if over is None or over_location is None:
            raise DragResolutionError(
                f"Drop target not found: {target.target_id}", target=str(target)
            )
        if target.kind is DropTargetKind.SECTION_HEADER and not isinstance(over, Section):
            raise DragResolutionError(
                f"Not a section header: {target.target_id}", target=str(target)
            )
        if kind is ItemKind.SECTION:
            if over_location.container_id is not None:
                raise DragResolutionError(
                    "Sections cannot be dropped onto a field inside a section",
                    active_id=active_id,
                    target=str(target),
                )
            dest = over_location
        elif isinstance(over, Section):
            # Field over a section body or header: append to that section.
            dest = Location(over.id, _append_index(tree, over.id, source))
        else:
            dest = over_location

    return DragResult(
        active_id=active_id,
        active_kind=kind,
        source_container_id=source.container_id,
        source_index=source.index,
        dest_container_id=dest.container_id,
        dest_index=dest.index,
    )


def self_move(tree: Tree, item_id: str) -> DragResult:
    """A DragResult that drops *item_id* back onto its own position."""
    return describe_drop(tree, item_id, DropTarget.over_item(item_id))


# ---------------------------------------------------------------------------
# Resolution: DragResult -> tree
# ---------------------------------------------------------------------------


def apply_move(tree: Tree, result: DragResult) -> Tree:
    """Apply *result* to *tree*, strictly.

    Returns *tree* itself when the move lands where the item already is.

    Raises:
        DragResolutionError: If the move is invalid for the current tree.
    """
    item = find_by_id(tree, result.active_id)
    source = locate_container(tree, result.active_id)
    if item is None or source is None:
        raise DragResolutionError(
            f"Dragged item not found: {result.active_id}", active_id=result.active_id
        )
    if _kind_of(item) is not result.active_kind:
        raise DragResolutionError(
            f"Dragged item {result.active_id} is a {_kind_of(item)}, not a {result.active_kind}",
            active_id=result.active_id,
        )
    if (source.container_id, source.index) != (result.source_container_id, result.source_index):
        logger.debug(
            "Stale drag source for %s: reported %s[%d], actual %s[%d]",
            result.active_id,
            result.source_container_id,
            result.source_index,
            source.container_id,
            source.index,
        )

    if isinstance(item, Section) and result.dest_container_id is not None:
        raise DragResolutionError(
            f"Section {item.id} cannot be dropped into {result.dest_container_id}",
            active_id=item.id,
        )
    if result.dest_container_id is not None:
        destination = find_by_id(tree, result.dest_container_id)
        if not isinstance(destination, Section):
            raise DragResolutionError(
                f"Drop container is not a section: {result.dest_container_id}",
                container_id=result.dest_container_id,
            )
    if result.dest_index < 0:
        raise DragResolutionError(
            f"Negative drop index {result.dest_index}", active_id=result.active_id
        )

    if source.container_id == result.dest_container_id and source.index == result.dest_index:
        return tree

    # Remove first; dest_index is defined against the post-removal container.
    without = remove_item(tree, item.id)
    moved = insert(without, item, Location(result.dest_container_id, result.dest_index))
    return tree if moved == tree else moved


def resolve(tree: Tree, result: DragResult) -> Tree:
    """Apply *result*, turning an invalid drop into a logged no-op."""
    try:
        return apply_move(tree, result)
    except DragResolutionError as exc:
        logger.warning("Drop ignored: %s", exc.message)
        return tree

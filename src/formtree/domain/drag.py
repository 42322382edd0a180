"""DragSessionTracker — ephemeral state of an in-progress drag.

State machine::

    IDLE --start--> DRAGGING --over(id)--> HOVERING --over(None)--> DRAGGING
      ^                |                      |
      +----------------+---- drop / cancel ---+

The tracker never touches the committed tree. On drop it only reads the
tree to normalize the gesture into a :class:`DragResult` for the
MoveResolver. Every termination path (drop, drop outside any target,
failed normalization, explicit cancel) resets it to IDLE, so no hover
highlight survives into the next session.
"""

from __future__ import annotations

import logging
from enum import StrEnum

from formtree.domain.items import Tree
from formtree.domain.moves import DragResult, DropTarget, describe_drop
from formtree.domain.types import ItemKind

logger = logging.getLogger(__name__)


class DragPhase(StrEnum):
    IDLE = "idle"
    DRAGGING = "dragging"
    HOVERING = "hovering"


class DragSessionTracker:
    """Tracks ``active_id``, ``active_kind`` and ``over_id`` for one drag."""

    def __init__(self) -> None:
        self.active_id: str | None = None
        self.active_kind: ItemKind | None = None
        self.over_id: str | None = None

    @property
    def phase(self) -> DragPhase:
        if self.active_id is None:
            return DragPhase.IDLE
        if self.over_id is None:
            return DragPhase.DRAGGING
        return DragPhase.HOVERING

    @property
    def is_active(self) -> bool:
        return self.active_id is not None

    def start(self, active_id: str, active_kind: ItemKind | str) -> None:
        """Begin a drag. A drag already in progress is abandoned."""
        if self.is_active:
            logger.debug("Drag of %s restarted by %s", self.active_id, active_id)
        self.active_id = active_id
        self.active_kind = ItemKind(active_kind)
        self.over_id = None

    def over(self, over_id: str | None) -> None:
        """Record the item currently under the pointer (None when over nothing)."""
        if not self.is_active:
            return
        self.over_id = over_id

    def is_highlighted(self, item_id: str) -> bool:
        """Whether *item_id* should render the transient drop highlight."""
        return self.is_active and self.over_id == item_id and item_id != self.active_id

    def drop(self, tree: Tree, target: DropTarget | None) -> DragResult | None:
        """End the drag over *target* and return the move to commit.

        Returns None when there was no drag or the pointer was released
        outside any valid target.

        Raises:
            DragResolutionError: If the target cannot accept the dragged
                item. The session is reset regardless.
        """
        active_id = self.active_id
        try:
            if active_id is None or target is None:
                return None
            return describe_drop(tree, active_id, target)
        finally:
            self.reset()

    def cancel(self) -> None:
        """Abort the drag (e.g. Escape). The committed tree is unaffected."""
        self.reset()

    def reset(self) -> None:
        self.active_id = None
        self.active_kind = None
        self.over_id = None

"""HistoryManager — undo/redo over whole-tree snapshots.

Every committed mutation records one action holding the tree before and
after it. Snapshotting the whole tree is fine at form sizes (tens of
items) and keeps undo trivially correct, since trees are immutable.

INVARIANT: ``-1 <= history_index <= len(actions) - 1``.
``can_undo`` is ``history_index >= 0``; ``can_redo`` is
``history_index < len(actions) - 1``.

Running out of history is not an error: ``undo``/``redo`` return None,
and recording past ``max_history_size`` evicts the oldest action.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum

from formtree.domain.items import Tree

DEFAULT_MAX_HISTORY_SIZE = 50


class ActionType(StrEnum):
    """Kinds of reversible editing actions."""

    ADD_SECTION = "ADD_SECTION"
    DELETE_SECTION = "DELETE_SECTION"
    RENAME_SECTION = "RENAME_SECTION"
    TOGGLE_SECTION = "TOGGLE_SECTION"
    REORDER_SECTION = "REORDER_SECTION"
    ADD_FIELD = "ADD_FIELD"
    DELETE_FIELD = "DELETE_FIELD"
    UPDATE_FIELD = "UPDATE_FIELD"
    REORDER_FIELD = "REORDER_FIELD"
    BULK_UPDATE = "BULK_UPDATE"


@dataclass(frozen=True)
class HistoryAction:
    """One recorded mutation."""

    before: Tree
    after: Tree
    type: ActionType = ActionType.BULK_UPDATE
    description: str = ""
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))


class HistoryManager:
    """Linear action list with a cursor.

    Args:
        max_history_size: Most actions retained; older ones are evicted FIFO.
    """

    def __init__(self, max_history_size: int = DEFAULT_MAX_HISTORY_SIZE) -> None:
        if max_history_size < 1:
            msg = f"max_history_size must be >= 1, got {max_history_size}"
            raise ValueError(msg)
        self.max_history_size = max_history_size
        self._actions: list[HistoryAction] = []
        self._index = -1

    @property
    def history_index(self) -> int:
        return self._index

    @property
    def history_length(self) -> int:
        return len(self._actions)

    @property
    def can_undo(self) -> bool:
        return self._index >= 0

    @property
    def can_redo(self) -> bool:
        return self._index < len(self._actions) - 1

    @property
    def actions(self) -> tuple[HistoryAction, ...]:
        return tuple(self._actions)

    @property
    def last_action(self) -> HistoryAction | None:
        """The action the next undo would revert."""
        if self._index < 0:
            return None
        return self._actions[self._index]

    def record_action(
        self,
        before: Tree,
        after: Tree,
        *,
        action_type: ActionType = ActionType.BULK_UPDATE,
        description: str = "",
    ) -> HistoryAction:
        """Record a committed mutation, discarding any redo actions."""
        action = HistoryAction(
            before=before, after=after, type=action_type, description=description
        )
        del self._actions[self._index + 1 :]
        self._actions.append(action)
        overflow = len(self._actions) - self.max_history_size
        if overflow > 0:
            del self._actions[:overflow]
        self._index = len(self._actions) - 1
        return action

    def undo(self) -> Tree | None:
        """Step back one action and return the tree before it, or None."""
        if self._index < 0:
            return None
        action = self._actions[self._index]
        self._index -= 1
        return action.before

    def redo(self) -> Tree | None:
        """Step forward one action and return the tree after it, or None."""
        if self._index >= len(self._actions) - 1:
            return None
        self._index += 1
        return self._actions[self._index].after

    def clear(self) -> None:
        self._actions.clear()
        self._index = -1

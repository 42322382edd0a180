"""Pluggy hook specifications for formtree.

One rendering hook lets plugins supply the input widget for a field type;
three lifecycle events are dispatched synchronously after commits, saves
and cancels.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import pluggy

if TYPE_CHECKING:
    from formtree.domain.items import Field

hookspec = pluggy.HookspecMarker("formtree")


class FormtreeHookSpec:
    """Hook specifications for the formtree plugin system."""

    @hookspec(firstresult=True)
    def render_field(self, field: Field) -> str | None:
        """Return a one-line preview of *field*'s input, or None to pass.

        The first non-None result wins. ``field.type`` is the discriminator;
        the core never interprets it.
        """

    @hookspec
    def post_commit(
        self,
        action_type: str,
        description: str,
        created_ids: list[str],
        removed_ids: list[str],
    ) -> None:
        """Called after a mutation is committed to the tree."""

    @hookspec
    def post_save(
        self,
        name: str,
        field_count: int,
        section_count: int,
    ) -> None:
        """Called after the tree is handed to the save callback."""

    @hookspec
    def post_cancel(self, discarded_actions: int) -> None:
        """Called after in-memory edits are discarded."""

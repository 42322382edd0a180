"""FormStore — the explicit editing-store handle injected into services.

The store owns everything one editing session needs:

- the committed tree (a tuple, replaced wholesale on each commit),
- the :class:`HistoryManager` wrapping every committed mutation,
- the :class:`DragSessionTracker` for an in-progress drag,
- the :class:`IdGenerator` for new items,
- the *baseline* tree that ``cancel`` restores,
- the ``on_save`` persistence callback and the plugin manager.

INVARIANT: The committed tree only changes through :meth:`commit`,
:meth:`restore` (undo/redo) and :meth:`discard`. Each is a single
assignment, so readers never observe a half-applied mutation.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import TYPE_CHECKING

from formtree.domain.drag import DragSessionTracker
from formtree.domain.edits import EditDefaults
from formtree.domain.history import DEFAULT_MAX_HISTORY_SIZE, ActionType, HistoryManager
from formtree.domain.ids import IdGenerator
from formtree.domain.items import Tree
from formtree.domain.planner import FieldTemplate, SectionTemplate

if TYPE_CHECKING:
    from pathlib import Path

    from formtree.config.settings import FormtreeSettings
    from formtree.plugins.manager import PluginManager

logger = logging.getLogger(__name__)

SaveCallback = Callable[[str, Tree], None]


class FormStore:
    """Committed tree plus its session state.

    Args:
        tree: Initial committed tree; also the initial baseline.
        name: Form name handed to the save callback.
        max_history_size: History capacity (oldest actions are evicted).
        ids: Id generator, injectable for deterministic tests.
        defaults: Templates for items created without explicit values.
        on_save: Persistence callback ``(name, tree) -> None``.
    """

    def __init__(
        self,
        tree: Tree = (),
        *,
        name: str = "Untitled form",
        max_history_size: int = DEFAULT_MAX_HISTORY_SIZE,
        ids: IdGenerator | None = None,
        defaults: EditDefaults | None = None,
        on_save: SaveCallback | None = None,
    ) -> None:
        self._tree: Tree = tuple(tree)
        self._baseline: Tree = self._tree
        self.name = name
        self.history = HistoryManager(max_history_size)
        self.drag = DragSessionTracker()
        self.ids = ids or IdGenerator()
        self.defaults = defaults or EditDefaults()
        self.on_save = on_save
        self._plugins: PluginManager | None = None

    @classmethod
    def from_settings(
        cls,
        settings: FormtreeSettings,
        tree: Tree = (),
        *,
        name: str = "Untitled form",
        on_save: SaveCallback | None = None,
    ) -> FormStore:
        """Build a store whose history size and item defaults come from *settings*."""
        defaults = EditDefaults(
            field_template=FieldTemplate(
                label=settings.defaults.field_label,
                type=settings.defaults.field_type,
                id_prefix=settings.ids.field_prefix,
            ),
            section_template=SectionTemplate(
                label=settings.defaults.section_label,
                id_prefix=settings.ids.section_prefix,
            ),
        )
        return cls(
            tree,
            name=name,
            max_history_size=settings.editor.max_history_size,
            defaults=defaults,
            on_save=on_save,
        )

    # ------------------------------------------------------------------
    # Tree state
    # ------------------------------------------------------------------

    @property
    def tree(self) -> Tree:
        """The committed tree (read-only snapshot)."""
        return self._tree

    @property
    def baseline(self) -> Tree:
        """The tree as of the last save (or load)."""
        return self._baseline

    @property
    def is_dirty(self) -> bool:
        return self._tree != self._baseline

    def commit(self, after: Tree, *, action_type: ActionType, description: str) -> bool:
        """Commit *after* as the new tree and record it in history.

        Returns False (and records nothing) when *after* equals the
        current tree.
        """
        before = self._tree
        if after == before:
            logger.debug("Commit skipped, tree unchanged: %s", description)
            return False
        self.history.record_action(
            before, after, action_type=action_type, description=description
        )
        self._tree = after
        return True

    def restore(self, tree: Tree) -> None:
        """Replace the tree without recording history (undo/redo)."""
        self._tree = tree

    def mark_saved(self) -> None:
        """Make the current tree the new baseline."""
        self._baseline = self._tree

    def discard(self) -> int:
        """Drop in-memory edits: restore the baseline, clear history and drag.

        Returns the number of history actions discarded.
        """
        discarded = self.history.history_length
        self._tree = self._baseline
        self.history.clear()
        self.drag.reset()
        return discarded

    # ------------------------------------------------------------------
    # Plugins
    # ------------------------------------------------------------------

    @property
    def plugins(self) -> PluginManager | None:
        """The plugin manager (None if not initialized)."""
        return self._plugins

    def init_plugins(self, *, local_dir: Path | None = None) -> PluginManager:
        """Create a PluginManager, discover plugins and register built-ins.

        The built-in text renderer is registered first so any discovered
        ``render_field`` implementation takes precedence over it.
        """
        from formtree.plugins.builtins.text_renderer import TextRendererPlugin
        from formtree.plugins.manager import PluginManager

        pm = PluginManager()
        pm.register_plugin(TextRendererPlugin(), name="text-renderer-builtin")
        pm.discover_and_load(local_dir=local_dir)
        self._plugins = pm
        return pm

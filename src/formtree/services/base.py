"""BaseService — services operate on one open FormStore."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from formtree.infrastructure.store import FormStore

logger = logging.getLogger(__name__)


class BaseService:
    """Shared plumbing for services bound to a :class:`FormStore`.

    The store owns the committed tree, history, drag tracker, save
    callback and plugin manager; a service only reads and commits through
    it, so several services may share one store.
    """

    def __init__(self, store: FormStore) -> None:
        self._store = store

    @property
    def store(self) -> FormStore:
        return self._store

    def _dispatch_event(self, hook_name: str, payload: dict[str, Any], warnings: list[str]) -> None:
        """Call lifecycle hook *hook_name* on all plugins, if any are loaded.

        A raising plugin adds a warning; the operation still succeeds.
        """
        plugins = self._store.plugins
        if plugins is None:
            return
        hook = getattr(plugins.hook, hook_name)
        try:
            hook(**payload)
        except Exception:
            logger.debug("Plugin hook %s raised", hook_name, exc_info=True)
            warnings.append(f"Event dispatch failed for {hook_name}")

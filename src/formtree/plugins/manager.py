"""Finding, loading and calling formtree plugins.

Plugins come from two places:

* distributions advertising the ``formtree.plugins`` entry point group;
* single-file modules in the project's local plugin directory
  (``.formtree/plugins/`` by default). Every class in such a module that
  carries at least one ``@hookimpl`` method is instantiated and registered.

A plugin that fails to import or instantiate is logged and skipped.
"""

from __future__ import annotations

import importlib.util
import inspect
import logging
import sys
from collections.abc import Iterator
from pathlib import Path

import pluggy

from formtree.plugins.hookspecs import FormtreeHookSpec

PROJECT_NAME = "formtree"
ENTRY_POINT_GROUP = "formtree.plugins"
LOCAL_MODULE_PREFIX = "formtree_local_plugin_"

logger = logging.getLogger(__name__)


def implements_hooks(candidate: object) -> bool:
    """True if *candidate* (class or instance) has a formtree ``@hookimpl``."""
    marker = f"{PROJECT_NAME}_impl"
    return any(
        callable(member) and hasattr(member, marker)
        for name, member in inspect.getmembers(candidate)
        if not name.startswith("_")
    )


def _import_file(path: Path) -> object | None:
    module_name = LOCAL_MODULE_PREFIX + path.stem
    spec = importlib.util.spec_from_file_location(module_name, path)
    if spec is None or spec.loader is None:
        logger.warning("Not an importable plugin file: %s", path)
        return None
    module = importlib.util.module_from_spec(spec)
    sys.modules[module_name] = module
    try:
        spec.loader.exec_module(module)
    except Exception:
        sys.modules.pop(module_name, None)
        logger.warning("Skipping plugin %s: import failed", path, exc_info=True)
        return None
    return module


def iter_local_plugins(directory: Path) -> Iterator[tuple[str, object]]:
    """Yield ``(name, instance)`` for each plugin class found in *directory*.

    Files starting with ``_`` are not plugins. Names are
    ``formtree_local_plugin_<file stem>.<class name>``.
    """
    if not directory.is_dir():
        return
    for path in sorted(directory.glob("*.py")):
        if path.name.startswith("_"):
            continue
        module = _import_file(path)
        if module is None:
            continue
        module_name = LOCAL_MODULE_PREFIX + path.stem
        for class_name, cls in inspect.getmembers(module, inspect.isclass):
            if cls.__module__ != module_name or not implements_hooks(cls):
                continue
            try:
                instance = cls()
            except Exception:
                logger.warning("Skipping plugin %s.%s: constructor failed", path, class_name)
                continue
            yield f"{module_name}.{class_name}", instance


class PluginManager:
    """Thin wrapper over :class:`pluggy.PluginManager` for formtree hooks."""

    def __init__(self) -> None:
        self._pm = pluggy.PluginManager(PROJECT_NAME)
        self._pm.add_hookspecs(FormtreeHookSpec)
        self._loaded = False

    @property
    def hook(self) -> pluggy.HookRelay:
        """Hook relay: ``pm.hook.render_field(field=...)``."""
        return self._pm.hook

    @property
    def is_loaded(self) -> bool:
        """Whether :meth:`discover_and_load` has run."""
        return self._loaded

    def discover_and_load(self, *, local_dir: Path | None = None) -> list[str]:
        """Register entry-point plugins, then those in *local_dir*.

        Returns the names of all registered plugins.
        """
        self._pm.load_setuptools_entrypoints(ENTRY_POINT_GROUP)
        self._instantiate_registered_classes()
        if local_dir is not None:
            for name, plugin in iter_local_plugins(local_dir):
                self.register_plugin(plugin, name=name)
        self._loaded = True
        return self.list_plugin_names()

    def register_plugin(self, plugin: object, name: str | None = None) -> None:
        """Register *plugin* under *name* (default: its class name)."""
        name = name or type(plugin).__name__
        self._pm.register(plugin, name=name)
        logger.debug("Registered plugin %s", name)

    def unregister(self, plugin: object) -> None:
        self._pm.unregister(plugin)

    def get_plugins(self) -> list[object]:
        return list(self._pm.get_plugins())

    def list_plugin_names(self) -> list[str]:
        return [self._pm.get_name(p) or type(p).__name__ for p in self._pm.get_plugins()]

    def _instantiate_registered_classes(self) -> None:
        # An entry point may name a class; its hooks need an instance.
        for plugin in self.get_plugins():
            if not inspect.isclass(plugin) or not implements_hooks(plugin):
                continue
            name = self._pm.get_name(plugin) or plugin.__name__
            self._pm.unregister(plugin)
            try:
                self._pm.register(plugin(), name=name)
            except Exception:
                logger.warning("Skipping entry-point plugin %s: constructor failed", name)

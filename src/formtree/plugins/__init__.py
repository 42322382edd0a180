"""Extension layer — plugin system via pluggy.

Plugins are found through the ``formtree.plugins`` entry point group and
the project's local plugin directory.
INVARIANT: Plugin failures are warnings, never errors.
"""

from formtree.plugins.manager import PluginManager

__all__ = ["PluginManager"]

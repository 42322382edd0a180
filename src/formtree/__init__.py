"""formtree — a two-level form builder core: sections, fields, moves, history."""

__version__ = "0.1.0"

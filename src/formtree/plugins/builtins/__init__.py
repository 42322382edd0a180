"""Built-in plugins shipped with formtree."""

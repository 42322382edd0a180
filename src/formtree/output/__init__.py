"""Output layer — Rich console, result formatting and renderers."""

"""Domain exceptions.

StructuralError and DragResolutionError never escape the service layer:
services catch them and return a ServiceResult instead. Nothing here is
fatal, the caller keeps its prior tree.
"""

from __future__ import annotations


class FormTreeError(Exception):
    """Base class for domain errors, carrying a machine-readable code."""

    code = "FORMTREE_ERROR"

    def __init__(self, message: str, *, code: str | None = None, **detail: object) -> None:
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code
        self.detail = detail


class StructuralError(FormTreeError):
    """A targeted mutation that would break tree invariants, or hit no item."""

    code = "STRUCTURAL_ERROR"


class DragResolutionError(FormTreeError):
    """A drop that cannot be resolved to a valid move."""

    code = "INVALID_DROP"


class DocumentError(FormTreeError):
    """A form document that cannot be read, parsed or validated."""

    code = "INVALID_DOCUMENT"

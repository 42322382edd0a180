"""ServiceResult and ServiceError — what every service method returns.

User-level failures (unknown ids, protected items, bad zones) come back
as ``ok=False`` with a :class:`ServiceError`; they are never raised.
Commands and the script runner branch on ``ok`` and on ``error.code``.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any

from pydantic import BaseModel, Field


class ErrorCode(StrEnum):
    """Machine-readable failure reasons.

    Domain errors may surface their own code when it has no entry here.
    """

    NOT_FOUND = "NOT_FOUND"
    PROTECTED = "PROTECTED"
    VALIDATION_FAILED = "VALIDATION_FAILED"
    DUPLICATE_ID = "DUPLICATE_ID"
    INVALID_ZONE = "INVALID_ZONE"
    UNKNOWN_TEMPLATE = "UNKNOWN_TEMPLATE"
    INVALID_DOCUMENT = "INVALID_DOCUMENT"
    INVALID_SCRIPT = "INVALID_SCRIPT"
    STEP_FAILED = "STEP_FAILED"
    SAVE_FAILED = "SAVE_FAILED"
    ALREADY_EXISTS = "ALREADY_EXISTS"


class ServiceError(BaseModel):
    """Why an operation failed; ``detail`` carries ids and counts."""

    model_config = {"frozen": True}

    code: str
    message: str
    detail: dict[str, Any] = Field(default_factory=dict)


class ServiceResult(BaseModel):
    """Outcome of one service call.

    Attributes:
        ok: False exactly when ``error`` is set.
        op: Operation name, e.g. ``"rename_field"``; selects the renderer.
        data: Operation payload. Editing commands report ``applied``,
            ``created_ids``, ``removed_ids`` and the form counts.
        warnings: Things the user should know that did not stop the call
            (ignored drops, failing plugins, legacy input).
        error: Set when ``ok`` is False.
        meta: Telemetry spans in ``--verbose`` runs.
    """

    model_config = {"frozen": True}

    ok: bool
    op: str
    data: dict[str, Any] = Field(default_factory=dict)
    warnings: list[str] = Field(default_factory=list)
    error: ServiceError | None = None
    meta: dict[str, Any] | None = None

    @classmethod
    def failure(
        cls, op: str, code: str, message: str, detail: dict[str, Any] | None = None
    ) -> ServiceResult:
        return cls(
            ok=False, op=op, error=ServiceError(code=code, message=message, detail=detail or {})
        )

    @property
    def applied(self) -> bool:
        """Whether a successful edit changed the tree."""
        return self.ok and bool(self.data.get("applied", True))

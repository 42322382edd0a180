"""ScriptService — run a sequence of edit steps against one store.

A script is a list of steps, each a mapping with an ``op`` key::

    - op: insert-section
      label: Equipment
    - op: move
      item_id: field-pressure-reading
      to: end:root
    - op: undo

Steps run in order through :class:`EditorService`, one history action
each. Execution stops at the first rejected step; earlier steps stay
committed. ``undo`` and ``redo`` steps drive the store's history.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import Any

from pydantic import ValidationError
from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

from formtree.domain.edits import parse_edit
from formtree.services.base import BaseService
from formtree.services.editor import EditorService
from formtree.services.result import ErrorCode, ServiceResult
from formtree.services.telemetry import trace_span, traced

logger = logging.getLogger(__name__)

HISTORY_OPS = frozenset({"undo", "redo"})


class ScriptError(ValueError):
    """A script file that cannot be read or is not a list of steps."""


def load_script(path: Path) -> list[dict[str, Any]]:
    """Read a YAML (or JSON) script file into a list of step mappings.

    Raises:
        ScriptError: If the file is unreadable, malformed, or not a list of
            mappings.
    """
    try:
        data = YAML(typ="safe").load(path.read_text(encoding="utf-8"))
    except OSError as exc:
        msg = f"Cannot read script {path}: {exc.strerror}"
        raise ScriptError(msg) from exc
    except YAMLError as exc:
        msg = f"Invalid YAML in script {path}: {exc}"
        raise ScriptError(msg) from exc

    if isinstance(data, Mapping) and "steps" in data:
        data = data["steps"]
    if not isinstance(data, list) or not all(isinstance(step, Mapping) for step in data):
        msg = f"Script {path} must be a list of steps"
        raise ScriptError(msg)
    return [dict(step) for step in data]


class ScriptService(BaseService):
    """Runs edit scripts sequentially: a single-writer command queue."""

    @traced
    def run(self, steps: Iterable[Mapping[str, Any]]) -> ServiceResult:
        op = "run_script"
        warnings: list[str] = []
        editor = EditorService(self._store)
        results: list[dict[str, Any]] = []

        for index, step in enumerate(steps):
            step_op = str(step.get("op", ""))
            with trace_span(f"step[{index}]:{step_op}"):
                # ── PARSE ────────────────────────────────────────
                if step_op in HISTORY_OPS:
                    extra = sorted(set(step) - {"op"})
                    if extra:
                        return self._invalid(op, index, f"{step_op} takes no arguments", results)
                    result = editor.undo() if step_op == "undo" else editor.redo()
                else:
                    try:
                        edit = parse_edit(dict(step))
                    except ValidationError as exc:
                        return self._invalid(op, index, str(exc), results)
                    # ── APPLY ────────────────────────────────────
                    result = editor.apply(edit)

            if not result.ok:
                assert result.error is not None
                logger.debug("Script stopped at step %d: %s", index, result.error.message)
                return ServiceResult.failure(
                    op,
                    ErrorCode.STEP_FAILED,
                    f"Step {index} ({step_op}) failed: {result.error.message}",
                    {
                        "step": index,
                        "step_error": result.error.model_dump(),
                        "steps_run": len(results),
                        "results": results,
                    },
                )
            warnings.extend(f"step {index}: {w}" for w in result.warnings)
            results.append(
                {
                    "step": index,
                    "op": result.op,
                    "applied": result.applied,
                    "description": result.data.get("description", ""),
                }
            )

        history = self._store.history
        return ServiceResult(
            ok=True,
            op=op,
            data={
                "steps_run": len(results),
                "results": results,
                "can_undo": history.can_undo,
                "can_redo": history.can_redo,
            },
            warnings=warnings,
        )

    @staticmethod
    def _invalid(
        op: str, index: int, message: str, results: list[dict[str, Any]]
    ) -> ServiceResult:
        return ServiceResult.failure(
            op,
            ErrorCode.INVALID_SCRIPT,
            f"Step {index} is not a valid edit: {message}",
            {"step": index, "steps_run": len(results), "results": results},
        )

"""Timing spans for ``--verbose`` runs.

Off by default. When enabled, the outermost ``@traced`` service call
opens a root span; nested traced calls and ``trace_span`` blocks become
its children. When the root call returns, the span tree is logged and
attached to the result as ``meta["telemetry"]``.
"""

from __future__ import annotations

import functools
import time
from collections.abc import Callable, Generator
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass, field
from typing import Any, ParamSpec, TypeVar

import structlog

from formtree.services.result import ServiceResult

_enabled: ContextVar[bool] = ContextVar("formtree_telemetry_enabled", default=False)
_active: ContextVar[Span | None] = ContextVar("formtree_active_span", default=None)

_P = ParamSpec("_P")
_R = TypeVar("_R")


@dataclass
class Span:
    """One timed region; children are nested regions in call order."""

    name: str
    started: float = field(default_factory=time.perf_counter)
    finished: float | None = None
    children: list[Span] = field(default_factory=list)
    annotations: dict[str, Any] = field(default_factory=dict)

    @property
    def duration_ms(self) -> float:
        if self.finished is None:
            return 0.0
        return (self.finished - self.started) * 1000

    def annotate(self, key: str, value: Any) -> None:
        self.annotations[key] = value

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"name": self.name, "duration_ms": round(self.duration_ms, 2)}
        if self.annotations:
            data["annotations"] = dict(self.annotations)
        if self.children:
            data["children"] = [child.to_dict() for child in self.children]
        return data


@contextmanager
def _open_span(name: str, parent: Span | None) -> Generator[Span]:
    span = Span(name)
    if parent is not None:
        parent.children.append(span)
    token = _active.set(span)
    try:
        yield span
    finally:
        span.finished = time.perf_counter()
        _active.reset(token)


@contextmanager
def trace_span(name: str) -> Generator[Span | None]:
    """Time a block as a child of the active span.

    Yields None (and times nothing) outside a traced call or when
    telemetry is off.
    """
    parent = _active.get() if _enabled.get() else None
    if parent is None:
        yield None
        return
    with _open_span(name, parent) as span:
        yield span


def traced(func: Callable[_P, _R]) -> Callable[_P, _R]:  # noqa: UP047
    """Time a service method; the outermost call reports the span tree."""

    @functools.wraps(func)
    def wrapper(*args: _P.args, **kwargs: _P.kwargs) -> _R:
        if not _enabled.get():
            return func(*args, **kwargs)

        parent = _active.get()
        ok = False
        with _open_span(func.__qualname__, parent) as span:
            try:
                result = func(*args, **kwargs)
                ok = result.ok if isinstance(result, ServiceResult) else True
            finally:
                if parent is None:
                    span.finished = time.perf_counter()
                    structlog.get_logger("formtree.telemetry").debug(
                        "span.complete",
                        span_name=span.name,
                        duration_ms=round(span.duration_ms, 2),
                        ok=ok,
                        children=len(span.children),
                    )

        if parent is None and isinstance(result, ServiceResult):
            meta = {**(result.meta or {}), "telemetry": span.to_dict()}
            return result.model_copy(update={"meta": meta})  # type: ignore[return-value]
        return result

    return wrapper


def enable_telemetry() -> None:
    """Turn spans on for the current context (``--verbose``)."""
    _enabled.set(True)


def disable_telemetry() -> None:
    _enabled.set(False)


def get_current_span() -> Span | None:
    """The innermost active span, for annotating; None when telemetry is off."""
    return _active.get() if _enabled.get() else None

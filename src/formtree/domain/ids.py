"""Collision-free item id generation.

Ids combine a type prefix, a millisecond timestamp, a monotonic counter
and a short random suffix: ``field-lq3k9x2a-0007-9f1c``. The counter
alone keeps ids unique within a process; the timestamp and random parts
keep ids from separate editing sessions apart.

INVARIANT: A generated id is never one still present in the tree.
"""

from __future__ import annotations

import itertools
import re
import secrets
import time
from collections.abc import Callable, Collection

ID_PATTERN = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_.-]*$")

_BASE36 = "0123456789abcdefghijklmnopqrstuvwxyz"


def _to_base36(value: int) -> str:
    if value == 0:
        return "0"
    digits: list[str] = []
    while value:
        value, rem = divmod(value, 36)
        digits.append(_BASE36[rem])
    return "".join(reversed(digits))


def validate_item_id(item_id: str) -> bool:
    """Check whether *item_id* is usable as an item id."""
    return ID_PATTERN.match(item_id) is not None


class IdGenerator:
    """Generates item ids that never collide with ids already taken.

    Args:
        clock: Millisecond clock, injectable for deterministic tests.
        token: Random suffix source, injectable for deterministic tests.
    """

    def __init__(
        self,
        *,
        clock: Callable[[], int] | None = None,
        token: Callable[[], str] | None = None,
    ) -> None:
        self._counter = itertools.count(1)
        self._clock = clock or (lambda: time.time_ns() // 1_000_000)
        self._token = token or (lambda: secrets.token_hex(2))

    def next_id(self, prefix: str, taken: Collection[str] = ()) -> str:
        """Return a fresh ``{prefix}-...`` id not contained in *taken*."""
        while True:
            stamp = _to_base36(self._clock())
            candidate = f"{prefix}-{stamp}-{next(self._counter):04d}-{self._token()}"
            if candidate not in taken:
                return candidate

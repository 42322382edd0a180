"""Insertion zones — symbolic positions at which new items are created.

A zone names *where* in the form an insertion happens without knowing
the current indices of anything else:

    root-start                      before every root item
    root-end                        after every root item
    between-root-items(index)       root position ``index``
    section-start(section_id)       first child of a section
    between-section-fields(id, i)   child position ``i`` of a section
    section-end(section_id)         after the last child of a section

The text form used by adapters is ``root-start``, ``root-end``,
``root:<index>``, ``section-start:<id>``, ``section:<id>:<index>`` and
``section-end:<id>``.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum


class ZoneKind(StrEnum):
    ROOT_START = "root-start"
    ROOT_END = "root-end"
    BETWEEN_ROOT_ITEMS = "between-root-items"
    SECTION_START = "section-start"
    BETWEEN_SECTION_FIELDS = "between-section-fields"
    SECTION_END = "section-end"


_SECTION_KINDS = frozenset(
    {ZoneKind.SECTION_START, ZoneKind.BETWEEN_SECTION_FIELDS, ZoneKind.SECTION_END}
)
_INDEXED_KINDS = frozenset({ZoneKind.BETWEEN_ROOT_ITEMS, ZoneKind.BETWEEN_SECTION_FIELDS})


@dataclass(frozen=True)
class InsertionZone:
    """A symbolic insertion position. Use the classmethod constructors."""

    kind: ZoneKind
    section_id: str | None = None
    index: int | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "kind", ZoneKind(self.kind))
        if self.kind in _SECTION_KINDS and not self.section_id:
            msg = f"Zone {self.kind} requires a section id"
            raise ValueError(msg)
        if self.kind not in _SECTION_KINDS and self.section_id is not None:
            msg = f"Zone {self.kind} does not take a section id"
            raise ValueError(msg)
        if self.kind in _INDEXED_KINDS:
            if self.index is None or self.index < 0:
                msg = f"Zone {self.kind} requires a non-negative index"
                raise ValueError(msg)
        elif self.index is not None:
            msg = f"Zone {self.kind} does not take an index"
            raise ValueError(msg)

    @property
    def is_root(self) -> bool:
        return self.kind not in _SECTION_KINDS

    # --- constructors ---

    @classmethod
    def root_start(cls) -> InsertionZone:
        return cls(ZoneKind.ROOT_START)

    @classmethod
    def root_end(cls) -> InsertionZone:
        return cls(ZoneKind.ROOT_END)

    @classmethod
    def between_root_items(cls, index: int) -> InsertionZone:
        return cls(ZoneKind.BETWEEN_ROOT_ITEMS, index=index)

    @classmethod
    def section_start(cls, section_id: str) -> InsertionZone:
        return cls(ZoneKind.SECTION_START, section_id=section_id)

    @classmethod
    def between_section_fields(cls, section_id: str, index: int) -> InsertionZone:
        return cls(ZoneKind.BETWEEN_SECTION_FIELDS, section_id=section_id, index=index)

    @classmethod
    def section_end(cls, section_id: str) -> InsertionZone:
        return cls(ZoneKind.SECTION_END, section_id=section_id)

    def __str__(self) -> str:
        if self.kind is ZoneKind.BETWEEN_ROOT_ITEMS:
            return f"root:{self.index}"
        if self.kind is ZoneKind.BETWEEN_SECTION_FIELDS:
            return f"section:{self.section_id}:{self.index}"
        if self.section_id is not None:
            return f"{self.kind}:{self.section_id}"
        return str(self.kind)


def parse_zone(text: str) -> InsertionZone:
    """Parse the text form of a zone.

    Raises:
        ValueError: If *text* is not a recognised zone.

    Examples:
        >>> parse_zone("section-end:sec-1").section_id
        'sec-1'
        >>> str(parse_zone("section:sec-1:2"))
        'section:sec-1:2'
    """
    value = text.strip()
    head, _, rest = value.partition(":")
    try:
        if head == "root-start" and not rest:
            return InsertionZone.root_start()
        if head == "root-end" and not rest:
            return InsertionZone.root_end()
        if head == "root" and rest:
            return InsertionZone.between_root_items(int(rest))
        if head == "section-start" and rest:
            return InsertionZone.section_start(rest)
        if head == "section-end" and rest:
            return InsertionZone.section_end(rest)
        if head == "section" and rest:
            section_id, _, index = rest.rpartition(":")
            if section_id:
                return InsertionZone.between_section_fields(section_id, int(index))
    except ValueError as exc:
        msg = f"Invalid insertion zone {text!r}: {exc}"
        raise ValueError(msg) from exc
    msg = f"Invalid insertion zone {text!r}"
    raise ValueError(msg)

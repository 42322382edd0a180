"""Item kinds and field data types.

The data types mirror the product's field catalogue: system types are
managed by the platform, custom types are user-defined form fields.
The engine treats a type as an opaque discriminator.
"""

from __future__ import annotations

from enum import StrEnum


class ItemKind(StrEnum):
    """The two node kinds of a form tree."""

    SECTION = "section"
    FIELD = "field"


class DataType(StrEnum):
    """Field data types."""

    # System fields
    FILES = "FILES"
    STATUS_ID = "STATUS_ID"
    TAGS = "TAGS"
    PRIVACY_ID = "PRIVACY_ID"
    WATCHERS = "WATCHERS"
    SITE = "SITE"
    MEM_ID = "MEM_ID"
    REF_ID = "REF_ID"
    TYPE_ID = "TYPE_ID"

    # Custom fields
    STRING = "STRING"
    TEXT = "TEXT"
    BOOLEAN = "BOOLEAN"
    CHECKBOX = "CHECKBOX"
    SELECT = "SELECT"
    DATE = "DATE"
    TIME = "TIME"
    DOUBLE = "DOUBLE"
    LOCATION = "LOCATION"
    PEOPLE = "PEOPLE"
    PEOPLE_LIST = "PEOPLE_LIST"
    SIGNATURE = "SIGNATURE"
    FILE_LIST = "FILE_LIST"
    MULTIPLE_CHOICE = "MULTIPLE_CHOICE"
    TAGS_DROPDOWN = "TAGS_DROPDOWN"


DEFAULT_FIELD_TYPE = DataType.STRING

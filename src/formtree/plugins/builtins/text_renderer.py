"""Built-in field renderer: plain-text input placeholders.

Registered last-resort renderer for ``formtree show``. Other plugins
registered later take precedence (pluggy calls newer implementations
first) and may return None to fall back to this one.
"""

from __future__ import annotations

import pluggy

from formtree.domain.items import Field
from formtree.domain.types import DataType

hookimpl = pluggy.HookimplMarker("formtree")

PLACEHOLDERS: dict[DataType, str] = {
    DataType.STRING: "[ text ]",
    DataType.TEXT: "[ long text ... ]",
    DataType.BOOLEAN: "( yes / no )",
    DataType.CHECKBOX: "[ ] checkbox",
    DataType.SELECT: "[ select v ]",
    DataType.MULTIPLE_CHOICE: "( ) choice  ( ) choice",
    DataType.TAGS_DROPDOWN: "[ tags v ]",
    DataType.DATE: "[ yyyy-mm-dd ]",
    DataType.TIME: "[ hh:mm ]",
    DataType.DOUBLE: "[ 0.00 ]",
    DataType.LOCATION: "[ lat, lon ]",
    DataType.PEOPLE: "[ person ]",
    DataType.PEOPLE_LIST: "[ people ... ]",
    DataType.SIGNATURE: "[ sign here ]",
    DataType.FILE_LIST: "[ attach files ]",
    DataType.FILES: "[ attach files ]",
    DataType.STATUS_ID: "[ status v ]",
    DataType.TAGS: "[ tags ]",
    DataType.PRIVACY_ID: "[ privacy v ]",
    DataType.WATCHERS: "[ watchers ]",
    DataType.SITE: "[ site v ]",
    DataType.MEM_ID: "[ member ]",
    DataType.REF_ID: "[ reference ]",
    DataType.TYPE_ID: "[ type v ]",
}


class TextRendererPlugin:
    """Renders each known data type as a bracketed text placeholder."""

    @hookimpl
    def render_field(self, field: Field) -> str | None:
        return PLACEHOLDERS.get(field.type)

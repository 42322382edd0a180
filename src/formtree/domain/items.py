"""Item models — Section and Field nodes of a form tree.

Both models are frozen: every structural operation returns a new tree
and never mutates its input, so snapshots kept by the history stay
valid and ``==`` compares structure.

Attribute names are snake_case in Python; serialized documents use
camelCase (``isExpanded``, ``isSystemField``, ``dataTypeLocked``).
Either spelling is accepted on input.
"""

from __future__ import annotations

from typing import Annotated, Any, Literal

from pydantic import BaseModel, Discriminator, TypeAdapter
from pydantic import Field as ModelField
from pydantic.alias_generators import to_camel

from formtree.domain.types import DEFAULT_FIELD_TYPE, DataType

_ITEM_CONFIG = {
    "frozen": True,
    "alias_generator": to_camel,
    "populate_by_name": True,
}


class Field(BaseModel):
    """A leaf form field, standalone at root or inside one Section."""

    model_config = _ITEM_CONFIG

    kind: Literal["field"] = "field"
    id: str = ModelField(min_length=1)
    label: str = ""
    type: DataType = DEFAULT_FIELD_TYPE
    is_required: bool = False
    is_system_field: bool = False
    data_type_locked: bool = False
    key: str | None = None

    @property
    def is_protected(self) -> bool:
        return self.is_system_field


class Section(BaseModel):
    """An ordered container of Fields. Sections never nest."""

    model_config = _ITEM_CONFIG

    kind: Literal["section"] = "section"
    id: str = ModelField(min_length=1)
    label: str = ""
    is_expanded: bool = True
    is_system: bool = False
    children: tuple[Field, ...] = ()

    @property
    def is_protected(self) -> bool:
        return self.is_system


Item = Annotated[Section | Field, Discriminator("kind")]
Tree = tuple[Item, ...]

_TREE_ADAPTER: TypeAdapter[tuple[Section | Field, ...]] = TypeAdapter(tuple[Item, ...])


def tree_from_data(data: Any) -> Tree:
    """Validate a list of item dicts into a tree.

    Raises:
        pydantic.ValidationError: If *data* does not describe items.
    """
    return _TREE_ADAPTER.validate_python(data)


def tree_to_data(tree: Tree) -> list[dict[str, Any]]:
    """Serialize *tree* to JSON-compatible dicts with camelCase keys."""
    return [item.model_dump(mode="json", by_alias=True, exclude_none=True) for item in tree]

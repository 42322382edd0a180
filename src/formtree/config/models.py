"""Pydantic configuration models with code-baked defaults.

Sparse TOML contract: defaults baked here, formtree.toml only contains
overrides. An empty (or missing) formtree.toml is a valid configuration.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from formtree.domain.history import DEFAULT_MAX_HISTORY_SIZE
from formtree.domain.types import DEFAULT_FIELD_TYPE, DataType

# --- formtree.toml sections ---


class EditorConfig(BaseModel):
    """[editor] section."""

    model_config = {"frozen": True}

    max_history_size: int = Field(default=DEFAULT_MAX_HISTORY_SIZE, ge=1)


class DefaultsConfig(BaseModel):
    """[defaults] section: values for items created without explicit input."""

    model_config = {"frozen": True}

    field_label: str = "New Field"
    field_type: DataType = DEFAULT_FIELD_TYPE
    section_label: str = "New Section"


class IdsConfig(BaseModel):
    """[ids] section."""

    model_config = {"frozen": True}

    field_prefix: str = Field(default="field", pattern=r"^[a-z][a-z0-9_]*$")
    section_prefix: str = Field(default="section", pattern=r"^[a-z][a-z0-9_]*$")


class DocumentConfig(BaseModel):
    """[document] section."""

    model_config = {"frozen": True}

    indent: int = Field(default=2, ge=0)


class PluginsConfig(BaseModel):
    """[plugins] section."""

    model_config = {"frozen": True}

    enabled: bool = True
    local_dir: str = ".formtree/plugins"


class FormtreeConfig(BaseModel):
    """Root configuration composing all sections."""

    model_config = {"frozen": True}

    editor: EditorConfig = Field(default_factory=EditorConfig)
    defaults: DefaultsConfig = Field(default_factory=DefaultsConfig)
    ids: IdsConfig = Field(default_factory=IdsConfig)
    document: DocumentConfig = Field(default_factory=DocumentConfig)
    plugins: PluginsConfig = Field(default_factory=PluginsConfig)

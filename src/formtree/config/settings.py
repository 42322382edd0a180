"""Layered settings for the CLI.

Sources, strongest first:

1. keyword arguments (the root group's flags)
2. ``FORMTREE_*`` environment variables, ``__`` between nested keys
3. the config table found by :func:`formtree.config.discovery.find_config`
4. defaults baked into :mod:`formtree.config.models`
"""

from __future__ import annotations

from contextvars import ContextVar
from pathlib import Path
from typing import Any

import click
from pydantic import Field, ValidationError
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource

from formtree.config.discovery import find_config, read_config_table
from formtree.config.models import (
    DefaultsConfig,
    DocumentConfig,
    EditorConfig,
    FormtreeConfig,
    IdsConfig,
    PluginsConfig,
)

# Config file chosen by ``from_cli`` for the settings object being built.
_config_file: ContextVar[Path | None] = ContextVar("_config_file", default=None)


class ConfigTableSource(PydanticBaseSettingsSource):
    """Settings source over the sections of one config table.

    The table is validated against :class:`FormtreeConfig` up front so a
    bad value is reported against the file it came from. Unknown
    top-level keys are ignored.
    """

    def __init__(self, settings_cls: type[BaseSettings], path: Path | None) -> None:
        super().__init__(settings_cls)
        table = read_config_table(path)
        try:
            FormtreeConfig.model_validate(table)
        except ValidationError as exc:
            msg = f"Invalid configuration in {path}:\n{exc}"
            raise click.ClickException(msg) from exc
        self._sections = {
            name: table[name] for name in FormtreeConfig.model_fields if name in table
        }

    def get_field_value(self, field: Any, field_name: str) -> tuple[Any, str, bool]:
        return self._sections.get(field_name), field_name, field_name in self._sections

    def __call__(self) -> dict[str, Any]:
        return dict(self._sections)


class FormtreeSettings(BaseSettings):
    """Everything a command needs to know about its environment.

    Built once per invocation by the root group and kept on the
    :class:`~formtree.commands._context.AppContext`.

    Attributes:
        project_root: Directory of the config file, or the working
            directory when there is none. Local plugins live under it.
        config_path: The config file in effect, if any.
    """

    model_config = {
        "frozen": True,
        "env_prefix": "FORMTREE_",
        "env_nested_delimiter": "__",
    }

    project_root: Path = Field(default_factory=Path.cwd)
    config_path: Path | None = None

    # root group flags
    json_output: bool = False
    quiet: bool = False
    verbose: bool = False
    log_json: bool = False
    no_plugins: bool = False

    # config sections
    editor: EditorConfig = Field(default_factory=EditorConfig)
    defaults: DefaultsConfig = Field(default_factory=DefaultsConfig)
    ids: IdsConfig = Field(default_factory=IdsConfig)
    document: DocumentConfig = Field(default_factory=DocumentConfig)
    plugins: PluginsConfig = Field(default_factory=PluginsConfig)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return (
            init_settings,
            env_settings,
            ConfigTableSource(settings_cls, _config_file.get()),
        )

    @classmethod
    def from_cli(
        cls,
        *,
        config_path: str | None = None,
        project_root: Path | None = None,
        **flags: Any,
    ) -> FormtreeSettings:
        """Build settings for one CLI invocation.

        An explicit *config_path* that does not exist means "no config";
        otherwise the file is discovered upward from *project_root*.
        """
        if config_path:
            explicit = Path(config_path)
            config_file = explicit if explicit.is_file() else None
        else:
            config_file = find_config(project_root)

        if project_root is None:
            project_root = config_file.parent if config_file else Path.cwd()

        token = _config_file.set(config_file)
        try:
            return cls(project_root=project_root, config_path=config_file, **flags)
        finally:
            _config_file.reset(token)

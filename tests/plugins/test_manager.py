"""Tests for PluginManager registration and hook dispatch."""

from __future__ import annotations

from pathlib import Path

import pluggy

from formtree.domain.items import Field
from formtree.domain.types import DataType
from formtree.plugins.builtins.text_renderer import PLACEHOLDERS, TextRendererPlugin
from formtree.plugins.manager import PluginManager, implements_hooks

hookimpl = pluggy.HookimplMarker("formtree")


class UpperRenderer:
    @hookimpl
    def render_field(self, field: Field) -> str | None:
        if field.type is DataType.SIGNATURE:
            return "SIGN"
        return None


class TestPluginManager:
    def test_register_and_list(self) -> None:
        pm = PluginManager()
        pm.register_plugin(TextRendererPlugin(), name="text")
        assert pm.list_plugin_names() == ["text"]
        assert not pm.is_loaded

    def test_default_name_is_class_name(self) -> None:
        pm = PluginManager()
        pm.register_plugin(UpperRenderer())
        assert pm.list_plugin_names() == ["UpperRenderer"]

    def test_unregister(self) -> None:
        pm = PluginManager()
        plugin = UpperRenderer()
        pm.register_plugin(plugin)
        pm.unregister(plugin)
        assert pm.get_plugins() == []

    def test_render_first_result_wins(self) -> None:
        pm = PluginManager()
        pm.register_plugin(TextRendererPlugin(), name="text")
        pm.register_plugin(UpperRenderer(), name="upper")
        signature = Field(id="f", type=DataType.SIGNATURE)
        date = Field(id="g", type=DataType.DATE)
        assert pm.hook.render_field(field=signature) == "SIGN"
        assert pm.hook.render_field(field=date) == PLACEHOLDERS[DataType.DATE]

    def test_discover_without_local_dir(self) -> None:
        pm = PluginManager()
        pm.discover_and_load()
        assert pm.is_loaded

    def test_builtin_covers_every_type(self) -> None:
        assert set(PLACEHOLDERS) == set(DataType)

    def test_implements_hooks(self) -> None:
        assert implements_hooks(UpperRenderer)
        assert implements_hooks(TextRendererPlugin())
        assert not implements_hooks(PluginManager)


_LOCAL_PLUGIN_SRC = """\
import pluggy

hookimpl = pluggy.HookimplMarker("formtree")

saves: list[str] = []


class SaveRecorder:
    @hookimpl
    def post_save(self, name: str, field_count: int, section_count: int) -> None:
        saves.append(name)
"""

_NO_HOOKS_SRC = """\
class PlainClass:
    def hello(self) -> str:
        return "world"
"""


class TestLocalDiscovery:
    def test_loads_hook_classes(self, tmp_path: Path) -> None:
        (tmp_path / "recorder.py").write_text(_LOCAL_PLUGIN_SRC, encoding="utf-8")
        pm = PluginManager()
        names = pm.discover_and_load(local_dir=tmp_path)
        assert "formtree_local_plugin_recorder.SaveRecorder" in names
        pm.hook.post_save(name="Form", field_count=1, section_count=0)
        plugin = pm.get_plugins()[0]
        assert type(plugin).__name__ == "SaveRecorder"

    def test_skips_private_and_hookless_files(self, tmp_path: Path) -> None:
        (tmp_path / "_private.py").write_text(_LOCAL_PLUGIN_SRC, encoding="utf-8")
        (tmp_path / "plain.py").write_text(_NO_HOOKS_SRC, encoding="utf-8")
        pm = PluginManager()
        assert pm.discover_and_load(local_dir=tmp_path) == []

    def test_broken_plugin_is_skipped(self, tmp_path: Path) -> None:
        (tmp_path / "broken.py").write_text("def broken(\n", encoding="utf-8")
        (tmp_path / "recorder.py").write_text(_LOCAL_PLUGIN_SRC, encoding="utf-8")
        pm = PluginManager()
        names = pm.discover_and_load(local_dir=tmp_path)
        assert names == ["formtree_local_plugin_recorder.SaveRecorder"]

    def test_missing_dir(self, tmp_path: Path) -> None:
        pm = PluginManager()
        assert pm.discover_and_load(local_dir=tmp_path / "absent") == []

"""Tests for edit scripts."""

from __future__ import annotations

from pathlib import Path

import pytest

from formtree.domain.tree import find_by_id
from formtree.infrastructure.store import FormStore
from formtree.services.script import ScriptError, ScriptService, load_script
from tests.conftest import child_ids, root_ids, sample_tree


class TestLoadScript:
    def test_list_of_steps(self, tmp_path: Path) -> None:
        path = tmp_path / "steps.yaml"
        path.write_text(
            "- op: toggle-section\n  section_id: section-site\n- op: undo\n", encoding="utf-8"
        )
        assert load_script(path) == [
            {"op": "toggle-section", "section_id": "section-site"},
            {"op": "undo"},
        ]

    def test_steps_key(self, tmp_path: Path) -> None:
        path = tmp_path / "steps.yaml"
        path.write_text("steps:\n  - op: redo\n", encoding="utf-8")
        assert load_script(path) == [{"op": "redo"}]

    def test_json_is_yaml(self, tmp_path: Path) -> None:
        path = tmp_path / "steps.json"
        path.write_text('[{"op": "undo"}]', encoding="utf-8")
        assert load_script(path) == [{"op": "undo"}]

    @pytest.mark.parametrize("content", ["op: undo\n", "- just a string\n", "[unclosed\n"])
    def test_rejects_bad_scripts(self, tmp_path: Path, content: str) -> None:
        path = tmp_path / "steps.yaml"
        path.write_text(content, encoding="utf-8")
        with pytest.raises(ScriptError):
            load_script(path)

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(ScriptError):
            load_script(tmp_path / "absent.yaml")


class TestScriptService:
    def test_runs_steps_in_order(self, store: FormStore) -> None:
        result = ScriptService(store).run(
            [
                {"op": "insert-section", "label": "Equipment", "zone": "root-start"},
                {"op": "move", "item_id": "field-loose", "to": "end:section-site"},
                {"op": "rename-field", "field_id": "field-notes", "label": "Comments"},
            ]
        )
        assert result.ok
        assert result.data["steps_run"] == 3
        assert [step["op"] for step in result.data["results"]] == [
            "insert_section",
            "move",
            "rename_field",
        ]
        assert child_ids(store.tree, "section-site")[-1] == "field-loose"
        assert store.history.history_length == 3

    def test_undo_redo_steps(self, store: FormStore) -> None:
        result = ScriptService(store).run(
            [
                {"op": "delete-field", "field_id": "field-loose"},
                {"op": "undo"},
                {"op": "redo"},
                {"op": "undo"},
            ]
        )
        assert result.ok
        assert store.tree == sample_tree()
        assert result.data["can_redo"] is True

    def test_ignored_drop_is_not_a_failure(self, store: FormStore) -> None:
        result = ScriptService(store).run(
            [{"op": "move", "item_id": "section-site", "to": "end:section-status"}]
        )
        assert result.ok
        assert result.data["results"][0]["applied"] is False
        assert result.warnings[0].startswith("step 0: Drop ignored")

    def test_stops_at_first_failure(self, store: FormStore) -> None:
        result = ScriptService(store).run(
            [
                {"op": "rename-field", "field_id": "field-notes", "label": "Comments"},
                {"op": "delete-field", "field_id": "field-status"},
                {"op": "delete-field", "field_id": "field-loose"},
            ]
        )
        assert result.ok is False
        assert result.error is not None
        assert result.error.code == "STEP_FAILED"
        assert result.error.detail["step"] == 1
        assert result.error.detail["step_error"]["code"] == "PROTECTED"
        assert result.error.detail["steps_run"] == 1
        assert find_by_id(store.tree, "field-loose") is not None

    def test_invalid_step(self, store: FormStore) -> None:
        result = ScriptService(store).run([{"op": "teleport", "item_id": "field-notes"}])
        assert result.error is not None
        assert result.error.code == "INVALID_SCRIPT"
        assert root_ids(store.tree) == root_ids(sample_tree())

    def test_history_step_with_arguments(self, store: FormStore) -> None:
        result = ScriptService(store).run([{"op": "undo", "count": 2}])
        assert result.error is not None
        assert result.error.code == "INVALID_SCRIPT"

    def test_undo_past_the_start_continues(self, store: FormStore) -> None:
        result = ScriptService(store).run(
            [
                {"op": "rename-field", "field_id": "field-notes", "label": "Remarks"},
                {"op": "undo"},
                {"op": "undo"},
                {"op": "redo"},
            ]
        )
        assert result.ok
        assert result.data["steps_run"] == 4
        assert [step["applied"] for step in result.data["results"]] == [True, True, False, True]
        assert result.warnings == ["step 2: Nothing to undo"]
        field = find_by_id(store.tree, "field-notes")
        assert field is not None
        assert field.label == "Remarks"

"""End-to-end CLI tests through Click's CliRunner."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from click.testing import CliRunner

from formtree import __version__
from formtree.cli import cli
from formtree.infrastructure.documents import read_document
from tests.conftest import child_ids, read_json, root_ids


@pytest.mark.usefixtures("_isolated_project")
class TestRoot:
    def test_version(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output

    def test_no_command_prints_help(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, [])
        assert result.exit_code == 0
        assert "edit" in result.output
        assert "templates" in result.output

    def test_examples(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["new", "--examples"])
        assert result.exit_code == 0
        assert "formtree new inspection.json --starter" in result.output

    def test_group_examples(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["edit", "--examples"])
        assert result.exit_code == 0
        assert "insert-template basic-inspection" in result.output


@pytest.mark.usefixtures("_isolated_project")
class TestNew:
    def test_starter(self, cli_runner: CliRunner, tmp_path: Path) -> None:
        path = tmp_path / "inspection.json"
        result = cli_runner.invoke(cli, ["new", str(path), "--name", "Boiler", "--starter"])
        assert result.exit_code == 0, result.output
        document = read_document(path)
        assert document.name == "Boiler"
        assert root_ids(document.tree)[0] == "section-workflow-status"

    def test_default_name(self, cli_runner: CliRunner, tmp_path: Path) -> None:
        path = tmp_path / "blank.json"
        assert cli_runner.invoke(cli, ["new", str(path)]).exit_code == 0
        assert read_json(path)["name"] == "Untitled form"

    def test_existing_file_fails(self, cli_runner: CliRunner, form_file: Path) -> None:
        result = cli_runner.invoke(cli, ["--json", "new", str(form_file)])
        assert result.exit_code == 1
        payload = json.loads(result.stderr)
        assert payload["error"]["code"] == "ALREADY_EXISTS"
        assert read_document(form_file).name == "Sample"


_SITE_PLUGIN = """\
import pluggy

hookimpl = pluggy.HookimplMarker("formtree")


class SitePicker:
    @hookimpl
    def render_field(self, field):
        if field.type == "SITE":
            return "(site picker)"
        return None
"""


@pytest.mark.usefixtures("_isolated_project")
class TestShowAndCheck:
    def test_show(self, cli_runner: CliRunner, form_file: Path) -> None:
        result = cli_runner.invoke(cli, ["show", str(form_file)])
        assert result.exit_code == 0, result.output
        assert "Sample" in result.stdout
        assert "[ site v ]" in result.stdout
        assert "2 sections, 6 fields" in result.stdout

    def test_show_without_plugins(self, cli_runner: CliRunner, form_file: Path) -> None:
        result = cli_runner.invoke(cli, ["--no-plugins", "show", str(form_file)])
        assert result.exit_code == 0
        assert "<SITE>" in result.stdout

    def test_show_with_local_plugin(
        self, cli_runner: CliRunner, form_file: Path, tmp_path: Path
    ) -> None:
        plugin_dir = tmp_path / ".formtree" / "plugins"
        plugin_dir.mkdir(parents=True)
        (plugin_dir / "site_picker.py").write_text(_SITE_PLUGIN, encoding="utf-8")
        result = cli_runner.invoke(cli, ["--json", "show", str(form_file)])
        previews = json.loads(result.stdout)["data"]["previews"]
        assert previews["field-site"] == "(site picker)"
        assert previews["field-date"] == "[ yyyy-mm-dd ]"

    def test_show_json(self, cli_runner: CliRunner, form_file: Path) -> None:
        result = cli_runner.invoke(cli, ["--json", "show", str(form_file)])
        payload = json.loads(result.stdout)
        assert payload["ok"] is True
        assert payload["data"]["previews"]["field-loose"] == "[ text ]"
        assert payload["data"]["items"][0]["isSystem"] is True

    def test_show_quiet(self, cli_runner: CliRunner, form_file: Path) -> None:
        result = cli_runner.invoke(cli, ["-q", "show", str(form_file)])
        assert result.stdout.split()[0] == "section-status"
        assert result.stdout.split()[-1] == "field-loose"

    def test_show_missing_file(self, cli_runner: CliRunner, tmp_path: Path) -> None:
        result = cli_runner.invoke(cli, ["show", str(tmp_path / "absent.json")])
        assert result.exit_code == 2

    def test_show_malformed_file(self, cli_runner: CliRunner, tmp_path: Path) -> None:
        path = tmp_path / "bad.json"
        path.write_text("{oops", encoding="utf-8")
        result = cli_runner.invoke(cli, ["show", str(path)])
        assert result.exit_code == 1
        assert "invalid JSON" in result.stderr

    def test_check(self, cli_runner: CliRunner, form_file: Path) -> None:
        result = cli_runner.invoke(cli, ["check", str(form_file)])
        assert result.exit_code == 0
        assert "No issues found" in result.stdout

    def test_check_legacy_warns(self, cli_runner: CliRunner, tmp_path: Path) -> None:
        path = tmp_path / "legacy.json"
        path.write_text(json.dumps([{"id": "s", "name": "S", "fields": [{"id": "f"}]}]))
        result = cli_runner.invoke(cli, ["check", str(path)])
        assert result.exit_code == 0
        assert "WARNING:" in result.stderr
        assert "formtree migrate" in result.stderr


@pytest.mark.usefixtures("_isolated_project")
class TestMigrateAndTemplates:
    def test_migrate_in_place(self, cli_runner: CliRunner, tmp_path: Path) -> None:
        path = tmp_path / "legacy.json"
        path.write_text(json.dumps([{"id": "s", "name": "S", "fields": [{"id": "f"}]}]))
        result = cli_runner.invoke(cli, ["migrate", str(path)])
        assert result.exit_code == 0, result.output
        assert read_json(path)["items"][0]["id"] == "s"

    def test_to_legacy(self, cli_runner: CliRunner, form_file: Path, tmp_path: Path) -> None:
        output = tmp_path / "legacy.json"
        result = cli_runner.invoke(
            cli, ["migrate", str(form_file), "-o", str(output), "--to-legacy"]
        )
        assert result.exit_code == 0
        assert "field-loose" in result.stderr
        sections = json.loads(output.read_text(encoding="utf-8"))
        assert [s["id"] for s in sections] == ["section-status", "section-site"]

    def test_templates(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["-q", "templates", "--category", "safety"])
        assert result.exit_code == 0
        assert result.stdout.split() == ["safety-checklist"]

    def test_templates_bad_category(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["templates", "--category", "nope"])
        assert result.exit_code == 2


@pytest.mark.usefixtures("_isolated_project")
class TestEdit:
    def test_insert_field_saves(self, cli_runner: CliRunner, form_file: Path) -> None:
        result = cli_runner.invoke(
            cli,
            [
                "-q",
                "edit",
                str(form_file),
                "insert-field",
                "--zone",
                "section-start:section-site",
                "--label",
                "Inspector",
                "--type",
                "PEOPLE",
                "--required",
            ],
        )
        assert result.exit_code == 0, result.output
        new_id = result.stdout.strip()
        site = read_json(form_file)["items"][1]
        inserted = site["children"][0]
        assert inserted["id"] == new_id
        assert inserted["label"] == "Inspector"
        assert inserted["type"] == "PEOPLE"
        assert inserted["isRequired"] is True

    def test_insert_section_with_field(self, cli_runner: CliRunner, form_file: Path) -> None:
        result = cli_runner.invoke(
            cli,
            ["edit", str(form_file), "insert-section", "--label", "Equipment", "--with-field"],
        )
        assert result.exit_code == 0, result.output
        last = read_document(form_file).tree[-1]
        assert last.label == "Equipment"
        assert len(last.children) == 1

    def test_insert_template(self, cli_runner: CliRunner, form_file: Path) -> None:
        result = cli_runner.invoke(
            cli,
            ["edit", str(form_file), "insert-template", "safety-checklist", "--zone", "root-start"],
        )
        assert result.exit_code == 0, result.output
        assert len(read_document(form_file).tree) > 3

    def test_move(self, cli_runner: CliRunner, form_file: Path) -> None:
        result = cli_runner.invoke(
            cli, ["edit", str(form_file), "move", "field-loose", "end:section-site"]
        )
        assert result.exit_code == 0, result.output
        tree = read_document(form_file).tree
        assert child_ids(tree, "section-site")[-1] == "field-loose"
        assert root_ids(tree) == ["section-status", "section-site"]

    def test_ignored_drop_is_not_saved(self, cli_runner: CliRunner, form_file: Path) -> None:
        before = form_file.read_text(encoding="utf-8")
        result = cli_runner.invoke(
            cli, ["edit", str(form_file), "move", "section-site", "end:section-status"]
        )
        assert result.exit_code == 0
        assert "Drop ignored" in result.stderr
        assert form_file.read_text(encoding="utf-8") == before

    def test_toggle_and_rename(self, cli_runner: CliRunner, form_file: Path) -> None:
        toggled = cli_runner.invoke(cli, ["edit", str(form_file), "toggle", "section-site"])
        assert toggled.exit_code == 0
        result = cli_runner.invoke(
            cli, ["edit", str(form_file), "rename", "field-notes", "Remarks"]
        )
        assert result.exit_code == 0
        site = read_json(form_file)["items"][1]
        assert site["isExpanded"] is False
        assert site["children"][1]["label"] == "Remarks"

    def test_update_and_lock(self, cli_runner: CliRunner, form_file: Path) -> None:
        result = cli_runner.invoke(
            cli,
            ["edit", str(form_file), "update", "field-loose", "--type", "DOUBLE", "--key", "qty"],
        )
        assert result.exit_code == 0, result.output
        locked = cli_runner.invoke(cli, ["edit", str(form_file), "lock-type", "field-loose"])
        assert locked.exit_code == 0
        loose = read_json(form_file)["items"][2]
        assert loose["type"] == "DOUBLE"
        assert loose["key"] == "qty"
        assert loose["dataTypeLocked"] is True

    def test_update_needs_an_option(self, cli_runner: CliRunner, form_file: Path) -> None:
        result = cli_runner.invoke(cli, ["edit", str(form_file), "update", "field-loose"])
        assert result.exit_code == 2
        assert "Nothing to update" in result.output

    def test_bulk(self, cli_runner: CliRunner, form_file: Path) -> None:
        result = cli_runner.invoke(
            cli,
            ["edit", str(form_file), "bulk", "set-required", "field-date", "field-loose"],
        )
        assert result.exit_code == 0, result.output
        tree = read_document(form_file).tree
        assert tree[0].children[1].is_required
        assert tree[2].is_required

    def test_protected_delete_fails(self, cli_runner: CliRunner, form_file: Path) -> None:
        before = form_file.read_text(encoding="utf-8")
        result = cli_runner.invoke(
            cli, ["--json", "edit", str(form_file), "delete", "section-status"]
        )
        assert result.exit_code == 1
        payload = json.loads(result.stderr)
        assert payload["ok"] is False
        assert payload["error"]["code"] == "PROTECTED"
        assert form_file.read_text(encoding="utf-8") == before

    def test_forced_delete(self, cli_runner: CliRunner, form_file: Path) -> None:
        result = cli_runner.invoke(
            cli, ["edit", str(form_file), "delete", "section-status", "--force"]
        )
        assert result.exit_code == 0, result.output
        assert root_ids(read_document(form_file).tree) == ["section-site", "field-loose"]

    def test_dry_run_does_not_save(self, cli_runner: CliRunner, form_file: Path) -> None:
        before = form_file.read_text(encoding="utf-8")
        result = cli_runner.invoke(
            cli, ["edit", "--dry-run", str(form_file), "delete", "field-notes"]
        )
        assert result.exit_code == 0, result.output
        assert "field-notes" in result.stdout
        assert form_file.read_text(encoding="utf-8") == before

    def test_unknown_item(self, cli_runner: CliRunner, form_file: Path) -> None:
        result = cli_runner.invoke(cli, ["edit", str(form_file), "rename", "ghost", "X"])
        assert result.exit_code == 1
        assert "ERROR" in result.stderr


_SCRIPT = """\
- op: insert-section
  label: Equipment
- op: move
  item_id: field-loose
  to: end:section-site
- op: rename-field
  field_id: field-date
  label: Visit date
"""


@pytest.mark.usefixtures("_isolated_project")
class TestApply:
    def test_applies_and_saves(
        self, cli_runner: CliRunner, form_file: Path, tmp_path: Path
    ) -> None:
        script = tmp_path / "steps.yaml"
        script.write_text(_SCRIPT, encoding="utf-8")
        result = cli_runner.invoke(cli, ["apply", str(form_file), str(script)])
        assert result.exit_code == 0, result.output
        tree = read_document(form_file).tree
        assert tree[-1].label == "Equipment"
        assert child_ids(tree, "section-site")[-1] == "field-loose"
        assert tree[0].children[1].label == "Visit date"

    def test_dry_run(self, cli_runner: CliRunner, form_file: Path, tmp_path: Path) -> None:
        script = tmp_path / "steps.yaml"
        script.write_text(_SCRIPT, encoding="utf-8")
        before = form_file.read_text(encoding="utf-8")
        result = cli_runner.invoke(cli, ["apply", str(form_file), str(script), "--dry-run"])
        assert result.exit_code == 0
        assert form_file.read_text(encoding="utf-8") == before

    def test_failing_step_saves_nothing(
        self, cli_runner: CliRunner, form_file: Path, tmp_path: Path
    ) -> None:
        script = tmp_path / "steps.yaml"
        script.write_text(_SCRIPT + "- op: delete-field\n  field_id: field-status\n")
        before = form_file.read_text(encoding="utf-8")
        result = cli_runner.invoke(cli, ["--json", "apply", str(form_file), str(script)])
        assert result.exit_code == 1
        payload = json.loads(result.stderr)
        assert payload["error"]["code"] == "STEP_FAILED"
        assert payload["error"]["detail"]["steps_run"] == 3
        assert form_file.read_text(encoding="utf-8") == before

    def test_undo_past_the_start_warns_and_continues(
        self, cli_runner: CliRunner, form_file: Path, tmp_path: Path
    ) -> None:
        script = tmp_path / "steps.yaml"
        script.write_text(
            "- op: rename-field\n  field_id: field-notes\n  label: Remarks\n"
            "- op: undo\n- op: undo\n- op: redo\n",
            encoding="utf-8",
        )
        result = cli_runner.invoke(cli, ["apply", str(form_file), str(script)])
        assert result.exit_code == 0, result.output
        assert "WARNING: step 2: Nothing to undo" in result.stderr
        site = read_json(form_file)["items"][1]
        assert site["children"][1]["label"] == "Remarks"

    def test_bad_script(self, cli_runner: CliRunner, form_file: Path, tmp_path: Path) -> None:
        script = tmp_path / "steps.yaml"
        script.write_text("op: move\n", encoding="utf-8")
        result = cli_runner.invoke(cli, ["apply", str(form_file), str(script)])
        assert result.exit_code == 1
        assert "must be a list of steps" in result.stderr

"""Tests for reading and writing form documents."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pytest

from formtree.domain.errors import DocumentError
from formtree.domain.items import Section
from formtree.infrastructure.documents import (
    DEFAULT_FORM_NAME,
    FormDocument,
    document_to_data,
    parse_document,
    read_document,
    write_document,
)
from tests.conftest import sample_tree


class TestParseDocument:
    def test_current_shape(self) -> None:
        data = document_to_data(FormDocument(name="Sample", tree=sample_tree()))
        doc = parse_document(data)
        assert doc.name == "Sample"
        assert doc.tree == sample_tree()
        assert doc.migrated is False

    def test_bare_item_list(self) -> None:
        doc = parse_document([{"kind": "field", "id": "f", "label": "F"}])
        assert doc.name == DEFAULT_FORM_NAME
        assert doc.tree[0].id == "f"
        assert doc.migrated is False

    def test_bare_legacy_list(self) -> None:
        doc = parse_document([{"id": "s", "name": "S", "fields": []}])
        assert doc.migrated is True
        assert isinstance(doc.tree[0], Section)

    def test_sections_key(self) -> None:
        doc = parse_document(
            {"name": "Old", "sections": [{"id": "s", "name": "S", "fields": [{"id": "f"}]}]}
        )
        assert doc.name == "Old"
        assert doc.migrated is True

    @pytest.mark.parametrize(
        "data",
        [
            "text",
            {"name": "no items"},
            {"items": [{"kind": "widget", "id": "w"}]},
            {
                "items": [
                    {"kind": "section", "id": "s", "children": [{"kind": "section", "id": "t"}]}
                ]
            },
            {"items": [{"kind": "field", "id": "a"}, {"kind": "field", "id": "a"}]},
            [{"id": "s", "name": "S", "fields": [{"id": "f", "type": "hologram"}]}],
        ],
    )
    def test_rejects(self, data: Any) -> None:
        with pytest.raises(DocumentError) as exc_info:
            parse_document(data, source="test.json")
        assert exc_info.value.code == "INVALID_DOCUMENT"
        assert exc_info.value.message.startswith("test.json")

    def test_rejects_id_that_breaks_zone_syntax(self) -> None:
        data = {"items": [{"kind": "section", "id": "site:1", "children": []}]}
        with pytest.raises(DocumentError, match="Invalid id 'site:1'"):
            parse_document(data, source="test.json")


class TestFiles:
    def test_write_then_read(self, tmp_path: Path) -> None:
        path = tmp_path / "nested" / "form.json"
        write_document(path, FormDocument(name="Sample", tree=sample_tree()))
        raw = json.loads(path.read_text(encoding="utf-8"))
        assert raw["formtree"] == 1
        assert raw["items"][0]["isSystem"] is True
        assert read_document(path).tree == sample_tree()

    def test_non_ascii_kept(self, tmp_path: Path) -> None:
        path = tmp_path / "form.json"
        write_document(path, FormDocument(name="Température", tree=()))
        assert "Température" in path.read_text(encoding="utf-8")

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(DocumentError, match="Cannot read"):
            read_document(tmp_path / "absent.json")

    def test_invalid_json(self, tmp_path: Path) -> None:
        path = tmp_path / "bad.json"
        path.write_text("{", encoding="utf-8")
        with pytest.raises(DocumentError, match="invalid JSON"):
            read_document(path)

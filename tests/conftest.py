"""Shared pytest fixtures and test helpers for formtree tests."""

from __future__ import annotations

import json
import logging
from collections.abc import Generator
from pathlib import Path

import pytest
from click.testing import CliRunner

from formtree.domain.ids import IdGenerator
from formtree.domain.items import Field, Section, Tree
from formtree.domain.types import DataType
from formtree.infrastructure.documents import FormDocument, write_document
from formtree.infrastructure.store import FormStore
from formtree.services.telemetry import disable_telemetry


@pytest.fixture
def cli_runner() -> CliRunner:
    """Provide a Click CLI test runner."""
    return CliRunner()


@pytest.fixture(autouse=True)
def _reset_telemetry() -> Generator[None]:
    """Keep ``-v`` runs from leaking telemetry into later tests."""
    yield
    disable_telemetry()


@pytest.fixture(autouse=True)
def _restore_log_handlers() -> Generator[None]:
    """Drop handlers bound to a CliRunner stream that is closed after the test."""
    root_logger = logging.getLogger()
    saved = list(root_logger.handlers)
    yield
    root_logger.handlers[:] = saved


def make_ids() -> IdGenerator:
    """Deterministic id generator: ``<prefix>-0-0001-t``, ``<prefix>-0-0002-t``, ..."""
    return IdGenerator(clock=lambda: 0, token=lambda: "t")


def sample_tree() -> Tree:
    """Two sections (one system) and one standalone field.

    ::

        section-status (system)   [field-status (system), field-date]
        section-site              [field-site, field-notes, field-photo]
        field-loose
    """
    return (
        Section(
            id="section-status",
            label="Status",
            is_system=True,
            children=(
                Field(
                    id="field-status",
                    label="Status",
                    type=DataType.STATUS_ID,
                    is_required=True,
                    is_system_field=True,
                    data_type_locked=True,
                ),
                Field(id="field-date", label="Date", type=DataType.DATE),
            ),
        ),
        Section(
            id="section-site",
            label="Site",
            children=(
                Field(id="field-site", label="Site", type=DataType.SITE),
                Field(id="field-notes", label="Notes", type=DataType.TEXT),
                Field(id="field-photo", label="Photo", type=DataType.FILES),
            ),
        ),
        Field(id="field-loose", label="Loose"),
    )


@pytest.fixture
def tree() -> Tree:
    return sample_tree()


@pytest.fixture
def ids() -> IdGenerator:
    return make_ids()


@pytest.fixture
def store() -> FormStore:
    """Store over :func:`sample_tree` with deterministic ids and no plugins."""
    return FormStore(sample_tree(), name="Sample", ids=make_ids())


@pytest.fixture
def form_file(tmp_path: Path) -> Path:
    """A form document holding :func:`sample_tree`."""
    path = tmp_path / "form.json"
    write_document(path, FormDocument(name="Sample", tree=sample_tree()))
    return path


@pytest.fixture
def _isolated_project(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Run the CLI from a temp directory with no config discovered above it."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("FORMTREE_CONFIG", raising=False)
    (tmp_path / "formtree.toml").write_text("", encoding="utf-8")


# ---------------------------------------------------------------------------
# Shared test helpers
# ---------------------------------------------------------------------------


def root_ids(tree: Tree) -> list[str]:
    return [item.id for item in tree]


def child_ids(tree: Tree, section_id: str) -> list[str]:
    for item in tree:
        if isinstance(item, Section) and item.id == section_id:
            return [child.id for child in item.children]
    raise AssertionError(f"no section {section_id}")


def read_json(path: Path) -> dict:
    return json.loads(path.read_text(encoding="utf-8"))

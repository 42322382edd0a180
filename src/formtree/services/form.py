"""FormService — whole-document operations: create, check, migrate, catalog.

These operate on form documents on disk rather than on an open store,
so the service takes no FormStore.
"""

from __future__ import annotations

import json
import logging
from collections import Counter
from pathlib import Path
from typing import Any

from formtree.domain.errors import DocumentError
from formtree.domain.items import Section
from formtree.domain.migration import tree_to_legacy_sections
from formtree.domain.templates import list_templates, starter_form
from formtree.domain.tree import all_fields, count_fields, count_sections, is_standalone
from formtree.infrastructure.documents import FormDocument, read_document, write_document
from formtree.services.result import ErrorCode, ServiceResult
from formtree.services.telemetry import trace_span, traced

logger = logging.getLogger(__name__)


class FormService:
    """Creates, checks and converts form documents.

    Args:
        indent: JSON indentation for written documents.
    """

    def __init__(self, *, indent: int = 2) -> None:
        self._indent = indent

    @traced
    def create(
        self,
        path: Path,
        *,
        name: str,
        starter: bool = False,
        force: bool = False,
    ) -> ServiceResult:
        """Write a new form document, empty or seeded with the starter form."""
        op = "create"
        if path.exists() and not force:
            return ServiceResult.failure(
                op, ErrorCode.ALREADY_EXISTS, f"{path} already exists (use --force to overwrite)"
            )
        tree = starter_form() if starter else ()
        try:
            write_document(path, FormDocument(name=name, tree=tree), indent=self._indent)
        except OSError as exc:
            return ServiceResult.failure(op, ErrorCode.SAVE_FAILED, f"Cannot write {path}: {exc}")
        return ServiceResult(
            ok=True,
            op=op,
            data={
                "path": str(path),
                "name": name,
                "field_count": count_fields(tree),
                "section_count": count_sections(tree),
            },
        )

    @traced
    def check(self, path: Path) -> ServiceResult:
        """Validate a document and report structural and content issues.

        Invariant violations make the check fail. Softer issues (legacy
        format, empty sections, blank labels, reused keys) are warnings.
        """
        op = "check"
        with trace_span("load"):
            try:
                document = read_document(path)
            except DocumentError as exc:
                return ServiceResult.failure(op, exc.code, exc.message, dict(exc.detail))

        tree = document.tree
        warnings: list[str] = []
        with trace_span("inspect"):
            if document.migrated:
                warnings.append("Document uses the legacy section format; run 'formtree migrate'")
            for item in tree:
                if isinstance(item, Section) and not item.children:
                    warnings.append(f"Section {item.id} has no fields")
            fields = all_fields(tree)
            for f in fields:
                if not f.label.strip():
                    warnings.append(f"Field {f.id} has a blank label")
            key_counts = Counter(f.key for f in fields if f.key)
            for key, count in sorted(key_counts.items()):
                if count > 1:
                    warnings.append(f"Key {key!r} is used by {count} fields")

        return ServiceResult(
            ok=True,
            op=op,
            data={
                "path": str(path),
                "name": document.name,
                "field_count": len(fields),
                "section_count": count_sections(tree),
                "standalone_fields": [f.id for f in fields if is_standalone(tree, f.id)],
                "system_fields": [f.id for f in fields if f.is_system_field],
                "legacy": document.migrated,
            },
            warnings=warnings,
        )

    @traced
    def migrate(
        self,
        source: Path,
        output: Path | None = None,
        *,
        to_legacy: bool = False,
    ) -> ServiceResult:
        """Rewrite *source* in the current format (or back to legacy sections).

        Writes in place when *output* is None.
        """
        op = "migrate"
        target = output or source
        warnings: list[str] = []
        try:
            document = read_document(source)
        except DocumentError as exc:
            return ServiceResult.failure(op, exc.code, exc.message, dict(exc.detail))

        dropped: list[str] = []
        try:
            if to_legacy:
                sections, dropped = tree_to_legacy_sections(document.tree)
                if dropped:
                    warnings.append(
                        f"Standalone fields have no legacy form and were dropped: "
                        f"{', '.join(dropped)}"
                    )
                target.parent.mkdir(parents=True, exist_ok=True)
                rendered = json.dumps(sections, indent=self._indent, ensure_ascii=False)
                target.write_text(rendered + "\n", encoding="utf-8")
            else:
                write_document(target, document, indent=self._indent)
        except OSError as exc:
            return ServiceResult.failure(op, ErrorCode.SAVE_FAILED, f"Cannot write {target}: {exc}")

        logger.info("Migrated %s -> %s (legacy=%s)", source, target, to_legacy)
        return ServiceResult(
            ok=True,
            op=op,
            data={
                "source": str(source),
                "output": str(target),
                "from_legacy": document.migrated,
                "to_legacy": to_legacy,
                "dropped_ids": dropped,
                "field_count": count_fields(document.tree),
            },
            warnings=warnings,
        )

    @traced
    def templates(self, category: str | None = None) -> ServiceResult:
        """List the built-in field templates."""
        entries: list[dict[str, Any]] = [
            {
                "id": template.id,
                "name": template.name,
                "description": template.description,
                "category": str(template.category),
                "fields": [f"{field.label} ({field.type})" for field in template.fields],
            }
            for template in list_templates(category)
        ]
        return ServiceResult(
            ok=True, op="templates", data={"count": len(entries), "templates": entries}
        )

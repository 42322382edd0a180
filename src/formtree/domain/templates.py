"""Built-in field templates and the starter form.

A field template is a named group of pre-configured fields inserted at
one zone as a single editing action. Template fields flagged as system
fields keep the flag (and a locked data type) once inserted.
"""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel

from formtree.domain.items import Field, Section, Tree
from formtree.domain.planner import FieldTemplate
from formtree.domain.types import DataType


class TemplateCategory(StrEnum):
    INSPECTION = "inspection"
    SAFETY = "safety"
    DOCUMENTATION = "documentation"
    CUSTOM = "custom"


class FormTemplate(BaseModel):
    """A named, categorised group of field templates."""

    model_config = {"frozen": True}

    id: str
    name: str
    description: str = ""
    category: TemplateCategory = TemplateCategory.CUSTOM
    fields: tuple[FieldTemplate, ...] = ()


def _field(
    label: str,
    data_type: DataType,
    key: str,
    *,
    required: bool = False,
    system: bool = False,
) -> FieldTemplate:
    return FieldTemplate(
        label=label,
        type=data_type,
        key=key,
        is_required=required,
        is_system_field=system,
        data_type_locked=system,
    )


BUILTIN_TEMPLATES: tuple[FormTemplate, ...] = (
    FormTemplate(
        id="basic-inspection",
        name="Basic Inspection",
        description="Standard inspection form fields",
        category=TemplateCategory.INSPECTION,
        fields=(
            _field("Inspector Name", DataType.STRING, "c1_inspectorname", required=True),
            _field("Inspection Date", DataType.DATE, "createdAt", required=True, system=True),
            _field("Location", DataType.LOCATION, "c2_location", required=True),
            _field("Status", DataType.STATUS_ID, "statusId", required=True, system=True),
        ),
    ),
    FormTemplate(
        id="safety-checklist",
        name="Safety Checklist",
        description="PPE and safety compliance fields",
        category=TemplateCategory.SAFETY,
        fields=(
            _field("PPE Worn?", DataType.SELECT, "c1_ppeworn", required=True),
            _field("Area Secured?", DataType.SELECT, "c2_areasecured", required=True),
            _field("Safety Notes", DataType.TEXT, "c3_safetynotes"),
        ),
    ),
    FormTemplate(
        id="evidence-collection",
        name="Evidence Collection",
        description="Photo and documentation fields",
        category=TemplateCategory.DOCUMENTATION,
        fields=(
            _field("Photo - Before", DataType.FILES, "c1_photobefore"),
            _field("Photos - Current State", DataType.FILE_LIST, "c2_photoscurrent"),
            _field("Evidence Notes", DataType.TEXT, "c3_evidencenotes"),
        ),
    ),
    FormTemplate(
        id="meter-readings",
        name="Meter Readings",
        description="Numeric readings with units",
        category=TemplateCategory.INSPECTION,
        fields=(
            _field("Pressure Reading (PSI)", DataType.DOUBLE, "c1_pressure", required=True),
            _field("Temperature (°F)", DataType.DOUBLE, "c2_temperature", required=True),
            _field("Reading Notes", DataType.TEXT, "c3_readingnotes"),
        ),
    ),
)

_TEMPLATES_BY_ID: dict[str, FormTemplate] = {t.id: t for t in BUILTIN_TEMPLATES}


def get_template(template_id: str) -> FormTemplate:
    """Look up a built-in template by id.

    Raises:
        KeyError: If no template has *template_id*.
    """
    return _TEMPLATES_BY_ID[template_id]


def list_templates(category: str | None = None) -> list[FormTemplate]:
    """Return built-in templates, optionally filtered by category."""
    if category is None:
        return list(BUILTIN_TEMPLATES)
    return [t for t in BUILTIN_TEMPLATES if t.category == category]


def starter_form() -> Tree:
    """The form a new document starts with: a system status section and readings."""
    return (
        Section(
            id="section-workflow-status",
            label="Workflow Status",
            is_system=True,
            children=(
                Field(
                    id="field-status",
                    key="status",
                    label="Status",
                    type=DataType.STATUS_ID,
                    is_required=True,
                    is_system_field=True,
                    data_type_locked=True,
                ),
                Field(
                    id="field-date",
                    key="createdAt",
                    label="Date",
                    type=DataType.DATE,
                    is_required=True,
                    is_system_field=True,
                    data_type_locked=True,
                ),
            ),
        ),
        Section(
            id="section-readings-evidence",
            label="Readings & Evidence",
            children=(
                Field(
                    id="field-pressure-reading",
                    key="c1_pressurereading",
                    label="Pressure/Meter Reading (PSI)",
                    type=DataType.DOUBLE,
                ),
                Field(
                    id="field-photo-current-state",
                    key="c2_photocurrentstate",
                    label="Photo - Current State",
                    type=DataType.FILES,
                ),
            ),
        ),
    )

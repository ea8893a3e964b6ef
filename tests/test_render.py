import logging
from datetime import date
from pathlib import Path

from appdoc_core.models import FieldSpec, OutputMode, ResolvedMappingDocument, Section
from appdoc_ops.document import build_document_context
from appdoc_ops.render import DEFAULT_TEMPLATE, FULL_TEMPLATE, REDUCED_TEMPLATE, load_template, render_document_html

TEMPLATES = Path(__file__).resolve().parents[1] / "templates"

MAPPING = ResolvedMappingDocument(
    name="default",
    sections=[
        Section(
            name="Application Information",
            fields=[
                FieldSpec(source_path="Name", label="Application Number"),
                FieldSpec(source_path="Term__c", label="Term"),
            ],
        )
    ],
)


def test_bundled_templates_exist_for_both_modes(caplog):
    with caplog.at_level(logging.WARNING):
        assert load_template(TEMPLATES, FULL_TEMPLATE) == DEFAULT_TEMPLATE
        assert "{{#each sections}}" in load_template(TEMPLATES, REDUCED_TEMPLATE)
    assert "Template not found" not in caplog.text


def test_full_render_with_bundled_template(application_record, caplog):
    context = build_document_context(application_record, MAPPING, OutputMode.FULL, today=date(2025, 1, 2))
    with caplog.at_level(logging.WARNING):
        html = render_document_html(context, template_dir=TEMPLATES)
    assert "Template not found" not in caplog.text
    assert "The Chicago School - PsyD Clinical Psychology" in html
    assert "APP-000123" in html
    assert "Checklist" in html


def test_missing_template_falls_back_with_warning(tmp_path: Path, caplog):
    with caplog.at_level(logging.WARNING):
        assert load_template(tmp_path, "nope") == DEFAULT_TEMPLATE
    assert "Template not found" in caplog.text

"""Document commands: project a record, render HTML, derive a filename."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Optional

import typer

from ..util import load_settings, read_record

app = typer.Typer(help="Project records and render documents")

_RECORD_ARG = typer.Argument(..., help="Source record as a JSON file", exists=True, dir_okay=False)


def _parse_mode(mode: str):
    from appdoc_core.models import OutputMode

    try:
        return OutputMode.parse(mode)
    except ValueError as e:
        raise typer.BadParameter(str(e), param_hint="--mode")


def _select(record_path: Path, tenant_id, program_id, tenant_name, program_name):
    from appdoc_ops.pipeline import load_registry

    settings = load_settings()
    record = read_record(record_path)
    _, registry = load_registry(settings)
    mapping = registry.lookup(
        tenant_id=tenant_id,
        program_id=program_id,
        tenant_name=tenant_name,
        program_name=program_name,
    )
    return settings, record, mapping


@app.command("project")
def document_project(
    record_path: Path = _RECORD_ARG,
    mode: str = typer.Option("full", "--mode", help="full|reduced (complete|lite accepted)"),
    tenant_id: Optional[str] = typer.Option(None, "--tenant-id"),
    program_id: Optional[str] = typer.Option(None, "--program-id"),
    tenant_name: Optional[str] = typer.Option(None, "--tenant-name"),
    program_name: Optional[str] = typer.Option(None, "--program-name"),
):
    """Print projected sections for a record as JSON."""
    from appdoc_core.projector import FieldProjector

    output_mode = _parse_mode(mode)
    settings, record, mapping = _select(record_path, tenant_id, program_id, tenant_name, program_name)
    projector = FieldProjector(settings.projection_policy(), settings.formatter())
    sections = projector.project(mapping, record, output_mode)
    payload = {
        "mapping": mapping.name,
        "mode": output_mode.value,
        "sections": [s.model_dump() for s in sections],
    }
    typer.echo(json.dumps(payload, indent=2, ensure_ascii=False))


@app.command("render")
def document_render(
    record_path: Path = _RECORD_ARG,
    out: Path = typer.Option(..., "--out", help="Output HTML file"),
    mode: str = typer.Option("full", "--mode", help="full|reduced (complete|lite accepted)"),
    template: Optional[str] = typer.Option(None, "--template", help="Template name for full mode"),
    tenant_id: Optional[str] = typer.Option(None, "--tenant-id"),
    program_id: Optional[str] = typer.Option(None, "--program-id"),
    tenant_name: Optional[str] = typer.Option(None, "--tenant-name"),
    program_name: Optional[str] = typer.Option(None, "--program-name"),
    force: bool = typer.Option(False, "--force", help="Overwrite an existing output file"),
):
    """Render a record to HTML (the input for the PDF renderer)."""
    from appdoc_ops.document import build_document_context
    from appdoc_ops.render import render_document_html

    output_mode = _parse_mode(mode)
    if out.exists() and not force:
        typer.echo(f"Error: refusing to overwrite existing file: {out}", err=True)
        raise typer.Exit(1)

    settings, record, mapping = _select(record_path, tenant_id, program_id, tenant_name, program_name)
    context = build_document_context(record, mapping, output_mode, settings=settings)
    html = render_document_html(context, template_dir=settings.template_dir, template_name=template)

    out.parent.mkdir(parents=True, exist_ok=True)
    out.write_text(html, encoding="utf-8")
    typer.echo(f"✓ Rendered {mapping.name} ({output_mode.value}) -> {out}")


@app.command("filename")
def document_filename(
    record_path: Path = _RECORD_ARG,
    record_id: Optional[str] = typer.Option(None, "--record-id", help="Fallback id (defaults to record Id)"),
):
    """Print the document filename derived from a record."""
    from appdoc_ops.document import generate_filename

    settings = load_settings()
    record = read_record(record_path)
    typer.echo(
        generate_filename(
            record,
            record_id or str(record.get("Id") or "unknown"),
            abbreviations=settings.school_abbreviations,
        )
    )

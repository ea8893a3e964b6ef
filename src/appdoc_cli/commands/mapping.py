"""Mapping commands.

- list: every loaded document with its identity and resolution status
- show: one resolved document as JSON or TOML
- fields: the source paths a document reads (record store field list)
- lookup: which document a request with the given identity hints gets
- validate: fail when any file was rejected or any resolution degraded
"""

from __future__ import annotations

import json
from typing import Any, Optional

import tomli_w
import typer
from rich.console import Console
from rich.table import Table

from ..util import load_settings

app = typer.Typer(help="Field mapping inspection and validation")
console = Console()


def _load():
    from appdoc_ops.pipeline import load_registry

    settings = load_settings()
    store, registry = load_registry(settings)
    return settings, store, registry


def _strip_nulls(value: Any) -> Any:
    if isinstance(value, dict):
        return {k: _strip_nulls(v) for k, v in value.items() if v is not None}
    if isinstance(value, list):
        return [_strip_nulls(v) for v in value if v is not None]
    return value


@app.command("list")
def mapping_list():
    """List loaded mapping documents."""
    _, store, registry = _load()

    if not store.documents and not store.errors:
        console.print("[yellow]No field mappings found[/yellow]")
        return

    table = Table(title="Field mappings")
    table.add_column("Name", style="cyan")
    table.add_column("Extends", style="magenta")
    table.add_column("Tenant", style="white")
    table.add_column("Program", style="white")
    table.add_column("Sections", style="green", justify="right")
    table.add_column("Status", style="white")

    for name in store.names():
        raw = store.documents[name]
        resolved = registry.get(name)
        tenant = " / ".join(v for v in (raw.tenant_id, raw.tenant_name) if v) or "-"
        program = " / ".join(v for v in (raw.program_id, raw.program_name) if v) or "-"
        if resolved is not None and resolved.degraded:
            status = "[yellow]degraded[/yellow]"
        else:
            status = "[green]ok[/green]"
        table.add_row(
            name,
            raw.extends or "-",
            tenant,
            program,
            str(len(resolved.sections)) if resolved else "0",
            status,
        )
    for name in sorted(store.errors):
        table.add_row(name, "-", "-", "-", "0", "[red]invalid[/red]")

    console.print(table)


@app.command("show")
def mapping_show(
    name: str = typer.Argument(..., help="Mapping document name (file stem)"),
    fmt: str = typer.Option("json", "--format", help="Output format: json|toml"),
):
    """Print a resolved mapping document."""
    _, _, registry = _load()
    resolved = registry.get(name)
    if resolved is None:
        typer.echo(f"Error: field mapping not found: {name}", err=True)
        raise typer.Exit(1)

    payload = _strip_nulls(resolved.model_dump(by_alias=True))
    fmt = fmt.strip().lower()
    if fmt == "json":
        typer.echo(json.dumps(payload, indent=2, ensure_ascii=False))
    elif fmt == "toml":
        typer.echo(tomli_w.dumps(payload))
    else:
        typer.echo(f"Error: unsupported format: {fmt}", err=True)
        raise typer.Exit(2)


@app.command("fields")
def mapping_fields(
    name: str = typer.Argument(..., help="Mapping document name (file stem)"),
):
    """Print the source paths a mapping reads, one per line."""
    _, _, registry = _load()
    resolved = registry.get(name)
    if resolved is None:
        typer.echo(f"Error: field mapping not found: {name}", err=True)
        raise typer.Exit(1)
    for path in resolved.all_source_paths():
        typer.echo(path)


@app.command("lookup")
def mapping_lookup(
    tenant_id: Optional[str] = typer.Option(None, "--tenant-id", help="Tenant (school) id"),
    program_id: Optional[str] = typer.Option(None, "--program-id", help="Program id"),
    tenant_name: Optional[str] = typer.Option(None, "--tenant-name", help="Tenant (school) name"),
    program_name: Optional[str] = typer.Option(None, "--program-name", help="Program name"),
):
    """Show which mapping a request with these identity hints resolves to."""
    _, _, registry = _load()
    resolved = registry.lookup(
        tenant_id=tenant_id,
        program_id=program_id,
        tenant_name=tenant_name,
        program_name=program_name,
    )
    typer.echo(
        json.dumps(
            {
                "name": resolved.name,
                "sections": resolved.section_names(),
                "degraded": resolved.degraded,
            },
            indent=2,
            ensure_ascii=False,
        )
    )


@app.command("validate")
def mapping_validate():
    """Validate every mapping file and its inheritance chain."""
    settings, store, registry = _load()
    problems: list[str] = []

    for name in sorted(store.errors):
        problems.append(store.errors[name])
    for name in registry.names():
        resolved = registry.get(name)
        if resolved is not None and resolved.degraded:
            problems.extend(f"{name}: {message}" for message in resolved.diagnostics)
    if not registry.has_default:
        problems.append(f"No '{settings.default_mapping}' mapping document found")

    if problems:
        typer.echo("❌ Field mappings invalid:")
        for problem in problems:
            typer.echo(f"  - {problem}")
        raise typer.Exit(1)

    typer.echo(f"✓ Field mappings valid ({len(store.documents)} documents)")

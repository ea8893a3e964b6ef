from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer

from .util import configure_stdio, set_global_config_file, set_global_log_level

app = typer.Typer(help="appdoc: field-mapping resolution and application document tooling")


@app.callback()
def _init(
    config_file: Optional[Path] = typer.Option(
        None,
        "--config-file",
        help="Path to settings file (.appdoc/config.toml)",
        exists=True,
        file_okay=True,
        dir_okay=False,
        readable=True,
    ),
    log_level: Optional[str] = typer.Option(
        None, "--log-level", help="Override log level (DEBUG, INFO, WARNING, ERROR)"
    ),
):
    configure_stdio()

    # Store the settings file path globally for use by utility functions
    set_global_config_file(config_file)
    set_global_log_level(log_level)


from .commands import mapping as mapping_cmd  # noqa: E402
from .commands import document as document_cmd  # noqa: E402

app.add_typer(mapping_cmd.app, name="mapping", help="Field mapping inspection and validation")
app.add_typer(document_cmd.app, name="document", help="Project records and render documents")


def main():
    app()

from __future__ import annotations

import json
import logging
import os
import sys
from pathlib import Path
from typing import Any, Dict, Optional

import typer

# Global variable to store custom config file path
_global_config_file: Optional[Path] = None
_global_log_level: Optional[str] = None


def set_global_config_file(config_file: Optional[Path]) -> None:
    """Set (or clear) the global settings file path for use by utility functions."""
    global _global_config_file
    _global_config_file = config_file.resolve() if config_file else None


def get_global_config_file() -> Optional[Path]:
    """Get the global settings file path if set."""
    return _global_config_file


def set_global_log_level(level: Optional[str]) -> None:
    global _global_log_level
    _global_log_level = level


def configure_stdio() -> None:
    """Make CLI output robust across Windows console encodings.

    Some Windows terminals use a non-UTF8 encoding (e.g., cp1252). The empty
    marker and status glyphs would raise UnicodeEncodeError there, so
    configure stdout/stderr to replace unencodable characters instead.
    """

    if os.name != "nt":
        return

    for stream in (sys.stdout, sys.stderr):
        try:
            # Keep the current encoding, but make encoding errors non-fatal.
            stream.reconfigure(errors="replace")
        except (AttributeError, OSError):
            continue


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        stream=sys.stderr,
    )


def load_settings():
    """Load effective settings, honouring --config-file and --log-level."""
    from appdoc_core.errors import ConfigError
    from appdoc_core.settings import SettingsLoader

    try:
        settings = SettingsLoader.load(get_global_config_file())
    except ConfigError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(2)

    if _global_log_level:
        settings = settings.model_copy(update={"log_level": _global_log_level.upper()})
    configure_logging(settings.log_level)
    return settings


def read_record(path: Path) -> Dict[str, Any]:
    """Read a JSON source record from disk."""
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        typer.echo(f"Error: cannot read record {path}: {e}", err=True)
        raise typer.Exit(2)
    if not isinstance(data, dict):
        typer.echo(f"Error: record must be a JSON object: {path}", err=True)
        raise typer.Exit(2)
    return data

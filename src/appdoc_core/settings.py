"""Runtime settings for appdoc.

Layer order (later wins):
1) Built-in defaults (model defaults below)
2) Settings file: explicit ``--config-file``, else ``.appdoc/config.toml``
   found by walking up from the working directory
3) Environment variables (APPDOC_MAPPINGS_DIR, APPDOC_TEMPLATE_DIR,
   APPDOC_OUTPUT_DIR, SF_INSTANCE_URL, LOG_LEVEL; PDF_TEMPLATE_DIR and
   PDF_OUTPUT_DIR are accepted for older deployments)

Relative directories in a settings file are resolved against the project root
(the directory that holds ``.appdoc/``).
"""

import logging
import os
import tomllib
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .errors import ConfigError
from .formatting import EMPTY_MARKER, ValueFormatter
from .projector import (
    DEFAULT_REDUCED_EXCLUDE_PATHS,
    DEFAULT_REDUCED_INCLUDE_LABELS,
    ProjectionPolicy,
)

logger = logging.getLogger(__name__)

SETTINGS_DIRNAME = ".appdoc"
SETTINGS_FILENAME = "config.toml"

DEFAULT_SCHOOL_ABBREVIATIONS: Dict[str, str] = {
    "The Chicago School": "TCS",
    "Pacific Oaks": "POC",
    "Pacific Oaks College": "POC",
    "Saybrook University": "SAY",
    "Kansas Health Science University": "KHSU",
    "University of Western States": "UWS",
    "The Colleges of Law": "COL",
    "IllinoisCOM": "IllinoisCOM",
}

# env var -> settings key
_ENV_KEYS: Dict[str, str] = {
    "PDF_TEMPLATE_DIR": "template_dir",
    "PDF_OUTPUT_DIR": "output_dir",
    "APPDOC_MAPPINGS_DIR": "mappings_dir",
    "APPDOC_TEMPLATE_DIR": "template_dir",
    "APPDOC_OUTPUT_DIR": "output_dir",
    "SF_INSTANCE_URL": "instance_url",
    "LOG_LEVEL": "log_level",
}

_PATH_KEYS = ("mappings_dir", "template_dir", "output_dir")


class ReducedModeSettings(BaseModel):
    """Reduced (lite) output filtering lists."""

    exclude_paths: List[str] = Field(default_factory=lambda: list(DEFAULT_REDUCED_EXCLUDE_PATHS))
    include_labels: List[str] = Field(default_factory=lambda: list(DEFAULT_REDUCED_INCLUDE_LABELS))

    model_config = ConfigDict(extra="forbid")


class DisplaySettings(BaseModel):
    """Display strings used by the value formatter."""

    empty_marker: str = EMPTY_MARKER
    yes_text: str = "Yes"
    no_text: str = "No"
    currency_symbol: str = "$"

    model_config = ConfigDict(extra="forbid")


class AppdocSettings(BaseModel):
    """Effective settings after layering."""

    mappings_dir: Path = Field(default=Path("config/field-mappings"))
    template_dir: Path = Field(default=Path("templates"))
    output_dir: Path = Field(default=Path("output"))
    default_mapping: str = Field(default="default", description="Name of the base mapping document")
    instance_url: Optional[str] = Field(default=None, description="Record store base URL for deep links")
    log_level: str = Field(default="INFO")
    reduced: ReducedModeSettings = Field(default_factory=ReducedModeSettings)
    display: DisplaySettings = Field(default_factory=DisplaySettings)
    school_abbreviations: Dict[str, str] = Field(
        default_factory=lambda: dict(DEFAULT_SCHOOL_ABBREVIATIONS)
    )

    model_config = ConfigDict(extra="forbid")

    @field_validator("log_level")
    @classmethod
    def _validate_log_level(cls, v: str) -> str:
        level = v.strip().upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Unknown log level: {v}")
        return level

    @field_validator("instance_url")
    @classmethod
    def _strip_instance_url(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        v = v.strip().rstrip("/")
        return v or None

    def projection_policy(self) -> ProjectionPolicy:
        return ProjectionPolicy.from_lists(self.reduced.exclude_paths, self.reduced.include_labels)

    def formatter(self) -> ValueFormatter:
        return ValueFormatter(
            empty_marker=self.display.empty_marker,
            yes_text=self.display.yes_text,
            no_text=self.display.no_text,
            currency_symbol=self.display.currency_symbol,
        )


class SettingsLoader:
    """Load and layer appdoc settings."""

    @staticmethod
    def _deep_merge(base: Dict[str, Any], overlay: Dict[str, Any]) -> Dict[str, Any]:
        result: Dict[str, Any] = dict(base)
        for key, value in overlay.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = SettingsLoader._deep_merge(result[key], value)
            else:
                result[key] = value
        return result

    @staticmethod
    def find_settings_file(start_path: Path) -> Optional[Path]:
        """Find .appdoc/config.toml by walking up from ``start_path``."""
        current = start_path if start_path.is_dir() else start_path.parent
        for parent in [current, *current.parents]:
            candidate = parent / SETTINGS_DIRNAME / SETTINGS_FILENAME
            if candidate.exists():
                return candidate
        return None

    @staticmethod
    def _read_toml(path: Path) -> Dict[str, Any]:
        try:
            with open(path, "rb") as f:
                data = tomllib.load(f)
        except (OSError, tomllib.TOMLDecodeError) as e:
            raise ConfigError(f"Failed to load TOML from {path}: {e}")
        if not isinstance(data, dict):
            raise ConfigError(f"Settings TOML must be a table: {path}")
        return data

    @staticmethod
    def _resolve_relative_paths(data: Dict[str, Any], settings_path: Path) -> Dict[str, Any]:
        if settings_path.parent.name == SETTINGS_DIRNAME:
            project_root = settings_path.parent.parent
        else:
            project_root = settings_path.parent
        resolved = dict(data)
        for key in _PATH_KEYS:
            value = resolved.get(key)
            if isinstance(value, str) and not Path(value).is_absolute():
                resolved[key] = str(project_root / value)
        return resolved

    @staticmethod
    def env_overrides(environ: Mapping[str, str]) -> Dict[str, Any]:
        overrides: Dict[str, Any] = {}
        # Later entries in _ENV_KEYS win, so APPDOC_* beats PDF_*.
        for env_name, key in _ENV_KEYS.items():
            value = environ.get(env_name)
            if value:
                overrides[key] = value
        return overrides

    @staticmethod
    def load(
        config_file: Optional[Path] = None,
        *,
        start_path: Optional[Path] = None,
        environ: Optional[Mapping[str, str]] = None,
    ) -> AppdocSettings:
        """Build effective settings.

        Raises:
            ConfigError: if an explicit settings file is missing or any layer is invalid.
        """
        layers: Dict[str, Any] = {}

        if config_file is not None:
            if not config_file.exists():
                raise ConfigError(f"Settings file not found: {config_file}")
            settings_path: Optional[Path] = config_file
        else:
            settings_path = SettingsLoader.find_settings_file(start_path or Path.cwd())

        if settings_path is not None:
            file_data = SettingsLoader._read_toml(settings_path)
            file_data = SettingsLoader._resolve_relative_paths(file_data, settings_path)
            layers = SettingsLoader._deep_merge(layers, file_data)
            logger.debug("Loaded settings file %s", settings_path)

        env = os.environ if environ is None else environ
        layers = SettingsLoader._deep_merge(layers, SettingsLoader.env_overrides(env))

        try:
            return AppdocSettings.model_validate(layers)
        except ValidationError as e:
            source = f" ({settings_path})" if settings_path else ""
            raise ConfigError(f"Invalid settings{source}: {e}")

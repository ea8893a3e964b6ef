"""appdoc core - field-mapping resolution and record projection."""

from .__version__ import __version__, __version_info__

from .models import (
    FieldSpec,
    OutputMode,
    ProjectedField,
    ProjectedSection,
    RawMappingDocument,
    ResolvedMappingDocument,
    Section,
)
from .store import ConfigStore, parse_document
from .resolver import InheritanceResolver
from .registry import FALLBACK_MAPPING, MappingRegistry, build_registry
from .extract import ABSENT, extract_value, is_absent
from .formatting import EMPTY_MARKER, ValueFormatter, format_value
from .projector import FieldProjector, ProjectionPolicy, project
from .settings import AppdocSettings, SettingsLoader
from .errors import (
    AppdocError,
    ConfigError,
    MappingValidationError,
    RegistryFrozenError,
)

__all__ = [
    # Version
    "__version__",
    "__version_info__",
    # Models
    "FieldSpec",
    "OutputMode",
    "ProjectedField",
    "ProjectedSection",
    "RawMappingDocument",
    "ResolvedMappingDocument",
    "Section",
    # Loading and resolution
    "ConfigStore",
    "parse_document",
    "InheritanceResolver",
    "FALLBACK_MAPPING",
    "MappingRegistry",
    "build_registry",
    # Projection
    "ABSENT",
    "extract_value",
    "is_absent",
    "EMPTY_MARKER",
    "ValueFormatter",
    "format_value",
    "FieldProjector",
    "ProjectionPolicy",
    "project",
    # Settings
    "AppdocSettings",
    "SettingsLoader",
    # Errors
    "AppdocError",
    "ConfigError",
    "MappingValidationError",
    "RegistryFrozenError",
]

"""Pydantic models for field-mapping documents and projected output."""

from enum import Enum
from typing import Any, List, Optional, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


def _find_duplicates(names: List[str]) -> List[str]:
    seen: set[str] = set()
    dupes: List[str] = []
    for name in names:
        if name in seen and name not in dupes:
            dupes.append(name)
        seen.add(name)
    return dupes


class OutputMode(str, Enum):
    """Projection output mode."""

    FULL = "full"
    REDUCED = "reduced"

    @classmethod
    def parse(cls, value: Union[str, "OutputMode"]) -> "OutputMode":
        """Parse a mode name; accepts the historical complete/lite names."""
        if isinstance(value, OutputMode):
            return value
        normalized = str(value).strip().lower()
        aliases = {"complete": cls.FULL, "lite": cls.REDUCED}
        if normalized in aliases:
            return aliases[normalized]
        try:
            return cls(normalized)
        except ValueError:
            raise ValueError(
                f"Unknown output mode: {value!r} (expected one of: full, reduced, complete, lite)"
            )


class FieldSpec(BaseModel):
    """A single declared field: where to read it and how to show it."""

    source_path: str = Field(
        ...,
        validation_alias=AliasChoices("sourcePath", "apiName", "source_path"),
        serialization_alias="sourcePath",
        description="Dot path into the source record, e.g. Contact.Email or relatedRecords.College[0].Name",
    )
    label: str = Field(..., description="Display label; also identifies the field for reduced mode")
    value_type: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("valueType", "type", "value_type"),
        serialization_alias="valueType",
    )
    format: Optional[str] = Field(default=None, description="date | currency | phone")

    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)

    @field_validator("source_path", "label")
    @classmethod
    def _not_blank(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("must be a non-empty string")
        return v.strip()

    @field_validator("format")
    @classmethod
    def _normalize_format(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        v = v.strip().lower()
        return v or None


class Section(BaseModel):
    """Named, ordered group of fields."""

    name: str
    fields: List[FieldSpec] = Field(default_factory=list)

    model_config = ConfigDict(frozen=True, extra="forbid")

    @field_validator("name")
    @classmethod
    def _name_not_blank(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("Section name cannot be empty")
        return v.strip()


class _Identity(BaseModel):
    tenant_id: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("tenantId", "schoolId", "tenant_id"),
        serialization_alias="tenantId",
    )
    program_id: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("programId", "program_id"),
        serialization_alias="programId",
    )
    tenant_name: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("tenantName", "schoolName", "tenant_name"),
        serialization_alias="tenantName",
    )
    program_name: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("programName", "program_name"),
        serialization_alias="programName",
    )

    @field_validator("tenant_id", "program_id", "tenant_name", "program_name", mode="before")
    @classmethod
    def _coerce_identity(cls, v: Any) -> Any:
        # JSON files sometimes carry numeric ids.
        if isinstance(v, bool):
            raise ValueError("identity attributes must be strings")
        if isinstance(v, (int, float)):
            return str(v)
        if isinstance(v, str):
            return v.strip() or None
        return v


class RawMappingDocument(_Identity):
    """Mapping document as stored on disk, before inheritance is applied."""

    name: str = Field(..., description="Document name (file stem)")
    extends: Optional[str] = Field(default=None, description="Name of the parent document")
    description: Optional[str] = None
    is_default: bool = Field(
        default=False,
        validation_alias=AliasChoices("isDefault", "is_default"),
        serialization_alias="isDefault",
    )
    sections: Optional[List[Section]] = None
    add_sections: List[Section] = Field(
        default_factory=list,
        validation_alias=AliasChoices("addSections", "add_sections"),
        serialization_alias="addSections",
    )
    remove_sections: List[str] = Field(
        default_factory=list,
        validation_alias=AliasChoices("removeSections", "remove_sections"),
        serialization_alias="removeSections",
    )
    override_sections: List[Section] = Field(
        default_factory=list,
        validation_alias=AliasChoices("overrideSections", "override_sections"),
        serialization_alias="overrideSections",
    )

    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)

    @field_validator("extends", mode="before")
    @classmethod
    def _blank_extends_is_none(cls, v: Any) -> Any:
        if isinstance(v, str) and not v.strip():
            return None
        return v.strip() if isinstance(v, str) else v

    @field_validator("sections", "add_sections", "override_sections")
    @classmethod
    def _unique_section_names(cls, v: Optional[List[Section]]) -> Optional[List[Section]]:
        if not v:
            return v
        dupes = _find_duplicates([s.name for s in v])
        if dupes:
            raise ValueError(f"Duplicate section names: {', '.join(dupes)}")
        return v

    @property
    def uses_inheritance(self) -> bool:
        return self.extends is not None


class ResolvedMappingDocument(_Identity):
    """Fully materialized mapping: no inheritance directives remain."""

    name: str
    is_default: bool = Field(default=False, serialization_alias="isDefault")
    sections: List[Section] = Field(default_factory=list)
    degraded: bool = Field(default=False, description="True if a parent was missing or cyclic")
    diagnostics: List[str] = Field(default_factory=list)

    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)

    def section(self, name: str) -> Optional[Section]:
        for section in self.sections:
            if section.name == name:
                return section
        return None

    def section_names(self) -> List[str]:
        return [s.name for s in self.sections]

    def all_source_paths(self) -> List[str]:
        """Every declared source path, in section order, without repeats."""
        seen: set[str] = set()
        paths: List[str] = []
        for section in self.sections:
            for spec in section.fields:
                if spec.source_path not in seen:
                    seen.add(spec.source_path)
                    paths.append(spec.source_path)
        return paths


class ProjectedField(BaseModel):
    """A field value ready for display."""

    label: str
    value: str
    source_path: str
    link: Optional[str] = None

    model_config = ConfigDict(frozen=True)


class ProjectedSection(BaseModel):
    """A non-empty section of projected fields."""

    name: str
    fields: List[ProjectedField] = Field(default_factory=list)

    model_config = ConfigDict(frozen=True)

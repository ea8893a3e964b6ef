"""Project source records onto resolved mappings.

``full`` mode emits every declared field. ``reduced`` mode drops denylisted
source paths, keeps only allowlisted labels, and drops empty values. Sections
left without fields are omitted in both modes.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, FrozenSet, Iterable, List, Mapping, Optional, Union

from .extract import extract_value
from .formatting import DEFAULT_FORMATTER, ValueFormatter
from .models import (
    FieldSpec,
    OutputMode,
    ProjectedField,
    ProjectedSection,
    ResolvedMappingDocument,
)

# Backend ids and system fields never shown in reduced output.
DEFAULT_REDUCED_EXCLUDE_PATHS: tuple[str, ...] = (
    "Id",
    "AccountId",
    "Contact_ID__c",
    "Owner__c",
    "Opportunity__c",
    "Mogli_Number_from_Contact__c",
    "Mogli_Opt_Out__c",
    "Duplicate_Record__c",
    "Active__c",
    "SIS_Status_Field__c",
    "Character_Statement_Needed__c",
    "Manually_Trigger_Checklist_Items__c",
    "ProgramTermApplnTimelineId",
    "Applicant_Portal_Status__c",
)

DEFAULT_REDUCED_INCLUDE_LABELS: tuple[str, ...] = (
    "Application Number",
    "Application Status",
    "Program Name",
    "Term",
    "Location",
    "Campus Location",
    "First Name",
    "Last Name",
    "Name",
    "Mobile",
    "Email",
    "Mailing Street",
    "Mailing City",
    "Mailing State",
    "Mailing Postal Code",
    "Mailing Country",
    "Citizenship Status",
    "Applied Date",
    "Application Submitted Date",
    "Admissions Status",
    "Decision",
    "Applicant Decision",
    "Decision Release Date",
    "Admit Contingencies",
    "Interview Status",
    "Interview Date",
    "First Generation Student",
    "International Student",
    "Highest High School GPA",
    "Highest College GPA",
    "Cumulative GPA",
    "Scholarship",
    "Scholarship Amount",
    "Scholarship Message",
    "Applying for Financial Aid",
    "Deposit Amount",
    "Deposit Due Date",
    "Deposit Date Passed",
)


@dataclass(frozen=True)
class ProjectionPolicy:
    """Reduced-mode filtering rules."""

    exclude_paths: FrozenSet[str] = field(default_factory=lambda: frozenset(DEFAULT_REDUCED_EXCLUDE_PATHS))
    include_labels: FrozenSet[str] = field(default_factory=lambda: frozenset(DEFAULT_REDUCED_INCLUDE_LABELS))

    @classmethod
    def from_lists(
        cls,
        exclude_paths: Optional[Iterable[str]] = None,
        include_labels: Optional[Iterable[str]] = None,
    ) -> "ProjectionPolicy":
        return cls(
            exclude_paths=frozenset(
                DEFAULT_REDUCED_EXCLUDE_PATHS if exclude_paths is None else exclude_paths
            ),
            include_labels=frozenset(
                DEFAULT_REDUCED_INCLUDE_LABELS if include_labels is None else include_labels
            ),
        )


class FieldProjector:
    """Stateless transform from (mapping, record, mode) to display sections."""

    def __init__(
        self,
        policy: Optional[ProjectionPolicy] = None,
        formatter: Optional[ValueFormatter] = None,
    ) -> None:
        self.policy = policy or ProjectionPolicy()
        self.formatter = formatter or DEFAULT_FORMATTER

    def project(
        self,
        mapping: ResolvedMappingDocument,
        record: Mapping[str, Any],
        mode: Union[OutputMode, str] = OutputMode.FULL,
    ) -> List[ProjectedSection]:
        mode = OutputMode.parse(mode)
        result: List[ProjectedSection] = []
        for section in mapping.sections:
            fields = [
                projected
                for projected in (self.project_field(spec, record, mode) for spec in section.fields)
                if projected is not None
            ]
            if fields:
                result.append(ProjectedSection(name=section.name, fields=fields))
        return result

    def project_field(
        self,
        spec: FieldSpec,
        record: Mapping[str, Any],
        mode: OutputMode = OutputMode.FULL,
    ) -> Optional[ProjectedField]:
        """Project one field; None when reduced mode filters it out."""
        if mode is OutputMode.REDUCED:
            if spec.source_path in self.policy.exclude_paths:
                return None
            if spec.label not in self.policy.include_labels:
                return None

        raw = extract_value(record, spec.source_path)
        value = self.formatter.format(raw, spec.format)

        if mode is OutputMode.REDUCED and self.formatter.is_empty(value):
            return None
        return ProjectedField(label=spec.label, value=value, source_path=spec.source_path)


def project(
    mapping: ResolvedMappingDocument,
    record: Mapping[str, Any],
    mode: Union[OutputMode, str] = OutputMode.FULL,
) -> List[ProjectedSection]:
    """Project with the default policy and formatter."""
    return FieldProjector().project(mapping, record, mode)

"""Assemble the template context for an application document.

This sits on top of the core projector: it picks display names out of the
record, layers deep links onto projected fields, builds the checklist table
and derives the output filename.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import date
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Union

from pydantic import BaseModel, Field

from appdoc_core.extract import extract_value
from appdoc_core.formatting import DEFAULT_FORMATTER, ValueFormatter
from appdoc_core.models import OutputMode, ProjectedSection, ResolvedMappingDocument
from appdoc_core.projector import FieldProjector
from appdoc_core.settings import DEFAULT_SCHOOL_ABBREVIATIONS, AppdocSettings

logger = logging.getLogger(__name__)

OSTEOPATHIC_PROGRAM = "Doctor of Osteopathic Medicine"
OSTEOPATHIC_TENANT = "Kansas Health Science University"

OUTPUT_SUBFOLDERS = {
    OutputMode.FULL: "Complete Application",
    OutputMode.REDUCED: "App Lite",
}

MAX_FILENAME_LENGTH = 200

_TERM_CANONICAL_RE = re.compile(r"^\d{4}\s+\w+$")
_TERM_YEAR_RE = re.compile(r"\b(20\d{2})\b")
_TERM_SEASON_RE = re.compile(r"\b(Fall|Spring|Summer|Winter)\b", re.IGNORECASE)
_FILENAME_UNSAFE_RE = re.compile(r"[^a-zA-Z0-9\s-]")
_WHITESPACE_RE = re.compile(r"\s+")


def _get(record: Mapping[str, Any], path: str) -> Any:
    value = extract_value(record, path)
    return value if value else None


def _first(*values: Any) -> Any:
    for value in values:
        if value:
            return value
    return None


class ChecklistRow(BaseModel):
    item_name: str
    status: str
    status_class: str
    date_completed: str
    completed_by: str


class DocumentContext(BaseModel):
    """Everything a document template needs."""

    application_id: Optional[str] = None
    school_name: str
    program_name: str
    generated_date: str
    mode: OutputMode = OutputMode.FULL
    sections: List[ProjectedSection] = Field(default_factory=list)
    school_abbrev: str = ""
    location: str = ""
    applicant_name: str = ""
    term_name: str = ""
    checklist_items: List[ChecklistRow] = Field(default_factory=list)

    def to_template_data(self) -> Dict[str, Any]:
        data = self.model_dump(mode="json")
        data["is_reduced"] = self.mode is OutputMode.REDUCED
        return data


@dataclass(frozen=True)
class RecordLinks:
    """Record-store URLs for the identity fields of one record."""

    application_url: Optional[str] = None
    opportunity_url: Optional[str] = None
    program_url: Optional[str] = None

    def link_for(self, source_path: str, label: str) -> Optional[str]:
        if self.application_url and (source_path == "Id" or label == "Application ID"):
            return self.application_url
        if self.application_url and (source_path == "Name" or label == "Application Number"):
            return self.application_url
        if self.opportunity_url and (source_path == "Opportunity__c" or label == "Opportunity"):
            return self.opportunity_url
        if self.program_url and (source_path == "Program_Name__c" or label == "Program Name"):
            return self.program_url
        return None


def build_record_links(record: Mapping[str, Any], instance_url: Optional[str]) -> RecordLinks:
    if not instance_url:
        return RecordLinks()
    base = instance_url.rstrip("/")

    def url(object_name: str, record_id: Any) -> Optional[str]:
        if not record_id:
            return None
        return f"{base}/lightning/r/{object_name}/{record_id}/view"

    return RecordLinks(
        application_url=url("IndividualApplication", _get(record, "Id")),
        opportunity_url=url("Opportunity", _get(record, "Opportunity__c")),
        program_url=url("LearningProgram", _get(record, "LearningProgramId")),
    )


def attach_links(sections: List[ProjectedSection], links: RecordLinks) -> List[ProjectedSection]:
    """Return copies of ``sections`` with deep links on identity fields."""
    linked: List[ProjectedSection] = []
    for section in sections:
        fields = []
        for projected in section.fields:
            link = links.link_for(projected.source_path, projected.label)
            fields.append(projected.model_copy(update={"link": link}) if link else projected)
        linked.append(section.model_copy(update={"fields": fields}))
    return linked


def extract_applicant_name(record: Mapping[str, Any]) -> Optional[str]:
    first, last = _get(record, "Contact.FirstName"), _get(record, "Contact.LastName")
    if first and last:
        return f"{first} {last}"
    first, last = _get(record, "FirstName"), _get(record, "LastName")
    if first and last:
        return f"{first} {last}"
    return _first(_get(record, "Account.Name"), _get(record, "Contact.Name"))


def school_abbreviation(
    school_name: Optional[str],
    program_name: Optional[str] = None,
    abbreviations: Optional[Mapping[str, str]] = None,
) -> str:
    """Short tenant code used in headers and filenames."""
    if not school_name:
        return ""
    table = DEFAULT_SCHOOL_ABBREVIATIONS if abbreviations is None else abbreviations

    if school_name in table:
        return table[school_name]

    # Two tenants offer this program; the KHSU name disambiguates.
    if program_name and OSTEOPATHIC_PROGRAM in program_name and school_name != OSTEOPATHIC_TENANT:
        return "IllinoisCOM"

    for key, abbrev in table.items():
        if key in school_name or school_name in key:
            return abbrev
    return ""


def extract_location(record: Mapping[str, Any]) -> str:
    return str(
        _first(
            _get(record, "Location__c"),
            _get(record, "Campus__c"),
            _get(record, "ProgramTermApplnTimeline__r.Location__c"),
            _get(record, "ProgramTermApplnTimeline__r.Campus__c"),
            _get(record, "Account.BillingCity"),
        )
        or ""
    )


def extract_program_name(record: Mapping[str, Any]) -> str:
    return str(
        _first(
            _get(record, "Program_Name__c"),
            _get(record, "ProgramTermApplnTimeline__r.LearningProgram__r.Name"),
            _get(record, "LearningProgram__r.Name"),
            _get(record, "LearningProgram"),
        )
        or ""
    )


def format_term_name(term: Optional[str]) -> str:
    """Normalise a term label to ``<year> <season>`` when possible."""
    if not term:
        return ""
    term = str(term)
    if _TERM_CANONICAL_RE.match(term.strip()):
        return term.strip()
    year = _TERM_YEAR_RE.search(term)
    season = _TERM_SEASON_RE.search(term)
    if year and season:
        return f"{year.group(1)} {season.group(1)}"
    return term[:20].strip()


def extract_term_name(record: Mapping[str, Any]) -> str:
    direct = _first(
        _get(record, "Term__c"),
        _get(record, "Academic_Term__c"),
        _get(record, "AcademicTerm"),
    )
    if direct:
        return format_term_name(direct)

    timeline = _get(record, "ProgramTermApplnTimeline__r")
    if not isinstance(timeline, Mapping):
        return ""
    from_timeline = _first(
        _get(timeline, "Term__c"),
        _get(timeline, "Term__r.Name"),
        _get(timeline, "Academic_Term__c"),
    )
    if from_timeline:
        return format_term_name(from_timeline)
    year, kind = _get(timeline, "Term_Year__c"), _get(timeline, "Term_Type__c")
    if year and kind:
        return f"{year} {kind}"
    return ""


def process_checklist_items(
    items: Any, formatter: ValueFormatter = DEFAULT_FORMATTER
) -> List[ChecklistRow]:
    if not isinstance(items, list):
        return []
    empty = formatter.empty_marker
    rows: List[ChecklistRow] = []
    for item in items:
        if not isinstance(item, Mapping):
            continue
        status = item.get("Status__c") or empty
        if status == "Completed":
            status_class = "status-completed"
        elif status == "Waived":
            status_class = "status-waived"
        else:
            status_class = "status-pending"
        accepted = item.get("Date_Accepted__c")
        rows.append(
            ChecklistRow(
                item_name=str(item.get("Checklist_Type_Name__c") or item.get("Name") or empty),
                status=str(status),
                status_class=status_class,
                date_completed=formatter.format_date(accepted) if accepted else empty,
                completed_by=str(item.get("LastModifiedByName") or empty),
            )
        )
    return rows


def build_document_context(
    record: Mapping[str, Any],
    mapping: ResolvedMappingDocument,
    mode: Union[OutputMode, str] = OutputMode.FULL,
    *,
    settings: Optional[AppdocSettings] = None,
    projector: Optional[FieldProjector] = None,
    today: Optional[date] = None,
) -> DocumentContext:
    """Project ``record`` through ``mapping`` and gather header data."""
    mode = OutputMode.parse(mode)
    settings = settings or AppdocSettings()
    formatter = settings.formatter()
    projector = projector or FieldProjector(settings.projection_policy(), formatter)

    # Record values win over the mapping's declared identity.
    school_name = str(
        _first(
            _get(record, "School_Name__c"),
            _get(record, "School_Name_Text__c"),
            _get(record, "Account.Name"),
            mapping.tenant_name,
        )
        or "Unknown School"
    )
    program_name = str(
        _first(_get(record, "Program_Name__c"), _get(record, "LearningProgram"), mapping.program_name)
        or "Unknown Program"
    )

    sections = projector.project(mapping, record, mode)
    checklist: List[ChecklistRow] = []
    if mode is OutputMode.FULL:
        sections = attach_links(sections, build_record_links(record, settings.instance_url))
        checklist = process_checklist_items(
            _get(record, "relatedRecords.ChecklistItems"), formatter
        )

    application_id = _first(_get(record, "Id"), _get(record, "Name"))
    logger.info(
        "Prepared document context: school=%s program=%s mapping=%s mode=%s sections=%d",
        school_name,
        program_name,
        mapping.name,
        mode.value,
        len(sections),
    )
    return DocumentContext(
        application_id=str(application_id) if application_id else None,
        school_name=school_name,
        program_name=program_name,
        generated_date=formatter.format_date(today or date.today()),
        mode=mode,
        sections=sections,
        school_abbrev=school_abbreviation(school_name, program_name, settings.school_abbreviations),
        location=extract_location(record),
        applicant_name=extract_applicant_name(record) or "",
        term_name=extract_term_name(record),
        checklist_items=checklist,
    )


def generate_filename(
    record: Mapping[str, Any],
    record_id: str,
    *,
    abbreviations: Optional[Mapping[str, str]] = None,
) -> str:
    """``School-Location-Applicant-Program-Term Application.pdf``."""
    school_name = _first(
        _get(record, "School_Name__c"), _get(record, "School_Name_Text__c"), _get(record, "Account.Name")
    )
    program_for_abbrev = _first(_get(record, "Program_Name__c"), _get(record, "LearningProgram"))
    parts = [
        school_abbreviation(school_name, program_for_abbrev, abbreviations),
        extract_location(record),
        extract_applicant_name(record) or "",
        extract_program_name(record),
        extract_term_name(record),
    ]

    cleaned = [
        _WHITESPACE_RE.sub(" ", _FILENAME_UNSAFE_RE.sub("", str(part))).strip() for part in parts if part
    ]
    filename = "-".join(part for part in cleaned if part)
    if not filename:
        return f"Application-{record_id}.pdf"
    return f"{filename[:MAX_FILENAME_LENGTH].strip()} Application.pdf"


def output_path_for(output_dir: Path, filename: str, mode: Union[OutputMode, str]) -> Path:
    return output_dir / OUTPUT_SUBFOLDERS[OutputMode.parse(mode)] / filename

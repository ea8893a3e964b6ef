import json
from pathlib import Path
from typing import Any, Dict, Optional

import pytest
from hypothesis import settings

# Prevent Hypothesis from writing a local example database (e.g. `.hypothesis/`) during tests.
settings.register_profile("appdoc-tests", database=None)
settings.load_profile("appdoc-tests")


def section(name: str, *paths: str) -> Dict[str, Any]:
    """Section payload whose labels mirror the source paths."""
    return {"name": name, "fields": [{"sourcePath": p, "label": p} for p in paths]}


def write_mapping(directory: Path, name: str, data: Dict[str, Any]) -> Path:
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / f"{name}.json"
    path.write_text(json.dumps(data, indent=2), encoding="utf-8")
    return path


def write_settings(
    project_root: Path,
    mappings_dir: Path,
    *,
    extra_lines: Optional[list[str]] = None,
) -> Path:
    """Write a minimal .appdoc/config.toml pointing at ``mappings_dir``."""
    appdoc_dir = project_root / ".appdoc"
    appdoc_dir.mkdir(parents=True, exist_ok=True)
    path = appdoc_dir / "config.toml"
    lines = [
        f'mappings_dir = "{mappings_dir.as_posix()}"',
        f'template_dir = "{(project_root / "templates").as_posix()}"',
        f'output_dir = "{(project_root / "output").as_posix()}"',
    ]
    lines.extend(extra_lines or [])
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return path


@pytest.fixture
def application_record() -> Dict[str, Any]:
    return {
        "Id": "0iT5e000000AbCdEAF",
        "Name": "APP-000123",
        "Status": "Submitted",
        "School_Name__c": "The Chicago School",
        "Program_Name__c": "PsyD Clinical Psychology",
        "LearningProgramId": "0lP5e0000004XyZ",
        "Opportunity__c": "0065e00000ABCDE",
        "Location__c": "Chicago",
        "Term__c": "Fall 2025 Term",
        "AppliedDate": "2024-07-09",
        "Deposit_Amount__c": 0,
        "First_Generation_Student__c": True,
        "Contact": {
            "FirstName": "Ada",
            "LastName": "Lovelace",
            "Email": "ada@example.edu",
            "MobilePhone": "312.555.0142",
        },
        "relatedRecords": {
            "College": [{"Name": "Northwestern University", "GPA__c": 3.8}],
            "Employment": [],
            "ChecklistItems": [
                {
                    "Checklist_Type_Name__c": "Transcript",
                    "Status__c": "Completed",
                    "Date_Accepted__c": "2024-08-01",
                    "LastModifiedByName": "Admissions Bot",
                },
                {"Name": "Essay", "Status__c": "Waived"},
                {"Name": "Interview"},
            ],
        },
    }

"""Tests for projecting records onto resolved mappings."""

from appdoc_core.formatting import EMPTY_MARKER
from appdoc_core.models import FieldSpec, OutputMode, ResolvedMappingDocument, Section
from appdoc_core.projector import FieldProjector, ProjectionPolicy, project


def _mapping(*sections: Section) -> ResolvedMappingDocument:
    return ResolvedMappingDocument(name="test", sections=list(sections))


def _field(path: str, label: str, fmt: str = None) -> FieldSpec:
    return FieldSpec(source_path=path, label=label, format=fmt)


MAPPING = _mapping(
    Section(
        name="Application Information",
        fields=[
            _field("Id", "Application ID"),
            _field("Name", "Application Number"),
            _field("AppliedDate", "Applied Date", "date"),
            _field("Internal_Notes__c", "Internal Notes"),
        ],
    ),
    Section(
        name="Applicant Information",
        fields=[
            _field("Contact.FirstName", "First Name"),
            _field("Contact.MobilePhone", "Mobile", "phone"),
            _field("Contact.Email", "Email"),
        ],
    ),
    Section(
        name="Education History",
        fields=[
            _field("relatedRecords.College[2].Name", "College"),
            _field("relatedRecords.College[0].GPA__c", "Highest College GPA"),
        ],
    ),
    Section(name="Empty Section", fields=[]),
)


def _values(sections):
    return {f.label: f.value for s in sections for f in s.fields}


def test_full_mode_emits_every_declared_field(application_record):
    sections = project(MAPPING, application_record, OutputMode.FULL)
    assert [s.name for s in sections] == [
        "Application Information",
        "Applicant Information",
        "Education History",
    ]
    values = _values(sections)
    assert values["Application ID"] == "0iT5e000000AbCdEAF"
    assert values["Applied Date"] == "7/9/2024"
    assert values["Internal Notes"] == EMPTY_MARKER
    assert values["Mobile"] == "(312) 555-0142"
    assert values["Highest College GPA"] == "3.8"


def test_missing_nested_index_yields_empty_marker(application_record):
    sections = project(MAPPING, application_record, "full")
    assert _values(sections)["College"] == EMPTY_MARKER


def test_zero_value_is_displayed():
    mapping = _mapping(Section(name="Money", fields=[_field("Deposit_Amount__c", "Deposit Amount")]))
    sections = project(mapping, {"Deposit_Amount__c": 0}, OutputMode.REDUCED)
    assert _values(sections) == {"Deposit Amount": "0"}


def test_field_order_and_source_paths_are_preserved(application_record):
    sections = project(MAPPING, application_record)
    applicant = sections[1]
    assert [f.label for f in applicant.fields] == ["First Name", "Mobile", "Email"]
    assert applicant.fields[0].source_path == "Contact.FirstName"
    assert all(f.link is None for f in applicant.fields)


def test_reduced_mode_applies_denylist_allowlist_and_drops_empties(application_record):
    record = dict(application_record)
    record["Contact"] = dict(record["Contact"], Email="")
    sections = project(MAPPING, record, OutputMode.REDUCED)
    values = _values(sections)
    # Id is denylisted; Internal Notes is not an essential label; Email is empty.
    assert "Application ID" not in values
    assert "Internal Notes" not in values
    assert "Email" not in values
    assert values["Application Number"] == "APP-000123"
    assert values["First Name"] == "Ada"


def test_reduced_mode_drops_sections_without_survivors():
    mapping = _mapping(
        Section(name="System", fields=[_field("Id", "Application Number"), _field("Owner__c", "Owner")]),
        Section(name="Sparse", fields=[_field("Decision__c", "Decision"), _field("Misc", "Misc")]),
        Section(name="Kept", fields=[_field("Term__c", "Term")]),
    )
    sections = project(mapping, {"Id": "X", "Owner__c": "Y", "Misc": "Z", "Term__c": "Fall"}, "lite")
    assert [s.name for s in sections] == ["Kept"]


def test_custom_policy():
    policy = ProjectionPolicy.from_lists(exclude_paths=["Secret"], include_labels=["Visible", "Secret Label"])
    projector = FieldProjector(policy=policy)
    mapping = _mapping(
        Section(
            name="S",
            fields=[_field("Secret", "Secret Label"), _field("Shown", "Visible"), _field("Other", "Other")],
        )
    )
    sections = projector.project(mapping, {"Secret": "s", "Shown": "v", "Other": "o"}, OutputMode.REDUCED)
    assert _values(sections) == {"Visible": "v"}


def test_policy_defaults_match_production_lists():
    policy = ProjectionPolicy.from_lists()
    assert "Opportunity__c" in policy.exclude_paths
    assert "Application Number" in policy.include_labels


def test_projection_does_not_mutate_inputs(application_record):
    snapshot = repr(application_record)
    before = MAPPING.model_dump()
    project(MAPPING, application_record, OutputMode.REDUCED)
    project(MAPPING, application_record, OutputMode.FULL)
    assert repr(application_record) == snapshot
    assert MAPPING.model_dump() == before


def test_malformed_record_shapes_never_raise():
    record = {"Contact": "not a dict", "relatedRecords": {"College": "not a list"}}
    sections = project(MAPPING, record, OutputMode.FULL)
    values = _values(sections)
    assert values["First Name"] == EMPTY_MARKER
    assert values["College"] == EMPTY_MARKER

"""Tests for multi-key mapping lookup."""

import logging

import pytest

from appdoc_core.errors import RegistryFrozenError
from appdoc_core.models import ResolvedMappingDocument
from appdoc_core.registry import (
    FALLBACK_MAPPING,
    MappingRegistry,
    build_registry,
    identity_key,
    index_keys,
)
from appdoc_core.store import ConfigStore

from conftest import section


def _registry(raw, default_name="default"):
    return build_registry(ConfigStore.from_mapping(raw), default_name=default_name)


RAW = {
    "default": {"sections": [section("Default", "Id")]},
    "acme": {"extends": "default", "tenantName": "Acme", "programName": "Nursing"},
    "nursing": {"extends": "default", "programName": "Nursing"},
    "composite": {"extends": "default", "tenantId": "T1", "programId": "P1"},
    "tenant-only": {"extends": "default", "tenantId": "T2"},
    "program-only": {"extends": "default", "programId": "P3"},
}


@pytest.mark.parametrize(
    "tenant_id,program_id,expected",
    [
        ("T", "P", "T:P"),
        ("T", None, "tenant:T"),
        (None, "P", "program:P"),
        ("", "  ", None),
        (None, None, None),
    ],
)
def test_identity_key(tenant_id, program_id, expected):
    assert identity_key(tenant_id, program_id) == expected


def test_index_keys_cover_every_identity():
    doc = ResolvedMappingDocument(
        name="x", tenant_id="T", program_id="P", tenant_name="Acme", program_name="Nursing"
    )
    assert index_keys(doc) == ["T:P", "program:Nursing", "tenant:Acme"]


def test_registered_keys():
    registry = _registry(RAW)
    keys = registry.keys()
    assert "default" in keys
    assert "T1:P1" in keys
    assert "tenant:T2" in keys
    assert "program:P3" in keys
    assert "tenant:Acme" in keys
    assert "program:Nursing" in keys


def test_composite_key_wins():
    registry = _registry(RAW)
    assert registry.lookup(tenant_id="T1", program_id="P1", tenant_name="Acme").name == "composite"


def test_tenant_id_used_when_composite_missing():
    registry = _registry(RAW)
    assert registry.lookup(tenant_id="T2", program_id="unknown").name == "tenant-only"


def test_program_id_only_lookup():
    registry = _registry(RAW)
    assert registry.lookup(program_id="P3").name == "program-only"


def test_tenant_name_beats_program_name():
    registry = _registry(RAW)
    assert registry.lookup(tenant_name="Acme", program_name="Nursing").name == "acme"


def test_program_name_used_only_without_tenant_name():
    registry = _registry(RAW)
    assert registry.lookup(program_name="Nursing").name in {"acme", "nursing"}
    # An unmapped tenant name blocks the program-name match.
    assert registry.lookup(tenant_name="Unmapped U", program_name="Nursing").name == "default"


def test_program_name_lookup_hits_the_later_registration():
    registry = _registry(
        {
            "default": {"sections": []},
            "a-first": {"programName": "Nursing"},
            "b-second": {"programName": "Nursing"},
        }
    )
    # Registration follows sorted names; the later document owns the key.
    assert registry.lookup(program_name="Nursing").name == "b-second"


def test_default_when_nothing_matches():
    registry = _registry(RAW)
    assert registry.lookup(tenant_id="nope").name == "default"
    assert registry.lookup().name == "default"


def test_is_default_flag_registers_default_key():
    registry = _registry({"base": {"isDefault": True, "sections": [section("B", "Id")]}})
    assert registry.lookup().name == "base"


def test_custom_default_name():
    registry = _registry({"standard": {"sections": [section("S", "Id")]}}, default_name="standard")
    assert registry.lookup().name == "standard"


def test_fallback_when_nothing_loaded(caplog):
    registry = _registry({})
    with caplog.at_level(logging.WARNING):
        mapping = registry.lookup(tenant_name="Acme")
    assert mapping is FALLBACK_MAPPING
    assert mapping.section_names() == ["Application Information", "Applicant Information"]
    assert "fallback" in caplog.text


def test_built_registry_is_frozen():
    registry = _registry(RAW)
    assert registry.frozen
    with pytest.raises(RegistryFrozenError):
        registry.register("late", ResolvedMappingDocument(name="late"))


def test_lookup_does_not_change_index():
    registry = _registry(RAW)
    before = dict(registry.index)
    registry.lookup(tenant_name="Acme")
    registry.lookup(tenant_id="zzz")
    assert dict(registry.index) == before


def test_degraded_documents_are_registered_with_warning(caplog):
    with caplog.at_level(logging.WARNING):
        registry = _registry(
            {"default": {"sections": []}, "orphan": {"extends": "ghost", "tenantName": "Orphan"}}
        )
    assert registry.lookup(tenant_name="Orphan").name == "orphan"
    assert "degraded" in caplog.text


def test_manual_registration():
    registry = MappingRegistry()
    doc = ResolvedMappingDocument(name="default", sections=[])
    registry.register("default", doc)
    assert registry.get("default") is doc
    assert registry.names() == ["default"]
    assert registry.has_default

"""Index resolved mappings by identity keys and pick one per request.

Lookup priority (first match wins):
1) identity key: ``<tenantId>:<programId>``, or ``tenant:<tenantId>`` /
   ``program:<programId>`` when only one id is given
2) ``tenant:<tenantId>``
3) ``tenant:<tenantName>``
4) ``program:<programName>``, only when no tenant name was supplied
5) ``default``
6) built-in fallback mapping (identifying/contact fields only)

The registry is built once at startup and frozen; lookups never mutate it.
"""

from __future__ import annotations

import logging
from types import MappingProxyType
from typing import Dict, List, Mapping, Optional, Union

from .errors import RegistryFrozenError
from .models import FieldSpec, RawMappingDocument, ResolvedMappingDocument, Section
from .resolver import InheritanceResolver
from .store import ConfigStore

logger = logging.getLogger(__name__)

DEFAULT_KEY = "default"

FALLBACK_MAPPING = ResolvedMappingDocument(
    name="fallback",
    sections=[
        Section(
            name="Application Information",
            fields=[
                FieldSpec(source_path="Name", label="Application Number"),
                FieldSpec(source_path="Id", label="Application ID"),
                FieldSpec(source_path="Status", label="Application Status"),
                FieldSpec(source_path="School_Name__c", label="School Name"),
                FieldSpec(source_path="Program_Name__c", label="Program Name"),
                FieldSpec(source_path="Location__c", label="Campus Location"),
                FieldSpec(source_path="Term__c", label="Term"),
                FieldSpec(source_path="AppliedDate", label="Applied Date", format="date"),
                FieldSpec(
                    source_path="Application_Submitted_Date__c",
                    label="Application Submitted Date",
                    format="date",
                ),
                FieldSpec(source_path="Admissions_Status__c", label="Admissions Status"),
                FieldSpec(source_path="Decision__c", label="Decision"),
            ],
        ),
        Section(
            name="Applicant Information",
            fields=[
                FieldSpec(source_path="Contact.FirstName", label="First Name"),
                FieldSpec(source_path="Contact.LastName", label="Last Name"),
                FieldSpec(source_path="Contact.Email", label="Email"),
                FieldSpec(source_path="Contact.MobilePhone", label="Mobile", format="phone"),
            ],
        ),
    ],
)


def _present(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def identity_key(tenant_id: Optional[str], program_id: Optional[str]) -> Optional[str]:
    """Key for an id pair; None when neither id is given."""
    tenant_id = _present(tenant_id)
    program_id = _present(program_id)
    if tenant_id and program_id:
        return f"{tenant_id}:{program_id}"
    if tenant_id:
        return f"tenant:{tenant_id}"
    if program_id:
        return f"program:{program_id}"
    return None


def index_keys(doc: ResolvedMappingDocument) -> List[str]:
    """Every lookup key a resolved document serves, excluding ``default``."""
    keys: List[str] = []
    key = identity_key(doc.tenant_id, doc.program_id)
    if key:
        keys.append(key)
    if doc.program_name:
        keys.append(f"program:{doc.program_name}")
    if doc.tenant_name:
        keys.append(f"tenant:{doc.tenant_name}")
    return keys


class MappingRegistry:
    """Multi-key index over resolved mapping documents."""

    def __init__(self, default_name: str = DEFAULT_KEY) -> None:
        self.default_name = default_name
        self._index: Dict[str, ResolvedMappingDocument] = {}
        self._by_name: Dict[str, ResolvedMappingDocument] = {}
        self._frozen = False

    @property
    def frozen(self) -> bool:
        return self._frozen

    @property
    def index(self) -> Mapping[str, ResolvedMappingDocument]:
        return MappingProxyType(self._index)

    def freeze(self) -> "MappingRegistry":
        self._frozen = True
        return self

    def register(self, name: str, resolved: ResolvedMappingDocument) -> None:
        if self._frozen:
            raise RegistryFrozenError(name)
        if resolved.degraded:
            logger.warning(
                "Registering degraded field mapping '%s': %s", name, "; ".join(resolved.diagnostics)
            )

        keys = index_keys(resolved)
        if name == self.default_name or resolved.is_default:
            keys.append(DEFAULT_KEY)

        for key in keys:
            previous = self._index.get(key)
            if previous is not None and previous.name != resolved.name:
                logger.warning(
                    "Mapping key '%s' reassigned from '%s' to '%s'", key, previous.name, resolved.name
                )
            self._index[key] = resolved
        self._by_name[name] = resolved

    def get(self, name: str) -> Optional[ResolvedMappingDocument]:
        return self._by_name.get(name)

    def names(self) -> List[str]:
        return sorted(self._by_name)

    def keys(self) -> List[str]:
        return sorted(self._index)

    @property
    def has_default(self) -> bool:
        return DEFAULT_KEY in self._index

    def lookup(
        self,
        tenant_id: Optional[str] = None,
        program_id: Optional[str] = None,
        tenant_name: Optional[str] = None,
        program_name: Optional[str] = None,
    ) -> ResolvedMappingDocument:
        """Select the mapping for a request. Never fails."""
        tenant_id = _present(tenant_id)
        program_id = _present(program_id)
        tenant_name = _present(tenant_name)
        program_name = _present(program_name)

        key = identity_key(tenant_id, program_id)
        if key and key in self._index:
            return self._index[key]

        if tenant_id:
            tenant_key = f"tenant:{tenant_id}"
            if tenant_key in self._index:
                return self._index[tenant_key]

        # Tenant name first: two tenants may share a program name.
        if tenant_name:
            tenant_name_key = f"tenant:{tenant_name}"
            if tenant_name_key in self._index:
                logger.info("Found mapping by tenant name: %s", tenant_name_key)
                return self._index[tenant_name_key]

        if program_name and not tenant_name:
            program_key = f"program:{program_name}"
            if program_key in self._index:
                logger.info("Found mapping by program name: %s", program_key)
                return self._index[program_key]

        if DEFAULT_KEY in self._index:
            return self._index[DEFAULT_KEY]

        logger.warning("Using hardcoded fallback field mapping - no mappings loaded from files")
        return FALLBACK_MAPPING


def build_registry(
    source: Union[ConfigStore, Mapping[str, RawMappingDocument]],
    default_name: str = DEFAULT_KEY,
) -> MappingRegistry:
    """Resolve every document and return a frozen registry."""
    resolver = InheritanceResolver(source)
    registry = MappingRegistry(default_name=default_name)
    raw = source.documents if isinstance(source, ConfigStore) else source
    for name, resolved in resolver.resolve_all().items():
        registry.register(name, resolved)
        logger.info(
            "Loaded field mapping '%s' (program=%s, tenant=%s, extends=%s)",
            name,
            resolved.program_name,
            resolved.tenant_name,
            raw[name].extends or "none",
        )
    if not registry.has_default:
        logger.warning("No '%s' field mapping registered; lookups may use the fallback", default_name)
    return registry.freeze()

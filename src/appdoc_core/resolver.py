"""Resolve ``extends`` chains into flat, ordered section lists.

Resolution order for a child document (later wins):
1) Parent's resolved sections, in parent order
2) removeSections: drop inherited sections by name
3) overrideSections: replace in place, or append when no section matches
4) addSections: append after everything inherited/overridden
5) A non-empty explicit ``sections`` list replaces all of the above

Identity attributes (tenantId, programId, tenantName, programName) fall back
to the parent's value when the child leaves them unset.

A missing parent or a cyclic chain never raises: the child degrades to its own
``sections`` (or none) and the resolved document is flagged ``degraded``.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Mapping, Optional, Tuple, Union

from .models import RawMappingDocument, ResolvedMappingDocument, Section
from .store import ConfigStore

logger = logging.getLogger(__name__)

_IDENTITY_ATTRS = ("tenant_id", "program_id", "tenant_name", "program_name")


class InheritanceResolver:
    """Resolve raw mapping documents against each other."""

    def __init__(self, documents: Union[ConfigStore, Mapping[str, RawMappingDocument]]) -> None:
        if isinstance(documents, ConfigStore):
            documents = documents.documents
        self._documents: Dict[str, RawMappingDocument] = dict(documents)

    def resolve(self, name: str) -> ResolvedMappingDocument:
        """Resolve a document by name.

        Unknown names yield an empty, degraded document.
        """
        doc = self._documents.get(name)
        if doc is None:
            message = f"Field mapping '{name}' not found"
            logger.warning(message)
            return ResolvedMappingDocument(name=name, degraded=True, diagnostics=[message])
        return self._resolve(doc, ())

    def resolve_all(self) -> Dict[str, ResolvedMappingDocument]:
        return {name: self.resolve(name) for name in sorted(self._documents)}

    def _resolve(self, doc: RawMappingDocument, chain: Tuple[str, ...]) -> ResolvedMappingDocument:
        chain = chain + (doc.name,)

        if doc.extends is None:
            return self._own(doc)

        parent_name = doc.extends
        if parent_name in chain:
            message = "Cyclic extends chain: " + " -> ".join(chain + (parent_name,))
            logger.warning("%s; '%s' falls back to its own sections", message, doc.name)
            return self._own(doc, degraded=True, diagnostics=[message])

        parent_raw = self._documents.get(parent_name)
        if parent_raw is None:
            message = f"Parent config '{parent_name}' not found for '{doc.name}'"
            logger.warning("%s; using its own sections", message)
            return self._own(doc, degraded=True, diagnostics=[message])

        parent = self._resolve(parent_raw, chain)
        diagnostics: List[str] = list(parent.diagnostics)
        sections = self._apply_operations(doc, list(parent.sections), diagnostics)

        if doc.sections:
            if doc.add_sections or doc.remove_sections or doc.override_sections:
                logger.debug(
                    "'%s' declares explicit sections; inheritance operations ignored", doc.name
                )
            sections = list(doc.sections)

        identity = {
            attr: getattr(doc, attr) if getattr(doc, attr) is not None else getattr(parent, attr)
            for attr in _IDENTITY_ATTRS
        }
        return ResolvedMappingDocument(
            name=doc.name,
            is_default=doc.is_default,
            sections=sections,
            degraded=parent.degraded,
            diagnostics=diagnostics,
            **identity,
        )

    @staticmethod
    def _apply_operations(
        doc: RawMappingDocument, sections: List[Section], diagnostics: List[str]
    ) -> List[Section]:
        if doc.remove_sections:
            removed = set(doc.remove_sections)
            sections = [s for s in sections if s.name not in removed]

        for override in doc.override_sections:
            idx = _index_of(sections, override.name)
            if idx is None:
                sections.append(override)
            else:
                sections[idx] = override

        for added in doc.add_sections:
            if _index_of(sections, added.name) is not None:
                message = f"'{doc.name}' adds section '{added.name}' which already exists; skipped"
                logger.warning(message)
                diagnostics.append(message)
                continue
            sections.append(added)

        return sections

    @staticmethod
    def _own(
        doc: RawMappingDocument,
        *,
        degraded: bool = False,
        diagnostics: Optional[List[str]] = None,
    ) -> ResolvedMappingDocument:
        return ResolvedMappingDocument(
            name=doc.name,
            tenant_id=doc.tenant_id,
            program_id=doc.program_id,
            tenant_name=doc.tenant_name,
            program_name=doc.program_name,
            is_default=doc.is_default,
            sections=list(doc.sections or []),
            degraded=degraded,
            diagnostics=list(diagnostics or []),
        )


def _index_of(sections: List[Section], name: str) -> Optional[int]:
    for idx, section in enumerate(sections):
        if section.name == name:
            return idx
    return None

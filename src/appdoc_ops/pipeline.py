"""Wire the core to its external collaborators.

The record store (source of application records) and the PDF renderer are
outside this package; they are reached through the two protocols below.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Protocol, Tuple, Union

from appdoc_core.models import OutputMode, ResolvedMappingDocument
from appdoc_core.projector import FieldProjector
from appdoc_core.registry import MappingRegistry, build_registry
from appdoc_core.settings import AppdocSettings
from appdoc_core.store import ConfigStore

from .document import DocumentContext, build_document_context, generate_filename, output_path_for
from .render import render_document_html

logger = logging.getLogger(__name__)


class RecordSource(Protocol):
    """Fetches one application record with the requested fields."""

    def fetch_record(self, record_id: str, fields: List[str]) -> Dict[str, Any]: ...


class DocumentRenderer(Protocol):
    """Turns resolved HTML into a document file."""

    def render(self, html: str, output_path: Path) -> Path: ...


@dataclass(frozen=True)
class DocumentRequest:
    record_id: str
    tenant_id: Optional[str] = None
    program_id: Optional[str] = None
    tenant_name: Optional[str] = None
    program_name: Optional[str] = None
    template_name: Optional[str] = None
    mode: Union[OutputMode, str] = OutputMode.FULL


@dataclass(frozen=True)
class DocumentResult:
    path: Path
    mapping_name: str
    context: DocumentContext


def load_registry(settings: AppdocSettings) -> Tuple[ConfigStore, MappingRegistry]:
    """Load mapping documents from the configured directory and index them."""
    store = ConfigStore.load(settings.mappings_dir)
    return store, build_registry(store, default_name=settings.default_mapping)


class DocumentPipeline:
    """lookup -> fetch -> project -> render HTML -> hand off to renderer."""

    def __init__(
        self,
        registry: MappingRegistry,
        source: RecordSource,
        renderer: DocumentRenderer,
        settings: Optional[AppdocSettings] = None,
    ) -> None:
        self.registry = registry
        self.source = source
        self.renderer = renderer
        self.settings = settings or AppdocSettings()
        self.projector = FieldProjector(self.settings.projection_policy(), self.settings.formatter())

    def select_mapping(self, request: DocumentRequest) -> ResolvedMappingDocument:
        return self.registry.lookup(
            tenant_id=request.tenant_id,
            program_id=request.program_id,
            tenant_name=request.tenant_name,
            program_name=request.program_name,
        )

    def generate(self, request: DocumentRequest) -> DocumentResult:
        mode = OutputMode.parse(request.mode)
        try:
            mapping = self.select_mapping(request)
            record = self.source.fetch_record(request.record_id, mapping.all_source_paths())
            context = build_document_context(
                record, mapping, mode, settings=self.settings, projector=self.projector
            )
            html = render_document_html(
                context, template_dir=self.settings.template_dir, template_name=request.template_name
            )
            filename = generate_filename(
                record, request.record_id, abbreviations=self.settings.school_abbreviations
            )
            output_path = output_path_for(self.settings.output_dir, filename, mode)
            output_path.parent.mkdir(parents=True, exist_ok=True)
            path = self.renderer.render(html, output_path)
        except Exception as e:
            logger.error("Document generation failed for %s: %s", request.record_id, e)
            raise

        logger.info(
            "Document generated: record=%s applicant=%s path=%s mode=%s",
            request.record_id,
            context.applicant_name,
            path,
            mode.value,
        )
        return DocumentResult(path=path, mapping_name=mapping.name, context=context)

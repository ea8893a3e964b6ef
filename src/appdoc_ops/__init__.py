"""appdoc ops - document assembly on top of appdoc_core."""

from .document import (
    DocumentContext,
    RecordLinks,
    attach_links,
    build_document_context,
    build_record_links,
    generate_filename,
    output_path_for,
)
from .pipeline import (
    DocumentPipeline,
    DocumentRenderer,
    DocumentRequest,
    DocumentResult,
    RecordSource,
    load_registry,
)
from .render import render_document_html
from .template_engine import TemplateEngine

__all__ = [
    "DocumentContext",
    "RecordLinks",
    "attach_links",
    "build_document_context",
    "build_record_links",
    "generate_filename",
    "output_path_for",
    "DocumentPipeline",
    "DocumentRenderer",
    "DocumentRequest",
    "DocumentResult",
    "RecordSource",
    "load_registry",
    "render_document_html",
    "TemplateEngine",
]

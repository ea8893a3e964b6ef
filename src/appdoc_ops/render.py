"""Render a document context to HTML for the external PDF renderer."""

import logging
from pathlib import Path
from typing import Optional

from appdoc_core.models import OutputMode

from .document import DocumentContext
from .template_engine import TemplateEngine

logger = logging.getLogger(__name__)

FULL_TEMPLATE = "application-default"
REDUCED_TEMPLATE = "application-lite"
TEMPLATE_SUFFIX = ".hbs"

DEFAULT_TEMPLATE = """<!DOCTYPE html>
<html>
<head>
  <meta charset="UTF-8">
  <style>
    body { font-family: Arial, sans-serif; margin: 20px; }
    h1 { color: #333; border-bottom: 2px solid #0066cc; padding-bottom: 10px; }
    .section { margin: 20px 0; }
    .section-title { font-size: 18px; font-weight: bold; color: #0066cc; margin-bottom: 10px; }
    .field { margin: 8px 0; }
    .field-label { font-weight: bold; display: inline-block; width: 200px; }
    .field-value { display: inline-block; }
    .header { text-align: center; margin-bottom: 30px; }
  </style>
</head>
<body>
  <div class="header">
    <h1>{{school_name}} - {{program_name}}</h1>
    <p>Application ID: {{application_id}}</p>
    <p>Generated: {{generated_date}}</p>
  </div>
  {{#each sections}}
  <div class="section">
    <div class="section-title">{{name}}</div>
    {{#each fields}}
    <div class="field">
      <span class="field-label">{{label}}:</span>
      {{#if link}}<a class="field-value" href="{{link}}">{{value}}</a>{{else}}<span class="field-value">{{value}}</span>{{/if}}
    </div>
    {{/each}}
  </div>
  {{/each}}
  {{#if checklist_items}}
  <div class="section">
    <div class="section-title">Checklist</div>
    <table>
      {{#each checklist_items}}
      <tr class="{{status_class}}"><td>{{item_name}}</td><td>{{status}}</td><td>{{date_completed}}</td><td>{{completed_by}}</td></tr>
      {{/each}}
    </table>
  </div>
  {{/if}}
</body>
</html>
"""


def template_name_for(mode: OutputMode, template_name: Optional[str] = None) -> str:
    if mode is OutputMode.REDUCED:
        return REDUCED_TEMPLATE
    return template_name or FULL_TEMPLATE


def load_template(template_dir: Path, template_name: str) -> str:
    """Read ``<template_dir>/<name>.hbs``; fall back to the built-in template."""
    template_path = template_dir / f"{template_name}{TEMPLATE_SUFFIX}"
    try:
        return template_path.read_text(encoding="utf-8")
    except OSError:
        logger.warning("Template not found, using default: %s", template_path)
        return DEFAULT_TEMPLATE


def render_document_html(
    context: DocumentContext,
    *,
    template_dir: Path,
    template_name: Optional[str] = None,
    engine: Optional[TemplateEngine] = None,
) -> str:
    template = load_template(template_dir, template_name_for(context.mode, template_name))
    return (engine or TemplateEngine()).render(template, context.to_template_data())

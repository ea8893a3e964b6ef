"""
template_engine.py - Minimal zero-dependency HTML template engine.

Supports:
- {{ variable }} replacement, HTML-escaped (nested access via dot notation)
- {{{ variable }}} raw replacement
- {{#each list}} ... {{/each}} looping ({{this}} and {{@index}} inside)
- {{#if (eq a "b")}} conditional (basic) or just {{#if variable}}, with {{else}}
- {{#unless variable}} ... {{/unless}} inverse conditional, with {{else}}
"""

import html
import re
from collections import ChainMap
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple


class TemplateEngine:
    def __init__(self, *, escape: bool = True):
        self.escape = escape

    def render(self, template: str, context: Dict[str, Any]) -> str:
        """Render a template with a Handlebars-like subset (nested blocks supported)."""
        return self._render_segment(template, ChainMap(context), depth=0)

    @dataclass(frozen=True)
    class _Tag:
        raw: str
        start: int
        end: int  # index right after the closing braces
        triple: bool = False

    def _render_segment(self, template: str, context: ChainMap[str, Any], *, depth: int) -> str:
        if depth > 50:
            # Prevent runaway recursion on malformed templates.
            return template

        out: list[str] = []
        idx = 0
        while True:
            tag = self._find_next_tag(template, idx)
            if tag is None:
                out.append(template[idx:])
                break

            out.append(template[idx:tag.start])
            raw = tag.raw.strip()

            if tag.triple:
                val = self._get_value(context, raw)
                out.append("" if val is None else str(val))
                idx = tag.end
                continue

            if raw.startswith("#each "):
                key = raw[len("#each ") :].strip()
                inner, next_idx = self._extract_block(template, tag.end, block_name="each")
                items = self._get_value(context, key)
                if isinstance(items, list):
                    for position, item in enumerate(items):
                        overlay: dict[str, Any] = {"this": item, "@index": position}
                        if isinstance(item, dict):
                            overlay.update(item)
                        out.append(self._render_segment(inner, context.new_child(overlay), depth=depth + 1))
                idx = next_idx
                continue

            if raw.startswith("#if "):
                cond = raw[len("#if ") :].strip()
                inner, next_idx = self._extract_block(template, tag.end, block_name="if")
                when_true, when_false = self._split_else(inner)
                chosen = when_true if self._eval_condition(cond, context) else when_false
                out.append(self._render_segment(chosen, context, depth=depth + 1))
                idx = next_idx
                continue

            if raw.startswith("#unless "):
                key = raw[len("#unless ") :].strip()
                inner, next_idx = self._extract_block(template, tag.end, block_name="unless")
                when_false, when_true = self._split_else(inner)
                chosen = when_true if self._get_value(context, key) else when_false
                out.append(self._render_segment(chosen, context, depth=depth + 1))
                idx = next_idx
                continue

            if raw.startswith("/") or raw == "else":
                # Stray closing tag: omit from output.
                idx = tag.end
                continue

            out.append(self._render_var(raw, context))
            idx = tag.end

        return "".join(out)

    def _render_var(self, key: str, context: ChainMap[str, Any]) -> str:
        if key == "this":
            val = context.get("this", "")
        else:
            val = self._get_value(context, key)
        text = "" if val is None else str(val)
        return html.escape(text) if self.escape else text

    def _find_next_tag(self, text: str, start: int) -> Optional[_Tag]:
        open_idx = text.find("{{", start)
        if open_idx == -1:
            return None
        if text.startswith("{{{", open_idx):
            close_idx = text.find("}}}", open_idx + 3)
            if close_idx == -1:
                return None
            return self._Tag(raw=text[open_idx + 3 : close_idx], start=open_idx, end=close_idx + 3, triple=True)
        close_idx = text.find("}}", open_idx + 2)
        if close_idx == -1:
            return None
        return self._Tag(raw=text[open_idx + 2 : close_idx], start=open_idx, end=close_idx + 2)

    def _extract_block(self, text: str, start_idx: int, *, block_name: str) -> Tuple[str, int]:
        """
        Return (inner_text, next_idx_after_close) for a block.

        Supports nesting of the same block type (e.g., nested each inside each).
        """
        open_tag = f"#{block_name}"
        close_tag = f"/{block_name}"
        depth = 1
        scan = start_idx
        while True:
            tag = self._find_next_tag(text, scan)
            if tag is None:
                # Malformed template: treat the rest as inner content.
                return text[start_idx:], len(text)

            raw = tag.raw.strip()
            if raw.startswith(open_tag + " "):
                depth += 1
            elif raw == close_tag:
                depth -= 1
                if depth == 0:
                    return text[start_idx:tag.start], tag.end

            scan = tag.end

    def _split_else(self, inner: str) -> Tuple[str, str]:
        """Split an #if body at its top-level {{else}}."""
        depth = 0
        scan = 0
        while True:
            tag = self._find_next_tag(inner, scan)
            if tag is None:
                return inner, ""
            raw = tag.raw.strip()
            if raw.startswith("#"):
                depth += 1
            elif raw.startswith("/"):
                depth -= 1
            elif raw == "else" and depth == 0:
                return inner[:tag.start], inner[tag.end:]
            scan = tag.end

    _EQ_RE = re.compile(r'^\(eq\s+([\w\.\[\]@]+)\s+"([^"]*)"\s*\)$')

    def _eval_condition(self, cond: str, context: ChainMap[str, Any]) -> bool:
        match = self._EQ_RE.match(cond)
        if match:
            key = match.group(1)
            target_val = match.group(2)
            return str(self._get_value(context, key)) == target_val
        val = self._get_value(context, cond)
        return bool(val)

    def _get_value(self, context: ChainMap[str, Any], path: str) -> Any:
        """Get value from context using dot notation."""
        parts = path.split('.')
        curr: Any = context
        try:
            for part in parts:
                # Handle array access [0]
                if part.endswith(']') and '[' in part:
                    p_name = part.split('[')[0]
                    idx = int(part.split('[')[1].rstrip(']'))
                    if p_name:
                        curr = curr[p_name]
                    curr = curr[idx]
                else:
                    if hasattr(curr, "get"):
                        curr = curr.get(part)
                    else:
                        return None

                if curr is None:
                    return None
            return curr
        except (KeyError, IndexError, TypeError, ValueError):
            return None

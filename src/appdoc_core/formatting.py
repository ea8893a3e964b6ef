"""Display formatting for projected field values.

Formatting never raises: values that cannot be parsed for their declared
format are shown in their original string form.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Optional

from .extract import ABSENT

logger = logging.getLogger(__name__)

EMPTY_MARKER = "—"

_CENTS = Decimal("0.01")
_COMPACT_OFFSET_RE = re.compile(r"([+-]\d{2})(\d{2})$")
_NON_DIGIT_RE = re.compile(r"\D")


def natural_str(value: Any, yes_text: str = "Yes", no_text: str = "No") -> str:
    """String form of a raw value without a declared format."""
    if isinstance(value, bool):
        return yes_text if value else no_text
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (list, tuple)):
        return ", ".join(natural_str(v, yes_text, no_text) for v in value)
    if isinstance(value, dict):
        return json.dumps(value, default=str, ensure_ascii=False)
    return str(value)


def parse_date_value(value: Any) -> Optional[date]:
    """Parse a date or timestamp; bare YYYY-MM-DD stays on its calendar day."""
    if isinstance(value, datetime):
        return value.astimezone().date() if value.tzinfo else value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        return None

    text = value.strip()
    if "T" not in text:
        try:
            return date.fromisoformat(text)
        except ValueError:
            return None

    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    text = _COMPACT_OFFSET_RE.sub(r"\1:\2", text)
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone()
    return parsed.date()


def parse_decimal(value: Any) -> Optional[Decimal]:
    if isinstance(value, bool):
        return None
    try:
        if isinstance(value, (int, Decimal)):
            number = Decimal(value)
        elif isinstance(value, float):
            number = Decimal(str(value))
        elif isinstance(value, str):
            number = Decimal(value.strip().replace(",", ""))
        else:
            return None
    except InvalidOperation:
        return None
    if not number.is_finite():
        return None
    return number


def format_phone(value: Any) -> str:
    text = str(value)
    digits = _NON_DIGIT_RE.sub("", text)
    if len(digits) == 10:
        return f"({digits[:3]}) {digits[3:6]}-{digits[6:]}"
    return text


@dataclass(frozen=True)
class ValueFormatter:
    """Formats raw record values for display."""

    empty_marker: str = EMPTY_MARKER
    yes_text: str = "Yes"
    no_text: str = "No"
    currency_symbol: str = "$"

    def is_empty(self, formatted: Optional[str]) -> bool:
        return formatted is None or formatted == "" or formatted == self.empty_marker

    def format(self, value: Any, fmt: Optional[str] = None) -> str:
        if value is ABSENT or value is None or value == "":
            return self.empty_marker

        if isinstance(value, bool):
            return self.yes_text if value else self.no_text

        if isinstance(value, (int, float)) and value == 0:
            return "0"

        if fmt == "date":
            return self.format_date(value)
        if fmt == "currency":
            return self.format_currency(value)
        if fmt == "phone":
            return format_phone(value)
        return natural_str(value, self.yes_text, self.no_text)

    def format_date(self, value: Any) -> str:
        parsed = parse_date_value(value)
        if parsed is None:
            logger.debug("Unparsable date value passed through: %r", value)
            return natural_str(value, self.yes_text, self.no_text)
        return f"{parsed.month}/{parsed.day}/{parsed.year}"

    def format_currency(self, value: Any) -> str:
        number = parse_decimal(value)
        if number is None:
            logger.debug("Unparsable currency value passed through: %r", value)
            return natural_str(value, self.yes_text, self.no_text)
        rounded = number.quantize(_CENTS, rounding=ROUND_HALF_UP)
        sign = "-" if rounded < 0 else ""
        return f"{sign}{self.currency_symbol}{abs(rounded):,.2f}"


DEFAULT_FORMATTER = ValueFormatter()


def format_value(value: Any, fmt: Optional[str] = None) -> str:
    """Format with the default display strings."""
    return DEFAULT_FORMATTER.format(value, fmt)

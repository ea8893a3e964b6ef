"""Read values out of loosely-typed source records by dot path.

Paths look like ``Status``, ``Contact.Email`` or
``relatedRecords.Employment[0].Name``. Missing keys, wrong shapes and
out-of-range indexes all resolve to :data:`ABSENT`; extraction never raises.
"""

import re
from collections.abc import Mapping, Sequence
from typing import Any, List, Optional, Tuple

_INDEXED_SEGMENT_RE = re.compile(r"^(\w+)\[(\d+)\]$")


class _Absent:
    """Marker for a value that is not present in the record."""

    _instance: Optional["_Absent"] = None

    def __new__(cls) -> "_Absent":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "ABSENT"


ABSENT: Any = _Absent()


def is_absent(value: Any) -> bool:
    return value is ABSENT


def parse_path(path: str) -> List[Tuple[str, Optional[int]]]:
    """Split a dotted path into (key, index) segments."""
    segments: List[Tuple[str, Optional[int]]] = []
    for part in path.split("."):
        match = _INDEXED_SEGMENT_RE.match(part)
        if match:
            segments.append((match.group(1), int(match.group(2))))
        else:
            segments.append((part, None))
    return segments


def _is_sequence(value: Any) -> bool:
    return isinstance(value, Sequence) and not isinstance(value, (str, bytes, bytearray))


def extract_value(record: Any, path: str) -> Any:
    """Return the value at ``path`` in ``record``, or ``ABSENT``."""
    if not path or not isinstance(record, Mapping):
        return ABSENT

    if "." not in path:
        return record[path] if path in record else ABSENT

    current: Any = record
    for key, index in parse_path(path):
        if not isinstance(current, Mapping) or key not in current:
            return ABSENT
        current = current[key]
        if index is not None:
            if not _is_sequence(current) or index >= len(current):
                return ABSENT
            current = current[index]
            if current is None:
                return ABSENT
    return current

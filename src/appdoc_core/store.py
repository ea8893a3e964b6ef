"""Load raw field-mapping documents from a directory.

Each ``*.toml`` or ``*.json`` file in the mappings directory is one document,
named after its file stem. TOML takes precedence over JSON for the same stem.
No inheritance is interpreted here; see :mod:`appdoc_core.resolver`.
"""

from __future__ import annotations

import json
import logging
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterator, Mapping, Optional

from pydantic import ValidationError

from .errors import ConfigError, MappingValidationError
from .models import RawMappingDocument

logger = logging.getLogger(__name__)

_SUFFIXES = (".toml", ".json")


def _format_validation_error(exc: ValidationError) -> list[str]:
    messages: list[str] = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ()))
        messages.append(f"{loc}: {err.get('msg')}" if loc else str(err.get("msg")))
    return messages


def parse_document(name: str, data: Any, source: Optional[str] = None) -> RawMappingDocument:
    """Validate one raw document payload.

    Raises:
        MappingValidationError: if the payload is not a table or fails validation.
    """
    if isinstance(data, RawMappingDocument):
        return data if data.name == name else data.model_copy(update={"name": name})
    if not isinstance(data, dict):
        raise MappingValidationError(name, ["document must be an object/table"], source)
    payload = dict(data)
    payload["name"] = name
    try:
        return RawMappingDocument.model_validate(payload)
    except ValidationError as e:
        raise MappingValidationError(name, _format_validation_error(e), source)


def _read_file(path: Path) -> Any:
    if path.suffix == ".toml":
        with open(path, "rb") as f:
            return tomllib.load(f)
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


@dataclass
class ConfigStore:
    """In-memory set of raw mapping documents, keyed by name."""

    documents: Dict[str, RawMappingDocument] = field(default_factory=dict)
    errors: Dict[str, str] = field(default_factory=dict)
    sources: Dict[str, Path] = field(default_factory=dict)
    directory: Optional[Path] = None

    def __contains__(self, name: object) -> bool:
        return name in self.documents

    def __iter__(self) -> Iterator[str]:
        return iter(sorted(self.documents))

    def __len__(self) -> int:
        return len(self.documents)

    def get(self, name: str) -> Optional[RawMappingDocument]:
        return self.documents.get(name)

    def names(self) -> list[str]:
        return sorted(self.documents)

    @classmethod
    def load(cls, directory: Path) -> "ConfigStore":
        """Load every mapping file in ``directory``.

        A missing directory produces an empty store. Files that fail to parse
        or validate are skipped and recorded in ``errors``.
        """
        store = cls(directory=directory)
        if not directory.exists():
            logger.warning("Field mapping directory not found: %s", directory)
            return store
        if not directory.is_dir():
            raise ConfigError(f"Field mapping path is not a directory: {directory}")

        chosen: Dict[str, Path] = {}
        for path in sorted(directory.iterdir()):
            if not path.is_file() or path.suffix not in _SUFFIXES:
                continue
            existing = chosen.get(path.stem)
            if existing is not None and existing.suffix == ".toml":
                logger.info("Ignoring %s; %s takes precedence", path.name, existing.name)
                continue
            chosen[path.stem] = path

        for name in sorted(chosen):
            path = chosen[name]
            try:
                data = _read_file(path)
            except (OSError, json.JSONDecodeError, tomllib.TOMLDecodeError, UnicodeDecodeError) as e:
                store.errors[name] = f"Failed to read {path.name}: {e}"
                logger.warning("Skipping field mapping %s: %s", path.name, e)
                continue
            store._add(name, data, path)

        logger.info(
            "Loaded %d field mapping document(s) from %s (%d rejected)",
            len(store.documents),
            directory,
            len(store.errors),
        )
        return store

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> "ConfigStore":
        """Build a store from already-parsed documents."""
        store = cls()
        for name in sorted(raw):
            store._add(name, raw[name], None)
        return store

    def _add(self, name: str, data: Any, path: Optional[Path]) -> None:
        source = path.name if path is not None else None
        try:
            doc = parse_document(name, data, source)
        except MappingValidationError as e:
            self.errors[name] = str(e)
            logger.warning("Skipping invalid field mapping %s: %s", name, "; ".join(e.errors))
            return
        self.documents[name] = doc
        if path is not None:
            self.sources[name] = path

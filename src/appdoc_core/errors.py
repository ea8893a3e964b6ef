"""Exception taxonomy for appdoc-core."""

from typing import List, Optional


class AppdocError(Exception):
    """Base exception for all appdoc errors."""

    pass


# Config errors


class ConfigError(AppdocError):
    """Failed to load settings or mapping configuration."""

    pass


class MappingValidationError(ConfigError):
    """A mapping document failed structural validation."""

    def __init__(self, name: str, errors: List[str], source: Optional[str] = None) -> None:
        self.name = name
        self.errors = errors
        self.source = source
        where = f" ({source})" if source else ""
        error_list = "\n".join(f"  - {e}" for e in errors)
        super().__init__(f"Invalid mapping '{name}'{where}:\n{error_list}")


# Registry errors


class RegistryFrozenError(AppdocError):
    """Registration attempted after the registry was frozen."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Cannot register '{name}': mapping registry is frozen")

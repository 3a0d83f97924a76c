"""Extractor registry — maps type strings to extractor classes."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from httpsource.errors import ConfigurationError

if TYPE_CHECKING:
    from httpsource.extraction.extractor import DataExtractor

_REGISTRY: dict[str, type[DataExtractor]] = {}


def register_extractor(type_name: str, cls: type[DataExtractor]) -> None:
    """Register an extractor class for a given type name."""
    _REGISTRY[type_name] = cls


def get_extractor_class(type_name: str) -> type[DataExtractor] | None:
    """Look up an extractor class by type name. Returns None if not found."""
    return _REGISTRY.get(type_name)


def registered_types() -> list[str]:
    """Return a sorted list of all registered extractor type names."""
    return sorted(_REGISTRY)


def build_extractor(type_name: str, **options: Any) -> DataExtractor:
    """Instantiate a registered extractor. Raises ConfigurationError if unknown."""
    cls = get_extractor_class(type_name)
    if cls is None:
        raise ConfigurationError(
            f"Unknown extractor type '{type_name}'; "
            f"must be one of: {', '.join(registered_types())}"
        )
    try:
        return cls(**options)
    except TypeError as exc:
        raise ConfigurationError(
            f"Invalid options for extractor '{type_name}': {exc}"
        ) from exc

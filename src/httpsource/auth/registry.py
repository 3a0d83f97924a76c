"""Authenticator registry — maps auth type strings to authenticator classes."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from httpsource.auth.authenticator import Authenticator

_REGISTRY: dict[str, type[Authenticator]] = {}


def register_authenticator(type_name: str, cls: type[Authenticator]) -> None:
    """Register an authenticator class for a given auth type."""
    _REGISTRY[type_name.lower()] = cls


def get_authenticator_class(type_name: str) -> type[Authenticator] | None:
    """Look up an authenticator class by auth type. Returns None if not found."""
    return _REGISTRY.get(type_name.lower())


def registered_types() -> list[str]:
    """Return a sorted list of all registered auth types."""
    return sorted(_REGISTRY)

"""Resolve the configured auth type into a configured Authenticator."""

from __future__ import annotations

import importlib
import logging
from collections.abc import Mapping
from typing import Any

from httpsource.auth.authenticator import Authenticator
from httpsource.auth.registry import get_authenticator_class, registered_types
from httpsource.config import AUTH_CLASS_CONFIG, AUTH_TYPE_CONFIG, AUTH_TYPE_DEFAULT
from httpsource.errors import ConfigurationError

logger = logging.getLogger(__name__)

CUSTOM_AUTH_TYPE = "custom"


def load_authenticator_class(reference: Any) -> type[Authenticator]:
    """Resolve a class object or a ``pkg.module:Class`` / ``pkg.module.Class`` reference."""
    if reference is None or reference == "":
        raise ConfigurationError(
            f"'{AUTH_CLASS_CONFIG}' is required when auth type is '{CUSTOM_AUTH_TYPE}'"
        )

    if isinstance(reference, str):
        module_name, sep, class_name = reference.partition(":")
        if not sep:
            module_name, _, class_name = reference.rpartition(".")
        if not module_name or not class_name:
            raise ConfigurationError(f"Invalid auth class reference '{reference}'")
        try:
            module = importlib.import_module(module_name)
            cls = getattr(module, class_name)
        except (ImportError, AttributeError) as exc:
            raise ConfigurationError(
                f"Cannot load auth class '{reference}': {exc}"
            ) from exc
    else:
        cls = reference

    if not (isinstance(cls, type) and issubclass(cls, Authenticator)):
        raise ConfigurationError(f"{reference!r} is not an Authenticator")
    return cls


def resolve_authenticator(
    configs: Mapping[str, Any], auth_type: str | None = None,
) -> Authenticator:
    """Build and configure the authenticator selected by ``auth_type``.

    ``auth_type`` defaults to the ``http.auth.type`` setting. Every strategy
    is configured from the same ``configs`` mapping.
    """
    if auth_type is None:
        auth_type = configs.get(AUTH_TYPE_CONFIG) or AUTH_TYPE_DEFAULT
    auth_type = str(auth_type).lower()

    if auth_type == CUSTOM_AUTH_TYPE:
        cls = load_authenticator_class(configs.get(AUTH_CLASS_CONFIG))
    else:
        cls = get_authenticator_class(auth_type)
        if cls is None:
            known = ", ".join([*registered_types(), CUSTOM_AUTH_TYPE])
            raise ConfigurationError(
                f"Unknown auth type '{auth_type}'; must be one of: {known}"
            )

    try:
        authenticator = cls()
    except TypeError as exc:
        raise ConfigurationError(
            f"Cannot instantiate auth class {cls.__name__}: {exc}"
        ) from exc
    authenticator.configure(configs)
    logger.debug("Resolved auth type '%s' to %s", auth_type, cls.__name__)
    return authenticator

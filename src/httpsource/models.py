"""Value types passed through a poll cycle."""

from __future__ import annotations

import enum
from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

SOURCE_HEADER = "http.source"

Offset = dict[str, Any]


class Skip(enum.Enum):
    SKIP = "skip"

    def __repr__(self) -> str:
        return "SKIP"


# Returned by a request builder to end the poll early with no records.
SKIP = Skip.SKIP


def _freeze(mapping: Mapping[str, Any] | None) -> Mapping[str, Any]:
    return MappingProxyType(dict(mapping or {}))


@dataclass(frozen=True)
class Partition:
    """One logical polling target."""

    url: str
    method: str = "GET"
    metadata: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "method", self.method.upper())
        object.__setattr__(self, "metadata", _freeze(self.metadata))

    def __hash__(self) -> int:
        # Metadata values may be unhashable; keys are enough to stay consistent with __eq__.
        return hash((self.url, self.method, tuple(sorted(self.metadata))))

    def as_dict(self) -> dict[str, Any]:
        """Plain mapping form, used as a persistence key."""
        return {**self.metadata, "url": self.url, "method": self.method}


@dataclass(frozen=True)
class RequestDescriptor:
    """The request issued for one poll."""

    method: str
    url: str
    params: Mapping[str, str] = field(default_factory=dict)
    headers: Mapping[str, str] = field(default_factory=dict)
    content: bytes | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "params", _freeze(self.params))
        object.__setattr__(self, "headers", _freeze(self.headers))


@dataclass(frozen=True)
class Record:
    """A delivery-ready item.

    ``offset`` is the offset the poll started from, not the updated one.
    """

    topic: str
    partition: Partition
    offset: Mapping[str, Any]
    value: Any
    key: Any = None
    headers: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "offset", _freeze(self.offset))
        object.__setattr__(self, "headers", _freeze(self.headers))

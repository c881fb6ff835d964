"""Convertibility table for basic kinds.

A pair (source, destination) is convertible only when the destination
kind is listed for the source kind. The table is not transitive.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field

DEFAULT_KINDS: tuple[str, ...] = ("int", "int32", "int64", "float64", "string")


def _mutual(kinds: Iterable[str]) -> dict[str, frozenset[str]]:
    kinds = tuple(kinds)
    return {kind: frozenset(k for k in kinds if k != kind) for kind in kinds}


@dataclass(frozen=True)
class ConversionTable:
    """Which basic kinds may be converted into which."""

    conversions: Mapping[str, frozenset[str]] = field(default_factory=lambda: _mutual(DEFAULT_KINDS))

    @classmethod
    def default(cls) -> ConversionTable:
        return cls()

    @classmethod
    def mutual(cls, kinds: Iterable[str]) -> ConversionTable:
        """Every listed kind converts to every other listed kind."""
        return cls(_mutual(kinds))

    @classmethod
    def from_mapping(cls, table: Mapping[str, Iterable[str]]) -> ConversionTable:
        """Build a table from ``{source_kind: [destination_kind, ...]}``."""
        return cls({src: frozenset(dsts) - {src} for src, dsts in table.items()})

    def can_convert(self, source_type: str, destination_type: str) -> bool:
        if source_type == destination_type:
            return False
        return destination_type in self.conversions.get(source_type, frozenset())

    @property
    def kinds(self) -> list[str]:
        return sorted(self.conversions)

"""Generator enumerations."""

from __future__ import annotations

from enum import Enum


class Style(Enum):
    """Calling convention of generated conversion functions."""

    POINTER = "pointer"
    VALUE = "value"
    STANDALONE = "standalone"

    @classmethod
    def parse(cls, value: str) -> Style:
        """Map a configuration value to a Style; the empty string means VALUE."""
        if value == "":
            return cls.VALUE
        return cls(value)

    @property
    def returns_receiver(self) -> bool:
        return self is not Style.POINTER


class MapPlugin(Enum):
    """Struct <-> map converters generated for a single type."""

    TO_MAP = "ToMap"
    FROM_MAP = "FromMap"


class ConversionKind(Enum):
    """How a source value reaches a destination slot."""

    CAST = "cast"
    MAP_EXTRACT = "mapExtract"
    MAP_INSERT = "mapInsert"
    MAP_MERGE = "mapMerge"


class SkipReason(Enum):
    """Why a destination field receives no assignment."""

    IGNORED = "ignored"
    UNEXPORTED = "unexported"
    UNMATCHED = "unmatched"
    INCOMPATIBLE = "incompatible"

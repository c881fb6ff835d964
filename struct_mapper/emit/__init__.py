"""Emission layer - render Go source for match plans and map plugins."""

from __future__ import annotations

from struct_mapper.emit.emitter import Emitter
from struct_mapper.emit.formatter import (
    CanonicalFormatter,
    GofmtFormatter,
    SourceFormatter,
    resolve_formatter,
)

__all__ = [
    "Emitter",
    "SourceFormatter",
    "CanonicalFormatter",
    "GofmtFormatter",
    "resolve_formatter",
]

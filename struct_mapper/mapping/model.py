"""Normalized field model of a record or map type.

Fields carry type signatures as plain strings so that matching and
emission never depend on a particular parser.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from struct_mapper.parsing.declarations import ImportSpec


def is_exported(name: str) -> bool:
    """Go visibility: an identifier is exported when it starts upper-case."""
    return bool(name) and name[0].isupper()


@dataclass(frozen=True)
class Field:
    """A single member of a record type.

    ``children`` is set for embedded records resolvable in the same file and
    for anonymous struct literals; it is ``None`` for opaque fields.
    """

    name: str
    type: str
    children: tuple[Field, ...] | None = None
    embedded: bool = False
    anonymous: bool = False

    @property
    def exported(self) -> bool:
        return is_exported(self.name)

    @property
    def nested(self) -> bool:
        return self.children is not None


@dataclass(frozen=True)
class TypeModel:
    """Fields of one named type, in declaration order."""

    package: str
    name: str
    fields: tuple[Field, ...] = ()
    is_map_type: bool = False
    path: str = ""
    imports: tuple[ImportSpec, ...] = field(default_factory=tuple)

    def find_field(self, name: str) -> Field | None:
        for f in self.fields:
            if f.name == name:
                return f
        return None

    @property
    def map_key(self) -> str | None:
        f = self.find_field("key") if self.is_map_type else None
        return f.type if f is not None else None

    @property
    def map_value(self) -> str | None:
        f = self.find_field("value") if self.is_map_type else None
        return f.type if f is not None else None

"""Type model extraction.

Turns the declaration of a named type into a TypeModel: one Field per
named member in declaration order, embedded records flattened into
children when their declaration lives in the same file, anonymous struct
literals exposed inline, and map types reduced to ``key``/``value``
pseudo-fields.
"""

from __future__ import annotations

from struct_mapper.core.exceptions import TypeNotFoundError
from struct_mapper.mapping.model import Field, TypeModel
from struct_mapper.parsing.declarations import (
    AliasDecl,
    FieldDecl,
    Generic,
    Ident,
    MapDecl,
    MapType,
    ParsedFile,
    RecordDecl,
    StructType,
    TypeDecl,
    TypeExpr,
    base_name,
)


class TypeModelExtractor:
    """Builds TypeModels from parsed files.

    Recursion through embedded records and alias chains tracks the type
    names on the current path; a type seen again is kept opaque.
    """

    def extract(self, parsed: ParsedFile, type_name: str) -> TypeModel:
        """Extract the model of *type_name* declared in *parsed*.

        Raises:
            TypeNotFoundError: If no type with that name is declared in the file.
        """
        decl = parsed.find(type_name)
        if decl is None:
            raise TypeNotFoundError(type_name, parsed.path)

        fields, is_map = self._resolve(parsed, decl, frozenset({decl.name}))
        return TypeModel(
            package=parsed.package,
            name=type_name,
            fields=fields,
            is_map_type=is_map,
            path=parsed.path,
            imports=parsed.imports,
        )

    def _resolve(
        self,
        parsed: ParsedFile,
        decl: TypeDecl,
        visiting: frozenset[str],
    ) -> tuple[tuple[Field, ...], bool]:
        if isinstance(decl, RecordDecl):
            return self._fields(parsed, decl.fields, visiting), False
        if isinstance(decl, MapDecl):
            return _map_fields(decl.key, decl.value), True
        if isinstance(decl, AliasDecl):
            return self._resolve_target(parsed, decl.target, visiting)
        raise TypeError(f"unexpected declaration {decl!r}")

    def _resolve_target(
        self,
        parsed: ParsedFile,
        target: TypeExpr,
        visiting: frozenset[str],
    ) -> tuple[tuple[Field, ...], bool]:
        if isinstance(target, MapType):
            return _map_fields(target.key, target.value), True
        if isinstance(target, StructType):
            return self._fields(parsed, target.fields, visiting), False
        if isinstance(target, Generic):
            target = target.base
        if isinstance(target, Ident) and target.name not in visiting:
            decl = parsed.find(target.name)
            if decl is not None:
                return self._resolve(parsed, decl, visiting | {target.name})
        return (), False

    def _fields(
        self,
        parsed: ParsedFile,
        decls: tuple[FieldDecl, ...],
        visiting: frozenset[str],
    ) -> tuple[Field, ...]:
        fields: list[Field] = []
        for decl in decls:
            signature = decl.type.signature
            if decl.embedded:
                name = base_name(decl.type) or signature
                fields.append(
                    Field(
                        name=name,
                        type=signature,
                        children=self._embedded_children(parsed, decl.type, visiting),
                        embedded=True,
                    )
                )
                continue

            children = None
            anonymous = isinstance(decl.type, StructType)
            if anonymous:
                children = self._fields(parsed, decl.type.fields, visiting)
            for name in decl.names:
                fields.append(Field(name=name, type=signature, children=children, anonymous=anonymous))
        return tuple(fields)

    def _embedded_children(
        self,
        parsed: ParsedFile,
        type_expr: TypeExpr,
        visiting: frozenset[str],
    ) -> tuple[Field, ...] | None:
        # Only value embeddings of same-file records are flattened; pointers
        # and qualified types stay opaque.
        if isinstance(type_expr, Generic):
            type_expr = type_expr.base
        if not isinstance(type_expr, Ident) or type_expr.name in visiting:
            return None
        decl = parsed.find(type_expr.name)
        if decl is None:
            return None
        fields, is_map = self._resolve(parsed, decl, visiting | {type_expr.name})
        if is_map:
            return None
        return fields


def _map_fields(key: TypeExpr, value: TypeExpr) -> tuple[Field, ...]:
    return (
        Field(name="key", type=key.signature),
        Field(name="value", type=value.signature),
    )

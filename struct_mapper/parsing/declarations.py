"""Parsed Go declarations.

Type expressions and top-level type declarations are closed sets of frozen
dataclasses. ``TypeExpr.signature`` renders the normalized type string that
the rest of the generator compares and emits.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator
from dataclasses import dataclass, field, replace
from enum import Enum


class ChanDir(Enum):
    BOTH = "chan "
    SEND = "chan<- "
    RECV = "<-chan "


@dataclass(frozen=True)
class Ident:
    """Unqualified type name (``int``, ``User``)."""

    name: str

    @property
    def signature(self) -> str:
        return self.name


@dataclass(frozen=True)
class Qualified:
    """Package-qualified type name (``time.Time``)."""

    package: str
    name: str

    @property
    def signature(self) -> str:
        return f"{self.package}.{self.name}"


@dataclass(frozen=True)
class Generic:
    """Instantiated generic type (``List[int]``)."""

    base: Ident | Qualified
    args: tuple[TypeExpr, ...]

    @property
    def signature(self) -> str:
        return f"{self.base.signature}[{', '.join(a.signature for a in self.args)}]"


@dataclass(frozen=True)
class Pointer:
    elem: TypeExpr

    @property
    def signature(self) -> str:
        return "*" + self.elem.signature


@dataclass(frozen=True)
class Slice:
    elem: TypeExpr

    @property
    def signature(self) -> str:
        return "[]" + self.elem.signature


@dataclass(frozen=True)
class Array:
    length: str
    elem: TypeExpr

    @property
    def signature(self) -> str:
        return f"[{self.length}]{self.elem.signature}"


@dataclass(frozen=True)
class MapType:
    key: TypeExpr
    value: TypeExpr

    @property
    def signature(self) -> str:
        return f"map[{self.key.signature}]{self.value.signature}"


@dataclass(frozen=True)
class Chan:
    direction: ChanDir
    elem: TypeExpr

    @property
    def signature(self) -> str:
        return self.direction.value + self.elem.signature


@dataclass(frozen=True)
class Param:
    """One parameter or result group: ``a, b int``, ``...string`` or just ``error``."""

    names: tuple[str, ...]
    type: TypeExpr
    variadic: bool = False

    @property
    def signature(self) -> str:
        rendered = ("..." if self.variadic else "") + self.type.signature
        return f"{', '.join(self.names)} {rendered}" if self.names else rendered


@dataclass(frozen=True)
class FuncType:
    params: tuple[Param, ...] = ()
    results: tuple[Param, ...] = ()

    @property
    def signature(self) -> str:
        return "func" + _func_tail(self)


def _func_tail(func: FuncType) -> str:
    rendered = "(" + ", ".join(p.signature for p in func.params) + ")"
    if not func.results:
        return rendered
    if len(func.results) == 1 and not func.results[0].names:
        return f"{rendered} {func.results[0].signature}"
    return rendered + " (" + ", ".join(p.signature for p in func.results) + ")"


@dataclass(frozen=True)
class Method:
    """Method element of an interface body."""

    name: str
    func: FuncType

    @property
    def signature(self) -> str:
        return self.name + _func_tail(self.func)


@dataclass(frozen=True)
class Approx:
    """Underlying-type constraint term (``~string``)."""

    elem: TypeExpr

    @property
    def signature(self) -> str:
        return "~" + self.elem.signature


@dataclass(frozen=True)
class Union:
    """Constraint union (``~int | ~string``)."""

    terms: tuple[TypeExpr, ...]

    @property
    def signature(self) -> str:
        return " | ".join(t.signature for t in self.terms)


@dataclass(frozen=True)
class InterfaceType:
    elements: tuple[Method | TypeExpr, ...] = ()

    @property
    def signature(self) -> str:
        if not self.elements:
            return "interface{}"
        return "interface{ " + "; ".join(e.signature for e in self.elements) + " }"


@dataclass(frozen=True)
class StructType:
    """Anonymous struct literal used as a type."""

    fields: tuple[FieldDecl, ...] = ()

    @property
    def signature(self) -> str:
        if not self.fields:
            return "struct{}"
        return "struct{ " + "; ".join(f.signature for f in self.fields) + " }"


TypeExpr = (
    Ident
    | Qualified
    | Generic
    | Pointer
    | Slice
    | Array
    | MapType
    | Chan
    | FuncType
    | InterfaceType
    | StructType
    | Approx
    | Union
)


def base_name(expr: TypeExpr) -> str | None:
    """Return the type name an embedded field is known by, if any."""
    if isinstance(expr, (Ident, Qualified)):
        return expr.name
    if isinstance(expr, Generic):
        return expr.base.name
    if isinstance(expr, Pointer):
        return base_name(expr.elem)
    return None


def map_type_names(
    expr: TypeExpr,
    fn: Callable[[Ident | Qualified], Ident | Qualified],
    param_names: bool = True,
) -> TypeExpr:
    """Rebuild ``expr`` with every referenced type name passed through ``fn``.

    Method names and struct field names are not type names and are left
    alone. Parameter names are kept unless *param_names* is false, in which
    case each ``a, b T`` group becomes ``T, T`` so function types compare
    the way Go's type identity does.
    """

    def walk(e: TypeExpr) -> TypeExpr:
        return map_type_names(e, fn, param_names)

    if isinstance(expr, (Ident, Qualified)):
        return fn(expr)
    if isinstance(expr, Generic):
        return Generic(fn(expr.base), tuple(walk(a) for a in expr.args))
    if isinstance(expr, (Pointer, Slice, Array, Chan, Approx)):
        return replace(expr, elem=walk(expr.elem))
    if isinstance(expr, MapType):
        return MapType(walk(expr.key), walk(expr.value))
    if isinstance(expr, FuncType):
        return _map_func(expr, walk, param_names)
    if isinstance(expr, InterfaceType):
        return InterfaceType(
            tuple(
                Method(e.name, _map_func(e.func, walk, param_names)) if isinstance(e, Method) else walk(e)
                for e in expr.elements
            )
        )
    if isinstance(expr, StructType):
        return StructType(tuple(replace(f, type=walk(f.type)) for f in expr.fields))
    if isinstance(expr, Union):
        return Union(tuple(walk(t) for t in expr.terms))
    raise TypeError(f"not a type expression: {expr!r}")


def _map_func(func: FuncType, walk: Callable[[TypeExpr], TypeExpr], param_names: bool) -> FuncType:
    def group(params: tuple[Param, ...]) -> tuple[Param, ...]:
        if param_names:
            return tuple(replace(p, type=walk(p.type)) for p in params)
        unnamed: list[Param] = []
        for p in params:
            unnamed.extend([Param((), walk(p.type), p.variadic)] * max(len(p.names), 1))
        return tuple(unnamed)

    return FuncType(group(func.params), group(func.results))


def type_names(expr: TypeExpr) -> Iterator[Ident | Qualified]:
    """Yield referenced type names in source order."""
    found: list[Ident | Qualified] = []

    def collect(name: Ident | Qualified) -> Ident | Qualified:
        found.append(name)
        return name

    map_type_names(expr, collect)
    return iter(found)


@dataclass(frozen=True)
class FieldDecl:
    """One line of a struct body. Embedded fields have no names."""

    names: tuple[str, ...]
    type: TypeExpr
    tag: str | None = None

    @property
    def embedded(self) -> bool:
        return not self.names

    @property
    def signature(self) -> str:
        if self.embedded:
            return self.type.signature
        return f"{', '.join(self.names)} {self.type.signature}"


# --- Top-level declarations ---


@dataclass(frozen=True)
class RecordDecl:
    """``type X struct { ... }`` (or ``type X = struct { ... }``)."""

    name: str
    fields: tuple[FieldDecl, ...]
    type_params: str = ""
    is_alias: bool = False


@dataclass(frozen=True)
class MapDecl:
    """``type X map[K]V`` (or ``type X = map[K]V``)."""

    name: str
    key: TypeExpr
    value: TypeExpr
    type_params: str = ""
    is_alias: bool = False


@dataclass(frozen=True)
class AliasDecl:
    """Any other type declaration: ``type X = Y`` or ``type X Y``."""

    name: str
    target: TypeExpr
    type_params: str = ""
    is_alias: bool = False


TypeDecl = RecordDecl | MapDecl | AliasDecl


@dataclass(frozen=True)
class ImportSpec:
    path: str
    alias: str | None = None


@dataclass(frozen=True)
class ParsedFile:
    """Package clause, imports and top-level type declarations of one file."""

    path: str
    package: str
    imports: tuple[ImportSpec, ...] = ()
    declarations: tuple[TypeDecl, ...] = field(default_factory=tuple)

    def find(self, name: str) -> TypeDecl | None:
        for decl in self.declarations:
            if decl.name == name:
                return decl
        return None

    @property
    def import_paths(self) -> list[str]:
        return [spec.path for spec in self.imports]

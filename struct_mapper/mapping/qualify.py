"""Cross-package qualification.

Decides whether a type referenced from another directory needs a package
qualifier and an import, and whether two field types written in two
different files denote the same type once qualifiers are resolved.
"""

from __future__ import annotations

import posixpath
import re
from collections.abc import Callable
from dataclasses import dataclass

from struct_mapper.mapping.model import TypeModel
from struct_mapper.parsing.declarations import Ident, Qualified, map_type_names, type_names
from struct_mapper.parsing.parser import parse_type_expr

# Predeclared Go types never get qualified.
_UNIVERSE = frozenset(
    {
        "any",
        "bool",
        "byte",
        "comparable",
        "complex64",
        "complex128",
        "error",
        "float32",
        "float64",
        "int",
        "int8",
        "int16",
        "int32",
        "int64",
        "rune",
        "string",
        "uint",
        "uint8",
        "uint16",
        "uint32",
        "uint64",
        "uintptr",
    }
)

_MAJOR_VERSION = re.compile(r"^v\d+$")

TypeEquivalence = Callable[[str, str], bool]


def join_import_path(*elements: str) -> str:
    """Join path elements into a forward-slash import path.

    Empty elements are dropped and the result is cleaned, so
    ``join_import_path("example.com/mod", "", "./models")`` is
    ``"example.com/mod/models"`` on every host.
    """
    parts = [e.replace("\\", "/") for e in elements if e]
    if not parts:
        return ""
    joined = posixpath.normpath("/".join(parts))
    return "" if joined == "." else joined


def directory_of(path: str) -> str:
    """Directory of a source file path, ``"."`` for a bare file name."""
    directory = posixpath.dirname(path.replace("\\", "/"))
    return posixpath.normpath(directory) if directory else "."


def default_package_name(import_path: str) -> str:
    """Package name Go assumes for an unaliased import path."""
    parts = [p for p in import_path.split("/") if p]
    if not parts:
        return ""
    name = parts[-1]
    if _MAJOR_VERSION.match(name) and len(parts) > 1:
        name = parts[-2]
    name = re.sub(r"\.v\d+$", "", name)
    name = name.removeprefix("go-")
    return name.replace("-", "_").replace(".", "_")


@dataclass(frozen=True)
class QualifiedName:
    """A type name as written from a referencing file."""

    name: str
    qualifier: str | None = None
    import_path: str | None = None

    @property
    def text(self) -> str:
        return f"{self.qualifier}.{self.name}" if self.qualifier else self.name

    def __str__(self) -> str:
        return self.text


@dataclass(frozen=True)
class ImportLine:
    path: str
    alias: str | None = None

    def render(self) -> str:
        return f'{self.alias} "{self.path}"' if self.alias else f'"{self.path}"'


class ImportSet:
    """Imports of one generated file.

    Each path gets one qualifier; a package name already taken by another
    path is aliased with a numeric suffix.
    """

    def __init__(self) -> None:
        self._qualifiers: dict[str, str] = {}  # path -> qualifier
        self._natural: dict[str, str] = {}  # path -> package name
        self._owners: dict[str, str] = {}  # qualifier -> path

    def add(self, path: str, package: str) -> str:
        """Register *path* and return the qualifier generated code must use."""
        if path in self._qualifiers:
            return self._qualifiers[path]
        qualifier = package
        suffix = 2
        while qualifier in self._owners:
            qualifier = f"{package}{suffix}"
            suffix += 1
        self._register(path, qualifier, package)
        return qualifier

    def add_exact(self, path: str, qualifier: str) -> bool:
        """Register *path* under exactly *qualifier*; False on a clash."""
        if self._qualifiers.get(path) == qualifier:
            return True
        if path in self._qualifiers or qualifier in self._owners:
            return False
        self._register(path, qualifier, default_package_name(path))
        return True

    def _register(self, path: str, qualifier: str, package: str) -> None:
        self._qualifiers[path] = qualifier
        self._natural[path] = package
        self._owners[qualifier] = path

    def lines(self) -> list[ImportLine]:
        """Import lines sorted by path; aliases only where they differ from the package name."""
        result = []
        for path in sorted(self._qualifiers):
            qualifier = self._qualifiers[path]
            alias = None if qualifier == self._natural[path] else qualifier
            result.append(ImportLine(path, alias))
        return result

    def __len__(self) -> int:
        return len(self._qualifiers)


class QualificationResolver:
    """Qualifies types across directories of one Go module.

    Args:
        module: Module path from go.mod (e.g. ``github.com/acme/shop``).
        path_from_module: Location of the configuration directory relative
            to the module root.
    """

    def __init__(self, module: str, path_from_module: str = "") -> None:
        self._module = module
        self._path_from_module = path_from_module

    def import_path(self, file_path: str) -> str:
        """Import path of the package containing *file_path*."""
        directory = directory_of(file_path)
        return join_import_path(self._module, self._path_from_module, "" if directory == "." else directory)

    @staticmethod
    def same_scope(path_a: str, path_b: str) -> bool:
        return directory_of(path_a) == directory_of(path_b)

    def qualify(
        self,
        model: TypeModel,
        referencing_path: str,
        imports: ImportSet | None = None,
    ) -> QualifiedName:
        """Name of *model* as written in a file at *referencing_path*.

        Registers the import in *imports* when the two live in different
        directories.
        """
        if self.same_scope(model.path, referencing_path):
            return QualifiedName(model.name)
        path = self.import_path(model.path)
        qualifier = imports.add(path, model.package) if imports is not None else model.package
        return QualifiedName(model.name, qualifier, path)

    def equivalence(self, source: TypeModel, destination: TypeModel) -> TypeEquivalence:
        """Predicate telling whether a source and a destination field type match.

        Within one directory the signatures must be identical. Across
        directories each side's names are resolved to import paths through
        that side's own imports, so ``p.Meta`` in the destination matches
        ``Meta`` in the source only if the destination imports the
        source's directory.
        """
        if self.same_scope(source.path, destination.path):
            return lambda source_type, destination_type: source_type == destination_type

        def equivalent(source_type: str, destination_type: str) -> bool:
            return self.canonical(source_type, source, destination) == self.canonical(
                destination_type, destination, source
            )

        return equivalent

    def canonical(self, signature: str, model: TypeModel, counterpart: TypeModel | None = None) -> str:
        """Rewrite every named type in *signature* as ``"import/path".Name``.

        Only type names are rewritten: method and field names stay as
        written and parameter names are dropped. Qualifiers that no import
        of *model*'s file accounts for are kept as written.
        """
        own_path = self.import_path(model.path)

        def resolve(name: Ident | Qualified) -> Ident | Qualified:
            if isinstance(name, Ident):
                if name.name in _UNIVERSE:
                    return name
                return Qualified(f'"{own_path}"', name.name)
            path = self._resolve_qualifier(name.package, model, counterpart)
            return name if path is None else Qualified(f'"{path}"', name.name)

        return map_type_names(parse_type_expr(signature), resolve, param_names=False).signature

    def required_imports(self, signature: str, model: TypeModel) -> list[tuple[str, str]]:
        """``(path, qualifier)`` pairs needed to write *signature* outside *model*'s file."""
        qualifiers = [n.package for n in type_names(parse_type_expr(signature)) if isinstance(n, Qualified)]
        required = []
        for qualifier in dict.fromkeys(qualifiers):
            path = self._resolve_qualifier(qualifier, model, None)
            if path is not None:
                required.append((path, qualifier))
        return required

    def _resolve_qualifier(
        self,
        qualifier: str,
        model: TypeModel,
        counterpart: TypeModel | None,
    ) -> str | None:
        for spec in model.imports:
            if spec.alias == qualifier:
                return spec.path
        for spec in model.imports:
            if spec.alias is not None:
                continue
            if (
                counterpart is not None
                and counterpart.package == qualifier
                and spec.path == self.import_path(counterpart.path)
            ):
                return spec.path
            if default_package_name(spec.path) == qualifier:
                return spec.path
        return None

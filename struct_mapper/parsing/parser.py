"""Go declaration parser backed by the tree-sitter Go grammar.

Reads the package clause, import declarations and top-level type
declarations of a Go source file. Function, variable and constant
declarations are skipped without being interpreted.
"""

from __future__ import annotations

from functools import lru_cache

import tree_sitter_go
from tree_sitter import Language, Node, Parser

from struct_mapper.core.exceptions import SourceParseError
from struct_mapper.parsing.declarations import (
    AliasDecl,
    Approx,
    Array,
    Chan,
    ChanDir,
    FieldDecl,
    FuncType,
    Generic,
    Ident,
    ImportSpec,
    InterfaceType,
    MapDecl,
    MapType,
    Method,
    Param,
    ParsedFile,
    Pointer,
    Qualified,
    RecordDecl,
    Slice,
    StructType,
    TypeDecl,
    TypeExpr,
    Union,
)

GO_LANGUAGE = Language(tree_sitter_go.language())

# Node kinds that only wrap one or more constraint terms; the name depends on
# the grammar release.
_TERM_WRAPPERS = frozenset({"type_elem", "constraint_elem", "type_constraint"})
_METHOD_NODES = frozenset({"method_elem", "method_spec"})
_TYPE_PARAM_NODES = frozenset({"type_parameter_declaration", "parameter_declaration"})


class GoParser:
    """Parses Go source text into a ParsedFile."""

    def __init__(self) -> None:
        self._parser = Parser(GO_LANGUAGE)

    def parse(self, source: str | bytes, path: str = "<memory>") -> ParsedFile:
        if isinstance(source, str):
            source_bytes = source.encode("utf-8")
        else:
            try:
                source.decode("utf-8")
            except UnicodeDecodeError as e:
                raise SourceParseError(path, 0, f"file is not valid UTF-8: {e}") from e
            source_bytes = source
        root = self._parser.parse(source_bytes).root_node
        _check_syntax(root, source_bytes, path)
        return _TreeReader(source_bytes, path).read_file(root)

    def parse_type(self, signature: str) -> TypeExpr:
        """Parse a standalone type expression such as ``map[string]time.Time``."""
        prefix = b"package p\ntype _ "
        source_bytes = prefix + signature.encode("utf-8") + b"\n"
        root = self._parser.parse(source_bytes).root_node
        _check_syntax(root, source_bytes, "<type>")
        parsed = _TreeReader(source_bytes, "<type>").read_file(root)
        if len(parsed.declarations) != 1:
            raise SourceParseError("<type>", 1, f"not a single type expression: {signature!r}")
        decl = parsed.declarations[0]
        if isinstance(decl, RecordDecl):
            return StructType(decl.fields)
        if isinstance(decl, MapDecl):
            return MapType(decl.key, decl.value)
        return decl.target


@lru_cache(maxsize=4096)
def parse_type_expr(signature: str) -> TypeExpr:
    """Cached ``GoParser().parse_type``; safe to call from worker threads."""
    return GoParser().parse_type(signature)


def _check_syntax(root: Node, source_bytes: bytes, path: str) -> None:
    if not root.has_error:
        return
    node = _first_error(root)
    line = node.start_point[0] + 1
    if node.is_missing:
        raise SourceParseError(path, line, f"missing {node.type!r}")
    text = _node_text(node, source_bytes).strip().splitlines()
    near = text[0] if text else "end of file"
    raise SourceParseError(path, line, f"syntax error near {near!r}")


def _first_error(node: Node) -> Node:
    for child in node.children:
        if child.type == "ERROR" or child.is_missing:
            return child
        if child.has_error:
            return _first_error(child)
    return node


def _node_text(node: Node, source_bytes: bytes) -> str:
    return source_bytes[node.start_byte : node.end_byte].decode("utf-8", errors="ignore")


def _named(node: Node) -> list[Node]:
    return [child for child in node.named_children if child.type != "comment"]


class _TreeReader:
    def __init__(self, source_bytes: bytes, path: str) -> None:
        self._source = source_bytes
        self._path = path

    def _text(self, node: Node) -> str:
        return _node_text(node, self._source)

    def _unsupported(self, node: Node) -> SourceParseError:
        return SourceParseError(self._path, node.start_point[0] + 1, f"unsupported syntax: {node.type}")

    # ------------------------------------------------------------------
    # File level
    # ------------------------------------------------------------------

    def read_file(self, root: Node) -> ParsedFile:
        package = None
        imports: list[ImportSpec] = []
        declarations: list[TypeDecl] = []
        for child in _named(root):
            if child.type == "package_clause" and package is None:
                package = self._text(_named(child)[0])
            elif child.type == "import_declaration":
                imports.extend(self._imports(child))
            elif child.type == "type_declaration":
                declarations.extend(self._type_specs(child))
        if package is None:
            raise SourceParseError(self._path, 1, "expected 'package' clause")
        return ParsedFile(self._path, package, tuple(imports), tuple(declarations))

    def _imports(self, node: Node) -> list[ImportSpec]:
        specs = []
        for child in _named(node):
            if child.type == "import_spec_list":
                specs.extend(self._imports(child))
            elif child.type == "import_spec":
                name = child.child_by_field_name("name")
                path = self._text(child.child_by_field_name("path"))[1:-1]
                specs.append(ImportSpec(path, self._text(name) if name else None))
        return specs

    def _type_specs(self, node: Node) -> list[TypeDecl]:
        decls = []
        for child in _named(node):
            if child.type in ("type_spec", "type_alias"):
                decls.append(self._type_spec(child, is_alias=child.type == "type_alias"))
        return decls

    def _type_spec(self, node: Node, is_alias: bool) -> TypeDecl:
        name = self._text(node.child_by_field_name("name"))
        params = node.child_by_field_name("type_parameters")
        type_params = self._type_params(params) if params else ""
        type_node = node.child_by_field_name("type")
        if type_node.type == "struct_type":
            return RecordDecl(name, self._struct_fields(type_node), type_params, is_alias)
        target = self._type(type_node)
        if isinstance(target, MapType):
            return MapDecl(name, target.key, target.value, type_params, is_alias)
        return AliasDecl(name, target, type_params, is_alias)

    def _type_params(self, node: Node) -> str:
        groups = []
        for child in _named(node):
            if child.type not in _TYPE_PARAM_NODES:
                continue
            names = [self._text(n) for n in child.children_by_field_name("name")]
            constraint = self._type(child.child_by_field_name("type")).signature
            groups.append(f"{', '.join(names)} {constraint}")
        return ", ".join(groups)

    # ------------------------------------------------------------------
    # Type expressions
    # ------------------------------------------------------------------

    def _type(self, node: Node) -> TypeExpr:
        kind = node.type
        if kind == "type_identifier":
            return Ident(self._text(node))
        if kind == "qualified_type":
            return Qualified(
                self._text(node.child_by_field_name("package")),
                self._text(node.child_by_field_name("name")),
            )
        if kind == "generic_type":
            base = self._type(node.child_by_field_name("type"))
            if not isinstance(base, (Ident, Qualified)):
                raise self._unsupported(node)
            args = _named(node.child_by_field_name("type_arguments"))
            return Generic(base, tuple(self._type(a) for a in args))
        if kind == "pointer_type":
            return Pointer(self._type(_named(node)[0]))
        if kind == "slice_type":
            return Slice(self._type(node.child_by_field_name("element")))
        if kind == "array_type":
            length = " ".join(self._text(node.child_by_field_name("length")).split())
            return Array(length, self._type(node.child_by_field_name("element")))
        if kind == "map_type":
            return MapType(
                self._type(node.child_by_field_name("key")),
                self._type(node.child_by_field_name("value")),
            )
        if kind == "channel_type":
            return Chan(self._chan_direction(node), self._type(node.child_by_field_name("value")))
        if kind == "function_type":
            return self._func(node)
        if kind == "interface_type":
            return InterfaceType(tuple(self._interface_element(e) for e in _named(node)))
        if kind == "struct_type":
            return StructType(self._struct_fields(node))
        if kind == "parenthesized_type":
            return self._type(_named(node)[0])
        if kind == "negated_type":
            return Approx(self._type(_named(node)[0]))
        if kind in _TERM_WRAPPERS:
            terms = [self._type(t) for t in _named(node)]
            return terms[0] if len(terms) == 1 else Union(tuple(terms))
        raise self._unsupported(node)

    @staticmethod
    def _chan_direction(node: Node) -> ChanDir:
        tokens = [child.type for child in node.children if not child.is_named]
        if tokens and tokens[0] == "<-":
            return ChanDir.RECV
        if "<-" in tokens:
            return ChanDir.SEND
        return ChanDir.BOTH

    def _func(self, node: Node) -> FuncType:
        params = self._params(node.child_by_field_name("parameters"))
        result = node.child_by_field_name("result")
        if result is None:
            results: tuple[Param, ...] = ()
        elif result.type == "parameter_list":
            results = self._params(result)
        else:
            results = (Param((), self._type(result)),)
        return FuncType(params, results)

    def _params(self, node: Node) -> tuple[Param, ...]:
        params = []
        for child in _named(node):
            if child.type not in ("parameter_declaration", "variadic_parameter_declaration"):
                continue
            names = tuple(self._text(n) for n in child.children_by_field_name("name"))
            variadic = child.type == "variadic_parameter_declaration"
            params.append(Param(names, self._type(child.child_by_field_name("type")), variadic))
        return tuple(params)

    def _interface_element(self, node: Node) -> Method | TypeExpr:
        if node.type in _METHOD_NODES:
            return Method(self._text(node.child_by_field_name("name")), self._func(node))
        return self._type(node)

    def _struct_fields(self, node: Node) -> tuple[FieldDecl, ...]:
        fields = []
        for body in _named(node):
            if body.type != "field_declaration_list":
                continue
            for decl in _named(body):
                if decl.type == "field_declaration":
                    fields.append(self._field(decl))
        return tuple(fields)

    def _field(self, node: Node) -> FieldDecl:
        names = tuple(self._text(n) for n in node.children_by_field_name("name"))
        type_expr = self._type(node.child_by_field_name("type"))
        if not names and any(child.type == "*" for child in node.children):
            type_expr = Pointer(type_expr)
        tag = node.child_by_field_name("tag")
        return FieldDecl(names, type_expr, self._text(tag) if tag else None)

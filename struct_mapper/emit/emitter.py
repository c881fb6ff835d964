"""Go code emission.

Renders MatchPlans and map plugins as Go functions already laid out the
way gofmt prints them (tab indentation, one statement per line), and
assembles whole generated files.
"""

from __future__ import annotations

from collections.abc import Sequence

from struct_mapper.core.enums import ConversionKind, MapPlugin, Style
from struct_mapper.core.exceptions import UnknownPluginError
from struct_mapper.logging import get_logger
from struct_mapper.mapping.model import TypeModel
from struct_mapper.mapping.plan import ConvertStep, CopyStep, MatchPlan, SkipStep
from struct_mapper.mapping.qualify import ImportLine, QualifiedName

logger = get_logger(__name__)

_INDENT = "\t"
_UNTYPED = ("any", "interface{}")


class Emitter:
    """Renders conversion functions in one calling convention.

    Usage::

        emitter = Emitter(Style.POINTER)
        text = emitter.emit_mapping(plan, source, destination, QualifiedName("P"))
    """

    def __init__(self, style: Style = Style.VALUE) -> None:
        self.style = style

    # --- Struct mappings ---

    def emit_mapping(
        self,
        plan: MatchPlan,
        source: TypeModel,
        destination: TypeModel,
        qualified_source: QualifiedName | str,
    ) -> str:
        """Render ``From<Source>`` on the destination type."""
        receiver = "(*dest)" if destination.is_map_type and self.style is Style.POINTER else "dest"
        body: list[str] = []
        for step in plan.steps:
            if isinstance(step, SkipStep):
                continue
            body.extend(self._statement(step, receiver))

        lines = [self._signature(destination.name, f"From{source.name}", f"src {qualified_source}")]
        lines.extend(_indent(body))
        return self._close(lines)

    def _signature(self, type_name: str, method: str, params: str) -> str:
        if self.style is Style.POINTER:
            return f"func (dest *{type_name}) {method}({params}) {{"
        if self.style is Style.STANDALONE:
            return f"func {type_name}{method}(dest {type_name}, {params}) {type_name} {{"
        return f"func (dest {type_name}) {method}({params}) {type_name} {{"

    def _close(self, lines: list[str]) -> str:
        if self.style.returns_receiver:
            lines.append(f"{_INDENT}return dest")
        lines.append("}")
        return "\n".join(lines) + "\n"

    @staticmethod
    def _statement(step: CopyStep | ConvertStep, receiver: str) -> list[str]:
        if isinstance(step, CopyStep):
            return [f"dest.{step.destination} = src.{step.source}"]
        if step.kind is ConversionKind.CAST:
            return [f"dest.{step.destination} = {step.type}(src.{step.source})"]
        if step.kind is ConversionKind.MAP_EXTRACT:
            return _guarded_assertion(f'src["{step.source}"]', step.type or "any", f"dest.{step.destination}")
        if step.kind is ConversionKind.MAP_INSERT:
            return [f'{receiver}["{step.destination}"] = src.{step.source}']
        if step.kind is ConversionKind.MAP_MERGE:
            return _range_copy("src", receiver, step.type)
        raise ValueError(f"unsupported conversion kind {step.kind!r}")

    # --- Map plugins ---

    def emit_map_plugin(self, model: TypeModel, plugin: MapPlugin | str) -> str:
        """Render ``ToMap`` or ``FromMap`` for *model*.

        Raises:
            UnknownPluginError: If *plugin* names neither converter.
        """
        try:
            plugin = MapPlugin(plugin)
        except ValueError as exc:
            raise UnknownPluginError(str(plugin)) from exc

        if plugin is MapPlugin.TO_MAP:
            return self._to_map(model)
        return self._from_map(model)

    def _to_map(self, model: TypeModel) -> str:
        if self.style is Style.STANDALONE:
            lines = [f"func {model.name}ToMap(dest {model.name}) map[string]any {{"]
        elif self.style is Style.POINTER:
            lines = [f"func (dest *{model.name}) ToMap() map[string]any {{"]
        else:
            lines = [f"func (dest {model.name}) ToMap() map[string]any {{"]

        body = ["result := make(map[string]any)"]
        if model.is_map_type:
            if (model.map_key or "string") == "string":
                source = "*dest" if self.style is Style.POINTER else "dest"
                body.extend(_range_copy(source, "result", None))
            else:
                logger.warning("%s.ToMap copies nothing: keys of type %s are not strings", model.name, model.map_key)
        else:
            body.extend(f'result["{f.name}"] = dest.{f.name}' for f in model.fields if f.exported)
        body.append("return result")

        lines.extend(_indent(body))
        lines.append("}")
        return "\n".join(lines) + "\n"

    def _from_map(self, model: TypeModel) -> str:
        lines = [self._signature(model.name, "FromMap", "src map[string]any")]
        body: list[str] = []
        if model.is_map_type:
            if (model.map_key or "string") in ("string", *_UNTYPED):
                receiver = "(*dest)" if self.style is Style.POINTER else "dest"
                value = model.map_value or "any"
                body.extend(_range_copy("src", receiver, None if value in _UNTYPED else value))
            else:
                logger.warning("%s.FromMap copies nothing: keys of type %s are not strings", model.name, model.map_key)
        else:
            for f in model.fields:
                if f.exported:
                    body.extend(_guarded_assertion(f'src["{f.name}"]', f.type, f"dest.{f.name}"))
        lines.extend(_indent(body))
        return self._close(lines)

    @staticmethod
    def from_map_assertions(model: TypeModel) -> list[str]:
        """Types ``FromMap`` asserts map values to; they must be importable."""
        if not model.is_map_type:
            return [f.type for f in model.fields if f.exported]
        value = model.map_value or "any"
        key_accepts_strings = (model.map_key or "string") in ("string", *_UNTYPED)
        return [value] if key_accepts_strings and value not in _UNTYPED else []

    # --- Files ---

    @staticmethod
    def emit_file(
        package: str,
        imports: Sequence[ImportLine],
        functions: Sequence[str],
        header: Sequence[str] = (),
    ) -> str:
        """Assemble a complete Go source file."""
        parts: list[str] = []
        if header:
            parts.append("\n".join(header) + "\n\n")
        parts.append(f"package {package}\n")
        if imports:
            parts.append("\nimport (\n")
            parts.extend(f"{_INDENT}{line.render()}\n" for line in imports)
            parts.append(")\n")
        for function in functions:
            parts.append("\n" + function)
        return "".join(parts)


def _guarded_assertion(expression: str, type_name: str, target: str) -> list[str]:
    return [
        f"if v, ok := {expression}.({type_name}); ok {{",
        f"{_INDENT}{target} = v",
        "}",
    ]


def _range_copy(source: str, target: str, asserted: str | None) -> list[str]:
    if asserted is None:
        return [f"for k, v := range {source} {{", f"{_INDENT}{target}[k] = v", "}"]
    return [
        f"for k, v := range {source} {{",
        f"{_INDENT}if t, ok := v.({asserted}); ok {{",
        f"{_INDENT}{_INDENT}{target}[k] = t",
        f"{_INDENT}}}",
        "}",
    ]


def _indent(lines: list[str]) -> list[str]:
    return [f"{_INDENT}{line}" for line in lines]

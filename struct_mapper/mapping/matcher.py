"""Field matching.

Resolves every destination field to at most one source field and decides
how it is filled. Precedence per destination field:

1. ignored by configuration
2. unexported while the two types live in different directories
3. map-shaped source: guarded extraction by key (string-keyed maps only)
4. exact name, then configured alias
5. no source field: unmatched (embedded destination records are flattened
   against the source first)
6. both sides nested records: matched member by member
7. equivalent type: copy
8. convertible basic kinds: cast
9. otherwise incompatible
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence

from struct_mapper.core.enums import ConversionKind, SkipReason
from struct_mapper.logging import get_logger
from struct_mapper.mapping.conversions import ConversionTable
from struct_mapper.mapping.model import Field, TypeModel
from struct_mapper.mapping.plan import ConvertStep, CopyStep, MatchPlan, PlanStep, SkipStep
from struct_mapper.mapping.qualify import TypeEquivalence

logger = get_logger(__name__)

_UNTYPED_VALUES = frozenset({"any", "interface{}"})
# Map keys a field name can be stored under or looked up by.
_NAME_KEYS = _UNTYPED_VALUES | {"string"}


class SourceIndex:
    """Name lookup over source fields, including promoted fields.

    Top-level fields always win. A name promoted from embedded records
    resolves to the shallowest occurrence; a name found twice at the same
    depth is ambiguous and not matchable, as in Go selector rules.
    """

    def __init__(self, fields: Sequence[Field], prefix: str = "") -> None:
        self.fields = tuple(fields)
        self.prefix = prefix
        self._entries: dict[str, tuple[str, Field]] = {}
        self._build()

    def _build(self) -> None:
        level: list[tuple[str, Field]] = [(self.prefix + f.name, f) for f in self.fields]
        seen: set[str] = set()
        while level:
            counts: dict[str, int] = {}
            for _, f in level:
                counts[f.name] = counts.get(f.name, 0) + 1
            for path, f in level:
                if f.name in seen:
                    continue
                if counts[f.name] == 1:
                    self._entries[f.name] = (path, f)
            seen.update(counts)

            deeper: list[tuple[str, Field]] = []
            for path, f in level:
                if f.embedded and f.children:
                    deeper.extend((f"{path}.{child.name}", child) for child in f.children)
            level = deeper

    def lookup(self, name: str) -> tuple[str, Field] | None:
        """Return ``(dotted path, field)`` for *name*, or None."""
        return self._entries.get(name)

    def __contains__(self, name: object) -> bool:
        return name in self._entries


class FieldMatcher:
    """Builds MatchPlans.

    Args:
        table: Convertibility table for basic kinds.
        equivalence: Predicate deciding whether a source type and a
            destination type denote the same type; defaults to verbatim
            signature equality.
    """

    def __init__(
        self,
        table: ConversionTable | None = None,
        equivalence: TypeEquivalence | None = None,
    ) -> None:
        self._table = table or ConversionTable.default()
        self._equivalent = equivalence or (lambda s, d: s == d)

    def plan(
        self,
        source: TypeModel,
        destination: TypeModel,
        *,
        ignored: Iterable[str] = (),
        aliases: Mapping[str, str] | None = None,
        same_scope: bool = True,
    ) -> MatchPlan:
        """Plan the conversion of *source* into *destination*."""
        ignored = frozenset(ignored)
        aliases = dict(aliases or {})
        if destination.is_map_type:
            if source.is_map_type:
                return MatchPlan((self._merge_step(source, destination),))
            if (destination.map_key or "string") not in _NAME_KEYS:
                return self._unkeyed(destination, source.fields)
            return self._insert_plan(source, ignored=ignored, aliases=aliases, same_scope=same_scope)
        if source.is_map_type and (source.map_key or "string") not in _NAME_KEYS:
            return self._unkeyed(source, destination.fields)
        return self.match(
            destination.fields,
            SourceIndex(source.fields),
            ignored=ignored,
            aliases=aliases,
            same_scope=same_scope,
            source_is_map=source.is_map_type,
        )

    def match(
        self,
        destination_fields: Sequence[Field],
        source_index: SourceIndex,
        *,
        ignored: Iterable[str] = (),
        aliases: Mapping[str, str] | None = None,
        same_scope: bool = True,
        source_is_map: bool = False,
    ) -> MatchPlan:
        """Resolve *destination_fields* against *source_index*, in destination order."""
        steps = self._match(
            destination_fields,
            source_index,
            ignored=frozenset(ignored),
            aliases=dict(aliases or {}),
            same_scope=same_scope,
            source_is_map=source_is_map,
            prefix="",
        )
        return MatchPlan(tuple(steps))

    def _match(
        self,
        destination_fields: Sequence[Field],
        source_index: SourceIndex,
        *,
        ignored: frozenset[str],
        aliases: dict[str, str],
        same_scope: bool,
        source_is_map: bool,
        prefix: str,
    ) -> list[PlanStep]:
        steps: list[PlanStep] = []
        for field in destination_fields:
            path = prefix + field.name

            if field.name in ignored or path in ignored:
                steps.append(self._skip(path, SkipReason.IGNORED))
                continue
            if field.name == "_" or (not field.exported and not same_scope):
                steps.append(self._skip(path, SkipReason.UNEXPORTED))
                continue

            if source_is_map:
                key = aliases.get(path, aliases.get(field.name, field.name))
                steps.append(ConvertStep(path, key, ConversionKind.MAP_EXTRACT, field.type))
                continue

            hit = source_index.lookup(field.name)
            if hit is None:
                alias = aliases.get(path, aliases.get(field.name))
                if alias is not None:
                    hit = source_index.lookup(alias)

            if hit is None:
                if field.embedded and field.children:
                    steps.extend(
                        self._match(
                            field.children,
                            source_index,
                            ignored=ignored,
                            aliases=aliases,
                            same_scope=same_scope,
                            source_is_map=False,
                            prefix=f"{path}.",
                        )
                    )
                else:
                    steps.append(self._skip(path, SkipReason.UNMATCHED))
                continue

            source_path, source_field = hit
            if (
                field.children is not None
                and source_field.children is not None
                and (field.anonymous or source_field.anonymous or not self._equivalent(source_field.type, field.type))
            ):
                steps.extend(
                    self._match(
                        field.children,
                        SourceIndex(source_field.children, prefix=f"{source_path}."),
                        ignored=ignored,
                        aliases=aliases,
                        same_scope=same_scope,
                        source_is_map=False,
                        prefix=f"{path}.",
                    )
                )
                continue

            if self._equivalent(source_field.type, field.type):
                steps.append(CopyStep(path, source_path))
            elif self._table.can_convert(source_field.type, field.type):
                steps.append(ConvertStep(path, source_path, ConversionKind.CAST, field.type))
            else:
                logger.warning(
                    "skipping field %s: type %s cannot be assigned from %s (%s)",
                    path,
                    field.type,
                    source_path,
                    source_field.type,
                )
                steps.append(SkipStep(path, SkipReason.INCOMPATIBLE))
        return steps

    def _insert_plan(
        self,
        source: TypeModel,
        *,
        ignored: frozenset[str],
        aliases: dict[str, str],
        same_scope: bool,
    ) -> MatchPlan:
        # Keys are destination names, so aliases are applied in reverse.
        keys = {src: dst for dst, src in aliases.items()}
        steps: list[PlanStep] = []
        for field in source.fields:
            key = keys.get(field.name, field.name)
            if field.name in ignored or key in ignored:
                steps.append(self._skip(key, SkipReason.IGNORED))
            elif field.name == "_" or (not field.exported and not same_scope):
                steps.append(self._skip(key, SkipReason.UNEXPORTED))
            else:
                steps.append(ConvertStep(key, field.name, ConversionKind.MAP_INSERT))
        return MatchPlan(tuple(steps))

    def _merge_step(self, source: TypeModel, destination: TypeModel) -> PlanStep:
        key = destination.map_key or "string"
        source_key = source.map_key or "string"
        if key not in _UNTYPED_VALUES and not self._equivalent(source_key, key):
            logger.warning("skipping map merge: keys of type %s cannot be assigned from %s", key, source_key)
            return SkipStep("", SkipReason.INCOMPATIBLE)
        value = destination.map_value or "any"
        source_value = source.map_value or "any"
        if value in _UNTYPED_VALUES or self._equivalent(source_value, value):
            return ConvertStep("", "", ConversionKind.MAP_MERGE)
        if source_value in _UNTYPED_VALUES:
            return ConvertStep("", "", ConversionKind.MAP_MERGE, value)
        logger.warning("skipping map merge: values of type %s cannot be assigned from %s", value, source_value)
        return SkipStep("", SkipReason.INCOMPATIBLE)

    @staticmethod
    def _unkeyed(model: TypeModel, fields: Sequence[Field]) -> MatchPlan:
        logger.warning("skipping %s: map keys of type %s cannot hold field names", model.name, model.map_key)
        return MatchPlan(tuple(SkipStep(f.name, SkipReason.INCOMPATIBLE) for f in fields))

    @staticmethod
    def _skip(path: str, reason: SkipReason) -> SkipStep:
        logger.debug("skipping field %s (%s)", path, reason.value)
        return SkipStep(path, reason)

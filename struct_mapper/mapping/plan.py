"""Match plan data classes.

Frozen dataclasses describing, per destination field, how it is filled.
A MatchPlan is fully resolved before any source text is rendered.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from struct_mapper.core.enums import ConversionKind, SkipReason


@dataclass(frozen=True)
class CopyStep:
    """Direct assignment ``dest.<destination> = src.<source>``."""

    destination: str  # dotted path below dest
    source: str  # dotted path below src


@dataclass(frozen=True)
class ConvertStep:
    """Assignment through a conversion.

    ``type`` is the Go type the conversion targets: the cast type for CAST,
    the asserted type for MAP_EXTRACT, and the asserted value type for
    MAP_MERGE (``None`` when values are assigned without assertion).
    """

    destination: str
    source: str
    kind: ConversionKind
    type: str | None = None


@dataclass(frozen=True)
class SkipStep:
    """Destination field left untouched."""

    destination: str
    reason: SkipReason


PlanStep = CopyStep | ConvertStep | SkipStep


@dataclass(frozen=True)
class MatchPlan:
    """Resolved decision list in destination-field order."""

    steps: tuple[PlanStep, ...] = field(default_factory=tuple)

    @property
    def assignments(self) -> list[CopyStep | ConvertStep]:
        return [s for s in self.steps if not isinstance(s, SkipStep)]

    @property
    def copies(self) -> list[CopyStep]:
        return [s for s in self.steps if isinstance(s, CopyStep)]

    @property
    def conversions(self) -> list[ConvertStep]:
        return [s for s in self.steps if isinstance(s, ConvertStep)]

    @property
    def skips(self) -> list[SkipStep]:
        return [s for s in self.steps if isinstance(s, SkipStep)]

    def step_for(self, destination: str) -> PlanStep | None:
        for step in self.steps:
            if step.destination == destination:
                return step
        return None

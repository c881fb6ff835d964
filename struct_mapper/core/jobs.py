"""Mapping jobs and their grouping into work groups.

A work group collects every job rendering into the same output directory,
so one group yields exactly one generated file.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field

from struct_mapper.core.config import Config
from struct_mapper.mapping.qualify import directory_of


@dataclass(frozen=True)
class MappingSpec:
    """Convert ``source_name`` (in ``source_path``) into ``destination_name``."""

    source_name: str
    source_path: str
    destination_name: str
    destination_path: str
    ignored_fields: frozenset[str] = frozenset()
    field_aliases: Mapping[str, str] = field(default_factory=dict, hash=False)  # destination -> source

    @property
    def output_dir(self) -> str:
        return directory_of(self.destination_path)


@dataclass(frozen=True)
class MapPluginSpec:
    """Generate a ToMap or FromMap converter for one type."""

    type_name: str
    path: str
    plugin: str

    @property
    def output_dir(self) -> str:
        return directory_of(self.path)


Job = MappingSpec | MapPluginSpec


@dataclass(frozen=True)
class WorkGroup:
    """Jobs sharing one output directory."""

    path: str
    jobs: tuple[Job, ...] = ()

    def __len__(self) -> int:
        return len(self.jobs)


def build_jobs(config: Config) -> list[Job]:
    """Expand every mapping entry into one job per destination and per plugin."""
    jobs: list[Job] = []
    for mapping in config.mappings:
        for destination in mapping.destinations:
            jobs.append(
                MappingSpec(
                    source_name=mapping.source.name,
                    source_path=mapping.source.path,
                    destination_name=destination.name,
                    destination_path=destination.path,
                    ignored_fields=frozenset(destination.ignored_fields),
                    field_aliases=dict(destination.fields_map),
                )
            )
        for plugin in mapping.plugins:
            jobs.append(MapPluginSpec(mapping.source.name, mapping.source.path, plugin))
    return jobs


def group_jobs(jobs: Iterable[Job]) -> list[WorkGroup]:
    """Group jobs by output directory, keeping first-seen order."""
    grouped: dict[str, list[Job]] = {}
    for job in jobs:
        grouped.setdefault(job.output_dir, []).append(job)
    return [WorkGroup(path, tuple(members)) for path, members in grouped.items()]

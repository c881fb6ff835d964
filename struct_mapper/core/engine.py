"""Generation engine.

The Engine turns one WorkGroup into one GeneratedArtifact: it extracts the
type models of every job from the SourceRegistry, plans and renders each
conversion, and assembles a single file with one shared import block.
"""

from __future__ import annotations

import posixpath
from dataclasses import dataclass, field
from datetime import datetime, timezone
from importlib import metadata
from pathlib import Path

from struct_mapper.core.config import Config, GenSettings
from struct_mapper.core.enums import ConversionKind, MapPlugin, Style
from struct_mapper.core.exceptions import NoWorkError, RenderFormatError, UnsupportedJobShapeError
from struct_mapper.core.jobs import MappingSpec, MapPluginSpec, WorkGroup, build_jobs, group_jobs
from struct_mapper.core.registry import SourceRegistry
from struct_mapper.emit.emitter import Emitter
from struct_mapper.emit.formatter import CanonicalFormatter, SourceFormatter
from struct_mapper.logging import get_logger
from struct_mapper.mapping.conversions import ConversionTable
from struct_mapper.mapping.extractor import TypeModelExtractor
from struct_mapper.mapping.matcher import FieldMatcher
from struct_mapper.mapping.model import TypeModel
from struct_mapper.mapping.plan import MatchPlan
from struct_mapper.mapping.qualify import ImportSet, QualificationResolver

logger = get_logger(__name__)

DEFAULT_FILE_NAME = "mapper_gen.go"


def package_version() -> str:
    """Installed distribution version, ``"dev"`` when running from a checkout."""
    try:
        return metadata.version("struct-mapper")
    except metadata.PackageNotFoundError:
        return "dev"


@dataclass(frozen=True)
class GeneratorOptions:
    """Everything the engine needs besides the sources."""

    style: Style = Style.VALUE
    module: str = ""
    path_from_module: str = ""
    conversions: ConversionTable = field(default_factory=ConversionTable.default)
    file_name: str = DEFAULT_FILE_NAME
    header: bool = True
    version: str = "dev"
    generated_at: datetime | None = None

    @classmethod
    def from_settings(
        cls,
        settings: GenSettings,
        *,
        header: bool = True,
        version: str | None = None,
        generated_at: datetime | None = None,
    ) -> GeneratorOptions:
        conversions = (
            ConversionTable.from_mapping(settings.conversions)
            if settings.conversions is not None
            else ConversionTable.default()
        )
        return cls(
            style=Style.parse(settings.style),
            module=settings.module,
            path_from_module=settings.path_from_module,
            conversions=conversions,
            file_name=settings.file_name,
            header=header,
            version=version or package_version(),
            generated_at=generated_at or datetime.now(timezone.utc),
        )

    def header_lines(self) -> list[str]:
        if not self.header:
            return []
        stamp = (self.generated_at or datetime.now(timezone.utc)).isoformat(timespec="seconds")
        return [
            "// Code generated by struct-mapper; DO NOT EDIT.",
            f"// Generated at: {stamp.replace('+00:00', 'Z')}",
            f"// struct-mapper version: {self.version}",
        ]


@dataclass(frozen=True)
class GeneratedArtifact:
    """Content of one generated file; ``path`` is relative to the config directory."""

    path: str
    content: bytes
    warnings: tuple[str, ...] = ()


class Engine:
    """Processes work groups.

    The engine holds no per-group state, so a single instance may serve
    several workers at once.
    """

    def __init__(
        self,
        registry: SourceRegistry,
        options: GeneratorOptions | None = None,
        formatter: SourceFormatter | None = None,
    ) -> None:
        self._registry = registry
        self._options = options or GeneratorOptions()
        self._formatter = formatter or CanonicalFormatter()
        self._extractor = TypeModelExtractor()
        self._resolver = QualificationResolver(self._options.module, self._options.path_from_module)
        self._emitter = Emitter(self._options.style)
        self._header = self._options.header_lines()

    @classmethod
    def from_config(
        cls,
        config: Config,
        root_dir: Path | str,
        *,
        formatter: SourceFormatter | None = None,
        header: bool = True,
    ) -> Engine:
        """Create an Engine loading every file the configuration references.

        Args:
            config: Validated configuration.
            root_dir: Directory the configured paths are relative to.
        """
        registry = SourceRegistry(root_dir, config.source_paths)
        options = GeneratorOptions.from_settings(config.settings, header=header)
        return cls(registry, options, formatter)

    @staticmethod
    def groups(config: Config) -> list[WorkGroup]:
        return group_jobs(build_jobs(config))

    @property
    def options(self) -> GeneratorOptions:
        return self._options

    def process(self, group: WorkGroup) -> GeneratedArtifact:
        """Render every job of *group* into one file.

        Raises:
            NoWorkError: If the group has no jobs.
            UnsupportedJobShapeError: If a job is of an unknown kind.
            TypeNotFoundError: If a configured type is not declared.
            UnknownPluginError: If a plugin name is not recognised.
        """
        if not group.jobs:
            raise NoWorkError(group.path)

        imports = ImportSet()
        functions: list[str] = []
        package = ""
        for job in group.jobs:
            if isinstance(job, MappingSpec):
                destination_package, function = self._render_mapping(job, imports)
            elif isinstance(job, MapPluginSpec):
                destination_package, function = self._render_plugin(job, imports)
            else:
                raise UnsupportedJobShapeError(job)
            package = package or destination_package
            functions.append(function)

        text = self._emitter.emit_file(package, imports.lines(), functions, self._header)
        warnings: tuple[str, ...] = ()
        try:
            text = self._formatter.format(text)
        except RenderFormatError as e:
            logger.warning("internal error: %s", e)
            logger.warning("compile the package to analyze the error")
            warnings = (str(e),)

        path = posixpath.join(group.path, self._options.file_name) if group.path != "." else self._options.file_name
        return GeneratedArtifact(path=path, content=text.encode("utf-8"), warnings=warnings)

    def _render_mapping(self, job: MappingSpec, imports: ImportSet) -> tuple[str, str]:
        source = self._extractor.extract(self._registry.get(job.source_path), job.source_name)
        destination = self._extractor.extract(self._registry.get(job.destination_path), job.destination_name)

        same_scope = self._resolver.same_scope(source.path, destination.path)
        matcher = FieldMatcher(self._options.conversions, self._resolver.equivalence(source, destination))
        plan = matcher.plan(
            source,
            destination,
            ignored=job.ignored_fields,
            aliases=job.field_aliases,
            same_scope=same_scope,
        )
        qualified = self._resolver.qualify(source, destination.path, imports)
        self._import_asserted_types(plan, destination, imports)
        logger.debug(
            "%s.From%s: %d assignments, %d skipped",
            destination.name,
            source.name,
            len(plan.assignments),
            len(plan.skips),
        )
        return destination.package, self._emitter.emit_mapping(plan, source, destination, qualified)

    def _render_plugin(self, job: MapPluginSpec, imports: ImportSet) -> tuple[str, str]:
        model = self._extractor.extract(self._registry.get(job.path), job.type_name)
        function = self._emitter.emit_map_plugin(model, job.plugin)
        if job.plugin == MapPlugin.FROM_MAP.value:
            for signature in self._emitter.from_map_assertions(model):
                self._require_imports(signature, model, imports)
        return model.package, function

    def _import_asserted_types(self, plan: MatchPlan, destination: TypeModel, imports: ImportSet) -> None:
        for step in plan.conversions:
            if step.kind in (ConversionKind.MAP_EXTRACT, ConversionKind.MAP_MERGE) and step.type:
                self._require_imports(step.type, destination, imports)

    def _require_imports(self, signature: str, model: TypeModel, imports: ImportSet) -> None:
        # Types are written as they appear in the model's own file, so its
        # own import names must be reused.
        for path, qualifier in self._resolver.required_imports(signature, model):
            if not imports.add_exact(path, qualifier):
                logger.warning(
                    "import %s of %s clashes with another import in the generated file", qualifier, path
                )

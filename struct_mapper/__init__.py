"""struct-mapper - declarative struct-to-struct conversion generator for Go."""

from __future__ import annotations

from struct_mapper.core.config import Config, build_config_schema, load_config
from struct_mapper.core.engine import Engine, GeneratedArtifact, GeneratorOptions, package_version
from struct_mapper.core.enums import ConversionKind, MapPlugin, SkipReason, Style
from struct_mapper.core.exceptions import (
    ConfigError,
    GenerationError,
    MappingError,
    NoWorkError,
    PersistenceError,
    RenderFormatError,
    SourceError,
    SourceNotFoundError,
    SourceParseError,
    StructMapperError,
    TypeNotFoundError,
    UnknownPluginError,
    UnsupportedJobShapeError,
)
from struct_mapper.core.jobs import MappingSpec, MapPluginSpec, WorkGroup
from struct_mapper.core.registry import SourceRegistry
from struct_mapper.core.scheduler import BatchResult, JobError, Scheduler
from struct_mapper.core.writer import ArtifactWriter
from struct_mapper.mapping.matcher import FieldMatcher
from struct_mapper.mapping.extractor import TypeModelExtractor

__version__ = package_version()

__all__ = [
    # Configuration
    "Config",
    "load_config",
    "build_config_schema",
    # Generation
    "Engine",
    "GeneratorOptions",
    "GeneratedArtifact",
    "SourceRegistry",
    "TypeModelExtractor",
    "FieldMatcher",
    # Jobs
    "MappingSpec",
    "MapPluginSpec",
    "WorkGroup",
    # Scheduling
    "Scheduler",
    "BatchResult",
    "JobError",
    "ArtifactWriter",
    # Enums
    "Style",
    "MapPlugin",
    "ConversionKind",
    "SkipReason",
    # Exceptions
    "StructMapperError",
    "ConfigError",
    "SourceError",
    "SourceNotFoundError",
    "SourceParseError",
    "MappingError",
    "TypeNotFoundError",
    "GenerationError",
    "NoWorkError",
    "UnsupportedJobShapeError",
    "UnknownPluginError",
    "RenderFormatError",
    "PersistenceError",
]

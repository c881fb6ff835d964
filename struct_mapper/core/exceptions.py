"""StructMapper exception hierarchy.

Every failure surfaced by the generator is a StructMapperError. Per-group
errors travel on the scheduler's error stream; configuration, source and
persistence errors are fatal to the run.
"""

from __future__ import annotations

from typing import Any


class StructMapperError(Exception):
    """Base exception for all StructMapper errors."""


# --- Configuration ---


class ConfigError(StructMapperError):
    """Raised when the mapping configuration is missing or malformed."""


# --- Sources ---


class SourceError(StructMapperError):
    """Base for source file errors."""


class SourceNotFoundError(SourceError):
    """Raised when a source file was not loaded into the registry."""

    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(f"Source file not loaded: '{path}'")


class SourceParseError(SourceError):
    """Raised when a Go source file cannot be parsed."""

    def __init__(self, path: str, line: int, detail: str) -> None:
        self.path = path
        self.line = line
        self.detail = detail
        super().__init__(f"{path}:{line}: {detail}")


# --- Mapping ---


class MappingError(StructMapperError):
    """Base for type resolution errors."""


class TypeNotFoundError(MappingError):
    """Raised when a configured type name is not declared in its file."""

    def __init__(self, type_name: str, path: str = "") -> None:
        self.type_name = type_name
        self.path = path
        location = f" in {path}" if path else ""
        super().__init__(f"type({type_name}): specified type not found{location}")


# --- Generation ---


class GenerationError(StructMapperError):
    """Base for errors raised while rendering a work group."""


class NoWorkError(GenerationError):
    """Raised when a work group contains no jobs."""

    def __init__(self, group_path: str) -> None:
        self.group_path = group_path
        super().__init__(f"No work to process for '{group_path}'")


class UnsupportedJobShapeError(GenerationError):
    """Raised when a job is neither a struct mapping nor a map plugin request."""

    def __init__(self, job: Any) -> None:
        self.job = job
        super().__init__(f"Unsupported job type: {type(job).__name__}")


class UnknownPluginError(GenerationError):
    """Raised for a plugin name other than ToMap or FromMap."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Unknown map plugin '{name}' (expected 'ToMap' or 'FromMap')")


class RenderFormatError(GenerationError):
    """Raised when generated source cannot be pretty-printed."""

    def __init__(self, detail: str) -> None:
        self.detail = detail
        super().__init__(f"Invalid Go generated: {detail}")


# --- Persistence ---


class PersistenceError(StructMapperError):
    """Raised when an artifact cannot be written to disk."""

    def __init__(self, path: str, detail: str) -> None:
        self.path = path
        self.detail = detail
        super().__init__(f"Failed to write '{path}': {detail}")

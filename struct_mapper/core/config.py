"""Mapping configuration.

The configuration file is TOML; its shape is described by the Pydantic
models below, which also provide the JSON Schema exported for editors::

    [settings]
    style = "pointer"
    module = "github.com/acme/shop"

    [[mappings]]
    source = { name = "UserRow", path = "db/user.go" }
    plugins = ["ToMap"]

    [[mappings.destination]]
    name = "User"
    path = "domain/user.go"
    ignore = ["Password"]
    map = { FullName = "Name" }
"""

from __future__ import annotations

import tomllib
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from struct_mapper.core.exceptions import ConfigError

SCHEMA_DIALECT = "https://json-schema.org/draft/2020-12/schema"


class GenSettings(BaseModel):
    """Global generator settings."""

    style: Literal["pointer", "value", "standalone", ""] = ""
    module: str
    path_from_module: str = ""
    conversions: dict[str, list[str]] | None = None
    file_name: str = "mapper_gen.go"

    @field_validator("module")
    @classmethod
    def _module_required(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("module must be specified in config")
        return value

    @field_validator("file_name")
    @classmethod
    def _plain_file_name(cls, value: str) -> str:
        if not value or "/" in value or "\\" in value:
            raise ValueError("file_name must be a bare file name")
        return value


class MappingSettings(BaseModel):
    """Per-mapping settings. ``override`` is accepted but has no effect yet."""

    override: bool = False


class SourceConfig(BaseModel):
    name: str
    path: str


class DestinationConfig(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: str
    path: str
    ignored_fields: list[str] = Field(default_factory=list, alias="ignore")
    fields_map: dict[str, str] = Field(default_factory=dict, alias="map")


class MappingConfig(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    settings: MappingSettings = Field(default_factory=MappingSettings)
    source: SourceConfig
    destinations: list[DestinationConfig] = Field(default_factory=list, alias="destination")
    plugins: list[str] = Field(default_factory=list)


class Config(BaseModel):
    """Root of the configuration file."""

    mappings: list[MappingConfig] = Field(default_factory=list)
    settings: GenSettings

    @property
    def source_paths(self) -> list[str]:
        """Every Go file referenced by a mapping, in first-seen order."""
        paths: dict[str, None] = {}
        for mapping in self.mappings:
            paths[mapping.source.path] = None
            for destination in mapping.destinations:
                paths[destination.path] = None
        return list(paths)


def parse_config(data: Mapping[str, Any], origin: str = "<config>") -> Config:
    """Validate already-decoded configuration data.

    Raises:
        ConfigError: If the data does not match the configuration shape.
    """
    try:
        return Config.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration in '{origin}': {e}") from e


def load_config(path: Path | str) -> Config:
    """Read and validate a TOML configuration file.

    Raises:
        ConfigError: If the file cannot be read, is not valid TOML or does
            not match the configuration shape.
    """
    path = Path(path)
    try:
        data = tomllib.loads(path.read_text(encoding="utf-8"))
    except OSError as e:
        raise ConfigError(f"Cannot read configuration '{path}': {e}") from e
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Invalid TOML in '{path}': {e}") from e
    return parse_config(data, str(path))


def build_config_schema() -> dict[str, Any]:
    """JSON Schema of the configuration file, keyed by TOML names."""
    schema = Config.model_json_schema(by_alias=True)
    return {"$schema": SCHEMA_DIALECT, **schema}

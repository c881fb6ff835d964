"""Shared test fixtures."""

from __future__ import annotations

import logging
import textwrap
from pathlib import Path

import pytest

from struct_mapper.core.engine import Engine, GeneratorOptions
from struct_mapper.core.enums import Style
from struct_mapper.core.registry import SourceRegistry
from struct_mapper.emit.formatter import CanonicalFormatter
from struct_mapper.parsing.declarations import ParsedFile
from struct_mapper.parsing.parser import GoParser


@pytest.fixture(autouse=True)
def reset_logging():
    """Undo configure_logging() so caplog keeps seeing struct_mapper records."""
    yield
    logger = logging.getLogger("struct_mapper")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.propagate = True
    logger.setLevel(logging.NOTSET)


@pytest.fixture
def tmp_project(tmp_path: Path) -> Path:
    """Temporary directory standing in for a Go module."""
    return tmp_path / "project"


@pytest.fixture
def write_go(tmp_project: Path):
    """Helper to write Go files into the temp project.

    Usage:
        write_go("models/user.go", "package models\\n\\ntype User struct{}")
    """

    def _write(relative_path: str, content: str) -> Path:
        file_path = tmp_project / relative_path
        file_path.parent.mkdir(parents=True, exist_ok=True)
        file_path.write_text(textwrap.dedent(content).lstrip(), encoding="utf-8")
        return file_path

    return _write


@pytest.fixture
def parse_go():
    """Parse Go source text held in memory.

    Usage:
        parsed = parse_go("package p\\ntype P struct{ A int }", "p.go")
    """
    parser = GoParser()

    def _parse(source: str, path: str = "p.go") -> ParsedFile:
        return parser.parse(textwrap.dedent(source), path)

    return _parse


@pytest.fixture
def make_engine():
    """Build an Engine over in-memory sources, without header and gofmt.

    Usage:
        engine = make_engine({"p.go": "package p ..."}, style=Style.POINTER)
    """

    def _make(sources: dict[str, str], **options) -> Engine:
        options.setdefault("style", Style.VALUE)
        options.setdefault("header", False)
        registry = SourceRegistry.from_sources({p: textwrap.dedent(s) for p, s in sources.items()})
        return Engine(registry, GeneratorOptions(**options), CanonicalFormatter())

    return _make

"""Source Registry - loads and parses the Go files named by a configuration.

Paths are kept as written in the configuration (forward slashes, relative
to the configuration directory) and double as keys:

    db/user.go      -> ParsedFile(package="db", ...)
"""

from __future__ import annotations

import posixpath
from collections.abc import Iterable, Mapping
from pathlib import Path

from struct_mapper.core.exceptions import SourceNotFoundError
from struct_mapper.parsing.declarations import ParsedFile
from struct_mapper.parsing.parser import GoParser
from struct_mapper.parsing.protocol import SourceParser


def normalize_path(path: str) -> str:
    return posixpath.normpath(path.replace("\\", "/"))


class SourceRegistry:
    """Parses every referenced Go file once.

    The registry is immutable after loading: load once at startup, then
    read-only access from any number of workers.

    Args:
        root_dir: Directory the configured paths are relative to.
        paths: Source file paths to load.
        parser: Parser to use; defaults to GoParser.

    Raises:
        SourceNotFoundError: If a file cannot be read.
        SourceParseError: If a file is not valid Go.
    """

    def __init__(
        self,
        root_dir: Path | str = ".",
        paths: Iterable[str] = (),
        parser: SourceParser | None = None,
    ) -> None:
        self._root_dir = Path(root_dir)
        self._parser = parser or GoParser()
        self._files: dict[str, ParsedFile] = {}
        self._load(paths)

    @classmethod
    def from_sources(
        cls,
        sources: Mapping[str, str | bytes],
        parser: SourceParser | None = None,
    ) -> SourceRegistry:
        """Build a registry from in-memory source text keyed by path."""
        registry = cls(parser=parser)
        for path, source in sources.items():
            key = normalize_path(path)
            registry._files[key] = registry._parser.parse(source, key)
        return registry

    def _load(self, paths: Iterable[str]) -> None:
        for key in sorted({normalize_path(p) for p in paths}):
            file_path = self._root_dir / key
            try:
                source = file_path.read_bytes()
            except OSError as e:
                raise SourceNotFoundError(str(file_path)) from e
            self._files[key] = self._parser.parse(source, key)

    def get(self, path: str) -> ParsedFile:
        """Look up a parsed file by its configured path.

        Raises:
            SourceNotFoundError: If the file was not loaded.
        """
        try:
            return self._files[normalize_path(path)]
        except KeyError:
            raise SourceNotFoundError(path) from None

    def has(self, path: str) -> bool:
        return normalize_path(path) in self._files

    @property
    def paths(self) -> list[str]:
        """All loaded paths, sorted alphabetically."""
        return sorted(self._files)

    def __len__(self) -> int:
        return len(self._files)

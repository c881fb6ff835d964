"""Source parser protocol.

The extractor, matcher and emitter only depend on ParsedFile; any parser
that turns file contents into declarations can back the registry.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from struct_mapper.parsing.declarations import ParsedFile


@runtime_checkable
class SourceParser(Protocol):
    """Turns the text of one source file into its type declarations."""

    def parse(self, source: str | bytes, path: str = "<memory>") -> ParsedFile:
        """Parse *source* read from *path*.

        Raises:
            SourceParseError: If the text is not a well-formed source file.
        """
        ...

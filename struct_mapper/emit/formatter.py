"""Pretty-printing of generated Go source."""

from __future__ import annotations

import shutil
import subprocess
from collections.abc import Callable
from typing import Protocol, runtime_checkable

from struct_mapper.core.exceptions import RenderFormatError

_CLOSERS = {")": "(", "]": "[", "}": "{"}


@runtime_checkable
class SourceFormatter(Protocol):
    """Capability interface for Go pretty-printers."""

    def format(self, source: str) -> str:
        """Return *source* in canonical layout.

        Raises:
            RenderFormatError: If *source* is not well-formed.
        """
        ...


class CanonicalFormatter:
    """Layout normaliser used when gofmt is not available.

    Strips trailing whitespace, collapses runs of blank lines, ends the
    file with exactly one newline and checks that brackets balance outside
    string literals and comments.
    """

    def format(self, source: str) -> str:
        _check_balance(source)
        lines: list[str] = []
        for line in source.splitlines():
            line = line.rstrip()
            if not line and (not lines or not lines[-1]):
                continue
            lines.append(line)
        while lines and not lines[-1]:
            lines.pop()
        return "\n".join(lines) + "\n"


class GofmtFormatter:
    """Pipes source through the ``gofmt`` binary."""

    def __init__(
        self,
        executable: str = "gofmt",
        runner: Callable[..., subprocess.CompletedProcess[str]] | None = None,
    ) -> None:
        self.executable = executable
        self._runner = runner or subprocess.run

    def format(self, source: str) -> str:
        try:
            completed = self._runner(
                [self.executable],
                input=source,
                check=True,
                text=True,
                capture_output=True,
            )
        except subprocess.CalledProcessError as exc:
            detail = (exc.stderr or "").strip() or f"gofmt exited with status {exc.returncode}"
            raise RenderFormatError(detail) from exc
        except OSError as exc:
            raise RenderFormatError(str(exc)) from exc
        return completed.stdout


def resolve_formatter(prefer_gofmt: bool = True) -> SourceFormatter:
    """Pick gofmt when it is on PATH, the canonical formatter otherwise."""
    if prefer_gofmt:
        executable = shutil.which("gofmt")
        if executable:
            return GofmtFormatter(executable)
    return CanonicalFormatter()


def _check_balance(source: str) -> None:
    stack: list[tuple[str, int]] = []
    line = 1
    i = 0
    n = len(source)
    while i < n:
        ch = source[i]
        if ch == "\n":
            line += 1
        elif source.startswith("//", i):
            end = source.find("\n", i)
            i = n if end == -1 else end
            continue
        elif source.startswith("/*", i):
            end = source.find("*/", i + 2)
            if end == -1:
                raise RenderFormatError(f"{line}: comment not terminated")
            line += source.count("\n", i, end)
            i = end + 2
            continue
        elif ch in "\"'`":
            i = _skip_literal(source, i, line)
            continue
        elif ch in "([{":
            stack.append((ch, line))
        elif ch in _CLOSERS:
            if not stack or stack[-1][0] != _CLOSERS[ch]:
                raise RenderFormatError(f"{line}: unexpected '{ch}'")
            stack.pop()
        i += 1
    if stack:
        opener, opened = stack[-1]
        raise RenderFormatError(f"{opened}: '{opener}' is never closed")


def _skip_literal(source: str, start: int, line: int) -> int:
    quote = source[start]
    i = start + 1
    while i < len(source):
        ch = source[i]
        if ch == "\\" and quote != "`":
            i += 2
            continue
        if ch == quote:
            return i + 1
        if ch == "\n" and quote != "`":
            break
        i += 1
    raise RenderFormatError(f"{line}: literal not terminated")

"""All-or-nothing persistence of generated artifacts."""

from __future__ import annotations

import os
import tempfile
from collections.abc import Iterable
from pathlib import Path

from struct_mapper.core.engine import GeneratedArtifact
from struct_mapper.core.exceptions import PersistenceError
from struct_mapper.logging import get_logger

logger = get_logger(__name__)

_FILE_MODE = 0o644


class ArtifactWriter:
    """Writes artifacts below a root directory.

    Each file is written to a temporary sibling and moved over the target,
    so a failed write never truncates an existing file. If any write fails,
    files already written by the same call are removed before the error is
    raised.
    """

    def __init__(self, root_dir: Path | str) -> None:
        self._root_dir = Path(root_dir)

    def target(self, artifact: GeneratedArtifact) -> Path:
        return self._root_dir / artifact.path

    def write_all(self, artifacts: Iterable[GeneratedArtifact]) -> list[Path]:
        """Write every artifact and return the written paths.

        Raises:
            PersistenceError: If a file cannot be written; nothing from this
                call is left on disk and the failing target keeps its
                previous content.
        """
        written: list[Path] = []
        for artifact in artifacts:
            path = self.target(artifact)
            try:
                _replace_atomically(path, artifact.content)
            except OSError as e:
                self._rollback(written)
                raise PersistenceError(str(path), str(e)) from e
            written.append(path)
        return written

    @staticmethod
    def _rollback(paths: list[Path]) -> None:
        for path in paths:
            try:
                path.unlink()
            except OSError as e:
                logger.warning("could not remove %s during rollback: %s", path, e)


def _replace_atomically(path: Path, content: bytes) -> None:
    fd, temp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "wb") as handle:
            handle.write(content)
        os.chmod(temp_name, _FILE_MODE)
        os.replace(temp_name, path)
    except OSError:
        try:
            os.unlink(temp_name)
        except FileNotFoundError:
            pass
        raise

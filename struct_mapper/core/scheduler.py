"""Work scheduling.

A fixed pool of worker threads drains a shared queue of WorkGroups. Each
worker processes one group completely before taking the next, so every
output file is produced by exactly one worker. Artifacts flow back on a
results queue; per-group failures go to a separate error queue drained by
a reporter thread, so slow diagnostics never hold up producers.
"""

from __future__ import annotations

import queue
import threading
from collections.abc import Callable, Iterable, Iterator
from dataclasses import dataclass

from struct_mapper.core.engine import Engine, GeneratedArtifact
from struct_mapper.core.exceptions import StructMapperError
from struct_mapper.core.jobs import WorkGroup
from struct_mapper.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class JobError:
    """A group that failed; the group produces no artifact."""

    group_path: str
    error: StructMapperError

    def __str__(self) -> str:
        return f"{self.group_path}: {self.error}"


@dataclass(frozen=True)
class BatchResult:
    """Outcome of a whole run, sorted by path for stable output."""

    artifacts: tuple[GeneratedArtifact, ...]
    errors: tuple[JobError, ...]

    @property
    def ok(self) -> bool:
        return not self.errors


@dataclass(frozen=True)
class _Crash:
    error: Exception


_DONE = object()


class Scheduler:
    """Runs work groups on a bounded pool of workers.

    Args:
        engine: Engine shared by all workers.
        workers: Pool size, at least 1.
        on_error: Called from the reporter thread for every failed group.
    """

    def __init__(
        self,
        engine: Engine,
        workers: int = 1,
        on_error: Callable[[JobError], None] | None = None,
    ) -> None:
        if workers < 1:
            raise ValueError(f"workers must be at least 1, got {workers}")
        self._engine = engine
        self._workers = workers
        self._on_error = on_error

    def schedule(self, groups: Iterable[WorkGroup]) -> Iterator[GeneratedArtifact]:
        """Yield artifacts as workers finish them, in completion order.

        Failed groups are reported through ``on_error`` and logged. An
        exception outside the StructMapperError hierarchy is a bug; it is
        re-raised once the pool has drained.
        """
        return self._stream(list(groups), None)

    def run(self, groups: Iterable[WorkGroup]) -> BatchResult:
        """Process every group and collect the outcome."""
        errors: list[JobError] = []
        artifacts = sorted(self._stream(list(groups), errors.append), key=lambda a: a.path)
        return BatchResult(tuple(artifacts), tuple(sorted(errors, key=lambda e: e.group_path)))

    def _stream(
        self,
        groups: list[WorkGroup],
        collect: Callable[[JobError], None] | None,
    ) -> Iterator[GeneratedArtifact]:
        if not groups:
            return

        jobs: queue.Queue[WorkGroup | None] = queue.Queue()
        results: queue.Queue[object] = queue.Queue()
        errors: queue.Queue[JobError | None] = queue.Queue()

        pool_size = min(self._workers, len(groups))
        for group in groups:
            jobs.put(group)
        for _ in range(pool_size):
            jobs.put(None)

        reporter = threading.Thread(
            target=self._report,
            args=(errors, collect),
            name="struct-mapper-errors",
            daemon=True,
        )
        reporter.start()
        workers = [
            threading.Thread(
                target=self._work,
                args=(jobs, results, errors),
                name=f"struct-mapper-worker-{i}",
                daemon=True,
            )
            for i in range(pool_size)
        ]
        for worker in workers:
            worker.start()

        crashes: list[Exception] = []
        finished = 0
        try:
            while finished < pool_size:
                item = results.get()
                if item is _DONE:
                    finished += 1
                elif isinstance(item, _Crash):
                    crashes.append(item.error)
                else:
                    yield item
        finally:
            for worker in workers:
                worker.join()
            errors.put(None)
            reporter.join()

        if crashes:
            raise crashes[0]

    def _work(
        self,
        jobs: queue.Queue[WorkGroup | None],
        results: queue.Queue[object],
        errors: queue.Queue[JobError | None],
    ) -> None:
        try:
            while True:
                group = jobs.get()
                if group is None:
                    return
                try:
                    artifact = self._engine.process(group)
                except StructMapperError as e:
                    errors.put(JobError(group.path, e))
                    continue
                logger.debug("generated %s", artifact.path)
                results.put(artifact)
        except Exception as e:
            results.put(_Crash(e))
        finally:
            results.put(_DONE)

    def _report(
        self,
        errors: queue.Queue[JobError | None],
        collect: Callable[[JobError], None] | None,
    ) -> None:
        while True:
            job_error = errors.get()
            if job_error is None:
                return
            logger.warning("%s", job_error)
            if collect is not None:
                collect(job_error)
            if self._on_error is not None:
                self._on_error(job_error)

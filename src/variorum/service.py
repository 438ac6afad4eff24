"""Bounded-parallel collation runner.

Concurrency is per whole collation: each run owns its graph, repeat indexes
and search frontier, and witnesses inside one run are merged strictly in
order. Runs execute in a thread pool sized by ``max_parallel_collations``.
Size limits are checked before a run starts; a timeout applies to each
merge step, the only unit of work whose cost is bounded. A timed-out step
signals its search to stop, which returns the worker to the pool.
"""

from __future__ import annotations

import asyncio
import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Sequence

from variorum.collation import (
    CollationError,
    VariantGraph,
    Witness,
    check_collation_size,
    merge,
    new_graph,
    validate_witness,
)
from variorum.collation.errors import InvalidWitness
from variorum.config import Settings

logger = logging.getLogger(__name__)


class MergeTimeout(CollationError):
    """A merge step did not finish within ``merge_timeout`` seconds."""

    def __init__(self, sigil: str, timeout: float):
        self.sigil = sigil
        self.timeout = timeout
        super().__init__(f"Merging witness {sigil!r} exceeded {timeout}s")


def prepare(witnesses: Sequence[Witness], settings: Settings) -> None:
    """Validate every witness and the total size before any merge.

    Raises:
        InvalidWitness: Malformed witness or duplicate sigil
        OversizeInput: A size limit is exceeded
    """
    if not witnesses:
        raise InvalidWitness("", "no witnesses given")
    seen: set[str] = set()
    for witness in witnesses:
        validate_witness(witness, settings)
        if witness.sigil in seen:
            raise InvalidWitness(witness.sigil, "duplicate sigil")
        seen.add(witness.sigil)
    check_collation_size(witnesses, settings)


class CollationRunner:
    """Runs independent collations with bounded parallelism.

    Usage:
        runner = CollationRunner(settings)
        graph = await runner.collate(witnesses)
        runner.shutdown()
    """

    def __init__(self, settings: Settings | None = None):
        self.settings = settings or Settings()
        self._semaphore = asyncio.Semaphore(self.settings.max_parallel_collations)
        self._executor = ThreadPoolExecutor(
            max_workers=self.settings.max_parallel_collations,
            thread_name_prefix="collation",
        )
        self._active = 0

    @property
    def active(self) -> int:
        """Number of collations currently running."""
        return self._active

    async def collate(
        self, witnesses: Sequence[Witness], settings: Settings | None = None
    ) -> VariantGraph:
        """Collate witnesses in order on the worker pool.

        Args:
            witnesses: Witnesses in merge order
            settings: Per-request settings (runner defaults otherwise)

        Returns:
            The variant graph

        Raises:
            InvalidWitness, OversizeInput: Before any merge starts
            MergeTimeout: A merge step exceeded ``merge_timeout``
        """
        settings = settings or self.settings
        prepare(witnesses, settings)

        async with self._semaphore:
            self._active += 1
            try:
                graph = new_graph()
                loop = asyncio.get_running_loop()
                for witness in witnesses:
                    cancel = threading.Event()
                    step = loop.run_in_executor(
                        self._executor, merge, graph, witness, settings, cancel
                    )
                    if settings.merge_timeout is None:
                        await step
                        continue
                    try:
                        await asyncio.wait_for(step, timeout=settings.merge_timeout)
                    except asyncio.TimeoutError:
                        # Frees the worker; the search stops before touching the graph
                        cancel.set()
                        logger.warning(
                            f"Merge of {witness.sigil} timed out after "
                            f"{settings.merge_timeout}s, abandoning collation"
                        )
                        raise MergeTimeout(witness.sigil, settings.merge_timeout)
                return graph
            finally:
                self._active -= 1

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)


def _run_isolated(
    witnesses: Sequence[Witness], settings: Settings
) -> VariantGraph | CollationError:
    try:
        prepare(witnesses, settings)
        graph = new_graph()
        for witness in witnesses:
            merge(graph, witness, settings)
        return graph
    except CollationError as e:
        logger.warning(f"Collation failed: {e}")
        return e


def collate_many(
    jobs: Sequence[Sequence[Witness]], settings: Settings | None = None
) -> list[VariantGraph | CollationError]:
    """Run several collations in parallel, isolating their failures.

    Args:
        jobs: One witness sequence per collation
        settings: Shared settings; ``max_parallel_collations`` bounds the pool

    Returns:
        Per job, the graph or the CollationError that stopped it
    """
    settings = settings or Settings()
    with ThreadPoolExecutor(
        max_workers=settings.max_parallel_collations,
        thread_name_prefix="collation",
    ) as pool:
        futures = [pool.submit(_run_isolated, job, settings) for job in jobs]
        return [f.result() for f in futures]

"""Background eviction of replay and rate-limit state.

Replay timestamps older than the freshness window can never be accepted again,
and a bucket idle for a few refill periods is full again. The sweep removes
both so the tables stay bounded in a long-running process.
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import suppress

from pq_guestbook.core.settings import settings
from pq_guestbook.services.submission import SubmissionPipeline

logger = logging.getLogger(__name__)


class SweepWorker:
    """Periodically sweeps the pipeline's replay and rate-limit tables."""

    def __init__(self, pipeline: SubmissionPipeline, interval: float | None = None) -> None:
        self.pipeline = pipeline
        self.interval = max(
            0.1, float(settings.sweep_interval_seconds if interval is None else interval)
        )
        self._task: asyncio.Task[None] | None = None
        self._stopping = asyncio.Event()

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start(self) -> None:
        """Start the background sweep loop."""
        if not self.running:
            self._stopping.clear()
            self._task = asyncio.create_task(self._run())

    async def stop(self) -> None:
        """Stop the loop and wait for it to finish."""
        if self._task is None:
            return

        self._stopping.set()
        await self._task
        self._task = None

    def sweep_once(self) -> tuple[int, int]:
        replay_removed, buckets_removed = self.pipeline.sweep()
        if replay_removed or buckets_removed:
            logger.debug(
                "Sweep removed %d replay entries and %d rate buckets",
                replay_removed,
                buckets_removed,
            )
        return replay_removed, buckets_removed

    async def _run(self) -> None:
        while not self._stopping.is_set():
            with suppress(asyncio.TimeoutError):
                await asyncio.wait_for(self._stopping.wait(), timeout=self.interval)
            if self._stopping.is_set():
                return
            try:
                await asyncio.to_thread(self.sweep_once)
            except (ValueError, TypeError, KeyError, RuntimeError) as e:
                logger.error("SweepWorker encountered an error: %s", e, exc_info=True)

"""Aggregator task: the single owner of the aggregation tables.

Listeners hand decoded samples over through a bounded asyncio queue. The
aggregator is the only consumer; it folds samples into its state and flushes
on a fixed interval and once more on shutdown. Nothing else touches the
state, so no locking is needed.
"""

import asyncio
import logging
import time

from statsdaemon.core.config import DaemonConfig
from statsdaemon.core.flush import FlushBatch, FlushEngine
from statsdaemon.core.models import Sample
from statsdaemon.core.ports import CollectorPort, CollectorSession
from statsdaemon.core.state import AggregationState

logger = logging.getLogger(__name__)


class Aggregator:
    """Consumes samples and flushes aggregated stats to a collector.

    Args:
        config: Daemon configuration.
        collector: Downstream collector, or None when sending is disabled.
        queue: Ingestion queue. Defaults to a new queue bounded by
            ``config.queue_size``; producers block while it is full.
    """

    def __init__(
        self,
        config: DaemonConfig,
        collector: CollectorPort | None,
        queue: asyncio.Queue[Sample] | None = None,
    ) -> None:
        self._config = config
        self._collector = collector
        self._queue: asyncio.Queue[Sample] = (
            queue if queue is not None else asyncio.Queue(maxsize=config.queue_size)
        )
        self._engine = FlushEngine(config.percentiles, config.persist_count_keys)
        self.state = AggregationState()

    @property
    def queue(self) -> asyncio.Queue[Sample]:
        """The queue listeners put decoded samples on."""
        return self._queue

    def ingest(self, sample: Sample) -> None:
        """Apply one sample to the state."""
        self.state.apply(sample)

    async def _open_session(self) -> tuple[bool, CollectorSession | None]:
        """Open a collector session.

        Returns:
            (proceed, session). proceed is False when the flush must be
            abandoned without touching the state.
        """
        if self._collector is None:
            return True, None
        try:
            return True, await self._collector.open()
        except OSError as exc:
            logger.error("Error dialing %s %s", self._config.graphite, exc)
            if not self._config.debug:
                return False, None
            logger.warning(
                "in debug mode, resetting counters even though connection "
                "to %s failed",
                self._config.graphite,
            )
            return True, None

    async def flush(self, now: int | None = None) -> FlushBatch | None:
        """Run one flush cycle.

        Args:
            now: Unix timestamp for the emitted lines. Defaults to the
                current time.

        Returns:
            The collected batch, or None if the collector was unreachable
            and the state was left untouched.
        """
        proceed, session = await self._open_session()
        if not proceed:
            return None
        try:
            batch = self._engine.collect(
                self.state, int(time.time()) if now is None else now
            )
            if batch.num_stats == 0:
                return batch
            if session is not None:
                try:
                    await session.send(batch.payload)
                except OSError as exc:
                    # State is already reset; this interval is lost.
                    logger.error(
                        "failed writing %d stats to %s: %s",
                        batch.num_stats,
                        self._config.graphite,
                        exc,
                    )
                else:
                    logger.info(
                        "sent %d stats to %s", batch.num_stats, self._config.graphite
                    )
            if self._config.debug:
                for line in batch.lines:
                    logger.info("debug: %s", line.rstrip("\n"))
            return batch
        finally:
            if session is not None:
                await session.close()

    async def run(self, shutdown: asyncio.Event) -> None:
        """Consume samples until shutdown, then flush once more and return.

        The flush tick, the shutdown event and the next queued sample are
        waited on together. Ticks missed while a flush is in progress are
        skipped rather than replayed.
        """
        loop = asyncio.get_running_loop()
        interval = self._config.flush_interval
        next_flush = loop.time() + interval
        stop_task = asyncio.ensure_future(shutdown.wait())
        get_task: asyncio.Future[Sample] | None = None
        try:
            while True:
                if get_task is None:
                    get_task = asyncio.ensure_future(self._queue.get())
                timeout = max(0.0, next_flush - loop.time())
                done, _ = await asyncio.wait(
                    {get_task, stop_task},
                    timeout=timeout,
                    return_when=asyncio.FIRST_COMPLETED,
                )
                if get_task in done:
                    self.ingest(get_task.result())
                    get_task = None
                if stop_task in done:
                    logger.info("caught shutdown request, flushing")
                    await self.flush()
                    return
                if loop.time() >= next_flush:
                    await self.flush()
                    while next_flush <= loop.time():
                        next_flush += interval
        finally:
            stop_task.cancel()
            if get_task is not None:
                get_task.cancel()

"""
Extraction orchestrator: the main harvesting loop.
Takes one queued page at a time, loads it, races the extraction against the
liveness deadline, records the outcome as an artifact and removes the page from
the queue. Per-page failures never stop the run.
"""

import asyncio
import logging
import sqlite3
import time
from typing import Any, Awaitable, Callable, Dict, Optional

from harvester.artifacts import ArtifactEmitter
from harvester.exceptions import NavigationFailure, QueueStorageError, StallTimeout
from harvester.liveness import LivenessMonitor
from harvester.models import (
    EMPTY,
    OUTCOME_KINDS,
    SENTINEL,
    SUCCESS,
    Outcome,
    classify_payload,
)
from harvester.page_controller import PageController
from harvester.work_queue import WorkQueueStore

logger = logging.getLogger(__name__)

StatusSink = Callable[[str], None]


class ExtractionOrchestrator:
    """Drives the work queue through the page controller, one page at a time."""

    def __init__(self, config, queue: WorkQueueStore, controller: PageController,
                 emitter: ArtifactEmitter, monitor: Optional[LivenessMonitor] = None,
                 status: Optional[StatusSink] = None,
                 sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep):
        self.config = config
        self.queue = queue
        self.controller = controller
        self.emitter = emitter
        self.monitor = monitor or LivenessMonitor()
        self._status = status
        self._sleep = sleep

        self.outcome_counts: Dict[str, int] = {kind: 0 for kind in OUTCOME_KINDS}
        self.items_processed = 0
        self.records_written = 0
        self.discarded_results = 0
        self._prepared = False

    def report(self, text: str) -> None:
        if self._status is not None:
            self._status(text)

    async def prepare(self) -> None:
        """
        Load the stored queue, seeding it on first use, and write the initial snapshot.

        Raises:
            InitializationError: If the queue cannot be loaded or seeded
        """
        self.report(f"Loading work queue from {self.config.queue_db}...")
        items, resumed = self.queue.ensure_seeded(self.config.seed_file)
        if resumed:
            self.report(f"Resuming with {len(items)} stored URLs...")
        else:
            self.report(f"Loaded {len(items)} URLs from {self.config.seed_file}.")
        await self.emitter.write_snapshot(items)
        self._prepared = True

    async def run(self) -> Dict[str, Any]:
        """
        Process the queue until it is empty (or max_items pages are done).

        Returns:
            Summary dictionary with outcome counts and timing

        Raises:
            InitializationError: If the queue cannot be loaded or seeded
            QueueStorageError: If the stored queue fails mid-run
        """
        start_time = time.time()
        if not self._prepared:
            await self.prepare()

        self.controller.subscribe_heartbeat(self.monitor.ping)

        while True:
            if self.config.max_items is not None and self.items_processed >= self.config.max_items:
                logger.info(f"Reached max_items ({self.config.max_items}), stopping")
                self.report(f"Stopped after {self.items_processed} pages (max_items).")
                break

            # Reload every round: the stored queue may have been edited between pages
            pending = self._load_pending()
            if not pending:
                self.report("All pages processed. No more URLs!")
                logger.info("Work queue is empty, run complete")
                break

            url = pending[0]
            logger.info(f"Processing {url} ({len(pending)} in queue)")
            await self.process_item(url)
            await self._sleep(self.config.inter_item_pause)

        summary = self._generate_summary(start_time)
        logger.info(
            f"Run finished in {summary['total_time']:.2f}s: {self.items_processed} pages, "
            f"{self.records_written} records, {summary['remaining']} remaining"
        )
        return summary

    async def process_item(self, url: str) -> Outcome:
        """Resolve, record and dequeue a single page."""
        outcome = await self.resolve_outcome(url)
        await self.record_outcome(url, outcome)
        return outcome

    async def resolve_outcome(self, url: str) -> Outcome:
        """
        Load the page and wait for the first of extraction result or stall.

        Whichever settles first decides the outcome; the other is discarded.
        """
        self.report(f"Navigating to {url}...")
        try:
            await self.controller.navigate(url)
        except NavigationFailure as e:
            logger.error(f"Navigation failed for {url}: {e}")
            return Outcome.error(str(e))

        await self._sleep(self.config.settle_delay)

        loop = asyncio.get_running_loop()
        resolved: asyncio.Future = loop.create_future()

        def settle(outcome: Optional[Outcome]) -> None:
            if outcome is None:
                return
            if resolved.done():
                self.discarded_results += 1
                logger.info(f"Discarding late {outcome.kind} result for {url}")
                return
            resolved.set_result(outcome)

        def on_stall() -> None:
            timeout = self.config.liveness_timeout
            logger.warning(f"No heartbeat for {timeout}s from {url}, skipping")
            settle(Outcome.stalled(str(StallTimeout(f"no heartbeat for {timeout}s"))))

        self.monitor.arm(self.config.liveness_timeout, on_stall)
        self.report(f"Scraping {url}...")
        task = asyncio.ensure_future(self.controller.extract(url))
        task.add_done_callback(lambda t: settle(_outcome_from_task(url, t)))

        try:
            return await resolved
        finally:
            self.monitor.cancel()
            if not task.done():
                # Stop waiting; the in-page script is dropped by the next navigation
                task.cancel()

    async def record_outcome(self, url: str, outcome: Outcome) -> None:
        """Emit the artifact, remove the page from the queue and refresh the snapshot."""
        self.items_processed += 1
        self.outcome_counts[outcome.kind] += 1

        if outcome.kind == SUCCESS:
            self.report(f"Saving {len(outcome.records)} posts from {url}...")
        elif outcome.kind == SENTINEL:
            self.report(f"Page {url} is unclaimed or has no posts link. Logging.")
        elif outcome.kind == EMPTY:
            self.report(f"No posts found for {url}. Logging as no post.")
        else:
            self.report(f"Error scraping {url}, skipping page...")
            logger.warning(f"Skipping {url} ({outcome.kind}): {outcome.cause}")

        path = await self.emitter.emit(url, outcome)
        if path is not None and outcome.kind == SUCCESS:
            self.records_written += len(outcome.records)

        try:
            self.queue.remove_one(url)
            remaining = self.queue.load()
        except sqlite3.Error as e:
            logger.error(f"Could not remove {url} from the stored queue: {e}")
            raise QueueStorageError(f"failed to dequeue {url}: {e}") from e
        await self.emitter.write_snapshot(remaining)

        if outcome.kind == SUCCESS:
            self.report(f"Done scraping {url}.")

    def _load_pending(self):
        try:
            return self.queue.load()
        except sqlite3.Error as e:
            logger.error(f"Could not read the stored queue: {e}")
            raise QueueStorageError(f"failed to read queue: {e}") from e

    def _generate_summary(self, start_time: float) -> Dict[str, Any]:
        total_time = time.time() - start_time
        pages_per_minute = (self.items_processed / total_time) * 60 if total_time > 0 else 0
        return {
            'total_time': total_time,
            'items_processed': self.items_processed,
            'outcomes': dict(self.outcome_counts),
            'records_written': self.records_written,
            'write_failures': self.emitter.write_failures,
            'discarded_results': self.discarded_results,
            'remaining': self.queue.pending_count(),
            'performance': {
                'pages_per_minute': pages_per_minute,
            },
        }


def _outcome_from_task(url: str, task: asyncio.Future) -> Optional[Outcome]:
    """Outcome for a finished extraction task, None if it was cancelled."""
    if task.cancelled():
        return None
    error = task.exception()
    if error is not None:
        logger.error(f"Extraction failed for {url}: {error}")
        return Outcome.error(str(error) or type(error).__name__)
    return classify_payload(task.result())



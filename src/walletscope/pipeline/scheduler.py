"""Backoff-aware fetch scheduler.

A bounded pool of workers drains a WorkQueue of signatures. Each attempt's
FetchOutcome decides what happens next:

- Success: stored in the collector.
- RateLimited: requeued at the tail, ineligible for the server-supplied delay
  (capped at `max_rate_limit_delay`).
- Transient: requeued at the tail, ineligible for a fixed local delay.
- Permanent: abandoned with the upstream cause.

A retryable outcome on the `max_attempts`-th attempt abandons the signature
instead, so a run always terminates even if the upstream never recovers.
"""

import asyncio
import logging
import time
from typing import Awaitable, Callable, Iterable

from walletscope.domain.enums import AbandonReason
from walletscope.infra.blockchain.solana.outcomes import (
    FetchOutcome,
    Permanent,
    RateLimited,
    Success,
    Transient,
)
from walletscope.pipeline.collector import MAX_ATTEMPTS_CAUSE, ResultCollector, ResultSet
from walletscope.pipeline.work_queue import PendingWork, WorkQueue

logger = logging.getLogger(__name__)

FetchFn = Callable[[str], Awaitable[FetchOutcome]]


class FetchScheduler:
    def __init__(
        self,
        fetch: FetchFn,
        workers: int = 4,
        max_attempts: int = 10,
        transient_delay: float = 1.0,
        call_timeout: float = 30.0,
        max_rate_limit_delay: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if workers < 1:
            raise ValueError("workers must be >= 1")
        if max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        self._fetch = fetch
        self._workers = workers
        self._max_attempts = max_attempts
        self._transient_delay = transient_delay
        self._call_timeout = call_timeout
        self._max_rate_limit_delay = max_rate_limit_delay
        self._clock = clock

    async def run(
        self,
        address: str,
        signatures: Iterable[str],
        cancel: asyncio.Event | None = None,
        timeout: float | None = None,
    ) -> ResultSet:
        """Fetch every signature, returning once the queue drains or the run is cancelled.

        Cancellation (the `cancel` event being set, or `timeout` seconds passing)
        stops new dispatches; in-flight attempts finish, and whatever is left in
        the queue comes back as `pending`.
        """
        collector = ResultCollector(address)
        queue = WorkQueue(self._clock)
        count = await queue.seed(dict.fromkeys(signatures))

        workers = [
            asyncio.create_task(self._worker(queue, collector), name=f"fetch-worker-{i}")
            for i in range(min(self._workers, count))
        ]
        watcher = None
        if cancel is not None or timeout is not None:
            watcher = asyncio.create_task(self._watch(queue, cancel, timeout))

        try:
            await asyncio.gather(*workers)
        finally:
            for task in workers:
                task.cancel()
            if watcher is not None:
                watcher.cancel()

        pending = queue.pending()
        collector.seal(pending, cancelled=queue.closed and bool(pending))
        result = collector.drain()
        logger.info(
            "Fetched %d/%d transactions for %s (%d abandoned, %d pending)",
            len(result.transactions), count, address, len(result.abandoned), len(result.pending),
        )
        return result

    async def _watch(self, queue: WorkQueue, cancel: asyncio.Event | None, timeout: float | None) -> None:
        try:
            if cancel is None:
                await asyncio.sleep(timeout)
            else:
                await asyncio.wait_for(cancel.wait(), timeout)
            logger.info("Fetch run cancelled, stopping dispatch")
        except TimeoutError:
            logger.warning("Fetch run hit its %.1fs deadline, stopping dispatch", timeout)
        await queue.close()

    async def _worker(self, queue: WorkQueue, collector: ResultCollector) -> None:
        while True:
            work = await queue.claim()
            if work is None:
                return
            if collector.contains(work.signature):
                await queue.complete(work)
                continue

            outcome = await self._attempt(work.signature)
            work.attempts += 1
            await self._settle(work, outcome, queue, collector)

    async def _attempt(self, signature: str) -> FetchOutcome:
        try:
            return await asyncio.wait_for(self._fetch(signature), self._call_timeout)
        except TimeoutError:
            return Transient(f"no response within {self._call_timeout}s")
        except Exception as exc:
            # unexpected errors count as retryable attempts, still bounded by max_attempts
            logger.exception("Fetch of %s raised", signature)
            return Transient(f"fetch raised {exc!r}")

    async def _settle(
        self,
        work: PendingWork,
        outcome: FetchOutcome,
        queue: WorkQueue,
        collector: ResultCollector,
    ) -> None:
        signature = work.signature

        if isinstance(outcome, Success):
            collector.record(signature, outcome.result)
            await queue.complete(work)
            return

        if isinstance(outcome, Permanent):
            logger.warning("Abandoning %s: %s", signature, outcome.cause)
            collector.abandon(signature, AbandonReason.PERMANENT, outcome.cause, work.attempts)
            await queue.complete(work)
            return

        if work.attempts >= self._max_attempts:
            logger.warning(
                "Abandoning %s after %d attempts (last: %s)", signature, work.attempts, outcome.cause
            )
            collector.abandon(signature, AbandonReason.MAX_ATTEMPTS, MAX_ATTEMPTS_CAUSE, work.attempts)
            await queue.complete(work)
            return

        if isinstance(outcome, RateLimited):
            delay = min(outcome.delay, self._max_rate_limit_delay)
            logger.info("Rate limited on %s, retrying in %.1fs (attempt %d)", signature, delay, work.attempts)
        else:
            delay = self._transient_delay
            logger.warning("Transient failure on %s: %s (attempt %d)", signature, outcome.cause, work.attempts)
        await queue.requeue(work, delay)

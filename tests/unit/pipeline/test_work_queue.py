"""Tests for WorkQueue: eligibility, ordering, drain and close semantics."""

import asyncio

from walletscope.pipeline.work_queue import PendingWork, WorkQueue


class FakeClock:
    def __init__(self, now: float = 1000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


class TestWorkQueue:
    async def test_claims_in_fifo_order(self):
        queue = WorkQueue()
        await queue.seed(["a", "b", "c"])

        claimed = [(await queue.claim()).signature for _ in range(3)]
        assert claimed == ["a", "b", "c"]

    async def test_seeded_entries_start_fresh(self):
        clock = FakeClock()
        queue = WorkQueue(clock)
        await queue.seed(["a"])

        work = await queue.claim()
        assert work == PendingWork(signature="a", attempts=0, not_before=1000.0)

    async def test_drained_returns_none(self):
        queue = WorkQueue()
        await queue.seed(["a"])

        work = await queue.claim()
        await queue.complete(work)
        assert await queue.claim() is None

    async def test_claim_waits_for_in_flight_requeue(self):
        queue = WorkQueue()
        await queue.seed(["a"])
        work = await queue.claim()

        waiter = asyncio.create_task(queue.claim())
        await asyncio.sleep(0.01)
        assert not waiter.done()

        await queue.requeue(work, delay=0.0)
        again = await asyncio.wait_for(waiter, timeout=1)
        assert again.signature == "a"

    async def test_ineligible_entries_skipped(self):
        clock = FakeClock()
        queue = WorkQueue(clock)
        await queue.seed(["a", "b"])

        a = await queue.claim()
        await queue.requeue(a, delay=5.0)
        b = await queue.claim()
        assert b.signature == "b"
        assert a.not_before == 1005.0

    async def test_waits_until_not_before(self):
        queue = WorkQueue()
        await queue.seed(["a"])
        a = await queue.claim()
        await queue.requeue(a, delay=0.1)

        start = queue.now()
        again = await queue.claim()
        assert again.signature == "a"
        assert queue.now() - start >= 0.09

    async def test_close_wakes_waiters_and_keeps_pending(self):
        queue = WorkQueue()
        await queue.seed(["a", "b"])
        a = await queue.claim()
        await queue.requeue(a, delay=60.0)
        b = await queue.claim()

        waiter = asyncio.create_task(queue.claim())
        await asyncio.sleep(0.01)
        await queue.close()

        assert await asyncio.wait_for(waiter, timeout=1) is None
        await queue.requeue(b, delay=1.0)
        assert queue.closed
        assert queue.pending() == ["a", "b"]
        assert len(queue) == 2

    async def test_concurrent_claims_never_share_entries(self):
        queue = WorkQueue()
        await queue.seed([f"sig{i}" for i in range(50)])
        claimed: list[str] = []

        async def worker():
            while (work := await queue.claim()) is not None:
                claimed.append(work.signature)
                await asyncio.sleep(0)
                await queue.complete(work)

        await asyncio.gather(*(worker() for _ in range(5)))
        assert sorted(claimed) == sorted(f"sig{i}" for i in range(50))

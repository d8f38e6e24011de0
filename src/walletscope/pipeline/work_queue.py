"""Delay-respecting FIFO of signatures awaiting a fetch attempt."""

import asyncio
import time
from collections import deque
from dataclasses import dataclass
from typing import Callable, Iterable


@dataclass
class PendingWork:
    signature: str
    attempts: int = 0
    not_before: float = 0.0  # monotonic seconds


class WorkQueue:
    """FIFO where entries are only eligible once their `not_before` has passed.

    Claim, requeue and eligibility checks all happen under one condition, so
    concurrent workers never claim the same entry. The queue is drained when it
    holds no entries and nothing claimed is still in flight; `claim()` then
    returns None. `close()` stops further claims; entries still queued (and any
    requeued afterwards) remain visible through `pending()`.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._entries: deque[PendingWork] = deque()
        self._in_flight = 0
        self._closed = False
        self._cond = asyncio.Condition()

    @property
    def closed(self) -> bool:
        return self._closed

    def __len__(self) -> int:
        return len(self._entries)

    def now(self) -> float:
        return self._clock()

    async def seed(self, signatures: Iterable[str]) -> int:
        now = self._clock()
        async with self._cond:
            count = 0
            for signature in signatures:
                self._entries.append(PendingWork(signature=signature, not_before=now))
                count += 1
            self._cond.notify_all()
        return count

    async def claim(self) -> PendingWork | None:
        """Block until an entry is eligible and take it. None once drained or closed."""
        async with self._cond:
            while True:
                if self._closed:
                    return None
                if not self._entries and self._in_flight == 0:
                    return None

                now = self._clock()
                for work in self._entries:
                    if work.not_before <= now:
                        self._entries.remove(work)
                        self._in_flight += 1
                        return work

                timeout = None
                if self._entries:
                    timeout = max(0.0, min(w.not_before for w in self._entries) - now)
                try:
                    await asyncio.wait_for(self._cond.wait(), timeout)
                except TimeoutError:
                    pass

    async def requeue(self, work: PendingWork, delay: float) -> None:
        """Return a claimed entry to the tail, not eligible for `delay` seconds."""
        async with self._cond:
            work.not_before = self._clock() + max(0.0, delay)
            self._entries.append(work)
            self._in_flight -= 1
            self._cond.notify_all()

    async def complete(self, work: PendingWork) -> None:
        """Mark a claimed entry as finished (succeeded or abandoned)."""
        async with self._cond:
            self._in_flight -= 1
            self._cond.notify_all()

    async def close(self) -> None:
        async with self._cond:
            self._closed = True
            self._cond.notify_all()

    def pending(self) -> list[str]:
        return [work.signature for work in self._entries]

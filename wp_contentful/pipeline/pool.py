"""
Bounded worker pool.

:class:`WorkerPool` drains a list of work items with at most
``concurrency`` items in flight.  Each worker claims the next pending
item, runs the per-item coroutine under a deadline, records the outcome
and claims again; a worker that finds the queue empty exits, so the pool
shrinks as the queue drains.  ``run`` returns once every worker has
exited, which is exactly when nothing is pending and nothing is in
flight.

All bookkeeping happens on the event loop thread between awaits, so the
queue, the in-flight claims and the result lists need no locking.  Claims
are tracked per claim rather than per key, so two items sharing a natural
key are both counted while they run.
"""

from __future__ import annotations

import asyncio
import itertools
import logging
from collections import deque
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Deque, Dict, Iterable, Iterator, Optional

from wp_contentful.utils.errors import report_error

from .outcome import ItemError, ItemTimeoutError, Outcome, ResultSet

LOGGER = logging.getLogger(__name__)

DEFAULT_CONCURRENCY = 8
DEFAULT_TIMEOUT = 60.0


@dataclass(frozen=True)
class Progress:
    pending: int
    in_flight: int
    done: int
    skipped: int
    failed: int

    def __str__(self) -> str:
        return (
            f"Remaining: {self.pending} ({self.in_flight} uploading, {self.done} done, "
            f"{self.failed} failed), skipped: {self.skipped}."
        )


ProgressObserver = Callable[[Progress], None]


def log_progress(progress: Progress) -> None:
    LOGGER.info("%s", progress)


class WorkerPool:
    """
    :param concurrency: Maximum number of items processed at the same time.
    :param timeout: Seconds each item may take before it is failed with
        :class:`ItemTimeoutError`.  ``None`` disables the deadline.
    :param key_fn: Returns the natural key of an item, used for the
        in-flight claims and for error reports.
    :param stage: Stage name used when a timed-out or crashed item is
        reported to ``errors.jsonl``.
    :param observer: Called with a :class:`Progress` snapshot after every
        claim and every settlement.
    """

    def __init__(
        self,
        concurrency: int = DEFAULT_CONCURRENCY,
        *,
        timeout: Optional[float] = DEFAULT_TIMEOUT,
        key_fn: Callable[[Any], str] = str,
        observer: Optional[ProgressObserver] = log_progress,
        stage: str = "items",
    ) -> None:
        if concurrency < 1:
            raise ValueError("concurrency must be at least 1")
        self.concurrency = concurrency
        self.timeout = timeout
        self.key_fn = key_fn
        self.observer = observer
        self.stage = stage
        self.pending: Deque[Any] = deque()
        # claim number -> natural key
        self.in_flight: Dict[int, str] = {}
        self._claims: Iterator[int] = itertools.count()
        self.results = ResultSet()
        self.peak_in_flight = 0

    def progress(self) -> Progress:
        return Progress(
            pending=len(self.pending),
            in_flight=len(self.in_flight),
            done=len(self.results.done),
            skipped=len(self.results.skipped),
            failed=len(self.results.failed),
        )

    def _notify(self) -> None:
        if self.observer is None:
            return
        try:
            self.observer(self.progress())
        except Exception:
            LOGGER.exception("Progress observer raised; continuing")

    async def run(self, items: Iterable[Any], per_item: Callable[[Any], Awaitable[Outcome]]) -> ResultSet:
        """
        Process ``items`` and return the settled :class:`ResultSet`.

        ``per_item`` should return an :class:`Outcome` and not raise; if
        it raises anyway, or times out, the item is recorded as failed and
        the worker moves on.
        """
        self.pending = deque(items)
        self.in_flight = {}
        self.results = ResultSet()
        self.peak_in_flight = 0
        workers = min(self.concurrency, len(self.pending))
        if not workers:
            return self.results
        await asyncio.gather(*(self._worker(per_item) for _ in range(workers)))
        return self.results

    async def _worker(self, per_item: Callable[[Any], Awaitable[Outcome]]) -> None:
        while self.pending:
            item = self.pending.popleft()
            key = self.key_fn(item)
            claim = next(self._claims)
            self.in_flight[claim] = key
            self.peak_in_flight = max(self.peak_in_flight, len(self.in_flight))
            self._notify()
            outcome = await self._settle(item, key, per_item)
            del self.in_flight[claim]
            self.results.add(outcome)
            self._notify()

    async def _settle(self, item: Any, key: str, per_item: Callable[[Any], Awaitable[Outcome]]) -> Outcome:
        try:
            # wait_for cancels the coroutine on timeout; a blocking HTTP call
            # already handed to a worker thread still runs to completion.
            return await asyncio.wait_for(per_item(item), timeout=self.timeout)
        except asyncio.TimeoutError:
            error = ItemError(key, "timeout", ItemTimeoutError(f"no result after {self.timeout}s"))
        except Exception as e:
            error = ItemError(key, "process", e)
        LOGGER.error("%s", error)
        report_error(error.step.upper(), self.stage, key, error.cause)
        return Outcome.failed(key, item, error)

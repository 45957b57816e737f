"""Debounced scheduling of query evaluations.

Keystrokes arrive faster than a full classify-and-rank pass is worth
running. The scheduler holds at most one pending evaluation: each new query
cancels the pending timer and the caller's future for the superseded query,
so only the most recent query's result is ever delivered.

States::

    Idle --submit--> Pending(query, deadline) --timer--> Evaluating(query) --> Idle
    Pending --submit--> Pending (old future cancelled, timer restarted)
    any --run_now--> Evaluating(query) --> Idle (pending work superseded)

Evaluation itself is synchronous; the scheduler never interrupts it.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class Idle:
    """No evaluation pending or running."""


@dataclass(frozen=True)
class Pending:
    """A query waiting for its debounce deadline."""

    query: str
    deadline: float


@dataclass(frozen=True)
class Evaluating:
    """A query being classified and ranked."""

    query: str


SchedulerState = Idle | Pending | Evaluating

IDLE = Idle()


class QueryScheduler(Generic[T]):
    """Debounce-with-supersession runner for query evaluations."""

    def __init__(
        self,
        evaluate: Callable[[str], T],
        delay_ms: int,
        leading: bool = False,
        clock: Callable[[], float] = time.monotonic,
    ):
        """Initialize scheduler.

        Args:
            evaluate: Synchronous function producing the result for a query
            delay_ms: Quiet period required before a debounced query runs
            leading: Evaluate the first query after an idle period at once
            clock: Monotonic clock in seconds used for idle detection
        """
        if delay_ms < 0:
            raise ValueError(f"delay_ms must be non-negative, got {delay_ms}")
        self._evaluate = evaluate
        self.delay_ms = delay_ms
        self.leading = leading
        self._clock = clock
        self._state: SchedulerState = IDLE
        self._timer: asyncio.TimerHandle | None = None
        self._future: asyncio.Future[T] | None = None
        self._generation = 0
        self._last_activity: float | None = None

    @property
    def state(self) -> SchedulerState:
        return self._state

    @property
    def delay(self) -> float:
        """Debounce delay in seconds."""
        return self.delay_ms / 1000

    def run_now(self, query: str) -> T:
        """Evaluate a query immediately, superseding any pending one."""
        self.cancel()
        return self._run(query)

    def submit(self, query: str) -> asyncio.Future[T]:
        """Schedule a debounced evaluation of a query.

        Must be called from a running event loop. The returned future
        resolves with the evaluation result, or is cancelled if a later
        query supersedes this one first.
        """
        loop = asyncio.get_running_loop()
        idle = self._is_idle()
        self.cancel()

        future: asyncio.Future[T] = loop.create_future()
        if self.leading and idle:
            logger.debug("Leading-edge evaluation: %s", query)
            try:
                future.set_result(self._run(query))
            except Exception as e:
                future.set_exception(e)
            return future

        generation = self._generation
        deadline = loop.time() + self.delay
        self._state = Pending(query, deadline)
        self._future = future
        self._timer = loop.call_at(deadline, self._fire, generation, query, future)
        self._last_activity = self._clock()
        return future

    def cancel(self) -> None:
        """Drop any pending evaluation without delivering it."""
        self._generation += 1
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        if self._future is not None and not self._future.done():
            logger.debug("Superseded pending query")
            self._future.cancel()
        self._future = None
        if isinstance(self._state, Pending):
            self._state = IDLE

    def _is_idle(self) -> bool:
        if not isinstance(self._state, Idle):
            return False
        if self._last_activity is None:
            return True
        return self._clock() - self._last_activity >= self.delay

    def _fire(self, generation: int, query: str, future: asyncio.Future[T]) -> None:
        if generation != self._generation or future.done():
            return
        self._timer = None
        self._future = None
        try:
            result = self._run(query)
        except Exception as e:
            if not future.done():
                future.set_exception(e)
            return
        if future.done():
            return
        if generation == self._generation:
            future.set_result(result)
        else:
            future.cancel()

    def _run(self, query: str) -> T:
        self._state = Evaluating(query)
        try:
            return self._evaluate(query)
        finally:
            self._state = IDLE
            self._last_activity = self._clock()

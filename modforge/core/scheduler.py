"""Debounced task scheduler with a single process-wide build guard.

Two guarantees:

- Debounce: bursts of triggers for the same key collapse into one run,
  fired after the key has been quiet for the delay.
- Serialization: at most one run executes at a time.  Under the default
  ``queue`` policy a trigger that arrives mid-build waits its turn, and
  only one pending run per key is kept (the newest callback wins).
  Waiters acquire the guard in arrival order.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any

from modforge.config import DEFAULT_DEBOUNCE_MS, ContentionPolicy

logger = logging.getLogger(__name__)

TaskFn = Callable[[], Awaitable[Any]]


class DebouncedScheduler:
    """Per-key debounce timers in front of one global build guard.

    Must be used from inside a running event loop.

    Parameters
    ----------
    delay_ms:
        Default quiet period before a scheduled key fires.
    policy:
        What to do with a trigger that arrives while the guard is held.
    """

    def __init__(
        self,
        delay_ms: int = DEFAULT_DEBOUNCE_MS,
        *,
        policy: ContentionPolicy = ContentionPolicy.QUEUE,
    ) -> None:
        self.delay_ms = delay_ms
        self.policy = policy
        self._timers: dict[str, asyncio.TimerHandle] = {}
        self._waiting: dict[str, TaskFn] = {}
        self._tasks: set[asyncio.Task[Any]] = set()
        self._guard = asyncio.Lock()

    # ------------------------------------------------------------------
    # Debounce
    # ------------------------------------------------------------------

    def schedule(self, key: str, fn: TaskFn, delay_ms: int | None = None) -> None:
        """(Re)start the timer for ``key``; ``fn`` runs when it fires."""
        loop = asyncio.get_running_loop()
        existing = self._timers.pop(key, None)
        if existing is not None:
            existing.cancel()
        delay = (self.delay_ms if delay_ms is None else delay_ms) / 1000
        self._timers[key] = loop.call_later(delay, self._fire, key, fn)

    def _fire(self, key: str, fn: TaskFn) -> None:
        self._timers.pop(key, None)
        task = asyncio.ensure_future(self.run_exclusive(key, fn))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    # ------------------------------------------------------------------
    # Build guard
    # ------------------------------------------------------------------

    async def run_exclusive(self, key: str, fn: TaskFn) -> bool:
        """Run ``fn`` while holding the build guard.

        Returns ``True`` if this call ran a task, ``False`` if the trigger
        was folded into an already-waiting run for the same key or dropped.
        Exceptions from ``fn`` are logged, never propagated.
        """
        if key in self._waiting:
            self._waiting[key] = fn
            logger.debug("Coalesced trigger for %s into its pending run", key)
            return False
        if self._guard.locked() and self.policy is ContentionPolicy.DROP:
            logger.info("Build in progress; dropping trigger for %s", key)
            return False
        if self._guard.locked():
            logger.debug("Build in progress; queued %s", key)

        self._waiting[key] = fn
        try:
            await self._guard.acquire()
        except asyncio.CancelledError:
            self._waiting.pop(key, None)
            raise
        try:
            latest = self._waiting.pop(key)
            try:
                await latest()
            except Exception:  # noqa: BLE001
                logger.exception("Scheduled task %s failed", key)
        finally:
            self._guard.release()
        return True

    # ------------------------------------------------------------------
    # Introspection and shutdown
    # ------------------------------------------------------------------

    @property
    def is_building(self) -> bool:
        return self._guard.locked()

    @property
    def pending_keys(self) -> list[str]:
        """Keys with a live debounce timer."""
        return list(self._timers)

    @property
    def queued_keys(self) -> list[str]:
        """Keys waiting for the build guard."""
        return list(self._waiting)

    def cancel_all(self) -> None:
        """Cancel pending timers and any queued or running tasks."""
        for handle in self._timers.values():
            handle.cancel()
        self._timers.clear()
        for task in list(self._tasks):
            task.cancel()

    async def wait_idle(self) -> None:
        """Wait until no timers are pending and no tasks are running."""
        while self._timers or self._tasks:
            if self._tasks:
                await asyncio.wait(set(self._tasks))
            else:
                await asyncio.sleep(max(self.delay_ms, 10) / 2000)

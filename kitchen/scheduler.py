"""Repeating poll trigger with a debounce floor shared by every trigger source."""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Awaitable, Callable

from kitchen.config import (
    BACKOFF_AFTER_ERRORS,
    MAX_POLL_INTERVAL_SECONDS,
    POLL_DEBOUNCE_SECONDS,
    POLL_INTERVAL_SECONDS,
)

logger = logging.getLogger(__name__)

PollFn = Callable[[], Awaitable[bool]]


class PollingScheduler:
    """
    Owns the timer task and the single guarded entry point `trigger`.

    A trigger is dropped, never queued, while a poll is in flight or when the
    previous poll started less than `debounce` seconds ago. Timer ticks and
    manual refreshes go through the same guard, so at most one fetch runs at a
    time.
    """

    def __init__(
        self,
        poll: PollFn,
        period: float = POLL_INTERVAL_SECONDS,
        debounce: float = POLL_DEBOUNCE_SECONDS,
        clock: Callable[[], float] = time.monotonic,
        backoff_after_errors: int = BACKOFF_AFTER_ERRORS,
        max_period: float = MAX_POLL_INTERVAL_SECONDS,
    ) -> None:
        if period <= 0:
            raise ValueError("period must be positive")
        if debounce < 0:
            raise ValueError("debounce must not be negative")
        self._poll = poll
        self.period = period
        self.debounce = debounce
        self.clock = clock
        self.backoff_after_errors = backoff_after_errors
        self.max_period = max(period, max_period)

        self.is_polling = False
        self.last_poll_started: float | None = None
        self.consecutive_errors = 0
        self._task: asyncio.Task[None] | None = None
        self._state_listeners: list[Callable[[bool], None]] = []

    def add_state_listener(self, listener: Callable[[bool], None]) -> None:
        self._state_listeners.append(listener)

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def current_period(self) -> float:
        if self.backoff_after_errors > 0 and self.consecutive_errors > self.backoff_after_errors:
            return self.max_period
        return self.period

    def _set_polling(self, value: bool) -> None:
        self.is_polling = value
        for listener in list(self._state_listeners):
            try:
                listener(value)
            except Exception:
                logger.exception("polling state listener failed")

    def _accepts_trigger(self) -> bool:
        if self.is_polling:
            return False
        if self.last_poll_started is None:
            return True
        return self.clock() - self.last_poll_started >= self.debounce

    async def trigger(self, source: str = "timer") -> bool:
        """Run one poll unless debounced; return whether it ran."""
        if not self._accepts_trigger():
            logger.debug("poll_skipped source=%s", source)
            return False

        self.last_poll_started = self.clock()
        self._set_polling(True)
        try:
            ok = await self._poll()
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.exception("poll failed source=%s", source)
            ok = False
        finally:
            self._set_polling(False)

        if ok:
            self.consecutive_errors = 0
        else:
            self.consecutive_errors += 1
            logger.warning("poll_degraded source=%s consecutive_errors=%d", source, self.consecutive_errors)
        return True

    async def refresh_now(self) -> bool:
        return await self.trigger("manual")

    async def _run(self) -> None:
        await self.trigger("start")
        while True:
            await asyncio.sleep(self.current_period)
            await self.trigger("timer")

    def start(self) -> None:
        """(Re)start the timer; any previous timer task is cancelled first."""
        self.stop()
        self._task = asyncio.get_running_loop().create_task(self._run())
        logger.info("polling_started period=%ss debounce=%ss", self.period, self.debounce)

    def stop(self) -> None:
        task, self._task = self._task, None
        if task is not None and not task.done():
            task.cancel()
            logger.info("polling_stopped")

"""Hourly background sweep of the schedule cache."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Optional

from .cache import ScheduleCache
from .config import Settings

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]

# Upper bound on a single sleep so clock jumps are noticed within a minute.
MAX_WAIT_SECONDS = 60.0


@dataclass(frozen=True)
class RefreshPolicy:
    first_hour: int = 8
    last_hour: int = 21
    even_hours_only: bool = True

    @classmethod
    def from_settings(cls, settings: Settings) -> "RefreshPolicy":
        return cls(
            first_hour=settings.refresh_first_hour,
            last_hour=settings.refresh_last_hour,
            even_hours_only=settings.refresh_even_hours_only,
        )

    def should_sweep(self, hour: int) -> bool:
        if not self.first_hour <= hour <= self.last_hour:
            return False
        return hour % 2 == 0 if self.even_hours_only else True


def next_hour_boundary(now: datetime) -> datetime:
    return now.replace(minute=0, second=0, microsecond=0) + timedelta(hours=1)


class RefreshScheduler:
    """Wakes at the top of every hour and clears the cache when the policy allows it."""

    def __init__(
        self,
        cache: ScheduleCache,
        *,
        policy: Optional[RefreshPolicy] = None,
        clock: Optional[Clock] = None,
        max_wait_seconds: float = MAX_WAIT_SECONDS,
    ) -> None:
        self._cache = cache
        self._policy = policy or RefreshPolicy()
        self._clock: Clock = clock or datetime.now
        self._max_wait_seconds = max_wait_seconds
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def tick(self, now: datetime) -> bool:
        """Run the sweep decision for ``now``; returns whether the cache was cleared."""
        if not self._policy.should_sweep(now.hour):
            logger.debug("Skipping cache sweep at hour=%s", now.hour)
            return False
        dropped = self._cache.clear()
        logger.info("Cleared schedule cache at %s (%d entries dropped)", now.isoformat(timespec="minutes"), dropped)
        return True

    def start(self) -> None:
        if self.running:
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, name="schedule-cache-refresh", daemon=True)
        self._thread.start()
        logger.info("Cache refresh loop started")

    def stop(self, timeout: Optional[float] = 5.0) -> None:
        self._stop.set()
        thread = self._thread
        if thread is not None:
            thread.join(timeout)
            if thread.is_alive():
                logger.warning("Cache refresh loop did not stop within %ss", timeout)
        self._thread = None
        logger.info("Cache refresh loop stopped")

    def _run(self) -> None:
        target = next_hour_boundary(self._clock())
        while not self._stop.is_set():
            remaining = (target - self._clock()).total_seconds()
            if remaining > 0:
                self._stop.wait(min(remaining, self._max_wait_seconds))
                continue
            now = self._clock()
            self.tick(now)
            target = next_hour_boundary(now)


__all__ = ["MAX_WAIT_SECONDS", "RefreshPolicy", "RefreshScheduler", "next_hour_boundary"]

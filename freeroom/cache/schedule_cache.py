"""In-memory cache of per-room, per-weekday course lists."""

from __future__ import annotations

import threading
from dataclasses import asdict, dataclass
from typing import Dict, Iterable, Optional, Tuple

from ..models import CourseEntry
from .rwlock import ReadWriteLock

CacheKey = Tuple[str, int]
CachedCourses = Tuple[CourseEntry, ...]


def _cache_key(room: str, weekday: int) -> CacheKey:
    normalized = room.strip()
    if not normalized:
        raise ValueError("Room cannot be empty when caching schedules.")
    if not 1 <= weekday <= 7:
        raise ValueError(f"Weekday must be within 1..7, got {weekday}.")
    return normalized, weekday


@dataclass
class CacheStats:
    hits: int = 0
    misses: int = 0
    stores: int = 0
    sweeps: int = 0


class ScheduleCache:
    """Process-local cache keyed by ``(room, weekday)``.

    Lookups share a read lock. ``put`` and ``clear`` take the write lock and
    publish with a single assignment, so readers never see a half-written
    entry or a half-cleared map.
    """

    def __init__(self) -> None:
        self._lock = ReadWriteLock()
        self._entries: Dict[CacheKey, CachedCourses] = {}
        self._stats = CacheStats()
        self._stats_lock = threading.Lock()

    def get(self, room: str, weekday: int) -> Optional[CachedCourses]:
        """Return the cached courses, or ``None`` when the key is absent.

        An empty tuple is a real entry: the room has no classes that day.
        """
        key = _cache_key(room, weekday)
        with self._lock.read_locked():
            courses = self._entries.get(key)
        with self._stats_lock:
            if courses is None:
                self._stats.misses += 1
            else:
                self._stats.hits += 1
        return courses

    def put(self, room: str, weekday: int, courses: Iterable[CourseEntry]) -> None:
        key = _cache_key(room, weekday)
        payload: CachedCourses = tuple(courses)
        with self._lock.write_locked():
            self._entries[key] = payload
        with self._stats_lock:
            self._stats.stores += 1

    def clear(self) -> int:
        """Drop every entry at once and return how many were dropped."""
        with self._lock.write_locked():
            dropped = len(self._entries)
            self._entries = {}
        with self._stats_lock:
            self._stats.sweeps += 1
        return dropped

    def __len__(self) -> int:
        with self._lock.read_locked():
            return len(self._entries)

    def snapshot(self) -> Dict[str, int]:
        with self._stats_lock:
            stats = asdict(self._stats)
        stats["entries"] = len(self)
        return stats


__all__ = ["CacheKey", "CacheStats", "CachedCourses", "ScheduleCache"]

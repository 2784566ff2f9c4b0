"""In-memory caches shared between request handlers and the refresh loop."""

from .rwlock import ReadWriteLock
from .schedule_cache import CacheStats, ScheduleCache

__all__ = ["CacheStats", "ReadWriteLock", "ScheduleCache"]

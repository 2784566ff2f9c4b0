"""Per-room free/occupied slot aggregation."""

from __future__ import annotations

import logging
from datetime import date, datetime
from typing import List, Optional, Sequence, Tuple

from .cache import ScheduleCache
from .config import DEFAULT_ANCHOR_DATE, DEFAULT_ANCHOR_WEEK, Settings
from .models import CourseEntry, RoomSchedule
from .slots import DEFAULT_SLOT_COUNT, resolve_slots
from .upstream import UpstreamClient, academic_week_number

logger = logging.getLogger(__name__)


def iso_weekday(now: datetime) -> int:
    """Monday is 1, Sunday is 7."""
    return now.isoweekday()


class ScheduleService:
    """Builds today's room schedules from the cache, falling back to the timetable API."""

    def __init__(
        self,
        cache: ScheduleCache,
        client: UpstreamClient,
        *,
        slot_count: int = DEFAULT_SLOT_COUNT,
        anchor_date: date = DEFAULT_ANCHOR_DATE,
        anchor_week: int = DEFAULT_ANCHOR_WEEK,
    ) -> None:
        self._cache = cache
        self._client = client
        self._slot_count = slot_count
        self._anchor_date = anchor_date
        self._anchor_week = anchor_week

    @classmethod
    def from_settings(cls, settings: Settings, cache: ScheduleCache, client: UpstreamClient) -> "ScheduleService":
        return cls(
            cache,
            client,
            slot_count=settings.slot_count,
            anchor_date=settings.anchor_date,
            anchor_week=settings.anchor_week,
        )

    def build_schedules(self, rooms: Sequence[str], now: datetime) -> List[RoomSchedule]:
        weekday = iso_weekday(now)
        schedules: List[RoomSchedule] = []
        for room in rooms:
            if not room.strip():
                logger.warning("Skipping blank room identifier")
                continue
            courses = self._courses_for(room, weekday, now)
            if courses is None:
                # Unknown rather than "free all day": both lists stay empty.
                schedules.append(RoomSchedule.unknown(room))
                continue
            partition = resolve_slots(courses, weekday, self._slot_count)
            schedules.append(
                RoomSchedule(
                    room=room,
                    free_slots=list(partition.free),
                    occupied_slots=list(partition.occupied),
                )
            )
        return schedules

    def _courses_for(self, room: str, weekday: int, now: datetime) -> Optional[Tuple[CourseEntry, ...]]:
        cached = self._cache.get(room, weekday)
        if cached is not None:
            return cached

        week = academic_week_number(self._anchor_date, self._anchor_week, now)
        result = self._client.fetch(room, week)
        if not result.ok:
            logger.warning("No timetable for room=%s (weekday=%s, week=%s); reporting as unknown", room, weekday, week)
            return None

        today = tuple(course for course in result.courses if course.weekday == weekday)
        self._cache.put(room, weekday, today)
        logger.info("Cached %d course(s) for room=%s weekday=%s week=%s", len(today), room, weekday, week)
        return today


__all__ = ["ScheduleService", "iso_weekday"]

"""Partition a day's lecture slots into free and occupied sets."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Set, Tuple

from .models import CourseEntry

DEFAULT_SLOT_COUNT = 12


@dataclass(frozen=True)
class SlotPartition:
    free: Tuple[int, ...]
    occupied: Tuple[int, ...]


def resolve_slots(
    courses: Iterable[CourseEntry],
    today: int,
    slot_count: int = DEFAULT_SLOT_COUNT,
) -> SlotPartition:
    """Mark every slot covered by one of today's courses as occupied.

    Ranges are inclusive on both ends. Slots past ``slot_count`` are dropped
    without error, and entries for any other weekday are ignored. Slots below 1
    never reach here: ``CourseEntry`` rejects them when the payload is decoded.
    """
    if slot_count < 1:
        raise ValueError(f"slot_count must be >= 1, got {slot_count}")

    occupied: Set[int] = set()
    for course in courses:
        if course.weekday != today:
            continue
        last = min(course.end_slot, slot_count)
        occupied.update(range(course.start_slot, last + 1))

    free = [slot for slot in range(1, slot_count + 1) if slot not in occupied]
    return SlotPartition(free=tuple(free), occupied=tuple(sorted(occupied)))


__all__ = ["DEFAULT_SLOT_COUNT", "SlotPartition", "resolve_slots"]

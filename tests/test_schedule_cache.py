from __future__ import annotations

import threading
from concurrent.futures import ThreadPoolExecutor

import pytest

from freeroom.cache import ReadWriteLock, ScheduleCache
from freeroom.models import CourseEntry


def _courses() -> list[CourseEntry]:
    return [
        CourseEntry(weekday=3, start_slot=1, end_slot=2),
        CourseEntry(weekday=3, start_slot=5, end_slot=6),
    ]


def test_put_then_get_returns_the_stored_courses() -> None:
    cache = ScheduleCache()
    cache.put("A101", 3, _courses())

    assert cache.get("A101", 3) == tuple(_courses())


def test_unknown_key_is_a_miss() -> None:
    cache = ScheduleCache()
    cache.put("A101", 3, _courses())

    assert cache.get("A101", 4) is None
    assert cache.get("B202", 3) is None


def test_empty_course_list_is_cached_as_a_hit() -> None:
    cache = ScheduleCache()
    cache.put("A101", 7, [])

    assert cache.get("A101", 7) == ()


def test_room_is_normalized_for_lookup() -> None:
    cache = ScheduleCache()
    cache.put(" A101 ", 1, _courses())

    assert cache.get("A101", 1) == tuple(_courses())


@pytest.mark.parametrize("room,weekday", [("", 1), ("   ", 1), ("A101", 0), ("A101", 8)])
def test_invalid_keys_are_rejected(room: str, weekday: int) -> None:
    cache = ScheduleCache()
    with pytest.raises(ValueError):
        cache.get(room, weekday)


def test_stored_entry_is_isolated_from_caller_list() -> None:
    cache = ScheduleCache()
    courses = _courses()
    cache.put("A101", 3, courses)
    courses.append(CourseEntry(weekday=3, start_slot=9, end_slot=9))

    cached = cache.get("A101", 3)
    assert cached is not None
    assert len(cached) == 2


def test_clear_drops_every_key() -> None:
    cache = ScheduleCache()
    keys = [("A101", 1), ("A102", 1), ("A101", 2)]
    for room, weekday in keys:
        cache.put(room, weekday, _courses())

    assert cache.clear() == 3
    for room, weekday in keys:
        assert cache.get(room, weekday) is None
    assert len(cache) == 0


def test_snapshot_counts_hits_misses_and_sweeps() -> None:
    cache = ScheduleCache()
    cache.get("A101", 1)
    cache.put("A101", 1, [])
    cache.get("A101", 1)
    cache.clear()

    snapshot = cache.snapshot()
    assert snapshot == {"hits": 1, "misses": 1, "stores": 1, "sweeps": 1, "entries": 0}


def test_concurrent_misses_then_puts_converge_to_one_entry() -> None:
    cache = ScheduleCache()
    courses = tuple(_courses())
    workers = 16
    barrier = threading.Barrier(workers)

    def populate() -> object:
        barrier.wait()
        if cache.get("A101", 3) is None:
            cache.put("A101", 3, courses)
        return cache.get("A101", 3)

    with ThreadPoolExecutor(max_workers=workers) as pool:
        results = list(pool.map(lambda _: populate(), range(workers)))

    assert all(result == courses for result in results)
    assert len(cache) == 1


def test_writer_waits_for_active_reader() -> None:
    lock = ReadWriteLock()
    order: list[str] = []
    reader_in = threading.Event()
    release_reader = threading.Event()

    def reader() -> None:
        with lock.read_locked():
            reader_in.set()
            release_reader.wait(timeout=5)
            order.append("read")

    def writer() -> None:
        reader_in.wait(timeout=5)
        with lock.write_locked():
            order.append("write")

    threads = [threading.Thread(target=reader), threading.Thread(target=writer)]
    for thread in threads:
        thread.start()
    reader_in.wait(timeout=5)
    release_reader.set()
    for thread in threads:
        thread.join(timeout=5)

    assert order == ["read", "write"]


def test_readers_share_the_lock() -> None:
    lock = ReadWriteLock()
    inside = threading.Barrier(2, timeout=5)

    def reader() -> None:
        with lock.read_locked():
            inside.wait()

    threads = [threading.Thread(target=reader) for _ in range(2)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=5)

    assert not inside.broken

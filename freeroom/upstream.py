"""Client for the university timetable API."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Dict, Optional, Tuple

import httpx
from pydantic import ValidationError

from .config import Settings
from .models import CourseEntry, UpstreamResponsePayload

logger = logging.getLogger(__name__)

REQUEST_TYPE = "thisweek_courseschedule"


class UpstreamError(RuntimeError):
    """Base class for failures talking to the timetable API."""


class UpstreamUnavailable(UpstreamError):
    """Transport failure, timeout or non-2xx status."""


class UpstreamDecodeError(UpstreamError):
    """The response body could not be turned into course entries."""


class ConfigMissing(UpstreamError):
    """No upstream URL is configured."""


def academic_week_number(anchor_date: date, anchor_week: int, now: datetime) -> int:
    """Week index for ``now``, counting whole weeks since ``anchor_date`` (week ``anchor_week``)."""
    elapsed_days = (now.date() - anchor_date).days
    return anchor_week + elapsed_days // 7


@dataclass(frozen=True)
class FetchResult:
    courses: Tuple[CourseEntry, ...] = ()
    error: Optional[UpstreamError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, courses: Tuple[CourseEntry, ...]) -> "FetchResult":
        return cls(courses=courses)

    @classmethod
    def failure(cls, error: UpstreamError) -> "FetchResult":
        return cls(error=error)


def build_request_body(room: str, week_number: int) -> Dict[str, Any]:
    return {
        "type": REQUEST_TYPE,
        "data": [
            {
                "room_name": room,
                "qqdjz": week_number,
            }
        ],
    }


class UpstreamClient:
    def __init__(
        self,
        url: str,
        *,
        timeout_seconds: float = 10.0,
        client: Optional[httpx.Client] = None,
    ) -> None:
        self._url = url.strip()
        self._timeout_seconds = timeout_seconds
        self._client = client

    @classmethod
    def from_settings(cls, settings: Settings, *, client: Optional[httpx.Client] = None) -> "UpstreamClient":
        return cls(
            settings.upstream_url,
            timeout_seconds=settings.upstream_timeout_seconds,
            client=client,
        )

    @property
    def configured(self) -> bool:
        return bool(self._url)

    def fetch(self, room: str, week_number: int) -> FetchResult:
        """Fetch this week's courses for ``room``; failures come back as a value, never raised."""
        try:
            courses = self._fetch_courses(room, week_number)
        except UpstreamError as exc:
            logger.warning("Timetable fetch failed (room=%s, week=%s): %s", room, week_number, exc)
            return FetchResult.failure(exc)
        logger.debug("Fetched %d course(s) for room=%s week=%s", len(courses), room, week_number)
        return FetchResult.success(courses)

    def _fetch_courses(self, room: str, week_number: int) -> Tuple[CourseEntry, ...]:
        if not self._url:
            raise ConfigMissing("UESTC_API_URL is not configured.")

        body = build_request_body(room, week_number)
        local_client = self._client or httpx.Client(timeout=self._timeout_seconds)
        close_client = self._client is None
        try:
            response = local_client.post(self._url, json=body, timeout=self._timeout_seconds)
            response.raise_for_status()
        except httpx.HTTPError as exc:
            raise UpstreamUnavailable(f"Timetable API call failed: {exc}") from exc
        finally:
            if close_client:
                local_client.close()

        try:
            parsed = UpstreamResponsePayload.model_validate(response.json())
            return tuple(course.to_entry() for course in parsed.data)
        except (ValueError, ValidationError) as exc:
            raise UpstreamDecodeError(f"Timetable API returned invalid payload: {exc}") from exc


__all__ = [
    "ConfigMissing",
    "FetchResult",
    "REQUEST_TYPE",
    "UpstreamClient",
    "UpstreamDecodeError",
    "UpstreamError",
    "UpstreamUnavailable",
    "academic_week_number",
    "build_request_body",
]

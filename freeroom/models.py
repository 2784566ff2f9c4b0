"""Domain records and wire payloads for classroom timetables."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


@dataclass(frozen=True)
class CourseEntry:
    """One class occupying slots ``start_slot..end_slot`` on ``weekday``."""

    weekday: int
    start_slot: int
    end_slot: int

    def __post_init__(self) -> None:
        if not 1 <= self.weekday <= 7:
            raise ValueError(f"weekday must be within 1..7, got {self.weekday}")
        if self.start_slot < 1:
            raise ValueError(f"start_slot must be >= 1, got {self.start_slot}")
        if self.end_slot < self.start_slot:
            raise ValueError(
                f"end_slot ({self.end_slot}) must not precede start_slot ({self.start_slot})"
            )


class UpstreamCoursePayload(BaseModel):
    xqj: str
    ksjc: str
    jsjc: str

    def to_entry(self) -> CourseEntry:
        return CourseEntry(
            weekday=int(self.xqj.strip()),
            start_slot=int(self.ksjc.strip()),
            end_slot=int(self.jsjc.strip()),
        )


class UpstreamResponsePayload(BaseModel):
    code: Optional[int] = None
    message: Optional[str] = None
    data: List[UpstreamCoursePayload] = Field(default_factory=list)

    @field_validator("data", mode="before")
    @classmethod
    def _null_data_is_empty(cls, value: object) -> object:
        return [] if value is None else value


class RoomSchedule(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    room: str
    free_slots: List[int] = Field(default_factory=list, alias="freeSlots")
    occupied_slots: List[int] = Field(default_factory=list, alias="occupiedSlots")

    @classmethod
    def unknown(cls, room: str) -> "RoomSchedule":
        return cls(room=room)


class ScheduleListResponse(BaseModel):
    status: int = 200
    message: str = "success"
    data: List[RoomSchedule] = Field(default_factory=list)


__all__ = [
    "CourseEntry",
    "RoomSchedule",
    "ScheduleListResponse",
    "UpstreamCoursePayload",
    "UpstreamResponsePayload",
]

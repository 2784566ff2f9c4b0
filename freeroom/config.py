import os
from datetime import date, datetime
from functools import lru_cache
from typing import List, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings

from .slots import DEFAULT_SLOT_COUNT

DEFAULT_ANCHOR_DATE = date(2024, 12, 9)
DEFAULT_ANCHOR_WEEK = 15


def _split_csv(value: str) -> List[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


class Settings(BaseSettings):
    allowed_origins_raw: str = Field("http://localhost:3000", alias="ALLOWED_ORIGINS")
    classrooms_raw: str = Field("A101,A102,A103", alias="CLASSROOMS")
    upstream_url: str = Field("", alias="UESTC_API_URL")
    upstream_timeout_seconds: float = Field(10.0, gt=0, alias="UESTC_API_TIMEOUT_SECONDS")
    host: str = Field("0.0.0.0", alias="HOST")
    port: int = Field(8080, alias="PORT")
    slot_count: int = Field(DEFAULT_SLOT_COUNT, ge=1, alias="FREEROOM_SLOT_COUNT")
    anchor_date: date = Field(DEFAULT_ANCHOR_DATE, alias="FREEROOM_ANCHOR_DATE")
    anchor_week: int = Field(DEFAULT_ANCHOR_WEEK, alias="FREEROOM_ANCHOR_WEEK")
    timezone: Optional[str] = Field(None, alias="FREEROOM_TIMEZONE")
    refresh_enabled: bool = Field(True, alias="FREEROOM_REFRESH_ENABLED")
    refresh_first_hour: int = Field(8, ge=0, le=23, alias="FREEROOM_REFRESH_FIRST_HOUR")
    refresh_last_hour: int = Field(21, ge=0, le=23, alias="FREEROOM_REFRESH_LAST_HOUR")
    refresh_even_hours_only: bool = Field(True, alias="FREEROOM_REFRESH_EVEN_HOURS_ONLY")

    class Config:
        env_file = os.getenv("ENV_FILE", ".env")
        env_file_encoding = "utf-8"
        case_sensitive = True

    @field_validator("timezone")
    @classmethod
    def _known_timezone(cls, value: Optional[str]) -> Optional[str]:
        if not value:
            return None
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise ValueError(f"Unknown timezone: {value}") from exc
        return value

    @property
    def classrooms(self) -> List[str]:
        return _split_csv(self.classrooms_raw)

    @property
    def allowed_origins(self) -> List[str]:
        return _split_csv(self.allowed_origins_raw)

    def now(self) -> datetime:
        """Wall-clock time in the configured zone, or local time when none is set."""
        if self.timezone:
            return datetime.now(ZoneInfo(self.timezone))
        return datetime.now()


@lru_cache
def get_settings() -> Settings:
    try:
        return Settings()  # type: ignore[call-arg]
    except ValidationError as exc:
        raise RuntimeError(f"Invalid configuration: {exc}") from exc

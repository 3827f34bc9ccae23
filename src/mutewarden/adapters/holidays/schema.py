"""Pydantic models describing the holiday API payloads."""

from __future__ import annotations

import datetime as dt

from pydantic import BaseModel, ConfigDict, Field, field_validator

from mutewarden.domain.model import DayKind, HolidayTableEntry


class HolidayApiModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


def _blank_to_none(value: object) -> object:
    if isinstance(value, str):
        return value.strip() or None
    return value


class HolidayDayPayload(HolidayApiModel):
    date: dt.date
    is_off_day: bool = Field(alias="isOffDay")
    name: str | None = None

    _normalize_name = field_validator("name", mode="before")(_blank_to_none)

    def to_entry(self) -> HolidayTableEntry:
        return HolidayTableEntry(day=self.date, is_off_day=self.is_off_day, name=self.name)


class HolidayYearResponse(HolidayApiModel):
    year: int | None = None
    days: list[HolidayDayPayload]

    def entries(self) -> list[HolidayTableEntry]:
        return [day.to_entry() for day in self.days]


class DayKindResponse(HolidayApiModel):
    date: dt.date | None = None
    kind: DayKind = Field(alias="type")
    name: str | None = None

    _normalize_name = field_validator("name", mode="before")(_blank_to_none)

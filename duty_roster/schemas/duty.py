# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Request / Response schemas — API contract definitions.
These are Pydantic models used ONLY at the controller (HTTP) boundary.
"""

import datetime as dt
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from duty_roster.models.domain import DailyAssignment, MemberRef, WeeklySchedule


class ApiModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel)


# ── Weekly Schemas ──

class PreviewResponse(ApiModel):
    success: bool
    message: str
    schedule: WeeklySchedule
    preview: str


class CommitResponse(ApiModel):
    success: bool
    message: str
    schedule_id: Optional[str] = None
    counter_deltas: dict[str, int] = Field(default_factory=dict)
    notified: bool = False


class WeeklyScheduleResponse(ApiModel):
    week_key: str
    days: list[DailyAssignment]


# ── Daily Schemas ──

class TodayDutyResponse(ApiModel):
    date: dt.date
    members: list[MemberRef]
    has_no_duty: bool


class DailyDutyRequest(ApiModel):
    member_ids: list[str] = Field(
        ..., min_length=1, max_length=2, description="One or two member ids"
    )


class DailyDutyResponse(ApiModel):
    success: bool
    message: str
    date: dt.date
    members: list[MemberRef]
    counter_deltas: dict[str, int]


class ReminderResponse(ApiModel):
    sent: bool
    message: str
    date: dt.date

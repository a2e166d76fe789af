# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Domain models — pure data structures, NO FastAPI dependency.
All models are frozen: the engine builds new values, never mutates them.
Field names are snake_case in Python and camelCase on the wire / on disk.
"""

import datetime as dt
from collections import Counter
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

DayLabel = Literal["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]
ScheduleStatus = Literal["previewed", "confirmed"]

DAY_LABELS: tuple[str, ...] = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")
WEEKDAY_LABELS: tuple[str, ...] = DAY_LABELS[:4]
WEEKEND_BLOCK_LABELS: tuple[str, ...] = DAY_LABELS[4:]
# Friday shares the weekend pair but is still a working day.
WEEKEND_LABELS: tuple[str, ...] = ("Sat", "Sun")


class FrozenModel(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        alias_generator=to_camel,
    )


class MemberRef(FrozenModel):
    """Reference to a team member as carried by an assignment."""
    id: str = Field(..., min_length=1, max_length=255)
    name: str = Field(..., min_length=1, max_length=255)


class TeamMember(FrozenModel):
    """A roster entry as read from the roster store."""
    id: str = Field(..., min_length=1, max_length=255, description="Unique member id")
    name: str = Field(..., min_length=1, max_length=255, description="Display name")
    is_authorized: bool = Field(
        default=False, description="May anchor a duty pair on their own"
    )
    duty_count: int = Field(default=0, ge=0, description="Days on duty so far")

    def ref(self) -> MemberRef:
        return MemberRef(id=self.id, name=self.name)


class CandidatePool(FrozenModel):
    """Immutable roster snapshot handed to the scheduling engine."""
    members: tuple[TeamMember, ...] = ()

    @model_validator(mode="after")
    def _unique_ids(self) -> "CandidatePool":
        ids = [m.id for m in self.members]
        duplicates = sorted({i for i in ids if ids.count(i) > 1})
        if duplicates:
            raise ValueError(f"Duplicate member ids in roster: {', '.join(duplicates)}")
        return self

    def __len__(self) -> int:
        return len(self.members)

    @property
    def authorized(self) -> tuple[TeamMember, ...]:
        return tuple(m for m in self.members if m.is_authorized)

    @property
    def ids(self) -> frozenset[str]:
        return frozenset(m.id for m in self.members)

    def get(self, member_id: str) -> Optional[TeamMember]:
        for member in self.members:
            if member.id == member_id:
                return member
        return None


class DailyAssignment(FrozenModel):
    date: dt.date
    day_label: DayLabel
    is_weekend: bool = False
    members: tuple[MemberRef, ...] = Field(default=(), max_length=2)

    @property
    def member_ids(self) -> tuple[str, ...]:
        return tuple(m.id for m in self.members)


class WeeklySchedule(FrozenModel):
    """Seven daily assignments, Monday first."""
    schedule_id: str = Field(..., min_length=1)
    week_key: str
    status: ScheduleStatus = "previewed"
    days: tuple[DailyAssignment, ...] = Field(..., min_length=7, max_length=7)
    fallback_used: bool = False
    warnings: tuple[str, ...] = ()
    generated_at: dt.datetime

    @model_validator(mode="after")
    def _monday_first_consecutive(self) -> "WeeklySchedule":
        labels = tuple(d.day_label for d in self.days)
        if labels != DAY_LABELS:
            raise ValueError("Schedule days must run Monday through Sunday in order")
        start = self.days[0].date
        for offset, day in enumerate(self.days):
            if day.date != start + dt.timedelta(days=offset):
                raise ValueError("Schedule dates must be seven consecutive days")
        return self

    def day(self, label: str) -> DailyAssignment:
        return self.days[DAY_LABELS.index(label)]

    def member_days(self) -> Counter:
        """Number of days each member id is on duty."""
        counts: Counter = Counter()
        for day in self.days:
            counts.update(day.member_ids)
        return counts

    def mark_confirmed(self) -> "WeeklySchedule":
        return self.model_copy(update={"status": "confirmed"})


class CommitResult(FrozenModel):
    success: bool
    message: str
    schedule_id: Optional[str] = None
    counter_deltas: dict[str, int] = Field(default_factory=dict)
    notified: bool = False

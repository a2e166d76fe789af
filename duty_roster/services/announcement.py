# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Service: Announcement rendering — pure text formatting, no I/O.
"""

from datetime import date
from typing import Iterable, Optional

from duty_roster.models.domain import (
    WEEKEND_BLOCK_LABELS,
    DailyAssignment,
    MemberRef,
    WeeklySchedule,
)
from duty_roster.services.week_window import display_date

DAY_NAMES = {
    "Mon": "Monday",
    "Tue": "Tuesday",
    "Wed": "Wednesday",
    "Thu": "Thursday",
    "Fri": "Friday",
    "Sat": "Saturday",
    "Sun": "Sunday",
}

RULES = (
    "Two members on duty every day",
    "At least one authorized member per pair",
    "Friday to Sunday staffed by the same pair (✨)",
    "Nobody on duty two weekdays in a row (Mon-Thu) 🚫",
)


def format_members(members: Iterable[MemberRef]) -> str:
    text = " & ".join(f"{m.name}({m.id})" for m in members)
    return text or "unassigned"


def _day_line(day: DailyAssignment, today: Optional[date] = None) -> str:
    marker = "🌴" if day.is_weekend else "🏢"
    line = (
        f"{marker} {DAY_NAMES[day.day_label]} ({display_date(day.date)}): "
        f"{format_members(day.members)}"
    )
    if day.day_label in WEEKEND_BLOCK_LABELS:
        line += " ✨"
    if today is not None and day.date == today:
        line += " ← today"
    return line


def _weekend_pair_line(schedule: WeeklySchedule) -> str:
    friday = schedule.day("Fri")
    if not friday.members:
        return ""
    return f"🎆 Weekend duty (Fri-Sun): {format_members(friday.members)}"


def render_preview_message(schedule: WeeklySchedule) -> str:
    lines = [f"📋 Weekly duty preview - {schedule.week_key}", ""]
    weekend = _weekend_pair_line(schedule)
    if weekend:
        lines += [weekend, ""]
    lines += [_day_line(day) for day in schedule.days]
    lines += ["", "📝 Duty rules:"]
    lines += [f"• {rule}" for rule in RULES]
    if schedule.fallback_used:
        lines.append("⚠️ Weekday rotation could not satisfy every rule this week")
    lines += ["", "※ This is a preview. Confirm it to announce the schedule to the channel."]
    return "\n".join(lines)


def render_confirmation_message(schedule: WeeklySchedule, today: Optional[date] = None) -> str:
    lines = [
        f"🚨 Weekly duty schedule - {schedule.week_key}",
        "",
        "📅 This week's duty schedule is confirmed!",
        "",
    ]
    weekend = _weekend_pair_line(schedule)
    if weekend:
        lines += [f"{weekend} - thank you!", ""]
    lines += [_day_line(day, today) for day in schedule.days]
    lines += ["", "📝 Duty notes:"]
    lines += [f"• {rule}" for rule in RULES]
    lines += [
        "",
        "💡 Members on duty get a check-in reminder at 2 PM and 4 PM.",
    ]
    return "\n".join(lines)


def render_reminder_message(day: date, members: Iterable[MemberRef], hour: int) -> str:
    return "\n".join([
        f"🔔 Duty reminder ({hour:02d}:00) 🔔",
        "",
        f"On duty today ({display_date(day)}): {format_members(members)}",
        "",
        "Checklist:",
        "- Office security check",
        "- Facility inspection",
        "- Ready for urgent issues",
        "",
        "Thank you! 💪",
    ])

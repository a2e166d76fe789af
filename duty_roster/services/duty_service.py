# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Service: Day-to-day duty operations over the persisted roster.
Weekly view, today's duty, manual daily assignment, reminders and stats.
"""

from datetime import date, datetime
from typing import Any, Iterable, Optional

from duty_roster.core.logging import get_logger
from duty_roster.metrics.prometheus import ROSTER_MEMBERS
from duty_roster.models.domain import (
    WEEKEND_LABELS,
    CandidatePool,
    DailyAssignment,
    MemberRef,
)
from duty_roster.repositories.history_repository import HistoryRepository
from duty_roster.repositories.roster_repository import RosterRepository
from duty_roster.services.announcement import render_reminder_message
from duty_roster.services.duty_ledger import DutyCounterLedger
from duty_roster.services.notification_client import NotificationClient
from duty_roster.services.week_window import current_week, to_local, week_key

logger = get_logger(__name__)


def _resolve(pool: CandidatePool, member_ids: Iterable[str]) -> tuple[MemberRef, ...]:
    """Member refs for stored ids; ids no longer on the roster show as their id."""
    refs = []
    for member_id in member_ids:
        member = pool.get(member_id)
        refs.append(member.ref() if member else MemberRef(id=member_id, name=member_id))
    return tuple(refs)


class DutyService:
    """Operations on stored assignments outside the preview/confirm flow."""

    def __init__(
        self,
        roster_repo: RosterRepository,
        history_repo: HistoryRepository,
        ledger: DutyCounterLedger,
        notification_client: NotificationClient,
        tz_name: Optional[str] = None,
    ) -> None:
        self._roster = roster_repo
        self._history = history_repo
        self._ledger = ledger
        self._notifications = notification_client
        self._tz_name = tz_name

    # ── Queries ──

    def get_weekly_schedule(self, now: Optional[datetime] = None) -> dict[str, Any]:
        week = current_week(now, self._tz_name)
        pool = self._roster.load_candidate_pool()
        stored = self._roster.get_daily_assignments(day for day, _ in week)

        days = []
        for day, label in week:
            entry = stored.get(day.isoformat()) or {}
            days.append(
                DailyAssignment(
                    date=day,
                    day_label=label,
                    is_weekend=label in WEEKEND_LABELS,
                    members=_resolve(pool, entry.get("members") or []),
                )
            )
        return {"week_key": week_key([day for day, _ in week]), "days": days}

    def get_today_duty(self, now: Optional[datetime] = None) -> dict[str, Any]:
        local_date = to_local(now, self._tz_name).date()
        entry = self._roster.get_daily_assignment(local_date)
        if not entry or not entry.get("members"):
            return {"date": local_date, "members": [], "has_no_duty": True}

        pool = self._roster.load_candidate_pool()
        return {
            "date": local_date,
            "members": list(_resolve(pool, entry["members"])),
            "has_no_duty": False,
        }

    def get_history(
        self,
        event_type: Optional[str] = None,
        schedule_id: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> list[dict[str, Any]]:
        return self._history.get_all(event_type, schedule_id, limit)

    def get_stats(self, now: Optional[datetime] = None) -> dict[str, Any]:
        pool = self._roster.load_candidate_pool()
        ROSTER_MEMBERS.set(len(pool))
        week = current_week(now, self._tz_name)
        return {
            "current_week": week_key([day for day, _ in week]),
            "total_members": len(pool),
            "authorized_members": len(pool.authorized),
            "duty_counts": {m.id: m.duty_count for m in pool.members},
            "confirmed_schedules": self._roster.count_confirmed(),
            "total_events": self._history.count(),
            "events_by_type": self._history.count_by_type(),
        }

    # ── Commands ──

    def assign_daily_duty(self, day: date, member_ids: list[str]) -> dict[str, Any]:
        """
        Put one or two members on duty for a single day. The assignment and
        the counter increments land in the same write. Reassigning a day
        counts again for the new members.
        """
        if not 1 <= len(member_ids) <= 2:
            raise ValueError("A daily duty needs one or two members")
        if len(set(member_ids)) != len(member_ids):
            raise ValueError("The same member cannot be assigned twice on one day")

        pool = self._roster.load_candidate_pool()
        unknown = sorted(set(member_ids) - pool.ids)
        if unknown:
            raise ValueError(f"Unknown team members: {', '.join(unknown)}")

        deltas = {member_id: 1 for member_id in member_ids}
        self._ledger.commit(None, {day.isoformat(): list(member_ids)}, deltas)
        self._history.record_event(
            "daily_assigned",
            None,
            {"date": day.isoformat(), "members": list(member_ids)},
        )
        logger.info("Daily duty assigned: %s -> %s", day.isoformat(), ", ".join(member_ids))
        return {
            "success": True,
            "message": f"Duty for {day.isoformat()} assigned",
            "date": day,
            "members": list(_resolve(pool, member_ids)),
            "counter_deltas": deltas,
        }

    def send_duty_reminder(self, now: Optional[datetime] = None) -> dict[str, Any]:
        local = to_local(now, self._tz_name)
        today_duty = self.get_today_duty(local)
        if today_duty["has_no_duty"]:
            logger.info("No duty assigned for %s, reminder skipped", local.date().isoformat())
            return {
                "sent": False,
                "message": "No duty assigned for today",
                "date": local.date(),
            }

        text = render_reminder_message(local.date(), today_duty["members"], local.hour)
        sent = self._notifications.send_announcement(text, kind="reminder")
        self._history.record_event(
            "reminder_sent",
            None,
            {"date": local.date().isoformat(), "delivered": sent},
        )
        return {"sent": sent, "message": text, "date": local.date()}

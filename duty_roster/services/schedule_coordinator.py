# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Service: Weekly schedule preview / confirm.

    generate  ─► PREVIEWED ─► confirm ─► CONFIRMED
                     └──────► (never confirmed) DISCARDED

``generate`` is pure and may run concurrently with anything. ``confirm`` is
the only writer: one confirm at a time, at most one committed schedule per
week, and only schedules that keep the duty rules for the current roster.
"""

import threading
import uuid
from datetime import datetime, timezone
from typing import AbstractSet, Any, Optional, Union

from duty_roster.core.config import settings
from duty_roster.core.errors import (
    ConfirmInProgressError,
    ConstraintSolverExhausted,
    InsufficientMembersError,
    NoAuthorizedMembersWarning,
    PersistenceFailure,
    ScheduleAlreadyConfirmedError,
)
from duty_roster.core.logging import get_logger
from duty_roster.metrics.prometheus import (
    ROSTER_MEMBERS,
    SCHEDULE_CONFIRMATIONS,
    SCHEDULE_PREVIEWS,
    WEEKDAY_SOLVER_ATTEMPTS,
    WEEKDAY_SOLVER_FALLBACKS,
)
from duty_roster.models.domain import (
    WEEKDAY_LABELS,
    WEEKEND_BLOCK_LABELS,
    WEEKEND_LABELS,
    CandidatePool,
    CommitResult,
    DailyAssignment,
    TeamMember,
    WeeklySchedule,
)
from duty_roster.repositories.history_repository import HistoryRepository
from duty_roster.repositories.roster_repository import RosterRepository
from duty_roster.services.announcement import (
    render_confirmation_message,
    render_preview_message,
)
from duty_roster.services.duty_ledger import DutyCounterLedger
from duty_roster.services.notification_client import NotificationClient
from duty_roster.services.week_window import current_week, today, week_key
from duty_roster.services.weekday_solver import WeekdayAssignmentSolver
from duty_roster.services.weekend_selector import WeekendAssignmentSelector
from duty_roster.services.weighted_selector import WeightedSelector

logger = get_logger(__name__)

MIN_POOL_SIZE = 2


def rule_violations(schedule: WeeklySchedule, pool: CandidatePool) -> list[str]:
    """
    Check a schedule against the duty rules for the given roster.
    Adjacency and weekday authorized coverage are waived for a fallback week.
    """
    problems = []
    for day in schedule.days:
        if len(set(day.member_ids)) != MIN_POOL_SIZE:
            problems.append(f"{day.day_label} must have two different members")

    fri, sat, sun = (set(schedule.day(label).member_ids) for label in WEEKEND_BLOCK_LABELS)
    if not fri == sat == sun:
        problems.append("Friday, Saturday and Sunday must share one pair")

    authorized = {m.id for m in pool.authorized}
    checked = list(WEEKEND_BLOCK_LABELS) if authorized else []
    if len(authorized) >= 2 and not schedule.fallback_used:
        checked = list(WEEKDAY_LABELS) + checked
    for label in checked:
        if not authorized & set(schedule.day(label).member_ids):
            problems.append(f"{label} needs an authorized member")

    if not schedule.fallback_used:
        weekdays = [set(schedule.day(label).member_ids) for label in WEEKDAY_LABELS]
        for label, today_ids, tomorrow_ids in zip(WEEKDAY_LABELS, weekdays, weekdays[1:]):
            repeated = today_ids & tomorrow_ids
            if repeated:
                problems.append(
                    f"{', '.join(sorted(repeated))} on duty two days in a row from {label}"
                )
    return problems


class SchedulePreviewCoordinator:
    """Builds weekly duty schedules and commits the ones a human approves."""

    def __init__(
        self,
        roster_repo: RosterRepository,
        history_repo: HistoryRepository,
        ledger: DutyCounterLedger,
        notification_client: NotificationClient,
        selector: Optional[WeightedSelector] = None,
        weekend_selector: Optional[WeekendAssignmentSelector] = None,
        weekday_solver: Optional[WeekdayAssignmentSolver] = None,
        lookback_weeks: Optional[int] = None,
        tz_name: Optional[str] = None,
    ) -> None:
        self._roster = roster_repo
        self._history = history_repo
        self._ledger = ledger
        self._notifications = notification_client
        selector = selector or WeightedSelector()
        self._weekend = weekend_selector or WeekendAssignmentSelector(
            selector,
            authorized_preference=settings.WEEKEND_AUTHORIZED_PREFERENCE,
            regular_preference=settings.WEEKEND_SECOND_REGULAR_PREFERENCE,
        )
        self._weekdays = weekday_solver or WeekdayAssignmentSolver(
            selector,
            authorized_preference=settings.WEEKDAY_AUTHORIZED_PREFERENCE,
            regular_preference=settings.WEEKDAY_SECOND_REGULAR_PREFERENCE,
            max_attempts=settings.MAX_WEEKDAY_ATTEMPTS,
        )
        self._lookback_weeks = (
            settings.WEEKEND_LOOKBACK_WEEKS if lookback_weeks is None else lookback_weeks
        )
        self._tz_name = tz_name
        self._confirm_lock = threading.Lock()

    # ── Generation (pure) ──

    def generate(
        self,
        pool: Union[CandidatePool, tuple[TeamMember, ...], list[TeamMember]],
        recent_weekend: AbstractSet[str] = frozenset(),
        now: Optional[datetime] = None,
    ) -> WeeklySchedule:
        """Build a PREVIEWED schedule from a roster snapshot. No writes."""
        members = pool.members if isinstance(pool, CandidatePool) else tuple(pool)
        if len(members) < MIN_POOL_SIZE:
            raise InsufficientMembersError(len(members), MIN_POOL_SIZE)

        warnings: list[str] = []
        if not any(m.is_authorized for m in members):
            logger.warning(
                "%s: no authorized members, pairs will be built from regular members only",
                NoAuthorizedMembersWarning.__name__,
            )
            warnings.append(NoAuthorizedMembersWarning.code)

        week = current_week(now, self._tz_name)

        first, second = self._weekend.select_pair(members, recent_weekend)
        weekend_pair = (first, second) if second is not None else (first,)

        plan = self._weekdays.solve(members, weekend_pair)
        WEEKDAY_SOLVER_ATTEMPTS.observe(plan.attempts)
        if plan.fallback_used:
            WEEKDAY_SOLVER_FALLBACKS.inc()
            warnings.append(ConstraintSolverExhausted.code)

        days = []
        for index, (day, label) in enumerate(week):
            assigned = weekend_pair if label in WEEKEND_BLOCK_LABELS else plan.slots[index]
            days.append(
                DailyAssignment(
                    date=day,
                    day_label=label,
                    is_weekend=label in WEEKEND_LABELS,
                    members=tuple(m.ref() for m in assigned),
                )
            )

        schedule = WeeklySchedule(
            schedule_id=str(uuid.uuid4()),
            week_key=week_key([day for day, _ in week]),
            days=tuple(days),
            fallback_used=plan.fallback_used,
            warnings=tuple(warnings),
            generated_at=datetime.now(timezone.utc),
        )
        logger.info(
            "Schedule generated: id=%s, week=%s, weekend=%s, fallback=%s",
            schedule.schedule_id,
            schedule.week_key,
            " & ".join(m.name for m in weekend_pair),
            plan.fallback_used,
        )
        return schedule

    # ── Commands ──

    def preview_weekly_schedule(self, now: Optional[datetime] = None) -> dict[str, Any]:
        """Generate this week's schedule from a fresh roster snapshot."""
        pool = self._roster.load_candidate_pool()
        ROSTER_MEMBERS.set(len(pool))
        recent = self._roster.load_recent_weekend_history(
            self._lookback_weeks, today(now, self._tz_name)
        )
        logger.info(
            "Recent weekend staff (%d weeks): %s",
            self._lookback_weeks, ", ".join(sorted(recent)) or "none",
        )

        schedule = self.generate(pool, recent, now)

        SCHEDULE_PREVIEWS.inc()
        self._history.record_event(
            "schedule_previewed",
            schedule.schedule_id,
            {
                "week_key": schedule.week_key,
                "fallback_used": schedule.fallback_used,
                "warnings": list(schedule.warnings),
            },
        )
        return {
            "success": True,
            "message": f"Weekly duty preview generated for {schedule.week_key}",
            "schedule": schedule,
            "preview": render_preview_message(schedule),
        }

    def confirm(
        self,
        schedule: WeeklySchedule,
        now: Optional[datetime] = None,
    ) -> CommitResult:
        """
        Commit a previewed schedule: store the days, apply the counter
        deltas, then announce it. Raises ConfirmConflictError subclasses,
        ValueError for members missing from the roster, PersistenceFailure.
        """
        if not self._confirm_lock.acquire(blocking=False):
            SCHEDULE_CONFIRMATIONS.labels(outcome="conflict").inc()
            logger.warning("Confirm rejected: another confirm is in flight")
            raise ConfirmInProgressError()
        try:
            return self._confirm_locked(schedule, now)
        finally:
            self._confirm_lock.release()

    def assign_weekly_schedule(self, now: Optional[datetime] = None) -> CommitResult:
        """Preview and immediately confirm (unattended weekly trigger)."""
        preview = self.preview_weekly_schedule(now)
        return self.confirm(preview["schedule"], now)

    # ── Internal ──

    def _confirm_locked(
        self,
        schedule: WeeklySchedule,
        now: Optional[datetime],
    ) -> CommitResult:
        schedule_id = schedule.schedule_id
        if schedule.status != "previewed" or self._roster.is_confirmed(schedule_id):
            SCHEDULE_CONFIRMATIONS.labels(outcome="conflict").inc()
            raise ScheduleAlreadyConfirmedError(schedule_id)
        week_start = schedule.days[0].date
        if self._roster.is_week_confirmed(week_start):
            SCHEDULE_CONFIRMATIONS.labels(outcome="conflict").inc()
            raise ScheduleAlreadyConfirmedError(schedule_id, schedule.week_key)

        pool = self._roster.load_candidate_pool()
        scheduled_ids = {i for day in schedule.days for i in day.member_ids}
        unknown = sorted(scheduled_ids - pool.ids)
        if unknown:
            SCHEDULE_CONFIRMATIONS.labels(outcome="rejected").inc()
            raise ValueError(f"Unknown team members in schedule: {', '.join(unknown)}")
        problems = rule_violations(schedule, pool)
        if problems:
            SCHEDULE_CONFIRMATIONS.labels(outcome="rejected").inc()
            raise ValueError(f"Schedule breaks the duty rules: {'; '.join(problems)}")

        deltas = self._ledger.deltas_for(schedule)
        assignments = {
            day.date.isoformat(): list(day.member_ids)
            for day in schedule.days
            if day.members
        }
        try:
            self._ledger.commit(schedule_id, assignments, deltas, week_start)
        except PersistenceFailure:
            SCHEDULE_CONFIRMATIONS.labels(outcome="failed").inc()
            logger.exception(
                "Schedule commit failed, nothing announced",
                extra={"schedule_id": schedule_id},
            )
            raise

        confirmed = schedule.mark_confirmed()
        SCHEDULE_CONFIRMATIONS.labels(outcome="confirmed").inc()
        self._history.record_event(
            "schedule_confirmed",
            schedule_id,
            {"week_key": confirmed.week_key, "counter_deltas": deltas},
        )

        message = render_confirmation_message(confirmed, today(now, self._tz_name))
        notified = self._notifications.send_announcement(message, kind="weekly")
        logger.info(
            "Schedule confirmed: notified=%s",
            notified,
            extra={"schedule_id": schedule_id, "week_key": confirmed.week_key},
        )
        return CommitResult(
            success=True,
            message=message,
            schedule_id=schedule_id,
            counter_deltas=deltas,
            notified=notified,
        )

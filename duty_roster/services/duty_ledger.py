# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Service: Duty counter ledger.
Counters are always read fresh from the roster store; nothing is cached
between generations. Counter deltas and the assignments that produced them
are written as one unit.
"""

from datetime import date
from typing import Mapping, Optional

from duty_roster.core.logging import get_logger
from duty_roster.models.domain import WeeklySchedule
from duty_roster.repositories.roster_repository import RosterRepository

logger = get_logger(__name__)


class DutyCounterLedger:
    """Read / increment contract over the roster's duty counts."""

    def __init__(self, roster_repo: RosterRepository) -> None:
        self._roster = roster_repo

    def read(self, member_id: str) -> int:
        member = self._roster.load_candidate_pool().get(member_id)
        if member is None:
            raise KeyError(f"No team member with id '{member_id}'")
        return member.duty_count

    def increment(self, member_id: str, amount: int = 1) -> int:
        updated = self.commit(None, {}, {member_id: amount})
        if member_id not in updated:
            raise KeyError(f"No team member with id '{member_id}'")
        return updated[member_id]

    @staticmethod
    def deltas_for(schedule: WeeklySchedule) -> dict[str, int]:
        """One increment per member per day on duty."""
        return dict(schedule.member_days())

    def commit(
        self,
        schedule_id: Optional[str],
        assignments: Mapping[str, list[str]],
        deltas: Mapping[str, int],
        week_start: Optional[date] = None,
    ) -> dict[str, int]:
        updated = self._roster.commit_week(schedule_id, assignments, deltas, week_start)
        logger.info(
            "Duty counters committed: %s",
            ", ".join(f"{k}+{v}" for k, v in sorted(deltas.items())) or "none",
        )
        return updated

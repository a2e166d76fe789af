# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Service: Weekend pair selection (Friday, Saturday and Sunday share one pair).
Recent weekend staff are deprioritised for variety; authorized members are
preferred probabilistically for the first slot and required for the second
slot whenever the first is not authorized.
"""

from typing import AbstractSet, Optional, Sequence

from duty_roster.core.logging import get_logger
from duty_roster.models.domain import TeamMember
from duty_roster.services.weighted_selector import WeightedSelector, scaled

logger = get_logger(__name__)


def _names(members: Sequence[TeamMember]) -> str:
    return ", ".join(f"{m.name}({m.duty_count})" for m in members)


class WeekendAssignmentSelector:
    """Chooses the pair that staffs the Friday-to-Sunday block."""

    def __init__(
        self,
        selector: WeightedSelector,
        authorized_preference: float = 0.7,
        regular_preference: float = 0.5,
    ) -> None:
        self._selector = selector
        self._authorized_preference = authorized_preference
        self._regular_preference = regular_preference
        self._weights = scaled(1)

    def select_first(
        self,
        pool: Sequence[TeamMember],
        recent_weekend_assignees: AbstractSet[str] = frozenset(),
    ) -> Optional[TeamMember]:
        candidates = list(pool)

        fresh = [m for m in candidates if m.id not in recent_weekend_assignees]
        if fresh:
            candidates = fresh
        else:
            logger.info("Every member staffed a recent weekend; using the full pool")

        authorized = [m for m in candidates if m.is_authorized]
        if authorized and self._selector.chance(self._authorized_preference):
            candidates = authorized

        selected = self._selector.select(candidates, self._weights)
        if selected is not None:
            logger.info(
                "Weekend first pick: %s from [%s]",
                selected.name, _names(candidates),
            )
        return selected

    def select_second(
        self,
        pool: Sequence[TeamMember],
        first: TeamMember,
    ) -> Optional[TeamMember]:
        candidates = [m for m in pool if m.id != first.id]
        if not candidates:
            logger.warning("No second weekend member available besides %s", first.name)
            return None

        authorized = [m for m in candidates if m.is_authorized]
        if not first.is_authorized:
            if authorized:
                candidates = authorized
        else:
            regular = [m for m in candidates if not m.is_authorized]
            if regular and self._selector.chance(self._regular_preference):
                candidates = regular

        selected = self._selector.select(candidates, self._weights)
        logger.info(
            "Weekend pair: %s & %s",
            first.name, selected.name,
        )
        return selected

    def select_pair(
        self,
        pool: Sequence[TeamMember],
        recent_weekend_assignees: AbstractSet[str] = frozenset(),
    ) -> tuple[TeamMember, Optional[TeamMember]]:
        first = self.select_first(pool, recent_weekend_assignees)
        if first is None:
            raise ValueError("Cannot select a weekend pair from an empty pool")
        return first, self.select_second(pool, first)

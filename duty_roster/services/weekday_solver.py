# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Service: Monday-Thursday pair construction.

Slots are filled left to right under the adjacency rule (nobody works two
consecutive weekdays). Greedy filling can corner itself near Thursday, so a
failed slot throws the whole attempt away and a fresh one starts, up to
``max_attempts``. After that a deterministic rotation is used instead and the
plan is flagged as a fallback.
"""

from dataclasses import dataclass
from typing import Optional, Sequence

from duty_roster.core.errors import ConstraintSolverExhausted
from duty_roster.core.logging import get_logger
from duty_roster.models.domain import WEEKDAY_LABELS, TeamMember
from duty_roster.services.weighted_selector import WeightedSelector, scaled

logger = get_logger(__name__)

Slot = tuple[TeamMember, ...]


@dataclass(frozen=True)
class WeekdayPlan:
    slots: tuple[Slot, ...]
    attempts: int
    fallback_used: bool = False


def can_assign(member: TeamMember, index: int, slots: Sequence[Slot]) -> bool:
    """False when the member already holds the previous or the next slot."""
    if index > 0 and index - 1 < len(slots):
        if any(m.id == member.id for m in slots[index - 1]):
            return False
    if index + 1 < len(slots):
        if any(m.id == member.id for m in slots[index + 1]):
            return False
    return True


def fallback_slots(members: Sequence[TeamMember], slot_count: int = 4) -> tuple[Slot, ...]:
    """Cyclic pairing over members sorted by duty count. Adjacency is not checked."""
    ordered = sorted(members, key=lambda m: m.duty_count)
    n = len(ordered)
    if n == 0:
        return tuple(() for _ in range(slot_count))

    slots: list[Slot] = []
    for i in range(slot_count):
        first = ordered[i % n]
        second = ordered[(i + n // 2) % n]
        if second.id == first.id:
            if n == 1:
                slots.append((first,))
                continue
            second = ordered[(i + 1) % n]
        slots.append((first, second))
    return tuple(slots)


class WeekdayAssignmentSolver:
    """Builds the four weekday pairs with bounded full restarts."""

    SLOT_COUNT = len(WEEKDAY_LABELS)

    def __init__(
        self,
        selector: WeightedSelector,
        authorized_preference: float = 0.8,
        regular_preference: float = 0.6,
        max_attempts: int = 50,
    ) -> None:
        self._selector = selector
        self._authorized_preference = authorized_preference
        self._regular_preference = regular_preference
        self._max_attempts = max_attempts
        self._weights = scaled(2)

    def solve(
        self,
        pool: Sequence[TeamMember],
        weekend_pair: Sequence[TeamMember] = (),
    ) -> WeekdayPlan:
        members = sorted(pool, key=lambda m: m.duty_count)
        # With a single authorized member the adjacency rule makes daily
        # authorized coverage impossible; it stays a preference then.
        require_authorized = sum(1 for m in members if m.is_authorized) >= 2

        logger.info(
            "Solving weekdays: pool=%d, weekend pair=%s, authorized required=%s",
            len(members),
            " & ".join(m.name for m in weekend_pair) or "none",
            require_authorized,
        )

        for attempt in range(1, self._max_attempts + 1):
            slots = self.attempt(members, require_authorized)
            if slots is not None:
                logger.info("Weekday schedule built on attempt %d", attempt)
                return WeekdayPlan(slots=slots, attempts=attempt)

        logger.warning(
            "%s: no weekday schedule after %d attempts, using fallback rotation",
            ConstraintSolverExhausted.__name__,
            self._max_attempts,
        )
        return WeekdayPlan(
            slots=fallback_slots(members, self.SLOT_COUNT),
            attempts=self._max_attempts,
            fallback_used=True,
        )

    def attempt(
        self,
        members: Sequence[TeamMember],
        require_authorized: bool = False,
    ) -> Optional[tuple[Slot, ...]]:
        """One full left-to-right construction; None when any slot fails."""
        slots: tuple[Slot, ...] = ()
        for index in range(self.SLOT_COUNT):
            slot = self._fill_slot(members, index, slots, require_authorized)
            if slot is None:
                return None
            slots = slots + (slot,)
        return slots

    def _fill_slot(
        self,
        members: Sequence[TeamMember],
        index: int,
        slots: Sequence[Slot],
        require_authorized: bool,
    ) -> Optional[Slot]:
        eligible = [m for m in members if can_assign(m, index, slots)]
        if len(eligible) < 2:
            return None

        first_pool = eligible
        authorized = [m for m in eligible if m.is_authorized]
        if authorized and self._selector.chance(self._authorized_preference):
            first_pool = authorized
        first = self._selector.select(first_pool, self._weights)

        second_pool = [m for m in eligible if m.id != first.id]
        if not first.is_authorized:
            authorized_second = [m for m in second_pool if m.is_authorized]
            if authorized_second:
                second_pool = authorized_second
        else:
            regular_second = [m for m in second_pool if not m.is_authorized]
            if regular_second and self._selector.chance(self._regular_preference):
                second_pool = regular_second
        second = self._selector.select(second_pool, self._weights)

        if require_authorized and not (first.is_authorized or second.is_authorized):
            return None

        logger.debug(
            "%s: %s & %s", WEEKDAY_LABELS[index], first.name, second.name,
        )
        return (first, second)

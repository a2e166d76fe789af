# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Service: Weighted random choice — the one source of randomness in the engine.
Pure computation over the candidates it is given; the RNG is injected.
"""

import random
from typing import Callable, Optional, Sequence

from duty_roster.models.domain import TeamMember

WeightFn = Callable[[Sequence[TeamMember]], list[float]]


def fairness_weights(candidates: Sequence[TeamMember], scale: float = 1.0) -> list[float]:
    """(max duty count in set - own duty count + 1) * scale, never zero."""
    if not candidates:
        return []
    max_count = max(c.duty_count for c in candidates)
    return [(max_count - c.duty_count + 1) * scale for c in candidates]


def scaled(scale: float) -> WeightFn:
    def weight_fn(candidates: Sequence[TeamMember]) -> list[float]:
        return fairness_weights(candidates, scale)

    return weight_fn


class WeightedSelector:
    """Weighted random choice favouring members with fewer past duties."""

    def __init__(self, rng: Optional[random.Random] = None) -> None:
        self._rng = rng or random.Random()

    @property
    def rng(self) -> random.Random:
        return self._rng

    def chance(self, probability: float) -> bool:
        """Bernoulli draw from the shared RNG."""
        return self._rng.random() < probability

    def select(
        self,
        candidates: Sequence[TeamMember],
        weight_fn: WeightFn = fairness_weights,
    ) -> Optional[TeamMember]:
        if not candidates:
            return None
        if len(candidates) == 1:
            return candidates[0]

        weights = weight_fn(candidates)
        total = sum(weights)
        threshold = self._rng.random() * total

        cumulative = 0.0
        for candidate, weight in zip(candidates, weights):
            cumulative += weight
            if threshold < cumulative:
                return candidate

        # Float rounding can leave the walk just short of the total.
        return candidates[0]

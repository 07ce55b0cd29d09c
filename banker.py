"""Banker offers: swap proposals and cash buyouts computed from hidden values."""
from __future__ import annotations

import math
from typing import Sequence

from case_api import GameRules, positive_values
from seed_utils import RandomSource, bernoulli


class Banker:
    """Stateless offer engine.

    Each call draws fresh randomness; nothing about earlier offers is
    remembered.  Front ends that dress the banker up (a portrait, a name) do
    so on their side.
    """

    def __init__(self, rules: GameRules, rng: RandomSource) -> None:
        self.rules = rules
        self.rng = rng

    def should_propose_swap(self) -> bool:
        return bernoulli(self.rng, self.rules.swap_probability)

    def compute_offer(self, remaining_values: Sequence[int]) -> int:
        """Return ``floor(mean * factor)`` with ``factor`` drawn from the rules' range.

        Items carry no cash value, so only positive values are averaged.  An
        empty board yields ``0`` instead of an error.
        """

        values = positive_values(remaining_values)
        if not values:
            return 0
        average = sum(values) / len(values)
        low, high = self.rules.offer_factor_range
        factor = self.rng.uniform(low, high)
        return int(math.floor(average * factor))

    def expected_value(self, remaining_values: Sequence[int]) -> float:
        values = positive_values(remaining_values)
        if not values:
            return 0.0
        return sum(values) / len(values)


__all__ = ["Banker"]

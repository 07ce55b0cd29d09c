"""Once-per-game bonus that can scale and shift one banker offer.

At the start of a game two fair coins decide whether a multiplier bonus and an
additive bonus are on the table.  The first checkpoint whose trigger roll
succeeds fires the bonus: the player blindly picks one multiplier candidate
and/or one additive candidate, and the choice is folded into the very next
cash offer.  The whole subsystem fires at most once per game.
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import List

from case_api import GameRules
from seed_utils import RandomSource, bernoulli

MULTIPLIER = "multiplier"
ADDITIVE = "additive"
BONUS_KINDS = (MULTIPLIER, ADDITIVE)


@dataclass(frozen=True)
class BonusOption:
    """A single candidate shown behind one of the bonus cases."""

    kind: str
    symbol: str
    multiplier: float = 1.0
    additive: int = 0

    @property
    def label(self) -> str:
        return self.symbol


class BonusEngine:
    """Track eligibility, consumption and pending values for one game."""

    def __init__(self, rules: GameRules, rng: RandomSource) -> None:
        self.rules = rules
        self.rng = rng
        self.multiplier_eligible = bernoulli(rng, rules.bonus_eligibility_probability)
        self.additive_eligible = bernoulli(rng, rules.bonus_eligibility_probability)
        self.multiplier_consumed = False
        self.additive_consumed = False
        self.pending_multiplier = 1.0
        self.pending_additive = 0
        self.fired = False

    # ----------------- Trigger -----------------
    def maybe_trigger(self) -> bool:
        """Roll the trigger unless the bonus already fired this game."""

        if self.fired:
            return False
        if bernoulli(self.rng, self.rules.bonus_trigger_probability):
            self.fired = True
            return True
        return False

    def has_multiplier(self) -> bool:
        return self.multiplier_eligible and not self.multiplier_consumed

    def has_additive(self) -> bool:
        return self.additive_eligible and not self.additive_consumed

    def available_kinds(self) -> List[str]:
        kinds = []
        if self.has_multiplier():
            kinds.append(MULTIPLIER)
        if self.has_additive():
            kinds.append(ADDITIVE)
        return kinds

    # ----------------- Candidates -----------------
    def multiplier_options(self) -> List[BonusOption]:
        low, high = self.rules.multiplier_range
        options: List[BonusOption] = []
        for _ in range(self.rules.multiplier_choice_count):
            q = self.rng.randint(low, high)
            if bernoulli(self.rng, 0.5):
                options.append(BonusOption(MULTIPLIER, f"x{q}", multiplier=float(q)))
            else:
                options.append(BonusOption(MULTIPLIER, f"/{q}", multiplier=1.0 / q))
        return options

    def additive_options(self) -> List[BonusOption]:
        options: List[BonusOption] = []
        for _ in range(self.rules.additive_choice_count):
            value = self.rng.randint(1, self.rules.additive_steps) * self.rules.additive_step
            if bernoulli(self.rng, 0.5):
                options.append(BonusOption(ADDITIVE, f"+{value}", additive=value))
            else:
                options.append(BonusOption(ADDITIVE, f"-{value}", additive=-value))
        return options

    def options_for(self, kind: str) -> List[BonusOption]:
        if kind == MULTIPLIER:
            return self.multiplier_options()
        if kind == ADDITIVE:
            return self.additive_options()
        raise ValueError(f"Unknown bonus kind: {kind}")

    def choose(self, option: BonusOption) -> None:
        if option.kind == MULTIPLIER:
            if not self.has_multiplier():
                raise ValueError("The multiplier bonus is not available")
            self.pending_multiplier = option.multiplier
            self.multiplier_consumed = True
        elif option.kind == ADDITIVE:
            if not self.has_additive():
                raise ValueError("The additive bonus is not available")
            self.pending_additive = option.additive
            self.additive_consumed = True
        else:
            raise ValueError(f"Unknown bonus kind: {option.kind}")

    # ----------------- Application -----------------
    def has_pending(self) -> bool:
        return self.pending_multiplier != 1.0 or self.pending_additive != 0

    def apply(self, offer: int) -> int:
        """Fold the pending bonus into ``offer`` and clear it.

        The result never drops below 1.
        """

        result = int(math.floor(offer * self.pending_multiplier)) + self.pending_additive
        self.pending_multiplier = 1.0
        self.pending_additive = 0
        return max(1, result)

    def describe(self) -> str:
        parts = []
        if self.pending_multiplier != 1.0:
            parts.append(f"Multiplier: {self.pending_multiplier:.2f}x")
        if self.pending_additive != 0:
            parts.append(f"Additive: {self.pending_additive:+d}")
        return " and ".join(parts)


__all__ = [
    "ADDITIVE",
    "BONUS_KINDS",
    "BonusEngine",
    "BonusOption",
    "MULTIPLIER",
]

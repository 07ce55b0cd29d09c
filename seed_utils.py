"""Seed helpers shared by the game session, the terminal harness and the simulator."""
from __future__ import annotations

import random
from typing import Optional, Tuple

MAX_SEED_VALUE = 2**32 - 1

# Every randomized component receives one of these at construction.  Tests
# substitute a ``random.Random`` subclass to script the draws.
RandomSource = random.Random


def resolve_seed(seed: Optional[int]) -> Tuple[int, RandomSource]:
    """Return a normalized seed and a random source seeded with it.

    When ``seed`` is ``None`` a fresh seed is drawn from ``SystemRandom`` so the
    game is unpredictable yet can be replayed: the returned integer may be
    passed to ``case_game.py`` or ``case_simulator.py --seed`` to recreate the
    same boards, offers and bonuses.
    """

    if seed is None:
        seed = random.SystemRandom().randint(0, MAX_SEED_VALUE)
    else:
        seed = int(seed)
        if seed < 0:
            raise ValueError("seed must be a non-negative integer")
    return seed, random.Random(seed)


def bernoulli(rng: RandomSource, probability: float) -> bool:
    """Draw a single trial that succeeds with ``probability``."""

    return rng.random() < probability

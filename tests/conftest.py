import random
from collections import deque
from typing import Iterable, List

import pytest


class ScriptedRandom(random.Random):
    """Random source whose ``random()`` draws come from a script.

    Shuffles, samples and integer draws keep using the seeded generator, so a
    test only scripts the Bernoulli trials and the offer factor.
    """

    def __init__(self, script: Iterable[float] = (), seed: int = 0) -> None:
        super().__init__(seed)
        self.script = deque(script)
        self.scripted_draws: List[float] = []

    def random(self) -> float:  # type: ignore[override]
        if self.script:
            value = self.script.popleft()
            self.scripted_draws.append(value)
            return value
        return super().random()

    def getrandbits(self, k: int) -> int:  # type: ignore[override]
        return super().getrandbits(k)

    def push(self, *values: float) -> None:
        self.script.extend(values)


@pytest.fixture
def scripted_rng():
    def factory(*script: float, seed: int = 0) -> ScriptedRandom:
        return ScriptedRandom(script, seed)

    return factory

import random
from typing import Optional, Tuple


class Dice:
    """A pair of six-sided dice drawn from an injectable random source."""

    def __init__(self, rng: Optional[random.Random] = None):
        self.rng = rng or random.Random()

    def roll(self) -> Tuple[int, int]:
        """Roll two dice and return the result."""
        return self.rng.randint(1, 6), self.rng.randint(1, 6)

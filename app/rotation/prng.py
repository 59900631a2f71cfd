"""
Seeded pseudo-random stream for display rotation.

Not suitable for anything security or fairness sensitive: the sine hash
has no guaranteed cycle length or independence between draws. It only
has to be cheap and reproducible.
"""
import math
from typing import Protocol, Tuple


class RandomSource(Protocol):
    """A stream of floats in [0, 1) fully determined by its seed."""

    def next(self) -> float:
        ...


def next_value(state: int) -> Tuple[float, int]:
    """
    Pure form of one draw.

    Returns:
        (value in [0, 1), next state)
    """
    x = math.sin(state) * 10000
    return x - math.floor(x), state + 1


class SineRandom:
    """Stateful wrapper that threads the state through successive draws."""

    def __init__(self, seed: int):
        self.state = seed

    def next(self) -> float:
        value, self.state = next_value(self.state)
        return value

    def __call__(self) -> float:
        return self.next()

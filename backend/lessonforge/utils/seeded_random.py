"""Seeded linear-congruential generator for reproducible question batches."""
import math
from typing import Sequence, TypeVar

T = TypeVar("T")

_MULTIPLIER = 9301
_INCREMENT = 49297
_MODULUS = 233280


class SeededRandom:
    """seed' = (seed * 9301 + 49297) mod 233280; random() = seed' / 233280."""

    def __init__(self, seed: int):
        self._value = seed

    def random(self) -> float:
        self._value = (self._value * _MULTIPLIER + _INCREMENT) % _MODULUS
        return self._value / _MODULUS

    def below(self, n: int) -> int:
        """Integer in [0, n)."""
        return math.floor(self.random() * n)

    def choice(self, values: Sequence[T]) -> T:
        return values[self.below(len(values))]


def seeded_shuffle(items: Sequence[T], seed: int) -> list[T]:
    """Fisher-Yates shuffle driven by a fresh generator seeded with ``seed``."""
    shuffled = list(items)
    rng = SeededRandom(seed)
    for i in range(len(shuffled) - 1, 0, -1):
        j = rng.below(i + 1)
        shuffled[i], shuffled[j] = shuffled[j], shuffled[i]
    return shuffled

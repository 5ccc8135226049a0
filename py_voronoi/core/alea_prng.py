"""
Seeded Alea pseudo-random generator used for site placement.

Alea (Johannes Baagøe) gives identical sequences across platforms for the
same seed, so a diagram generated from a seed can always be rebuilt.
Python's random and NumPy's random are not used for site placement.
"""

from typing import Callable, Union

from .geometry import Point, Rectangle

_TWO_POW_32 = 0x100000000
_TWO_POW_NEG_32 = 2.3283064365386963e-10


def _uint32(n) -> int:
    return int(n) & 0xFFFFFFFF


def _make_mash() -> Callable[[object], float]:
    """Build the stateful string hash Alea uses to derive its seed state."""
    n = 0xEFC8249D

    def mash(data) -> float:
        nonlocal n
        for char in str(data):
            n += ord(char)
            h = 0.02519603282416938 * n
            n = _uint32(h)
            h -= n
            h *= n
            n = _uint32(h)
            h -= n
            n += h * _TWO_POW_32
        return _uint32(n) * _TWO_POW_NEG_32

    return mash


class AleaPRNG:
    """Alea generator producing floats in [0, 1)."""

    def __init__(self, seed: Union[int, str]):
        mash = _make_mash()
        self.s0 = mash(" ")
        self.s1 = mash(" ")
        self.s2 = mash(" ")
        self.c = 1

        self.s0 = self._fold(self.s0, mash(seed))
        self.s1 = self._fold(self.s1, mash(seed))
        self.s2 = self._fold(self.s2, mash(seed))

    @staticmethod
    def _fold(state: float, value: float) -> float:
        state -= value
        if state < 0:
            state += 1
        return state

    def random(self) -> float:
        """Next value in [0, 1)."""
        t = 2091639 * self.s0 + self.c * _TWO_POW_NEG_32
        self.s0 = self.s1
        self.s1 = self.s2
        self.c = int(t)
        self.s2 = t - self.c
        return self.s2

    def uniform(self, low: float, high: float) -> float:
        """Value in [low, high)."""
        return low + (high - low) * self.random()

    def point_in(self, bounds: Rectangle) -> Point:
        """Uniform point inside bounds, drawing x before y."""
        x = self.uniform(bounds.x_min, bounds.x_max)
        y = self.uniform(bounds.y_min, bounds.y_max)
        return Point(x, y)

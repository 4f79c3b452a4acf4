"""Seeded pseudo-random source for reproducible deals.

Mulberry32: a 32-bit state, one output per call, uniform in ``[0, 1)``.
The same seed always yields the same stream, which is what makes a deal
replayable from its seed alone.
"""

from __future__ import annotations

import random

from chouine.constants import MAX_SEED

_MASK = 0xFFFFFFFF


def _imul(a: int, b: int) -> int:
    return (a * b) & _MASK


class Mulberry32:
    """Callable RNG: ``rng()`` returns the next float in ``[0, 1)``."""

    __slots__ = ("seed", "_state")

    def __init__(self, seed: int) -> None:
        self.seed = int(seed)
        self._state = self.seed & _MASK

    def next_uint32(self) -> int:
        self._state = (self._state + 0x6D2B79F5) & _MASK
        s = self._state
        t = _imul(s ^ (s >> 15), 1 | s)
        t = ((t + _imul(t ^ (t >> 7), 61 | t)) & _MASK) ^ t
        return (t ^ (t >> 14)) & _MASK

    def __call__(self) -> float:
        return self.next_uint32() / 4294967296


def generate_seed() -> int:
    """A fresh seed for callers that did not ask for a specific deal."""
    return random.randrange(MAX_SEED)

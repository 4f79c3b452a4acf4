"""Centralized constants and defaults for La Chouine.

Every tunable default lives here.  Import from this module instead
of hardcoding magic numbers elsewhere.

Usage::

    from chouine.constants import (
        HAND_SIZE,
        LAST_TRICK_BONUS,
        COMBINATION_POINTS,
    )
"""
from __future__ import annotations

# ---------------------------------------------------------------------------
#  Deal
# ---------------------------------------------------------------------------

HAND_SIZE: int = 5
"""Cards dealt to each side, and the size both hands are refilled to."""

DECK_SIZE: int = 32
"""Four suits of eight ranks (seven through ace)."""

MAX_SEED: int = 2_147_483_647
"""Exclusive upper bound for freshly generated seeds."""

# ---------------------------------------------------------------------------
#  Scoring
# ---------------------------------------------------------------------------

LAST_TRICK_BONUS: int = 10
"""Flat bonus for whoever wins the last trick of the game."""

QUINTE_POINTS: int = 100
"""Five brisques held at once.  Claimable once per game."""

QUINTE_MIN_BRISQUES: int = 5

QUINTE_KEY: str = "quinte"
"""Key recorded in ``announced_combos`` once the quinte has been claimed."""

COMBINATION_POINTS: dict[str, tuple[int, int]] = {
    "quarteron": (80, 40),
    "tierce": (60, 30),
    "mariage": (40, 20),
}
"""``(trump, off-suit)`` points per suit combination."""

# ---------------------------------------------------------------------------
#  Heuristic agent thresholds
# ---------------------------------------------------------------------------

MIN_ANNOUNCEMENT_TO_LEAD: int = 20
"""Lead for an announcement only when it is worth at least this much."""

PHASE1_WORTH_WINNING: int = 10
"""Phase 1: a led card worth this much is always taken (cheaply)."""

PHASE1_CHEAP_WIN_VALUE: int = 0
"""Phase 1: a low lead is only taken with a winner worth exactly this."""

PHASE2_WORTH_WINNING: int = 3
"""Phase 2: a led card worth this much is always taken (cheaply)."""

PHASE2_CHEAP_WIN_VALUE: int = 2
"""Phase 2: a low lead is taken with any winner worth at most this."""

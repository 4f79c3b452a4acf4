from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional

import numpy as np

from chouine.agent import HeuristicAgent
from chouine.game import TIE, GameState, Side, clear_trick, new_game

log = logging.getLogger(__name__)


@dataclass(slots=True)
class MatchStats:
    """Tracks results over a run of consecutive games."""

    games: int = 0
    wins: dict[str, int] = field(default_factory=lambda: {s.value: 0 for s in Side})
    ties: int = 0
    chouines: int = 0
    margins: list[int] = field(default_factory=list)  # human score minus ai score

    @property
    def mean_margin(self) -> float:
        return 0.0 if not self.margins else float(np.mean(self.margins))

    @property
    def std_margin(self) -> float:
        return 0.0 if not self.margins else float(np.std(self.margins))

    def win_rate(self, side: Side) -> float:
        return 0.0 if self.games == 0 else self.wins[side.value] / self.games


def _mix_seed(seed: int, game_index: int) -> int:
    x = (seed & 0xFFFFFFFF) ^ ((game_index * 0x9E3779B1) & 0xFFFFFFFF)
    x ^= (x >> 16) & 0xFFFFFFFF
    x = (x * 0x7FEB352D) & 0xFFFFFFFF
    x ^= (x >> 15) & 0xFFFFFFFF
    return x & 0x7FFFFFFF


def play_game(seed: int, *, previous: Optional[GameState] = None) -> GameState:
    """Play one game agent-vs-agent to the end and return the final state."""
    agents = {side: HeuristicAgent(side=side) for side in Side}
    st = new_game(seed, previous=previous)
    while not st.game_over:
        if st.trick_awaiting_clear:
            clear_trick(st)
            continue
        decision = agents[st.current_player].decide(st)
        if not decision.result.success:
            raise RuntimeError(f"Agent move rejected: {decision.result.to_dict()}")
    return st


def simulate_match(games: int, seed: int = 0) -> MatchStats:
    """Play ``games`` consecutive games, alternating the dealer."""
    stats = MatchStats()
    prev: Optional[GameState] = None
    for g in range(games):
        st = play_game(_mix_seed(seed, g), previous=prev)
        stats.games += 1
        if st.game_winner == TIE:
            stats.ties += 1
        else:
            stats.wins[st.game_winner] += 1
        if any(a.instant_win for p in st.players.values() for a in p.announcements):
            stats.chouines += 1
        stats.margins.append(st.players[Side.HUMAN].score - st.players[Side.AI].score)
        prev = st
    log.info("Simulated %d games: %s ties=%d", stats.games, stats.wins, stats.ties)
    return stats

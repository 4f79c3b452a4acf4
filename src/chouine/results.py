"""Outcomes of engine operations.

Every mutating operation returns one of these.  A ``Failure`` means the
call was rejected and nothing changed; every other variant means it
applied and carries what a driver needs to react without re-reading the
(possibly already advanced) state.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Literal, Optional, Union

from chouine.announcements import Announcement
from chouine.cards import Card


class FailureReason(str, Enum):
    CARD_NOT_IN_HAND = "CardNotInHand"
    ILLEGAL_PLAY = "IllegalPlay"
    INVALID_EXCHANGE = "InvalidExchange"
    NOT_YOUR_TURN = "NotYourTurn"
    TRICK_PENDING_CLEAR = "TrickPendingClear"
    NO_TRICK_TO_CLEAR = "NoTrickToClear"
    GAME_OVER = "GameOver"


class InconsistentStateError(RuntimeError):
    """Raised when the 32 cards can no longer be accounted for."""


def _card_json(c: Optional[Card]) -> Optional[str]:
    return None if c is None else c.id


def _announcement_json(a: Optional[Announcement]) -> Optional[dict[str, Any]]:
    return None if a is None else a.to_dict()


@dataclass(frozen=True, slots=True)
class Failure:
    reason: FailureReason
    message: str
    kind: Literal["failure"] = "failure"

    @property
    def success(self) -> bool:
        return False

    def to_dict(self) -> dict[str, Any]:
        return {"success": False, "kind": self.kind, "reason": self.reason.value, "message": self.message}


@dataclass(frozen=True, slots=True)
class ExchangeResult:
    new_trump_card: Card
    received_card: Card
    kind: Literal["exchange"] = "exchange"

    @property
    def success(self) -> bool:
        return True

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": True,
            "kind": self.kind,
            "newTrumpCard": _card_json(self.new_trump_card),
            "receivedCard": _card_json(self.received_card),
        }


@dataclass(frozen=True, slots=True)
class CardPlayed:
    """First card of a trick is down; the other side must reply."""

    card: Card
    announcement: Optional[Announcement]
    kind: Literal["played"] = "played"

    @property
    def success(self) -> bool:
        return True

    @property
    def waiting_for_opponent(self) -> bool:
        return True

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": True,
            "kind": self.kind,
            "card": _card_json(self.card),
            "announcement": _announcement_json(self.announcement),
            "waitingForOpponent": True,
        }


@dataclass(frozen=True, slots=True)
class TrickResolved:
    card: Card
    announcement: Optional[Announcement]
    trick_winner: str
    points: int
    drawn_cards: Optional[dict[str, Card]]
    current_player: str
    game_phase: int
    kind: Literal["trick"] = "trick"

    @property
    def success(self) -> bool:
        return True

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": True,
            "kind": self.kind,
            "card": _card_json(self.card),
            "announcement": _announcement_json(self.announcement),
            "trickWinner": self.trick_winner,
            "points": self.points,
            "drawnCards": None
            if self.drawn_cards is None
            else {side: _card_json(c) for side, c in self.drawn_cards.items()},
            "currentPlayer": self.current_player,
            "gamePhase": self.game_phase,
        }


@dataclass(frozen=True, slots=True)
class GameOverResult:
    card: Card
    announcement: Optional[Announcement]
    scores: dict[str, int]
    game_wins: dict[str, int]
    winner: str  # "human" | "ai" | "tie"
    instant_win: bool = False
    trick_winner: Optional[str] = None
    drawn_cards: Optional[dict[str, Card]] = None
    kind: Literal["game_over"] = "game_over"

    @property
    def success(self) -> bool:
        return True

    @property
    def game_over(self) -> bool:
        return True

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": True,
            "kind": self.kind,
            "card": _card_json(self.card),
            "announcement": _announcement_json(self.announcement),
            "gameOver": True,
            "instantWin": self.instant_win,
            "trickWinner": self.trick_winner,
            "scores": dict(self.scores),
            "gameWins": dict(self.game_wins),
            "winner": self.winner,
        }


@dataclass(frozen=True, slots=True)
class ClearResult:
    current_player: str
    kind: Literal["clear"] = "clear"

    @property
    def success(self) -> bool:
        return True

    def to_dict(self) -> dict[str, Any]:
        return {"success": True, "kind": self.kind, "currentPlayer": self.current_player}


PlayResult = Union[Failure, CardPlayed, TrickResolved, GameOverResult]
Result = Union[PlayResult, ExchangeResult, ClearResult]

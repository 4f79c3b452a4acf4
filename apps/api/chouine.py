"""FastAPI router for La Chouine sessions.

Human is always ``Side.HUMAN``; the opponent is the rule-based
``HeuristicAgent``.  The AI hand is never sent to the client.

Game flow: NEW → (AI acts until the human must act) → PLAY → CONTINUE →
... → GAME_OVER.  A finished trick stays on the table until the client
calls ``/continue``; that clears it and lets the AI act again.
"""

from __future__ import annotations

import logging
import random
import time
import uuid
from dataclasses import dataclass, field
from typing import Any, Optional

from fastapi import APIRouter, HTTPException

from chouine.agent import HeuristicAgent
from chouine.constants import MAX_SEED
from chouine.game import (
    GameState,
    Side,
    can_exchange_seven,
    clear_trick,
    exchange_seven,
    legal_cards,
    new_game,
    play_card,
    status,
    talon_size,
)
from chouine.results import Failure

log = logging.getLogger(__name__)

HUMAN = Side.HUMAN
AI = Side.AI


@dataclass(slots=True)
class ChouineSession:
    id: str
    state: GameState
    created_at: float
    agent: HeuristicAgent = field(default_factory=lambda: HeuristicAgent(side=AI))
    log: list[dict[str, Any]] = field(default_factory=list)
    ai_bubble: Optional[str] = None


_sessions: dict[str, ChouineSession] = {}


# ---------------------------------------------------------------------------
#  Helpers
# ---------------------------------------------------------------------------


def _get_session(game_id: str) -> ChouineSession:
    sess = _sessions.get(game_id)
    if sess is None:
        raise HTTPException(404, "Game not found")
    return sess


def _reject(result: Failure) -> HTTPException:
    return HTTPException(400, {"reason": result.reason.value, "message": result.message})


def _record(sess: ChouineSession, actor: Side, result_json: dict[str, Any]) -> None:
    sess.log.append({"trick": sess.state.trick_no, "actor": actor.value, "result": result_json})


def _advance_ai(sess: ChouineSession) -> None:
    """Let the AI act until the human must act, a trick needs clearing,
    or the game is over."""
    st = sess.state
    bubbles: list[str] = []
    while not st.game_over and not st.trick_awaiting_clear and st.current_player == AI:
        decision = sess.agent.decide(st)
        _record(sess, AI, decision.to_dict())
        if not decision.result.success:
            # Should not happen: the agent only picks legal cards.
            log.error("AI move rejected in session %s: %s", sess.id, decision.result.to_dict())
            break
        if decision.kind == "exchange":
            bubbles.append("J'échange le sept !")
            continue
        ann = getattr(decision.result, "announcement", None)
        if ann is not None:
            bubbles.append(f"{ann.combination.value.capitalize()} !")
    sess.ai_bubble = " ".join(bubbles) if bubbles else None


def _public_state(sess: ChouineSession, *, consume_bubble: bool = True) -> dict[str, Any]:
    st = sess.state
    bubble = sess.ai_bubble
    if consume_bubble:
        sess.ai_bubble = None
    human = st.players[HUMAN]
    ai = st.players[AI]
    human_turn = not st.game_over and not st.trick_awaiting_clear and st.current_player == HUMAN
    return {
        "gameId": sess.id,
        "seed": st.seed,
        "status": status(st),
        "dealer": st.dealer.value,
        "currentPlayer": st.current_player.value,
        "gamePhase": st.game_phase,
        "trumpSuit": st.trump_suit.value,
        "trumpCard": None if st.trump_card is None else st.trump_card.id,
        "talon": {"size": talon_size(st), "empty": st.talon_empty},
        "currentTrick": {s.value: (None if c is None else c.id) for s, c in st.current_trick.items()},
        "trickAwaitingClear": st.trick_awaiting_clear,
        "hands": {
            "human": [c.id for c in human.hand],
            # do NOT leak AI hand
            "aiSize": len(ai.hand),
        },
        "legalCards": [c.id for c in legal_cards(st, HUMAN)] if human_turn else [],
        "canExchangeSeven": bool(human_turn and can_exchange_seven(st, HUMAN)),
        "announcements": {
            s.value: [a.to_dict() for a in st.players[s].announcements] for s in Side
        },
        "scores": {"human": human.score, "ai": ai.score},
        "gameWins": {"human": human.game_wins, "ai": ai.game_wins},
        "gameOver": st.game_over,
        "gameWinner": st.game_winner,
        "aiBubble": bubble,
    }


# ---------------------------------------------------------------------------
#  Router
# ---------------------------------------------------------------------------

router = APIRouter(prefix="/api/chouine", tags=["chouine"])


@router.post("/new")
def new(body: dict[str, Any] = {}) -> dict[str, Any]:
    """Start a new game.

    Optional body fields:
      - ``seed``:   int — deal seed (random if absent)
      - ``gameId``: string — continue that session's match (dealer
        alternates, game wins carry over)
    """
    seed = body.get("seed")
    if seed is not None and str(seed).strip() != "":
        try:
            seed = int(seed)
        except (TypeError, ValueError):
            raise HTTPException(400, f"Invalid seed: {seed!r}")
    else:
        seed = random.randrange(MAX_SEED)

    game_id = body.get("gameId")
    if game_id:
        sess = _get_session(str(game_id))
        sess.state = new_game(seed, previous=sess.state)
        sess.log.clear()
    else:
        sess = ChouineSession(id=str(uuid.uuid4()), state=new_game(seed), created_at=time.time())
        _sessions[sess.id] = sess

    _advance_ai(sess)
    return _public_state(sess)


@router.get("/{game_id}")
def get_state(game_id: str) -> dict[str, Any]:
    return _public_state(_get_session(game_id), consume_bubble=False)


@router.post("/{game_id}/exchange")
def exchange(game_id: str) -> dict[str, Any]:
    """Swap the human's trump seven with the face-up trump card."""
    sess = _get_session(game_id)
    _, result = exchange_seven(sess.state, HUMAN)
    if isinstance(result, Failure):
        raise _reject(result)
    _record(sess, HUMAN, result.to_dict())
    return _public_state(sess)


@router.post("/{game_id}/play")
def play(game_id: str, body: dict[str, Any]) -> dict[str, Any]:
    """Play a card from the human's hand.

    Body: { card: "ace_hearts" }
    """
    sess = _get_session(game_id)
    card_id = body.get("card")
    if not isinstance(card_id, str):
        raise HTTPException(400, f"Invalid card: {card_id!r}")

    _, result = play_card(sess.state, HUMAN, card_id)
    if isinstance(result, Failure):
        raise _reject(result)
    _record(sess, HUMAN, result.to_dict())

    # The AI replies straight away when the human led.
    _advance_ai(sess)
    out = _public_state(sess)
    out["result"] = result.to_dict()
    return out


@router.post("/{game_id}/continue")
def continue_game(game_id: str) -> dict[str, Any]:
    """Clear a finished trick, then let the AI lead if it won."""
    sess = _get_session(game_id)
    if sess.state.game_over:
        return _public_state(sess)
    _, result = clear_trick(sess.state)
    if isinstance(result, Failure):
        raise _reject(result)
    _advance_ai(sess)
    return _public_state(sess)


@router.get("/{game_id}/log")
def game_log(game_id: str) -> list[dict[str, Any]]:
    return list(_get_session(game_id).log)

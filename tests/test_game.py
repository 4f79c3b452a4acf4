from __future__ import annotations

from typing import Sequence

import pytest

from chouine.announcements import Combination
from chouine.cards import Card, Rank, Suit, make_deck, shuffle
from chouine.game import (
    GAME_OVER,
    PHASE1_PLAY,
    PHASE2_PLAY,
    TRICK_PENDING_CLEAR,
    GameState,
    Side,
    can_exchange_seven,
    card_count,
    check_conservation,
    clear_trick,
    exchange_seven,
    is_legal_play,
    legal_cards,
    new_game,
    play_card,
    status,
)
from chouine.prng import Mulberry32
from chouine.results import (
    CardPlayed,
    ClearResult,
    ExchangeResult,
    Failure,
    FailureReason,
    GameOverResult,
    InconsistentStateError,
    TrickResolved,
)

H, D, C, S = Suit.HEARTS, Suit.DIAMONDS, Suit.CLUBS, Suit.SPADES
HUMAN, AI = Side.HUMAN, Side.AI


def make_state(
    human: Sequence[Card],
    ai: Sequence[Card],
    *,
    trump: Suit = S,
    trump_card: Card | None = None,
    talon: Sequence[Card] = (),
    phase: int = 1,
    current: Side = HUMAN,
) -> GameState:
    st = new_game(seed=1)
    st.players[HUMAN].hand = list(human)
    st.players[AI].hand = list(ai)
    st.trump_suit = trump
    st.trump_card = trump_card
    st.talon = list(talon)
    st.game_phase = phase
    st.talon_empty = phase == 2
    st.current_player = current
    st.last_trick_winner = current
    return st


# ---------------------------------------------------------------------------
#  Dealing
# ---------------------------------------------------------------------------


def test_new_game_deals_five_each_and_turns_up_trump() -> None:
    st = new_game(seed=1)
    assert len(st.hand(HUMAN)) == 5
    assert len(st.hand(AI)) == 5
    assert len(st.talon) == 21
    assert st.trump_card is not None
    assert st.trump_suit == st.trump_card.suit
    assert st.game_phase == 1
    assert not st.talon_empty
    assert st.seed == 1
    assert status(st) == PHASE1_PLAY
    check_conservation(st)


def test_deal_follows_the_seeded_shuffle() -> None:
    seed = 2024
    deck = make_deck()
    shuffle(deck, Mulberry32(seed))

    st = new_game(seed=seed)
    # Cards come off the end of the shuffled deck: human, ai, human, ai, ...
    assert st.hand(HUMAN) == [deck[-1], deck[-3], deck[-5], deck[-7], deck[-9]]
    assert st.hand(AI) == [deck[-2], deck[-4], deck[-6], deck[-8], deck[-10]]
    assert st.trump_card == deck[-11]
    assert st.talon == deck[:-11]


def test_same_seed_same_deal() -> None:
    a = new_game(seed=777)
    b = new_game(seed=777)
    assert a.hand(HUMAN) == b.hand(HUMAN)
    assert a.hand(AI) == b.hand(AI)
    assert a.trump_card == b.trump_card
    assert a.talon == b.talon

    c = new_game(seed=778)
    assert (c.hand(HUMAN), c.talon) != (a.hand(HUMAN), a.talon)


def test_new_game_without_seed_records_the_generated_one() -> None:
    st = new_game()
    replay = new_game(seed=st.seed)
    assert replay.hand(HUMAN) == st.hand(HUMAN)
    assert replay.talon == st.talon


def test_dealer_alternates_and_game_wins_carry_over() -> None:
    g1 = new_game(seed=1)
    assert g1.dealer == AI
    assert g1.current_player == HUMAN

    g1.players[HUMAN].game_wins = 3
    g1.players[AI].game_wins = 2
    g1.players[HUMAN].score = 99

    g2 = new_game(seed=2, previous=g1)
    assert g2.dealer == HUMAN
    assert g2.current_player == AI
    assert g2.players[HUMAN].game_wins == 3
    assert g2.players[AI].game_wins == 2
    assert g2.players[HUMAN].score == 0

    g3 = new_game(seed=3, previous=g2)
    assert g3.dealer == AI


# ---------------------------------------------------------------------------
#  Rejections
# ---------------------------------------------------------------------------


def test_card_not_in_hand_changes_nothing() -> None:
    st = new_game(seed=1)
    assert st.current_player == HUMAN
    hand_before = list(st.hand(HUMAN))
    foreign = next(c for c in make_deck() if c not in hand_before)

    _, res = play_card(st, HUMAN, foreign)
    assert isinstance(res, Failure)
    assert res.reason == FailureReason.CARD_NOT_IN_HAND
    assert not res.success
    assert st.hand(HUMAN) == hand_before
    assert st.current_trick == {HUMAN: None, AI: None}
    assert st.current_player == HUMAN


def test_unknown_card_id_is_card_not_in_hand() -> None:
    st = new_game(seed=1)
    _, res = play_card(st, HUMAN, "joker_hearts")
    assert isinstance(res, Failure)
    assert res.reason == FailureReason.CARD_NOT_IN_HAND


def test_play_by_card_id() -> None:
    st = new_game(seed=1)
    card = st.hand(HUMAN)[0]
    _, res = play_card(st, HUMAN, card.id)
    assert res.success
    assert st.current_trick[HUMAN] == card


def test_not_your_turn() -> None:
    st = new_game(seed=1)
    _, res = play_card(st, AI, st.hand(AI)[0])
    assert isinstance(res, Failure)
    assert res.reason == FailureReason.NOT_YOUR_TURN
    assert len(st.hand(AI)) == 5


def test_illegal_play_in_phase_two_changes_nothing() -> None:
    st = make_state(
        [Card(H, Rank.ACE), Card(C, Rank.NINE)],
        [Card(H, Rank.SEVEN), Card(D, Rank.EIGHT)],
        phase=2,
    )
    _, res = play_card(st, HUMAN, Card(H, Rank.ACE))
    assert isinstance(res, CardPlayed)
    assert res.waiting_for_opponent
    assert st.current_player == AI

    # AI holds a heart, so the diamond is illegal.
    assert not is_legal_play(st, AI, Card(D, Rank.EIGHT))
    assert legal_cards(st, AI) == [Card(H, Rank.SEVEN)]
    _, res = play_card(st, AI, Card(D, Rank.EIGHT))
    assert isinstance(res, Failure)
    assert res.reason == FailureReason.ILLEGAL_PLAY
    assert st.hand(AI) == [Card(H, Rank.SEVEN), Card(D, Rank.EIGHT)]
    assert st.current_trick[AI] is None


def test_phase_one_has_no_follow_obligation() -> None:
    st = make_state(
        [Card(H, Rank.ACE), Card(C, Rank.NINE)],
        [Card(H, Rank.SEVEN), Card(D, Rank.EIGHT)],
        trump_card=Card(S, Rank.NINE),
        talon=[Card(C, Rank.SEVEN), Card(C, Rank.EIGHT)],
    )
    play_card(st, HUMAN, Card(H, Rank.ACE))
    assert set(legal_cards(st, AI)) == {Card(H, Rank.SEVEN), Card(D, Rank.EIGHT)}
    _, res = play_card(st, AI, Card(D, Rank.EIGHT))
    assert isinstance(res, TrickResolved)


# ---------------------------------------------------------------------------
#  Tricks
# ---------------------------------------------------------------------------


def test_trick_banks_points_and_waits_for_clear() -> None:
    top = Card(C, Rank.KING)
    below = Card(C, Rank.SEVEN)
    st = make_state(
        [Card(H, Rank.TEN), Card(D, Rank.NINE)],
        [Card(H, Rank.ACE), Card(D, Rank.EIGHT)],
        trump_card=Card(S, Rank.NINE),
        talon=[Card(D, Rank.SEVEN), below, top],
    )
    _, res = play_card(st, HUMAN, Card(H, Rank.TEN))
    assert isinstance(res, CardPlayed)
    _, res = play_card(st, AI, Card(H, Rank.ACE))
    assert isinstance(res, TrickResolved)
    assert res.trick_winner == "ai"
    assert res.points == 21
    assert st.players[AI].score == 21
    assert st.players[HUMAN].score == 0
    assert set(st.players[AI].tricks) == {Card(H, Rank.TEN), Card(H, Rank.ACE)}

    # Winner draws first.
    assert res.drawn_cards == {"ai": top, "human": below}
    assert top in st.hand(AI)
    assert below in st.hand(HUMAN)
    assert st.current_player == AI

    # Both cards stay visible until cleared.
    assert st.current_trick == {HUMAN: Card(H, Rank.TEN), AI: Card(H, Rank.ACE)}
    assert st.trick_awaiting_clear
    assert status(st) == TRICK_PENDING_CLEAR
    _, res = play_card(st, AI, Card(D, Rank.EIGHT))
    assert isinstance(res, Failure)
    assert res.reason == FailureReason.TRICK_PENDING_CLEAR

    _, res = clear_trick(st)
    assert isinstance(res, ClearResult)
    assert res.current_player == "ai"
    assert st.current_trick == {HUMAN: None, AI: None}
    assert not st.trick_awaiting_clear

    _, res = clear_trick(st)
    assert isinstance(res, Failure)
    assert res.reason == FailureReason.NO_TRICK_TO_CLEAR


def test_first_player_wins_when_follower_neither_follows_nor_trumps() -> None:
    st = make_state(
        [Card(H, Rank.SEVEN), Card(D, Rank.NINE)],
        [Card(C, Rank.ACE), Card(D, Rank.EIGHT)],
        trump_card=Card(S, Rank.NINE),
        talon=[Card(D, Rank.SEVEN), Card(C, Rank.EIGHT)],
        current=AI,
    )
    play_card(st, AI, Card(D, Rank.EIGHT))
    _, res = play_card(st, HUMAN, Card(H, Rank.SEVEN))
    assert isinstance(res, TrickResolved)
    assert res.trick_winner == "ai"


def test_trump_takes_a_plain_lead() -> None:
    st = make_state(
        [Card(H, Rank.ACE), Card(D, Rank.NINE)],
        [Card(S, Rank.SEVEN), Card(D, Rank.EIGHT)],
        trump_card=Card(S, Rank.NINE),
        talon=[Card(D, Rank.SEVEN), Card(C, Rank.EIGHT)],
    )
    play_card(st, HUMAN, Card(H, Rank.ACE))
    _, res = play_card(st, AI, Card(S, Rank.SEVEN))
    assert res.trick_winner == "ai"
    assert st.players[AI].score == 11


def test_last_talon_card_hands_over_the_trump_card() -> None:
    last = Card(C, Rank.NINE)
    upcard = Card(S, Rank.KING)
    st = make_state(
        [Card(H, Rank.ACE), Card(C, Rank.SEVEN)],
        [Card(H, Rank.SEVEN), Card(D, Rank.EIGHT)],
        trump_card=upcard,
        talon=[last],
    )
    play_card(st, HUMAN, Card(H, Rank.ACE))
    _, res = play_card(st, AI, Card(H, Rank.SEVEN))
    assert isinstance(res, TrickResolved)
    assert res.trick_winner == "human"
    assert res.drawn_cards == {"human": last, "ai": upcard}
    assert last in st.hand(HUMAN)
    assert upcard in st.hand(AI)
    assert st.talon == []
    assert st.talon_empty
    assert st.game_phase == 2
    assert res.game_phase == 2
    assert st.trump_card is None
    assert st.trump_suit == S

    clear_trick(st)
    assert status(st) == PHASE2_PLAY
    assert not can_exchange_seven(st, HUMAN)


def test_no_draws_once_talon_is_empty() -> None:
    st = make_state(
        [Card(H, Rank.ACE), Card(C, Rank.SEVEN)],
        [Card(H, Rank.SEVEN), Card(D, Rank.EIGHT)],
        phase=2,
    )
    play_card(st, HUMAN, Card(H, Rank.ACE))
    _, res = play_card(st, AI, Card(H, Rank.SEVEN))
    assert res.drawn_cards is None
    assert len(st.hand(HUMAN)) == 1
    assert len(st.hand(AI)) == 1


def test_last_trick_ends_the_game_with_bonus() -> None:
    st = make_state([Card(H, Rank.ACE)], [Card(H, Rank.SEVEN)], phase=2)
    st.players[AI].score = 50
    st.players[HUMAN].score = 40
    play_card(st, HUMAN, Card(H, Rank.ACE))
    _, res = play_card(st, AI, Card(H, Rank.SEVEN))
    assert isinstance(res, GameOverResult)
    assert res.game_over
    assert not res.instant_win
    assert res.trick_winner == "human"
    # 40 + 11 + 10 bonus = 61 > 50
    assert res.scores == {"human": 61, "ai": 50}
    assert res.winner == "human"
    assert res.game_wins == {"human": 1, "ai": 0}
    assert st.game_over
    assert st.game_winner == "human"
    assert status(st) == GAME_OVER

    _, res = play_card(st, HUMAN, Card(H, Rank.ACE))
    assert isinstance(res, Failure)
    assert res.reason == FailureReason.GAME_OVER


def test_tie_awards_no_game_win() -> None:
    st = make_state([Card(H, Rank.SEVEN)], [Card(H, Rank.EIGHT)], phase=2)
    st.players[HUMAN].score = 10
    play_card(st, HUMAN, Card(H, Rank.SEVEN))
    _, res = play_card(st, AI, Card(H, Rank.EIGHT))
    assert isinstance(res, GameOverResult)
    assert res.scores == {"human": 10, "ai": 10}
    assert res.winner == "tie"
    assert res.game_wins == {"human": 0, "ai": 0}


# ---------------------------------------------------------------------------
#  Announcements
# ---------------------------------------------------------------------------


def test_trump_chouine_wins_instantly() -> None:
    chouine = [Card(S, Rank.ACE), Card(S, Rank.TEN), Card(S, Rank.KING), Card(S, Rank.QUEEN), Card(S, Rank.JACK)]
    st = make_state(
        chouine,
        [Card(H, Rank.SEVEN), Card(D, Rank.EIGHT), Card(D, Rank.NINE), Card(C, Rank.SEVEN), Card(C, Rank.EIGHT)],
        trump_card=Card(S, Rank.NINE),
        talon=[Card(H, Rank.EIGHT), Card(H, Rank.NINE)],
    )
    talon_before = list(st.talon)
    _, res = play_card(st, HUMAN, Card(S, Rank.JACK))
    assert isinstance(res, GameOverResult)
    assert res.instant_win
    assert res.announcement is not None
    assert res.announcement.combination == Combination.CHOUINE
    assert res.winner == "human"
    assert st.game_over
    assert st.game_winner == "human"
    assert st.players[HUMAN].game_wins == 1
    assert st.players[AI].game_wins == 0
    # No trick resolution, no scoring, no draws.
    assert st.players[HUMAN].score == 0
    assert st.players[AI].score == 0
    assert st.talon == talon_before
    assert not st.trick_awaiting_clear
    assert st.players[HUMAN].tricks == []


def test_mariage_scores_once_per_suit() -> None:
    st = make_state(
        [Card(H, Rank.KING), Card(H, Rank.QUEEN), Card(C, Rank.SEVEN)],
        [Card(D, Rank.SEVEN), Card(D, Rank.EIGHT), Card(D, Rank.NINE)],
        trump_card=Card(S, Rank.NINE),
        talon=[Card(C, Rank.EIGHT), Card(C, Rank.NINE), Card(S, Rank.SEVEN), Card(S, Rank.EIGHT)],
    )
    _, res = play_card(st, HUMAN, Card(H, Rank.KING))
    assert res.announcement is not None
    assert res.announcement.combination == Combination.MARIAGE
    assert res.announcement.points == 20
    assert st.players[HUMAN].score == 20
    assert st.players[HUMAN].announced_combos == {"hearts"}

    # Different plain suits: the human led, so keeps the trick (+4).
    _, res = play_card(st, AI, Card(D, Rank.SEVEN))
    assert res.trick_winner == "human"
    assert st.players[HUMAN].score == 24
    clear_trick(st)

    # Same combination again: not rescored.
    st.players[HUMAN].hand.append(Card(H, Rank.KING))
    _, res = play_card(st, HUMAN, Card(H, Rank.QUEEN))
    assert res.announcement is None
    assert st.players[HUMAN].score == 24
    assert st.players[HUMAN].announced_combos == {"hearts"}
    assert len(st.players[HUMAN].announcements) == 1


def test_follower_can_announce_too() -> None:
    st = make_state(
        [Card(H, Rank.SEVEN), Card(C, Rank.SEVEN)],
        [Card(S, Rank.KING), Card(S, Rank.QUEEN), Card(S, Rank.JACK)],
        trump_card=Card(S, Rank.NINE),
        talon=[Card(C, Rank.EIGHT), Card(C, Rank.NINE)],
    )
    play_card(st, HUMAN, Card(H, Rank.SEVEN))
    _, res = play_card(st, AI, Card(S, Rank.JACK))
    assert isinstance(res, TrickResolved)
    assert res.announcement is not None
    assert res.announcement.combination == Combination.TIERCE
    assert res.announcement.points == 60
    assert st.players[AI].score == 60 + 2


def test_quinte_scores_100_once() -> None:
    brisques = [Card(H, Rank.ACE), Card(H, Rank.TEN), Card(S, Rank.ACE), Card(S, Rank.TEN), Card(C, Rank.ACE)]
    st = make_state(
        brisques,
        [Card(D, Rank.SEVEN), Card(D, Rank.EIGHT), Card(D, Rank.NINE), Card(C, Rank.SEVEN), Card(C, Rank.EIGHT)],
        trump=D,
        trump_card=Card(D, Rank.JACK),
        talon=[Card(H, Rank.EIGHT), Card(H, Rank.NINE)],
    )
    _, res = play_card(st, HUMAN, Card(C, Rank.ACE))
    assert res.announcement is not None
    assert res.announcement.combination == Combination.QUINTE
    assert st.players[HUMAN].score == 100
    assert "quinte" in st.players[HUMAN].announced_combos


# ---------------------------------------------------------------------------
#  Trump seven exchange
# ---------------------------------------------------------------------------


def test_exchange_seven_swaps_with_upcard() -> None:
    seven = Card(H, Rank.SEVEN)
    upcard = Card(H, Rank.ACE)
    st = make_state(
        [Card(C, Rank.NINE), seven, Card(D, Rank.EIGHT)],
        [Card(C, Rank.SEVEN)],
        trump=H,
        trump_card=upcard,
        talon=[Card(S, Rank.SEVEN)],
    )
    assert can_exchange_seven(st, HUMAN)
    assert not can_exchange_seven(st, AI)

    _, res = exchange_seven(st, HUMAN)
    assert isinstance(res, ExchangeResult)
    assert res.new_trump_card == seven
    assert res.received_card == upcard
    assert st.trump_card == seven
    assert st.hand(HUMAN) == [Card(C, Rank.NINE), upcard, Card(D, Rank.EIGHT)]
    assert st.seven_exchanged
    assert st.players[HUMAN].score == 0

    # Only once per game.
    _, res = exchange_seven(st, HUMAN)
    assert isinstance(res, Failure)
    assert res.reason == FailureReason.INVALID_EXCHANGE


def test_exchange_not_allowed_without_seven_or_in_phase_two() -> None:
    st = make_state([Card(C, Rank.NINE)], [Card(C, Rank.SEVEN)], trump=H, trump_card=Card(H, Rank.ACE), talon=[Card(S, Rank.SEVEN)])
    _, res = exchange_seven(st, HUMAN)
    assert isinstance(res, Failure)
    assert res.reason == FailureReason.INVALID_EXCHANGE
    assert st.trump_card == Card(H, Rank.ACE)

    st = make_state([Card(H, Rank.SEVEN)], [Card(C, Rank.SEVEN)], trump=H, phase=2)
    assert not can_exchange_seven(st, HUMAN)


# ---------------------------------------------------------------------------
#  Invariants and tracing
# ---------------------------------------------------------------------------


def test_conservation_violation_is_reported() -> None:
    st = new_game(seed=5)
    st.talon.pop()
    assert card_count(st) == 31
    with pytest.raises(InconsistentStateError):
        check_conservation(st)


def test_clone_is_independent() -> None:
    st = new_game(seed=5)
    cp = st.clone()
    card = cp.hand(HUMAN)[0]
    play_card(cp, HUMAN, card)
    assert card in st.hand(HUMAN)
    assert st.current_trick[HUMAN] is None


def test_trace_hook_receives_events() -> None:
    events: list[tuple[str, dict]] = []
    st = new_game(seed=11, trace=lambda e, f: events.append((e, f)))
    assert events[0][0] == "new_game"
    assert events[0][1]["seed"] == 11

    st.players[HUMAN].hand = [Card(H, Rank.ACE), Card(C, Rank.SEVEN)]
    st.players[AI].hand = [Card(H, Rank.SEVEN), Card(D, Rank.EIGHT)]
    st.talon = [Card(D, Rank.NINE), Card(C, Rank.NINE)]
    play_card(st, HUMAN, Card(H, Rank.ACE))
    play_card(st, AI, Card(H, Rank.SEVEN))
    assert [e for e, _ in events] == ["new_game", "play", "play", "trick"]
    assert events[-1][1]["points"] == 11

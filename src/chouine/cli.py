from __future__ import annotations

import argparse
import logging
from typing import Optional

from chouine.agent import HeuristicAgent
from chouine.cards import Card
from chouine.evaluation import simulate_match
from chouine.game import (
    GameState,
    Side,
    can_exchange_seven,
    clear_trick,
    exchange_seven,
    legal_cards,
    new_game,
    play_card,
    talon_size,
)


def _describe(st: GameState) -> str:
    trump = st.trump_card.short() if st.trump_card is not None else f"({st.trump_suit.value})"
    hs = st.players[Side.HUMAN].score
    ai = st.players[Side.AI].score
    return f"trump {trump}  talon {talon_size(st)}  phase {st.game_phase}  score {hs}-{ai}"


def _ask_card(st: GameState) -> Optional[Card]:
    hand = st.hand(Side.HUMAN)
    legal = set(legal_cards(st, Side.HUMAN))
    labels = [f"{i}:{c.short()}{'' if c in legal else '*'}" for i, c in enumerate(hand)]
    prompt = " ".join(labels)
    if can_exchange_seven(st, Side.HUMAN):
        prompt += "  x:exchange seven"
    raw = input(f"{prompt}\n> ").strip().lower()
    if raw == "x":
        return None
    try:
        return hand[int(raw)]
    except (ValueError, IndexError):
        # Re-prompt on bad input.
        return _ask_card(st)


def cmd_play(args) -> int:
    agent = HeuristicAgent(side=Side.AI)
    prev: Optional[GameState] = None
    while True:
        st = new_game(args.seed, previous=prev)
        print(f"Seed {st.seed} — {st.dealer.value} deals")
        while not st.game_over:
            if st.trick_awaiting_clear:
                print("  on table: " + " / ".join(
                    f"{s.value} {c.short()}" for s, c in st.current_trick.items() if c is not None
                ))
                clear_trick(st)
                continue
            print(_describe(st))
            if st.current_player == Side.AI:
                decision = agent.decide(st)
                if decision.kind == "exchange":
                    print("  ai exchanges the trump seven")
                elif decision.result.success:
                    ann = getattr(decision.result, "announcement", None)
                    extra = f" announcing {ann.combination.value} ({ann.points})" if ann else ""
                    print(f"  ai plays {decision.card.short()}{extra}")
                continue
            card = _ask_card(st)
            if card is None:
                _, result = exchange_seven(st, Side.HUMAN)
            else:
                _, result = play_card(st, Side.HUMAN, card)
            if not result.success:
                print(f"  {result.message}")
                continue
            ann = getattr(result, "announcement", None)
            if ann is not None:
                print(f"  you announce {ann.combination.value} ({ann.points})")
        hs = st.players[Side.HUMAN]
        ai = st.players[Side.AI]
        print(f"Game over: {st.game_winner}  score {hs.score}-{ai.score}  games {hs.game_wins}-{ai.game_wins}")
        prev = st
        args.seed = None
        if input("Again? [y/N] ").strip().lower() != "y":
            return 0


def cmd_simulate(args) -> int:
    stats = simulate_match(args.games, seed=args.seed)
    print(f"{stats.games} games, seed {args.seed}")
    for side in Side:
        print(f"  {side.value}: {stats.wins[side.value]} wins ({stats.win_rate(side):.3f})")
    print(f"  ties: {stats.ties}  chouines: {stats.chouines}")
    print(f"  margin human-ai: {stats.mean_margin:+.2f} ± {stats.std_margin:.2f}")
    return 0


def main(argv: Optional[list[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="La Chouine — play against the heuristic agent")
    parser.add_argument("--log-level", type=str, default="WARNING")
    sub = parser.add_subparsers(dest="command", required=True)

    p_play = sub.add_parser("play", help="Play in the terminal")
    p_play.add_argument("--seed", type=int, default=None)
    p_play.set_defaults(func=cmd_play)

    p_sim = sub.add_parser("simulate", help="Agent vs agent over many games")
    p_sim.add_argument("--games", type=int, default=1000)
    p_sim.add_argument("--seed", type=int, default=0)
    p_sim.set_defaults(func=cmd_simulate)

    args = parser.parse_args(argv)
    logging.basicConfig(level=args.log_level.upper(), format="%(levelname)s %(name)s: %(message)s")
    return args.func(args)


if __name__ == "__main__":
    raise SystemExit(main())

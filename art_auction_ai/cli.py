# art_auction_ai/cli.py
from __future__ import annotations

import argparse
import logging
import random
from dataclasses import replace
from typing import List, Tuple

from .cards import ARTISTS, AuctionType, Card
from .decision_log import DecisionLogger, FailureLogger
from .decisions import DecisionType
from .auction_turns import decision_type_for
from .manager import AIManager, ManagerConfig
from .paths import ensure_results_dir, resolve_results_path
from .scenarios import build_game_state, start_auction
from .state import FixedPriceAuction, GameState
from .telemetry import PerformanceMonitor

DIFFICULTIES = ("easy", "medium", "hard")

# Snapshot kinds cycled through by the benchmark, in order.
SCENARIOS = (
    "card_play",
    "open",
    "one_offer",
    "hidden",
    "fixed_price",
    "buy",
    "double",
)


def parse_args(argv: List[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description=(
            "Benchmark the auction AI on seeded game snapshots and log "
            "per-decision timings to a CSV file."
        )
    )
    parser.add_argument(
        "--players",
        type=int,
        default=4,
        help="Number of seats, all AI-controlled (3-5, default: 4).",
    )
    parser.add_argument(
        "--difficulties",
        nargs="+",
        choices=DIFFICULTIES,
        default=list(DIFFICULTIES),
        help="Difficulties assigned to the seats in turn (default: easy medium hard).",
    )
    parser.add_argument(
        "--decisions",
        type=int,
        default=100,
        help="Number of snapshots to decide on (default: 100).",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=0,
        help="Base random seed for snapshots and AI players.",
    )
    parser.add_argument(
        "--csv",
        type=str,
        default="decision_times.csv",
        help="Path to the output CSV file (default: decision_times.csv).",
    )
    parser.add_argument(
        "--timeout-ms",
        type=float,
        default=None,
        help="Override every difficulty's decision budget, in milliseconds.",
    )
    parser.add_argument(
        "--decision-log",
        type=str,
        default=None,
        help="Optional path for a readable log of every decision.",
    )
    parser.add_argument(
        "--failure-log",
        type=str,
        default=None,
        help="Optional path to capture only decisions that fell back.",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default="INFO",
        help="Logging level (DEBUG, INFO, WARNING, ...). Default: INFO.",
    )
    return parser.parse_args(argv)


def _bench_card(rng: random.Random, auction_type: AuctionType, index: int) -> Card:
    return Card(f"bench_{index}", rng.choice(ARTISTS), auction_type)


def build_snapshot(
    index: int, num_players: int, difficulties: List[str], seed: int
) -> Tuple[GameState, int]:
    """
    A seeded snapshot plus the seat whose decision it asks for.

    Scenarios rotate through every decision type; rounds rotate 1-3 so
    hands and boards vary.
    """
    rng = random.Random(seed + index)
    seats = [difficulties[i % len(difficulties)] for i in range(num_players)]
    state = build_game_state(
        num_players,
        round_number=1 + index % 3,
        seed=seed + index,
        difficulties=seats,
        money=[rng.randint(30, 100) for _ in range(num_players)],
    )
    player = index % num_players
    other = (player + 1 + rng.randrange(num_players - 1)) % num_players
    scenario = SCENARIOS[index % len(SCENARIOS)]

    if scenario == "card_play":
        state.round.active_player_index = player
        return state, player
    if scenario == "open":
        state = start_auction(state, _bench_card(rng, AuctionType.OPEN, index), other)
        state.round.auction.current_bid = rng.randint(0, 25)
        state.round.auction.current_bidder = other if state.round.auction.current_bid else None
        return state, player
    if scenario == "one_offer":
        state = start_auction(state, _bench_card(rng, AuctionType.ONE_OFFER, index), other)
        auction = state.round.auction
        auction.current_turn_index = auction.turn_order.index(player)
        return state, player
    if scenario == "hidden":
        state = start_auction(state, _bench_card(rng, AuctionType.HIDDEN, index), other)
        return state, player
    if scenario == "fixed_price":
        state = start_auction(state, _bench_card(rng, AuctionType.FIXED_PRICE, index), player)
        return state, player
    if scenario == "buy":
        state = start_auction(state, _bench_card(rng, AuctionType.FIXED_PRICE, index), other)
        auction = state.round.auction
        assert isinstance(auction, FixedPriceAuction)
        auction.phase = "buying"
        auction.price = rng.randint(5, 40)
        auction.current_turn_index = auction.turn_order.index(player)
        return state, player
    state = start_auction(state, _bench_card(rng, AuctionType.DOUBLE, index), player)
    return state, player


def run_benchmark(
    manager: AIManager,
    *,
    num_players: int,
    difficulties: List[str],
    decisions: int,
    seed: int,
) -> int:
    """Request `decisions` snapshots' worth of decisions; returns how many were made."""
    made = 0
    for index in range(decisions):
        state, player = build_snapshot(index, num_players, difficulties, seed)
        if index == 0:
            manager.initialize_ai_players(state)
        decision_type = decision_type_for(state, player)
        if decision_type is None:
            logging.warning("Snapshot %d has no decision for player %d", index, player)
            continue
        if decision_type == DecisionType.HIDDEN_BID:
            made += len(manager.decide_hidden_bids(state))
        else:
            manager.make_decision(player, decision_type, state)
            made += 1
    return made


def main(argv: List[str] | None = None) -> None:
    args = parse_args(argv)
    ensure_results_dir()

    logging.basicConfig(
        level=getattr(logging, args.log_level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    if args.players < 3 or args.players > 5:
        raise SystemExit(
            f"The auction game requires between 3 and 5 players; got {args.players}."
        )

    csv_path = resolve_results_path(args.csv)
    decision_logger = (
        DecisionLogger(resolve_results_path(args.decision_log))
        if args.decision_log
        else None
    )
    failure_logger = (
        FailureLogger(resolve_results_path(args.failure_log))
        if args.failure_log
        else None
    )

    config = ManagerConfig(seed=args.seed)
    if args.timeout_ms is not None:
        config = replace(
            config, timeouts_ms={d: args.timeout_ms for d in DIFFICULTIES}
        )
    telemetry = PerformanceMonitor()
    manager = AIManager(
        config,
        telemetry=telemetry,
        decision_logger=decision_logger,
        failure_logger=failure_logger,
    )

    logging.info("Players: %d (%s)", args.players, ", ".join(args.difficulties))
    logging.info("Decisions to request: %d", args.decisions)
    logging.info("Output CSV: %s", csv_path)

    try:
        made = run_benchmark(
            manager,
            num_players=args.players,
            difficulties=args.difficulties,
            decisions=args.decisions,
            seed=args.seed,
        )
    finally:
        manager.cleanup()

    telemetry.export_csv(csv_path)
    for difficulty in sorted(set(args.difficulties)):
        summary = telemetry.summary(difficulty=difficulty)
        logging.info(
            "%s: %d decisions, mean %.2f ms, p95 %.2f ms, fallback rate %.1f%%",
            difficulty,
            summary["decisions"],
            summary["mean_ms"],
            summary["p95_ms"],
            summary["fallback_rate"] * 100,
        )
    fallbacks = sum(r.fallback_used for r in telemetry.records())
    logging.info(
        "Finished %d decisions over %d snapshots (%d fallbacks); wrote %d rows to %s",
        made,
        args.decisions,
        fallbacks,
        len(telemetry),
        csv_path,
    )


if __name__ == "__main__":
    main()

'''
python3 -m art_auction_ai.cli \
  --players 4 \
  --difficulties easy medium hard \
  --decisions 500 \
  --csv decision_times.csv \
  --failure-log decision_failures.log \
  --seed 1
'''

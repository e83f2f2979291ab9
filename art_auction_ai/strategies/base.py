# art_auction_ai/strategies/base.py
from __future__ import annotations

import random
from dataclasses import dataclass
from typing import Optional, Protocol, runtime_checkable

from ..decisions import Decision, DecisionType
from ..knowledge.context import DecisionContext
from ..state import (
    DoubleAuction,
    FixedPriceAuction,
    GameState,
    HiddenAuction,
    OneOfferAuction,
    OpenAuction,
)


@dataclass(frozen=True)
class ThinkingDelay:
    """How long a human-like player of this tier pauses, in milliseconds."""
    min_ms: float
    max_ms: float
    distribution: str = "uniform"  # "uniform" | "normal" | "exponential"
    human_pauses: bool = True

    def sample(self, rng: random.Random) -> float:
        if self.distribution == "normal":
            mean = (self.min_ms + self.max_ms) / 2
            value = rng.gauss(mean, (self.max_ms - self.min_ms) / 6)
        elif self.distribution == "exponential":
            value = self.min_ms + rng.expovariate(3.0 / max(1.0, self.max_ms - self.min_ms))
        else:
            value = rng.uniform(self.min_ms, self.max_ms)
        return max(self.min_ms, min(self.max_ms, value))


@dataclass(frozen=True)
class DecisionOptions:
    timeout_ms: Optional[float] = None
    # Valuation hint from the engine, e.g. a scenario's estimated card value.
    estimated_value: Optional[float] = None


@runtime_checkable
class AIStrategy(Protocol):
    """
    Interface all three difficulty tiers implement.

    `make_decision` receives a context built from a filtered snapshot and
    returns a Decision; it must not touch shared game state.
    """

    difficulty: str
    name: str

    def initialize(self, game_state: GameState, player_index: int) -> None:
        """Called once per game before the first decision."""
        raise NotImplementedError

    def update(self, context: DecisionContext) -> None:
        """Refresh long-lived knowledge without producing a decision."""
        raise NotImplementedError

    def make_decision(
        self,
        decision_type: DecisionType,
        context: DecisionContext,
        options: Optional[DecisionOptions] = None,
    ) -> Decision:
        raise NotImplementedError

    def cleanup(self) -> None:
        raise NotImplementedError

    def get_thinking_delay(self) -> ThinkingDelay:
        raise NotImplementedError


# ---------------------------------------------------------------------------
# Helpers shared by the strategies
# ---------------------------------------------------------------------------


def snapshot_fingerprint(game_state: GameState, player_index: int) -> str:
    """
    Stable text summary of everything a decision depends on.

    Two equal snapshots give equal fingerprints across processes, which is
    what makes seeded decisions reproducible.
    """
    me = game_state.players[player_index]
    parts = [
        f"r{game_state.round.round_number}",
        game_state.round.phase,
        f"m{me.money}",
        "h" + ",".join(c.id for c in me.hand),
        "p" + ",".join(str(p.money) for p in game_state.players),
        "b" + ",".join(
            f"{a.value}:{len(cards)}" for a, cards in game_state.board.played_cards.items()
        ),
    ]
    auction = game_state.auction
    if auction is not None:
        parts.append(auction_fingerprint(auction))
    return "|".join(parts)


def auction_fingerprint(auction) -> str:
    if isinstance(auction, DoubleAuction):
        inner = auction_fingerprint(auction.embedded_auction) if auction.embedded_auction else "-"
        second = auction.second_card.id if auction.second_card else "-"
        return f"double:{auction.double_card.id}:{second}:{auction.current_auctioneer_index}:{inner}"
    if isinstance(auction, OpenAuction):
        return f"open:{auction.card.id}:{auction.current_bid}:{len(auction.bid_history)}"
    if isinstance(auction, OneOfferAuction):
        return (
            f"one_offer:{auction.card.id}:{auction.current_bid}:"
            f"{auction.current_turn_index}:{auction.phase}"
        )
    if isinstance(auction, HiddenAuction):
        return f"hidden:{auction.card.id}:{auction.revealed}"
    if isinstance(auction, FixedPriceAuction):
        return f"fixed:{auction.card.id}:{auction.price}:{auction.phase}:{auction.current_turn_index}"
    return type(auction).__name__


def decision_rng(
    seed: int, decision_type: DecisionType, game_state: GameState, player_index: int
) -> random.Random:
    """Fresh RNG for one decision, derived from seed and snapshot."""
    return random.Random(
        f"{seed}|{decision_type.value}|{snapshot_fingerprint(game_state, player_index)}"
    )

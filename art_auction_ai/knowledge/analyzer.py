# art_auction_ai/knowledge/analyzer.py
from __future__ import annotations

import random
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Set

from ..cards import ARTISTS, Artist, Card, STARTING_MONEY, rank_artists
from ..state import (
    AUCTION,
    DoubleAuction,
    GameState,
    HiddenAuction,
    Player,
)
from .information_filter import InformationFilter


@dataclass
class PlayerInfo:
    id: str
    name: str
    is_self: bool
    money: int
    money_type: str  # "exact" | "estimated"
    money_confidence: float
    hand_size: int
    purchases: List[Card]
    is_ai: bool = False
    difficulty: Optional[str] = None


@dataclass
class VisibleGameState:
    """What one player is allowed to know, as a filtered snapshot."""
    player_index: int
    game_state: GameState
    players: List[PlayerInfo]
    visible_cards: List[Card]
    phase_description: str

    @property
    def round_number(self) -> int:
        return self.game_state.round.round_number

    @property
    def me(self) -> Player:
        return self.game_state.players[self.player_index]


@dataclass
class MoneyChange:
    player_index: int
    amount: int
    reason: str  # "purchase" | "sale" | "other"
    round_number: int


@dataclass
class AIMemory:
    seen_cards: Set[str] = field(default_factory=set)
    cards_played_by_artist: Dict[Artist, int] = field(
        default_factory=lambda: {a: 0 for a in ARTISTS}
    )
    money_changes: List[MoneyChange] = field(default_factory=list)
    ranking_history: List[Dict[str, Any]] = field(default_factory=list)
    notable_events: List[Dict[str, Any]] = field(default_factory=list)
    events_seen: int = 0


def describe_phase(game_state: GameState) -> str:
    phase = game_state.round.phase
    if phase == AUCTION and game_state.round.auction is not None:
        return f"Active auction: {game_state.round.auction.type.value}"
    if phase == "awaiting_card_play":
        return f"Player {game_state.round.active_player_index} choosing card"
    return phase.replace("_", " ").capitalize()


def visible_cards(game_state: GameState) -> List[Card]:
    cards = [c for played in game_state.board.played_cards.values() for c in played]
    auction = game_state.auction
    if auction is not None:
        cards.append(auction.card)
        if isinstance(auction, DoubleAuction) and auction.second_card is not None:
            cards.append(auction.second_card)
    return cards


def visible_spending(player: Player) -> int:
    return sum(p.purchase_price for p in player.purchases)


class GameStateAnalyzer:
    """
    Difficulty-gated view of a snapshot.

    Easy and Medium see public information plus their own hand. Hard also
    keeps an `AIMemory` across calls and uses observed money movements to
    sharpen its estimates of opponent money.
    """

    def __init__(self, player_index: int, difficulty: str) -> None:
        self.player_index = player_index
        self.difficulty = difficulty
        self.filter = InformationFilter(difficulty)
        self.memory = AIMemory()

    def visible_state(
        self, game_state: GameState, rng: Optional[random.Random] = None
    ) -> VisibleGameState:
        rng = rng if rng is not None else random.Random(0)
        filtered = game_state.copy()
        infos: List[PlayerInfo] = []
        for index, (original, player) in enumerate(
            zip(game_state.players, filtered.players)
        ):
            is_self = index == self.player_index
            exact_money = self.filter.can_see("money", own=is_self)
            if exact_money:
                money = original.money
                confidence = 1.0
            else:
                money = self._estimate_money(original, index, rng)
                confidence = self.filter.money_confidence
                player.money = money
            if not self.filter.can_see("hand", own=is_self):
                player.hand = []
            infos.append(
                PlayerInfo(
                    id=original.id,
                    name=original.name,
                    is_self=is_self,
                    money=money,
                    money_type="exact" if exact_money else "estimated",
                    money_confidence=confidence,
                    hand_size=len(original.hand),
                    purchases=[p.card for p in original.purchases]
                    + list(original.purchased_this_round),
                    is_ai=original.is_ai,
                    difficulty=original.difficulty,
                )
            )

        self._hide_sealed_bids(filtered)
        return VisibleGameState(
            player_index=self.player_index,
            game_state=filtered,
            players=infos,
            visible_cards=visible_cards(game_state),
            phase_description=describe_phase(game_state),
        )

    def _hide_sealed_bids(self, game_state: GameState) -> None:
        auction = game_state.auction
        if isinstance(auction, DoubleAuction):
            auction = auction.embedded_auction
        if isinstance(auction, HiddenAuction) and not auction.revealed:
            auction.bids = {
                i: amount
                for i, amount in auction.bids.items()
                if self.filter.can_see("sealed_bids", own=i == self.player_index)
            }

    def _estimate_money(self, player: Player, index: int, rng: random.Random) -> int:
        base = STARTING_MONEY - visible_spending(player)
        if self.difficulty == "hard":
            changes = [c for c in self.memory.money_changes if c.player_index == index]
            if changes:
                base = STARTING_MONEY + sum(c.amount for c in changes)
        return max(0, int(round(self.filter.apply_money_noise(base, rng))))

    # -- memory ----------------------------------------------------------

    def update_memory(self, game_state: GameState) -> None:
        """Hard only: remember cards, board counts, money movements."""
        if self.difficulty != "hard":
            return
        for card in visible_cards(game_state):
            self.memory.seen_cards.add(card.id)
        for artist in ARTISTS:
            self.memory.cards_played_by_artist[artist] = len(
                game_state.board.played_cards.get(artist, [])
            )

        new_events = game_state.event_log[self.memory.events_seen:]
        round_number = game_state.round.round_number
        for event in new_events:
            kind = event.get("type")
            if kind == "money_paid":
                amount = int(event.get("amount", 0))
                payer = event.get("from")
                payee = event.get("to")
                if isinstance(payer, int):
                    self.memory.money_changes.append(
                        MoneyChange(payer, -amount, "purchase", round_number)
                    )
                if isinstance(payee, int):
                    self.memory.money_changes.append(
                        MoneyChange(payee, amount, "sale", round_number)
                    )
                if amount >= 40:
                    self.memory.notable_events.append(
                        {"type": "high_bid", "players": [payer], "round": round_number}
                    )
            elif kind == "bank_sale":
                self.memory.money_changes.append(
                    MoneyChange(
                        int(event.get("player_index", -1)),
                        int(event.get("total_sale_value", 0)),
                        "sale",
                        round_number,
                    )
                )
            elif kind == "round_ended":
                rankings = rank_artists(game_state.round.cards_played_per_artist)
                self.memory.ranking_history.append(
                    {"round": round_number, "rankings": rankings}
                )
        self.memory.events_seen = len(game_state.event_log)

    def reset_memory(self) -> None:
        self.memory = AIMemory()

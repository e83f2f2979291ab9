# art_auction_ai/knowledge/opponents.py
"""
Opponent modelling for the Hard AI.

`OpponentMemory` watches the public parts of successive snapshots (bid
histories, revealed hidden bids, passes and purchases) and turns them into
`OpponentModel`s. Profiles from earlier games survive `start_game()`; the
current game's observations are blended in when the next game starts.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Set, Tuple

import numpy as np

from ..cards import ARTISTS, Artist, AuctionType
from ..probability import weighted_average
from ..state import (
    DoubleAuction,
    FixedPriceAuction,
    GameState,
    HiddenAuction,
    OneOfferAuction,
    OpenAuction,
)

logger = logging.getLogger(__name__)

# Rough value of an average painting, used to normalise bid sizes.
_TYPICAL_BID = 20.0
_OLD_WEIGHT = 0.7
_NEW_WEIGHT = 0.3


def _clamp(value: float, low: float = 0.1, high: float = 0.9) -> float:
    return max(low, min(high, value))


@dataclass
class BidPattern:
    auction_type: AuctionType
    artist: Artist
    amount: int
    round_number: int
    card_id: str
    won: bool = False
    was_bluff: bool = False


@dataclass
class PlayerTendencies:
    aggressiveness: float = 0.5
    bluffing_tendency: float = 0.3
    auction_type_preference: Dict[AuctionType, float] = field(
        default_factory=lambda: {t: 0.5 for t in AuctionType}
    )
    artist_bias: Dict[Artist, float] = field(
        default_factory=lambda: {a: 0.0 for a in ARTISTS}
    )
    conservation_tendency: float = 0.5


@dataclass
class OpponentModel:
    player_index: int
    player_id: str
    estimated_money: float
    money_confidence: float
    tendencies: PlayerTendencies = field(default_factory=PlayerTendencies)
    bidding_history: List[BidPattern] = field(default_factory=list)
    risk_tolerance: float = 0.5
    predictability: float = 0.5

    @property
    def artist_preferences(self) -> Dict[Artist, float]:
        return self.tendencies.artist_bias


# ---------------------------------------------------------------------------
# Tendency estimators
# ---------------------------------------------------------------------------


def aggressiveness_from(patterns: List[BidPattern]) -> float:
    if not patterns:
        return 0.5
    ratio = sum(p.amount / _TYPICAL_BID for p in patterns) / len(patterns)
    return _clamp(ratio / 2)


def bluffing_from(patterns: List[BidPattern]) -> float:
    hidden = [p for p in patterns if p.auction_type == AuctionType.HIDDEN]
    if not hidden:
        return 0.3
    return _clamp(sum(1 for p in hidden if p.was_bluff) / len(hidden))


def auction_preferences_from(patterns: List[BidPattern]) -> Dict[AuctionType, float]:
    prefs = {t: 0.5 for t in AuctionType}
    for auction_type in AuctionType:
        group = [p for p in patterns if p.auction_type == auction_type]
        if group:
            prefs[auction_type] = sum(1 for p in group if p.won) / len(group)
    return prefs


def artist_bias_from(patterns: List[BidPattern]) -> Dict[Artist, float]:
    """-1..1 per artist; 0 means the artist gets a fair 20% share of bids."""
    bias = {a: 0.0 for a in ARTISTS}
    if not patterns:
        return bias
    for artist in ARTISTS:
        share = sum(1 for p in patterns if p.artist == artist) / len(patterns)
        bias[artist] = (share - 0.2) * 2
    return bias


def conservation_from(actions: List[str], patterns: List[BidPattern]) -> float:
    if not actions:
        return 0.5
    pass_rate = actions.count("pass") / len(actions)
    avg_bid = (
        sum(p.amount for p in patterns) / len(patterns) if patterns else _TYPICAL_BID
    )
    score = pass_rate * 0.6 + (_TYPICAL_BID - min(_TYPICAL_BID, avg_bid)) / _TYPICAL_BID * 0.4
    return _clamp(score)


def risk_tolerance_from(patterns: List[BidPattern], estimated_money: float) -> float:
    if not patterns:
        return 0.5
    money = max(1.0, estimated_money)
    avg_share = sum(p.amount / money for p in patterns) / len(patterns)
    hidden_rate = sum(1 for p in patterns if p.auction_type == AuctionType.HIDDEN) / len(patterns)
    return _clamp(avg_share * 0.7 + hidden_rate * 0.3)


def predictability_from(patterns: List[BidPattern]) -> float:
    """Consistent bid sizes make a player predictable."""
    if len(patterns) <= 2:
        return 0.5
    amounts = [p.amount for p in patterns]
    mean = weighted_average(amounts)
    if mean <= 0:
        return 0.5
    return max(0.1, 1 - float(np.std(amounts)) / mean)


def tendencies_from(actions: List[str], patterns: List[BidPattern]) -> PlayerTendencies:
    return PlayerTendencies(
        aggressiveness=aggressiveness_from(patterns),
        bluffing_tendency=bluffing_from(patterns),
        auction_type_preference=auction_preferences_from(patterns),
        artist_bias=artist_bias_from(patterns),
        conservation_tendency=conservation_from(actions, patterns),
    )


def blend_tendencies(old: PlayerTendencies, new: PlayerTendencies) -> PlayerTendencies:
    def mix(a: float, b: float) -> float:
        return a * _OLD_WEIGHT + b * _NEW_WEIGHT

    return PlayerTendencies(
        aggressiveness=mix(old.aggressiveness, new.aggressiveness),
        bluffing_tendency=mix(old.bluffing_tendency, new.bluffing_tendency),
        auction_type_preference={
            t: mix(old.auction_type_preference[t], new.auction_type_preference[t])
            for t in AuctionType
        },
        artist_bias={a: mix(old.artist_bias[a], new.artist_bias[a]) for a in ARTISTS},
        conservation_tendency=mix(old.conservation_tendency, new.conservation_tendency),
    )


# ---------------------------------------------------------------------------
# Memory
# ---------------------------------------------------------------------------


class OpponentMemory:
    """Per-AI memory of how the other players behave."""

    def __init__(self, max_patterns_per_player: int = 200) -> None:
        self.max_patterns_per_player = max_patterns_per_player
        self._profiles: Dict[str, PlayerTendencies] = {}
        self._patterns: Dict[str, List[BidPattern]] = {}
        self._actions: Dict[str, List[str]] = {}
        self._seen: Set[Tuple[object, ...]] = set()

    def start_game(self) -> None:
        """Fold the finished game into long-term profiles, then reset."""
        for player_id, patterns in self._patterns.items():
            current = tendencies_from(self._actions.get(player_id, []), patterns)
            previous = self._profiles.get(player_id)
            self._profiles[player_id] = (
                current if previous is None else blend_tendencies(previous, current)
            )
        self._patterns.clear()
        self._actions.clear()
        self._seen.clear()

    def forget(self) -> None:
        self._profiles.clear()
        self._patterns.clear()
        self._actions.clear()
        self._seen.clear()

    @property
    def known_players(self) -> List[str]:
        return sorted(self._profiles)

    def patterns_for(self, player_id: str) -> List[BidPattern]:
        return list(self._patterns.get(player_id, []))

    # -- observation -----------------------------------------------------

    def record_bid(self, player_id: str, pattern: BidPattern) -> None:
        patterns = self._patterns.setdefault(player_id, [])
        patterns.append(pattern)
        if len(patterns) > self.max_patterns_per_player:
            del patterns[0]
        self._actions.setdefault(player_id, []).append("bid")

    def record_pass(self, player_id: str) -> None:
        self._actions.setdefault(player_id, []).append("pass")

    def _once(self, key: Tuple[object, ...]) -> bool:
        if key in self._seen:
            return False
        self._seen.add(key)
        return True

    def observe(self, game_state: GameState, observer_index: int) -> int:
        """
        Record every newly visible action in `game_state`.

        Returns how many new observations were made. Hidden bids are only
        read once the auction has been revealed.
        """
        before = len(self._seen)
        round_number = game_state.round.round_number
        auction = game_state.auction
        if auction is not None:
            self._observe_auction(game_state, auction, observer_index, round_number)

        for index, player in enumerate(game_state.players):
            if index == observer_index:
                continue
            for painting in player.purchases:
                if not self._once(("won", player.id, painting.card.id)):
                    continue
                for pattern in self._patterns.get(player.id, []):
                    if pattern.card_id == painting.card.id:
                        pattern.won = True
        return len(self._seen) - before

    def _observe_auction(
        self, game_state: GameState, auction, observer_index: int, round_number: int
    ) -> None:
        players = game_state.players

        def bid(index: int, amount: int, tag: object, auction_type: AuctionType, card) -> None:
            if index == observer_index or not 0 <= index < len(players):
                return
            pid = players[index].id
            if self._once(("bid", pid, card.id, tag)):
                self.record_bid(
                    pid,
                    BidPattern(
                        auction_type=auction_type,
                        artist=card.artist,
                        amount=amount,
                        round_number=round_number,
                        card_id=card.id,
                        # A large sealed bid on a cheap market reads as a bluff.
                        was_bluff=auction_type == AuctionType.HIDDEN
                        and amount > 2 * _TYPICAL_BID,
                    ),
                )

        def passed(index: int, card, tag: object) -> None:
            if index == observer_index or not 0 <= index < len(players):
                return
            pid = players[index].id
            if self._once(("pass", pid, card.id, tag)):
                self.record_pass(pid)

        if isinstance(auction, DoubleAuction):
            if auction.embedded_auction is not None:
                self._observe_auction(
                    game_state, auction.embedded_auction, observer_index, round_number
                )
            return

        card = auction.card
        if isinstance(auction, OpenAuction):
            for record in auction.bid_history:
                bid(record.player_index, record.amount, record.sequence, auction.type, card)
        elif isinstance(auction, OneOfferAuction):
            for index in auction.completed_turns:
                amount = auction.bid_history.get(index)
                if amount:
                    bid(index, amount, "offer", auction.type, card)
                else:
                    passed(index, card, "offer")
        elif isinstance(auction, HiddenAuction):
            if auction.revealed:
                for index, amount in auction.bids.items():
                    if amount > 0:
                        bid(index, amount, "sealed", auction.type, card)
                    else:
                        passed(index, card, "sealed")
        elif isinstance(auction, FixedPriceAuction):
            for index in auction.passed_players:
                passed(index, card, "fixed")
            if auction.sold and auction.winner_index is not None:
                bid(auction.winner_index, auction.price, "fixed", auction.type, card)

    # -- models ----------------------------------------------------------

    def build_model(
        self,
        player_index: int,
        player_id: str,
        estimated_money: float,
        money_confidence: float,
    ) -> OpponentModel:
        """Pure read of memory; calling it twice gives the same model."""
        patterns = self._patterns.get(player_id, [])
        actions = self._actions.get(player_id, [])
        current = tendencies_from(actions, patterns)
        previous = self._profiles.get(player_id)
        if previous is not None:
            tendencies = blend_tendencies(previous, current) if patterns else previous
        else:
            tendencies = current
        return OpponentModel(
            player_index=player_index,
            player_id=player_id,
            estimated_money=estimated_money,
            money_confidence=money_confidence,
            tendencies=tendencies,
            bidding_history=list(patterns),
            risk_tolerance=risk_tolerance_from(patterns, estimated_money),
            predictability=predictability_from(patterns),
        )

    def stats(self) -> Dict[str, int]:
        return {
            "opponent_profiles": len(self._profiles),
            "players_observed": len(self._patterns),
            "bidding_patterns": sum(len(p) for p in self._patterns.values()),
            "actions": sum(len(a) for a in self._actions.values()),
        }

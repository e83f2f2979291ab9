# art_auction_ai/validator.py
"""
Pure checks on decisions and snapshots. Nothing here raises on bad input;
problems come back as errors and warnings on a `ValidationResult`.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

from .auction_turns import active_auction, current_high_bid
from .cards import ARTISTS, AuctionType, NUM_ROUNDS, ROUND_ENDING_CARD_COUNT, TOTAL_CARDS
from .decisions import (
    BidAction,
    BidDecision,
    CardPlayDecision,
    Decision,
    DoubleOfferDecision,
    FixedPriceDecision,
    HiddenBidDecision,
)
from .state import AWAITING_CARD_PLAY, AuctionState, DoubleAuction, FixedPriceAuction, GameState

MAX_DECISION_TIME_MS = 30000
HIGH_FIXED_PRICE = 100


@dataclass
class ValidationResult:
    is_valid: bool = True
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    confidence: float = 1.0
    is_rule_violation: bool = False

    def error(self, message: str, rule_violation: bool = False) -> None:
        self.is_valid = False
        self.errors.append(message)
        if rule_violation:
            self.is_rule_violation = True

    def warn(self, message: str) -> None:
        self.warnings.append(message)


def combine_results(*results: ValidationResult) -> ValidationResult:
    combined = ValidationResult()
    for result in results:
        combined.is_valid = combined.is_valid and result.is_valid
        combined.errors.extend(result.errors)
        combined.warnings.extend(result.warnings)
        combined.confidence = min(combined.confidence, result.confidence)
        combined.is_rule_violation = combined.is_rule_violation or result.is_rule_violation
    return combined


def validate_decision(
    decision: Decision,
    game_state: GameState,
    player_index: int,
    auction: Optional[AuctionState] = None,
) -> ValidationResult:
    result = ValidationResult(confidence=decision.confidence)
    if not 0.0 <= decision.confidence <= 1.0:
        result.error(f"Confidence {decision.confidence} outside [0, 1]")
    if decision.decision_time_ms is not None:
        if decision.decision_time_ms < 0:
            result.warn("Negative decision time")
        elif decision.decision_time_ms > MAX_DECISION_TIME_MS:
            result.warn(f"Decision took {decision.decision_time_ms:.0f} ms")

    if not 0 <= player_index < len(game_state.players):
        result.error(f"No player at index {player_index}", rule_violation=True)
        return result

    auction = auction if auction is not None else game_state.auction
    if isinstance(decision, CardPlayDecision):
        _check_card_play(decision, game_state, player_index, result)
    elif isinstance(decision, BidDecision):
        _check_bid(decision, game_state, player_index, auction, result)
    elif isinstance(decision, HiddenBidDecision):
        _check_hidden_bid(decision, game_state, player_index, result)
    elif isinstance(decision, FixedPriceDecision):
        _check_fixed_price(decision, game_state, player_index, result)
    elif isinstance(decision, DoubleOfferDecision):
        _check_double_offer(decision, game_state, player_index, auction, result)
    else:
        result.error(f"Unknown decision type {type(decision).__name__}")
    return result


def _check_card_play(
    decision: CardPlayDecision, game_state: GameState, player_index: int, result: ValidationResult
) -> None:
    player = game_state.players[player_index]
    if decision.card is None:
        if player.hand:
            result.error("No card chosen although the hand is not empty")
        else:
            result.warn("Hand is empty; nothing to play")
        return

    if all(c.id != decision.card.id for c in player.hand):
        result.error(f"Card {decision.card.id} is not in hand", rule_violation=True)
    round_state = game_state.round
    if round_state.phase != AWAITING_CARD_PLAY or round_state.active_player_index != player_index:
        result.error("Not this player's turn to play a card", rule_violation=True)
    played = round_state.cards_played_per_artist.get(decision.card.artist, 0)
    if played >= ROUND_ENDING_CARD_COUNT - 1:
        result.warn(f"{decision.card.artist.value} already has {played} cards this round")


def _check_bid(
    decision: BidDecision,
    game_state: GameState,
    player_index: int,
    auction: Optional[AuctionState],
    result: ValidationResult,
) -> None:
    money = game_state.players[player_index].money
    action = decision.action
    if action in (BidAction.PASS, BidAction.ACCEPT, BidAction.TAKE_FREE):
        return

    if action == BidAction.BUY:
        inner = active_auction(auction)
        price = inner.price if isinstance(inner, FixedPriceAuction) else decision.amount
        if price is None or price > money:
            result.error(f"Cannot afford price {price} with {money}", rule_violation=True)
        return

    amount = decision.amount
    if amount is None or amount <= 0:
        result.error("Bid amount must be positive")
        return
    if amount > money:
        result.error(f"Bid {amount} exceeds money {money}", rule_violation=True)
    current = current_high_bid(auction)
    if amount <= current:
        result.error(f"Bid {amount} does not beat current bid {current}", rule_violation=True)
    if amount > money * 0.8:
        result.warn(f"Bid {amount} is more than 80% of money")


def _check_hidden_bid(
    decision: HiddenBidDecision, game_state: GameState, player_index: int, result: ValidationResult
) -> None:
    money = game_state.players[player_index].money
    if decision.amount < 0:
        result.error("Hidden bid cannot be negative")
    elif decision.amount > money:
        result.error(f"Hidden bid {decision.amount} exceeds money {money}", rule_violation=True)
    elif decision.amount == 0:
        result.warn("Hidden bid of 0 means not bidding")


def _check_fixed_price(
    decision: FixedPriceDecision, game_state: GameState, player_index: int, result: ValidationResult
) -> None:
    money = game_state.players[player_index].money
    if decision.price <= 0:
        result.error("Fixed price must be positive")
    # A broke auctioneer may still ask the minimum price of 1.
    elif decision.price > max(1, money):
        result.error(f"Fixed price {decision.price} exceeds money {money}", rule_violation=True)
    if decision.price > HIGH_FIXED_PRICE:
        result.warn(f"Fixed price {decision.price} is unusually high")


def _check_double_offer(
    decision: DoubleOfferDecision,
    game_state: GameState,
    player_index: int,
    auction: Optional[AuctionState],
    result: ValidationResult,
) -> None:
    if decision.action == "decline":
        return
    if decision.action != "offer":
        result.error(f"Unknown double offer action {decision.action!r}")
        return
    card = decision.card
    if card is None:
        result.error("Offer without a card")
        return
    hand = game_state.players[player_index].hand
    if all(c.id != card.id for c in hand):
        result.error(f"Card {card.id} is not in hand", rule_violation=True)
    if card.auction_type == AuctionType.DOUBLE:
        result.error("Cannot offer a second double card", rule_violation=True)
    if isinstance(auction, DoubleAuction) and card.artist != auction.double_card.artist:
        result.error("Offered card must match the double card's artist", rule_violation=True)


def validate_game_state(game_state: GameState) -> ValidationResult:
    result = ValidationResult()
    num_players = len(game_state.players)
    if not 3 <= num_players <= 5:
        result.error(f"Unsupported player count {num_players}")
    for player in game_state.players:
        if player.money < 0:
            result.error(f"Player {player.id} has negative money")
    round_state = game_state.round
    if not 1 <= round_state.round_number <= NUM_ROUNDS:
        result.error(f"Round {round_state.round_number} out of range")
    if not 0 <= round_state.current_auctioneer_index < max(1, num_players):
        result.error(f"Auctioneer index {round_state.current_auctioneer_index} out of range")
    for artist in ARTISTS:
        count = round_state.cards_played_per_artist.get(artist, 0)
        if count > ROUND_ENDING_CARD_COUNT:
            result.error(f"{artist.value} has {count} cards this round")
    if game_state.total_cards_played() > TOTAL_CARDS:
        result.error("More cards played than exist")
    return result

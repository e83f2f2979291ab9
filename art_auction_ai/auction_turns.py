# art_auction_ai/auction_turns.py
"""
Turn and phase detection for the five auction protocols.

The engine owns every auction transition; these helpers only answer "whose
decision is needed, and of what kind" for a given snapshot.
"""
from __future__ import annotations

from typing import List, Optional

from .cards import Card
from .decisions import DecisionType
from .state import (
    AUCTION,
    AWAITING_CARD_PLAY,
    AuctionState,
    DoubleAuction,
    FixedPriceAuction,
    GameState,
    HiddenAuction,
    OneOfferAuction,
    OpenAuction,
)


def one_offer_turn_order(auctioneer_index: int, num_players: int) -> List[int]:
    """Clockwise from the auctioneer's left, auctioneer last."""
    return [(auctioneer_index + offset) % num_players for offset in range(1, num_players + 1)]


def active_auction(auction: Optional[AuctionState]) -> Optional[AuctionState]:
    """The auction that currently drives turns (a Double delegates once offered)."""
    if isinstance(auction, DoubleAuction) and auction.second_card is not None:
        return active_auction(auction.embedded_auction)
    return auction


def current_high_bid(auction: Optional[AuctionState]) -> int:
    auction = active_auction(auction)
    if isinstance(auction, (OpenAuction, OneOfferAuction)):
        return auction.current_bid
    if isinstance(auction, FixedPriceAuction):
        return auction.price
    return 0


def is_player_turn(auction: Optional[AuctionState], player_index: int) -> bool:
    if auction is None or not auction.is_active:
        return False

    if isinstance(auction, DoubleAuction):
        if auction.second_card is None:
            return auction.current_auctioneer_index == player_index
        if auction.embedded_auction is None:
            return False
        return is_player_turn(auction.embedded_auction, player_index)

    if isinstance(auction, OpenAuction):
        # Anyone except the current high bidder may act at any time.
        return auction.current_bidder != player_index

    if isinstance(auction, OneOfferAuction):
        if auction.phase == "auctioneer_decision":
            return auction.auctioneer_index == player_index
        if auction.current_turn_index >= len(auction.turn_order):
            return False
        return auction.turn_order[auction.current_turn_index] == player_index

    if isinstance(auction, HiddenAuction):
        return not auction.revealed and player_index not in auction.bids

    if isinstance(auction, FixedPriceAuction):
        if auction.phase == "price_setting":
            return auction.auctioneer_index == player_index
        if auction.sold or player_index in auction.passed_players:
            return False
        if auction.current_turn_index >= len(auction.turn_order):
            return False
        return auction.turn_order[auction.current_turn_index] == player_index

    return False


def current_deciders(auction: Optional[AuctionState], num_players: int) -> List[int]:
    """Every player whose decision the auction is waiting on."""
    return [i for i in range(num_players) if is_player_turn(auction, i)]


def auction_decision_type(
    auction: AuctionState, player_index: int
) -> Optional[DecisionType]:
    if not is_player_turn(auction, player_index):
        return None
    if isinstance(auction, DoubleAuction):
        if auction.second_card is None:
            return DecisionType.DOUBLE_OFFER
        return auction_decision_type(auction.embedded_auction, player_index)
    if isinstance(auction, HiddenAuction):
        return DecisionType.HIDDEN_BID
    if isinstance(auction, FixedPriceAuction):
        if auction.phase == "price_setting":
            return DecisionType.FIXED_PRICE
        return DecisionType.BUY
    return DecisionType.BID


def decision_type_for(game_state: GameState, player_index: int) -> Optional[DecisionType]:
    """The decision the engine needs from `player_index` right now, if any."""
    round_state = game_state.round
    if round_state.phase == AWAITING_CARD_PLAY:
        if round_state.active_player_index == player_index:
            return DecisionType.CARD_PLAY
        return None
    if round_state.phase == AUCTION and round_state.auction is not None:
        return auction_decision_type(round_state.auction, player_index)
    return None


def should_move_to_auctioneer_decision(auction: OneOfferAuction) -> bool:
    return len(auction.completed_turns) >= len(auction.turn_order) - 1


def should_conclude_auction(auction: AuctionState) -> bool:
    if isinstance(auction, DoubleAuction):
        if auction.embedded_auction is None:
            return not auction.is_active
        return should_conclude_auction(auction.embedded_auction)
    if isinstance(auction, OneOfferAuction):
        return auction.phase == "auctioneer_decision"
    if isinstance(auction, FixedPriceAuction):
        return not auction.is_active
    if isinstance(auction, HiddenAuction):
        return auction.revealed
    if isinstance(auction, OpenAuction):
        return auction.pass_count >= len(auction.player_order) - 1
    return False


def turn_position(auction: AuctionState, player_index: int) -> str:
    """first | middle | last | auctioneer, within an ordered auction."""
    auction = active_auction(auction)
    if auction is None:
        return "middle"
    if player_index == auction.auctioneer_index:
        return "auctioneer"
    order = getattr(auction, "turn_order", None) or getattr(auction, "player_order", [])
    bidders = [i for i in order if i != auction.auctioneer_index]
    if not bidders or player_index not in bidders:
        return "middle"
    position = bidders.index(player_index)
    if position == 0:
        return "first"
    if position == len(bidders) - 1:
        return "last"
    return "middle"


def cards_on_offer(auction: Optional[AuctionState]) -> List[Card]:
    """Every card the winner of the current auction receives."""
    if auction is None:
        return []
    if isinstance(auction, DoubleAuction):
        if auction.second_card is None:
            return [auction.double_card]
        return [auction.double_card, auction.second_card]
    return [auction.card]

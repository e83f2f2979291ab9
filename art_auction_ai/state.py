# art_auction_ai/state.py
from __future__ import annotations

import copy
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Set, Union

from .cards import ARTISTS, Artist, AuctionType, Card, NUM_ROUNDS


# Round phases
AWAITING_CARD_PLAY = "awaiting_card_play"
AUCTION = "auction"
ROUND_ENDING = "round_ending"
SELLING_TO_BANK = "selling_to_bank"
ROUND_COMPLETE = "round_complete"


@dataclass
class Painting:
    card: Card
    purchase_price: int
    purchased_round: int

    @property
    def artist(self) -> Artist:
        return self.card.artist


@dataclass
class Player:
    id: str
    name: str
    money: int
    hand: List[Card] = field(default_factory=list)
    purchased_this_round: List[Card] = field(default_factory=list)
    purchases: List[Painting] = field(default_factory=list)
    is_ai: bool = False
    difficulty: Optional[str] = None  # "easy" | "medium" | "hard"


def _empty_artist_values() -> Dict[Artist, List[int]]:
    return {artist: [0] * NUM_ROUNDS for artist in ARTISTS}


def _empty_played_cards() -> Dict[Artist, List[Card]]:
    return {artist: [] for artist in ARTISTS}


@dataclass
class GameBoard:
    # artist_values[artist][round_index] = value tile earned that round
    artist_values: Dict[Artist, List[int]] = field(
        default_factory=_empty_artist_values
    )
    # Cards played on the board, organized by artist
    played_cards: Dict[Artist, List[Card]] = field(
        default_factory=_empty_played_cards
    )


# ---------------------------------------------------------------------------
# Auction variants
# ---------------------------------------------------------------------------


@dataclass
class BidRecord:
    player_index: int
    amount: int
    # position in the auction's history; stable across snapshots
    sequence: int


@dataclass
class OpenAuction:
    card: Card
    auctioneer_index: int
    player_order: List[int]
    current_bid: int = 0
    current_bidder: Optional[int] = None
    is_active: bool = True
    bid_history: List[BidRecord] = field(default_factory=list)
    pass_count: int = 0

    @property
    def type(self) -> AuctionType:
        return AuctionType.OPEN


@dataclass
class OneOfferAuction:
    card: Card
    auctioneer_index: int
    # left of the auctioneer, clockwise, auctioneer last
    turn_order: List[int]
    current_turn_index: int = 0
    current_bid: int = 0
    current_bidder: Optional[int] = None
    is_active: bool = True
    completed_turns: Set[int] = field(default_factory=set)
    phase: str = "bidding"  # "bidding" | "auctioneer_decision"
    bid_history: Dict[int, int] = field(default_factory=dict)

    @property
    def type(self) -> AuctionType:
        return AuctionType.ONE_OFFER


@dataclass
class HiddenAuction:
    card: Card
    auctioneer_index: int
    bids: Dict[int, int] = field(default_factory=dict)
    is_active: bool = True
    revealed: bool = False
    ready_to_reveal: bool = False
    tie_break_order: List[int] = field(default_factory=list)

    @property
    def type(self) -> AuctionType:
        return AuctionType.HIDDEN


@dataclass
class FixedPriceAuction:
    card: Card
    auctioneer_index: int
    turn_order: List[int]
    price: int = 0
    phase: str = "price_setting"  # "price_setting" | "buying"
    current_turn_index: int = 0
    is_active: bool = True
    sold: bool = False
    winner_index: Optional[int] = None
    passed_players: Set[int] = field(default_factory=set)

    @property
    def type(self) -> AuctionType:
        return AuctionType.FIXED_PRICE


@dataclass
class DoubleAuction:
    double_card: Card
    original_auctioneer_index: int
    current_auctioneer_index: int
    turn_order: List[int]
    current_turn_index: int = 0
    second_card: Optional[Card] = None
    offers: Dict[int, Optional[str]] = field(default_factory=dict)
    phase: str = "offering"  # "offering" | "bidding"
    is_active: bool = True
    embedded_auction: Optional["AuctionState"] = None

    @property
    def type(self) -> AuctionType:
        return AuctionType.DOUBLE

    @property
    def card(self) -> Card:
        return self.double_card

    @property
    def auctioneer_index(self) -> int:
        return self.current_auctioneer_index


AuctionState = Union[
    OpenAuction, OneOfferAuction, HiddenAuction, FixedPriceAuction, DoubleAuction
]


# ---------------------------------------------------------------------------
# Round and game
# ---------------------------------------------------------------------------


def _empty_artist_counts() -> Dict[Artist, int]:
    return {artist: 0 for artist in ARTISTS}


@dataclass
class RoundState:
    round_number: int
    current_auctioneer_index: int = 0
    phase: str = AWAITING_CARD_PLAY
    active_player_index: Optional[int] = None
    auction: Optional[AuctionState] = None
    cards_played_per_artist: Dict[Artist, int] = field(
        default_factory=_empty_artist_counts
    )


@dataclass
class GameState:
    """
    Read-only snapshot handed to the AI. The external engine owns every
    mutation; AI code works on `copy()`s when it needs isolation.
    """
    players: List[Player]
    round: RoundState
    board: GameBoard = field(default_factory=GameBoard)
    deck_size: int = 0
    game_phase: str = "playing"  # "setup" | "playing" | "ended"
    event_log: List[Dict[str, object]] = field(default_factory=list)

    @property
    def num_players(self) -> int:
        return len(self.players)

    @property
    def auction(self) -> Optional[AuctionState]:
        if self.round.phase != AUCTION:
            return None
        return self.round.auction

    def copy(self) -> "GameState":
        return copy.deepcopy(self)

    def total_cards_played(self) -> int:
        return sum(len(cards) for cards in self.board.played_cards.values())

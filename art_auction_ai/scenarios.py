# art_auction_ai/scenarios.py
"""
Builders for realistic snapshots: dealt hands, running auctions and past
purchases. Used by the benchmark CLI and the tests.
"""
from __future__ import annotations

import random
from typing import List, Optional, Sequence

from .auction_turns import one_offer_turn_order
from .cards import AuctionType, Card, Deck, NUM_ROUNDS, STARTING_MONEY, check_player_count
from .state import (
    AUCTION,
    AWAITING_CARD_PLAY,
    DoubleAuction,
    FixedPriceAuction,
    GameState,
    HiddenAuction,
    OneOfferAuction,
    OpenAuction,
    Painting,
    Player,
    RoundState,
    AuctionState,
)


def build_game_state(
    num_players: int = 4,
    round_number: int = 1,
    seed: Optional[int] = 0,
    difficulties: Optional[Sequence[Optional[str]]] = None,
    money: Optional[Sequence[int]] = None,
) -> GameState:
    """
    A snapshot at the start of `round_number` with hands dealt from a
    shuffled deck. `difficulties[i]` of None makes seat i human.
    """
    check_player_count(num_players)
    if not 1 <= round_number <= NUM_ROUNDS:
        raise ValueError(f"Invalid round: {round_number}")
    if difficulties is not None and len(difficulties) != num_players:
        raise ValueError("difficulties must have one entry per player")
    if money is not None and len(money) != num_players:
        raise ValueError("money must have one entry per player")

    deck = Deck()
    deck.shuffle(random.Random(seed))
    hands: List[List[Card]] = [[] for _ in range(num_players)]
    for r in range(1, round_number + 1):
        for hand, dealt in zip(hands, deck.deal(num_players, r)):
            hand.extend(dealt)

    players = []
    for i in range(num_players):
        difficulty = difficulties[i] if difficulties is not None else None
        players.append(
            Player(
                id=f"player_{i}",
                name=f"Player {i + 1}",
                money=money[i] if money is not None else STARTING_MONEY,
                hand=hands[i],
                is_ai=difficulty is not None,
                difficulty=difficulty,
            )
        )
    return GameState(
        players=players,
        round=RoundState(
            round_number=round_number,
            current_auctioneer_index=0,
            phase=AWAITING_CARD_PLAY,
            active_player_index=0,
        ),
        deck_size=len(deck.cards),
    )


def new_auction(card: Card, auctioneer_index: int, num_players: int) -> AuctionState:
    order = one_offer_turn_order(auctioneer_index, num_players)
    if card.auction_type == AuctionType.OPEN:
        return OpenAuction(card=card, auctioneer_index=auctioneer_index, player_order=order)
    if card.auction_type == AuctionType.ONE_OFFER:
        return OneOfferAuction(card=card, auctioneer_index=auctioneer_index, turn_order=order)
    if card.auction_type == AuctionType.HIDDEN:
        return HiddenAuction(
            card=card,
            auctioneer_index=auctioneer_index,
            tie_break_order=[auctioneer_index] + order[:-1],
        )
    if card.auction_type == AuctionType.FIXED_PRICE:
        return FixedPriceAuction(
            card=card, auctioneer_index=auctioneer_index, turn_order=order[:-1]
        )
    return DoubleAuction(
        double_card=card,
        original_auctioneer_index=auctioneer_index,
        current_auctioneer_index=auctioneer_index,
        turn_order=order,
    )


def start_auction(
    game_state: GameState, card: Card, auctioneer_index: Optional[int] = None
) -> GameState:
    """
    A copy of `game_state` with `card` played and its auction open.

    The card leaves the auctioneer's hand if it was there.
    """
    state = game_state.copy()
    if auctioneer_index is None:
        auctioneer_index = state.round.current_auctioneer_index
    auctioneer = state.players[auctioneer_index]
    auctioneer.hand = [c for c in auctioneer.hand if c.id != card.id]
    state.board.played_cards[card.artist].append(card)
    state.round.cards_played_per_artist[card.artist] += 1
    state.round.current_auctioneer_index = auctioneer_index
    state.round.active_player_index = None
    state.round.phase = AUCTION
    state.round.auction = new_auction(card, auctioneer_index, state.num_players)
    return state


def offer_second_card(game_state: GameState, card: Card, offerer_index: Optional[int] = None) -> GameState:
    """A copy where the running double auction has received `card`."""
    state = game_state.copy()
    auction = state.round.auction
    if not isinstance(auction, DoubleAuction):
        raise ValueError("No double auction is running")
    if card.artist != auction.double_card.artist or card.auction_type == AuctionType.DOUBLE:
        raise ValueError("Second card must be a non-double card of the same artist")
    offerer = auction.current_auctioneer_index if offerer_index is None else offerer_index
    player = state.players[offerer]
    player.hand = [c for c in player.hand if c.id != card.id]
    state.board.played_cards[card.artist].append(card)
    state.round.cards_played_per_artist[card.artist] += 1
    auction.second_card = card
    auction.current_auctioneer_index = offerer
    auction.offers[offerer] = card.id
    auction.phase = "bidding"
    auction.embedded_auction = new_auction(card, offerer, state.num_players)
    return state


def record_purchase(
    game_state: GameState, buyer_index: int, card: Card, price: int, seller_index: Optional[int] = None
) -> GameState:
    """A copy where `buyer_index` bought `card` for `price`, logged as a public event."""
    state = game_state.copy()
    buyer = state.players[buyer_index]
    buyer.money -= price
    buyer.purchases.append(Painting(card, price, state.round.round_number))
    buyer.purchased_this_round.append(card)
    if seller_index is not None and seller_index != buyer_index:
        state.players[seller_index].money += price
        payee: Optional[int] = seller_index
    else:
        payee = None
    state.event_log.append(
        {"type": "money_paid", "from": buyer_index, "to": payee, "amount": price}
    )
    return state

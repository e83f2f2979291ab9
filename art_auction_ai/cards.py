# art_auction_ai/cards.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional
import enum
import random


class Artist(enum.Enum):
    # Declaration order is board order, which breaks ranking ties.
    MANUEL_CARVALHO = "Manuel Carvalho"
    SIGRID_THALER = "Sigrid Thaler"
    DANIEL_MELIM = "Daniel Melim"
    RAMON_MARTINS = "Ramon Martins"
    RAFAEL_SILVEIRA = "Rafael Silveira"


class AuctionType(enum.Enum):
    OPEN = "open"
    ONE_OFFER = "one_offer"
    HIDDEN = "hidden"
    FIXED_PRICE = "fixed_price"
    DOUBLE = "double"


ARTISTS: List[Artist] = list(Artist)

CARD_DISTRIBUTION: Dict[Artist, int] = {
    Artist.MANUEL_CARVALHO: 12,
    Artist.SIGRID_THALER: 13,
    Artist.DANIEL_MELIM: 14,
    Artist.RAMON_MARTINS: 15,
    Artist.RAFAEL_SILVEIRA: 16,
}

AUCTION_DISTRIBUTION: Dict[Artist, Dict[AuctionType, int]] = {
    Artist.MANUEL_CARVALHO: {
        AuctionType.DOUBLE: 2,
        AuctionType.OPEN: 3,
        AuctionType.ONE_OFFER: 3,
        AuctionType.HIDDEN: 2,
        AuctionType.FIXED_PRICE: 2,
    },
    Artist.SIGRID_THALER: {
        AuctionType.DOUBLE: 2,
        AuctionType.OPEN: 3,
        AuctionType.ONE_OFFER: 3,
        AuctionType.HIDDEN: 3,
        AuctionType.FIXED_PRICE: 2,
    },
    Artist.DANIEL_MELIM: {
        AuctionType.DOUBLE: 2,
        AuctionType.OPEN: 3,
        AuctionType.ONE_OFFER: 4,
        AuctionType.HIDDEN: 3,
        AuctionType.FIXED_PRICE: 2,
    },
    Artist.RAMON_MARTINS: {
        AuctionType.DOUBLE: 2,
        AuctionType.OPEN: 4,
        AuctionType.ONE_OFFER: 4,
        AuctionType.HIDDEN: 3,
        AuctionType.FIXED_PRICE: 2,
    },
    Artist.RAFAEL_SILVEIRA: {
        AuctionType.DOUBLE: 2,
        AuctionType.OPEN: 4,
        AuctionType.ONE_OFFER: 4,
        AuctionType.HIDDEN: 3,
        AuctionType.FIXED_PRICE: 3,
    },
}

TOTAL_CARDS = 70
NUM_ROUNDS = 4
STARTING_MONEY = 100
# A round ends as soon as any artist reaches this many played cards.
ROUND_ENDING_CARD_COUNT = 5
RANK_VALUES = (30, 20, 10)

# Cards dealt at the start of each round, by player count.
CARDS_PER_ROUND: Dict[int, List[int]] = {
    3: [10, 6, 6, 0],
    4: [9, 4, 4, 0],
    5: [8, 3, 3, 0],
}


@dataclass(frozen=True)
class Card:
    """
    A painting card: one artist and the auction type it is sold with.
    """
    id: str
    artist: Artist
    auction_type: AuctionType

    def __str__(self) -> str:
        return f"{self.artist.value} ({self.auction_type.value})"


def card_to_dict(card: Card) -> Dict[str, Any]:
    """Convert a Card to a JSON-serializable dict."""
    return {
        "id": card.id,
        "artist": card.artist.value,
        "auction_type": card.auction_type.value,
    }


def dict_to_card(data: Dict[str, Any]) -> Card:
    """Convert a dict back into a Card."""
    return Card(
        id=str(data["id"]),
        artist=Artist(data["artist"]),
        auction_type=AuctionType(data["auction_type"]),
    )


def check_player_count(num_players: int) -> None:
    if num_players not in CARDS_PER_ROUND:
        raise ValueError(f"Invalid player count: {num_players} (expected 3-5)")


def cards_to_deal(num_players: int, round_number: int) -> int:
    check_player_count(num_players)
    if not 1 <= round_number <= NUM_ROUNDS:
        raise ValueError(f"Invalid round: {round_number}")
    return CARDS_PER_ROUND[num_players][round_number - 1]


class Deck:
    """
    The 70-card deck. Every artist has exactly two Double cards; the rest
    of each artist's cards are spread over the other four auction types.
    """

    def __init__(self) -> None:
        self.cards: List[Card] = []
        counter = 0
        for artist in ARTISTS:
            distribution = AUCTION_DISTRIBUTION[artist]
            if sum(distribution.values()) != CARD_DISTRIBUTION[artist]:
                raise RuntimeError(f"Card count mismatch for {artist.value}")
            for auction_type, count in distribution.items():
                for _ in range(count):
                    self.cards.append(
                        Card(f"card_{counter}", artist, auction_type)
                    )
                    counter += 1

        if len(self.cards) != TOTAL_CARDS:
            raise RuntimeError("Deck must contain exactly 70 cards")

    def shuffle(self, rng: Optional[random.Random] = None) -> None:
        """Shuffle the deck in place. Uses provided RNG if given."""
        if rng is None:
            random.shuffle(self.cards)
        else:
            rng.shuffle(self.cards)

    def deal(self, num_players: int, round_number: int) -> List[List[Card]]:
        """
        Deal the cards for one round and remove them from the deck.

        Returns one hand per player; in the final round nobody is dealt
        new cards.
        """
        per_player = cards_to_deal(num_players, round_number)
        total_needed = num_players * per_player
        if total_needed > len(self.cards):
            raise ValueError(
                f"Not enough cards in deck: need {total_needed}, "
                f"have {len(self.cards)}"
            )

        hands = [
            self.cards[i * per_player:(i + 1) * per_player]
            for i in range(num_players)
        ]
        self.cards = self.cards[total_needed:]
        return hands


def player_to_left(player_index: int, num_players: int) -> int:
    """Index of the next player clockwise."""
    return (player_index + 1) % num_players


def rank_artists(cards_played: Dict[Artist, int]) -> List[Dict[str, Any]]:
    """
    Rank artists by cards played this round.

    Higher counts rank first and board order breaks ties. The top three
    artists with at least one card earn 30/20/10; everyone else earns 0.
    """
    ordered = sorted(
        ARTISTS,
        key=lambda artist: (-cards_played.get(artist, 0), ARTISTS.index(artist)),
    )
    results: List[Dict[str, Any]] = []
    for position, artist in enumerate(ordered):
        count = cards_played.get(artist, 0)
        if position < len(RANK_VALUES) and count > 0:
            results.append(
                {
                    "artist": artist,
                    "card_count": count,
                    "rank": position + 1,
                    "value": RANK_VALUES[position],
                }
            )
        else:
            results.append(
                {"artist": artist, "card_count": count, "rank": None, "value": 0}
            )
    return results

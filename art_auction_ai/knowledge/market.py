# art_auction_ai/knowledge/market.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

from ..cards import (
    ARTISTS,
    Artist,
    AuctionType,
    Card,
    CARD_DISTRIBUTION,
    NUM_ROUNDS,
    TOTAL_CARDS,
)
from ..state import GameState, Player

# Price assumed for an artist nobody has bought yet.
DEFAULT_ARTIST_VALUE = 30.0
# Expected-value bump per card of the artist still to come.
GROWTH_FACTOR = 0.1

_AUCTION_COMPLEXITY = {
    AuctionType.OPEN: 0.7,
    AuctionType.ONE_OFFER: 0.8,
    AuctionType.HIDDEN: 0.9,
    AuctionType.FIXED_PRICE: 0.4,
    AuctionType.DOUBLE: 0.95,
}

_CONFIDENCE_ADJUSTMENT = {
    AuctionType.FIXED_PRICE: 0.1,
    AuctionType.OPEN: 0.0,
    AuctionType.ONE_OFFER: -0.1,
    AuctionType.HIDDEN: -0.2,
    AuctionType.DOUBLE: -0.2,
}


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


@dataclass
class ArtistSales:
    cards_sold: int = 0
    total_sales: int = 0

    @property
    def average_price(self) -> float:
        if self.cards_sold == 0:
            return 0.0
        return self.total_sales / self.cards_sold


@dataclass
class ArtistCompetitiveness:
    artist: Artist
    rank: int
    competition_level: str  # "low" | "medium" | "high"
    expected_final_value: float
    value_confidence: float
    cards_needed_for_value: int
    market_control: float
    cards_sold: int = 0
    average_price: float = 0.0
    remaining_cards: int = 0


@dataclass
class MarketAnalysis:
    market_state: str  # "emerging" | "competitive" | "consolidated"
    artist_competitiveness: Dict[Artist, ArtistCompetitiveness]
    volatility: float
    remaining_cards: Dict[Artist, int]
    total_cards_sold: int = 0

    def for_artist(self, artist: Artist) -> ArtistCompetitiveness:
        return self.artist_competitiveness[artist]


@dataclass
class CardEvaluation:
    card: Card
    base_value: float
    market_potential: float
    auction_complexity: float
    artist_control: float
    risk_level: float
    strategic_value: float
    confidence: float
    extras: Dict[str, float] = field(default_factory=dict)


# ---------------------------------------------------------------------------
# Market helpers
# ---------------------------------------------------------------------------


def collect_sales(players: Iterable[Player]) -> Dict[Artist, ArtistSales]:
    """Realized sales per artist, from every player's (public) purchases."""
    sales = {artist: ArtistSales() for artist in ARTISTS}
    for player in players:
        for painting in player.purchases:
            entry = sales[painting.artist]
            entry.cards_sold += 1
            entry.total_sales += painting.purchase_price
    return sales


def competition_level(cards_sold: int) -> str:
    if cards_sold >= 3:
        return "high"
    if cards_sold >= 2:
        return "medium"
    return "low"


def determine_market_state(sales: Dict[Artist, ArtistSales]) -> str:
    total = sum(entry.cards_sold for entry in sales.values())
    if total <= 2:
        return "emerging"
    if total >= 8:
        return "consolidated"
    return "competitive"


def predict_artist_value(
    sales: ArtistSales, remaining_cards: int
) -> Dict[str, float]:
    """
    Extrapolate an artist's final worth from its average sale price.

    Confidence shrinks as more of the artist's cards are still unresolved.
    """
    base = sales.average_price or DEFAULT_ARTIST_VALUE
    return {
        "expected_final_value": base + remaining_cards * GROWTH_FACTOR,
        "confidence": _clamp(1 - remaining_cards * 0.1, 0.3, 0.9),
    }


def find_opportunities(
    sales: Dict[Artist, ArtistSales], artists: Optional[Iterable[Artist]] = None
) -> Dict[str, List[Artist]]:
    """Artists priced well below (or above) the market-wide average."""
    average = sum(s.average_price for s in sales.values()) / len(sales)
    found: Dict[str, List[Artist]] = {"undervalued": [], "overvalued": []}
    for artist in artists if artists is not None else ARTISTS:
        price = sales[artist].average_price
        if price < average * 0.8:
            found["undervalued"].append(artist)
        elif price > average * 1.2:
            found["overvalued"].append(artist)
    return found


# ---------------------------------------------------------------------------
# Simulator
# ---------------------------------------------------------------------------


class MarketSimulator:
    """
    Reads the board and sale history to rank artists and value cards.

    Shared by the Medium and Hard strategies; Easy only uses it for the
    fallback card filter.
    """

    def analyze_market(self, game_state: GameState) -> MarketAnalysis:
        sales = collect_sales(game_state.players)
        remaining = self.remaining_cards(game_state)
        played_this_round = game_state.round.cards_played_per_artist

        # Highest realized sales first; this round's board count, then board
        # order, break ties.
        ordered = sorted(
            ARTISTS,
            key=lambda a: (
                -sales[a].total_sales,
                -played_this_round.get(a, 0),
                ARTISTS.index(a),
            ),
        )
        round_counts = sorted(
            (played_this_round.get(a, 0) for a in ARTISTS), reverse=True
        )
        third_place = round_counts[2]

        competitiveness: Dict[Artist, ArtistCompetitiveness] = {}
        for rank, artist in enumerate(ordered, start=1):
            played = played_this_round.get(artist, 0)
            prediction = predict_artist_value(sales[artist], remaining[artist])
            needed = 0 if played >= 3 else max(0, third_place - played + 1)
            on_board = len(game_state.board.played_cards.get(artist, []))
            competitiveness[artist] = ArtistCompetitiveness(
                artist=artist,
                rank=rank,
                competition_level=competition_level(sales[artist].cards_sold),
                expected_final_value=prediction["expected_final_value"],
                value_confidence=prediction["confidence"],
                cards_needed_for_value=needed,
                market_control=on_board / max(5, TOTAL_CARDS / len(ARTISTS)),
                cards_sold=sales[artist].cards_sold,
                average_price=sales[artist].average_price,
                remaining_cards=remaining[artist],
            )

        return MarketAnalysis(
            market_state=determine_market_state(sales),
            artist_competitiveness=competitiveness,
            volatility=self.volatility(game_state),
            remaining_cards=remaining,
            total_cards_sold=sum(s.cards_sold for s in sales.values()),
        )

    def remaining_cards(self, game_state: GameState) -> Dict[Artist, int]:
        return {
            artist: max(
                0,
                CARD_DISTRIBUTION[artist]
                - len(game_state.board.played_cards.get(artist, [])),
            )
            for artist in ARTISTS
        }

    def volatility(self, game_state: GameState) -> float:
        counts = game_state.round.cards_played_per_artist
        played = game_state.total_cards_played()
        early_game = (TOTAL_CARDS - played) / TOTAL_CARDS
        # A round close to ending is much less volatile.
        stability = 0.3 if any(c >= 4 for c in counts.values()) else 1.0
        return min(1.0, early_game * stability)

    def evaluate_card(
        self,
        card: Card,
        game_state: GameState,
        player_index: int,
        analysis: Optional[MarketAnalysis] = None,
    ) -> CardEvaluation:
        if analysis is None:
            analysis = self.analyze_market(game_state)
        comp = analysis.for_artist(card.artist)
        round_number = game_state.round.round_number

        base_value = comp.expected_final_value
        market_potential = self._market_potential(
            analysis.remaining_cards[card.artist], round_number
        )
        complexity = min(
            1.0, _AUCTION_COMPLEXITY[card.auction_type] * (1 + analysis.volatility)
        )
        control = self.artist_control(card.artist, game_state.players[player_index])
        risk = self._card_risk(card, analysis)
        strategic = _clamp(
            (base_value / 120) * 0.4
            + market_potential * 0.3
            + control * 0.2
            + (1 - risk) * -0.1,
            0.0,
            1.0,
        )
        confidence = 0.8 + (round_number - 1) * 0.05
        confidence -= analysis.volatility * 0.2
        confidence += _CONFIDENCE_ADJUSTMENT[card.auction_type]

        return CardEvaluation(
            card=card,
            base_value=base_value,
            market_potential=market_potential,
            auction_complexity=complexity,
            artist_control=control,
            risk_level=risk,
            strategic_value=strategic,
            confidence=_clamp(confidence, 0.2, 1.0),
        )

    def evaluate_hand(
        self, game_state: GameState, player_index: int, analysis: Optional[MarketAnalysis] = None
    ) -> List[CardEvaluation]:
        if analysis is None:
            analysis = self.analyze_market(game_state)
        hand = game_state.players[player_index].hand
        return [self.evaluate_card(c, game_state, player_index, analysis) for c in hand]

    @staticmethod
    def artist_control(artist: Artist, player: Player) -> float:
        owned = sum(1 for p in player.purchases if p.artist == artist)
        in_hand = sum(1 for c in player.hand if c.artist == artist)
        return min(1.0, (owned + in_hand) / 5)

    @staticmethod
    def _market_potential(remaining: int, round_number: int) -> float:
        if remaining == 0:
            return 0.0
        return min(1.0, (remaining / 15) * ((NUM_ROUNDS - round_number) / NUM_ROUNDS))

    @staticmethod
    def _card_risk(card: Card, analysis: MarketAnalysis) -> float:
        risk = 0.5
        if analysis.for_artist(card.artist).rank > 3:
            risk += 0.3
        if analysis.remaining_cards[card.artist] < 3:
            risk += 0.2
        risk += analysis.volatility * 0.2
        return min(1.0, risk)

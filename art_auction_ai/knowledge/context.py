# art_auction_ai/knowledge/context.py
from __future__ import annotations

import random
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from ..cards import Card, NUM_ROUNDS
from ..state import AuctionState, GameState, Player
from ..time_slicer import TimeSliceController
from .analyzer import AIMemory, GameStateAnalyzer, VisibleGameState
from .market import CardEvaluation, MarketAnalysis, MarketSimulator
from .opponents import OpponentMemory, OpponentModel


@dataclass
class DecisionContext:
    """Everything a strategy may use for one decision. Built per request."""
    player_index: int
    visible: VisibleGameState
    market: MarketAnalysis
    card_evaluations: List[CardEvaluation]
    opponent_models: Dict[int, OpponentModel]
    controller: TimeSliceController
    memory: Optional[AIMemory] = None
    auction: Optional[AuctionState] = None
    time_pressure: float = 0.5
    importance: float = 0.5
    extras: Dict[str, object] = field(default_factory=dict)

    @property
    def game_state(self) -> GameState:
        return self.visible.game_state

    @property
    def player(self) -> Player:
        return self.game_state.players[self.player_index]

    @property
    def money(self) -> int:
        return self.player.money

    @property
    def hand(self) -> List[Card]:
        return self.player.hand

    @property
    def round_number(self) -> int:
        return self.game_state.round.round_number

    def evaluation_for(self, card: Card) -> Optional[CardEvaluation]:
        for evaluation in self.card_evaluations:
            if evaluation.card.id == card.id:
                return evaluation
        return None


def time_pressure(round_number: int) -> float:
    return min(1.0, round_number / NUM_ROUNDS + 0.2)


def decision_importance(money: int, round_number: int) -> float:
    importance = 0.5
    if money < 30:
        importance += 0.3
    elif money < 50:
        importance += 0.1
    importance += 0.1 * max(0, round_number - 1)
    return min(1.0, importance)


def build_context(
    game_state: GameState,
    player_index: int,
    analyzer: GameStateAnalyzer,
    controller: TimeSliceController,
    *,
    simulator: Optional[MarketSimulator] = None,
    opponent_memory: Optional[OpponentMemory] = None,
    rng: Optional[random.Random] = None,
) -> DecisionContext:
    """
    Filter `game_state` for `player_index` and attach market analysis, hand
    evaluations and opponent models. Never mutates `game_state`.
    """
    simulator = simulator or MarketSimulator()
    visible = analyzer.visible_state(game_state, rng)
    filtered = visible.game_state
    market = simulator.analyze_market(filtered)
    money = filtered.players[player_index].money
    round_number = filtered.round.round_number
    return DecisionContext(
        player_index=player_index,
        visible=visible,
        market=market,
        card_evaluations=simulator.evaluate_hand(filtered, player_index, market),
        opponent_models=analyzer.filter.build_opponent_models(visible, opponent_memory),
        controller=controller,
        memory=analyzer.memory if analyzer.difficulty == "hard" else None,
        auction=filtered.auction,
        time_pressure=time_pressure(round_number),
        importance=decision_importance(money, round_number),
    )

# art_auction_ai/knowledge/__init__.py
from .analyzer import AIMemory, GameStateAnalyzer, PlayerInfo, VisibleGameState
from .context import DecisionContext, build_context, decision_importance, time_pressure
from .information_filter import InformationFilter
from .market import (
    ArtistCompetitiveness,
    CardEvaluation,
    MarketAnalysis,
    MarketSimulator,
    find_opportunities,
    predict_artist_value,
)
from .opponents import OpponentMemory, OpponentModel, PlayerTendencies

__all__ = [
    "AIMemory",
    "ArtistCompetitiveness",
    "CardEvaluation",
    "DecisionContext",
    "GameStateAnalyzer",
    "InformationFilter",
    "MarketAnalysis",
    "MarketSimulator",
    "OpponentMemory",
    "OpponentModel",
    "PlayerInfo",
    "PlayerTendencies",
    "VisibleGameState",
    "build_context",
    "decision_importance",
    "find_opportunities",
    "predict_artist_value",
    "time_pressure",
]

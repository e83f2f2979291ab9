# art_auction_ai/decisions.py
from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from typing import Any, ClassVar, Dict, Optional, Union
import enum

from .cards import Card, card_to_dict


class DecisionType(enum.Enum):
    CARD_PLAY = "card_play"
    BID = "bid"
    HIDDEN_BID = "hidden_bid"
    FIXED_PRICE = "fixed_price"
    DOUBLE_OFFER = "double_offer"
    # Answered with a bid-typed decision whose action is buy or pass.
    BUY = "buy"


class BidAction(enum.Enum):
    BID = "bid"
    PASS = "pass"
    BUY = "buy"
    ACCEPT = "accept"
    OUTBID = "outbid"
    TAKE_FREE = "take_free"


@dataclass(frozen=True)
class CardPlayDecision:
    card: Optional[Card]
    confidence: float
    reasoning: str = ""
    decision_time_ms: Optional[float] = None
    action: str = "play_card"

    type: ClassVar[str] = "card_play"


@dataclass(frozen=True)
class BidDecision:
    action: BidAction
    confidence: float
    amount: Optional[int] = None
    max_bid: Optional[int] = None
    reasoning: str = ""
    decision_time_ms: Optional[float] = None

    type: ClassVar[str] = "bid"


@dataclass(frozen=True)
class HiddenBidDecision:
    # 0 means not bidding
    amount: int
    confidence: float
    bluff_factor: float = 0.0
    reasoning: str = ""
    decision_time_ms: Optional[float] = None

    type: ClassVar[str] = "hidden_bid"


@dataclass(frozen=True)
class FixedPriceDecision:
    price: int
    confidence: float
    price_reasoning: str = "optimal"  # aggressive | conservative | optimal | desperate
    reasoning: str = ""
    decision_time_ms: Optional[float] = None

    type: ClassVar[str] = "fixed_price"


@dataclass(frozen=True)
class DoubleOfferDecision:
    action: str  # "offer" | "decline"
    confidence: float
    card: Optional[Card] = None
    strategy: Optional[str] = None
    reasoning: str = ""
    decision_time_ms: Optional[float] = None

    type: ClassVar[str] = "double_offer"


Decision = Union[
    CardPlayDecision,
    BidDecision,
    HiddenBidDecision,
    FixedPriceDecision,
    DoubleOfferDecision,
]


def pass_bid(reasoning: str = "", confidence: float = 0.5) -> BidDecision:
    return BidDecision(
        action=BidAction.PASS, confidence=confidence, reasoning=reasoning
    )


def with_timing(decision: Decision, elapsed_ms: float) -> Decision:
    """Return a copy of `decision` stamped with how long it took."""
    return dataclasses.replace(decision, decision_time_ms=elapsed_ms)


def decision_to_dict(decision: Decision) -> Dict[str, Any]:
    """Flatten a decision into a JSON-serializable dict."""
    data: Dict[str, Any] = {"type": decision.type}
    for f in dataclasses.fields(decision):
        value = getattr(decision, f.name)
        if isinstance(value, Card):
            value = card_to_dict(value)
        elif isinstance(value, enum.Enum):
            value = value.value
        data[f.name] = value
    return data

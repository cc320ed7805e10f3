"""
Data Model
==========
Platform-agnostic records passed between the pipeline stages.

Internal records are dataclasses; `to_dict()` renders the camelCase shape
sent to clients and to the AI prompts.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel


DEFAULT_YES_PRICE = 50.0


class Platform(str, Enum):
    POLYMARKET = "polymarket"
    KALSHI = "kalshi"

    @property
    def opposite(self) -> "Platform":
        return Platform.KALSHI if self is Platform.POLYMARKET else Platform.POLYMARKET


class ArbitrageRequest(BaseModel):
    """Inbound request body. Fields are optional so missing ones map to 400, not 422."""
    url: Optional[str] = None
    model: Optional[str] = None


@dataclass(frozen=True)
class SimplifiedMarket:
    """One tradable outcome: title plus yes-price on a 0-100 scale."""
    title: str
    yes_price: float = DEFAULT_YES_PRICE
    price_known: bool = True  # False when the 50 default was applied

    def to_dict(self) -> Dict[str, Any]:
        return {
            "title": self.title,
            "yesPrice": self.yes_price,
            "priceKnown": self.price_known,
        }


@dataclass(frozen=True)
class SourceEventData:
    """The event being queried, as fetched by slug/ticker."""
    event_title: str
    markets: List[SimplifiedMarket]
    source: Platform
    identifier: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "eventTitle": self.event_title,
            "markets": [m.to_dict() for m in self.markets],
        }


@dataclass
class ArbitrageMarketData:
    """Comparison-ready projection of one side of a potential arbitrage."""
    source: Platform
    name: str
    identifier: str
    yes_price: float
    no_price: float
    url: str = ""
    raw_data: Optional[Dict[str, Any]] = None

    @classmethod
    def from_yes_price(
        cls,
        source: Platform,
        name: str,
        identifier: str,
        yes_price: float,
        url: str = "",
        raw_data: Optional[Dict[str, Any]] = None,
    ) -> "ArbitrageMarketData":
        """Build a projection whose no-price is the complement of yes_price."""
        return cls(
            source=source,
            name=name,
            identifier=identifier,
            yes_price=yes_price,
            no_price=100 - yes_price,
            url=url,
            raw_data=raw_data,
        )

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "source": self.source.value,
            "name": self.name,
            "identifier": self.identifier,
            "yesPrice": self.yes_price,
            "noPrice": self.no_price,
            "url": self.url,
        }
        if self.raw_data is not None:
            data["rawData"] = self.raw_data
        return data


@dataclass
class ArbitrageAnalysis:
    """Final judgment on whether two markets match and whether they can be arbitraged."""
    is_same_market: bool
    same_market_confidence: float
    market_comparison_reasoning: str
    arbitrage: Dict[str, Any]
    summary: str
    risks: List[str] = field(default_factory=list)
    recommendation: str = ""
    polymarket_data: Optional[ArbitrageMarketData] = None
    kalshi_data: Optional[ArbitrageMarketData] = None

    def set_platform_data(self, data: ArbitrageMarketData) -> None:
        if data.source is Platform.POLYMARKET:
            self.polymarket_data = data
        else:
            self.kalshi_data = data

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "isSameMarket": self.is_same_market,
            "sameMarketConfidence": self.same_market_confidence,
            "marketComparisonReasoning": self.market_comparison_reasoning,
        }
        if self.polymarket_data is not None:
            data["polymarketData"] = self.polymarket_data.to_dict()
        if self.kalshi_data is not None:
            data["kalshiData"] = self.kalshi_data.to_dict()
        data.update({
            "arbitrage": self.arbitrage,
            "summary": self.summary,
            "risks": self.risks,
            "recommendation": self.recommendation,
        })
        return data

"""
Arbitrage Analysis Module (AI-Powered)
======================================
Asks the model whether any search result is the same market as the source
event and whether the price gap is an arbitrage.

The model is trusted for judgment (sameness, confidence, verdict, risks) but
never for restating the source market: that slot is always built locally.
"""

import json
import logging
import math
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from .ai_client import BackendRouter, build_router
from .config import Settings, get_settings
from .errors import InvalidAgentResponseError
from .models import (
    DEFAULT_YES_PRICE,
    ArbitrageAnalysis,
    ArbitrageMarketData,
    Platform,
    SimplifiedMarket,
    SourceEventData,
)
from .prompts import arbitrage_analysis_prompt


logger = logging.getLogger(__name__)


@dataclass
class ArbitrageJudgment:
    """Analysis plus the model metadata reported by the backend."""
    analysis: ArbitrageAnalysis
    model_used: str
    tokens_used: Optional[int] = None


def build_source_market(source_event: SourceEventData, url: str = "") -> ArbitrageMarketData:
    """
    Project the source event onto its first market's price. The full event
    (title and every market) rides along as raw data.
    """
    yes_price = source_event.markets[0].yes_price if source_event.markets else DEFAULT_YES_PRICE
    return ArbitrageMarketData.from_yes_price(
        source=source_event.source,
        name=source_event.event_title,
        identifier=source_event.identifier or source_event.event_title,
        yes_price=yes_price,
        url=url,
        raw_data=source_event.to_dict(),
    )


def _matched_market(value: Any, search_platform: Platform) -> Optional[ArbitrageMarketData]:
    """Project the model's matchedMarket field, recomputing noPrice from yesPrice."""
    if not isinstance(value, dict):
        return None

    try:
        yes_price = float(value.get("yesPrice", DEFAULT_YES_PRICE))
    except (TypeError, ValueError):
        yes_price = DEFAULT_YES_PRICE
    if not math.isfinite(yes_price):
        yes_price = DEFAULT_YES_PRICE

    name = str(value.get("name") or "")
    return ArbitrageMarketData.from_yes_price(
        source=search_platform,
        name=name,
        identifier=str(value.get("identifier") or name),
        yes_price=yes_price,
        url=str(value.get("url") or ""),
    )


def _reject_constant(name: str) -> Any:
    raise InvalidAgentResponseError(f"AI analysis response contains non-finite number: {name}")


def parse_analysis_response(text: str) -> Dict[str, Any]:
    try:
        parsed = json.loads(text, parse_constant=_reject_constant)
    except json.JSONDecodeError as e:
        raise InvalidAgentResponseError(f"Failed to parse AI analysis response: {e}") from e
    if not isinstance(parsed, dict):
        raise InvalidAgentResponseError("AI analysis response is not a JSON object")
    return parsed


def analyze_arbitrage(
    source_event: SourceEventData,
    search_results: List[SimplifiedMarket],
    search_platform: Platform,
    model: str,
    router: Optional[BackendRouter] = None,
    settings: Optional[Settings] = None,
    source_url: str = ""
) -> ArbitrageJudgment:
    """
    Run the structured arbitrage analysis.

    Args:
        source_event: Event fetched from the source platform
        search_results: Candidate markets from the other platform
        search_platform: Platform the candidates came from
        model: Model identifier requested by the caller
        source_url: Original URL, echoed in the source projection

    Returns:
        ArbitrageJudgment with the analysis, the model the backend reported
        and the token count when available

    Raises:
        InvalidAgentResponseError: Model output is not a JSON object
    """
    settings = settings or get_settings()
    router = router or build_router(settings)

    source_market = build_source_market(source_event, url=source_url)
    system_prompt, user_prompt = arbitrage_analysis_prompt(source_market, search_results, search_platform)

    backend = router.select(model)
    logger.debug(f"   Arbitrage analysis via {backend.name} ({model}), {len(search_results)} candidates")

    response = backend.respond(
        user_prompt,
        system_prompt,
        "json_object",
        model,
        settings.analysis_max_tokens,
    )
    parsed = parse_analysis_response(response.text("\n"))

    analysis = ArbitrageAnalysis(
        is_same_market=parsed.get("isSameMarket"),
        same_market_confidence=parsed.get("sameMarketConfidence"),
        market_comparison_reasoning=parsed.get("marketComparisonReasoning"),
        arbitrage=parsed.get("arbitrage"),
        summary=parsed.get("summary"),
        risks=parsed.get("risks"),
        recommendation=parsed.get("recommendation"),
    )
    matched = _matched_market(parsed.get("matchedMarket"), search_platform)
    if matched is not None:
        analysis.set_platform_data(matched)
    analysis.set_platform_data(source_market)

    return ArbitrageJudgment(
        analysis=analysis,
        model_used=response.model,
        tokens_used=response.total_tokens,
    )

"""
Prompt Templates
================
System/user prompt pairs for the two AI stages.
"""

import json
from typing import List, Tuple

from .models import ArbitrageMarketData, Platform, SimplifiedMarket


PLATFORM_NAMES = {
    Platform.POLYMARKET: "Polymarket",
    Platform.KALSHI: "Kalshi",
}


SEARCH_QUERY_SYSTEM_PROMPT = """You write search queries for prediction market search engines.

Reply with ONLY a 1-2 word search query. No quotes, no punctuation, no explanation.
Pick the most distinctive subject of the event (a person, team, asset or institution),
not generic words like "election", "price" or "win".
"""

SEARCH_QUERY_USER_PROMPT = """Event title on {source_name}: {title}

Write the 1-2 word query that would find the same event on {target_name}."""


ARBITRAGE_ANALYSIS_SYSTEM_PROMPT = """You are a prediction market analyst looking for cross-platform arbitrage
between Polymarket and Kalshi.

## Task
1. Decide whether any of the candidate markets from {search_name} resolves on the SAME
   outcome as the source market from {source_name}. Resolution criteria, dates and
   thresholds must match; similar topics are not enough.
2. If a match exists, compare prices. Prices are on a 0-100 scale (cents per $1 contract).
   Buying YES on one platform and NO on the other costs yesPrice_A + (100 - yesPrice_B).
   An arbitrage exists when that total is below 100 on either combination.
3. Markets with "priceKnown": false have no quote; their yesPrice of 50 is a placeholder
   and must not be treated as real odds.

## Response (JSON object only, no markdown)
{{
    "isSameMarket": <bool>,
    "sameMarketConfidence": <0-100>,
    "marketComparisonReasoning": "<why the markets are or are not the same>",
    "matchedMarket": {{
        "source": "{search_platform}",
        "name": "<matched market title>",
        "identifier": "<matched market title>",
        "yesPrice": <0-100>,
        "noPrice": <0-100>,
        "url": ""
    }} or null,
    "arbitrage": {{
        "hasArbitrage": <bool>,
        "strategy": "<which side to buy on which platform>",
        "totalCost": <number>,
        "guaranteedPayout": 100,
        "profitPercent": <number>
    }},
    "summary": "<1-2 sentences>",
    "risks": ["<risk>", ...],
    "recommendation": "<what the trader should do>"
}}
"""

ARBITRAGE_ANALYSIS_USER_PROMPT = """## Source Market ({source_name})
{source_json}

## Candidate Markets ({search_name}, search results)
{candidates_json}
"""


def search_query_prompt(
    title: str,
    source_platform: Platform,
    target_platform: Platform
) -> Tuple[str, str]:
    """Returns (system_prompt, user_prompt) for the search query stage."""
    user_prompt = SEARCH_QUERY_USER_PROMPT.format(
        source_name=PLATFORM_NAMES[source_platform],
        target_name=PLATFORM_NAMES[target_platform],
        title=title,
    )
    return SEARCH_QUERY_SYSTEM_PROMPT, user_prompt


def arbitrage_analysis_prompt(
    source_market: ArbitrageMarketData,
    search_results: List[SimplifiedMarket],
    search_platform: Platform
) -> Tuple[str, str]:
    """Returns (system_prompt, user_prompt) for the arbitrage analysis stage."""
    source_name = PLATFORM_NAMES[source_market.source]
    search_name = PLATFORM_NAMES[search_platform]

    system_prompt = ARBITRAGE_ANALYSIS_SYSTEM_PROMPT.format(
        source_name=source_name,
        search_name=search_name,
        search_platform=search_platform.value,
    )
    user_prompt = ARBITRAGE_ANALYSIS_USER_PROMPT.format(
        source_name=source_name,
        search_name=search_name,
        source_json=json.dumps(source_market.to_dict(), indent=2),
        candidates_json=json.dumps([m.to_dict() for m in search_results], indent=2),
    )
    return system_prompt, user_prompt

import json

import pytest

from arbitrage_finder.arbitrage_analysis import analyze_arbitrage, build_source_market
from arbitrage_finder.errors import InvalidAgentResponseError
from arbitrage_finder.models import Platform, SimplifiedMarket, SourceEventData

from .conftest import analysis_json


@pytest.fixture
def source_event():
    return SourceEventData(
        event_title="Fed decision in March",
        markets=[
            SimplifiedMarket("Fed cuts 25bps?", 37.0),
            SimplifiedMarket("No change?", 60.0),
        ],
        source=Platform.POLYMARKET,
        identifier="fed-decision-in-march",
    )


@pytest.fixture
def candidates():
    return [SimplifiedMarket("Fed cuts rates in March", 30.0), SimplifiedMarket("Fed hikes", 2.0)]


def test_source_projection(source_event):
    market = build_source_market(source_event, url="https://polymarket.com/event/fed-decision-in-march")
    assert market.yes_price == 37.0
    assert market.no_price == 63.0
    assert market.yes_price + market.no_price == 100
    assert market.identifier == "fed-decision-in-march"
    assert market.raw_data["eventTitle"] == "Fed decision in March"
    assert len(market.raw_data["markets"]) == 2


def test_source_projection_without_markets_defaults_to_50():
    event = SourceEventData("Empty", [], Platform.KALSHI, "KXEMPTY")
    market = build_source_market(event)
    assert market.yes_price == 50
    assert market.no_price == 50


def test_analysis_builds_both_slots(router, settings, openai_backend, source_event, candidates):
    openai_backend.replies = [analysis_json()]
    openai_backend.model = "gpt-4.1-2025-04-14"
    openai_backend.tokens = 1234

    judgment = analyze_arbitrage(
        source_event, candidates, Platform.KALSHI, "gpt-4.1",
        router=router, settings=settings, source_url="https://polymarket.com/event/fed-decision-in-march",
    )

    analysis = judgment.analysis
    assert judgment.model_used == "gpt-4.1-2025-04-14"
    assert judgment.tokens_used == 1234
    assert analysis.is_same_market is True
    assert analysis.same_market_confidence == 92
    assert analysis.arbitrage == {"hasArbitrage": True, "profitPercent": 5.2}
    assert analysis.risks == ["Resolution wording differs slightly"]
    assert analysis.polymarket_data.yes_price == 37.0
    assert analysis.polymarket_data.url == "https://polymarket.com/event/fed-decision-in-march"
    assert analysis.kalshi_data.source is Platform.KALSHI
    assert analysis.kalshi_data.yes_price == 30
    assert analysis.kalshi_data.no_price == 70

    call = openai_backend.calls[0]
    assert call["output_mode"] == "json_object"
    assert call["max_tokens"] == settings.analysis_max_tokens
    assert "Fed cuts rates in March" in call["user_prompt"]


def test_source_slot_ignores_model_echo(router, settings, grok_backend, candidates):
    kalshi_event = SourceEventData(
        "Fed in March", [SimplifiedMarket("Cut?", 42.0)], Platform.KALSHI, "KXFED-26MAR",
    )
    grok_backend.replies = [analysis_json(
        kalshiData={"source": "kalshi", "name": "wrong", "yesPrice": 99, "noPrice": 1},
        matchedMarket={"name": "Fed cut", "yesPrice": "35.5"},
    )]

    analysis = analyze_arbitrage(
        kalshi_event, candidates, Platform.POLYMARKET, "grok-4",
        router=router, settings=settings,
    ).analysis

    assert analysis.kalshi_data.name == "Fed in March"
    assert analysis.kalshi_data.yes_price == 42.0
    assert analysis.polymarket_data.yes_price == 35.5
    assert analysis.polymarket_data.no_price == 64.5
    assert "kalshiData" in analysis.to_dict()


def test_missing_matched_market_leaves_slot_unset(router, settings, openai_backend, source_event, candidates):
    openai_backend.replies = [analysis_json(isSameMarket=False, matchedMarket=None)]

    analysis = analyze_arbitrage(
        source_event, candidates, Platform.KALSHI, "gpt-5.1",
        router=router, settings=settings,
    ).analysis

    assert analysis.kalshi_data is None
    assert "kalshiData" not in analysis.to_dict()
    assert analysis.polymarket_data is not None


@pytest.mark.parametrize("reply", [
    "not json at all",
    "```json\n{}\n```",
    json.dumps([1, 2]),
    analysis_json(sameMarketConfidence=float("nan")),
    analysis_json(arbitrage={"hasArbitrage": True, "profitPercent": float("inf")}),
])
def test_unparsable_response_is_rejected(router, settings, openai_backend, source_event, candidates, reply):
    openai_backend.replies = [reply]
    with pytest.raises(InvalidAgentResponseError):
        analyze_arbitrage(
            source_event, candidates, Platform.KALSHI, "gpt-4.1",
            router=router, settings=settings,
        )


@pytest.mark.parametrize("yes_price", ["nan", "Infinity", "-inf"])
def test_non_finite_matched_price_defaults_to_50(router, settings, openai_backend, source_event, candidates, yes_price):
    matched = {"name": "Fed cuts rates in March", "identifier": "KXFED", "yesPrice": yes_price}
    openai_backend.replies = [analysis_json(matchedMarket=matched)]

    analysis = analyze_arbitrage(
        source_event, candidates, Platform.KALSHI, "gpt-4.1",
        router=router, settings=settings,
    ).analysis

    assert analysis.kalshi_data.yes_price == 50
    assert analysis.kalshi_data.no_price == 50
    json.dumps(analysis.to_dict(), allow_nan=False)

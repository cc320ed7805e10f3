"""
Market Data Gateway
===================
Fetches events from Polymarket (Gamma API) and Kalshi (via DFlow) and
normalizes them to SimplifiedMarket records on a 0-100 price scale.

Upstream failures never escape this module: a failed lookup returns None
and a failed search returns an empty list.
"""

import json
import logging
import math
from typing import Any, Dict, List, Optional

import requests

from .config import Settings, get_settings
from .models import DEFAULT_YES_PRICE, Platform, SimplifiedMarket, SourceEventData


logger = logging.getLogger(__name__)


class MalformedPayloadError(ValueError):
    """Upstream returned JSON with an unexpected shape."""
    pass


def _round_price(value: float) -> float:
    return round(value, 2)


def _to_float(value: Any) -> Optional[float]:
    if value is None or value == "":
        return None
    try:
        result = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(result):
        return None
    return result


def _unknown_price(title: str) -> SimplifiedMarket:
    return SimplifiedMarket(title=title, yes_price=DEFAULT_YES_PRICE, price_known=False)


def _market_list(container: Dict[str, Any]) -> List[Dict[str, Any]]:
    markets = container.get("markets") or []
    if not isinstance(markets, list):
        raise MalformedPayloadError("'markets' is not a list")
    return [m for m in markets if isinstance(m, dict)]


# ---------------------------------------------------------------------------
# Normalization
# ---------------------------------------------------------------------------

def normalize_polymarket_market(market: Dict[str, Any]) -> Optional[SimplifiedMarket]:
    """
    Polymarket market -> SimplifiedMarket.

    outcomePrices is a JSON-encoded array of decimal strings (sometimes an
    actual list); the first entry is the YES probability.
    """
    title = market.get("question") or market.get("title") or ""
    if not title:
        return None

    prices = market.get("outcomePrices")
    if isinstance(prices, str):
        try:
            prices = json.loads(prices)
        except json.JSONDecodeError:
            return _unknown_price(title)

    if not isinstance(prices, list) or not prices:
        return _unknown_price(title)

    yes = _to_float(prices[0])
    if yes is None:
        return _unknown_price(title)
    return SimplifiedMarket(title=title, yes_price=_round_price(yes * 100))


def normalize_kalshi_event_market(market: Dict[str, Any]) -> Optional[SimplifiedMarket]:
    """
    Kalshi market from the event endpoint -> SimplifiedMarket.

    Prices are in cents. Uses last_price, else the yes bid/ask mid, else
    whichever side is quoted.
    """
    title = market.get("title") or ""
    if not title:
        return None

    last_price = _to_float(market.get("last_price"))
    if last_price:
        return SimplifiedMarket(title=title, yes_price=_round_price(last_price))

    bid = _to_float(market.get("yes_bid"))
    ask = _to_float(market.get("yes_ask"))
    if bid is not None and ask is not None:
        return SimplifiedMarket(title=title, yes_price=_round_price((bid + ask) / 2))
    if ask is not None:
        return SimplifiedMarket(title=title, yes_price=_round_price(ask))
    if bid is not None:
        return SimplifiedMarket(title=title, yes_price=_round_price(bid))
    return _unknown_price(title)


def _kalshi_decimal_to_cents(value: float) -> float:
    # Search quotes arrive as dollar strings ("0.4400"); cents are passed through.
    return value * 100 if value <= 1.0 else value


def normalize_kalshi_search_market(market: Dict[str, Any]) -> Optional[SimplifiedMarket]:
    """
    Kalshi market from the search endpoint -> SimplifiedMarket.

    yesAsk/yesBid are decimal strings; the mid is used when both are present.
    """
    title = market.get("title") or ""
    if not title:
        return None

    ask = _to_float(market.get("yesAsk"))
    bid = _to_float(market.get("yesBid"))
    if ask is not None and bid is not None:
        price = (ask + bid) / 2
    elif ask is not None:
        price = ask
    elif bid is not None:
        price = bid
    else:
        return _unknown_price(title)
    return SimplifiedMarket(title=title, yes_price=_round_price(_kalshi_decimal_to_cents(price)))


def normalize_polymarket_event(event: Dict[str, Any], slug: str) -> SourceEventData:
    if not isinstance(event, dict):
        raise MalformedPayloadError("Polymarket event is not an object")

    markets = []
    for market in _market_list(event):
        simplified = normalize_polymarket_market(market)
        if simplified is not None:
            markets.append(simplified)

    return SourceEventData(
        event_title=event.get("title") or slug.replace("-", " "),
        markets=markets,
        source=Platform.POLYMARKET,
        identifier=slug,
    )


def normalize_kalshi_event(event: Dict[str, Any], ticker: str) -> SourceEventData:
    if not isinstance(event, dict):
        raise MalformedPayloadError("Kalshi event is not an object")

    markets = []
    for market in _market_list(event):
        simplified = normalize_kalshi_event_market(market)
        if simplified is not None:
            markets.append(simplified)

    return SourceEventData(
        event_title=event.get("title") or ticker,
        markets=markets,
        source=Platform.KALSHI,
        identifier=ticker,
    )


def flatten_polymarket_search(events: Any) -> List[SimplifiedMarket]:
    if not isinstance(events, list):
        raise MalformedPayloadError("Polymarket search did not return a list")

    results = []
    for event in events:
        if not isinstance(event, dict):
            continue
        for market in _market_list(event):
            simplified = normalize_polymarket_market(market)
            if simplified is not None:
                results.append(simplified)
    return results


def flatten_kalshi_search(payload: Any) -> List[SimplifiedMarket]:
    if not isinstance(payload, dict):
        raise MalformedPayloadError("Kalshi search did not return an object")

    events = payload.get("events") or []
    if not isinstance(events, list):
        raise MalformedPayloadError("'events' is not a list")

    results = []
    for event in events:
        if not isinstance(event, dict):
            continue
        for market in _market_list(event):
            simplified = normalize_kalshi_search_market(market)
            if simplified is not None:
                results.append(simplified)
    return results


# ---------------------------------------------------------------------------
# Gateway
# ---------------------------------------------------------------------------

class MarketDataGateway:
    """
    Read-only access to both platforms.

    Usage:
        gateway = MarketDataGateway()
        event = gateway.fetch_event(Platform.POLYMARKET, "fed-decision-in-march")
        candidates = gateway.search_markets(Platform.KALSHI, "fed rates")
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        session: Optional[requests.Session] = None
    ):
        self.settings = settings or get_settings()
        self.session = session or requests.Session()
        self.session.headers.setdefault("Accept", "application/json")

    def close(self) -> None:
        self.session.close()

    def _get_json(self, url: str, params: Optional[Dict[str, Any]] = None, headers: Optional[Dict[str, str]] = None) -> Any:
        response = self.session.get(
            url,
            params=params,
            headers=headers,
            timeout=self.settings.request_timeout_seconds,
        )
        response.raise_for_status()
        return response.json()

    def _dflow_get(self, path: str, params: Dict[str, Any]) -> Any:
        headers = {}
        if self.settings.dflow_api_key:
            headers["x-api-key"] = self.settings.dflow_api_key
        url = f"{self.settings.dflow_api_url.rstrip('/')}/{path.lstrip('/')}"
        return self._get_json(url, params=params, headers=headers)

    def _gamma_get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        url = f"{self.settings.gamma_api_url.rstrip('/')}/{path.lstrip('/')}"
        return self._get_json(url, params=params)

    def fetch_polymarket_event(self, slug: str) -> SourceEventData:
        data = self._gamma_get(f"events/slug/{slug}")
        if isinstance(data, list):
            if not data:
                raise MalformedPayloadError(f"No Polymarket event for slug {slug}")
            data = data[0]
        return normalize_polymarket_event(data, slug)

    def fetch_kalshi_event(self, ticker: str) -> SourceEventData:
        data = self._dflow_get(f"event/{ticker}", {"withNestedMarkets": "true"})
        return normalize_kalshi_event(data, ticker)

    def search_polymarket(self, query: str) -> List[SimplifiedMarket]:
        data = self._gamma_get("events", {"status": "open", "q": query})
        return flatten_polymarket_search(data)

    def search_kalshi(self, query: str) -> List[SimplifiedMarket]:
        data = self._dflow_get("search", {
            "q": query,
            "event_status": "open",
            "withNestedMarkets": "true",
        })
        return flatten_kalshi_search(data)

    def fetch_event(self, platform: Platform, identifier: str) -> Optional[SourceEventData]:
        """
        Fetch an event by slug (Polymarket) or ticker (Kalshi).

        Returns:
            SourceEventData, or None when the event is missing, has no
            tradable markets, or the upstream call failed
        """
        try:
            if platform is Platform.POLYMARKET:
                event = self.fetch_polymarket_event(identifier)
            else:
                event = self.fetch_kalshi_event(identifier)
        except (requests.RequestException, ValueError) as e:
            logger.error(f"[ERROR] {platform.value} event fetch failed for {identifier}: {e}")
            return None

        if not event.markets:
            logger.warning(f"   {platform.value} event {identifier} has no tradable markets")
            return None
        return event

    def search_markets(self, platform: Platform, query: str) -> List[SimplifiedMarket]:
        """
        Keyword search restricted to open events, flattened to markets.
        An upstream failure looks the same as no match.
        """
        try:
            if platform is Platform.POLYMARKET:
                return self.search_polymarket(query)
            return self.search_kalshi(query)
        except (requests.RequestException, ValueError) as e:
            logger.error(f"[ERROR] {platform.value} search failed for '{query}': {e}")
            return []

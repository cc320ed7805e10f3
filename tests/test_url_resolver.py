import pytest

from arbitrage_finder.errors import MalformedUrlError, UnsupportedPlatformError
from arbitrage_finder.models import Platform
from arbitrage_finder.url_resolver import detect_platform, resolve_url


@pytest.mark.parametrize("url, slug", [
    ("https://polymarket.com/event/fed-decision-in-march", "fed-decision-in-march"),
    ("https://polymarket.com/event/fed-decision-in-march/will-the-fed-cut", "fed-decision-in-march"),
    ("https://POLYMARKET.com/event/btc-above-100k?tid=123", "btc-above-100k"),
])
def test_polymarket_event_slug(url, slug):
    resolved = resolve_url(url)
    assert resolved.platform is Platform.POLYMARKET
    assert resolved.identifier == slug


@pytest.mark.parametrize("url, ticker", [
    ("https://kalshi.com/markets/kxfed/fed-meeting/kxfed-26mar", "KXFED-26MAR"),
    ("https://kalshi.com/markets/kxfed/fed-meeting/extra/kxfed-26mar-t4", "KXFED-26MAR-T4"),
    ("https://kalshi.com/events/kxfed-26mar", "KXFED-26MAR"),
    ("https://kalshi.com/markets/kxbtc", "KXBTC"),
])
def test_kalshi_ticker(url, ticker):
    resolved = resolve_url(url)
    assert resolved.platform is Platform.KALSHI
    assert resolved.identifier == ticker


def test_detect_platform_unknown():
    assert detect_platform("https://example.com/x") is None


def test_unsupported_platform():
    with pytest.raises(UnsupportedPlatformError):
        resolve_url("https://example.com/x")


@pytest.mark.parametrize("url", [
    "https://polymarket.com/markets",
    "https://polymarket.com/event/",
    "https://polymarket.com/sports/event/nba-final",
    "https://kalshi.com/browse/politics",
    "https://kalshi.com/markets",
    "polymarket.com/event/no-scheme",
    "https://[polymarket.com/event/x",
])
def test_malformed_urls(url):
    with pytest.raises(MalformedUrlError):
        resolve_url(url)

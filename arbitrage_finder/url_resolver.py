"""
URL Resolver
============
Maps a market URL to its platform and the slug/ticker used to look it up.
"""

from dataclasses import dataclass
from typing import List, Optional
from urllib.parse import urlparse

from .errors import MalformedUrlError, UnsupportedPlatformError
from .models import Platform


PLATFORM_DOMAINS = {
    Platform.POLYMARKET: "polymarket.com",
    Platform.KALSHI: "kalshi.com",
}

KALSHI_ROOT_SEGMENTS = ("markets", "events")


@dataclass(frozen=True)
class ResolvedUrl:
    platform: Platform
    identifier: str


def detect_platform(url: str) -> Optional[Platform]:
    lower_url = url.lower()
    for platform, domain in PLATFORM_DOMAINS.items():
        if domain in lower_url:
            return platform
    return None


def _path_segments(url: str) -> List[str]:
    try:
        parsed = urlparse(url)
    except ValueError as e:
        raise MalformedUrlError(f"Could not parse URL: {url}") from e
    if not parsed.scheme or not parsed.netloc:
        raise MalformedUrlError(f"Could not parse URL: {url}")
    return [part for part in parsed.path.split("/") if part]


def extract_polymarket_slug(url: str) -> Optional[str]:
    """
    Event slug from /event/<slug>[/<market-slug>...].
    """
    parts = _path_segments(url)
    if len(parts) < 2 or parts[0] != "event":
        return None
    return parts[1]


def extract_kalshi_ticker(url: str) -> Optional[str]:
    """
    Ticker from /markets/<base>/<slug>/<full-ticker> (last segment) or
    /events/<ticker>, /markets/<ticker> (second segment), uppercased.
    """
    parts = _path_segments(url)
    if len(parts) < 2 or parts[0] not in KALSHI_ROOT_SEGMENTS:
        return None
    ticker = parts[-1] if len(parts) >= 4 else parts[1]
    return ticker.upper()


def resolve_url(url: str) -> ResolvedUrl:
    """
    Resolve a Polymarket or Kalshi URL.

    Raises:
        UnsupportedPlatformError: URL is from neither platform
        MalformedUrlError: URL cannot be parsed or lacks a slug/ticker
    """
    platform = detect_platform(url)
    if platform is None:
        raise UnsupportedPlatformError("Invalid URL. Must be a Polymarket or Kalshi market URL.")

    if platform is Platform.POLYMARKET:
        identifier = extract_polymarket_slug(url)
        if not identifier:
            raise MalformedUrlError("Could not extract event slug from Polymarket URL")
    else:
        identifier = extract_kalshi_ticker(url)
        if not identifier:
            raise MalformedUrlError("Could not extract ticker from Kalshi URL")

    return ResolvedUrl(platform=platform, identifier=identifier)

"""
Arbitrage Finder Pipeline
=========================
Sequences one request end to end:

1. Validate url/model
2. Resolve the URL to a platform and slug/ticker
3. Fetch the source event
4. Generate a 1-2 word search query
5. Search the other platform
6. No results: return a canned "no match" analysis without the judge
7. Otherwise run the arbitrage analysis

Every outcome is wrapped in a response envelope with request metadata.
"""

import logging
import time
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from pydantic import ValidationError

from .ai_client import BackendRouter, build_router
from .arbitrage_analysis import analyze_arbitrage, build_source_market
from .config import Settings, get_settings
from .errors import ArbitrageFinderError, InvalidRequestError, SourceNotFoundError
from .market_data import MarketDataGateway
from .models import ArbitrageAnalysis, ArbitrageRequest, Platform, SourceEventData
from .search_query import synthesize_search_query
from .url_resolver import resolve_url


logger = logging.getLogger(__name__)

UNKNOWN = "unknown"


@dataclass
class PipelineResult:
    status_code: int
    envelope: Dict[str, Any]


@dataclass
class _RequestContext:
    """Metadata gathered while the request runs, used for the envelope."""
    start_time: float
    model: str = UNKNOWN
    tokens_used: Optional[int] = None
    source_platform: Optional[Platform] = None
    search_platform: Optional[Platform] = None

    def metadata(self) -> Dict[str, Any]:
        metadata: Dict[str, Any] = {
            "requestId": str(uuid.uuid4()),
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "processingTimeMs": int((time.monotonic() - self.start_time) * 1000),
            "model": self.model,
        }
        if self.tokens_used is not None:
            metadata["tokensUsed"] = self.tokens_used
        metadata["sourceMarket"] = self.source_platform.value if self.source_platform else UNKNOWN
        metadata["searchedMarket"] = self.search_platform.value if self.search_platform else UNKNOWN
        return metadata


def _success(ctx: _RequestContext, analysis: ArbitrageAnalysis) -> PipelineResult:
    return PipelineResult(200, {
        "success": True,
        "data": analysis.to_dict(),
        "metadata": ctx.metadata(),
    })


def error_result(status_code: int, message: str, ctx: Optional[_RequestContext] = None) -> PipelineResult:
    ctx = ctx or _RequestContext(start_time=time.monotonic())
    return PipelineResult(status_code, {
        "success": False,
        "error": message,
        "metadata": ctx.metadata(),
    })


def parse_request(payload: Any) -> ArbitrageRequest:
    """
    Validate the request body.

    Raises:
        InvalidRequestError: Body is not an object, or url/model is missing
    """
    if not isinstance(payload, dict):
        raise InvalidRequestError("Request body must be a JSON object")
    try:
        request = ArbitrageRequest(**payload)
    except ValidationError as e:
        raise InvalidRequestError(f"Invalid request body: {e.errors()[0].get('msg', e)}") from e

    if not request.url:
        raise InvalidRequestError("Missing required parameter: 'url'")
    if not request.model:
        raise InvalidRequestError("Missing required parameter: 'model'")
    return request


def no_match_analysis(
    source_event: SourceEventData,
    search_platform: Platform,
    query: str,
    url: str
) -> ArbitrageAnalysis:
    """Canned result for an empty search; the judge is not consulted."""
    analysis = ArbitrageAnalysis(
        is_same_market=False,
        same_market_confidence=0,
        market_comparison_reasoning=f'No matching markets found on {search_platform.value} for query "{query}"',
        arbitrage={"hasArbitrage": False},
        summary=f"No matching markets found on {search_platform.value}. Cannot determine arbitrage opportunity.",
        risks=["No matching market found on the other platform"],
        recommendation="Try a different event or check if the market exists on both platforms.",
    )
    analysis.set_platform_data(build_source_market(source_event, url=url))
    return analysis


def _run(
    payload: Any,
    ctx: _RequestContext,
    gateway: MarketDataGateway,
    router: BackendRouter,
    settings: Settings
) -> PipelineResult:
    if isinstance(payload, dict) and isinstance(payload.get("model"), str) and payload["model"]:
        ctx.model = payload["model"]
    request = parse_request(payload)

    # Step 1: resolve URL
    resolved = resolve_url(request.url)
    ctx.source_platform = resolved.platform
    ctx.search_platform = resolved.platform.opposite
    logger.info(f"-> [STEP 1] Source platform: {resolved.platform.value}, identifier: {resolved.identifier}")

    # Step 2: source event
    source_event = gateway.fetch_event(resolved.platform, resolved.identifier)
    if source_event is None or not source_event.markets:
        raise SourceNotFoundError(
            f"Could not fetch event data from {resolved.platform.value}. "
            "The event may not exist or have no markets."
        )
    logger.info(f"-> [STEP 2] Fetched \"{source_event.event_title}\" with {len(source_event.markets)} markets")

    # Step 3: search query
    query = synthesize_search_query(
        source_event.event_title,
        ctx.source_platform,
        ctx.search_platform,
        request.model,
        router=router,
        settings=settings,
    )
    logger.info(f"-> [STEP 3] Search query: \"{query}\"")

    # Step 4: search the other platform
    search_results = gateway.search_markets(ctx.search_platform, query)
    logger.info(f"-> [STEP 4] Found {len(search_results)} markets on {ctx.search_platform.value}")

    if not search_results:
        logger.info("   No search results, returning early")
        return _success(ctx, no_match_analysis(source_event, ctx.search_platform, query, request.url))

    # Step 5: arbitrage analysis
    judgment = analyze_arbitrage(
        source_event,
        search_results,
        ctx.search_platform,
        request.model,
        router=router,
        settings=settings,
        source_url=request.url,
    )
    ctx.model = judgment.model_used
    ctx.tokens_used = judgment.tokens_used
    logger.info(f"-> [STEP 5] Analysis complete, isSameMarket: {judgment.analysis.is_same_market}")

    return _success(ctx, judgment.analysis)


def find_arbitrage(
    payload: Any,
    gateway: Optional[MarketDataGateway] = None,
    router: Optional[BackendRouter] = None,
    settings: Optional[Settings] = None
) -> PipelineResult:
    """
    Run the pipeline for one request body ({"url": ..., "model": ...}).

    Returns:
        PipelineResult with the HTTP status and the response envelope.
        Never raises: unexpected exceptions become a 500 envelope.
    """
    ctx = _RequestContext(start_time=time.monotonic())
    settings = settings or get_settings()
    # Collaborators built here are closed here; injected ones belong to the caller.
    owned = []

    try:
        if gateway is None:
            gateway = MarketDataGateway(settings)
            owned.append(gateway)
        if router is None:
            router = build_router(settings)
            owned.append(router)
        result = _run(payload, ctx, gateway, router, settings)
    except ArbitrageFinderError as e:
        logger.warning(f"[ERROR] {type(e).__name__}: {e}")
        return error_result(e.status_code, str(e), ctx)
    except Exception as e:
        logger.exception("[ERROR] Unhandled error")
        return error_result(500, str(e) or "An unexpected error occurred", ctx)
    finally:
        for resource in owned:
            resource.close()

    logger.info(f"   Request completed in {result.envelope['metadata']['processingTimeMs']} ms")
    return result

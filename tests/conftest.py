import json
from typing import Any, Dict, List, Optional

import pytest

from arbitrage_finder.ai_client import AIBackend, AIResponse, BackendRouter
from arbitrage_finder.config import Settings


class FakeBackend(AIBackend):
    """Records calls and replays canned text responses in order."""

    def __init__(self, name: str, replies: Optional[List[str]] = None, model: str = "fake-model", tokens: Optional[int] = None):
        self.name = name
        self.replies = list(replies or [])
        self.model = model
        self.tokens = tokens
        self.calls: List[Dict[str, Any]] = []

    def respond(self, user_prompt, system_prompt, output_mode, model, max_tokens):
        self.calls.append({
            "user_prompt": user_prompt,
            "system_prompt": system_prompt,
            "output_mode": output_mode,
            "model": model,
            "max_tokens": max_tokens,
        })
        text = self.replies.pop(0) if self.replies else ""
        usage = {"total_tokens": self.tokens} if self.tokens is not None else None
        return AIResponse(
            output=[{"type": "message", "content": [{"type": "output_text", "text": text}]}],
            model=self.model,
            usage=usage,
        )


def analysis_json(**overrides) -> str:
    data = {
        "isSameMarket": True,
        "sameMarketConfidence": 92,
        "marketComparisonReasoning": "Both resolve on the March FOMC decision.",
        "matchedMarket": {
            "source": "kalshi",
            "name": "Fed cuts rates in March",
            "identifier": "KXFED-26MAR-CUT",
            "yesPrice": 30,
            "noPrice": 70,
            "url": "",
        },
        "arbitrage": {"hasArbitrage": True, "profitPercent": 5.2},
        "summary": "Kalshi prices the cut 7 points cheaper.",
        "risks": ["Resolution wording differs slightly"],
        "recommendation": "Buy YES on Kalshi, NO on Polymarket.",
    }
    data.update(overrides)
    return json.dumps(data)


@pytest.fixture
def settings():
    return Settings(openai_api_key="sk-test", xai_api_key="xai-test")


@pytest.fixture
def openai_backend():
    return FakeBackend("OpenAI")


@pytest.fixture
def grok_backend():
    return FakeBackend("Grok")


@pytest.fixture
def router(settings, openai_backend, grok_backend):
    return BackendRouter(
        openai=openai_backend,
        grok=grok_backend,
        openai_models=settings.openai_models,
        openai_prefix=settings.openai_model_prefix,
    )

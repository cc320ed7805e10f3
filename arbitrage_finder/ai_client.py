"""
AI Client Module
================
Abstraction layer for AI completion calls. OpenAI and xAI Grok both expose
the Responses API, so a single backend implementation serves both; the
router picks one per model identifier.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, List, Literal, Optional

import requests

from .config import Settings, get_settings


logger = logging.getLogger(__name__)

OutputMode = Literal["text", "json_object"]


class AIClientError(Exception):
    """Raised when an AI backend call fails or is misconfigured."""
    pass


@dataclass
class AIResponse:
    """Normalized Responses API result."""
    output: List[Dict[str, Any]]
    model: str
    usage: Optional[Dict[str, Any]] = None
    raw: Dict[str, Any] = field(default_factory=dict, repr=False)

    @property
    def total_tokens(self) -> Optional[int]:
        if not self.usage:
            return None
        return self.usage.get("total_tokens")

    def text(self, separator: str = "") -> str:
        """Concatenate the text fragments of every message item."""
        fragments = []
        for item in self.output:
            if item.get("type") != "message":
                continue
            for content in item.get("content") or []:
                text = content.get("text")
                if text is not None:
                    fragments.append(text)
        return separator.join(fragments)


class AIBackend(ABC):
    """A completion provider the pipeline can ask for text or JSON output."""

    name = "backend"

    @abstractmethod
    def respond(
        self,
        user_prompt: str,
        system_prompt: str,
        output_mode: OutputMode,
        model: str,
        max_tokens: int
    ) -> AIResponse:
        raise NotImplementedError

    def close(self) -> None:
        pass


class ResponsesAPIBackend(AIBackend):
    """
    Backend speaking the Responses API (POST {base}/responses).

    Usage:
        backend = OpenAIBackend(api_key="sk-...")
        response = backend.respond(user, system, "text", "gpt-4.1", 16)
        print(response.text())
    """

    def __init__(
        self,
        api_key: Optional[str],
        base_url: str,
        timeout: float = 120.0,
        session: Optional[requests.Session] = None
    ):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

    def _payload(
        self,
        user_prompt: str,
        system_prompt: str,
        output_mode: OutputMode,
        model: str,
        max_tokens: int
    ) -> Dict[str, Any]:
        return {
            "model": model,
            "input": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            "text": {"format": {"type": output_mode}},
            "max_output_tokens": max_tokens,
        }

    def respond(
        self,
        user_prompt: str,
        system_prompt: str,
        output_mode: OutputMode,
        model: str,
        max_tokens: int
    ) -> AIResponse:
        if not self.api_key:
            raise AIClientError(f"{self.name} API key not configured")

        payload = self._payload(user_prompt, system_prompt, output_mode, model, max_tokens)
        logger.debug(f"   [{self.name}] model={model} mode={output_mode} max_tokens={max_tokens}")
        headers = {"Authorization": f"Bearer {self.api_key}", "Content-Type": "application/json"}

        try:
            resp = self.session.post(
                f"{self.base_url}/responses",
                headers=headers,
                json=payload,
                timeout=self.timeout,
            )
            resp.raise_for_status()
            data = resp.json()
        except (requests.RequestException, ValueError) as e:
            raise AIClientError(f"{self.name} API call failed: {e}") from e

        if not isinstance(data, dict):
            raise AIClientError(f"{self.name} API returned an unexpected payload")

        return AIResponse(
            output=data.get("output") or [],
            model=data.get("model") or model,
            usage=data.get("usage"),
            raw=data,
        )

    def close(self) -> None:
        self.session.close()


class OpenAIBackend(ResponsesAPIBackend):
    name = "OpenAI"


class GrokBackend(ResponsesAPIBackend):
    name = "Grok"


def is_openai_model(model: str, allow_list: FrozenSet[str], prefix: str) -> bool:
    return model in allow_list or model.startswith(prefix)


class BackendRouter:
    """Chooses the backend for a model identifier."""

    def __init__(
        self,
        openai: AIBackend,
        grok: AIBackend,
        openai_models: FrozenSet[str],
        openai_prefix: str
    ):
        self.openai = openai
        self.grok = grok
        self.openai_models = openai_models
        self.openai_prefix = openai_prefix

    def select(self, model: str) -> AIBackend:
        if is_openai_model(model, self.openai_models, self.openai_prefix):
            return self.openai
        return self.grok

    def close(self) -> None:
        self.openai.close()
        self.grok.close()


def build_router(settings: Optional[Settings] = None) -> BackendRouter:
    settings = settings or get_settings()
    return BackendRouter(
        openai=OpenAIBackend(
            settings.openai_api_key,
            settings.openai_api_url,
            timeout=settings.ai_timeout_seconds,
        ),
        grok=GrokBackend(
            settings.xai_api_key,
            settings.xai_api_url,
            timeout=settings.ai_timeout_seconds,
        ),
        openai_models=settings.openai_models,
        openai_prefix=settings.openai_model_prefix,
    )

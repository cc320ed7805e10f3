"""
Configuration
=============
Settings read from environment variables (and a local .env file).
"""

import logging
import os
import sys
from functools import lru_cache
from typing import FrozenSet, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field


DEFAULT_OPENAI_MODELS = ("gpt-5.2", "gpt-5.1", "gpt-5-nano", "gpt-4.1", "gpt-4.1-mini")
DEFAULT_OPENAI_MODEL_PREFIX = "gpt-"


class Settings(BaseModel):
    """Runtime configuration for the arbitrage finder."""
    gamma_api_url: str = "https://gamma-api.polymarket.com"
    dflow_api_url: str = "https://a.prediction-markets-api.dflow.net/api/v1"
    dflow_api_key: Optional[str] = None

    openai_api_key: Optional[str] = None
    openai_api_url: str = "https://api.openai.com/v1"
    xai_api_key: Optional[str] = None
    xai_api_url: str = "https://api.x.ai/v1"

    # Models in this set, or starting with the prefix, are routed to OpenAI;
    # everything else goes to Grok.
    openai_models: FrozenSet[str] = frozenset(DEFAULT_OPENAI_MODELS)
    openai_model_prefix: str = DEFAULT_OPENAI_MODEL_PREFIX

    request_timeout_seconds: float = Field(default=15.0, gt=0)
    ai_timeout_seconds: float = Field(default=120.0, gt=0)
    # Reasoning models spend output tokens before the answer; leave headroom.
    query_max_tokens: int = Field(default=512, gt=0)
    analysis_max_tokens: int = Field(default=4096, gt=0)

    log_level: str = "INFO"


def _split_models(raw: str) -> FrozenSet[str]:
    return frozenset(m.strip() for m in raw.split(",") if m.strip())


def load_settings() -> Settings:
    """
    Build Settings from the environment, falling back to defaults for
    anything unset.
    """
    load_dotenv()

    values = {}
    env_map = {
        "gamma_api_url": "POLYMARKET_GAMMA_BASE_URL",
        "dflow_api_url": "DFLOW_API_BASE_URL",
        "dflow_api_key": "DFLOW_API_KEY",
        "openai_api_key": "OPENAI_API_KEY",
        "openai_api_url": "OPENAI_API_URL",
        "xai_api_key": "XAI_API_KEY",
        "xai_api_url": "XAI_API_URL",
        "openai_model_prefix": "OPENAI_MODEL_PREFIX",
        "request_timeout_seconds": "REQUEST_TIMEOUT_SECONDS",
        "ai_timeout_seconds": "AI_TIMEOUT_SECONDS",
        "query_max_tokens": "QUERY_MAX_TOKENS",
        "analysis_max_tokens": "ANALYSIS_MAX_TOKENS",
        "log_level": "LOG_LEVEL",
    }
    for field_name, env_var in env_map.items():
        value = os.getenv(env_var)
        if value:
            values[field_name] = value

    models = os.getenv("OPENAI_MODELS")
    if models:
        values["openai_models"] = _split_models(models)

    return Settings(**values)


@lru_cache()
def get_settings() -> Settings:
    return load_settings()


def configure_logging(level: str = "INFO") -> None:
    """Attach a single console handler to the package logger."""
    logger = logging.getLogger("arbitrage_finder")
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    if logger.handlers:
        return

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%H:%M:%S",
    ))
    logger.addHandler(handler)

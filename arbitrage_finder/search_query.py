"""
Search Query Synthesis
======================
Compresses an event title into a 1-2 word query for the other platform.
"""

import logging
import re
from typing import Optional

from .ai_client import BackendRouter, build_router
from .config import Settings, get_settings
from .models import Platform
from .prompts import search_query_prompt


logger = logging.getLogger(__name__)

MAX_QUERY_WORDS = 2


def clean_search_query(text: str) -> str:
    """Strip quotes and keep at most the first two words."""
    cleaned = re.sub(r"['\"]", "", text).strip()
    words = cleaned.split()[:MAX_QUERY_WORDS]
    return " ".join(words)


def synthesize_search_query(
    title: str,
    source_platform: Platform,
    target_platform: Platform,
    model: str,
    router: Optional[BackendRouter] = None,
    settings: Optional[Settings] = None
) -> str:
    """
    Ask the model for a short search query describing the event.

    An empty answer is returned as-is; the search then finds nothing and
    the pipeline exits early.
    """
    settings = settings or get_settings()
    router = router or build_router(settings)

    system_prompt, user_prompt = search_query_prompt(title, source_platform, target_platform)
    backend = router.select(model)
    logger.debug(f"   Query synthesis via {backend.name} ({model})")

    response = backend.respond(
        user_prompt,
        system_prompt,
        "text",
        model,
        settings.query_max_tokens,
    )
    query = clean_search_query(response.text().strip())
    if not query:
        logger.warning(
            f"   Empty search query from {backend.name} ({model}); "
            f"max_tokens={settings.query_max_tokens} may be too low for a reasoning model"
        )
    return query

"""
Web search client: Google Custom Search JSON API.

Search is optional. Both GOOGLE_API_KEY and GOOGLE_SEARCH_ENGINE_ID must be set;
without them no request is made.
"""

import logging
from dataclasses import dataclass

import httpx

from app.core.config import (
    GOOGLE_API_KEY,
    GOOGLE_SEARCH_ENGINE_ID,
    GOOGLE_SEARCH_URL,
    SEARCH_MAX_RESULTS,
    SEARCH_TIMEOUT,
)
from app.core.errors import SearchNotConfiguredError, SearchUnavailableError

logger = logging.getLogger(__name__)


@dataclass
class SearchResult:
    snippet: str
    link: str
    title: str = ""


def is_configured(api_key: str | None = GOOGLE_API_KEY, engine_id: str | None = GOOGLE_SEARCH_ENGINE_ID) -> bool:
    return bool(api_key and engine_id)


def search(
    query: str,
    max_results: int = SEARCH_MAX_RESULTS,
    timeout: float = SEARCH_TIMEOUT,
    api_key: str | None = GOOGLE_API_KEY,
    engine_id: str | None = GOOGLE_SEARCH_ENGINE_ID,
) -> list[SearchResult]:
    """
    Run a Custom Search query and return up to max_results results (may be empty).

    Raises:
        SearchNotConfiguredError: If api_key or engine_id is missing.
        SearchUnavailableError: On timeout, transport error, non-2xx status, or bad body.
    """
    if not is_configured(api_key, engine_id):
        raise SearchNotConfiguredError("web search needs GOOGLE_API_KEY and GOOGLE_SEARCH_ENGINE_ID")
    q = (query or "").strip()
    logger.info("[search:google] IN  query=%r max_results=%d", q, max_results)
    params = {"key": api_key, "cx": engine_id, "q": q, "num": max_results}
    try:
        with httpx.Client(timeout=timeout) as client:
            response = client.get(GOOGLE_SEARCH_URL, params=params)
    except httpx.TimeoutException as e:
        raise SearchUnavailableError(f"search timed out after {timeout}s") from e
    except httpx.HTTPError as e:
        raise SearchUnavailableError(f"search request failed: {e}") from e
    if not response.is_success:
        raise SearchUnavailableError(f"search returned {response.status_code}: {response.text[:200]}")
    try:
        data = response.json()
    except ValueError as e:
        raise SearchUnavailableError("search returned a non-JSON body") from e
    items = (data.get("items") or []) if isinstance(data, dict) else []
    results = [
        SearchResult(
            snippet=(item.get("snippet") or "").strip(),
            link=(item.get("link") or "").strip(),
            title=(item.get("title") or "").strip(),
        )
        for item in items[:max_results]
        if isinstance(item, dict)
    ]
    logger.info("[search:google] OUT results=%d links=%s", len(results), [r.link for r in results])
    return results

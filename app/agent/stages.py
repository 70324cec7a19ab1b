"""
Resolver stages. Each stage tries one answer source and returns an AnswerResult,
or None to hand the query to the next stage.

Confidence is a fixed value per source, not a measure of answer quality.
"""

import logging
from dataclasses import asdict, dataclass
from enum import Enum
from typing import Callable, Protocol, Sequence

from app.agent import llm, search
from app.core.config import (
    GOOGLE_API_KEY,
    GOOGLE_SEARCH_ENGINE_ID,
    MODEL_TIMEOUT,
    OLLAMA_MODEL,
    SEARCH_MAX_RESULTS,
    SEARCH_TIMEOUT,
)
from app.services.knowledge_base import KnowledgeStore

logger = logging.getLogger(__name__)

FALLBACK_TEXT = (
    "I'm sorry, I couldn't find a specific answer to your question. "
    "Could you please rephrase or provide more details?"
)


class AnswerSource(str, Enum):
    MODEL = "model"
    KNOWLEDGE_BASE = "knowledge_base"
    WEB_SEARCH = "web_search"
    FALLBACK = "fallback"


CONFIDENCE: dict[AnswerSource, int] = {
    AnswerSource.MODEL: 85,
    AnswerSource.KNOWLEDGE_BASE: 70,
    AnswerSource.WEB_SEARCH: 60,
    AnswerSource.FALLBACK: 30,
}


@dataclass(frozen=True)
class AnswerResult:
    text: str
    source: AnswerSource
    confidence: int
    model_name: str

    @classmethod
    def of(cls, text: str, source: AnswerSource, model_name: str) -> "AnswerResult":
        return cls(text=text, source=source, confidence=CONFIDENCE[source], model_name=model_name)

    def to_dict(self) -> dict:
        data = asdict(self)
        data["source"] = self.source.value
        return data


Turn = dict[str, str]


class Stage(Protocol):
    name: str

    def attempt(self, query: str, context: Sequence[Turn]) -> AnswerResult | None: ...


def compose_prompt(query: str, context: Sequence[Turn]) -> str:
    """Query verbatim, or the context turns as "role: content" lines followed by the query."""
    if not context:
        return query
    lines = "\n".join(f"{t.get('role', 'user')}: {t.get('content', '')}" for t in context)
    return f"Previous conversation context:\n{lines}\n\nCurrent question: {query}"


class ModelStage:
    name = "model"

    def __init__(
        self,
        generate: Callable[..., str] = llm.generate,
        model_name: str = OLLAMA_MODEL,
        timeout: float = MODEL_TIMEOUT,
    ) -> None:
        self.generate = generate
        self.model_name = model_name
        self.timeout = timeout

    def attempt(self, query: str, context: Sequence[Turn]) -> AnswerResult | None:
        prompt = compose_prompt(query, context)
        text = (self.generate(prompt, model_name=self.model_name, timeout=self.timeout) or "").strip()
        if not text:
            return None
        return AnswerResult.of(text, AnswerSource.MODEL, self.model_name)


class KnowledgeBaseStage:
    name = "knowledge_base"

    def __init__(self, store: KnowledgeStore, model_name: str = OLLAMA_MODEL) -> None:
        self.store = store
        self.model_name = model_name

    def attempt(self, query: str, context: Sequence[Turn]) -> AnswerResult | None:
        # Raw query only; the context-composed prompt would match on earlier turns.
        answer = self.store.lookup(query)
        if not answer:
            return None
        return AnswerResult.of(answer, AnswerSource.KNOWLEDGE_BASE, self.model_name)


class WebSearchStage:
    name = "web_search"

    def __init__(
        self,
        search_fn: Callable[..., list] = search.search,
        api_key: str | None = GOOGLE_API_KEY,
        engine_id: str | None = GOOGLE_SEARCH_ENGINE_ID,
        max_results: int = SEARCH_MAX_RESULTS,
        timeout: float = SEARCH_TIMEOUT,
        model_name: str = OLLAMA_MODEL,
    ) -> None:
        self.search_fn = search_fn
        self.api_key = api_key
        self.engine_id = engine_id
        self.max_results = max_results
        self.timeout = timeout
        self.model_name = model_name

    @property
    def configured(self) -> bool:
        return search.is_configured(self.api_key, self.engine_id)

    def attempt(self, query: str, context: Sequence[Turn]) -> AnswerResult | None:
        if not self.configured:
            logger.info("[stage:web_search] not configured (missing api key or engine id); skipping")
            return None
        results = self.search_fn(
            query,
            max_results=self.max_results,
            timeout=self.timeout,
            api_key=self.api_key,
            engine_id=self.engine_id,
        )
        if not results:
            return None
        top = results[0]
        text = f"Based on search results: {top.snippet}\n\nSource: {top.link}"
        return AnswerResult.of(text, AnswerSource.WEB_SEARCH, self.model_name)


class FallbackStage:
    name = "fallback"

    def __init__(self, model_name: str = OLLAMA_MODEL, text: str = FALLBACK_TEXT) -> None:
        self.model_name = model_name
        self.text = text

    def attempt(self, query: str, context: Sequence[Turn]) -> AnswerResult | None:
        return AnswerResult.of(self.text, AnswerSource.FALLBACK, self.model_name)


def default_stages(store: KnowledgeStore, model_name: str = OLLAMA_MODEL) -> list[Stage]:
    """model → knowledge base → web search → fallback, wired to the configured clients."""
    return [
        ModelStage(model_name=model_name),
        KnowledgeBaseStage(store, model_name=model_name),
        WebSearchStage(model_name=model_name),
        FallbackStage(model_name=model_name),
    ]

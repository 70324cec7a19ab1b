"""
Unit tests for the answer resolver: stage order, tier confidences, and
recovery from failing tiers.

Model and search clients are replaced with fakes so no network is needed.
"""

import pytest

from app.agent.graph import AnswerResolver, build_graph
from app.agent.search import SearchResult
from app.agent.stages import (
    CONFIDENCE,
    FALLBACK_TEXT,
    AnswerSource,
    FallbackStage,
    KnowledgeBaseStage,
    ModelStage,
    WebSearchStage,
    compose_prompt,
)
from app.core.errors import ModelUnavailableError, SearchUnavailableError
from app.services.knowledge_base import KnowledgeStore

KNOWLEDGE = {
    "company": {"name": "Premade Innovation", "description": "a software company", "mission": "Build things"},
    "services": {"AI Development": "Custom AI", "Consulting": "Strategy", "Automation": "Workflows"},
}

UNMATCHED_QUERY = "xyzzy plugh"


def failing_generate(prompt, model_name, timeout):
    raise ModelUnavailableError("connection refused")


class RecordingGenerate:
    def __init__(self, reply: str = "Model answer.") -> None:
        self.reply = reply
        self.calls: list[dict] = []

    def __call__(self, prompt, model_name, timeout):
        self.calls.append({"prompt": prompt, "model_name": model_name, "timeout": timeout})
        return self.reply


class RecordingSearch:
    def __init__(self, results=None, error: Exception | None = None) -> None:
        self.results = results or []
        self.error = error
        self.calls: list[dict] = []

    def __call__(self, query, max_results, timeout, api_key, engine_id):
        self.calls.append({"query": query, "max_results": max_results, "timeout": timeout})
        if self.error:
            raise self.error
        return self.results


def make_resolver(generate=failing_generate, search_fn=None, api_key="key", engine_id="cx", knowledge=None):
    store = KnowledgeStore(KNOWLEDGE if knowledge is None else knowledge)
    stages = [
        ModelStage(generate=generate, model_name="phi3:mini", timeout=10.0),
        KnowledgeBaseStage(store, model_name="phi3:mini"),
        WebSearchStage(
            search_fn=search_fn or RecordingSearch(),
            api_key=api_key,
            engine_id=engine_id,
            max_results=3,
            timeout=5.0,
            model_name="phi3:mini",
        ),
        FallbackStage(model_name="phi3:mini"),
    ]
    return AnswerResolver(stages, model_name="phi3:mini")


class TestComposePrompt:
    def test_no_context_uses_query_verbatim(self) -> None:
        assert compose_prompt("What is new?", []) == "What is new?"

    def test_context_lines_precede_query(self) -> None:
        context = [{"role": "user", "content": "Hi"}, {"role": "assistant", "content": "Hello!"}]
        prompt = compose_prompt("What is new?", context)
        assert prompt == (
            "Previous conversation context:\nuser: Hi\nassistant: Hello!\n\nCurrent question: What is new?"
        )


class TestResolverTiers:
    def test_model_success_returns_model_tier(self) -> None:
        generate = RecordingGenerate("  A detailed reply.  ")
        result = make_resolver(generate=generate).resolve("What services do you offer?", [])
        assert result.source == AnswerSource.MODEL
        assert result.confidence == 85
        assert result.text == "A detailed reply."
        assert result.model_name == "phi3:mini"
        assert generate.calls[0]["timeout"] == 10.0

    def test_model_receives_context_prompt(self) -> None:
        generate = RecordingGenerate()
        context = [{"role": "user", "content": "earlier"}]
        make_resolver(generate=generate).resolve("now", context)
        assert generate.calls[0]["prompt"].endswith("\n\nCurrent question: now")
        assert "user: earlier" in generate.calls[0]["prompt"]

    def test_empty_model_reply_falls_through(self) -> None:
        result = make_resolver(generate=RecordingGenerate("   ")).resolve("What services do you offer?", [])
        assert result.source == AnswerSource.KNOWLEDGE_BASE

    def test_model_failure_uses_knowledge_base(self) -> None:
        result = make_resolver().resolve("What services do you offer?", [])
        assert result.source == AnswerSource.KNOWLEDGE_BASE
        assert result.confidence == 70
        for key in KNOWLEDGE["services"]:
            assert key in result.text

    def test_knowledge_base_gets_raw_query_not_prompt(self) -> None:
        # Context mentions services, the question itself matches nothing.
        context = [{"role": "user", "content": "tell me about your services"}]
        result = make_resolver(api_key="", engine_id="").resolve(UNMATCHED_QUERY, context)
        assert result.source == AnswerSource.FALLBACK

    def test_no_search_credentials_returns_fallback(self) -> None:
        search = RecordingSearch([SearchResult(snippet="X", link="Y")])
        result = make_resolver(search_fn=search, api_key="", engine_id="cx").resolve(UNMATCHED_QUERY, [])
        assert result.source == AnswerSource.FALLBACK
        assert result.confidence == 30
        assert result.text == FALLBACK_TEXT
        assert search.calls == []

    def test_search_result_returns_web_search_tier(self) -> None:
        search = RecordingSearch([SearchResult(snippet="X", link="Y")])
        result = make_resolver(search_fn=search).resolve(UNMATCHED_QUERY, [])
        assert result.source == AnswerSource.WEB_SEARCH
        assert result.confidence == 60
        assert "X" in result.text and "Y" in result.text
        assert search.calls == [{"query": UNMATCHED_QUERY, "max_results": 3, "timeout": 5.0}]

    def test_search_uses_top_result(self) -> None:
        search = RecordingSearch([
            SearchResult(snippet="first snippet", link="https://first"),
            SearchResult(snippet="second snippet", link="https://second"),
        ])
        result = make_resolver(search_fn=search).resolve(UNMATCHED_QUERY, [])
        assert result.text == "Based on search results: first snippet\n\nSource: https://first"

    def test_search_zero_results_returns_fallback(self) -> None:
        result = make_resolver(search_fn=RecordingSearch([])).resolve(UNMATCHED_QUERY, [])
        assert result.source == AnswerSource.FALLBACK

    def test_search_error_returns_fallback(self) -> None:
        search = RecordingSearch(error=SearchUnavailableError("quota exceeded"))
        result = make_resolver(search_fn=search).resolve(UNMATCHED_QUERY, [])
        assert result.source == AnswerSource.FALLBACK
        assert result.text == FALLBACK_TEXT

    def test_unexpected_exception_in_stage_is_recovered(self) -> None:
        def broken(prompt, model_name, timeout):
            raise RuntimeError("boom")

        result = make_resolver(generate=broken).resolve("What services do you offer?", [])
        assert result.source == AnswerSource.KNOWLEDGE_BASE

    @pytest.mark.parametrize(
        "query",
        ["What services do you offer?", "How do I contact you?", UNMATCHED_QUERY, "Who is the CEO?"],
    )
    def test_confidence_matches_source(self, query: str) -> None:
        result = make_resolver(api_key="").resolve(query, [])
        assert result.source in set(AnswerSource)
        assert result.confidence == CONFIDENCE[result.source]


class TestResolverGraph:
    def test_stage_names_in_priority_order(self) -> None:
        assert make_resolver().stage_names == ["model", "knowledge_base", "web_search", "fallback"]

    def test_stops_at_first_answer(self) -> None:
        search = RecordingSearch([SearchResult(snippet="X", link="Y")])
        make_resolver(generate=RecordingGenerate("hi"), search_fn=search).resolve("anything", [])
        assert search.calls == []

    def test_without_fallback_stage_still_returns_fallback(self) -> None:
        resolver = AnswerResolver([ModelStage(generate=failing_generate)], model_name="phi3:mini")
        result = resolver.resolve("anything", [])
        assert result.source == AnswerSource.FALLBACK
        assert result.confidence == 30

    def test_empty_stage_list_rejected(self) -> None:
        with pytest.raises(ValueError):
            build_graph([])

    def test_duplicate_stage_names_rejected(self) -> None:
        with pytest.raises(ValueError):
            build_graph([FallbackStage(), FallbackStage()])

    def test_to_dict_uses_source_value(self) -> None:
        result = make_resolver(api_key="").resolve(UNMATCHED_QUERY, [])
        assert result.to_dict() == {
            "text": FALLBACK_TEXT,
            "source": "fallback",
            "confidence": 30,
            "model_name": "phi3:mini",
        }

"""
LangGraph answer resolver: model → knowledge base → web search → fallback.

The stage list is compiled into a graph with one node per stage. After each node
a conditional edge ends the run if the stage produced an answer, otherwise it
moves on to the next stage. A stage that raises counts as "no answer".
resolve() never raises; it always returns some AnswerResult.
"""

import logging
from typing import Any, Sequence, TypedDict

from langgraph.graph import END, StateGraph

from app.agent.stages import (
    AnswerResult,
    AnswerSource,
    FALLBACK_TEXT,
    Stage,
    Turn,
    default_stages,
)
from app.core.config import OLLAMA_MODEL
from app.services.knowledge_base import KnowledgeStore

logger = logging.getLogger(__name__)


class ResolverState(TypedDict):
    query: str
    context: list
    result: Any  # AnswerResult | None
    tried: list  # stage names in the order they were attempted


def _make_node(stage: Stage):
    def node(state: ResolverState) -> dict:
        query = state.get("query") or ""
        context = state.get("context") or []
        tried = list(state.get("tried") or []) + [stage.name]
        logger.info("[graph:%s] IN  query=%r context_turns=%d", stage.name, query, len(context))
        try:
            result = stage.attempt(query, context)
        except Exception as e:
            logger.warning("[graph:%s] failed: %s; moving to next tier", stage.name, e)
            return {"result": None, "tried": tried}
        if result is None:
            logger.info("[graph:%s] OUT no answer; moving to next tier", stage.name)
        else:
            logger.info(
                "[graph:%s] OUT source=%s confidence=%d answer_len=%d",
                stage.name, result.source.value, result.confidence, len(result.text),
            )
        return {"result": result, "tried": tried}

    return node


def _make_router(next_node: str):
    def route(state: ResolverState) -> str:
        return END if state.get("result") is not None else next_node

    return route


def build_graph(stages: Sequence[Stage]):
    """
    Build and compile the resolver graph.
    stage_1 → (END if answered, else stage_2) → ... → stage_n → END.
    """
    if not stages:
        raise ValueError("at least one stage is required")
    names = [s.name for s in stages]
    if len(set(names)) != len(names):
        raise ValueError(f"stage names must be unique: {names}")

    graph = StateGraph(ResolverState)
    for stage in stages:
        graph.add_node(stage.name, _make_node(stage))
    graph.set_entry_point(stages[0].name)
    for current, following in zip(stages, stages[1:]):
        graph.add_conditional_edges(current.name, _make_router(following.name))
    graph.add_edge(stages[-1].name, END)
    return graph.compile()


class AnswerResolver:
    """Runs a query through the ordered stages and returns the first answer."""

    def __init__(self, stages: Sequence[Stage], model_name: str = OLLAMA_MODEL) -> None:
        self.stages = list(stages)
        self.model_name = model_name
        self._graph = build_graph(self.stages)

    @classmethod
    def default(cls, store: KnowledgeStore, model_name: str = OLLAMA_MODEL) -> "AnswerResolver":
        return cls(default_stages(store, model_name=model_name), model_name=model_name)

    @property
    def stage_names(self) -> list[str]:
        return [s.name for s in self.stages]

    def fallback_result(self) -> AnswerResult:
        return AnswerResult.of(FALLBACK_TEXT, AnswerSource.FALLBACK, self.model_name)

    def resolve(self, query: str, context: Sequence[Turn] | None = None) -> AnswerResult:
        """
        Resolve a non-empty query. context: recent {"role", "content"} turns, oldest first.
        Callers reject empty queries before calling this.
        """
        turns = list(context or [])
        logger.info("[resolver] START query=%r context_turns=%d stages=%s", query, len(turns), self.stage_names)
        initial: ResolverState = {"query": query, "context": turns, "result": None, "tried": []}
        try:
            final = self._graph.invoke(initial)
        except Exception:
            logger.exception("[resolver] graph run failed; using fallback")
            return self.fallback_result()
        result = final.get("result")
        if result is None:
            logger.info("[resolver] no stage answered (tried=%s); using fallback", final.get("tried"))
            return self.fallback_result()
        logger.info(
            "[resolver] END source=%s confidence=%d tried=%s",
            result.source.value, result.confidence, final.get("tried"),
        )
        return result

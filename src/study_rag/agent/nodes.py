"""Graph nodes — each coroutine is one step of the answer workflow.

Node contract
-------------
* Accepts the full :class:`AnswerState` dict and the run config.
* Returns a *partial* dict with **only the keys that changed**.
* Collaborators (retriever, completion and refinement clients) arrive via
  ``config["configurable"]``; no node reads global state, so every node is
  independently testable.

Recovery policy lives here and nowhere else:

* retrieval failure → answer without context (logged);
* completion failure → propagate :class:`CompletionFailed`;
* refinement failure → fall back to the base answer.
"""

from __future__ import annotations

import logging
from typing import Any

from langchain_core.runnables import RunnableConfig

from study_rag.agent.prompts import StudyTool, build_grounded_prompt
from study_rag.agent.state import AnswerState
from study_rag.errors import EmbeddingUnavailable, RefinementFailed
from study_rag.retrieval.retriever import CONTEXT_SEPARATOR

logger = logging.getLogger(__name__)


def _dependency(config: RunnableConfig, name: str) -> Any:
    try:
        return config["configurable"][name]
    except KeyError as exc:
        raise RuntimeError(f"Answer graph invoked without {name!r} in config['configurable']") from exc


# ── 1. RETRIEVE ───────────────────────────────────────────────────────


async def retrieve_context(state: AnswerState, config: RunnableConfig) -> dict[str, Any]:
    """Fetch the top-k passages for the question and join them into context."""
    retriever = _dependency(config, "retriever")
    try:
        results = await retriever.search(state["question"])
    except EmbeddingUnavailable as exc:
        logger.warning("Retrieval unavailable, answering without notes: %s", exc)
        results = []
    return {
        "context": CONTEXT_SEPARATOR.join(r.content for r in results),
        "sources": [r.citation for r in results],
    }


# ── 2. GENERATE ───────────────────────────────────────────────────────


async def generate_answer(state: AnswerState, config: RunnableConfig) -> dict[str, Any]:
    """Call the completion capability once with the grounded prompt."""
    completion = _dependency(config, "completion")
    messages = build_grounded_prompt(
        state.get("tool", StudyTool.ASK_QUESTION),
        state["question"],
        state.get("context", ""),
        level=state.get("level"),
        notes=state.get("notes"),
    )
    base_answer = await completion.complete(messages)
    return {"base_answer": base_answer}


# ── 3. REFINE ─────────────────────────────────────────────────────────


async def refine_answer(state: AnswerState, config: RunnableConfig) -> dict[str, Any]:
    """Polish the base answer; on any refinement failure keep the base answer."""
    refiner = _dependency(config, "refiner")
    base_answer = state["base_answer"]
    try:
        refined = await refiner.refine(base_answer, state.get("context", ""))
    except RefinementFailed as exc:
        logger.warning("Refinement skipped, returning base answer: %s", exc)
        return {"answer": base_answer, "refined": False}
    return {"answer": refined, "refined": True}

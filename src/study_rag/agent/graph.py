"""LangGraph graph definition — the grounded answer workflow.

1. **Retrieve** the passages most similar to the question.
2. **Generate** a base answer from a grounded prompt (completion capability).
3. **Refine** the base answer against the same context, falling back to the
   base answer if refinement fails.

The graph can be tested locally without any provider by injecting fake
clients (see tests).
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from langgraph.graph import END, StateGraph

from study_rag.agent.nodes import generate_answer, refine_answer, retrieve_context
from study_rag.agent.prompts import StudyTool
from study_rag.agent.state import Answer, AnswerState

if TYPE_CHECKING:
    from study_rag.agent.llm import CompletionClient, RefinementClient
    from study_rag.retrieval.retriever import SemanticRetriever

logger = logging.getLogger(__name__)


def build_graph() -> Any:
    """Construct and return the compiled answer graph.

    Graph topology::

        START → retrieve → generate → refine → END

    Returns
    -------
    CompiledGraph
        A compiled LangGraph workflow ready for ``.ainvoke()``.
    """
    workflow = StateGraph(AnswerState)

    workflow.add_node("retrieve", retrieve_context)
    workflow.add_node("generate", generate_answer)
    workflow.add_node("refine", refine_answer)

    workflow.set_entry_point("retrieve")
    workflow.add_edge("retrieve", "generate")
    workflow.add_edge("generate", "refine")
    workflow.add_edge("refine", END)

    return workflow.compile()


def create_initial_state(
    question: str,
    *,
    tool: StudyTool = StudyTool.ASK_QUESTION,
    level: str | None = None,
    notes: str | None = None,
) -> dict[str, Any]:
    """Build a minimal initial state dict for ``graph.ainvoke()``."""
    return {
        "question": question,
        "tool": StudyTool(tool),
        "level": level,
        "notes": notes,
        "context": "",
        "sources": [],
        "base_answer": "",
        "answer": "",
        "refined": False,
    }


class AnswerPipeline:
    """Grounded question answering: retrieve → complete → refine.

    Fails only when the completion capability fails
    (:class:`~study_rag.errors.CompletionFailed`).
    """

    def __init__(
        self,
        retriever: SemanticRetriever,
        completion: CompletionClient,
        refiner: RefinementClient,
    ) -> None:
        self._config = {
            "configurable": {
                "retriever": retriever,
                "completion": completion,
                "refiner": refiner,
            }
        }
        self._graph = build_graph()

    async def run(
        self,
        question: str,
        level: str | None = None,
        notes: str | None = None,
        *,
        tool: StudyTool = StudyTool.ASK_QUESTION,
    ) -> Answer:
        """Run the full workflow and return the answer with its sources."""
        state = create_initial_state(question, tool=tool, level=level, notes=notes)
        result = await self._graph.ainvoke(state, config=self._config)
        logger.info(
            "Answered %s request (%d source(s), refined=%s)",
            state["tool"].value,
            len(result["sources"]),
            result["refined"],
        )
        return Answer(
            text=result["answer"],
            base_text=result["base_answer"],
            refined=result["refined"],
            tool=state["tool"],
            context=result["context"],
            sources=result["sources"],
        )

    async def answer(
        self,
        question: str,
        level: str | None = None,
        notes: str | None = None,
        *,
        tool: StudyTool = StudyTool.ASK_QUESTION,
    ) -> str:
        """Return only the final answer text."""
        return (await self.run(question, level, notes, tool=tool)).text

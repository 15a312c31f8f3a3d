"""Answer-pipeline state — shared across all graph nodes.

The state is the single source of truth flowing through the LangGraph
answer workflow.  Each field is documented so that new nodes can be added
without guessing what data is available.
"""

from __future__ import annotations

from typing import TypedDict

from pydantic import BaseModel, Field

from study_rag.agent.prompts import StudyTool
from study_rag.retrieval.models import Citation


class AnswerState(TypedDict, total=False):
    """Typed state that flows through the answer graph.

    Attributes
    ----------
    question:
        The topic or question typed by the student.
    tool:
        Which study tool produced the request.
    level:
        Optional level label (``"AS Level"`` / ``"A2 Level"``).
    notes:
        Optional free-form notes from the student.
    context:
        Retrieved passages joined by blank lines (``""`` when none).
    sources:
        Citations for the retrieved passages, most similar first.
    base_answer:
        Output of the grounded completion call.
    answer:
        Final text — the refined answer, or ``base_answer`` on fallback.
    refined:
        Whether refinement succeeded.
    """

    question: str
    tool: StudyTool
    level: str | None
    notes: str | None
    context: str
    sources: list[Citation]
    base_answer: str
    answer: str
    refined: bool


class Answer(BaseModel):
    """Final result of one answer-pipeline run."""

    text: str
    base_text: str
    refined: bool = False
    tool: StudyTool = StudyTool.ASK_QUESTION
    context: str = ""
    sources: list[Citation] = Field(default_factory=list)

"""
Agent — grounded answer generation built with LangGraph.

This module holds no infrastructure of its own: the retriever and the
completion / refinement clients are injected, so the workflow can be tested
locally without any provider.

Public API
----------
- :class:`AnswerPipeline` — retrieve → generate → refine.
- :func:`build_graph` — compile the answer workflow.
- :class:`StudyTool`, :class:`Level` — closed enumerations of tool variants and levels.
"""

from study_rag.agent.graph import AnswerPipeline, build_graph, create_initial_state
from study_rag.agent.prompts import Level, StudyTool
from study_rag.agent.state import Answer, AnswerState

__all__ = [
    "Answer",
    "AnswerPipeline",
    "AnswerState",
    "Level",
    "StudyTool",
    "build_graph",
    "create_initial_state",
]

"""Prompt templates for the study tools.

Each study tool is one member of the closed :class:`StudyTool` enumeration
and its task prompt is a pure function of ``(topic, level, notes)``.
Keeping prompts in one place makes them easy to audit and version.
"""

from __future__ import annotations

from collections.abc import Callable
from enum import Enum
from typing import TYPE_CHECKING

from langchain_core.messages import HumanMessage, SystemMessage

if TYPE_CHECKING:
    from langchain_core.messages import BaseMessage

NO_CONTEXT_MARKER = "No relevant notes found."


class StudyTool(str, Enum):
    ASK_QUESTION = "ask-question"
    EXAM_QUESTIONS = "exam-questions"
    FLASHCARDS = "flashcards"
    REVISION_QUESTIONS = "revision-questions"
    CASE_STUDY = "case-study"


class Level(str, Enum):
    AS = "AS Level"
    A2 = "A2 Level"


TOOL_TITLES: dict[StudyTool, str] = {
    StudyTool.ASK_QUESTION: "Ask a Question",
    StudyTool.EXAM_QUESTIONS: "Exam-Style Questions",
    StudyTool.FLASHCARDS: "Flashcards",
    StudyTool.REVISION_QUESTIONS: "Quick Revision Questions",
    StudyTool.CASE_STUDY: "Case Study Answers",
}


# ── 1. Tool task prompts ──────────────────────────────────────────────


def _extras(level: str | None, notes: str | None) -> str:
    lines = []
    if level:
        lines.append(f"Level: {level}")
    if notes and notes.strip():
        lines.append(f"Additional Context: {notes.strip()}")
    return ("\n" + "\n".join(lines) + "\n") if lines else ""


def _ask_question(topic: str, level: str | None, notes: str | None) -> str:
    return (
        "You are an expert A-Level ICT tutor. Answer the following question clearly "
        "and comprehensively.\n\n"
        f"Question: {topic}\n"
        f"{_extras(level, notes)}\n"
        "Provide a clear, structured answer with examples where appropriate. "
        'If the answer is not in the provided notes, state "Not found in the provided notes" '
        "but try to be helpful while clarifying the source."
    )


def _exam_questions(topic: str, level: str | None, notes: str | None) -> str:
    return (
        "You are an expert A-Level ICT exam question writer.\n"
        f"Generate 5-6 high-quality exam-style questions on: {topic}\n"
        f"{_extras(level, notes)}\n"
        "For EACH question provide:\n"
        "1. The question itself\n"
        "2. Mark allocation (e.g., [4 marks])\n"
        "3. A detailed mark scheme with key points\n\n"
        "Format clearly with proper numbering and spacing."
    )


def _flashcards(topic: str, level: str | None, notes: str | None) -> str:
    return (
        "You are an expert A-Level ICT tutor creating flashcards.\n"
        f"Create 10-12 flashcards on: {topic}\n"
        f"{_extras(level, notes)}\n"
        "For EACH flashcard provide:\n"
        "- Question/Term (front)\n"
        "- Answer/Definition (back)\n\n"
        "Format as numbered cards with clear Q&A structure.\n"
        "Make them concise but comprehensive for revision."
    )


def _revision_questions(topic: str, level: str | None, notes: str | None) -> str:
    return (
        "You are an expert A-Level ICT tutor creating quick revision questions.\n"
        f"Generate 15-20 quick recall questions on: {topic}\n"
        f"{_extras(level, notes)}\n"
        "Format as a numbered list with short, sharp questions perfect for quick testing.\n"
        "Cover key concepts, definitions, and important facts."
    )


def _case_study(topic: str, level: str | None, notes: str | None) -> str:
    return (
        "You are an expert A-Level ICT tutor helping with case study analysis.\n"
        f"Provide a structured case study answer for: {topic}\n"
        f"{_extras(level, notes)}\n"
        "Structure the answer with:\n"
        "- Introduction\n"
        "- Key points with clear subheadings\n"
        "- Analysis and evaluation\n"
        "- Conclusion\n\n"
        "Make it suitable for A-Level ICT case study questions."
    )


_TEMPLATES: dict[StudyTool, Callable[[str, str | None, str | None], str]] = {
    StudyTool.ASK_QUESTION: _ask_question,
    StudyTool.EXAM_QUESTIONS: _exam_questions,
    StudyTool.FLASHCARDS: _flashcards,
    StudyTool.REVISION_QUESTIONS: _revision_questions,
    StudyTool.CASE_STUDY: _case_study,
}


def build_tool_prompt(
    tool: StudyTool,
    topic: str,
    level: str | None = None,
    notes: str | None = None,
) -> str:
    """Return the task prompt for *tool*."""
    return _TEMPLATES[StudyTool(tool)](topic, level, notes)


# ── 2. Grounded generation ────────────────────────────────────────────

GROUNDING_SYSTEM = """\
You are an expert A-Level ICT tutor. Base your answer ONLY on the context
from the student's notes. If the context does not contain the answer, say
so honestly and do not invent facts.
"""


def build_grounded_prompt(
    tool: StudyTool,
    topic: str,
    context: str,
    level: str | None = None,
    notes: str | None = None,
) -> list[BaseMessage]:
    """Assemble the messages for the grounded completion call.

    Parameters
    ----------
    tool:
        Which study tool is being run.
    topic:
        The question or topic typed by the student.
    context:
        Retrieved passages; an empty string is replaced with
        :data:`NO_CONTEXT_MARKER`.
    level / notes:
        Optional level label and free-form notes.
    """
    user_msg = (
        f"{build_tool_prompt(tool, topic, level, notes)}\n\n"
        "Use the following context from the knowledge base if relevant:\n"
        f"{context or NO_CONTEXT_MARKER}"
    )
    return [
        SystemMessage(content=GROUNDING_SYSTEM),
        HumanMessage(content=user_msg),
    ]


# ── 3. Refinement ─────────────────────────────────────────────────────

REFINEMENT_SYSTEM = "You are a helpful expert tutor for A-Level ICT."


def build_refinement_prompt(base_answer: str, context: str) -> list[BaseMessage]:
    """Build the second-pass prompt that polishes *base_answer* against *context*."""
    user_msg = (
        "You are an expert A-Level ICT tutor.\n"
        "Refine, clarify, and expand the AI-generated answer below.\n"
        "You MUST stay accurate to the provided context from ICT notes.\n"
        "If information is not in the context, avoid inventing facts.\n\n"
        f"Context:\n{context or NO_CONTEXT_MARKER}\n\n"
        f"Base Answer:\n{base_answer}\n\n"
        "Your task:\n"
        "- improve structure\n"
        "- make the explanation clearer\n"
        "- add examples if appropriate\n"
        "- improve formatting\n"
        "- ensure it matches A-Level ICT exam style"
    )
    return [
        SystemMessage(content=REFINEMENT_SYSTEM),
        HumanMessage(content=user_msg),
    ]

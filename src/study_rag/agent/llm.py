"""LLM initialisation and call adapters — single place to swap providers.

Both the completion and refinement models are ``ChatOpenAI`` instances, so
either can point at OpenAI cloud or at any OpenAI-compatible endpoint
(Gemini, a local vLLM server, …) through its ``*_base_url`` setting.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

import openai
from langchain_openai import ChatOpenAI

from study_rag.agent.prompts import build_refinement_prompt
from study_rag.errors import CompletionFailed, FailureReason, RefinementFailed

if TYPE_CHECKING:
    from langchain_core.language_models import BaseChatModel
    from langchain_core.messages import BaseMessage

    from study_rag.config import Settings

logger = logging.getLogger(__name__)


def get_completion_llm(settings: Settings) -> ChatOpenAI:
    """Return the configured chat model used for the grounded base answer."""
    kwargs: dict = {
        "model": settings.completion_model,
        "temperature": settings.completion_temperature,
        # Some OpenAI-compatible servers need no key; LangChain requires a non-empty value.
        "api_key": settings.completion_api_key or "EMPTY",
    }
    if settings.completion_base_url:
        logger.info("Using completion endpoint: %s", settings.completion_base_url)
        kwargs["base_url"] = settings.completion_base_url
    return ChatOpenAI(**kwargs)


def get_refinement_llm(settings: Settings) -> ChatOpenAI | None:
    """Return the refinement chat model, or ``None`` when no API key is configured."""
    if not settings.refinement_api_key:
        logger.warning("Refinement API key not set; answers will not be refined")
        return None
    kwargs: dict = {
        "model": settings.refinement_model,
        "temperature": settings.refinement_temperature,
        "api_key": settings.refinement_api_key,
    }
    if settings.refinement_base_url:
        kwargs["base_url"] = settings.refinement_base_url
    return ChatOpenAI(**kwargs)


def _classify(exc: BaseException) -> FailureReason:
    """Map a provider exception onto a :class:`FailureReason`."""
    if isinstance(exc, (asyncio.TimeoutError, openai.APITimeoutError)):
        return FailureReason.TIMEOUT
    if isinstance(exc, openai.APIConnectionError):
        return FailureReason.UNREACHABLE
    if isinstance(exc, (openai.BadRequestError, openai.UnprocessableEntityError)):
        return FailureReason.BAD_INPUT
    return FailureReason.PROVIDER_ERROR


def _content_text(content: object) -> str:
    """Flatten a chat message's content (string or content blocks) into text."""
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts = [p if isinstance(p, str) else p.get("text", "") for p in content if isinstance(p, (str, dict))]
        return "".join(parts)
    return ""


class CompletionClient:
    """Calls the completion capability once and returns its text.

    Every failure surfaces as :class:`CompletionFailed` with a
    :class:`FailureReason` so callers can tell "provider unreachable"
    apart from "bad input".
    """

    def __init__(self, llm: BaseChatModel, *, timeout: float = 60.0) -> None:
        self._llm = llm
        self.timeout = timeout

    async def complete(self, messages: list[BaseMessage]) -> str:
        if not messages or not any(_content_text(m.content).strip() for m in messages):
            raise CompletionFailed("Prompt is empty", FailureReason.BAD_INPUT)
        try:
            response = await asyncio.wait_for(self._llm.ainvoke(messages), timeout=self.timeout)
        except Exception as exc:
            reason = _classify(exc)
            raise CompletionFailed(f"Completion failed ({reason.value}): {exc}", reason) from exc
        text = _content_text(response.content).strip()
        if not text:
            raise CompletionFailed("Completion returned an empty response", FailureReason.PROVIDER_ERROR)
        return text


class RefinementClient:
    """Second-pass refinement of a base answer against the same context.

    With no model configured every call raises :class:`RefinementFailed`,
    which the answer pipeline treats like any other refinement failure.
    """

    def __init__(self, llm: BaseChatModel | None, *, timeout: float = 60.0) -> None:
        self._llm = llm
        self.timeout = timeout

    @property
    def enabled(self) -> bool:
        return self._llm is not None

    async def refine(self, base_answer: str, context: str) -> str:
        if self._llm is None:
            raise RefinementFailed("No refinement model configured")
        messages = build_refinement_prompt(base_answer, context)
        try:
            response = await asyncio.wait_for(self._llm.ainvoke(messages), timeout=self.timeout)
        except Exception as exc:
            raise RefinementFailed(f"Refinement failed ({_classify(exc).value}): {exc}") from exc
        text = _content_text(response.content).strip()
        if not text:
            raise RefinementFailed("Refinement returned an empty response")
        return text

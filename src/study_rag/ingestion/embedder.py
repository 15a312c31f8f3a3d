"""Embedding client — one text segment in, one validated vector out."""

from __future__ import annotations

import asyncio
import logging
import math
from collections.abc import Callable
from typing import TYPE_CHECKING

from study_rag.errors import EmbeddingUnavailable

if TYPE_CHECKING:
    from langchain_core.embeddings import Embeddings

    from study_rag.config import Settings

logger = logging.getLogger(__name__)


def build_embeddings(settings: Settings) -> Embeddings:
    """Return the configured LangChain embedding model.

    ``huggingface`` runs a local sentence-transformer; ``openai`` talks to
    any OpenAI-compatible ``/embeddings`` endpoint (``embedding_base_url``).
    """
    if settings.embedding_provider == "openai":
        from langchain_openai import OpenAIEmbeddings

        kwargs: dict = {"model": settings.embedding_model, "api_key": settings.embedding_api_key or "EMPTY"}
        if settings.embedding_base_url:
            kwargs["base_url"] = settings.embedding_base_url
            # Non-OpenAI backends expect raw strings, not pre-tokenised input.
            kwargs["check_embedding_ctx_length"] = False
        return OpenAIEmbeddings(**kwargs)

    from langchain_huggingface import HuggingFaceEmbeddings

    return HuggingFaceEmbeddings(model_name=settings.embedding_model)


class EmbeddingClient:
    """Pure adapter around a LangChain :class:`Embeddings` model.

    No caching and no retries; orchestrators own the retry policy.

    The expected vector length ``D`` is resolved on every call, first match
    wins: the configured *dimension*, then *reference_dimension()* (normally
    the vector store's established dimension), then the length of the first
    vector this client accepted.  Any other length is rejected as
    :class:`EmbeddingUnavailable`, so one bad provider response costs one
    chunk instead of the whole document.

    Parameters
    ----------
    embeddings:
        The underlying embedding model.
    dimension:
        Configured vector length, or ``None`` to learn it.
    timeout:
        Seconds to wait for the provider before giving up.
    reference_dimension:
        Optional callable returning an already established dimension
        (``None`` while unknown).
    """

    def __init__(
        self,
        embeddings: Embeddings,
        *,
        dimension: int | None = None,
        timeout: float = 60.0,
        reference_dimension: Callable[[], int | None] | None = None,
    ) -> None:
        self._embeddings = embeddings
        self.dimension = dimension
        self.timeout = timeout
        self._reference_dimension = reference_dimension
        self._observed_dimension: int | None = None

    @property
    def expected_dimension(self) -> int | None:
        """The length the next vector must have, or ``None`` if not yet known."""
        if self.dimension is not None:
            return self.dimension
        if self._reference_dimension is not None:
            established = self._reference_dimension()
            if established is not None:
                return established
        return self._observed_dimension

    async def embed(self, text: str) -> list[float]:
        """Embed *text*, raising :class:`EmbeddingUnavailable` on any failure."""
        try:
            raw = await asyncio.wait_for(self._embeddings.aembed_query(text), timeout=self.timeout)
        except asyncio.TimeoutError as exc:
            raise EmbeddingUnavailable(f"Embedding call timed out after {self.timeout}s") from exc
        except Exception as exc:
            raise EmbeddingUnavailable(f"Embedding call failed: {exc}") from exc
        vector = self._validate(raw)
        if self._observed_dimension is None:
            self._observed_dimension = len(vector)
        return vector

    def _validate(self, raw: object) -> list[float]:
        if not isinstance(raw, (list, tuple)) or not raw:
            raise EmbeddingUnavailable(f"Malformed embedding: expected a non-empty list, got {type(raw).__name__}")
        try:
            vector = [float(x) for x in raw]
        except (TypeError, ValueError) as exc:
            raise EmbeddingUnavailable("Malformed embedding: non-numeric component") from exc
        if not all(math.isfinite(x) for x in vector):
            raise EmbeddingUnavailable("Malformed embedding: non-finite component")
        expected = self.expected_dimension
        if expected is not None and len(vector) != expected:
            raise EmbeddingUnavailable(f"Malformed embedding: expected {expected} dimensions, got {len(vector)}")
        return vector

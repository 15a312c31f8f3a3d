"""Semantic retriever — embeds a question and assembles grounding context.

Usage::

    retriever = SemanticRetriever(store, embedder)
    context = await retriever.retrieve("What is a relational database?")
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from study_rag.retrieval.models import Citation, RetrievalResult

if TYPE_CHECKING:
    from study_rag.ingestion.embedder import EmbeddingClient
    from study_rag.retrieval.base import VectorStoreBase
    from study_rag.retrieval.models import ScoredRecord

logger = logging.getLogger(__name__)

CONTEXT_SEPARATOR = "\n\n"


class SemanticRetriever:
    """High-level retriever over any :class:`VectorStoreBase`.

    Embedding failures are **not** swallowed here: an
    :class:`~study_rag.errors.EmbeddingUnavailable` raised while embedding
    the question reaches the caller.

    Parameters
    ----------
    store:
        A concrete vector-store backend.
    embedder:
        Client used to embed the question.
    default_k:
        Default number of results.
    score_threshold:
        Optional minimum similarity; weaker results are discarded.
    """

    def __init__(
        self,
        store: VectorStoreBase,
        embedder: EmbeddingClient,
        *,
        default_k: int = 6,
        score_threshold: float | None = None,
    ) -> None:
        self._store = store
        self._embedder = embedder
        self.default_k = default_k
        self.score_threshold = score_threshold

    # -- public API -----------------------------------------------------------

    async def search(self, question: str, *, k: int | None = None) -> list[RetrievalResult]:
        """Return the top-*k* passages for *question*, most similar first."""
        k = self.default_k if k is None else k
        if await asyncio.to_thread(self._store.count) == 0:
            logger.info("Knowledge base is empty; nothing to retrieve")
            return []
        query_embedding = await self._embedder.embed(question)
        hits = await asyncio.to_thread(self._store.search, query_embedding, k)
        results = self._to_results(hits)
        logger.info("Retrieved %d passage(s) for %.80r", len(results), question)
        return results

    async def retrieve(self, question: str, k: int | None = None) -> str:
        """Concatenate the top-*k* passages with blank lines; ``""`` when nothing is stored."""
        results = await self.search(question, k=k)
        return CONTEXT_SEPARATOR.join(r.content for r in results)

    # -- internals ------------------------------------------------------------

    def _to_results(self, hits: list[ScoredRecord]) -> list[RetrievalResult]:
        results: list[RetrievalResult] = []
        for hit in hits:
            if self.score_threshold is not None and hit.score < self.score_threshold:
                continue
            citation = Citation(
                document_id=hit.record.id,
                source=hit.record.file_name,
                rank=len(results) + 1,
                score=hit.score,
            )
            results.append(RetrievalResult(content=hit.record.text, citation=citation))
        return results

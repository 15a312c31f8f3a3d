"""Composition root — builds every component once from :class:`Settings`.

Usage::

    from study_rag.config import settings
    from study_rag.service import build_service

    service = build_service(settings)
    await service.ingestion.ingest(pdf_bytes, "networks.pdf", print)
    print(await service.answers.answer("What is a router?", "AS Level"))
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from study_rag.agent.graph import AnswerPipeline
from study_rag.agent.llm import CompletionClient, RefinementClient, get_completion_llm, get_refinement_llm
from study_rag.config import Settings
from study_rag.ingestion.embedder import EmbeddingClient, build_embeddings
from study_rag.ingestion.pipeline import IngestionPipeline
from study_rag.retrieval.base import VectorStoreBase
from study_rag.retrieval.retriever import SemanticRetriever

logger = logging.getLogger(__name__)


@dataclass
class StudyRagService:
    """Every collaborator the UI layer needs, wired together."""

    store: VectorStoreBase
    ingestion: IngestionPipeline
    retriever: SemanticRetriever
    answers: AnswerPipeline


def build_service(settings: Settings, store: VectorStoreBase | None = None) -> StudyRagService:
    """Construct the store, clients and orchestrators from *settings*.

    Parameters
    ----------
    settings:
        Application settings; the only place configuration is read.
    store:
        Optional pre-built store.  When *None*, a
        :class:`~study_rag.retrieval.chroma_store.ChromaVectorStore` is
        opened at ``settings.persist_directory``.
    """
    if store is None:
        from study_rag.retrieval.chroma_store import ChromaVectorStore

        store = ChromaVectorStore(settings.persist_directory, settings.collection_name)

    embedder = EmbeddingClient(
        build_embeddings(settings),
        dimension=settings.embedding_dimension,
        timeout=settings.request_timeout_seconds,
        reference_dimension=lambda: store.dimension,
    )
    ingestion = IngestionPipeline(
        store,
        embedder,
        chunk_size=settings.chunk_size,
        chunk_overlap=settings.chunk_overlap,
        max_document_bytes=settings.max_document_bytes,
        embed_retries=settings.embed_retries,
        retry_backoff=settings.retry_backoff_seconds,
    )
    retriever = SemanticRetriever(store, embedder, default_k=settings.default_top_k)
    answers = AnswerPipeline(
        retriever,
        CompletionClient(get_completion_llm(settings), timeout=settings.request_timeout_seconds),
        RefinementClient(get_refinement_llm(settings), timeout=settings.request_timeout_seconds),
    )
    logger.info(
        "Study RAG service ready (embedding=%s/%s, completion=%s)",
        settings.embedding_provider,
        settings.embedding_model,
        settings.completion_model,
    )
    return StudyRagService(store=store, ingestion=ingestion, retriever=retriever, answers=answers)

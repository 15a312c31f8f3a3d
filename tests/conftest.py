"""Shared pytest configuration and fixtures."""

from __future__ import annotations

from collections.abc import Sequence

import pytest
from langchain_core.embeddings import Embeddings

from study_rag.errors import DimensionMismatch
from study_rag.ingestion.embedder import EmbeddingClient
from study_rag.retrieval.base import VectorStoreBase
from study_rag.retrieval.models import ChunkRecord, ScoredRecord
from study_rag.retrieval.similarity import cosine_similarities, top_k_indices


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers."""
    config.addinivalue_line("markers", "integration: marks tests requiring external services")


class LookupEmbeddings(Embeddings):
    """Deterministic embeddings: exact-text lookup, optional failures.

    Texts missing from *vectors* fall back to *default*; texts listed in
    *failing* raise ``ConnectionError`` like an unreachable provider.
    """

    def __init__(
        self,
        vectors: dict[str, list[float]] | None = None,
        *,
        default: Sequence[float] = (1.0, 0.0),
        failing: set[str] | None = None,
    ) -> None:
        self.vectors = vectors or {}
        self.default = list(default)
        self.failing = failing or set()
        self.calls: list[str] = []

    def embed_query(self, text: str) -> list[float]:
        self.calls.append(text)
        if text in self.failing:
            raise ConnectionError("embedding service unreachable")
        return list(self.vectors.get(text, self.default))

    def embed_documents(self, texts: list[str]) -> list[list[float]]:
        return [self.embed_query(t) for t in texts]


@pytest.fixture()
def lookup_embeddings() -> LookupEmbeddings:
    return LookupEmbeddings()


@pytest.fixture()
def embedder(lookup_embeddings: LookupEmbeddings) -> EmbeddingClient:
    return EmbeddingClient(lookup_embeddings, timeout=5.0)


class InMemoryVectorStore(VectorStoreBase):
    """List-backed store honouring the same invariants as the Chroma backend."""

    def __init__(self) -> None:
        super().__init__("test-collection")
        self.records: list[ChunkRecord] = []

    @property
    def dimension(self) -> int | None:
        return self.records[0].dimension if self.records else None

    def put(self, record: ChunkRecord) -> None:
        if self.dimension is not None and record.dimension != self.dimension:
            raise DimensionMismatch(self.dimension, record.dimension)
        self.records.append(record)

    def search(self, query_embedding: list[float], k: int) -> list[ScoredRecord]:
        if not self.records:
            return []
        if len(query_embedding) != self.dimension:
            raise DimensionMismatch(self.dimension, len(query_embedding))
        scores = cosine_similarities(query_embedding, [r.embedding for r in self.records])
        order = list(range(len(self.records)))
        return [
            ScoredRecord(record=self.records[i], score=float(scores[i]))
            for i in top_k_indices(scores, order, k)
        ]

    def list_document_names(self) -> set[str]:
        return {r.file_name for r in self.records}

    def delete_by_file_name(self, file_name: str) -> int:
        before = len(self.records)
        self.records = [r for r in self.records if r.file_name != file_name]
        return before - len(self.records)

    def count(self) -> int:
        return len(self.records)


@pytest.fixture()
def memory_store() -> InMemoryVectorStore:
    return InMemoryVectorStore()

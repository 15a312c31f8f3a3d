"""
Retrieval — vector storage, exact cosine search, and context assembly.

This module wraps the vector store behind a clean interface so that the
ingestion and answer layers never need to know which DB is backing it.

Public surface
--------------
- :class:`SemanticRetriever` — question → top-k passages / context text.
- :class:`VectorStoreBase` — abstract backend.
- :class:`ChromaVectorStore` — default persistent Chroma backend.
- :class:`ChunkRecord`, :class:`ScoredRecord`, :class:`Citation`,
  :class:`RetrievalResult` — data models.
"""

from study_rag.retrieval.base import VectorStoreBase
from study_rag.retrieval.models import ChunkRecord, Citation, RetrievalResult, ScoredRecord
from study_rag.retrieval.retriever import SemanticRetriever

__all__ = [
    "ChromaVectorStore",
    "ChunkRecord",
    "Citation",
    "RetrievalResult",
    "ScoredRecord",
    "SemanticRetriever",
    "VectorStoreBase",
]


def __getattr__(name: str):  # noqa: ANN001
    """Lazy-import ChromaVectorStore to avoid pulling in chromadb at import time."""
    if name == "ChromaVectorStore":
        from study_rag.retrieval.chroma_store import ChromaVectorStore

        return ChromaVectorStore
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")

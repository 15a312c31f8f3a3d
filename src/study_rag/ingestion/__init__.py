"""
Ingestion — text extraction, chunking, and embedding into the vector store.

This module is responsible for the ETL-like pipeline that converts uploaded
documents (PDF, plain text, Markdown) into embedded chunk records stored in
the vector database.
"""

from study_rag.ingestion.chunker import SlidingWindowSplitter, chunk_text
from study_rag.ingestion.embedder import EmbeddingClient, build_embeddings
from study_rag.ingestion.pipeline import IngestionPipeline, IngestionReport, IngestionStage

__all__ = [
    "EmbeddingClient",
    "IngestionPipeline",
    "IngestionReport",
    "IngestionStage",
    "SlidingWindowSplitter",
    "build_embeddings",
    "chunk_text",
]

"""Ingestion orchestrator — document bytes → chunks → embeddings → vector store.

Documents are processed one at a time and, within a document, one chunk at
a time, so outbound embedding calls stay bounded and progress is reported
strictly in order.  A chunk whose embedding fails is logged and skipped;
only an extraction failure aborts the whole document.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Iterable
from enum import Enum
from typing import TYPE_CHECKING

from pydantic import BaseModel, Field

from study_rag.errors import DocumentTooLarge, EmbeddingUnavailable, ExtractionFailed, IngestionFailed
from study_rag.ingestion.chunker import DEFAULT_CHUNK_OVERLAP, DEFAULT_CHUNK_SIZE, SlidingWindowSplitter
from study_rag.ingestion.loader import extract_text
from study_rag.retrieval.models import ChunkRecord

if TYPE_CHECKING:
    from study_rag.ingestion.embedder import EmbeddingClient
    from study_rag.retrieval.base import VectorStoreBase

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[str], None]
Extractor = Callable[[bytes, str], str]

DEFAULT_MAX_DOCUMENT_BYTES = 20 * 1024 * 1024


class IngestionStage(str, Enum):
    """Human-readable labels reported through ``on_progress``."""

    EXTRACTING = "Extracting text from PDF..."
    CHUNKING = "Chunking text..."
    EMBEDDING = "Generating embeddings..."
    DONE = "Done!"


class IngestionReport(BaseModel):
    """Outcome of ingesting a single document."""

    file_name: str
    chunks_total: int = 0
    chunks_stored: int = 0
    chunks_failed: int = 0
    replaced: int = 0
    record_ids: list[str] = Field(default_factory=list)


class IngestionPipeline:
    """Drive a document through extraction, chunking, embedding and storage.

    Parameters
    ----------
    store:
        Destination vector store.
    embedder:
        Client used to embed every chunk.
    extractor:
        ``(bytes, file_name) -> text`` capability; defaults to the PDF/text loader.
    chunk_size / chunk_overlap:
        Chunker window, in characters.
    max_document_bytes:
        Documents larger than this are rejected before extraction.
    embed_retries:
        Extra attempts per chunk after an :class:`EmbeddingUnavailable`.
    retry_backoff:
        Base delay in seconds; doubles after every failed attempt.
    """

    def __init__(
        self,
        store: VectorStoreBase,
        embedder: EmbeddingClient,
        *,
        extractor: Extractor = extract_text,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        chunk_overlap: int = DEFAULT_CHUNK_OVERLAP,
        max_document_bytes: int = DEFAULT_MAX_DOCUMENT_BYTES,
        embed_retries: int = 0,
        retry_backoff: float = 1.0,
    ) -> None:
        self._store = store
        self._embedder = embedder
        self._extractor = extractor
        self._splitter = SlidingWindowSplitter(chunk_size=chunk_size, chunk_overlap=chunk_overlap)
        self.max_document_bytes = max_document_bytes
        self.embed_retries = embed_retries
        self.retry_backoff = retry_backoff

    async def ingest(
        self,
        data: bytes,
        file_name: str,
        on_progress: ProgressCallback | None = None,
        *,
        replace: bool = False,
    ) -> IngestionReport:
        """Ingest one document.

        Parameters
        ----------
        data:
            Raw document bytes.
        file_name:
            Display name; becomes the ``file_name`` of every stored chunk.
        on_progress:
            Receives an :class:`IngestionStage` label at each step.  Purely
            observational: exceptions it raises are logged and ignored.
        replace:
            Delete the document's existing chunks before storing the new
            ones.  Off by default, so re-uploading creates duplicates.

        Raises
        ------
        DocumentTooLarge
            When ``data`` exceeds :attr:`max_document_bytes`.
        IngestionFailed
            When text extraction fails.
        """
        if len(data) > self.max_document_bytes:
            raise DocumentTooLarge(file_name, len(data), self.max_document_bytes)

        report = IngestionReport(file_name=file_name)

        self._report(on_progress, IngestionStage.EXTRACTING)
        try:
            text = await asyncio.to_thread(self._extractor, data, file_name)
        except ExtractionFailed as exc:
            raise IngestionFailed(f"Could not extract text from {file_name!r}: {exc}") from exc

        self._report(on_progress, IngestionStage.CHUNKING)
        chunks = [c for c in self._splitter.split_text(text) if c.strip()]
        report.chunks_total = len(chunks)
        logger.info("Split %s into %d chunk(s)", file_name, len(chunks))

        if replace:
            report.replaced = await asyncio.to_thread(self._store.delete_by_file_name, file_name)

        self._report(on_progress, IngestionStage.EMBEDDING)
        for index, chunk in enumerate(chunks, 1):
            try:
                embedding = await self._embed_with_retry(chunk)
            except EmbeddingUnavailable as exc:
                report.chunks_failed += 1
                logger.warning("Skipping chunk %d/%d of %s: %s", index, len(chunks), file_name, exc)
                continue
            record = ChunkRecord(file_name=file_name, text=chunk, embedding=embedding)
            await asyncio.to_thread(self._store.put, record)
            report.chunks_stored += 1
            report.record_ids.append(record.id)

        self._report(on_progress, IngestionStage.DONE)
        logger.info(
            "Ingested %s: %d/%d chunk(s) stored, %d failed",
            file_name,
            report.chunks_stored,
            report.chunks_total,
            report.chunks_failed,
        )
        return report

    async def ingest_many(
        self,
        files: Iterable[tuple[bytes, str]],
        on_progress: ProgressCallback | None = None,
        *,
        replace: bool = False,
    ) -> list[IngestionReport]:
        """Ingest ``(bytes, file_name)`` pairs sequentially, one file at a time."""
        reports: list[IngestionReport] = []
        for data, file_name in files:
            reports.append(await self.ingest(data, file_name, on_progress, replace=replace))
        return reports

    # -- internals ------------------------------------------------------------

    async def _embed_with_retry(self, text: str) -> list[float]:
        attempt = 0
        while True:
            try:
                return await self._embedder.embed(text)
            except EmbeddingUnavailable as exc:
                attempt += 1
                if attempt > self.embed_retries:
                    raise
                wait = self.retry_backoff * 2 ** (attempt - 1)
                logger.warning("Retry %d/%d for embedding (wait %.1fs): %s", attempt, self.embed_retries, wait, exc)
                await asyncio.sleep(wait)

    @staticmethod
    def _report(on_progress: ProgressCallback | None, stage: IngestionStage) -> None:
        if on_progress is None:
            return
        try:
            on_progress(stage.value)
        except Exception:
            logger.exception("Progress callback failed at stage %r", stage.value)

"""Chroma implementation of the vector-store abstraction.

Chroma provides the durable on-disk collection (``PersistentClient``);
ranking is done here with an exact cosine scan so that ordering, tie
breaking and zero-norm handling are fully deterministic.
"""

from __future__ import annotations

import json
import logging
import threading
from pathlib import Path
from typing import Any

import chromadb
from chromadb.config import Settings as ChromaSettings

from study_rag.errors import DimensionMismatch, DuplicateRecordId
from study_rag.retrieval.base import VectorStoreBase
from study_rag.retrieval.models import ChunkRecord, ScoredRecord
from study_rag.retrieval.similarity import cosine_similarities, top_k_indices

logger = logging.getLogger(__name__)

FILE_NAME_KEY = "file_name"
SEQ_KEY = "seq"
# Chroma keeps embeddings as float32; the exact vector rides along as JSON.
EMBEDDING_KEY = "embedding_json"


class ChromaVectorStore(VectorStoreBase):
    """Chroma-backed vector store persisted to a local directory.

    Every record carries three metadata fields: ``file_name`` (the grouping
    key), ``seq``, a monotonically increasing insertion counter that is
    restored on open and used to break similarity ties, and
    ``embedding_json``, the full-precision vector that ranking and returned
    records are built from.

    Parameters
    ----------
    persist_directory:
        Directory holding the Chroma database files.
    collection_name:
        Name of the Chroma collection.
    """

    def __init__(
        self,
        persist_directory: str | Path,
        collection_name: str = "study_notes",
    ) -> None:
        super().__init__(collection_name)
        self._persist_directory = Path(persist_directory)
        self._persist_directory.mkdir(parents=True, exist_ok=True)
        self._client = chromadb.PersistentClient(
            path=str(self._persist_directory),
            settings=ChromaSettings(anonymized_telemetry=False),
        )
        self._collection = self._client.get_or_create_collection(collection_name)
        self._lock = threading.RLock()
        self._dimension: int | None = None
        self._next_seq = 0
        self._restore_state()

    # -- VectorStoreBase overrides --------------------------------------------

    @property
    def dimension(self) -> int | None:
        return self._dimension

    def put(self, record: ChunkRecord) -> None:
        with self._lock:
            if self._collection.count() == 0:
                # An emptied collection may still remember the old dimension.
                self._reset_collection()
            elif record.dimension != self._dimension:
                raise DimensionMismatch(self._dimension, record.dimension)
            elif self._collection.get(ids=[record.id], include=[])["ids"]:
                raise DuplicateRecordId(f"Record {record.id!r} already exists")

            self._collection.add(
                ids=[record.id],
                embeddings=[record.embedding],
                documents=[record.text],
                metadatas=[
                    {
                        FILE_NAME_KEY: record.file_name,
                        SEQ_KEY: self._next_seq,
                        EMBEDDING_KEY: json.dumps(record.embedding),
                    }
                ],
            )
            self._next_seq += 1
            self._dimension = record.dimension

    def search(self, query_embedding: list[float], k: int) -> list[ScoredRecord]:
        with self._lock:
            if self._dimension is None:
                return []
            if len(query_embedding) != self._dimension:
                raise DimensionMismatch(self._dimension, len(query_embedding))
            rows = self._collection.get(include=["documents", "metadatas"])

        ids = rows["ids"]
        if not ids or k <= 0:
            return []
        metas = rows["metadatas"]
        vectors = [json.loads(meta[EMBEDDING_KEY]) for meta in metas]
        scores = cosine_similarities(query_embedding, vectors)
        order = [int(meta[SEQ_KEY]) for meta in metas]

        hits: list[ScoredRecord] = []
        for i in top_k_indices(scores, order, k):
            record = ChunkRecord(
                id=ids[i],
                file_name=metas[i][FILE_NAME_KEY],
                text=rows["documents"][i],
                embedding=vectors[i],
            )
            hits.append(ScoredRecord(record=record, score=float(scores[i])))
        return hits

    def list_document_names(self) -> set[str]:
        with self._lock:
            metas = self._collection.get(include=["metadatas"])["metadatas"] or []
        return {meta[FILE_NAME_KEY] for meta in metas}

    def delete_by_file_name(self, file_name: str) -> int:
        with self._lock:
            ids = self._collection.get(where={FILE_NAME_KEY: file_name}, include=[])["ids"]
            if ids:
                self._collection.delete(ids=ids)
            if self._collection.count() == 0:
                self._dimension = None
        logger.info("Deleted %d chunk(s) of %r", len(ids), file_name)
        return len(ids)

    def count(self) -> int:
        with self._lock:
            return self._collection.count()

    def health_check(self) -> bool:
        try:
            self._client.heartbeat()
            return True
        except Exception:
            logger.warning("Chroma health-check failed", exc_info=True)
            return False

    # -- internals ------------------------------------------------------------

    def _restore_state(self) -> None:
        """Recover the established dimension and next insertion sequence from disk."""
        rows: dict[str, Any] = self._collection.get(include=["metadatas"])
        metas = rows.get("metadatas") or []
        if metas:
            self._dimension = len(json.loads(metas[0][EMBEDDING_KEY]))
            self._next_seq = max(int(meta[SEQ_KEY]) for meta in metas) + 1
        logger.info(
            "Opened collection %r at %s (%d records, dim=%s)",
            self.collection_name,
            self._persist_directory,
            len(rows["ids"]),
            self._dimension,
        )

    def _reset_collection(self) -> None:
        self._client.delete_collection(self.collection_name)
        self._collection = self._client.get_or_create_collection(self.collection_name)
        self._dimension = None

"""Abstract base class for vector-store backends.

Adding a new backend only requires subclassing :class:`VectorStoreBase`
and implementing the abstract methods.  The ingestion and retrieval
orchestrators are backend-agnostic.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from study_rag.retrieval.models import ChunkRecord, ScoredRecord


class VectorStoreBase(ABC):
    """Backend-agnostic store of :class:`ChunkRecord` objects.

    Invariants every backend must keep:

    * record ids are unique;
    * every stored embedding has the same length ``dimension`` — the first
      record put into an empty store establishes it;
    * writes are atomic with respect to each other, and readers never see
      a partially written record.

    Parameters
    ----------
    collection_name:
        Logical name of the collection / index / namespace.
    """

    def __init__(self, collection_name: str) -> None:
        self.collection_name = collection_name

    # -- required overrides ---------------------------------------------------

    @abstractmethod
    def put(self, record: ChunkRecord) -> None:
        """Insert *record*.

        Raises
        ------
        DimensionMismatch
            When ``len(record.embedding)`` differs from :attr:`dimension`.
        DuplicateRecordId
            When a record with the same id is already stored.
        """
        ...

    @abstractmethod
    def search(self, query_embedding: list[float], k: int) -> list[ScoredRecord]:
        """Return the *k* records most cosine-similar to *query_embedding*.

        Results are ordered by descending similarity; ties go to the
        earlier-inserted record.  Fewer than *k* results are returned when
        the store holds fewer records.

        Raises
        ------
        DimensionMismatch
            When the query length differs from :attr:`dimension`.
        """
        ...

    @abstractmethod
    def list_document_names(self) -> set[str]:
        """Return the distinct ``file_name`` values currently stored."""
        ...

    @abstractmethod
    def delete_by_file_name(self, file_name: str) -> int:
        """Remove every record of *file_name*; return how many were removed.  Idempotent."""
        ...

    @abstractmethod
    def count(self) -> int:
        """Number of stored records."""
        ...

    @property
    @abstractmethod
    def dimension(self) -> int | None:
        """Established embedding length, or ``None`` while the store is empty."""
        ...

    # -- optional overrides ---------------------------------------------------

    def health_check(self) -> bool:
        """Return ``True`` when the backend is reachable and ready."""
        return True

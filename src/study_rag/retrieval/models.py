"""Domain models for stored chunks, retrieval results and citation tracking."""

from __future__ import annotations

import math
from datetime import datetime, timezone
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ChunkRecord(BaseModel):
    """The unit of storage: one embedded chunk of one document.

    Attributes
    ----------
    id:
        Globally unique identifier, assigned at creation.
    file_name:
        Display name of the originating document.  Many records share
        one ``file_name``; it is the grouping key for listing and deletion.
    text:
        The chunk's plain-text content (never blank).
    embedding:
        The chunk's vector.  Every component must be finite.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: uuid4().hex)
    file_name: str = Field(min_length=1)
    text: str
    embedding: list[float] = Field(min_length=1)

    @field_validator("text")
    @classmethod
    def _text_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("chunk text must not be empty")
        return value

    @field_validator("embedding")
    @classmethod
    def _embedding_finite(cls, value: list[float]) -> list[float]:
        if not all(math.isfinite(x) for x in value):
            raise ValueError("embedding components must be finite")
        return value

    @property
    def dimension(self) -> int:
        return len(self.embedding)


class ScoredRecord(BaseModel):
    """A stored record paired with its cosine similarity to a query."""

    model_config = ConfigDict(frozen=True)

    record: ChunkRecord
    score: float


class Citation(BaseModel):
    """Provenance record linking a retrieved chunk back to its source document.

    Attributes
    ----------
    citation_id:
        Unique identifier for this citation instance.
    document_id:
        The vector-store ID of the chunk (``None`` when unknown).
    source:
        Display name of the document the chunk came from.
    rank:
        1-based position in the result list.
    score:
        Cosine similarity returned by the vector store.
    retrieved_at:
        UTC timestamp of when the retrieval happened.
    """

    citation_id: str = Field(default_factory=lambda: uuid4().hex[:12])
    document_id: str | None = None
    source: str = "unknown"
    rank: int | None = None
    score: float | None = None
    retrieved_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    def short_ref(self) -> str:
        """Return a compact ``[source#rank]`` reference string."""
        rank = self.rank if self.rank is not None else "?"
        return f"[{self.source}#{rank}]"


class RetrievalResult(BaseModel):
    """A single retrieved passage together with its citation."""

    content: str
    citation: Citation

    def __str__(self) -> str:  # noqa: D105
        return f"{self.citation.short_ref()} {self.content[:120]}…"

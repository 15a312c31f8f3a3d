"""Error taxonomy shared by the ingestion, retrieval and answer pipelines.

Adapters translate provider-specific exceptions into these types; the
orchestrators decide once whether to retry, fall back, or propagate.
"""

from __future__ import annotations

from enum import Enum


class StudyRagError(Exception):
    """Base class for every error raised by :mod:`study_rag`."""


class ExtractionFailed(StudyRagError):
    """Plain text could not be extracted from the document bytes."""


class EmbeddingUnavailable(StudyRagError):
    """The embedding capability was unreachable, timed out, or returned a malformed vector."""


class DimensionMismatch(StudyRagError):
    """A vector's length differs from the store's established dimension.

    This is a data-integrity error (typically the embedding model changed
    without clearing the store) and is never retried.
    """

    def __init__(self, expected: int, actual: int) -> None:
        super().__init__(f"Embedding dimension mismatch: store holds {expected}-d vectors, got {actual}-d")
        self.expected = expected
        self.actual = actual


class DuplicateRecordId(StudyRagError):
    """A chunk record with the same id already exists in the store."""


class IngestionFailed(StudyRagError):
    """A document could not be ingested at all (text extraction failed)."""


class DocumentTooLarge(StudyRagError):
    """A document exceeds the configured byte-size ceiling and was rejected before extraction."""

    def __init__(self, file_name: str, size: int, limit: int) -> None:
        super().__init__(f"{file_name!r} is {size} bytes; the limit is {limit} bytes")
        self.file_name = file_name
        self.size = size
        self.limit = limit


class FailureReason(str, Enum):
    """Why an external completion call failed."""

    UNREACHABLE = "unreachable"
    TIMEOUT = "timeout"
    BAD_INPUT = "bad_input"
    PROVIDER_ERROR = "provider_error"


class CompletionFailed(StudyRagError):
    """The completion capability failed; always fatal to the current request."""

    def __init__(self, message: str, reason: FailureReason = FailureReason.PROVIDER_ERROR) -> None:
        super().__init__(message)
        self.reason = reason


class RefinementFailed(StudyRagError):
    """The refinement capability failed; callers fall back to the base answer."""

"""Text chunking — fixed-size character windows with exact overlap.

Sizes and overlaps are measured in **characters**.  Segment *i* starts at
``i * (chunk_size - chunk_overlap)`` and the last segment ends exactly at the
end of the text, so dropping the first ``chunk_overlap`` characters of every
segment after the first and concatenating reconstructs the input.
"""

from __future__ import annotations

from typing import Any

from langchain_text_splitters import TextSplitter

DEFAULT_CHUNK_SIZE = 1000
DEFAULT_CHUNK_OVERLAP = 200


class SlidingWindowSplitter(TextSplitter):
    """Deterministic, lossless character-window splitter.

    Unlike the separator-aware splitters it never strips whitespace or
    shifts boundaries, which keeps the overlap exact.
    """

    def __init__(
        self,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        chunk_overlap: int = DEFAULT_CHUNK_OVERLAP,
        **kwargs: Any,
    ) -> None:
        if chunk_size <= 0:
            raise ValueError(f"chunk_size must be positive, got {chunk_size}")
        if not 0 <= chunk_overlap < chunk_size:
            raise ValueError(
                f"chunk_overlap ({chunk_overlap}) must be >= 0 and < chunk_size ({chunk_size})"
            )
        kwargs.setdefault("strip_whitespace", False)
        super().__init__(chunk_size=chunk_size, chunk_overlap=chunk_overlap, **kwargs)
        self._window = chunk_size
        self._stride = chunk_size - chunk_overlap

    def split_text(self, text: str) -> list[str]:
        if not text:
            return []
        segments: list[str] = []
        start = 0
        while True:
            end = min(start + self._window, len(text))
            segments.append(text[start:end])
            if end == len(text):
                return segments
            start += self._stride


def chunk_text(
    text: str,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    chunk_overlap: int = DEFAULT_CHUNK_OVERLAP,
) -> list[str]:
    """Split *text* into overlapping, non-empty segments of at most *chunk_size* characters."""
    return SlidingWindowSplitter(chunk_size=chunk_size, chunk_overlap=chunk_overlap).split_text(text)

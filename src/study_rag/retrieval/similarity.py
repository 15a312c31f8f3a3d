"""Exact cosine ranking used by the vector store.

Search is a full linear scan over every stored vector.  That is fine for a
single user's notes (thousands of chunks); it is a scalability ceiling, not
a correctness concern.
"""

from __future__ import annotations

from collections.abc import Sequence

import numpy as np


def cosine_similarities(query: Sequence[float], matrix: Sequence[Sequence[float]] | np.ndarray) -> np.ndarray:
    """Return ``cos(query, row)`` for every row of *matrix*.

    Rows (or a query) with zero norm score ``0.0`` against everything.
    """
    q = np.asarray(query, dtype=np.float64)
    m = np.asarray(matrix, dtype=np.float64)
    if m.size == 0:
        return np.zeros(0, dtype=np.float64)
    m = m.reshape(len(m), -1)

    row_norms = np.linalg.norm(m, axis=1)
    q_norm = float(np.linalg.norm(q))
    denom = row_norms * q_norm
    dots = m @ q

    scores = np.zeros(len(m), dtype=np.float64)
    nonzero = denom > 0
    scores[nonzero] = dots[nonzero] / denom[nonzero]
    # Rounding can push |cos| a hair past 1.
    return np.clip(scores, -1.0, 1.0)


def top_k_indices(scores: np.ndarray, order: Sequence[int], k: int) -> list[int]:
    """Indices of the *k* best scores, descending; ties go to the lowest *order* value.

    *order* is the insertion sequence of each row, so earlier-inserted
    records win ties.
    """
    if k <= 0 or len(scores) == 0:
        return []
    # lexsort sorts by the last key first: primary -score, secondary order.
    ranked = np.lexsort((np.asarray(order), -scores))
    return [int(i) for i in ranked[:k]]

"""
Cosine similarity and threshold-based duplicate detection.

Scores are computed with numpy in batch form; the single-pair helper
delegates to the batch path so both produce bit-identical values.
Duplicate checks against the store fail open: if the store cannot be
read the chunk is treated as unique and ingestion continues.

Dependencies: numpy, kb_engine.boundary.vdb
System role: Similarity engine for store-level deduplication and ranking
"""

import logging
from typing import Sequence, TYPE_CHECKING
from uuid import UUID

import numpy as np

from kb_engine.core.exceptions import EmbeddingDimensionError, VectorStoreError

if TYPE_CHECKING:
    from kb_engine.boundary.vdb.vector_store import VectorStore

logger = logging.getLogger(__name__)

DEFAULT_DUPLICATE_THRESHOLD = 0.85


def similarity_scores(
    candidate: Sequence[float],
    vectors: Sequence[Sequence[float]] | np.ndarray,
) -> np.ndarray:
    """
    Cosine similarity between one vector and each row of a matrix.

    Zero vectors (on either side) score 0.0. Results are clipped to [-1, 1].

    Args:
        candidate: Query or candidate vector
        vectors: Existing vectors, one per row

    Returns:
        np.ndarray: One float64 score per row, empty when vectors is empty

    Raises:
        EmbeddingDimensionError: When row width differs from the candidate length
    """
    query = np.asarray(candidate, dtype=np.float64)
    if len(vectors) == 0:
        return np.zeros(0, dtype=np.float64)

    matrix = np.asarray(vectors, dtype=np.float64)
    if matrix.ndim != 2 or matrix.shape[1] != query.shape[0]:
        actual = matrix.shape[1] if matrix.ndim == 2 else -1
        raise EmbeddingDimensionError(expected=query.shape[0], actual=actual)

    query_norm = np.linalg.norm(query)
    row_norms = np.linalg.norm(matrix, axis=1)
    if query_norm == 0.0:
        return np.zeros(matrix.shape[0], dtype=np.float64)

    denominators = row_norms * query_norm
    dots = matrix @ query
    scores = np.divide(
        dots,
        denominators,
        out=np.zeros_like(dots),
        where=denominators != 0.0,
    )
    return np.clip(scores, -1.0, 1.0)


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """
    Cosine similarity of two vectors, 0.0 if either is the zero vector.

    Args:
        a: First vector
        b: Second vector

    Returns:
        float: Similarity in [-1, 1]
    """
    return float(similarity_scores(a, [b])[0])


class DuplicateDetector:
    """
    Threshold check of a candidate vector against existing vectors.

    The boundary is inclusive: a similarity exactly equal to the threshold
    counts as a duplicate. The store-level check is a linear scan over every
    vector in the knowledge base; callers only depend on ``is_duplicate`` so
    an approximate index can be placed behind it later.
    """

    def __init__(
        self,
        vector_store: "VectorStore",
        threshold: float = DEFAULT_DUPLICATE_THRESHOLD,
    ) -> None:
        """
        Initialize detector.

        Args:
            vector_store: Store scanned for existing vectors
            threshold: Inclusive similarity threshold
        """
        self.vector_store = vector_store
        self.threshold = threshold

    def is_duplicate_score(self, score: float) -> bool:
        """True when a similarity score meets the threshold."""
        return score >= self.threshold

    def matches_any(
        self,
        candidate: Sequence[float],
        vectors: Sequence[Sequence[float]],
    ) -> bool:
        """
        Check a candidate against an in-memory set of vectors.

        Args:
            candidate: Candidate vector
            vectors: Vectors to compare against

        Returns:
            bool: True if any vector is at or above the threshold
        """
        if len(vectors) == 0:
            return False
        scores = similarity_scores(candidate, vectors)
        return bool(np.any(scores >= self.threshold))

    async def is_duplicate(
        self,
        candidate: Sequence[float],
        knowledge_base_id: UUID,
    ) -> bool:
        """
        Check a candidate against every vector stored for a knowledge base.

        Args:
            candidate: Candidate vector
            knowledge_base_id: Deduplication scope

        Returns:
            bool: True if a stored vector is at or above the threshold;
                False when none is, or when the store could not be read

        Raises:
            EmbeddingDimensionError: When stored vectors have another dimension
        """
        try:
            existing = await self.vector_store.get_vectors(knowledge_base_id)
        except VectorStoreError as e:
            logger.warning(
                f"{__name__}:is_duplicate - Store unavailable, accepting chunk",
                extra={"knowledge_base_id": knowledge_base_id, "error": str(e)},
            )
            return False

        return self.matches_any(candidate, existing)

"""Stateless face recognizer using Euclidean distance.

This module provides 1:1 verification and 1:N identification of a query
embedding against a caller-supplied list of identity records.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence

import numpy as np

from faceauth.embedding import FaceIdentityRecord
from faceauth.logging_config import get_logger
from faceauth.utils import (
    VectorLike,
    as_embedding,
    average_and_normalize,
    check_same_dimension,
    euclidean_distance,
)

logger = get_logger(__name__)


@dataclass(frozen=True)
class Match:
    """Best candidate found by FaceRecognizer.best_match().

    Attributes:
        identity_id: Matched identity
        distance: L2 distance between query and candidate (lower = closer)
    """

    identity_id: str
    distance: float


class FaceRecognizer:
    """Stateless recognizer comparing embeddings by L2 distance.

    Holds no data, so one instance can be shared freely between threads.
    For L2-normalized embeddings distances lie in [0, 2]; a distance is a
    match only when strictly below the threshold.

    Example:
        >>> recognizer = FaceRecognizer()
        >>> recognizer.recognize(query, records, threshold=1.0)
        'alice'
    """

    def distance(self, a: VectorLike, b: VectorLike) -> float:
        """Euclidean distance between two embeddings.

        Raises:
            DimensionMismatchError: If the lengths differ.
        """
        return euclidean_distance(as_embedding(a), as_embedding(b))

    def verify(self, a: VectorLike, b: VectorLike, threshold: float) -> bool:
        """1:1 verification: True iff distance(a, b) < threshold."""
        return self.distance(a, b) < threshold

    def best_match(
        self,
        query: VectorLike,
        candidates: Sequence[FaceIdentityRecord],
        threshold: float,
    ) -> Optional[Match]:
        """Find the closest candidate under the threshold.

        Scans every candidate. A candidate replaces the current best only
        when its distance is strictly smaller than the best so far and than
        the threshold, so the first of several equally close candidates wins.

        Args:
            query: Query embedding, shape [D]
            candidates: Known identities, in priority order for ties
            threshold: L2 distance cutoff (exclusive)

        Returns:
            Match for the closest candidate, or None if no candidate is
            closer than the threshold (including an empty candidate list).

        Raises:
            DimensionMismatchError: If a candidate's dimension differs from
                the query's.
        """
        q = as_embedding(query)

        best: Optional[Match] = None
        min_distance = float("inf")

        for record in candidates:
            check_same_dimension(q, record.embedding, record.identity_id)
            dist = euclidean_distance(q, record.embedding)

            if dist < min_distance and dist < threshold:
                min_distance = dist
                best = Match(record.identity_id, dist)

        if best is None:
            logger.debug(
                f"No match among {len(candidates)} candidate(s) (threshold={threshold})"
            )
        else:
            logger.debug(
                f"Best match '{best.identity_id}' at distance={best.distance:.4f} "
                f"(threshold={threshold})"
            )

        return best

    def recognize(
        self,
        query: VectorLike,
        candidates: Sequence[FaceIdentityRecord],
        threshold: float,
    ) -> Optional[str]:
        """1:N identification returning the matched identity id or None."""
        match = self.best_match(query, candidates, threshold)
        return match.identity_id if match is not None else None

    def average_embeddings(self, vectors: Sequence[VectorLike]) -> np.ndarray:
        """Average several embeddings and L2-normalize the result.

        Raises:
            EmptyInputError: If vectors is empty.
            DimensionMismatchError: If the vectors have different lengths.
        """
        return average_and_normalize([as_embedding(v) for v in vectors])

    def __repr__(self) -> str:
        return "FaceRecognizer()"

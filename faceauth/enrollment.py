"""Enrollment manager for registering new persons.

This module accumulates embedding samples per identity, rejects samples that
are inconsistent with the previous one, and reduces a completed sample set to
one canonical L2-normalized embedding.
"""

from __future__ import annotations

import threading
from collections import deque
from typing import Deque, Dict, Optional, Set

import numpy as np

from faceauth.config import FaceConfig
from faceauth.errors import DimensionMismatchError, InconsistentSampleError
from faceauth.logging_config import get_logger
from faceauth.utils import (
    VectorLike,
    as_embedding,
    average_and_normalize,
    check_same_dimension,
    euclidean_distance,
)

logger = get_logger(__name__)


class EnrollmentManager:
    """Collects samples per person and builds their final embedding.

    Each identity owns a FIFO buffer of at most
    ``config.required_enrollment_samples`` samples. When full, a new sample
    evicts the oldest one. An identity is complete when its buffer holds
    exactly the required number of samples.

    A new sample is compared with the most recently added sample only (not
    with the running average), so a slow drift over many samples can pass.
    Changing this would alter which enrollments are accepted.

    Attributes:
        config: Shared face configuration

    Example:
        >>> manager = EnrollmentManager(FaceConfig(required_enrollment_samples=3))
        >>> for emb in embeddings:
        ...     manager.add_sample("alice", emb)
        >>> if manager.is_complete("alice"):
        ...     final = manager.build_final_embedding("alice")
    """

    def __init__(self, config: FaceConfig):
        """Initialize enrollment manager.

        Args:
            config: Face configuration (sample count, consistency bound, dimension)
        """
        self.config = config
        self._samples: Dict[str, Deque[np.ndarray]] = {}
        self._lock = threading.RLock()

        logger.info(
            f"Initialized EnrollmentManager: "
            f"required_samples={config.required_enrollment_samples}, "
            f"consistency_bound={config.consistency_bound}"
        )

    def add_sample(self, identity_id: str, vector: VectorLike) -> None:
        """Add an embedding sample for a person.

        Args:
            identity_id: Person's identifier
            vector: Embedding sample, shape [D]

        Raises:
            ValueError: If identity_id is empty or the vector is malformed.
            DimensionMismatchError: If the vector length differs from the
                configured dimension or from the previous samples.
            InconsistentSampleError: If the sample is farther than
                ``config.consistency_bound`` from the previous sample. The
                buffer is left unmodified.
        """
        if not isinstance(identity_id, str) or not identity_id:
            raise ValueError(f"identity_id must be a non-empty string, got {identity_id!r}")

        sample = as_embedding(vector)

        expected_dim = self.config.embedding_dimension
        if expected_dim is not None and sample.shape[0] != expected_dim:
            raise DimensionMismatchError(expected_dim, sample.shape[0], identity_id)

        with self._lock:
            buffer = self._samples.get(identity_id)

            if buffer:
                last = buffer[-1]
                check_same_dimension(last, sample, identity_id)
                distance = euclidean_distance(last, sample)

                if distance > self.config.consistency_bound:
                    logger.warning(
                        f"Rejected sample for '{identity_id}': "
                        f"distance={distance:.3f} > bound={self.config.consistency_bound}"
                    )
                    raise InconsistentSampleError(
                        identity_id, distance, self.config.consistency_bound
                    )

                logger.debug(f"Sample for '{identity_id}' accepted (distance={distance:.3f})")

            if buffer is None:
                buffer = deque(maxlen=self.config.required_enrollment_samples)
                self._samples[identity_id] = buffer

            was_complete = self._is_complete_locked(identity_id)
            buffer.append(sample)

            logger.debug(
                f"Person '{identity_id}' has "
                f"{len(buffer)}/{self.config.required_enrollment_samples} samples"
            )

            if not was_complete and self._is_complete_locked(identity_id):
                logger.info(f"Enrollment complete for '{identity_id}'")

    def _is_complete_locked(self, identity_id: str) -> bool:
        buffer = self._samples.get(identity_id)
        return buffer is not None and len(buffer) == self.config.required_enrollment_samples

    def sample_count(self, identity_id: str) -> int:
        """Number of buffered samples for a person (0 if unknown)."""
        with self._lock:
            buffer = self._samples.get(identity_id)
            return len(buffer) if buffer is not None else 0

    def is_complete(self, identity_id: str) -> bool:
        """Check if enrollment is complete for a person."""
        with self._lock:
            return self._is_complete_locked(identity_id)

    def build_final_embedding(self, identity_id: str) -> Optional[np.ndarray]:
        """Build the averaged, L2-normalized embedding for a person.

        The buffer is not consumed, so repeated calls return the same result
        while the samples are unchanged.

        Args:
            identity_id: Person's identifier

        Returns:
            Final embedding, shape [D], or None if enrollment is incomplete.
            If the samples average to the zero vector, the zero vector is
            returned un-normalized.
        """
        with self._lock:
            if not self._is_complete_locked(identity_id):
                return None
            samples = list(self._samples[identity_id])

        return average_and_normalize(samples)

    def enrolled_identities(self) -> Set[str]:
        """Identities whose enrollment is complete (in-progress ones excluded)."""
        with self._lock:
            return {pid for pid in self._samples if self._is_complete_locked(pid)}

    def clear_identity(self, identity_id: str) -> None:
        """Drop all samples for a person; no-op if unknown."""
        with self._lock:
            removed = self._samples.pop(identity_id, None)

        if removed is not None:
            logger.info(f"Cleared enrollment for '{identity_id}' ({len(removed)} samples)")

    def clear_all(self) -> None:
        """Drop all enrollment data."""
        with self._lock:
            count = len(self._samples)
            self._samples.clear()

        logger.info(f"Cleared enrollment data for {count} person(s)")

    def __repr__(self) -> str:
        with self._lock:
            in_progress = len(self._samples)
            complete = sum(1 for pid in self._samples if self._is_complete_locked(pid))
        return (
            f"EnrollmentManager(required_samples={self.config.required_enrollment_samples}, "
            f"identities={in_progress}, complete={complete})"
        )

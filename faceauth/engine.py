"""Engine facade for face authentication.

This module wires the external pipeline (detect → quality gate → align →
embed → L2-normalize) to the enrollment manager and recognizer. The engine
keeps no face data beyond in-memory enrollment buffers and the imported
candidate pool; persistence is left to the application.
"""

from __future__ import annotations

from typing import Iterable, List, Optional, Set, Tuple

import numpy as np

from faceauth.config import FaceConfig, get_config
from faceauth.embedding import FaceIdentityRecord
from faceauth.enrollment import EnrollmentManager
from faceauth.errors import (
    DimensionMismatchError,
    FaceQualityError,
    MultipleFacesError,
    NoFaceDetectedError,
)
from faceauth.interfaces import Aligner, Detector, Embedder
from faceauth.logging_config import get_logger
from faceauth.quality import QualityGate
from faceauth.recognizer import FaceRecognizer
from faceauth.utils import VectorLike, as_embedding, l2_normalize

logger = get_logger(__name__)


class FaceAuthEngine:
    """Facade combining extraction, enrollment and recognition.

    Workflow:
    1. extract_embedding() per image (requires detector, aligner, embedder)
    2. enroll_sample() until is_enrollment_complete()
    3. export_embeddings() and persist the records
    4. import_embeddings() on startup, then recognize() queries

    Attributes:
        config: Shared face configuration
        quality_gate: Detection quality gate
        enrollment: Enrollment manager
        recognizer: Stateless recognizer

    Example:
        >>> engine = FaceAuthEngine(detector=det, aligner=al, embedder=emb)
        >>> for image in images:
        ...     engine.enroll_sample("alice", engine.extract_embedding(image))
        >>> records = engine.export_embeddings()
        >>> engine.import_embeddings(records)
        >>> engine.recognize(engine.extract_embedding(query_image))
        'alice'
    """

    def __init__(
        self,
        config: Optional[FaceConfig] = None,
        detector: Optional[Detector] = None,
        aligner: Optional[Aligner] = None,
        embedder: Optional[Embedder] = None,
    ):
        """Initialize engine.

        Args:
            config: Face configuration (defaults to get_config())
            detector: Face detector backend (needed for extract_embedding)
            aligner: Face aligner backend (needed for extract_embedding)
            embedder: Embedding backend (needed for extract_embedding)
        """
        self.config = config if config is not None else get_config()
        self.detector = detector
        self.aligner = aligner
        self.embedder = embedder

        self.quality_gate = QualityGate(self.config)
        self.enrollment = EnrollmentManager(self.config)
        self.recognizer = FaceRecognizer()

        self._candidates: Tuple[FaceIdentityRecord, ...] = ()

        logger.info(
            f"Initialized FaceAuthEngine with threshold={self.config.recognition_threshold}, "
            f"required_samples={self.config.required_enrollment_samples}"
        )

    # ---------- Extraction ----------

    def extract_embedding(self, image: np.ndarray) -> np.ndarray:
        """Extract an L2-normalized embedding from an image with one face.

        Args:
            image: Decoded image, shape [H, W, 3]

        Returns:
            Normalized float32 embedding, shape [D].

        Raises:
            RuntimeError: If detector, aligner or embedder is not configured.
            NoFaceDetectedError: If no face is found.
            MultipleFacesError: If more than one face is found.
            FaceQualityError: If the face fails the quality gate.
            DimensionMismatchError: If the embedder output does not have the
                configured dimension.
        """
        if self.detector is None or self.aligner is None or self.embedder is None:
            raise RuntimeError(
                "extract_embedding requires detector, aligner and embedder"
            )

        detections = self.detector.detect(image)

        if len(detections) == 0:
            raise NoFaceDetectedError()

        if len(detections) > 1:
            raise MultipleFacesError(len(detections))

        detection = detections[0]

        report = self.quality_gate.evaluate(detection)
        if not report.accepted:
            logger.warning(f"Face rejected: {report.message}")
            raise FaceQualityError(report)

        aligned = self.aligner.align(image, detection.kps)
        raw = self._check_dimension(self.embedder.embed(aligned), "embedder output")

        embedding = l2_normalize(raw)

        logger.debug(
            f"Extracted {embedding.shape[0]}-D embedding "
            f"(score={detection.score:.2f}, roll={report.roll_angle:.1f})"
        )

        return embedding

    # ---------- Enrollment ----------

    def enroll_sample(self, identity_id: str, embedding: VectorLike) -> None:
        """Add an enrollment sample (see EnrollmentManager.add_sample)."""
        self.enrollment.add_sample(identity_id, embedding)

    def enrollment_sample_count(self, identity_id: str) -> int:
        return self.enrollment.sample_count(identity_id)

    def is_enrollment_complete(self, identity_id: str) -> bool:
        return self.enrollment.is_complete(identity_id)

    def build_final_embedding(self, identity_id: str) -> Optional[np.ndarray]:
        return self.enrollment.build_final_embedding(identity_id)

    def enrolled_identities(self) -> Set[str]:
        return self.enrollment.enrolled_identities()

    def clear_identity(self, identity_id: str) -> None:
        self.enrollment.clear_identity(identity_id)

    # ---------- Persistence ----------

    def export_embeddings(self) -> List[FaceIdentityRecord]:
        """Export one record per completed enrollment, sorted by identity id."""
        records = []

        for identity_id in sorted(self.enrollment.enrolled_identities()):
            embedding = self.enrollment.build_final_embedding(identity_id)
            # Cleared concurrently between listing and building
            if embedding is None:
                continue
            records.append(
                FaceIdentityRecord(identity_id, embedding, self.config.format_version)
            )

        logger.info(f"Exported {len(records)} identity record(s)")
        return records

    def import_embeddings(self, records: Iterable[FaceIdentityRecord]) -> None:
        """Replace the candidate pool used by recognize().

        Raises:
            DimensionMismatchError: If a record does not have the configured
                dimension. The previous pool is kept.
        """
        candidates = tuple(records)
        for record in candidates:
            self._check_dimension(record.embedding, record.identity_id)

        self._candidates = candidates
        logger.info(f"Imported {len(self._candidates)} identity record(s)")

    @property
    def candidates(self) -> Tuple[FaceIdentityRecord, ...]:
        """Currently imported identity records."""
        return self._candidates

    # ---------- Matching ----------

    def recognize(self, query: VectorLike) -> Optional[str]:
        """Identify a query embedding against the imported records."""
        q = self._check_dimension(query, "query")
        return self.recognizer.recognize(
            q, self._candidates, self.config.recognition_threshold
        )

    def verify(self, a: VectorLike, b: VectorLike) -> bool:
        """Check whether two embeddings belong to the same person."""
        return self.recognizer.verify(
            self._check_dimension(a, "first operand"),
            self._check_dimension(b, "second operand"),
            self.config.recognition_threshold,
        )

    def _check_dimension(self, vector: VectorLike, context: str) -> np.ndarray:
        """Coerce a vector and enforce config.embedding_dimension when set."""
        emb = as_embedding(vector)
        expected_dim = self.config.embedding_dimension
        if expected_dim is not None and emb.shape[0] != expected_dim:
            raise DimensionMismatchError(expected_dim, emb.shape[0], context)
        return emb

    def clear(self) -> None:
        """Drop all enrollment data and imported records."""
        self.enrollment.clear_all()
        self._candidates = ()

    def __repr__(self) -> str:
        return (
            f"FaceAuthEngine(threshold={self.config.recognition_threshold}, "
            f"enrolled={len(self.enrollment.enrolled_identities())}, "
            f"candidates={len(self._candidates)})"
        )

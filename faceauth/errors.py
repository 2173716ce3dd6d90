"""Exceptions raised by the face authentication core.

Every error carries the context an application needs to show an actionable
message (identity id, computed distance, bound or threshold). Absence is not
an error: unknown identities, incomplete enrollments and failed matches are
reported as 0 / False / None by the operations themselves.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from faceauth.quality import QualityReport


class FaceAuthError(Exception):
    """Base class for all face authentication errors."""


class InconsistentSampleError(FaceAuthError):
    """Enrollment sample too far from the previous sample of the same identity."""

    def __init__(self, identity_id: str, distance: float, bound: float):
        self.identity_id = identity_id
        self.distance = distance
        self.bound = bound
        super().__init__(
            f"Sample for '{identity_id}' is too different from the previous sample "
            f"(distance {distance:.3f} > {bound:.3f}). Try again."
        )


class EmptyInputError(FaceAuthError, ValueError):
    """An operation that needs at least one vector received none."""


class DimensionMismatchError(FaceAuthError, ValueError):
    """Two vectors that must be compared have different lengths."""

    def __init__(self, expected: int, actual: int, context: str = ""):
        self.expected = expected
        self.actual = actual
        self.context = context
        where = f" ({context})" if context else ""
        super().__init__(
            f"Embedding dimension mismatch{where}: expected {expected}, got {actual}"
        )


class NoFaceDetectedError(FaceAuthError):
    """The detector found no face in the image."""

    def __init__(self) -> None:
        super().__init__("No face detected")


class MultipleFacesError(FaceAuthError):
    """The detector found more than one face where exactly one is required."""

    def __init__(self, count: int):
        self.count = count
        super().__init__(f"Multiple faces detected ({count})")


class FaceQualityError(FaceAuthError):
    """The detected face was rejected by the quality gate."""

    def __init__(self, report: QualityReport):
        self.report = report
        super().__init__(f"Face quality too low: {report.message}")

"""Face authentication core: enrollment and embedding matching.

This package turns fixed-length face embeddings into identity decisions.
Detection, alignment and inference backends are supplied by the caller.
"""

from faceauth.config import FaceConfig, get_config
from faceauth.embedding import FaceIdentityRecord, dump_records, load_records, make_record
from faceauth.engine import FaceAuthEngine
from faceauth.enrollment import EnrollmentManager
from faceauth.errors import (
    DimensionMismatchError,
    EmptyInputError,
    FaceAuthError,
    FaceQualityError,
    InconsistentSampleError,
    MultipleFacesError,
    NoFaceDetectedError,
)
from faceauth.interfaces import Aligner, BBox, Detection, Detector, Embedder
from faceauth.logging_config import get_logger, setup_logging
from faceauth.quality import QualityGate, QualityReport
from faceauth.recognizer import FaceRecognizer, Match

__all__ = [
    # Config
    "FaceConfig",
    "get_config",
    # Records
    "FaceIdentityRecord",
    "make_record",
    "dump_records",
    "load_records",
    # Core
    "EnrollmentManager",
    "FaceRecognizer",
    "Match",
    "QualityGate",
    "QualityReport",
    "FaceAuthEngine",
    # Interfaces
    "BBox",
    "Detection",
    "Detector",
    "Aligner",
    "Embedder",
    # Errors
    "FaceAuthError",
    "InconsistentSampleError",
    "EmptyInputError",
    "DimensionMismatchError",
    "NoFaceDetectedError",
    "MultipleFacesError",
    "FaceQualityError",
    # Logging
    "setup_logging",
    "get_logger",
]

"""Configuration management for the face authentication core.

This module loads configuration from environment variables (.env file) and
provides an immutable FaceConfig shared by the enrollment manager,
recognizer, quality gate and engine facade.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

VALID_LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


@dataclass(frozen=True)
class FaceConfig:
    """Face authentication configuration.

    Attributes:
        recognition_threshold: L2 distance cutoff for a match (lower = stricter)
        required_enrollment_samples: Number of samples that complete an enrollment
        min_face_size: Minimum bounding box width/height in pixels
        max_roll_angle: Maximum head roll (eye-line tilt) in degrees
        consistency_bound: Maximum L2 distance between consecutive enrollment samples
        embedding_dimension: Expected vector length (None = not enforced)
        format_version: Version tag written into exported identity records
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """

    recognition_threshold: float = 1.0
    required_enrollment_samples: int = 5
    min_face_size: int = 80
    max_roll_angle: float = 15.0
    consistency_bound: float = 0.9
    embedding_dimension: Optional[int] = None
    format_version: str = "1.0"
    log_level: str = "INFO"

    def __post_init__(self) -> None:
        """Validate configuration values.

        Raises:
            ValueError: If any value is out of its valid range.
        """
        if self.recognition_threshold <= 0:
            raise ValueError(
                f"recognition_threshold must be > 0, got {self.recognition_threshold}"
            )

        if self.required_enrollment_samples < 1:
            raise ValueError(
                f"required_enrollment_samples must be >= 1, "
                f"got {self.required_enrollment_samples}"
            )

        if self.min_face_size < 0:
            raise ValueError(f"min_face_size must be >= 0, got {self.min_face_size}")

        if not 0.0 <= self.max_roll_angle <= 180.0:
            raise ValueError(
                f"max_roll_angle must be between 0 and 180, got {self.max_roll_angle}"
            )

        if self.consistency_bound <= 0:
            raise ValueError(
                f"consistency_bound must be > 0, got {self.consistency_bound}"
            )

        if self.embedding_dimension is not None and self.embedding_dimension < 1:
            raise ValueError(
                f"embedding_dimension must be >= 1, got {self.embedding_dimension}"
            )

        if not self.format_version:
            raise ValueError("format_version must be a non-empty string")

        if self.log_level.upper() not in VALID_LOG_LEVELS:
            raise ValueError(
                f"log_level must be one of {VALID_LOG_LEVELS}, got {self.log_level}"
            )

    @classmethod
    def from_env(cls) -> FaceConfig:
        """Load configuration from environment variables.

        Returns:
            FaceConfig instance with values from environment or defaults.

        Raises:
            ValueError: If environment variables are invalid.
        """
        # Matching
        recognition_threshold = float(os.getenv("RECOGNITION_THRESHOLD", "1.0"))

        # Enrollment
        required_enrollment_samples = int(os.getenv("REQUIRED_ENROLLMENT_SAMPLES", "5"))
        consistency_bound = float(os.getenv("ENROLLMENT_CONSISTENCY_BOUND", "0.9"))

        # Quality gate
        min_face_size = int(os.getenv("MIN_FACE_SIZE", "80"))
        max_roll_angle = float(os.getenv("MAX_ROLL_ANGLE", "15.0"))

        # Embedding format
        dim = os.getenv("EMBEDDING_DIM")
        embedding_dimension = int(dim) if dim else None
        format_version = os.getenv("FORMAT_VERSION", "1.0")

        log_level = os.getenv("LOG_LEVEL", "INFO").upper()

        return cls(
            recognition_threshold=recognition_threshold,
            required_enrollment_samples=required_enrollment_samples,
            min_face_size=min_face_size,
            max_roll_angle=max_roll_angle,
            consistency_bound=consistency_bound,
            embedding_dimension=embedding_dimension,
            format_version=format_version,
            log_level=log_level,
        )

    def __repr__(self) -> str:
        """Return string representation of config."""
        return (
            f"FaceConfig(\n"
            f"  Threshold: {self.recognition_threshold},\n"
            f"  Samples: {self.required_enrollment_samples},\n"
            f"  Min Size: {self.min_face_size},\n"
            f"  Max Roll: {self.max_roll_angle},\n"
            f"  Consistency Bound: {self.consistency_bound},\n"
            f"  Dimension: {self.embedding_dimension or 'any'},\n"
            f"  Format: {self.format_version},\n"
            f"  Log Level: {self.log_level}\n"
            f")"
        )


# Global config instance (lazy-loaded)
_config: FaceConfig | None = None


def get_config() -> FaceConfig:
    """Get global config instance (singleton pattern).

    Returns:
        FaceConfig instance loaded from environment.
    """
    global _config
    if _config is None:
        _config = FaceConfig.from_env()
    return _config

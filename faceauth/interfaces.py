"""Interfaces and data structures for the external face pipeline.

The core never detects, aligns or runs inference itself. This module defines
the detection metadata the quality gate consumes and the Protocols that the
engine facade uses to compose detector, aligner and embedder backends.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Protocol, Tuple, runtime_checkable

import numpy as np


@dataclass
class BBox:
    """Bounding box for a detected face.

    Attributes:
        x1: Left edge x-coordinate (pixels)
        y1: Top edge y-coordinate (pixels)
        x2: Right edge x-coordinate (pixels)
        y2: Bottom edge y-coordinate (pixels)
    """

    x1: int
    y1: int
    x2: int
    y2: int

    @property
    def width(self) -> int:
        """Get bounding box width in pixels."""
        return self.x2 - self.x1

    @property
    def height(self) -> int:
        """Get bounding box height in pixels."""
        return self.y2 - self.y1

    @property
    def center(self) -> Tuple[int, int]:
        """Get center point (x, y) of bounding box."""
        return ((self.x1 + self.x2) // 2, (self.y1 + self.y2) // 2)

    def __repr__(self) -> str:
        return f"BBox(x1={self.x1}, y1={self.y1}, x2={self.x2}, y2={self.y2})"


@dataclass
class Detection:
    """Face detection result with bounding box, landmarks, and confidence.

    Attributes:
        bbox: Bounding box around detected face
        kps: Landmarks in absolute pixel coordinates, shape [N, 2] with N >= 2.
             Row 0 is the left eye and row 1 the right eye; further rows
             (nose, mouth corners) are passed through to the aligner.
        score: Detection confidence score (0.0 to 1.0)
    """

    bbox: BBox
    kps: np.ndarray
    score: float = 1.0

    def __post_init__(self) -> None:
        """Validate detection data after initialization."""
        if not 0.0 <= self.score <= 1.0:
            raise ValueError(f"Detection score must be in [0, 1], got {self.score}")

        if not isinstance(self.kps, np.ndarray):
            raise TypeError(f"kps must be numpy array, got {type(self.kps)}")

        if self.kps.ndim != 2 or self.kps.shape[1] != 2 or self.kps.shape[0] < 2:
            raise ValueError(f"kps must have shape (N>=2, 2), got {self.kps.shape}")

        if not np.all(np.isfinite(self.kps)):
            raise ValueError("kps must contain only finite coordinates")

    @property
    def left_eye(self) -> Tuple[float, float]:
        """Left eye position (x, y)."""
        return float(self.kps[0, 0]), float(self.kps[0, 1])

    @property
    def right_eye(self) -> Tuple[float, float]:
        """Right eye position (x, y)."""
        return float(self.kps[1, 0]), float(self.kps[1, 1])

    def __repr__(self) -> str:
        return (
            f"Detection(bbox={self.bbox}, score={self.score:.3f}, "
            f"kps=array{self.kps.shape})"
        )


@runtime_checkable
class Detector(Protocol):
    """Protocol for face detection backends."""

    def detect(self, image: np.ndarray) -> List[Detection]:
        """Detect faces in an image.

        Args:
            image: Decoded image, shape [H, W, 3]

        Returns:
            List of Detection objects, possibly empty.
        """
        ...


@runtime_checkable
class Aligner(Protocol):
    """Protocol for face alignment into a canonical crop."""

    def align(self, image: np.ndarray, kps: np.ndarray) -> np.ndarray:
        """Warp the face described by kps into a canonical pose and crop."""
        ...


@runtime_checkable
class Embedder(Protocol):
    """Protocol for neural embedding extraction.

    An Embedder takes an aligned face crop and returns a raw fixed-length
    vector (192 floats in the reference deployment). Output may be
    un-normalized; the engine normalizes it.
    """

    def embed(self, face: np.ndarray) -> np.ndarray:
        """Extract a raw embedding from an aligned face crop."""
        ...

"""Quality gate for detected faces.

Decides, from detection metadata only, whether a face is worth aligning and
embedding: the bounding box must be large enough and the eye line close
enough to horizontal.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional

from faceauth.config import FaceConfig
from faceauth.interfaces import Detection
from faceauth.logging_config import get_logger

logger = get_logger(__name__)

REASON_TOO_SMALL = "face_too_small"
REASON_ROLL = "roll_too_large"


@dataclass(frozen=True)
class QualityReport:
    """Outcome of a quality check.

    Attributes:
        accepted: True if the face may be used for extraction
        reason: None when accepted, otherwise REASON_TOO_SMALL or REASON_ROLL
        width: Bounding box width in pixels
        height: Bounding box height in pixels
        roll_angle: Eye-line tilt in degrees (signed)
    """

    accepted: bool
    reason: Optional[str]
    width: int
    height: int
    roll_angle: float

    @property
    def message(self) -> str:
        """User-facing hint for the current result."""
        if self.reason == REASON_TOO_SMALL:
            return f"face too small ({self.width}x{self.height}), move closer"
        if self.reason == REASON_ROLL:
            return f"head roll too large ({self.roll_angle:.1f} deg), hold your head level"
        return "ok"


def roll_angle(detection: Detection) -> float:
    """Approximate head roll in degrees from the eye line."""
    lx, ly = detection.left_eye
    rx, ry = detection.right_eye
    return math.degrees(math.atan2(ry - ly, rx - lx))


class QualityGate:
    """Pure predicate over detection metadata.

    Example:
        >>> gate = QualityGate(FaceConfig(min_face_size=80, max_roll_angle=15.0))
        >>> gate.accept(detection)
        True
    """

    def __init__(self, config: FaceConfig):
        self.config = config

    def evaluate(self, detection: Detection) -> QualityReport:
        """Check size first, then roll, and report the first failure."""
        width = detection.bbox.width
        height = detection.bbox.height
        roll = roll_angle(detection)

        reason = None
        if width < self.config.min_face_size or height < self.config.min_face_size:
            reason = REASON_TOO_SMALL
        elif abs(roll) > self.config.max_roll_angle:
            reason = REASON_ROLL

        report = QualityReport(
            accepted=reason is None,
            reason=reason,
            width=width,
            height=height,
            roll_angle=roll,
        )

        if not report.accepted:
            logger.debug(f"Quality gate rejected detection: {report.message}")

        return report

    def accept(self, detection: Detection) -> bool:
        return self.evaluate(detection).accepted

    def __repr__(self) -> str:
        return (
            f"QualityGate(min_face_size={self.config.min_face_size}, "
            f"max_roll_angle={self.config.max_roll_angle})"
        )

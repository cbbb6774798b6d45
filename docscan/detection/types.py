"""
Data types for the Detection module.

Defines the backend contract shared by the contour-search and model-based
edge detectors, and the structured result they produce.
"""

from dataclasses import dataclass
from typing import Optional, Protocol

from docscan.common.types import ImageBuffer, Quadrilateral


@dataclass
class DetectionResult:
    """
    Output from an edge detector.

    Attributes:
        quad: Document corners in normalized space (default quad on a miss).
        found: Whether a confident candidate was found.
        backend: Name of the backend that produced the result.
        confidence: Model confidence, None for the contour backend.
    """

    quad: Quadrilateral
    found: bool
    backend: str
    confidence: Optional[float] = None

    @classmethod
    def miss(cls, backend: str, confidence: Optional[float] = None) -> "DetectionResult":
        """Result for an image with no confident candidate."""
        return cls(
            quad=Quadrilateral.default(),
            found=False,
            backend=backend,
            confidence=confidence,
        )

    def to_dict(self) -> dict:
        return {
            "quad": self.quad.to_dict(),
            "found": self.found,
            "backend": self.backend,
            "confidence": self.confidence,
        }


class EdgeDetectorBackend(Protocol):
    """Contract for document edge detectors.

    ``detect_quad`` never raises for a decoded image; a missed detection
    is reported as ``DetectionResult.miss``.
    """

    name: str

    def is_available(self) -> bool:
        ...

    def detect_quad(self, image: ImageBuffer) -> DetectionResult:
        ...

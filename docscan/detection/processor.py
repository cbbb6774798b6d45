"""
Main processor for the Detection module.

Selects an edge detector backend by runtime capability and exposes the
detect contract: image in, normalized quadrilateral out.
"""

import logging
from typing import Optional

import numpy as np

from docscan.common.types import ImageBuffer, Quadrilateral
from docscan.config_loader import DetectionConfig, get_default_config
from docscan.detection.contour_detector import ContourEdgeDetector
from docscan.detection.model_detector import ModelEdgeDetector
from docscan.detection.types import DetectionResult, EdgeDetectorBackend

logger = logging.getLogger(__name__)


def select_backend(
    config: DetectionConfig,
    contour: Optional[EdgeDetectorBackend] = None,
    model: Optional[EdgeDetectorBackend] = None,
) -> EdgeDetectorBackend:
    """
    Choose the edge detector for ``config.backend``.

    "auto" prefers the model when it can run; "model" falls back to contour
    search with a warning when it cannot.
    """
    contour = contour or ContourEdgeDetector(config.contour)
    model = model or ModelEdgeDetector(config.model)

    if config.backend == "contour":
        return contour

    if model.is_available():
        return model

    if config.backend == "model":
        logger.warning("Model backend requested but unavailable, using contour search")
    return contour


class EdgeDetectionProcessor:
    """
    Document edge detection with interchangeable backends.

    Example:
        >>> processor = EdgeDetectionProcessor()
        >>> quad = processor.detect(ImageBuffer(data=cv2.imread("page.jpg")))
        >>> quad.to_dict()["topLeftX"]
    """

    def __init__(
        self,
        config: Optional[DetectionConfig] = None,
        backend: Optional[EdgeDetectorBackend] = None,
    ):
        """
        Initialize the detection processor.

        Args:
            config: Detection configuration. If None, loads from config.yaml.
            backend: Explicit backend, bypassing capability-based selection.
        """
        self.config = config if config is not None else get_default_config().detection
        self.backend = backend if backend is not None else select_backend(self.config)
        logger.info(f"Edge detection backend: {self.backend.name}")

    def process(self, image: ImageBuffer) -> DetectionResult:
        """Run the backend and return the full detection result."""
        if isinstance(image, np.ndarray):
            image = ImageBuffer(data=image)
        return self.backend.detect_quad(image)

    def detect(self, image: ImageBuffer) -> Quadrilateral:
        """Return the document quadrilateral in normalized coordinates."""
        return self.process(image).quad

"""
Document edge detection.

Two interchangeable backends satisfy one contract: contour search with
OpenCV, and a YOLO pose model predicting the four page corners. Either way
a missed detection yields the full-frame quadrilateral, never an error.

Example:
    >>> from docscan.detection import EdgeDetectionProcessor
    >>> from docscan.common.types import ImageBuffer
    >>> processor = EdgeDetectionProcessor()
    >>> quad = processor.detect(ImageBuffer(data=cv2.imread("page.jpg")))
"""

from docscan.detection.contour_detector import ContourEdgeDetector
from docscan.detection.model_detector import ModelEdgeDetector
from docscan.detection.processor import EdgeDetectionProcessor, select_backend
from docscan.detection.types import DetectionResult, EdgeDetectorBackend

__all__ = [
    "EdgeDetectionProcessor",
    "ContourEdgeDetector",
    "ModelEdgeDetector",
    "DetectionResult",
    "EdgeDetectorBackend",
    "select_backend",
]

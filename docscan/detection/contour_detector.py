"""
Contour-search edge detector.

Finds the largest convex four-sided contour in a downscaled, denoised edge
map and maps it back to the original image in normalized coordinates.
"""

import logging
from typing import Optional, Tuple

import cv2
import numpy as np

from docscan.common.types import ImageBuffer, Quadrilateral
from docscan.config_loader import ContourConfig
from docscan.detection.types import DetectionResult
from docscan.filters.tone_filters import to_grayscale
from docscan.rectification.image_rectification import (
    is_convex_quadrilateral,
    order_points,
)

logger = logging.getLogger(__name__)


class ContourEdgeDetector:
    """
    Classical OpenCV document boundary search.

    Pipeline:
    1. Downscale so the shorter side equals ``resize_target``
    2. Grayscale + bilateral filter
    3. Canny edges
    4. Morphological closing to bridge broken edges
    5. External contours, filtered by area, approximated as polygons
    6. Largest convex quadrilateral wins

    Example:
        >>> detector = ContourEdgeDetector()
        >>> result = detector.detect_quad(ImageBuffer(data=cv2.imread("page.jpg")))
        >>> result.quad.to_dict()
    """

    name = "contour"

    def __init__(self, config: Optional[ContourConfig] = None):
        self.config = config or ContourConfig()

    def is_available(self) -> bool:
        return True

    def _downscale(self, image: np.ndarray) -> Tuple[np.ndarray, float]:
        """Shrink so the shorter side equals the target; never upscale."""
        height, width = image.shape[:2]
        short_side = min(height, width)
        if short_side <= self.config.resize_target:
            return image, 1.0

        ratio = short_side / float(self.config.resize_target)
        new_size = (
            max(1, int(round(width / ratio))),
            max(1, int(round(height / ratio))),
        )
        resized = cv2.resize(image, new_size, interpolation=cv2.INTER_AREA)
        return resized, ratio

    def edge_map(self, image: np.ndarray) -> np.ndarray:
        """Binary edge map after denoising and morphological closing."""
        cfg = self.config
        gray = to_grayscale(image)
        smoothed = cv2.bilateralFilter(
            gray,
            cfg.bilateral_diameter,
            cfg.bilateral_sigma_color,
            cfg.bilateral_sigma_space,
        )
        edges = cv2.Canny(smoothed, cfg.canny_low, cfg.canny_high)
        kernel = np.ones((cfg.morph_kernel_size, cfg.morph_kernel_size), np.uint8)
        return cv2.morphologyEx(
            edges, cv2.MORPH_CLOSE, kernel, iterations=cfg.morph_iterations
        )

    def find_document_contour(self, edges: np.ndarray) -> Optional[np.ndarray]:
        """
        Pick the largest convex quadrilateral among the external contours.

        Args:
            edges: Binary edge map.

        Returns:
            Array of shape (4, 2) with the polygon vertices in contour order,
            or None when no contour qualifies.
        """
        contours, _ = cv2.findContours(edges, cv2.RETR_EXTERNAL, cv2.CHAIN_APPROX_SIMPLE)
        min_area = self.config.min_area_ratio * edges.shape[0] * edges.shape[1]

        best: Optional[np.ndarray] = None
        best_area = 0.0
        for contour in contours:
            area = cv2.contourArea(contour)
            if area < min_area:
                continue

            peri = cv2.arcLength(contour, True)
            approx = cv2.approxPolyDP(contour, self.config.approx_epsilon_ratio * peri, True)
            if len(approx) != 4:
                continue

            vertices = approx.reshape(4, 2).astype(np.float32)
            if not is_convex_quadrilateral(vertices):
                continue

            if area > best_area:
                best_area = area
                best = vertices

        logger.debug(
            f"Examined {len(contours)} contours, min area {min_area:.0f}, "
            f"best area {best_area:.0f}"
        )
        return best

    def detect_quad(self, image: ImageBuffer) -> DetectionResult:
        """
        Detect the document quadrilateral.

        Returns:
            DetectionResult in normalized coordinates; the default quad
            when no candidate qualifies.
        """
        data = image.to_numpy()
        resized, ratio = self._downscale(data)
        edges = self.edge_map(resized)
        vertices = self.find_document_contour(edges)

        if vertices is None:
            logger.info("No document contour found, using full frame")
            return DetectionResult.miss(self.name)

        corners = order_points(vertices * ratio)
        quad = Quadrilateral.from_array(corners).to_normalized(image.width, image.height)

        logger.info(f"Document contour found: {quad.to_dict()}")
        return DetectionResult(quad=quad, found=True, backend=self.name)

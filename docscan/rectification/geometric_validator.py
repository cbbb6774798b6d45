"""
Geometric validation functions for the Rectification module.

Validates the geometric properties of document corners before
performing perspective transformation.
"""

import itertools
import logging
from typing import Tuple, Union

import numpy as np

from docscan.common.errors import DegenerateQuadrilateral, InvalidArguments

logger = logging.getLogger(__name__)


def _as_corners(corners: Union[np.ndarray, list]) -> np.ndarray:
    corners = np.asarray(corners, dtype=np.float64)
    if corners.shape != (4, 2):
        raise InvalidArguments(
            f"Expected 4 corners with shape (4, 2), got {corners.shape}"
        )
    return corners


def calculate_edge_lengths(
    corners: Union[np.ndarray, list],
) -> Tuple[float, float, float, float]:
    """
    Calculate the length of all 4 edges of a quadrilateral.

    Args:
        corners: 4 corner points in order [TL, TR, BR, BL].
                 Shape (4, 2) where each point is [x, y].

    Returns:
        Tuple of (top_edge, right_edge, bottom_edge, left_edge) lengths.

    Example:
        >>> points = np.array([[100, 100], [400, 100], [400, 200], [100, 200]])
        >>> top, right, bottom, left = calculate_edge_lengths(points)
        >>> print(f"Width: {top:.0f}, Height: {right:.0f}")
        Width: 300, Height: 100
    """
    tl, tr, br, bl = _as_corners(corners)

    top_edge = float(np.linalg.norm(tr - tl))
    right_edge = float(np.linalg.norm(br - tr))
    bottom_edge = float(np.linalg.norm(bl - br))
    left_edge = float(np.linalg.norm(tl - bl))

    logger.debug(
        f"Edge lengths - Top: {top_edge:.1f}, Right: {right_edge:.1f}, "
        f"Bottom: {bottom_edge:.1f}, Left: {left_edge:.1f}"
    )

    return top_edge, right_edge, bottom_edge, left_edge


def calculate_output_dimensions(corners: Union[np.ndarray, list]) -> Tuple[int, int]:
    """
    Calculate the pixel size of the rectified image.

    Width is the longer of the top and bottom edges, height the longer of the
    left and right edges, each rounded to whole pixels with a minimum of 1.

    Args:
        corners: 4 corner points in order [TL, TR, BR, BL].

    Returns:
        Tuple of (width, height).
    """
    top, right, bottom, left = calculate_edge_lengths(corners)

    width = max(1, int(round(max(top, bottom))))
    height = max(1, int(round(max(left, right))))

    logger.debug(f"Output dimensions: {width} x {height}")

    return width, height


def polygon_area(corners: Union[np.ndarray, list]) -> float:
    """Absolute area of the polygon traced by the corners (shoelace formula)."""
    corners = _as_corners(corners)
    x = corners[:, 0]
    y = corners[:, 1]
    return float(abs(np.dot(x, np.roll(y, -1)) - np.dot(y, np.roll(x, -1))) / 2.0)


def _triangle_area(a: np.ndarray, b: np.ndarray, c: np.ndarray) -> float:
    return float(abs((b[0] - a[0]) * (c[1] - a[1]) - (b[1] - a[1]) * (c[0] - a[0])) / 2.0)


def validate_non_degenerate(
    corners: Union[np.ndarray, list], min_area: float = 0.5
) -> float:
    """
    Reject quadrilaterals that cannot define a homography.

    A quadrilateral is degenerate when any three of its corners are collinear
    (or coincide), or when its polygon area vanishes.

    Args:
        corners: 4 corner points in pixel space.
        min_area: Area in px^2 below which a triangle or the polygon counts
                  as zero.

    Returns:
        The polygon area.

    Raises:
        DegenerateQuadrilateral: If the corners are degenerate.
    """
    corners = _as_corners(corners)

    for i, j, k in itertools.combinations(range(4), 3):
        area = _triangle_area(corners[i], corners[j], corners[k])
        if area < min_area or area == 0.0:
            logger.warning(
                f"Corners {i}, {j}, {k} are collinear (triangle area {area:.3f})"
            )
            raise DegenerateQuadrilateral(
                f"Three corners are collinear or coincident: "
                f"{corners[i].tolist()}, {corners[j].tolist()}, {corners[k].tolist()}"
            )

    area = polygon_area(corners)
    if area < min_area or area == 0.0:
        raise DegenerateQuadrilateral(f"Quadrilateral area {area:.3f} is too small")

    return area

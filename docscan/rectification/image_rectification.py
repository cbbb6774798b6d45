"""
Corner ordering and perspective warping.

Turns the document quadrilateral found in a photo into a flat, rectangular
top-down image.
"""

import logging
from typing import Union

import cv2
import numpy as np

from docscan.common.errors import InvalidArguments
from docscan.rectification.geometric_validator import (
    calculate_output_dimensions,
    validate_non_degenerate,
)

logger = logging.getLogger(__name__)

INTERPOLATION_FLAGS = {
    "linear": cv2.INTER_LINEAR,
    "nearest": cv2.INTER_NEAREST,
    "cubic": cv2.INTER_CUBIC,
}


def order_points(pts: Union[np.ndarray, list]) -> np.ndarray:
    """
    Sort four corners into canonical [TL, TR, BR, BL] order.

    Corner roles come from the coordinate sum and difference:
    TL has the smallest ``x + y`` and BR the largest; TR has the smallest
    ``y - x`` and BL the largest. On a tie the earliest input point wins.
    Pages rotated close to 45 degrees can confuse the heuristic.

    Args:
        pts: Four corners as a (4, 2) array or a list of [x, y] pairs.

    Returns:
        float32 array of shape (4, 2) in [TL, TR, BR, BL] order.

    Raises:
        InvalidArguments: If ``pts`` is not four 2D points.

    Example:
        >>> order_points([[320, 400], [100, 200], [80, 380], [300, 150]])[0]
        array([100., 200.], dtype=float32)
    """
    corners = np.asarray(pts, dtype=np.float32)
    if corners.shape != (4, 2):
        raise InvalidArguments(
            f"Expected exactly 4 points with shape (4, 2), got shape {corners.shape}"
        )

    sums = corners[:, 0] + corners[:, 1]
    diffs = corners[:, 1] - corners[:, 0]

    ordered = np.stack(
        [
            corners[np.argmin(sums)],
            corners[np.argmin(diffs)],
            corners[np.argmax(sums)],
            corners[np.argmax(diffs)],
        ]
    )

    logger.debug(f"Corner order TL={ordered[0]} TR={ordered[1]} BR={ordered[2]} BL={ordered[3]}")
    return ordered


def is_convex_quadrilateral(rect: np.ndarray) -> bool:
    """
    Check that four points, in traversal order, bound a convex polygon.

    The z-component of the cross product of every pair of consecutive edges
    must keep one sign; a sign change means a dent or a self-intersection.

    Args:
        rect: (4, 2) points, clockwise or counter-clockwise.
    """
    pts = np.asarray(rect, dtype=np.float64).reshape(4, 2)
    edges = np.roll(pts, -1, axis=0) - pts
    nxt = np.roll(edges, -1, axis=0)
    turns = edges[:, 0] * nxt[:, 1] - edges[:, 1] * nxt[:, 0]

    # Tolerance for nearly straight angles
    convex = bool(np.all(turns > 1e-6) or np.all(turns < -1e-6))
    if not convex:
        logger.debug(f"Non-convex quadrilateral, edge turns: {turns.tolist()}")
    return convex


def compute_homography(src: np.ndarray, width: int, height: int) -> np.ndarray:
    """
    Solve the planar homography mapping ordered source corners onto the
    destination rectangle (0,0), (W-1,0), (W-1,H-1), (0,H-1).

    A one-pixel axis keeps a span of 1 so the destination never collapses
    and pixel 0 samples the top-left corner.

    Args:
        src: Ordered corners [TL, TR, BR, BL] in pixel space.
        width: Destination width in pixels.
        height: Destination height in pixels.

    Returns:
        3x3 perspective transformation matrix.
    """
    right = max(width - 1, 1)
    bottom = max(height - 1, 1)
    dst = np.array(
        [
            [0, 0],  # Top-Left
            [right, 0],  # Top-Right
            [right, bottom],  # Bottom-Right
            [0, bottom],  # Bottom-Left
        ],
        dtype=np.float32,
    )
    return cv2.getPerspectiveTransform(np.asarray(src, dtype=np.float32), dst)


def rectify(
    image: np.ndarray,
    corners: Union[np.ndarray, list],
    interpolation: str = "linear",
    min_triangle_area: float = 0.5,
) -> np.ndarray:
    """
    Warp a document quadrilateral to a rectangular top-down view.

    Output size is the longer of the opposite edge pairs. Every destination
    pixel is mapped back through the inverse homography and sampled with the
    chosen interpolation; samples beyond the source border repeat the nearest
    edge pixel.

    Args:
        image: Input image as numpy array (H, W, C) or (H, W).
        corners: 4 corner points in pixel space, ordered [TL, TR, BR, BL].
        interpolation: "linear" (bilinear), "nearest" or "cubic".
        min_triangle_area: Collinearity tolerance in px^2.

    Returns:
        Rectified image as numpy array.

    Raises:
        InvalidArguments: If image or corners are malformed.
        DegenerateQuadrilateral: If three corners are collinear.

    Example:
        >>> image = cv2.imread("page.jpg")
        >>> corners = order_points([[120, 180], [450, 165], [470, 650], [100, 670]])
        >>> flat = rectify(image, corners)
    """
    if image is None or image.size == 0:
        raise InvalidArguments("Invalid input image: image is None or empty")

    if interpolation not in INTERPOLATION_FLAGS:
        raise InvalidArguments(
            f"Invalid interpolation: {interpolation}. "
            f"Must be one of {list(INTERPOLATION_FLAGS)}"
        )

    rect = np.array(corners, dtype=np.float32)
    if rect.shape != (4, 2):
        raise InvalidArguments(
            f"Expected exactly 4 corners with shape (4, 2), got shape {rect.shape}"
        )

    validate_non_degenerate(rect, min_area=min_triangle_area)

    width, height = calculate_output_dimensions(rect)
    M = compute_homography(rect, width, height)

    rectified = cv2.warpPerspective(
        image,
        M,
        (width, height),
        flags=INTERPOLATION_FLAGS[interpolation],
        borderMode=cv2.BORDER_REPLICATE,
    )

    logger.info(f"Rectified quadrilateral to {width}x{height} rectangle")

    return rectified

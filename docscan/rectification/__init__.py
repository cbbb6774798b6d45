"""
Perspective rectification of document quadrilaterals.

Orders corners canonically, validates that they span a real area, and warps
the enclosed region to a rectangular top-down view.
"""

from docscan.rectification.geometric_validator import (
    calculate_edge_lengths,
    calculate_output_dimensions,
    polygon_area,
    validate_non_degenerate,
)
from docscan.rectification.image_rectification import (
    compute_homography,
    is_convex_quadrilateral,
    order_points,
    rectify,
)

__all__ = [
    "order_points",
    "is_convex_quadrilateral",
    "compute_homography",
    "rectify",
    "calculate_edge_lengths",
    "calculate_output_dimensions",
    "polygon_area",
    "validate_non_degenerate",
]

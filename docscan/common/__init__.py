"""
Common types and errors shared across all modules.

This module provides standardized data types for the document scanning
pipeline, ensuring consistency across detection, rectification, filtering
and encoding.
"""

from docscan.common.errors import (
    DecodeError,
    DegenerateQuadrilateral,
    DocScanError,
    EncodeError,
    InvalidArguments,
)
from docscan.common.types import ImageBuffer, Point, Quadrilateral

__all__ = [
    "ImageBuffer",
    "Point",
    "Quadrilateral",
    "DocScanError",
    "DecodeError",
    "InvalidArguments",
    "DegenerateQuadrilateral",
    "EncodeError",
]

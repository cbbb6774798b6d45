"""
End-to-end scanning pipeline: decode, detect, rectify, filter, encode.

Example:
    >>> from docscan.pipeline import ScanPipeline
    >>> pipeline = ScanPipeline()
    >>> quad = pipeline.detect("page.jpg")
    >>> path = pipeline.rectify_and_save("page.jpg", quad, output_format="pdf")
"""

from docscan.pipeline.scan_pipeline import ScanPipeline, build_request
from docscan.pipeline.types import ScanRequest, ScanResponse

__all__ = [
    "ScanPipeline",
    "ScanRequest",
    "ScanResponse",
    "build_request",
]

"""
Exception hierarchy for the document scanning pipeline.

Every error carries a stable ``code`` and a human-readable ``message`` so that
callers on the other side of a transport boundary can report it as a
(code, message) pair. A missed detection is not an error: the detector
returns the default full-frame quadrilateral instead.
"""

from typing import Optional, Tuple


class DocScanError(Exception):
    """Base exception for document scanning errors."""

    code = "DOCSCAN_ERROR"

    def __init__(self, message: str, code: Optional[str] = None):
        self.message = message
        if code is not None:
            self.code = code
        super().__init__(self.message)

    def to_pair(self) -> Tuple[str, str]:
        """Return the (code, message) pair reported to callers."""
        return self.code, self.message


class DecodeError(DocScanError):
    """Input bytes or path could not be decoded into a raster image."""

    code = "DECODE_ERROR"


class InvalidArguments(DocScanError):
    """Required fields are missing or malformed."""

    code = "INVALID_ARGS"


class DegenerateQuadrilateral(DocScanError):
    """Quadrilateral has zero or near-zero area; rectification cannot proceed."""

    code = "DEGENERATE_QUAD"


class EncodeError(DocScanError):
    """Final image could not be serialized or written to storage."""

    code = "ENCODE_ERROR"

"""
Request and response values for the scanning pipeline.

Each call threads its own request through the pipeline and receives its own
response; nothing is stored on the pipeline between calls.
"""

from pathlib import Path
from typing import Any, Dict, Optional, Union

import numpy as np
from pydantic import BaseModel, Field, field_validator

from docscan.codec.encoder import OutputFormat
from docscan.common.errors import DocScanError
from docscan.common.types import Quadrilateral
from docscan.filters.types import FilterSpec


class ScanRequest(BaseModel):
    """
    One rectify-filter-encode request.

    Attributes:
        image: Encoded bytes, a file path, or a decoded uint8 array.
        quad: Document corners in normalized space; detected when None.
        filter: Tone filter to apply.
        output_format: Encoding of the result.
        output_dir: Where to write the file; the system temp dir when None.
    """

    image: Union[bytes, str, Path, np.ndarray]
    quad: Optional[Quadrilateral] = None
    filter: FilterSpec = Field(default_factory=FilterSpec)
    output_format: OutputFormat = OutputFormat.JPEG
    output_dir: Optional[Path] = None

    model_config = {"arbitrary_types_allowed": True}

    @field_validator("quad", mode="before")
    @classmethod
    def _parse_quad(cls, v):
        if isinstance(v, dict) and "topLeftX" in v:
            return Quadrilateral.from_dict(v)
        return v

    @field_validator("output_format", mode="before")
    @classmethod
    def _parse_format(cls, v):
        return OutputFormat.parse(v)


class ScanResponse(BaseModel):
    """
    Outcome of a pipeline call.

    Attributes:
        success: Whether the call produced a result.
        quad: Quadrilateral used (or detected).
        path: Written file, for file output.
        data: Encoded bytes, for in-memory output.
        error_code: Stable error code on failure.
        error_message: Human-readable message on failure.
    """

    success: bool
    quad: Optional[Quadrilateral] = None
    path: Optional[Path] = None
    data: Optional[bytes] = None
    error_code: Optional[str] = None
    error_message: Optional[str] = None

    @classmethod
    def from_error(cls, error: DocScanError) -> "ScanResponse":
        code, message = error.to_pair()
        return cls(success=False, error_code=code, error_message=message)

    def to_dict(self) -> Dict[str, Any]:
        """Transport form: the quad in its eight-key shape, the path as a string."""
        return {
            "success": self.success,
            "quad": self.quad.to_dict() if self.quad else None,
            "path": str(self.path) if self.path else None,
            "error_code": self.error_code,
            "error_message": self.error_message,
        }

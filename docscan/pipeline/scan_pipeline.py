"""
End-to-end document scanning pipeline.

Orchestrates the modules:
1. Decoding (bytes / path / array, EXIF-upright)
2. Edge detection (normalized quadrilateral)
3. Perspective rectification
4. Tone filtering
5. Encoding (JPEG / PDF) and optional file output

Every call is synchronous, CPU-bound and independent of other calls; the
pipeline itself only holds immutable configuration and the detector.
"""

import concurrent.futures
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Union

import numpy as np
from pydantic import ValidationError

from docscan.codec.encoder import OutputFormat, encode, save
from docscan.common.errors import DocScanError, InvalidArguments
from docscan.common.types import ImageBuffer, Quadrilateral
from docscan.config_loader import Config, get_default_config
from docscan.detection.processor import EdgeDetectionProcessor
from docscan.detection.types import DetectionResult
from docscan.filters.tone_filters import apply_filter
from docscan.filters.types import FilterSpec
from docscan.pipeline.types import ScanRequest, ScanResponse
from docscan.rectification.image_rectification import order_points, rectify
from docscan.utils.io import ImageSource, decode_image

logger = logging.getLogger(__name__)


def _validation_message(error: ValidationError) -> str:
    return "; ".join(
        f"{'.'.join(str(loc) for loc in err['loc']) or 'value'}: {err['msg']}"
        for err in error.errors()
    )


class ScanPipeline:
    """
    Main entry point for detection and rectify-filter-encode calls.

    Example:
        >>> pipeline = ScanPipeline()
        >>> quad = pipeline.detect("page.jpg")
        >>> pdf_bytes = pipeline.rectify_and_filter(
        ...     "page.jpg", quad, FilterSpec(mode="adaptive"), "pdf"
        ... )
    """

    def __init__(
        self,
        config: Optional[Config] = None,
        detector: Optional[EdgeDetectionProcessor] = None,
    ):
        """
        Initialize the pipeline.

        Args:
            config: Pipeline configuration. If None, loads from config.yaml.
            detector: Pre-built detection processor (e.g. with an explicit backend).
        """
        self.config = config if config is not None else get_default_config()
        self.detector = detector or EdgeDetectionProcessor(self.config.detection)

    # ------------------------------------------------------------------
    # Core operations
    # ------------------------------------------------------------------

    def detect_result(self, image: ImageSource) -> DetectionResult:
        """Decode ``image`` and run edge detection."""
        data = decode_image(image)
        return self.detector.process(ImageBuffer(data=data))

    def detect(self, image: ImageSource) -> Quadrilateral:
        """Return the document quadrilateral in normalized coordinates."""
        return self.detect_result(image).quad

    def rectify(self, image: np.ndarray, quad: Quadrilateral) -> np.ndarray:
        """
        Warp the region bounded by a normalized quadrilateral.

        Args:
            image: Decoded source image.
            quad: Corners in normalized space.

        Returns:
            Rectified image.

        Raises:
            DegenerateQuadrilateral: If three corners are collinear.
        """
        height, width = image.shape[:2]
        corners = quad.to_pixels(width, height).to_array()
        if self.config.rectification.reorder_points:
            corners = order_points(corners)

        return rectify(
            image,
            corners,
            interpolation=self.config.rectification.interpolation,
            min_triangle_area=self.config.rectification.min_triangle_area,
        )

    def _render(
        self,
        image: ImageSource,
        quad: Union[Quadrilateral, Dict[str, float]],
        filter_spec: Optional[FilterSpec],
        output_format: Union[str, OutputFormat],
    ) -> bytes:
        if isinstance(quad, dict):
            quad = Quadrilateral.from_dict(quad)
        fmt = OutputFormat.parse(output_format)
        filter_spec = filter_spec or FilterSpec()

        data = decode_image(image)
        logger.info(f"[Stage 1/3] Rectification ({data.shape[1]}x{data.shape[0]} source)")
        flat = self.rectify(data, quad)

        logger.info(f"[Stage 2/3] Filter: {filter_spec.mode.value}")
        filtered = apply_filter(flat, filter_spec, self.config.filters)

        logger.info(f"[Stage 3/3] Encoding: {fmt.value}")
        return encode(
            filtered,
            fmt,
            jpeg_quality=self.config.codec.jpeg_quality,
            pdf_resolution=self.config.codec.pdf_resolution,
        )

    def rectify_and_filter(
        self,
        image: ImageSource,
        quad: Union[Quadrilateral, Dict[str, float]],
        filter_spec: Optional[FilterSpec] = None,
        output_format: Union[str, OutputFormat] = OutputFormat.JPEG,
    ) -> bytes:
        """
        Rectify, filter and encode; return the encoded bytes.

        Raises:
            DecodeError, InvalidArguments, DegenerateQuadrilateral, EncodeError
        """
        return self._render(image, quad, filter_spec, output_format)

    def rectify_and_save(
        self,
        image: ImageSource,
        quad: Union[Quadrilateral, Dict[str, float]],
        filter_spec: Optional[FilterSpec] = None,
        output_format: Union[str, OutputFormat] = OutputFormat.JPEG,
        output_dir: Optional[Union[str, Path]] = None,
    ) -> Path:
        """Rectify, filter and encode; write the file and return its path."""
        data = self._render(image, quad, filter_spec, output_format)
        if output_dir is None:
            output_dir = self.config.codec.output_dir
        return save(data, output_format, output_dir)

    # ------------------------------------------------------------------
    # Request / response boundary
    # ------------------------------------------------------------------

    def process(self, request: ScanRequest) -> ScanResponse:
        """
        Execute one request, converting pipeline errors into a response.

        Without a quad the page is detected first. The result is written to
        a file when ``request.output_dir`` (or the configured output dir) is
        set, otherwise returned as bytes.
        """
        try:
            image = decode_image(request.image)
            quad = request.quad or self.detector.detect(ImageBuffer(data=image))

            output_dir = request.output_dir or self.config.codec.output_dir
            if output_dir is not None:
                path = self.rectify_and_save(
                    image, quad, request.filter, request.output_format, output_dir
                )
                return ScanResponse(success=True, quad=quad, path=path)

            data = self.rectify_and_filter(image, quad, request.filter, request.output_format)
            return ScanResponse(success=True, quad=quad, data=data)

        except DocScanError as e:
            logger.error(f"Scan failed [{e.code}]: {e.message}")
            return ScanResponse.from_error(e)

    def process_batch(
        self,
        requests: Sequence[ScanRequest],
        max_workers: Optional[int] = None,
    ) -> List[ScanResponse]:
        """
        Run independent requests on a thread pool.

        Responses come back in input order; a failed request yields an
        error response without affecting the others.
        """
        with concurrent.futures.ThreadPoolExecutor(max_workers=max_workers) as ex:
            return list(ex.map(self.process, requests))

    def handle(self, method: str, arguments: Dict[str, Any]) -> ScanResponse:
        """
        Dispatch a named call with transport-style arguments.

        Supported methods:
            detectEdges: {"imagePath"} -> response with ``quad``
            applyCropAndSave: {"imagePath", "quad", "format", "filter",
                               "brightness"?, "contrast"?, "threshold"?}
                               -> response with ``path``
        """
        try:
            arguments = arguments or {}
            if method == "detectEdges":
                image_path = arguments.get("imagePath")
                if not image_path:
                    raise InvalidArguments("Missing argument 'imagePath'")
                return ScanResponse(success=True, quad=self.detect(image_path))

            if method == "applyCropAndSave":
                missing = [
                    key
                    for key in ("imagePath", "quad", "format", "filter")
                    if arguments.get(key) is None
                ]
                if missing:
                    raise InvalidArguments(f"Missing arguments for applyCropAndSave: {missing}")

                quad = Quadrilateral.from_dict(arguments["quad"])
                try:
                    filter_spec = FilterSpec(
                        mode=arguments["filter"],
                        brightness=arguments.get("brightness"),
                        contrast=arguments.get("contrast"),
                        threshold=arguments.get("threshold"),
                    )
                except ValidationError as e:
                    raise InvalidArguments(_validation_message(e)) from e

                path = self.rectify_and_save(
                    arguments["imagePath"], quad, filter_spec, arguments["format"]
                )
                return ScanResponse(success=True, quad=quad, path=path)

            raise InvalidArguments(f"Method not implemented: {method!r}")

        except DocScanError as e:
            logger.error(f"{method} failed [{e.code}]: {e.message}")
            return ScanResponse.from_error(e)


def build_request(**fields: Any) -> ScanRequest:
    """
    Build a ScanRequest, reporting malformed fields as InvalidArguments.

    Example:
        >>> request = build_request(image="page.jpg", filter={"mode": "grayscale"})
    """
    try:
        return ScanRequest(**fields)
    except ValidationError as e:
        raise InvalidArguments(_validation_message(e)) from e

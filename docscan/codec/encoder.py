"""
Final encoding of processed pages.

JPEG is encoded with OpenCV. PDF output is a single page built with Pillow;
at the default 72 dpi the page's media box equals the image's pixel size and
the image is drawn at the origin.
"""

import io
import logging
import tempfile
import uuid
from enum import Enum
from pathlib import Path
from typing import Optional, Union

import cv2
import numpy as np
from PIL import Image

from docscan.common.errors import EncodeError, InvalidArguments

logger = logging.getLogger(__name__)


class OutputFormat(Enum):
    """Supported output encodings."""

    JPEG = "jpeg"
    PDF = "pdf"

    @property
    def extension(self) -> str:
        return f".{self.value}"

    @classmethod
    def parse(cls, name: Union[str, "OutputFormat"]) -> "OutputFormat":
        """
        Resolve a format name ("jpeg", "jpg" or "pdf").

        Raises:
            InvalidArguments: If the name is unknown.
        """
        if isinstance(name, cls):
            return name
        key = str(name).lower()
        if key == "jpg":
            key = "jpeg"
        try:
            return cls(key)
        except ValueError as e:
            raise InvalidArguments(
                f"Unknown output format: {name!r}. Must be one of "
                f"{[fmt.value for fmt in cls]}"
            ) from e


def _to_pil(image: np.ndarray) -> Image.Image:
    """Convert an OpenCV-ordered array into a Pillow image."""
    if image.ndim == 2:
        return Image.fromarray(image)
    if image.shape[2] == 1:
        return Image.fromarray(image[:, :, 0])
    if image.shape[2] == 4:
        # PDF pages carry no alpha
        return Image.fromarray(cv2.cvtColor(image, cv2.COLOR_BGRA2RGB))
    return Image.fromarray(cv2.cvtColor(image, cv2.COLOR_BGR2RGB))


def encode_jpeg(image: np.ndarray, quality: int = 80) -> bytes:
    """
    Encode an image as JPEG.

    Args:
        image: uint8 image in BGR, BGRA or grayscale.
        quality: JPEG quality (1-100).

    Raises:
        EncodeError: If OpenCV cannot encode the image.
    """
    if image is None or image.size == 0:
        raise EncodeError("Cannot encode an empty image")

    if image.ndim == 3 and image.shape[2] == 4:
        image = cv2.cvtColor(image, cv2.COLOR_BGRA2BGR)

    try:
        ok, buffer = cv2.imencode(".jpg", image, [cv2.IMWRITE_JPEG_QUALITY, int(quality)])
    except cv2.error as e:
        raise EncodeError(f"JPEG encoding failed: {e}") from e

    if not ok:
        raise EncodeError("JPEG encoding failed")

    return buffer.tobytes()


def encode_pdf(image: np.ndarray, resolution: float = 72.0) -> bytes:
    """
    Encode an image as a single-page PDF.

    Args:
        image: uint8 image in BGR, BGRA or grayscale.
        resolution: Dots per inch; 72 makes one pixel one PDF point.

    Raises:
        EncodeError: If Pillow cannot write the document.
    """
    if image is None or image.size == 0:
        raise EncodeError("Cannot encode an empty image")

    buffer = io.BytesIO()
    try:
        _to_pil(image).save(buffer, format="PDF", resolution=float(resolution))
    except (OSError, ValueError) as e:
        raise EncodeError(f"PDF encoding failed: {e}") from e

    return buffer.getvalue()


def encode(
    image: np.ndarray,
    output_format: Union[str, OutputFormat],
    jpeg_quality: int = 80,
    pdf_resolution: float = 72.0,
) -> bytes:
    """Encode ``image`` in the requested format."""
    fmt = OutputFormat.parse(output_format)
    if fmt == OutputFormat.PDF:
        data = encode_pdf(image, pdf_resolution)
    else:
        data = encode_jpeg(image, jpeg_quality)

    logger.info(f"Encoded {image.shape[1]}x{image.shape[0]} image as {fmt.value} ({len(data)} bytes)")
    return data


def save(
    data: bytes,
    output_format: Union[str, OutputFormat],
    output_dir: Optional[Union[str, Path]] = None,
) -> Path:
    """
    Write encoded bytes to ``<uuid4>.<ext>`` inside ``output_dir``.

    Args:
        data: Encoded file contents.
        output_format: Format of ``data``; picks the file extension.
        output_dir: Target directory; the system temp directory when None.

    Returns:
        Path of the written file.

    Raises:
        EncodeError: If the file cannot be written.
    """
    fmt = OutputFormat.parse(output_format)
    directory = Path(output_dir) if output_dir is not None else Path(tempfile.gettempdir())
    path = directory / f"{uuid.uuid4()}{fmt.extension}"

    try:
        directory.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
    except OSError as e:
        logger.error(f"Failed to write {path}: {e}")
        raise EncodeError(f"Could not save the final file to {path}: {e}") from e

    logger.info(f"Saved {fmt.value} output to {path}")
    return path

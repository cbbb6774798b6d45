"""
I/O Utilities

Image decoding and JSON helpers.
"""

import io
import json
import logging
from pathlib import Path
from typing import Any, Dict, Union

import cv2
import numpy as np
from PIL import Image, ImageOps, UnidentifiedImageError
from pydantic import ValidationError

from docscan.common.errors import DecodeError
from docscan.common.types import ImageBuffer

logger = logging.getLogger(__name__)

ImageSource = Union[bytes, bytearray, str, Path, np.ndarray]


def pil_to_bgr(pil_img: Image.Image) -> np.ndarray:
    """Convert a Pillow image to an OpenCV BGR (or BGRA) uint8 array."""
    if pil_img.mode in ("RGBA", "LA") or "transparency" in pil_img.info:
        rgba = np.array(pil_img.convert("RGBA"))
        return cv2.cvtColor(rgba, cv2.COLOR_RGBA2BGRA)
    rgb = np.array(pil_img.convert("RGB"))
    return cv2.cvtColor(rgb, cv2.COLOR_RGB2BGR)


def decode_image(source: ImageSource) -> np.ndarray:
    """
    Decode an image from bytes, a file path, or pass through an array.

    EXIF orientation is applied so the returned pixels are upright.

    Args:
        source: Encoded bytes, a path, or an already decoded uint8 array.

    Returns:
        uint8 array in BGR (or BGRA when the source has alpha).

    Raises:
        DecodeError: If the source cannot be read or decoded.
    """
    if isinstance(source, np.ndarray):
        try:
            return ImageBuffer(data=source).to_numpy()
        except ValidationError as e:
            reason = "; ".join(err["msg"] for err in e.errors())
            raise DecodeError(f"Invalid image array: {reason}") from e

    if isinstance(source, (bytes, bytearray)):
        stream = io.BytesIO(source)
        label = f"<{len(source)} bytes>"
    elif isinstance(source, (str, Path)):
        path = Path(source)
        if not path.is_file():
            raise DecodeError(f"Image file not found: {path}")
        stream = path
        label = str(path)
    else:
        raise DecodeError(f"Unsupported image source type: {type(source).__name__}")

    try:
        with Image.open(stream) as pil_img:
            upright = ImageOps.exif_transpose(pil_img)
            image = pil_to_bgr(upright)
    except (UnidentifiedImageError, OSError, ValueError) as e:
        logger.error(f"Failed to decode image {label}: {e}")
        raise DecodeError(f"Could not decode image {label}: {e}") from e

    logger.debug(f"Decoded image {label}: {image.shape[1]}x{image.shape[0]}")
    return image


def load_json(file_path: Path) -> Dict[str, Any]:
    """Load JSON file."""
    with open(file_path, "r", encoding="utf-8") as f:
        return json.load(f)

"""
Tone transforms for rectified document images.

Every function takes a uint8 image (BGR, BGRA or single channel) and returns
a new uint8 image; intermediate values are clamped to [0, 255].
"""

import logging
from typing import Optional

import cv2
import numpy as np

from docscan.config_loader import FiltersConfig
from docscan.filters.types import FilterMode, FilterSpec

logger = logging.getLogger(__name__)


def to_grayscale(image: np.ndarray) -> np.ndarray:
    """Convert to single-channel luminance."""
    if image.ndim == 2:
        return image.copy()
    channels = image.shape[2]
    if channels == 1:
        return image[:, :, 0].copy()
    if channels == 4:
        return cv2.cvtColor(image, cv2.COLOR_BGRA2GRAY)
    return cv2.cvtColor(image, cv2.COLOR_BGR2GRAY)


def expand_channels(image: np.ndarray, channels: int) -> np.ndarray:
    """Replicate a single-channel image across ``channels`` channels."""
    if image.ndim == 3:
        if image.shape[2] == channels:
            return image
        image = image[:, :, 0]
    if channels == 1:
        return image
    return np.repeat(image[:, :, np.newaxis], channels, axis=2)


def _clamp(values: np.ndarray) -> np.ndarray:
    return np.clip(values, 0, 255).astype(np.uint8)


def black_and_white(
    image: np.ndarray, boost: float = 1.5, pivot: float = 127.0
) -> np.ndarray:
    """Grayscale with a fixed linear contrast boost around ``pivot``."""
    gray = to_grayscale(image).astype(np.float32)
    return _clamp((gray - pivot) * boost + pivot)


def custom(
    image: np.ndarray,
    brightness: Optional[float] = None,
    contrast: Optional[float] = None,
    threshold: Optional[float] = None,
    brightness_scale: float = 200.0,
    max_cutoff: float = 254.0,
) -> np.ndarray:
    """
    Grayscale, linear brightness/contrast, then optional binarization.

    ``output = clamp(gray * contrast + brightness / brightness_scale * 255)``.
    With a threshold, pixels at or above ``min(threshold * 255, max_cutoff)``
    become 255 and the rest 0; the cap keeps a saturated threshold from
    blanking the page.

    Args:
        image: Input image.
        brightness: Brightness in [-100, 100]; 0 when absent.
        contrast: Contrast multiplier; 1.0 when absent.
        threshold: Binarization level in [0, 1]; no binarization when absent.
        brightness_scale: Divisor mapping brightness to a [-1, 1] offset.
        max_cutoff: Upper bound of the binarization cutoff.
    """
    gray = to_grayscale(image).astype(np.float32)

    gain = 1.0 if contrast is None else float(contrast)
    offset = 0.0 if brightness is None else float(brightness) / brightness_scale * 255.0

    adjusted = _clamp(gray * gain + offset)

    if threshold is None:
        return adjusted

    cutoff = min(float(threshold) * 255.0, max_cutoff)
    logger.debug(f"Binarizing at cutoff {cutoff:.1f}")
    return np.where(adjusted >= cutoff, 255, 0).astype(np.uint8)


def adaptive(image: np.ndarray, radius: float = 35.0, offset: float = 0.06) -> np.ndarray:
    """
    Local binarization against a heavily blurred copy of the page.

    A pixel turns white when its luminance exceeds the local mean minus
    ``offset`` (both on a 0-1 scale), otherwise black.

    Args:
        image: Input image.
        radius: Gaussian sigma of the local mean.
        offset: Constant subtracted from the local mean.
    """
    gray = to_grayscale(image).astype(np.float32) / 255.0
    local_mean = cv2.GaussianBlur(
        gray, (0, 0), sigmaX=radius, sigmaY=radius, borderType=cv2.BORDER_REPLICATE
    )
    return np.where(gray > local_mean - offset, 255, 0).astype(np.uint8)


def shadows(image: np.ndarray, intensity: float = 0.8) -> np.ndarray:
    """Blend a colour image toward its luminance by ``intensity``."""
    gray = to_grayscale(image)
    if image.ndim == 2 or image.shape[2] == 1:
        return gray
    mono = expand_channels(gray, image.shape[2]).astype(np.float32)
    blended = image.astype(np.float32) * (1.0 - intensity) + mono * intensity
    if image.shape[2] == 4:
        blended[:, :, 3] = image[:, :, 3]
    return _clamp(np.rint(blended))


def apply_filter(
    image: np.ndarray,
    spec: FilterSpec,
    config: Optional[FiltersConfig] = None,
) -> np.ndarray:
    """
    Apply the tone transform described by ``spec``.

    Args:
        image: Rectified image (BGR, BGRA or grayscale uint8).
        spec: Filter mode and parameters.
        config: Filter constants; defaults are used when None.

    Returns:
        New uint8 image. Grayscale modes return a single channel unless
        ``config.preserve_channels`` is set.

    Example:
        >>> flat = apply_filter(rectified, FilterSpec(mode="adaptive"))
    """
    config = config or FiltersConfig()
    mode = spec.mode

    logger.info(f"Applying filter: {mode.value}")

    if mode == FilterMode.NONE:
        return image.copy()

    if mode == FilterMode.GRAYSCALE:
        result = to_grayscale(image)
    elif mode == FilterMode.BLACK_AND_WHITE:
        result = black_and_white(image, config.contrast_boost, config.contrast_pivot)
    elif mode == FilterMode.CUSTOM:
        result = custom(
            image,
            brightness=spec.brightness,
            contrast=spec.contrast,
            threshold=spec.threshold,
            brightness_scale=config.brightness_scale,
            max_cutoff=config.max_threshold_cutoff,
        )
    elif mode == FilterMode.ADAPTIVE:
        result = adaptive(image, config.adaptive_radius, config.adaptive_offset)
    else:
        return shadows(image, config.shadows_intensity)

    if config.preserve_channels and image.ndim == 3:
        result = expand_channels(result, image.shape[2])

    return result

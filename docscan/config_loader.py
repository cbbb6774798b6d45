"""
Configuration loader with Pydantic validation for the scanning pipeline.

This module provides type-safe configuration loading from YAML files using
Pydantic models for validation and default values. The bundled
``config.yaml`` holds one section per pipeline module.
"""

import logging
from pathlib import Path
from typing import Literal, Optional

import yaml
from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

# Default configuration path (relative to this file)
DEFAULT_CONFIG_PATH = Path(__file__).parent / "config.yaml"


class ContourConfig(BaseModel):
    """Contour-search edge detector parameters.

    Attributes:
        resize_target: Shorter image side after downscaling (pixels).
        bilateral_diameter: Pixel neighbourhood diameter of the bilateral filter.
        bilateral_sigma_color: Bilateral filter sigma in intensity space.
        bilateral_sigma_space: Bilateral filter sigma in coordinate space.
        canny_low: Lower hysteresis threshold for Canny.
        canny_high: Upper hysteresis threshold for Canny.
        morph_kernel_size: Side of the square closing kernel.
        morph_iterations: Number of closing iterations.
        min_area_ratio: Minimum contour area relative to the downscaled image.
        approx_epsilon_ratio: Polygon approximation tolerance relative to perimeter.
    """

    resize_target: int = Field(default=500, gt=0)
    bilateral_diameter: int = Field(default=9, gt=0)
    bilateral_sigma_color: float = Field(default=75.0, gt=0.0)
    bilateral_sigma_space: float = Field(default=75.0, gt=0.0)
    canny_low: float = Field(default=75.0, ge=0.0)
    canny_high: float = Field(default=200.0, ge=0.0)
    morph_kernel_size: int = Field(default=3, gt=0)
    morph_iterations: int = Field(default=2, ge=0)
    min_area_ratio: float = Field(default=0.04, ge=0.0, le=1.0)
    approx_epsilon_ratio: float = Field(default=0.01, gt=0.0, le=1.0)


class ModelConfig(BaseModel):
    """Corner keypoint model parameters.

    Attributes:
        path: Path to YOLO pose weights (relative paths resolve from the project root).
        min_confidence: Minimum detection confidence to accept a quadrilateral.
        image_size: Input image size for model inference.
        device: Device for inference ("auto", "cpu", "cuda", "mps").
    """

    path: str = "weights/corners/best.pt"
    min_confidence: float = Field(default=0.6, ge=0.0, le=1.0)
    image_size: int = Field(default=640, gt=0)
    device: Literal["auto", "cpu", "cuda", "mps"] = "auto"


class DetectionConfig(BaseModel):
    """Edge detection configuration.

    Attributes:
        backend: "auto" prefers the model when it can be loaded, otherwise contour search.
        contour: Contour-search parameters.
        model: Keypoint model parameters.
    """

    backend: Literal["auto", "contour", "model"] = "auto"
    contour: ContourConfig = Field(default_factory=ContourConfig)
    model: ModelConfig = Field(default_factory=ModelConfig)


class RectificationConfig(BaseModel):
    """Perspective rectification configuration.

    Attributes:
        interpolation: Resampling method for the warp.
        reorder_points: Re-canonicalize caller corners before warping (off: the
            named corners are trusted as given).
        min_triangle_area: Area (px^2) below which three corners count as collinear.
    """

    interpolation: Literal["linear", "nearest", "cubic"] = "linear"
    reorder_points: bool = False
    min_triangle_area: float = Field(default=0.5, ge=0.0)


class FiltersConfig(BaseModel):
    """Tone filter configuration.

    Attributes:
        contrast_boost: Linear contrast factor of the blackAndWhite mode.
        contrast_pivot: Intensity the blackAndWhite boost pivots around.
        brightness_scale: Divisor mapping brightness input to a [-1, 1] offset.
        max_threshold_cutoff: Upper bound of the custom binarization cutoff.
        adaptive_radius: Gaussian sigma of the local mean in adaptive mode.
        adaptive_offset: Constant C subtracted from the local mean (0-1 scale).
        shadows_intensity: Blend factor toward luminance in shadows mode.
        preserve_channels: Re-expand single-channel output to the source channel count.
    """

    contrast_boost: float = Field(default=1.5, gt=0.0)
    contrast_pivot: float = Field(default=127.0, ge=0.0, le=255.0)
    brightness_scale: float = Field(default=200.0, gt=0.0)
    max_threshold_cutoff: float = Field(default=254.0, ge=0.0, le=255.0)
    adaptive_radius: float = Field(default=35.0, gt=0.0)
    adaptive_offset: float = Field(default=0.06, ge=0.0, le=1.0)
    shadows_intensity: float = Field(default=0.8, ge=0.0, le=1.0)
    preserve_channels: bool = False


class CodecConfig(BaseModel):
    """Output encoding configuration.

    Attributes:
        jpeg_quality: JPEG quality (1-100).
        pdf_resolution: PDF resolution in dpi; 72 makes the page size equal the pixel size.
        output_dir: Directory for written files (None uses the system temp dir).
    """

    jpeg_quality: int = Field(default=80, ge=1, le=100)
    pdf_resolution: float = Field(default=72.0, gt=0.0)
    output_dir: Optional[str] = None


class Config(BaseModel):
    """Root configuration container."""

    detection: DetectionConfig = Field(default_factory=DetectionConfig)
    rectification: RectificationConfig = Field(default_factory=RectificationConfig)
    filters: FiltersConfig = Field(default_factory=FiltersConfig)
    codec: CodecConfig = Field(default_factory=CodecConfig)


def load_config(config_path: Path = DEFAULT_CONFIG_PATH) -> Config:
    """Load and validate configuration from YAML file.

    Args:
        config_path: Path to YAML configuration file.

    Returns:
        Validated Config object with all settings.

    Raises:
        FileNotFoundError: If config file does not exist.
        yaml.YAMLError: If YAML parsing fails.
        pydantic.ValidationError: If configuration validation fails.

    Example:
        >>> config = load_config()
        >>> print(config.detection.contour.resize_target)
        500
    """
    config_path = Path(config_path)
    if not config_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    logger.debug(f"Loading configuration from {config_path}")

    with open(config_path, "r", encoding="utf-8") as f:
        config_dict = yaml.safe_load(f) or {}

    config = Config(**config_dict)
    logger.info(f"Loaded configuration from {config_path}")
    return config


def get_default_config() -> Config:
    """Get default configuration from the bundled config.yaml file.

    Falls back to the model defaults when the bundled file is missing.
    """
    if DEFAULT_CONFIG_PATH.exists():
        return load_config(DEFAULT_CONFIG_PATH)
    logger.warning(f"Bundled config not found at {DEFAULT_CONFIG_PATH}, using defaults")
    return Config()

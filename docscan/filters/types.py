"""
Data types for the Filters module.

Defines the tone filter modes and the per-request filter settings.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from docscan.common.errors import InvalidArguments


class FilterMode(Enum):
    """Tone transforms applied after rectification."""

    NONE = "none"
    GRAYSCALE = "grayscale"
    BLACK_AND_WHITE = "blackAndWhite"
    CUSTOM = "custom"
    ADAPTIVE = "adaptive"
    SHADOWS = "shadows"

    @classmethod
    def parse(cls, name: str) -> "FilterMode":
        """
        Resolve a mode name, accepting the "color" and "automatic" aliases.

        Raises:
            InvalidArguments: If the name is unknown.
        """
        if isinstance(name, cls):
            return name
        name = MODE_ALIASES.get(name, name)
        try:
            return cls(name)
        except ValueError as e:
            valid = [mode.value for mode in cls] + list(MODE_ALIASES)
            raise InvalidArguments(
                f"Unknown filter mode: {name!r}. Must be one of {valid}"
            ) from e


MODE_ALIASES = {
    "color": FilterMode.NONE.value,
    "automatic": FilterMode.ADAPTIVE.value,
}


class FilterSpec(BaseModel):
    """
    Filter mode plus optional numeric parameters.

    Attributes:
        mode: Tone transform to apply.
        brightness: Brightness offset in [-100, 100] (custom mode).
        contrast: Contrast multiplier, 1.0 when absent (custom mode).
        threshold: Binarization level in [0, 1] (custom mode).

    Example:
        >>> spec = FilterSpec(mode="custom", contrast=1.2, threshold=0.5)
        >>> spec.mode
        <FilterMode.CUSTOM: 'custom'>
    """

    mode: FilterMode = FilterMode.NONE
    brightness: Optional[float] = Field(default=None, ge=-100.0, le=100.0)
    contrast: Optional[float] = Field(default=None, ge=0.0)
    threshold: Optional[float] = Field(default=None, ge=0.0, le=1.0)

    @field_validator("mode", mode="before")
    @classmethod
    def _parse_mode(cls, v):
        if v is None:
            return FilterMode.NONE
        return FilterMode.parse(v)

"""
Tone filters applied to rectified pages before encoding.

Example:
    >>> from docscan.filters import FilterSpec, apply_filter
    >>> page = apply_filter(rectified, FilterSpec(mode="blackAndWhite"))
"""

from docscan.filters.tone_filters import (
    adaptive,
    apply_filter,
    black_and_white,
    custom,
    expand_channels,
    shadows,
    to_grayscale,
)
from docscan.filters.types import FilterMode, FilterSpec

__all__ = [
    "FilterMode",
    "FilterSpec",
    "apply_filter",
    "to_grayscale",
    "expand_channels",
    "black_and_white",
    "custom",
    "adaptive",
    "shadows",
]

"""
Shared Utilities

Common functions used across all modules.
"""

from docscan.utils.io import decode_image, load_json, pil_to_bgr
from docscan.utils.logging_config import setup_logging

__all__ = [
    "decode_image",
    "load_json",
    "pil_to_bgr",
    "setup_logging",
]

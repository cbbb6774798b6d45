"""
docscan: turn a photographed page into a clean, rectified document image.

Pipeline stages:
1. Edge detection (document quadrilateral, normalized coordinates)
2. Perspective rectification (warp to rectangle)
3. Tone filtering (grayscale, contrast, threshold, adaptive binarization)
4. Encoding (JPEG or single-page PDF)
"""

__version__ = "0.1.0"

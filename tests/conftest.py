"""
Pytest Configuration and Shared Fixtures

This file contains pytest configuration and fixtures that are available
to all test modules.
"""

import cv2
import numpy as np
import pytest

from docscan.config_loader import Config


@pytest.fixture
def sample_quadrilateral_points():
    """Fixture providing 4 unordered corner points (pixel space)."""
    return np.array(
        [
            [300, 150],  # Top-right area
            [100, 200],  # Top-left area
            [320, 400],  # Bottom-right area
            [80, 380],  # Bottom-left area
        ],
        dtype=np.float32,
    )


@pytest.fixture
def white_rectangle_image():
    """1000x1000 black image with a solid white rectangle (100,100)-(900,800)."""
    image = np.zeros((1000, 1000, 3), dtype=np.uint8)
    cv2.rectangle(image, (100, 100), (900, 800), (255, 255, 255), thickness=-1)
    return image


@pytest.fixture
def photographed_page():
    """
    Synthetic photo: a tilted white page with dark text lines on a grey desk.

    Returns:
        Tuple of (image, page corners [TL, TR, BR, BL]).
    """
    image = np.full((900, 1200, 3), 70, dtype=np.uint8)
    corners = np.array([[260, 120], [930, 160], [980, 800], [200, 760]], dtype=np.int32)
    cv2.fillPoly(image, [corners], (235, 235, 235))
    for y in range(260, 680, 60):
        cv2.line(image, (330, y), (820, y + 15), (30, 30, 30), 4)
    return image, corners.astype(np.float32)


@pytest.fixture
def gradient_image():
    """Smooth 400x600 BGR gradient (1 intensity step per 3 pixels)."""
    ys, xs = np.mgrid[0:400, 0:600]
    base = ((xs + ys) / 4).astype(np.uint8)
    return np.dstack([base, base, base])


@pytest.fixture
def default_config():
    """Configuration built from model defaults (independent of config.yaml)."""
    return Config()


@pytest.fixture
def contour_config():
    """Configuration that always selects the contour backend."""
    config = Config()
    config.detection.backend = "contour"
    return config

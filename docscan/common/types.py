"""
Common type definitions for the document scanning pipeline.

Pydantic models for the values passed between pipeline stages: images,
points and document quadrilaterals, with conversions between pixel space,
normalized space and numpy arrays.

Coordinate convention:
    Both pixel and normalized space have their origin at the top-left corner
    and Y grows downward. Normalized coordinates are pixel coordinates divided
    by the image width/height.
"""

import math
from typing import Dict, Tuple, Union

import numpy as np
from pydantic import BaseModel, Field, field_validator

from docscan.common.errors import InvalidArguments

# Serialized key names, in the order used by to_dict()
QUAD_KEYS = (
    "topLeftX",
    "topLeftY",
    "topRightX",
    "topRightY",
    "bottomLeftX",
    "bottomLeftY",
    "bottomRightX",
    "bottomRightY",
)


class ImageBuffer(BaseModel):
    """
    Validated uint8 image array.

    Wraps the numpy arrays passed between pipeline stages and rejects
    anything OpenCV would choke on further down: empty arrays, other dtypes,
    more than three dimensions or unusual channel counts.

    Attributes:
        data: Pixel array, (H, W) for grayscale or (H, W, C) with C in
            {1, 3, 4}. Colour images use OpenCV's BGR / BGRA order.

    Example:
        >>> buf = ImageBuffer(data=cv2.imread("page.jpg"))
        >>> buf.width, buf.height, buf.channels
        (1280, 960, 3)
    """

    data: np.ndarray = Field(..., description="uint8 pixel array")

    model_config = {"arbitrary_types_allowed": True}

    @field_validator("data")
    @classmethod
    def _check_pixels(cls, v: np.ndarray) -> np.ndarray:
        if not isinstance(v, np.ndarray):
            raise ValueError(f"Image must be a numpy array, got {type(v).__name__}")
        if v.size == 0:
            raise ValueError("Image array is empty")
        if v.ndim not in (2, 3):
            raise ValueError(f"Image must be 2D or 3D, got shape {v.shape}")
        if v.ndim == 3 and v.shape[2] not in (1, 3, 4):
            raise ValueError(f"Image must have 1, 3 or 4 channels, got {v.shape[2]}")
        if v.dtype != np.uint8:
            raise ValueError(f"Image must be uint8, got {v.dtype}")
        return v

    @property
    def shape(self) -> Tuple[int, ...]:
        return self.data.shape

    @property
    def height(self) -> int:
        return int(self.data.shape[0])

    @property
    def width(self) -> int:
        return int(self.data.shape[1])

    @property
    def channels(self) -> int:
        """1 for grayscale, 3 for BGR, 4 for BGRA."""
        return 1 if self.data.ndim == 2 else int(self.data.shape[2])

    def to_numpy(self) -> np.ndarray:
        return self.data

    def copy(self) -> "ImageBuffer":
        return ImageBuffer(data=self.data.copy())

    def __repr__(self) -> str:
        return f"ImageBuffer({self.width}x{self.height}, channels={self.channels})"


class Point(BaseModel):
    """
    Real-valued 2D point (x, y).

    Used both in pixel space and in normalized space; the space is implied by
    the caller. Supports vector addition/subtraction and Euclidean distance.

    Example:
        >>> p = Point(x=0.25, y=0.5)
        >>> p.to_pixels(800, 600)
        Point(x=200.0, y=300.0)
    """

    x: float = Field(..., description="X-coordinate (horizontal)")
    y: float = Field(..., description="Y-coordinate (vertical, grows downward)")

    @field_validator("x", "y", mode="before")
    @classmethod
    def _validate_finite(cls, v: Union[int, float]) -> float:
        if isinstance(v, bool) or not isinstance(v, (int, float, np.number)):
            raise ValueError(f"Coordinate must be numeric, got {type(v)}")
        v = float(v)
        if not math.isfinite(v):
            raise ValueError(f"Coordinate must be finite, got {v}")
        return v

    @classmethod
    def from_numpy(cls, arr: np.ndarray) -> "Point":
        """Create Point from a numpy array of shape (2,)."""
        arr = np.asarray(arr)
        if arr.shape != (2,):
            raise ValueError(f"Expected array of shape (2,), got {arr.shape}")
        return cls(x=float(arr[0]), y=float(arr[1]))

    def to_numpy(self, dtype: type = np.float32) -> np.ndarray:
        """Convert Point to numpy array of shape (2,)."""
        return np.array([self.x, self.y], dtype=dtype)

    def to_tuple(self) -> Tuple[float, float]:
        return (self.x, self.y)

    def distance_to(self, other: "Point") -> float:
        """Euclidean distance to another point."""
        return math.hypot(self.x - other.x, self.y - other.y)

    def to_pixels(self, width: int, height: int) -> "Point":
        """Scale a normalized point into pixel space."""
        return Point(x=self.x * width, y=self.y * height)

    def to_normalized(self, width: int, height: int) -> "Point":
        """Scale a pixel-space point into normalized space."""
        return Point(x=self.x / width, y=self.y / height)

    def __add__(self, other: "Point") -> "Point":
        """Add two points (vector addition)."""
        return Point(x=self.x + other.x, y=self.y + other.y)

    def __sub__(self, other: "Point") -> "Point":
        """Subtract two points (vector subtraction)."""
        return Point(x=self.x - other.x, y=self.y - other.y)

    def __repr__(self) -> str:
        return f"Point(x={self.x}, y={self.y})"


class Quadrilateral(BaseModel):
    """
    Four named corners of a document boundary.

    The canonical array order used by every consumer is
    [top_left, top_right, bottom_right, bottom_left]; see to_array() and
    from_array(). The serialized form (to_dict / from_dict) uses eight
    camelCase keys and round-trips exactly.

    A degenerate quadrilateral (collinear or coincident corners) is a valid
    value; rectification rejects it.
    """

    top_left: Point
    top_right: Point
    bottom_left: Point
    bottom_right: Point

    @classmethod
    def default(cls) -> "Quadrilateral":
        """Full-frame quadrilateral in normalized space."""
        return cls(
            top_left=Point(x=0.0, y=0.0),
            top_right=Point(x=1.0, y=0.0),
            bottom_left=Point(x=0.0, y=1.0),
            bottom_right=Point(x=1.0, y=1.0),
        )

    @classmethod
    def from_array(cls, pts: Union[np.ndarray, list]) -> "Quadrilateral":
        """
        Build from 4 points already in canonical order [TL, TR, BR, BL].

        Raises:
            InvalidArguments: If the input is not shaped (4, 2).
        """
        pts = np.asarray(pts, dtype=np.float64)
        if pts.shape != (4, 2):
            raise InvalidArguments(
                f"Expected 4 points with shape (4, 2), got shape {pts.shape}"
            )
        tl, tr, br, bl = (Point.from_numpy(p) for p in pts)
        return cls(top_left=tl, top_right=tr, bottom_left=bl, bottom_right=br)

    def to_array(self, dtype: type = np.float32) -> np.ndarray:
        """Corners as an array of shape (4, 2) in order [TL, TR, BR, BL]."""
        return np.array(
            [
                self.top_left.to_tuple(),
                self.top_right.to_tuple(),
                self.bottom_right.to_tuple(),
                self.bottom_left.to_tuple(),
            ],
            dtype=dtype,
        )

    @classmethod
    def from_dict(cls, values: Dict[str, float]) -> "Quadrilateral":
        """
        Parse the eight-key serialized form.

        Every value must be a finite real in [0, 1].

        Raises:
            InvalidArguments: If a key is missing or a value is malformed.
        """
        if not isinstance(values, dict):
            raise InvalidArguments(
                f"Quadrilateral must be a mapping, got {type(values).__name__}"
            )

        missing = [key for key in QUAD_KEYS if key not in values]
        if missing:
            raise InvalidArguments(f"Quadrilateral is missing keys: {missing}")

        for key in QUAD_KEYS:
            value = values[key]
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise InvalidArguments(
                    f"Quadrilateral value '{key}' must be a number, got {value!r}"
                )
            if not (0.0 <= float(value) <= 1.0):
                raise InvalidArguments(
                    f"Quadrilateral value '{key}'={value} is outside [0, 1]"
                )

        return cls(
            top_left=Point(x=values["topLeftX"], y=values["topLeftY"]),
            top_right=Point(x=values["topRightX"], y=values["topRightY"]),
            bottom_left=Point(x=values["bottomLeftX"], y=values["bottomLeftY"]),
            bottom_right=Point(x=values["bottomRightX"], y=values["bottomRightY"]),
        )

    def to_dict(self) -> Dict[str, float]:
        """Serialize to the eight-key form."""
        return {
            "topLeftX": self.top_left.x,
            "topLeftY": self.top_left.y,
            "topRightX": self.top_right.x,
            "topRightY": self.top_right.y,
            "bottomLeftX": self.bottom_left.x,
            "bottomLeftY": self.bottom_left.y,
            "bottomRightX": self.bottom_right.x,
            "bottomRightY": self.bottom_right.y,
        }

    def to_pixels(self, width: int, height: int) -> "Quadrilateral":
        """Scale every corner from normalized into pixel space."""
        return Quadrilateral(
            top_left=self.top_left.to_pixels(width, height),
            top_right=self.top_right.to_pixels(width, height),
            bottom_left=self.bottom_left.to_pixels(width, height),
            bottom_right=self.bottom_right.to_pixels(width, height),
        )

    def to_normalized(self, width: int, height: int) -> "Quadrilateral":
        """Scale every corner from pixel into normalized space."""
        return Quadrilateral(
            top_left=self.top_left.to_normalized(width, height),
            top_right=self.top_right.to_normalized(width, height),
            bottom_left=self.bottom_left.to_normalized(width, height),
            bottom_right=self.bottom_right.to_normalized(width, height),
        )

"""
Model-based edge detector.

Runs a YOLO pose model trained to predict the four page corners as
keypoints. A single inference call per image; the prediction is accepted
only when its box confidence reaches ``min_confidence``.
"""

import importlib.util
import logging
import threading
from pathlib import Path
from typing import Optional

import numpy as np

from docscan.common.types import ImageBuffer, Quadrilateral
from docscan.config_loader import ModelConfig
from docscan.detection.types import DetectionResult
from docscan.rectification.image_rectification import order_points

logger = logging.getLogger(__name__)

PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent


def _to_numpy(value) -> np.ndarray:
    return value.cpu().numpy() if hasattr(value, "cpu") else np.asarray(value)


class ModelEdgeDetector:
    """
    Corner keypoint detector backed by ultralytics YOLO-Pose.

    The model is lazy-loaded on first use so that constructing the detector
    (and checking ``is_available``) stays cheap.

    Example:
        >>> detector = ModelEdgeDetector()
        >>> if detector.is_available():
        ...     result = detector.detect_quad(ImageBuffer(data=image))
    """

    name = "model"

    def __init__(self, config: Optional[ModelConfig] = None, model_path: Optional[Path] = None):
        """
        Initialize the model detector.

        Args:
            config: Model configuration. Defaults are used when None.
            model_path: Explicit weights path overriding ``config.path``.
        """
        self.config = config or ModelConfig()

        if model_path is None:
            model_path = Path(self.config.path)
            if not model_path.is_absolute():
                model_path = PROJECT_ROOT / model_path
        self.model_path = Path(model_path)

        self._model: Optional[object] = None  # Lazy-loaded
        # YOLO predictors are not thread-safe
        self._lock = threading.Lock()

    def is_available(self) -> bool:
        """True when ultralytics is installed and the weights file exists."""
        if self._model is not None:
            return True
        if importlib.util.find_spec("ultralytics") is None:
            logger.debug("ultralytics is not installed")
            return False
        if not self.model_path.exists():
            logger.debug(f"Corner model weights not found at {self.model_path}")
            return False
        return True

    @property
    def model(self):
        """Lazy-load the YOLO model on first access.

        Raises:
            ImportError: If ultralytics is not installed.
            RuntimeError: If model loading fails.
        """
        if self._model is None:
            try:
                from ultralytics import YOLO
            except ImportError as e:
                logger.error(
                    "Failed to import ultralytics. Install with: pip install ultralytics"
                )
                raise ImportError(
                    "ultralytics not installed. Run: pip install ultralytics"
                ) from e

            try:
                logger.info(f"Loading corner model from {self.model_path}")
                self._model = YOLO(str(self.model_path))
                logger.info("✓ Corner model loaded successfully")
            except Exception as e:
                error_msg = f"Failed to load corner model: {str(e)}"
                logger.error(error_msg)
                raise RuntimeError(error_msg) from e

        return self._model

    def _resolve_device(self) -> str:
        device = self.config.device
        if device != "auto":
            return device
        try:
            import torch

            return "cuda" if torch.cuda.is_available() else "cpu"
        except ImportError:
            logger.debug("PyTorch not available, using CPU")
            return "cpu"

    def detect_quad(self, image: ImageBuffer) -> DetectionResult:
        """
        Detect the page corners with one inference call.

        Inference failures are logged and reported as a miss.

        Returns:
            DetectionResult in normalized coordinates; the default quad when
            no prediction reaches ``min_confidence``.
        """
        min_conf = self.config.min_confidence

        try:
            with self._lock:
                results = self.model.predict(
                    source=image.to_numpy(),
                    conf=min_conf,
                    imgsz=self.config.image_size,
                    device=self._resolve_device(),
                    verbose=False,
                )
        except Exception as e:
            logger.error(f"Corner model inference failed: {e}")
            return DetectionResult.miss(self.name)

        if (
            len(results) == 0
            or results[0].boxes is None
            or len(results[0].boxes) == 0
            or results[0].keypoints is None
        ):
            logger.info("Corner model returned no prediction, using full frame")
            return DetectionResult.miss(self.name)

        confidences = _to_numpy(results[0].boxes.conf).reshape(-1)
        best = int(np.argmax(confidences))
        confidence = float(confidences[best])

        if confidence < min_conf:
            logger.info(
                f"Best corner prediction confidence {confidence:.3f} "
                f"< {min_conf}, using full frame"
            )
            return DetectionResult.miss(self.name, confidence)

        keypoints = _to_numpy(results[0].keypoints.xy)[best]
        if keypoints.shape != (4, 2):
            logger.warning(f"Expected 4 corner keypoints, got shape {keypoints.shape}")
            return DetectionResult.miss(self.name, confidence)

        corners = order_points(keypoints)
        quad = Quadrilateral.from_array(corners).to_normalized(image.width, image.height)

        logger.info(f"✓ Corners detected (confidence: {confidence:.3f})")
        return DetectionResult(quad=quad, found=True, backend=self.name, confidence=confidence)

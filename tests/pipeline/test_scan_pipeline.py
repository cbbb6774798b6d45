"""
Integration tests for the scanning pipeline.
"""

import cv2
import numpy as np
import pytest

from docscan.common.errors import DegenerateQuadrilateral, InvalidArguments
from docscan.common.types import QUAD_KEYS, Quadrilateral
from docscan.filters.types import FilterSpec
from docscan.pipeline.scan_pipeline import ScanPipeline, build_request
from docscan.pipeline.types import ScanRequest

COLLINEAR_QUAD = {
    "topLeftX": 0.0,
    "topLeftY": 0.0,
    "topRightX": 0.5,
    "topRightY": 0.0,
    "bottomLeftX": 0.0,
    "bottomLeftY": 1.0,
    "bottomRightX": 1.0,
    "bottomRightY": 0.0,
}

# Page rotated 45 degrees: the corners tie on x+y and y-x
DIAMOND_QUAD = {
    "topLeftX": 0.5,
    "topLeftY": 0.0,
    "topRightX": 1.0,
    "topRightY": 0.5,
    "bottomLeftX": 0.0,
    "bottomLeftY": 0.5,
    "bottomRightX": 0.5,
    "bottomRightY": 1.0,
}

INNER_QUAD = {
    "topLeftX": 0.25,
    "topLeftY": 0.25,
    "topRightX": 0.75,
    "topRightY": 0.25,
    "bottomLeftX": 0.25,
    "bottomLeftY": 0.75,
    "bottomRightX": 0.75,
    "bottomRightY": 0.75,
}


def _decode(data: bytes) -> np.ndarray:
    return cv2.imdecode(np.frombuffer(data, np.uint8), cv2.IMREAD_UNCHANGED)


@pytest.fixture
def pipeline(contour_config, tmp_path):
    contour_config.codec.output_dir = str(tmp_path / "out")
    return ScanPipeline(config=contour_config)


@pytest.fixture
def page_file(tmp_path, photographed_page):
    image, _ = photographed_page
    path = tmp_path / "page.png"
    cv2.imwrite(str(path), image)
    return path


# ═══════════════════════════════════════════════════════════════════════════
# Core operations
# ═══════════════════════════════════════════════════════════════════════════


class TestDetect:
    def test_detect_from_path(self, pipeline, page_file, photographed_page):
        image, corners = photographed_page
        h, w = image.shape[:2]

        quad = pipeline.detect(page_file)

        np.testing.assert_allclose(quad.to_pixels(w, h).to_array(), corners, atol=8)

    def test_detect_from_bytes(self, pipeline, page_file):
        result = pipeline.detect_result(page_file.read_bytes())
        assert result.found
        assert result.backend == "contour"

    def test_detect_blank_image(self, pipeline):
        blank = np.full((200, 300, 3), 255, dtype=np.uint8)
        assert pipeline.detect(blank) == Quadrilateral.default()


class TestRectify:
    def test_default_quad_keeps_size(self, pipeline, gradient_image):
        result = pipeline.rectify(gradient_image, Quadrilateral.default())
        assert result.shape == gradient_image.shape

    def test_corner_order_is_normalized_when_enabled(self, pipeline, gradient_image):
        """Swapped corners are re-ordered before warping."""
        pipeline.config.rectification.reorder_points = True
        quad = Quadrilateral.from_dict(INNER_QUAD)
        swapped = Quadrilateral(
            top_left=quad.bottom_right,
            top_right=quad.bottom_left,
            bottom_left=quad.top_right,
            bottom_right=quad.top_left,
        )

        np.testing.assert_array_equal(
            pipeline.rectify(gradient_image, swapped),
            pipeline.rectify(gradient_image, quad),
        )

    def test_named_corners_used_as_given(self, pipeline):
        # Horizontal ramp: column x holds value x
        image = np.repeat(np.arange(200, dtype=np.uint8)[None, :, None], 200, axis=0)
        image = np.repeat(image, 3, axis=2)

        flat = pipeline.rectify(image, Quadrilateral.from_dict(DIAMOND_QUAD))

        assert flat.shape == (141, 141, 3)
        # Top-left of the output is the top vertex at x=100; top-right is the
        # right vertex at the border
        assert abs(int(flat[0, 0, 0]) - 100) <= 2
        assert abs(int(flat[0, -1, 0]) - 199) <= 2
        assert abs(int(flat[-1, 0, 0]) - 0) <= 2

    def test_detected_page_dimensions(self, pipeline, photographed_page):
        image, _ = photographed_page
        quad = pipeline.detect(image)

        flat = pipeline.rectify(image, quad)

        # Longest edges of the drawn page: bottom ~781, left ~643
        assert abs(flat.shape[1] - 781) <= 15
        assert abs(flat.shape[0] - 643) <= 15

    def test_degenerate_quad_raises(self, pipeline, gradient_image):
        with pytest.raises(DegenerateQuadrilateral):
            pipeline.rectify(gradient_image, Quadrilateral.from_dict(COLLINEAR_QUAD))


class TestRectifyAndFilter:
    def test_jpeg_bytes(self, pipeline, page_file):
        quad = pipeline.detect(page_file)

        data = pipeline.rectify_and_filter(page_file, quad, FilterSpec(mode="grayscale"))

        assert data.startswith(b"\xff\xd8")
        assert _decode(data).ndim == 2

    def test_pdf_bytes_with_dict_quad(self, pipeline, gradient_image):
        data = pipeline.rectify_and_filter(
            gradient_image, INNER_QUAD, FilterSpec(mode="adaptive"), "pdf"
        )
        assert data.startswith(b"%PDF")

    def test_default_filter_keeps_colour(self, pipeline, gradient_image):
        data = pipeline.rectify_and_filter(gradient_image, Quadrilateral.default())
        decoded = _decode(data)
        assert decoded.shape == gradient_image.shape

    def test_diamond_quad_encodes(self, pipeline):
        image = np.full((200, 200, 3), 90, dtype=np.uint8)

        data = pipeline.rectify_and_filter(image, DIAMOND_QUAD)

        assert data.startswith(b"\xff\xd8")
        assert _decode(data).shape == (141, 141, 3)

    def test_invalid_quad_dict(self, pipeline, gradient_image):
        with pytest.raises(InvalidArguments):
            pipeline.rectify_and_filter(gradient_image, {"topLeftX": 0.0})


class TestRectifyAndSave:
    def test_uses_configured_output_dir(self, pipeline, page_file, tmp_path):
        path = pipeline.rectify_and_save(page_file, Quadrilateral.default(), output_format="pdf")

        assert path.parent == tmp_path / "out"
        assert path.suffix == ".pdf"
        assert path.read_bytes().startswith(b"%PDF")

    def test_explicit_output_dir(self, pipeline, page_file, tmp_path):
        target = tmp_path / "explicit"
        path = pipeline.rectify_and_save(
            page_file, Quadrilateral.default(), output_dir=target
        )
        assert path.parent == target
        assert path.suffix == ".jpeg"


# ═══════════════════════════════════════════════════════════════════════════
# Request / response boundary
# ═══════════════════════════════════════════════════════════════════════════


class TestProcess:
    def test_detects_when_quad_missing(self, pipeline, page_file):
        response = pipeline.process(ScanRequest(image=page_file))

        assert response.success
        assert response.quad != Quadrilateral.default()
        assert response.path is not None and response.path.exists()

    def test_returns_bytes_without_output_dir(self, contour_config, gradient_image):
        pipeline = ScanPipeline(config=contour_config)
        request = ScanRequest(image=gradient_image, quad=INNER_QUAD)

        response = pipeline.process(request)

        assert response.success
        assert response.path is None
        assert response.data.startswith(b"\xff\xd8")

    def test_degenerate_quad_response(self, pipeline, gradient_image):
        response = pipeline.process(ScanRequest(image=gradient_image, quad=COLLINEAR_QUAD))

        assert not response.success
        assert response.error_code == "DEGENERATE_QUAD"
        assert response.path is None

    def test_decode_error_response(self, pipeline):
        response = pipeline.process(ScanRequest(image=b"not an image"))

        assert not response.success
        assert response.error_code == "DECODE_ERROR"
        assert response.error_message

    def test_batch_keeps_order(self, pipeline, gradient_image):
        requests = [
            ScanRequest(image=gradient_image, quad=INNER_QUAD),
            ScanRequest(image=b"broken"),
            ScanRequest(image=gradient_image, quad=COLLINEAR_QUAD),
            ScanRequest(image=gradient_image, quad=INNER_QUAD, output_format="pdf"),
        ]

        responses = pipeline.process_batch(requests, max_workers=4)

        assert [r.success for r in responses] == [True, False, False, True]
        assert responses[1].error_code == "DECODE_ERROR"
        assert responses[2].error_code == "DEGENERATE_QUAD"
        assert responses[3].path.suffix == ".pdf"

    def test_batch_reports_non_image_array(self, pipeline, gradient_image):
        requests = [
            ScanRequest(image=gradient_image, quad=INNER_QUAD),
            ScanRequest(image=np.zeros((50, 60, 2), dtype=np.uint8), quad=INNER_QUAD),
            ScanRequest(image=np.zeros(100, dtype=np.uint8), quad=INNER_QUAD),
        ]

        responses = pipeline.process_batch(requests, max_workers=2)

        assert [r.success for r in responses] == [True, False, False]
        assert responses[1].error_code == "DECODE_ERROR"
        assert responses[2].error_code == "DECODE_ERROR"


class TestHandle:
    def test_detect_edges(self, pipeline, page_file):
        response = pipeline.handle("detectEdges", {"imagePath": str(page_file)})

        assert response.success
        assert set(response.to_dict()["quad"]) == set(QUAD_KEYS)

    def test_detect_edges_missing_path(self, pipeline):
        response = pipeline.handle("detectEdges", {})
        assert response.error_code == "INVALID_ARGS"

    def test_detect_edges_unreadable_file(self, pipeline, tmp_path):
        response = pipeline.handle("detectEdges", {"imagePath": str(tmp_path / "nope.jpg")})
        assert response.error_code == "DECODE_ERROR"

    def test_apply_crop_and_save(self, pipeline, page_file, tmp_path):
        response = pipeline.handle(
            "applyCropAndSave",
            {
                "imagePath": str(page_file),
                "quad": INNER_QUAD,
                "format": "jpeg",
                "filter": "custom",
                "brightness": 10,
                "contrast": 1.2,
                "threshold": 0.5,
            },
        )

        assert response.success, response.error_message
        assert response.path.parent == tmp_path / "out"
        binary = _decode(response.path.read_bytes())
        # JPEG artefacts blur the two levels but the page stays two-tone
        assert binary.ndim == 2

    def test_apply_crop_and_save_missing_arguments(self, pipeline, page_file):
        response = pipeline.handle("applyCropAndSave", {"imagePath": str(page_file)})

        assert response.error_code == "INVALID_ARGS"
        assert "quad" in response.error_message

    def test_apply_crop_and_save_bad_threshold(self, pipeline, page_file):
        response = pipeline.handle(
            "applyCropAndSave",
            {
                "imagePath": str(page_file),
                "quad": INNER_QUAD,
                "format": "pdf",
                "filter": "custom",
                "threshold": 2.0,
            },
        )
        assert response.error_code == "INVALID_ARGS"
        assert "threshold" in response.error_message

    def test_apply_crop_and_save_unknown_filter(self, pipeline, page_file):
        response = pipeline.handle(
            "applyCropAndSave",
            {"imagePath": str(page_file), "quad": INNER_QUAD, "format": "pdf", "filter": "sepia"},
        )
        assert response.error_code == "INVALID_ARGS"

    def test_unknown_method(self, pipeline):
        response = pipeline.handle("rotate", {})
        assert not response.success
        assert response.error_code == "INVALID_ARGS"


class TestBuildRequest:
    def test_valid(self, gradient_image):
        request = build_request(image=gradient_image, filter={"mode": "automatic"}, output_format="jpg")
        assert request.filter.mode.value == "adaptive"
        assert request.output_format.value == "jpeg"

    def test_out_of_range_filter(self, gradient_image):
        with pytest.raises(InvalidArguments, match="threshold"):
            build_request(image=gradient_image, filter={"mode": "custom", "threshold": 3})

    def test_unknown_format(self, gradient_image):
        with pytest.raises(InvalidArguments):
            build_request(image=gradient_image, output_format="gif")

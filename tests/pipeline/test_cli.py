"""
Tests for the command-line interface.
"""

import json
from pathlib import Path
from unittest.mock import patch

import cv2
import pytest
import yaml

from docscan.pipeline.cli import _parse_quad, build_parser, main
from docscan.common.errors import InvalidArguments

QUAD = {
    "topLeftX": 0.1,
    "topLeftY": 0.1,
    "topRightX": 0.9,
    "topRightY": 0.1,
    "bottomLeftX": 0.1,
    "bottomLeftY": 0.9,
    "bottomRightX": 0.9,
    "bottomRightY": 0.9,
}


@pytest.fixture(autouse=True)
def no_logging_setup():
    """Leave pytest's log capture alone."""
    with patch("docscan.pipeline.cli.setup_logging") as mock:
        yield mock


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(yaml.safe_dump({"detection": {"backend": "contour"}}))
    return path


@pytest.fixture
def page_file(tmp_path, white_rectangle_image):
    path = tmp_path / "page.png"
    cv2.imwrite(str(path), white_rectangle_image)
    return path


class TestParseQuad:
    def test_inline_json(self):
        assert _parse_quad(json.dumps(QUAD)).to_dict() == QUAD

    def test_json_file(self, tmp_path):
        path = tmp_path / "quad.json"
        path.write_text(json.dumps(QUAD))
        assert _parse_quad(str(path)).to_dict() == QUAD

    def test_missing_file(self, tmp_path):
        with pytest.raises(InvalidArguments, match="Could not read"):
            _parse_quad(str(tmp_path / "missing.json"))

    def test_incomplete_quad(self):
        with pytest.raises(InvalidArguments, match="missing keys"):
            _parse_quad('{"topLeftX": 0.1}')


def test_parser_requires_command():
    with pytest.raises(SystemExit):
        build_parser().parse_args([])


class TestMain:
    def test_detect(self, config_file, page_file, capsys):
        code = main(["--config", str(config_file), "detect", str(page_file)])

        assert code == 0
        quad = json.loads(capsys.readouterr().out)
        assert quad["topLeftX"] == pytest.approx(0.1, abs=0.005)
        assert quad["bottomRightY"] == pytest.approx(0.8, abs=0.005)

    def test_scan_pdf(self, config_file, page_file, tmp_path, capsys):
        out_dir = tmp_path / "out"

        code = main(
            [
                "--config", str(config_file),
                "scan", str(page_file),
                "--filter", "custom",
                "--threshold", "0.5",
                "--format", "pdf",
                "--output", str(out_dir),
            ]
        )

        assert code == 0
        written = capsys.readouterr().out.strip()
        assert written.endswith(".pdf")
        assert Path(written).parent == out_dir
        assert Path(written).exists()

    def test_scan_with_quad(self, config_file, page_file, tmp_path, capsys):
        code = main(
            [
                "--config", str(config_file),
                "scan", str(page_file),
                "--quad", json.dumps(QUAD),
                "--output", str(tmp_path),
            ]
        )

        assert code == 0
        assert capsys.readouterr().out.strip().endswith(".jpeg")

    def test_missing_image_reports_code(self, config_file, tmp_path, capsys):
        code = main(["--config", str(config_file), "detect", str(tmp_path / "none.png")])

        assert code == 1
        assert capsys.readouterr().err.startswith("DECODE_ERROR:")

    def test_bad_threshold_reports_invalid_args(self, config_file, page_file, capsys):
        code = main(
            [
                "--config", str(config_file),
                "scan", str(page_file),
                "--filter", "custom",
                "--threshold", "4",
            ]
        )

        assert code == 1
        assert capsys.readouterr().err.startswith("INVALID_ARGS:")

    def test_log_level_forwarded(self, config_file, page_file, no_logging_setup):
        main(["--config", str(config_file), "--log-level", "debug", "detect", str(page_file)])
        no_logging_setup.assert_called_once_with("DEBUG")

    def test_missing_config_reports_invalid_args(self, page_file, tmp_path, capsys):
        code = main(["--config", str(tmp_path / "nope.yaml"), "detect", str(page_file)])

        assert code == 1
        err = capsys.readouterr().err
        assert err.startswith("INVALID_ARGS:")
        assert "Traceback" not in err

    def test_malformed_config_reports_invalid_args(self, page_file, tmp_path, capsys):
        path = tmp_path / "bad.yaml"
        path.write_text(yaml.safe_dump({"detection": {"backend": "magic"}}))

        code = main(["--config", str(path), "detect", str(page_file)])

        assert code == 1
        err = capsys.readouterr().err
        assert err.startswith("INVALID_ARGS:")
        assert "backend" in err

    def test_unparseable_config_reports_invalid_args(self, page_file, tmp_path, capsys):
        path = tmp_path / "broken.yaml"
        path.write_text("detection: [unclosed\n")

        code = main(["--config", str(path), "detect", str(page_file)])

        assert code == 1
        assert capsys.readouterr().err.startswith("INVALID_ARGS:")

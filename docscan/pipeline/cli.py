"""
Command-line interface for the scanning pipeline.

Usage:
    docscan detect page.jpg
    docscan scan page.jpg --filter adaptive --format pdf --output out/
    docscan scan page.jpg --quad '{"topLeftX": 0.1, ...}' --filter custom --threshold 0.5
"""

import argparse
import json
import sys
from pathlib import Path
from typing import List, Optional

import yaml
from pydantic import ValidationError

from docscan.common.errors import DocScanError, InvalidArguments
from docscan.common.types import Quadrilateral
from docscan.config_loader import Config, get_default_config, load_config
from docscan.pipeline.scan_pipeline import ScanPipeline, _validation_message, build_request
from docscan.utils.io import load_json
from docscan.utils.logging_config import setup_logging


def _parse_quad(value: str) -> Quadrilateral:
    """Read a quadrilateral from inline JSON or a JSON file."""
    try:
        return Quadrilateral.from_dict(json.loads(value))
    except json.JSONDecodeError:
        pass

    try:
        raw = load_json(Path(value))
    except (OSError, json.JSONDecodeError) as e:
        raise InvalidArguments(f"Could not read quadrilateral: {e}") from e
    return Quadrilateral.from_dict(raw)


def _load_config(path: Optional[str]) -> Config:
    """Load the --config file, reporting unusable files as InvalidArguments."""
    if not path:
        return get_default_config()
    try:
        return load_config(Path(path))
    except (OSError, TypeError, yaml.YAMLError) as e:
        raise InvalidArguments(f"Could not read configuration: {e}") from e
    except ValidationError as e:
        raise InvalidArguments(f"Invalid configuration: {_validation_message(e)}") from e


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="docscan",
        description="Detect, rectify and clean up photographed documents",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument("--config", type=str, default=None, help="Configuration YAML file")
    parser.add_argument("--log-level", type=str, default="WARNING", help="Logging level")

    subparsers = parser.add_subparsers(dest="command", required=True)

    detect = subparsers.add_parser("detect", help="Print the document quadrilateral as JSON")
    detect.add_argument("image", type=str, help="Input image path")

    scan = subparsers.add_parser("scan", help="Rectify, filter and save a document")
    scan.add_argument("image", type=str, help="Input image path")
    scan.add_argument("--quad", type=str, default=None, help="Quadrilateral JSON or JSON file (detected when omitted)")
    scan.add_argument("--filter", type=str, default="none", help="Filter mode")
    scan.add_argument("--brightness", type=float, default=None, help="Brightness in [-100, 100] (custom)")
    scan.add_argument("--contrast", type=float, default=None, help="Contrast multiplier (custom)")
    scan.add_argument("--threshold", type=float, default=None, help="Threshold in [0, 1] (custom)")
    scan.add_argument("--format", type=str, default="jpeg", choices=["jpeg", "pdf"], help="Output format")
    scan.add_argument("--output", type=str, default=None, help="Output directory (temp dir when omitted)")

    return parser


def run(args: argparse.Namespace) -> int:
    pipeline = ScanPipeline(config=_load_config(args.config))

    if args.command == "detect":
        result = pipeline.detect_result(args.image)
        print(json.dumps(result.quad.to_dict(), indent=2))
        return 0

    quad = _parse_quad(args.quad) if args.quad else None
    request = build_request(
        image=args.image,
        quad=quad,
        filter={
            "mode": args.filter,
            "brightness": args.brightness,
            "contrast": args.contrast,
            "threshold": args.threshold,
        },
        output_format=args.format,
    )

    path = pipeline.rectify_and_save(
        request.image,
        request.quad or pipeline.detect(request.image),
        request.filter,
        request.output_format,
        args.output,
    )
    print(path)
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(args.log_level.upper())

    try:
        return run(args)
    except DocScanError as e:
        print(f"{e.code}: {e.message}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())

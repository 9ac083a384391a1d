"""
facetract CLI Entrypoint.

Responsibility:
    Parse command-line arguments, configure the application, and report
    how many faces each given picture contains.

Usage:
    python main.py photo.jpg group.png
    python main.py *.jpg --min-size 20 --json report.json
    python main.py photo.jpg --config my_config.yaml --annotate-dir out/

The first unreadable image or detection failure stops the batch and the
process exits with status 1.

This module is the executable entry point. It should not be imported
by other modules.
"""

import argparse
import logging
import sys
from dataclasses import replace
from typing import List, Optional

import yaml

# Configure logging before importing local modules
logging.basicConfig(
    level=logging.WARNING,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%H:%M:%S",
)
logger = logging.getLogger("main")

from facetract.config import AppConfig, load_config
from facetract.detector import Detector
from facetract.input_handler import load_image
from facetract.output_handler import OutputHandler


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="See how many faces are in each picture.",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )

    parser.add_argument(
        "paths",
        nargs="*",
        help="Picture paths.",
    )
    parser.add_argument(
        "--config",
        type=str,
        help="Path to YAML configuration file.",
    )
    parser.add_argument(
        "--min-size",
        type=float,
        help="Minimum face size in pixels. Overrides config.",
    )
    parser.add_argument(
        "--factor",
        type=float,
        help="Image pyramid scale factor (0.0 - 1.0). Overrides config.",
    )
    parser.add_argument(
        "--thresholds",
        type=float,
        nargs=3,
        metavar=("PNET", "RNET", "ONET"),
        help="Per-stage cascade thresholds. Overrides config.",
    )
    parser.add_argument(
        "--log-level",
        type=int,
        choices=[0, 1, 2, 3],
        help="TensorFlow native log level (3 = errors only). Overrides config.",
    )
    parser.add_argument(
        "--json",
        dest="json_path",
        type=str,
        help="Write a JSON report of all detections. Overrides config.",
    )
    parser.add_argument(
        "--csv",
        dest="csv_path",
        type=str,
        help="Write a CSV report of all detections. Overrides config.",
    )
    parser.add_argument(
        "--annotate-dir",
        type=str,
        help="Directory for annotated copies of each picture. Overrides config.",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Log progress at INFO level.",
    )

    return parser.parse_args(argv)


def apply_cli_overrides(config: AppConfig, args: argparse.Namespace) -> AppConfig:
    """Return a copy of config with command-line values applied."""
    detector = config.detector
    if args.min_size is not None:
        detector = replace(detector, min_size=args.min_size)
    if args.factor is not None:
        detector = replace(detector, factor=args.factor)
    if args.thresholds is not None:
        detector = replace(detector, thresholds=tuple(args.thresholds))

    engine = config.engine
    if args.log_level is not None:
        engine = replace(engine, log_level=args.log_level)

    output = config.output
    if args.json_path is not None:
        output = replace(output, json_path=args.json_path)
    if args.csv_path is not None:
        output = replace(output, csv_path=args.csv_path)
    if args.annotate_dir is not None:
        output = replace(output, annotate_dir=args.annotate_dir)

    return replace(config, detector=detector, engine=engine, output=output)


def main(argv: Optional[List[str]] = None) -> int:
    """Detect faces in every given picture, stopping at the first error."""
    args = parse_args(argv)
    if args.verbose:
        logging.getLogger().setLevel(logging.INFO)

    # 1. Load Configuration (CLI args > ENV > YAML > Defaults)
    try:
        config = apply_cli_overrides(load_config(args.config), args)
    except (FileNotFoundError, ValueError, yaml.YAMLError) as e:
        logger.error("Configuration error: %s", e)
        return 1

    # 2. Initialize Components
    try:
        detector = Detector(config)
        output_handler = OutputHandler(config)
    except (FileNotFoundError, ValueError, RuntimeError) as e:
        logger.error("Initialization failed: %s", e)
        return 1

    # 3. Processing Loop
    try:
        for path in args.paths:
            rgb, bgr = load_image(path)
            detections = detector.detect(rgb)
            print(f"There is {len(detections)} face(s) in {path}")
            output_handler.process_image(path, bgr, detections)

        output_handler.finalize()

    except KeyboardInterrupt:
        logger.info("Interrupted by user.")
        return 130
    except Exception as e:
        logger.error("Error: %s", e)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())

"""
Output handling for the facetract CLI.

Responsibility:
    Route per-image detection results to the configured sinks:
    annotated image copies, a JSON report, a CSV report.
    Sinks are orthogonal; any combination may be active.

Non-goals:
    - No detection logic.
    - No input decoding.
"""

import logging
from pathlib import Path
from typing import Dict, List

import cv2
import numpy as np

from facetract.config import AppConfig
from facetract.detection import Detection
from facetract.serializer import save_csv, save_json
from facetract.visualizer import draw_detections

logger = logging.getLogger(__name__)


class OutputHandler:
    """Routes detection results to configured output sinks.

    Usage:
        handler = OutputHandler(config)
        handler.process_image(path, bgr_image, detections)
        ...
        handler.finalize()  # Write the JSON/CSV reports

    Annotated images are written as each image is processed. Reports are
    buffered and written by finalize(), which the caller skips when the
    batch fails.
    """

    def __init__(self, config: AppConfig) -> None:
        self._config = config
        self._detections_buffer: Dict[str, List[Detection]] = {}

        annotate_dir = config.output.annotate_dir
        if annotate_dir is not None:
            Path(annotate_dir).mkdir(parents=True, exist_ok=True)

    def process_image(
        self,
        path: str,
        image: np.ndarray,
        detections: List[Detection],
    ) -> None:
        """Handle the results for one image.

        Args:
            path: Source path of the image (report key).
            image: The BGR image as decoded from disk.
            detections: Detections for that image.

        Raises:
            OSError: If the annotated image cannot be written.
        """
        self._detections_buffer[path] = detections

        annotate_dir = self._config.output.annotate_dir
        if annotate_dir is None:
            return

        annotated = draw_detections(image, detections, self._config.visualization)
        target = Path(annotate_dir) / f"{Path(path).stem}_faces{Path(path).suffix or '.png'}"
        if not cv2.imwrite(str(target), annotated):
            raise OSError(f"Failed to write annotated image: {target}")
        logger.info("Annotated image saved: %s", target)

    def finalize(self) -> None:
        """Write buffered reports to the configured files."""
        output = self._config.output
        if output.json_path is not None:
            save_json(self._detections_buffer, output.json_path)
        if output.csv_path is not None:
            save_csv(self._detections_buffer, output.csv_path)

"""
Serialization for facetract.

Responsibility:
    Export detection results to structured file formats (JSON, CSV)
    for downstream consumption.

Non-goals:
    - No rendering, display, or detection logic.
    - No streaming output — writes complete files in one go.
"""

import csv
import json
import logging
from pathlib import Path
from typing import Dict, List

from facetract.detection import Detection

logger = logging.getLogger(__name__)


def save_json(
    detections_by_image: Dict[str, List[Detection]],
    output_path: str,
) -> None:
    """Export all detections to a JSON file.

    Output schema:
        {
            "images": [
                {
                    "path": "a.jpg",
                    "faces": 1,
                    "detections": [
                        {"x1": ..., "y1": ..., "x2": ..., "y2": ..., "probability": ...}
                    ]
                }
            ],
            "total_images": N,
            "total_detections": M
        }

    Images are listed in insertion order (the order they were processed).

    Raises:
        OSError: If the output path is not writable.
    """
    _ensure_parent_dir(output_path)

    images = []
    total_detections = 0

    for path, dets in detections_by_image.items():
        total_detections += len(dets)
        images.append({
            "path": path,
            "faces": len(dets),
            "detections": [d.to_dict() for d in dets],
        })

    payload = {
        "images": images,
        "total_images": len(images),
        "total_detections": total_detections,
    }

    with open(output_path, "w", encoding="utf-8") as f:
        json.dump(payload, f, indent=2)

    logger.info(
        "JSON output saved: %s (%d images, %d detections)",
        output_path, len(images), total_detections,
    )


def save_csv(
    detections_by_image: Dict[str, List[Detection]],
    output_path: str,
) -> None:
    """Export all detections to a CSV file.

    Columns: path, x1, y1, x2, y2, probability

    Raises:
        OSError: If the output path is not writable.
    """
    _ensure_parent_dir(output_path)

    fieldnames = ["path", "x1", "y1", "x2", "y2", "probability"]

    with open(output_path, "w", newline="", encoding="utf-8") as f:
        writer = csv.DictWriter(f, fieldnames=fieldnames)
        writer.writeheader()

        total = 0
        for path, dets in detections_by_image.items():
            for det in dets:
                writer.writerow({"path": path, **det.to_dict()})
                total += 1

    logger.info("CSV output saved: %s (%d rows)", output_path, total)


def _ensure_parent_dir(path: str) -> None:
    """Create parent directories if they don't exist."""
    Path(path).parent.mkdir(parents=True, exist_ok=True)

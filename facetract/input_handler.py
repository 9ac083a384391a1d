"""
Input handling for the facetract CLI.

Responsibility:
    Decode image files from disk into the RGB arrays Detector.detect()
    consumes, keeping the BGR original for annotation.

Non-goals:
    - No video or webcam sources.
    - No resizing: the graph builds its own image pyramid.
    - No skipping of bad inputs: unreadable files raise.
"""

import logging
from pathlib import Path
from typing import Tuple

import cv2
import numpy as np

logger = logging.getLogger(__name__)


def load_image(path: str) -> Tuple[np.ndarray, np.ndarray]:
    """Read an image file.

    Args:
        path: Path to an image in any format OpenCV can decode.

    Returns:
        (rgb, bgr): the decoded image in RGB order for detection and the
        untouched BGR array for drawing.

    Raises:
        FileNotFoundError: If the path does not exist.
        ValueError: If the file exists but cannot be decoded.
    """
    if not Path(path).is_file():
        raise FileNotFoundError(f"Image not found: '{path}'.")

    bgr = cv2.imread(path, cv2.IMREAD_COLOR)
    if bgr is None:
        raise ValueError(
            f"Failed to decode image: '{path}'. "
            f"Ensure the file is a valid image OpenCV can read."
        )

    logger.debug("Loaded image %s (%dx%d)", path, bgr.shape[1], bgr.shape[0])
    return cv2.cvtColor(bgr, cv2.COLOR_BGR2RGB), bgr

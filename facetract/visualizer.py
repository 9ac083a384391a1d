"""
Box rendering for annotated CLI output.

MTCNN regresses boxes in float pixel space and they may extend past the
image border, so corners are clamped before drawing. Each box gets a
caption with its size and face probability, e.g. ``"84x102 0.99"``.
"""

from typing import List, Tuple

import cv2
import numpy as np

from facetract.config import VisualizationConfig
from facetract.detection import BoundingBox, Detection

_FONT = cv2.FONT_HERSHEY_SIMPLEX
_FONT_SCALE = 0.45
_TEXT_COLOR = (255, 255, 255)


def clamp_box(box: BoundingBox, width: int, height: int) -> Tuple[int, int, int, int]:
    """Round a box to integer corners inside a width x height image."""
    x1 = min(max(int(round(box.x1)), 0), width - 1)
    y1 = min(max(int(round(box.y1)), 0), height - 1)
    x2 = min(max(int(round(box.x2)), 0), width - 1)
    y2 = min(max(int(round(box.y2)), 0), height - 1)
    return x1, y1, x2, y2


def caption(det: Detection) -> str:
    return f"{det.box.width}x{det.box.height} {det.probability:.2f}"


def draw_detections(
    image: np.ndarray,
    detections: List[Detection],
    config: VisualizationConfig,
) -> np.ndarray:
    """Return a BGR copy of `image` with every detection outlined.

    The caption sits inside the top edge of the box on a filled strip,
    so it never leaves the image even for boxes touching the border.
    """
    annotated = image.copy()
    height, width = annotated.shape[:2]
    if height == 0 or width == 0:
        return annotated

    for det in detections:
        x1, y1, x2, y2 = clamp_box(det.box, width, height)
        cv2.rectangle(annotated, (x1, y1), (x2, y2), config.box_color, config.thickness)

        if not config.show_confidence:
            continue

        text = caption(det)
        (text_w, text_h), baseline = cv2.getTextSize(text, _FONT, _FONT_SCALE, 1)
        strip_bottom = min(y1 + text_h + baseline + 2, height - 1)
        strip_right = min(x1 + text_w + 2, width - 1)
        cv2.rectangle(annotated, (x1, y1), (strip_right, strip_bottom), config.box_color, cv2.FILLED)
        cv2.putText(
            annotated,
            text,
            (x1 + 1, strip_bottom - baseline),
            _FONT,
            _FONT_SCALE,
            _TEXT_COLOR,
            1,
            cv2.LINE_AA,
        )

    return annotated

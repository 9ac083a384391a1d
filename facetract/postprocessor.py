"""
Postprocessing for the MTCNN graph.

Responsibility:
    Pair the raw `box` and `prob` outputs into Detection objects.

Non-goals:
    - No thresholding, NMS, clamping, or sorting: the graph has already
      done all of it and its ordering is kept as is.

Hard-coded:
    - `box` holds 4 floats per detection, ordered (y1, x1, y2, x2).
    - `prob` holds one float per detection, index-aligned with `box`.
"""

from typing import List

import numpy as np

from facetract.detection import BoundingBox, Detection


def postprocess(box_output: np.ndarray, prob_output: np.ndarray) -> List[Detection]:
    """Turn raw graph outputs into a list of Detection objects.

    Args:
        box_output: `box` fetch, any shape whose size is 4 * N.
        prob_output: `prob` fetch, any shape whose size is N.

    Returns:
        One Detection per (box row, prob) pair in model order. Empty when
        the graph found no faces.
    """
    boxes = np.asarray(box_output, dtype=np.float32).reshape(-1)
    probs = np.asarray(prob_output, dtype=np.float32).reshape(-1)

    # Whole 4-value rows only
    rows = boxes[: boxes.size - boxes.size % 4].reshape(-1, 4)

    return [
        Detection(box=BoundingBox.from_model_row(row), probability=float(prob))
        for row, prob in zip(rows, probs)
    ]

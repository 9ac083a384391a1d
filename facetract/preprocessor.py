"""
Preprocessing for the MTCNN graph.

Responsibility:
    Validate the caller's image and turn it, together with the cascade
    parameters, into the four named input tensors of the graph.

Non-goals:
    - No image decoding or I/O.
    - No resizing or normalization: the graph builds its own pyramid
      from raw 0-255 values.

Hard-coded:
    - Input images are RGB (channels beyond the third are ignored).
    - The pretrained graph expects BGR, so the first three channels are
      reversed.
"""

from typing import Dict

import numpy as np

from facetract.config import DetectorConfig


def validate_image(image: np.ndarray) -> None:
    """Check that the image meets the detect() contract.

    Raises:
        TypeError: If image is not a numpy ndarray.
        ValueError: If image is not (H, W, C) with C >= 3.
    """
    if not isinstance(image, np.ndarray):
        raise TypeError(
            f"Expected image to be a numpy ndarray, "
            f"got {type(image).__name__}."
        )

    if image.ndim != 3:
        raise ValueError(
            f"Expected a 3-dimensional image (H, W, C), "
            f"got {image.ndim} dimensions with shape {image.shape}. "
            f"Grayscale images must be converted to RGB first."
        )

    if image.shape[2] < 3:
        raise ValueError(
            f"Expected at least 3 channels (RGB), got {image.shape[2]}."
        )


def to_model_input(image: np.ndarray) -> np.ndarray:
    """Convert an RGB(A) image into the graph's (H, W, 3) float32 BGR input.

    Args:
        image: Array of shape (H, W, C), C >= 3, any numeric dtype.

    Returns:
        A contiguous float32 array of shape (H, W, 3) holding the raw
        channel values in B, G, R order. Row-major, so flattening it
        yields pixels scanned y-outer, x-inner.
    """
    validate_image(image)
    return np.ascontiguousarray(image[:, :, 2::-1], dtype=np.float32)


def build_feeds(image: np.ndarray, config: DetectorConfig) -> Dict[str, np.ndarray]:
    """Build the named input tensors for one detection run."""
    return {
        "input": to_model_input(image),
        "min_size": np.asarray(config.min_size, dtype=np.float32),
        "thresholds": np.asarray(config.thresholds, dtype=np.float32),
        "factor": np.asarray(config.factor, dtype=np.float32),
    }

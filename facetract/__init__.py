"""
facetract — MTCNN face detection on a frozen TensorFlow graph.

Public API:
    - Detector: The single entry point for face detection.
    - Detection, BoundingBox: Result types returned by Detector.detect().
    - DetectorConfig, AppConfig, load_config: Configuration.
    - ExecutionEngineError: Raised when TensorFlow fails to run the graph.

All other modules in this package are internal implementation details
and should not be imported directly by consumers.

Usage:
    from facetract import Detector

    detector = Detector.default()
    detections = detector.detect(rgb_image)
"""

from facetract.config import AppConfig, DetectorConfig, load_config
from facetract.detection import BoundingBox, Detection
from facetract.detector import Detector
from facetract.engine import ExecutionEngineError

__all__ = [
    "AppConfig",
    "BoundingBox",
    "Detection",
    "Detector",
    "DetectorConfig",
    "ExecutionEngineError",
    "load_config",
]

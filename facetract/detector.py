"""
Detector — the single public API for face detection.

This module is the ONLY intended programmatic entry point for consumers
of facetract. All other modules are internal.

Public contract:
    Detector.detect(image: np.ndarray) -> list[Detection]

Constraints:
    - Input must be an RGB (or RGBA) numpy array of shape (H, W, C).
    - Each call opens its own TensorFlow session, so one Detector may be
      shared between threads without locking.
    - Reconfiguration returns a new Detector; existing instances never
      change.

Non-goals:
    - No file reading, camera access, or I/O of any kind.
    - No visualization or output writing.
    - No tracking or temporal state.
"""

import logging
from dataclasses import replace
from typing import List, Optional, Sequence

import numpy as np

from facetract.config import AppConfig, DetectorConfig, load_config, validate_detector_config
from facetract.detection import Detection
from facetract.engine import build_session_config, run_graph
from facetract.model_loader import OUTPUT_ENDPOINTS, LoadedModel, load_model
from facetract.postprocessor import postprocess
from facetract.preprocessor import build_feeds, validate_image

logger = logging.getLogger(__name__)


class Detector:
    """MTCNN face detector running a frozen TensorFlow graph.

    Usage:
        detector = Detector()                          # Safe defaults
        detector = Detector(config=my_config)          # Custom config
        detector = Detector.default().set_min_size(20)
        detections = detector.detect(rgb_image)

    The constructor loads the graph once. Detectors derived through the
    set_* methods share that graph instead of reloading it.
    """

    def __init__(
        self,
        config: Optional[AppConfig] = None,
        model: Optional[LoadedModel] = None,
    ) -> None:
        """Initialize the detector and load the model.

        Args:
            config: Application configuration. If None, safe defaults
                    are used (no config file required).
            model: An already loaded model to share. If None, the graph
                   selected by config.model is loaded.

        Raises:
            RuntimeError: If the bundled model is missing or malformed.
            FileNotFoundError: If an override model path does not exist.
            ValueError: If the cascade parameters are invalid or do not
                        match the graph's stage count.
        """
        if config is None:
            config = load_config()

        validate_detector_config(config.detector)
        if model is None:
            model = load_model(config.model, config.engine)
        _check_stage_count(config.detector.thresholds, model)

        self._config = config
        self._model = model
        self._session_config = build_session_config(config.engine)

        logger.debug(
            "Detector initialized (min_size=%.1f, factor=%.3f, thresholds=%s)",
            config.detector.min_size,
            config.detector.factor,
            config.detector.thresholds,
        )

    @classmethod
    def default(cls) -> "Detector":
        """Return a detector with the default cascade parameters."""
        return cls(AppConfig())

    # -- Reconfiguration ----------------------------------------------------

    def set_min_size(self, min_size: float) -> "Detector":
        """Return a new Detector with a different minimum face size."""
        return self._with_detector_config(replace(self._config.detector, min_size=float(min_size)))

    def set_factor(self, factor: float) -> "Detector":
        """Return a new Detector with a different pyramid scale factor."""
        return self._with_detector_config(replace(self._config.detector, factor=float(factor)))

    def set_thresholds(self, thresholds: Sequence[float]) -> "Detector":
        """Return a new Detector with different per-stage thresholds."""
        return self._with_detector_config(
            replace(self._config.detector, thresholds=tuple(float(t) for t in thresholds))
        )

    def _with_detector_config(self, detector_config: DetectorConfig) -> "Detector":
        return Detector(replace(self._config, detector=detector_config), model=self._model)

    # -- Detection ----------------------------------------------------------

    def detect(self, image: np.ndarray) -> List[Detection]:
        """Detect faces in a single RGB image.

        Args:
            image: Array of shape (H, W, C) with C >= 3, channels in RGB
                   order. Extra channels are ignored. Raw values (0-255)
                   are passed through without normalization.

        Returns:
            One Detection per face, in the order the graph produced them.
            Empty when the image holds no faces or has zero area.

        Raises:
            TypeError: If image is not a numpy ndarray.
            ValueError: If image has the wrong rank or too few channels.
            ExecutionEngineError: If TensorFlow fails to run the graph.
        """
        validate_image(image)

        height, width = image.shape[:2]
        if height == 0 or width == 0:
            logger.debug("Zero-area image (%dx%d), nothing to detect.", width, height)
            return []

        feeds = build_feeds(image, self._config.detector)
        box_output, prob_output = run_graph(
            self._model.graph,
            feeds,
            OUTPUT_ENDPOINTS,
            session_config=self._session_config,
        )

        detections = postprocess(box_output, prob_output)
        logger.debug("Detected %d face(s) in %dx%d image.", len(detections), width, height)
        return detections

    # -- Accessors ----------------------------------------------------------

    @property
    def config(self) -> AppConfig:
        """Return the active configuration (read-only)."""
        return self._config

    @property
    def detector_config(self) -> DetectorConfig:
        """Return the cascade parameters fed to the graph."""
        return self._config.detector

    @property
    def model(self) -> LoadedModel:
        """Return the loaded model (shared between derived detectors)."""
        return self._model


def _check_stage_count(thresholds: Sequence[float], model: LoadedModel) -> None:
    """Reject thresholds whose length the graph statically rules out."""
    if model.stage_count is not None and len(thresholds) != model.stage_count:
        raise ValueError(
            f"Model {model.source} has {model.stage_count} cascade stage(s), "
            f"got {len(thresholds)} threshold(s): {tuple(thresholds)}."
        )

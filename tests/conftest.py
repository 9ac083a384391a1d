"""
Shared fixtures: tiny TensorFlow graphs exposing the MTCNN endpoints.

The graphs accept the same named inputs as the pretrained model
(input, min_size, thresholds, factor) and produce `box` / `prob`, so
the full feed → run → fetch path is exercised without the real model.
"""

from types import SimpleNamespace

import numpy as np
import pytest
import tensorflow as tf

from facetract.config import AppConfig, DetectorConfig, ModelConfig
from facetract.detector import Detector


def _placeholders(stages: int = 3):
    image = tf.compat.v1.placeholder(tf.float32, shape=[None, None, 3], name="input")
    min_size = tf.compat.v1.placeholder(tf.float32, shape=[], name="min_size")
    thresholds = tf.compat.v1.placeholder(tf.float32, shape=[stages], name="thresholds")
    factor = tf.compat.v1.placeholder(tf.float32, shape=[], name="factor")
    # Zero-valued term that ties every input into the outputs
    gate = (
        tf.reduce_sum(image) * 0.0
        + min_size * 0.0
        + tf.reduce_sum(thresholds) * 0.0
        + factor * 0.0
    )
    return image, min_size, thresholds, factor, gate


def build_constant_graph(boxes, probs, stages: int = 3, omit=()) -> bytes:
    """Graph returning fixed raw box rows (y1, x1, y2, x2) and probs."""
    graph = tf.Graph()
    with graph.as_default():
        *_, gate = _placeholders(stages)
        boxes = np.asarray(boxes, dtype=np.float32).reshape(-1, 4)
        probs = np.asarray(probs, dtype=np.float32).reshape(-1)
        if "box" not in omit:
            tf.identity(tf.constant(boxes) + gate, name="box")
        if "prob" not in omit:
            tf.identity(tf.constant(probs) + gate, name="prob")
    return graph.as_graph_def().SerializeToString()


def build_echo_graph() -> bytes:
    """Graph echoing its feeds back.

    box row 0: channels of pixel (0, 0) followed by min_size.
    box row 1: thresholds followed by factor.
    prob: [height, width] of the fed image.
    """
    graph = tf.Graph()
    with graph.as_default():
        image, min_size, thresholds, factor, _gate = _placeholders()
        row0 = tf.concat([image[0, 0, :], tf.reshape(min_size, [1])], axis=0)
        row1 = tf.concat([thresholds, tf.reshape(factor, [1])], axis=0)
        tf.identity(tf.stack([row0, row1]), name="box")
        tf.identity(tf.cast(tf.shape(image)[:2], tf.float32), name="prob")
    return graph.as_graph_def().SerializeToString()


def build_failing_graph() -> bytes:
    """Graph whose run fails inside TensorFlow when factor >= 0.5."""
    graph = tf.Graph()
    with graph.as_default():
        _image, _min_size, _thresholds, factor, gate = _placeholders()
        check = tf.debugging.assert_less(factor, 0.5, message="factor too large")
        with tf.control_dependencies([check]):
            tf.identity(tf.zeros([0, 4]) + gate, name="box")
            tf.identity(tf.zeros([0]) + gate, name="prob")
    return graph.as_graph_def().SerializeToString()


@pytest.fixture
def graphs():
    """Builders returning serialized fake MTCNN graphs."""
    return SimpleNamespace(
        constant=build_constant_graph,
        echo=build_echo_graph,
        failing=build_failing_graph,
    )


@pytest.fixture
def graph_file(tmp_path):
    """Write serialized graph bytes to a file and return its path."""
    def _write(data: bytes, name: str = "model.pb") -> str:
        path = tmp_path / name
        path.write_bytes(data)
        return str(path)
    return _write


@pytest.fixture
def make_detector(graph_file):
    """Build a Detector around serialized graph bytes."""
    def _make(data: bytes, detector: DetectorConfig = DetectorConfig()) -> Detector:
        config = AppConfig(detector=detector, model=ModelConfig(path=graph_file(data)))
        return Detector(config)
    return _make


@pytest.fixture
def rgb_image():
    """A small RGB image whose pixel (0, 0) is (10, 20, 30)."""
    image = np.zeros((8, 6, 3), dtype=np.uint8)
    image[0, 0] = (10, 20, 30)
    return image

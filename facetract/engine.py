"""
TensorFlow execution layer.

Responsibility:
    Initialise the TensorFlow runtime with explicit settings, build
    per-session options, and run a graph once with named feeds and
    named fetches.

Non-goals:
    - No model loading, pre- or postprocessing.
    - No session pooling: every run opens and closes its own session.

Failure behavior:
    - Every failure reported by TensorFlow while resolving endpoints or
      executing the graph is re-raised as ExecutionEngineError, chained
      to the original exception. No retry, no partial results.
"""

import importlib
import logging
import os
from typing import Dict, List, Optional, Sequence

import numpy as np

from facetract.config import EngineConfig

logger = logging.getLogger(__name__)

# TF_CPP_MIN_LOG_LEVEL value → Python-side tensorflow logger level
_PY_LOG_LEVELS = {
    0: logging.INFO,
    1: logging.INFO,
    2: logging.WARNING,
    3: logging.ERROR,
}

_tf = None
_applied_log_level: Optional[int] = None


class ExecutionEngineError(RuntimeError):
    """The inference engine failed to run the graph.

    The wrapped TensorFlow exception is available as __cause__.
    """


def get_tensorflow(log_level: Optional[int] = None):
    """Import TensorFlow once, applying the native log threshold first.

    The native runtime reads its log threshold only at import time, so
    the level must be known before the first import. A value already
    present in the environment is left untouched. None means "whatever
    is in effect", or 3 if TensorFlow is not loaded yet. Asking for a
    different level after the first import logs a warning.
    """
    global _tf, _applied_log_level
    if _tf is None:
        level = 3 if log_level is None else log_level
        os.environ.setdefault("TF_CPP_MIN_LOG_LEVEL", str(level))
        tf = importlib.import_module("tensorflow")
        tf.get_logger().setLevel(_PY_LOG_LEVELS[level])
        logger.info("TensorFlow %s initialised (log_level=%d)", tf.__version__, level)
        _tf = tf
        _applied_log_level = level
    elif log_level is not None and log_level != _applied_log_level:
        logger.warning(
            "TensorFlow is already initialised with log_level=%s; "
            "requested log_level=%d has no effect.",
            _applied_log_level,
            log_level,
        )
    return _tf


def build_session_config(config: EngineConfig):
    """Translate EngineConfig into a tf.compat.v1.ConfigProto."""
    tf = get_tensorflow(config.log_level)
    kwargs = {
        "intra_op_parallelism_threads": config.intra_op_threads,
        "inter_op_parallelism_threads": config.inter_op_threads,
        "allow_soft_placement": True,
    }
    if config.device == "cpu":
        kwargs["device_count"] = {"GPU": 0}
    return tf.compat.v1.ConfigProto(**kwargs)


def run_graph(
    graph,
    feeds: Dict[str, np.ndarray],
    fetches: Sequence[str],
    session_config=None,
) -> List[np.ndarray]:
    """Run `graph` once in a fresh session.

    Args:
        graph: A tf.Graph. It is only read, so a finalized graph shared
               between threads is fine.
        feeds: Mapping of endpoint name (without ':0') → value.
        fetches: Endpoint names to fetch, in the order results are wanted.
        session_config: Optional ConfigProto for the session.

    Returns:
        One numpy array per requested fetch, in order.

    Raises:
        ExecutionEngineError: On unknown endpoints, feed shape or dtype
            mismatches, or any runtime failure inside TensorFlow.
    """
    tf = get_tensorflow()

    try:
        feed_dict = {
            graph.get_tensor_by_name(f"{name}:0"): value
            for name, value in feeds.items()
        }
        fetch_tensors = [graph.get_tensor_by_name(f"{name}:0") for name in fetches]
    except (KeyError, ValueError) as e:
        raise ExecutionEngineError(f"Graph endpoint lookup failed: {e}") from e

    try:
        with tf.compat.v1.Session(graph=graph, config=session_config) as session:
            return session.run(fetch_tensors, feed_dict=feed_dict)
    except tf.errors.OpError as e:
        raise ExecutionEngineError(f"TensorFlow execution failed: {e.message}") from e
    except (ValueError, TypeError) as e:
        # Raised client-side before execution, e.g. "Cannot feed value of shape ..."
        raise ExecutionEngineError(f"TensorFlow rejected the feeds: {e}") from e

"""
Model loading for facetract.

Responsibility:
    Read the frozen MTCNN GraphDef (bundled with the package, or an
    override path from config), import it into a dedicated tf.Graph,
    check that the named endpoints exist, and finalize the graph so it
    can be shared read-only between threads.

Non-goals:
    - No preprocessing, inference, or image-level logic.
    - No downloading at load time. fetch_model is a build step that
      places the pretrained graph into the package assets.
    - No fallback to alternative models.

Failure behavior:
    - A missing, malformed, or incomplete bundled graph raises
      RuntimeError. The bundled asset is part of the build, so this is a
      deployment integrity failure and is never handled here.
    - A missing override file raises FileNotFoundError with the exact
      missing path.
"""

import logging
import urllib.request
from dataclasses import dataclass
from importlib import resources
from pathlib import Path
from typing import Any, Optional, Tuple

from google.protobuf.message import DecodeError

from facetract.config import EngineConfig, ModelConfig, resolve_path
from facetract.engine import get_tensorflow

logger = logging.getLogger(__name__)

# Pretrained graph published by https://github.com/blaueck/tf-mtcnn
BUNDLED_MODEL = "mtcnn.pb"
MODEL_URL = "https://github.com/blaueck/tf-mtcnn/raw/master/mtcnn.pb"
_ASSETS_DIR = Path(__file__).resolve().parent / "assets"

INPUT_ENDPOINTS = ("input", "min_size", "thresholds", "factor")
OUTPUT_ENDPOINTS = ("box", "prob")


@dataclass(frozen=True)
class LoadedModel:
    """An imported, finalized graph plus what was learned while loading it.

    Attributes:
        graph: The finalized tf.Graph.
        stage_count: Static length of the `thresholds` input, or None
                     when the graph leaves it unspecified.
        source: Human-readable origin of the graph bytes (for logs).
    """

    graph: Any
    stage_count: Optional[int]
    source: str


def bundled_model_path():
    """Return the importlib.resources handle of the bundled graph."""
    return resources.files("facetract") / "assets" / BUNDLED_MODEL


def read_model_bytes(config: ModelConfig) -> Tuple[bytes, str]:
    """Return the raw GraphDef bytes and a description of their origin.

    Raises:
        FileNotFoundError: If config.path is set but does not exist.
        RuntimeError: If the bundled asset is absent from the install.
    """
    if config.path is not None:
        path = resolve_path(config.path)
        if not path.is_file():
            raise FileNotFoundError(
                f"Model graph not found.\n"
                f"  Expected: {path}\n"
                f"  Provide the file or update 'model.path' in your config."
            )
        return path.read_bytes(), str(path)

    resource = bundled_model_path()
    if not resource.is_file():
        raise RuntimeError(
            f"Bundled model '{BUNDLED_MODEL}' is missing from the facetract "
            f"package. The installation is incomplete."
        )
    return resource.read_bytes(), f"bundled:{BUNDLED_MODEL}"


def load_model(config: ModelConfig, engine: EngineConfig) -> LoadedModel:
    """Load the MTCNN graph and return it ready for inference.

    Args:
        config: ModelConfig selecting bundled or override graph.
        engine: EngineConfig, consumed when TensorFlow is first imported.

    Returns:
        A LoadedModel whose graph is finalized.

    Raises:
        FileNotFoundError: If an override path does not exist.
        RuntimeError: If the graph cannot be parsed or imported, or lacks
            one of the named endpoints.
    """
    tf = get_tensorflow(engine.log_level)
    data, source = read_model_bytes(config)

    logger.info("Loading model graph: %s (%d bytes)", source, len(data))

    graph_def = tf.compat.v1.GraphDef()
    try:
        graph_def.ParseFromString(data)
    except DecodeError as e:
        raise RuntimeError(f"Bad model loaded from {source}: {e}") from e

    graph = tf.Graph()
    with graph.as_default():
        try:
            tf.compat.v1.import_graph_def(graph_def, name="")
        except ValueError as e:
            raise RuntimeError(f"Bad model loaded from {source}: {e}") from e

    missing = []
    for name in INPUT_ENDPOINTS + OUTPUT_ENDPOINTS:
        try:
            graph.get_tensor_by_name(f"{name}:0")
        except KeyError:
            missing.append(name)
    if missing:
        raise RuntimeError(
            f"Bad model loaded from {source}: missing endpoint(s) {missing}. "
            f"Expected inputs {INPUT_ENDPOINTS} and outputs {OUTPUT_ENDPOINTS}."
        )

    graph.finalize()

    stage_count = _static_length(graph.get_tensor_by_name("thresholds:0"))
    logger.info("Model loaded successfully (cascade stages=%s).", stage_count)
    return LoadedModel(graph=graph, stage_count=stage_count, source=source)


def _static_length(tensor) -> Optional[int]:
    """Return the static size of a rank-1 tensor, or None if unknown."""
    shape = tensor.shape
    if shape.rank != 1:
        return None
    length = shape[0]
    return int(length) if length is not None else None


def fetch_model(target: Optional[Path] = None, url: str = MODEL_URL) -> Path:
    """Download the pretrained graph into the package assets.

    The download lands next to the target first and only replaces it
    once it loads as a complete MTCNN graph.

    Args:
        target: Destination file. Defaults to facetract/assets/mtcnn.pb.
        url: Where to fetch the frozen graph from.

    Returns:
        The path of the installed graph.

    Raises:
        OSError: If the download fails.
        RuntimeError: If the downloaded bytes are not a usable graph.
    """
    target = Path(target) if target is not None else _ASSETS_DIR / BUNDLED_MODEL
    target.parent.mkdir(parents=True, exist_ok=True)
    partial = target.with_name(target.name + ".part")

    logger.info("Downloading %s to %s", url, target)
    urllib.request.urlretrieve(url, str(partial))

    try:
        load_model(ModelConfig(path=str(partial)), EngineConfig())
    except RuntimeError:
        partial.unlink()
        raise

    partial.replace(target)
    logger.info("Model installed: %s (%d bytes)", target, target.stat().st_size)
    return target

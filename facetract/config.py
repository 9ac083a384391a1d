"""
Configuration management for facetract.

Provides a layered configuration system with the following precedence
(highest to lowest):

    CLI arguments > Environment variables > YAML config file > Defaults

Design constraints:
    - The detector MUST run with zero configuration (safe defaults only).
    - Missing or invalid values fail early and loudly.
    - No detection logic, I/O beyond the YAML file, or model loading
      belongs here.

Non-goals:
    - No dynamic reloading.
    - No remote configuration.
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Tuple

import yaml

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Project root resolution
# ---------------------------------------------------------------------------
# Resolved relative to this file's location: facetract/config.py → repo root
_PROJECT_ROOT = Path(__file__).resolve().parent.parent


def resolve_path(path: str) -> Path:
    """Resolve a user-supplied path.

    Relative paths are tried against the current working directory
    first, then against the project root (source checkouts). When
    neither exists the working-directory candidate is returned so
    error messages point where the user looked.
    """
    candidate = Path(path)
    if candidate.is_absolute():
        return candidate

    from_cwd = Path.cwd() / candidate
    if from_cwd.exists():
        return from_cwd

    from_root = _PROJECT_ROOT / candidate
    if from_root.exists():
        return from_root
    return from_cwd


# ---------------------------------------------------------------------------
# Configuration dataclasses
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class DetectorConfig:
    """Cascade tuning knobs fed verbatim to the MTCNN graph.

    Attributes:
        min_size: Smallest detectable face, in pixels.
        factor: Image pyramid scale reduction per step.
        thresholds: Acceptance threshold for each cascade stage
                    (P-Net, R-Net, O-Net), in that order.
    """

    min_size: float = 40.0
    factor: float = 0.709
    thresholds: Tuple[float, float, float] = (0.6, 0.7, 0.7)


@dataclass(frozen=True)
class ModelConfig:
    """Model artifact configuration.

    Attributes:
        path: Optional path to a frozen GraphDef (.pb) replacing the
              bundled MTCNN graph. Relative paths resolve against the
              working directory, then the project root. None means use the bundled asset.
    """

    path: Optional[str] = None


@dataclass(frozen=True)
class EngineConfig:
    """TensorFlow runtime configuration.

    Attributes:
        device: 'cpu' hides all GPUs from the session; 'cuda' lets
                TensorFlow place ops on a visible GPU.
        log_level: Native TensorFlow log threshold, 0 (everything) to
                   3 (errors only). Applied when the engine is first
                   initialised.
        intra_op_threads: Threads per op (0 lets TensorFlow decide).
        inter_op_threads: Ops run in parallel (0 lets TensorFlow decide).
    """

    device: str = "cpu"
    log_level: int = 3
    intra_op_threads: int = 0
    inter_op_threads: int = 0


@dataclass(frozen=True)
class OutputConfig:
    """Optional CLI output sinks. None disables a sink.

    Attributes:
        json_path: File receiving a JSON report of all detections.
        csv_path: File receiving one CSV row per detection.
        annotate_dir: Directory receiving annotated copies of each image.
    """

    json_path: Optional[str] = None
    csv_path: Optional[str] = None
    annotate_dir: Optional[str] = None


@dataclass(frozen=True)
class VisualizationConfig:
    """Visualization rendering parameters.

    Attributes:
        box_color: BGR color tuple for bounding boxes.
        thickness: Line thickness in pixels.
        show_confidence: Whether to render the probability label.
    """

    box_color: Tuple[int, int, int] = (0, 255, 0)
    thickness: int = 2
    show_confidence: bool = True


@dataclass(frozen=True)
class AppConfig:
    """Top-level application configuration.

    Aggregates all sub-configurations into a single, frozen object.
    """

    detector: DetectorConfig = field(default_factory=DetectorConfig)
    model: ModelConfig = field(default_factory=ModelConfig)
    engine: EngineConfig = field(default_factory=EngineConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
    visualization: VisualizationConfig = field(default_factory=VisualizationConfig)


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------

_VALID_DEVICES = {"cpu", "cuda"}
_STAGE_COUNT = 3


def validate_detector_config(config: DetectorConfig) -> None:
    """Validate cascade parameters. Raises ValueError on invalid state."""
    if config.min_size <= 0:
        raise ValueError(
            f"detector.min_size must be positive, got {config.min_size}."
        )

    if not (0.0 < config.factor < 1.0):
        raise ValueError(
            f"detector.factor must be in (0.0, 1.0), got {config.factor}."
        )

    if len(config.thresholds) != _STAGE_COUNT:
        raise ValueError(
            f"detector.thresholds must hold {_STAGE_COUNT} values "
            f"(one per cascade stage), got {len(config.thresholds)}."
        )

    for threshold in config.thresholds:
        if not (0.0 <= threshold <= 1.0):
            raise ValueError(
                f"detector.thresholds values must be in [0.0, 1.0], "
                f"got {config.thresholds}."
            )


def _validate(config: AppConfig) -> None:
    """Validate configuration values. Raises ValueError on invalid state."""
    validate_detector_config(config.detector)

    if config.engine.device not in _VALID_DEVICES:
        raise ValueError(
            f"Invalid engine.device: '{config.engine.device}'. "
            f"Must be one of {_VALID_DEVICES}."
        )

    if not (0 <= config.engine.log_level <= 3):
        raise ValueError(
            f"engine.log_level must be in [0, 3], got {config.engine.log_level}."
        )

    if config.engine.intra_op_threads < 0 or config.engine.inter_op_threads < 0:
        raise ValueError(
            f"engine thread counts must be >= 0, got "
            f"intra={config.engine.intra_op_threads}, "
            f"inter={config.engine.inter_op_threads}."
        )

    if config.visualization.thickness <= 0:
        raise ValueError(
            f"visualization.thickness must be positive, "
            f"got {config.visualization.thickness}."
        )


# ---------------------------------------------------------------------------
# YAML loading
# ---------------------------------------------------------------------------

def _parse_tuple(value, expected_len: int, cast_type=float):
    """Convert a list (or comma-separated string) into a typed tuple."""
    if isinstance(value, str):
        value = [v for v in value.split(",") if v.strip()]
    if isinstance(value, (list, tuple)):
        if len(value) != expected_len:
            raise ValueError(
                f"Expected {expected_len} values, got {len(value)}: {value}"
            )
        return tuple(cast_type(v) for v in value)
    return value


def _optional_str(value) -> Optional[str]:
    return str(value) if value is not None else None


def _build_detector_config(raw: dict) -> DetectorConfig:
    """Build DetectorConfig from a raw YAML dict."""
    kwargs = {}
    if "min_size" in raw:
        kwargs["min_size"] = float(raw["min_size"])
    if "factor" in raw:
        kwargs["factor"] = float(raw["factor"])
    if "thresholds" in raw:
        kwargs["thresholds"] = _parse_tuple(raw["thresholds"], _STAGE_COUNT, float)
    return DetectorConfig(**kwargs)


def _build_model_config(raw: dict) -> ModelConfig:
    """Build ModelConfig from a raw YAML dict."""
    kwargs = {}
    if "path" in raw:
        kwargs["path"] = _optional_str(raw["path"])
    return ModelConfig(**kwargs)


def _build_engine_config(raw: dict) -> EngineConfig:
    """Build EngineConfig from a raw YAML dict."""
    kwargs = {}
    if "device" in raw:
        kwargs["device"] = str(raw["device"]).lower()
    if "log_level" in raw:
        kwargs["log_level"] = int(raw["log_level"])
    if "intra_op_threads" in raw:
        kwargs["intra_op_threads"] = int(raw["intra_op_threads"])
    if "inter_op_threads" in raw:
        kwargs["inter_op_threads"] = int(raw["inter_op_threads"])
    return EngineConfig(**kwargs)


def _build_output_config(raw: dict) -> OutputConfig:
    """Build OutputConfig from a raw YAML dict."""
    kwargs = {}
    for key in ("json_path", "csv_path", "annotate_dir"):
        if key in raw:
            kwargs[key] = _optional_str(raw[key])
    return OutputConfig(**kwargs)


def _build_visualization_config(raw: dict) -> VisualizationConfig:
    """Build VisualizationConfig from a raw YAML dict."""
    kwargs = {}
    if "box_color" in raw:
        kwargs["box_color"] = _parse_tuple(raw["box_color"], 3, int)
    if "thickness" in raw:
        kwargs["thickness"] = int(raw["thickness"])
    if "show_confidence" in raw:
        kwargs["show_confidence"] = bool(raw["show_confidence"])
    return VisualizationConfig(**kwargs)


# ---------------------------------------------------------------------------
# Environment variable overrides
# ---------------------------------------------------------------------------

_ENV_PREFIX = "FACETRACT_"


def _apply_env_overrides(raw: dict) -> dict:
    """Apply environment variable overrides to the raw config dict.

    Environment variables follow the pattern:
        FACETRACT_DETECTOR_MIN_SIZE=20
        FACETRACT_DETECTOR_THRESHOLDS=0.5,0.6,0.6
        FACETRACT_ENGINE_DEVICE=cuda
    """
    env_map = {
        f"{_ENV_PREFIX}DETECTOR_MIN_SIZE": ("detector", "min_size"),
        f"{_ENV_PREFIX}DETECTOR_FACTOR": ("detector", "factor"),
        f"{_ENV_PREFIX}DETECTOR_THRESHOLDS": ("detector", "thresholds"),
        f"{_ENV_PREFIX}MODEL_PATH": ("model", "path"),
        f"{_ENV_PREFIX}ENGINE_DEVICE": ("engine", "device"),
        f"{_ENV_PREFIX}ENGINE_LOG_LEVEL": ("engine", "log_level"),
        f"{_ENV_PREFIX}OUTPUT_JSON_PATH": ("output", "json_path"),
        f"{_ENV_PREFIX}OUTPUT_CSV_PATH": ("output", "csv_path"),
        f"{_ENV_PREFIX}OUTPUT_ANNOTATE_DIR": ("output", "annotate_dir"),
    }

    for env_var, (section, key) in env_map.items():
        value = os.environ.get(env_var)
        if value is not None:
            raw.setdefault(section, {})[key] = value
            logger.debug("Config override from env: %s=%s", env_var, value)

    return raw


# ---------------------------------------------------------------------------
# Public loader
# ---------------------------------------------------------------------------

def load_config(config_path: Optional[str] = None) -> AppConfig:
    """Load and validate application configuration.

    Precedence (highest → lowest):
        Environment variables > YAML file > Hard-coded defaults

    Args:
        config_path: Path to a YAML configuration file. If None,
                     the system runs entirely on defaults.

    Returns:
        A validated, frozen AppConfig instance.

    Raises:
        FileNotFoundError: If config_path is provided but does not exist.
        ValueError: If any configuration value is invalid.
        yaml.YAMLError: If the YAML file is malformed.
    """
    raw: dict = {}

    # --- Layer 1: YAML file ---
    if config_path is not None:
        resolved = resolve_path(config_path)

        if not resolved.is_file():
            raise FileNotFoundError(
                f"Configuration file not found: {resolved}. "
                f"Provide a valid path or omit to use defaults."
            )

        logger.info("Loading config from: %s", resolved)
        with open(resolved, "r", encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}

    # --- Layer 2: Environment variable overrides ---
    raw = _apply_env_overrides(raw)

    # --- Build typed configs ---
    config = AppConfig(
        detector=_build_detector_config(raw.get("detector") or {}),
        model=_build_model_config(raw.get("model") or {}),
        engine=_build_engine_config(raw.get("engine") or {}),
        output=_build_output_config(raw.get("output") or {}),
        visualization=_build_visualization_config(raw.get("visualization") or {}),
    )

    # --- Validate ---
    _validate(config)

    logger.debug("Configuration loaded: %s", config)
    return config

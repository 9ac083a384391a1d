"""
Tests for the configuration module.
"""

import pytest

from facetract.config import (
    AppConfig,
    DetectorConfig,
    EngineConfig,
    _validate,
    load_config,
    validate_detector_config,
)


def test_load_defaults():
    """Test loading configuration without any file."""
    config = load_config(None)
    assert isinstance(config, AppConfig)
    assert config.detector.min_size == 40.0
    assert config.detector.factor == 0.709
    assert config.detector.thresholds == (0.6, 0.7, 0.7)
    assert config.model.path is None
    assert config.engine.device == "cpu"
    assert config.engine.log_level == 3


def test_validation_failure():
    """Test fail-fast validation."""
    with pytest.raises(ValueError, match="min_size"):
        validate_detector_config(DetectorConfig(min_size=0.0))

    with pytest.raises(ValueError, match="factor"):
        validate_detector_config(DetectorConfig(factor=1.0))

    with pytest.raises(ValueError, match="3 values"):
        validate_detector_config(DetectorConfig(thresholds=(0.6, 0.7)))

    with pytest.raises(ValueError, match="thresholds"):
        validate_detector_config(DetectorConfig(thresholds=(0.6, 1.7, 0.7)))

    with pytest.raises(ValueError, match="device"):
        _validate(AppConfig(engine=EngineConfig(device="tpu")))

    with pytest.raises(ValueError, match="log_level"):
        _validate(AppConfig(engine=EngineConfig(log_level=4)))


def test_yaml_file(tmp_path):
    """Test that YAML sections map onto the typed configs."""
    path = tmp_path / "facetract.yaml"
    path.write_text(
        "detector:\n"
        "  min_size: 20\n"
        "  thresholds: [0.5, 0.6, 0.6]\n"
        "engine:\n"
        "  device: CUDA\n"
        "  intra_op_threads: 2\n"
        "output:\n"
        "  json_path: out/report.json\n",
        encoding="utf-8",
    )

    config = load_config(str(path))

    assert config.detector.min_size == 20.0
    assert config.detector.factor == 0.709
    assert config.detector.thresholds == (0.5, 0.6, 0.6)
    assert config.engine.device == "cuda"
    assert config.engine.intra_op_threads == 2
    assert config.output.json_path == "out/report.json"
    assert config.output.csv_path is None


def test_yaml_wrong_threshold_count(tmp_path):
    path = tmp_path / "bad.yaml"
    path.write_text("detector:\n  thresholds: [0.5, 0.6]\n", encoding="utf-8")

    with pytest.raises(ValueError, match="Expected 3 values"):
        load_config(str(path))


def test_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_config(str(tmp_path / "nope.yaml"))


def test_relative_path_resolves_against_cwd(tmp_path, monkeypatch):
    (tmp_path / "facetract.yaml").write_text("detector:\n  min_size: 24\n", encoding="utf-8")
    monkeypatch.chdir(tmp_path)

    assert load_config("facetract.yaml").detector.min_size == 24.0


def test_empty_yaml_uses_defaults(tmp_path):
    path = tmp_path / "empty.yaml"
    path.write_text("", encoding="utf-8")

    assert load_config(str(path)) == AppConfig()


def test_env_override(monkeypatch):
    """Test environment variable overrides."""
    monkeypatch.setenv("FACETRACT_DETECTOR_MIN_SIZE", "24")
    monkeypatch.setenv("FACETRACT_DETECTOR_THRESHOLDS", "0.5, 0.6, 0.65")
    monkeypatch.setenv("FACETRACT_ENGINE_DEVICE", "cuda")
    monkeypatch.setenv("FACETRACT_MODEL_PATH", "/models/custom.pb")

    config = load_config(None)

    assert config.detector.min_size == 24.0
    assert config.detector.thresholds == (0.5, 0.6, 0.65)
    assert config.engine.device == "cuda"
    assert config.model.path == "/models/custom.pb"


def test_env_beats_yaml(tmp_path, monkeypatch):
    path = tmp_path / "facetract.yaml"
    path.write_text("detector:\n  factor: 0.5\n", encoding="utf-8")
    monkeypatch.setenv("FACETRACT_DETECTOR_FACTOR", "0.8")

    assert load_config(str(path)).detector.factor == 0.8

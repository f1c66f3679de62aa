"""Tests for settings and service start-up."""

from __future__ import annotations

import os
from pathlib import Path
from unittest.mock import patch

import pytest
from conftest import SIDE, solid_image
from pydantic import ValidationError

from photolabel.config import Settings, get_settings
from photolabel.errors import ModelLoadError, UseAfterCloseError
from photolabel.main import create_service


def _write_assets(tmp_path: Path, model_bytes: bytes, label_text: str) -> dict[str, str]:
    model_file = tmp_path / "optimized_graph.onnx"
    model_file.write_bytes(model_bytes)
    labels_file = tmp_path / "retrained_labels.txt"
    labels_file.write_text(label_text, encoding="utf-8")
    return {
        "PHOTOLABEL_MODEL_PATH": str(model_file),
        "PHOTOLABEL_LABELS_PATH": str(labels_file),
        "PHOTOLABEL_INPUT_SIZE": str(SIDE),
    }


class TestSettings:
    def test_defaults(self) -> None:
        with patch.dict(os.environ, {}, clear=True):
            settings = get_settings()
        assert settings.model_path == "assets/optimized_graph.onnx"
        assert settings.labels_path == "assets/retrained_labels.txt"
        assert settings.input_size == 224
        assert settings.max_results == 3
        assert settings.threshold == 0.0
        assert settings.log_level == "INFO"

    def test_env_overrides(self) -> None:
        with patch.dict(os.environ, {"PHOTOLABEL_INPUT_SIZE": "96", "photolabel_threshold": "0.25"}, clear=True):
            settings = get_settings()
        assert settings.input_size == 96
        assert settings.threshold == 0.25

    def test_invalid_values_rejected(self) -> None:
        with pytest.raises(ValidationError):
            Settings(input_size=0)
        with pytest.raises(ValidationError):
            Settings(max_results=0)


class TestCreateService:
    def test_loads_bundled_assets(self, tmp_path: Path, model_bytes: bytes, label_text: str) -> None:
        env = _write_assets(tmp_path, model_bytes, label_text)
        with patch.dict(os.environ, env):
            service = create_service()

        with service:
            results = service.classify(solid_image((0, 255, 0)))
            assert results[0].title == "green"
            assert len(results) == 3

        with pytest.raises(UseAfterCloseError):
            service.classify(solid_image((0, 255, 0)))

    def test_settings_flow_into_service(self, tmp_path: Path, model_bytes: bytes, label_text: str) -> None:
        env = _write_assets(tmp_path, model_bytes, label_text)
        settings = Settings(
            model_path=env["PHOTOLABEL_MODEL_PATH"],
            labels_path=env["PHOTOLABEL_LABELS_PATH"],
            input_size=SIDE,
            max_results=1,
        )
        with create_service(settings) as service:
            assert len(service.classify(solid_image((0, 0, 255)))) == 1

    def test_missing_assets(self, tmp_path: Path) -> None:
        settings = Settings(
            model_path=str(tmp_path / "nope.onnx"),
            labels_path=str(tmp_path / "nope.txt"),
        )
        with pytest.raises(ModelLoadError):
            create_service(settings)

"""Environment-based configuration for PhotoLabel."""

from __future__ import annotations

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from PHOTOLABEL_* environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="PHOTOLABEL_",
        case_sensitive=False,
        protected_namespaces=(),
    )

    # Bundled assets
    model_path: str = "assets/optimized_graph.onnx"
    labels_path: str = "assets/retrained_labels.txt"
    input_size: int = Field(default=224, ge=1)

    # Ranking
    max_results: int = Field(default=3, ge=1)
    threshold: float = 0.0

    # ONNX Runtime threading
    intra_op_threads: int = Field(default=0, ge=0)
    inter_op_threads: int = Field(default=1, ge=1)

    # Input limits
    max_image_pixels: int = Field(default=16_777_216, ge=1)

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"


def get_settings() -> Settings:
    """Create and return application settings."""
    return Settings()

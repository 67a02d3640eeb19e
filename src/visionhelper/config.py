"""Environment-based configuration for VisionHelper."""

from __future__ import annotations

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from VISIONHELPER_* environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="VISIONHELPER_",
        case_sensitive=False,
        protected_namespaces=("settings_",),
    )

    # Server
    host: str = "0.0.0.0"  # noqa: S104
    port: int = 8083

    # Authentication (None = disabled)
    api_key: str | None = None

    # ML device
    device: Literal["cpu", "cuda", "openvino"] = "cpu"

    # Model selection
    classification_model: str = "mobilenet_v2_1.0_224_quant"
    models_dir: str = "models"

    # Label tables (newline-delimited, one label per line, order = index)
    assets_dir: str = "assets"
    labels_file: str = "labels_mobilenet_quant_v1_224.txt"
    fallback_labels_file: str = "labels.txt"
    # Fetch the model config's id2label table when no label file is present
    hub_labels: bool = True

    # Classifier output shaping
    max_results: int = Field(default=3, ge=1)
    score_threshold: float = Field(default=0.3, ge=0.0, le=1.0)

    # Storage
    gallery_dir: str = "Pictures/VisionHelper"
    reports_dir: str = "Documents/VisionHelper"
    jpeg_quality: int = Field(default=90, ge=1, le=100)

    # ONNX Runtime threading
    intra_op_threads: int = Field(default=0, ge=0)
    inter_op_threads: int = Field(default=1, ge=1)

    # Concurrency
    max_concurrent: int = Field(default=2, ge=1)

    # Input limits
    max_image_pixels: int = Field(default=16_777_216, ge=1)
    max_file_size: int = Field(default=209_715_200, ge=1)

    # Model management
    model_ttl: int = Field(default=300, ge=0)
    gpu_mem_limit: int = Field(default=2_147_483_648, ge=0)

    # Performance tracking
    fps_window: int = Field(default=30, ge=2)


def get_settings() -> Settings:
    """Create and return application settings."""
    return Settings()

"""Configuration management for the vehicle registration OCR service.

Loads and validates YAML configuration with sensible defaults for
preprocessing, recognition, the HTTP API and the server, then applies
the environment overrides the deployment platform provides.
"""

import logging
import os
from collections.abc import Mapping
from pathlib import Path

import yaml
from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

MAX_UPLOAD_BYTES = 6 * 1024 * 1024


class PreprocessingConfig(BaseModel):
    """Configuration for the image normalizer."""

    max_width: int = 1600
    brightness: float = 1.08
    saturation: float = 1.15
    normalize_lower_percentile: float = 1.0
    normalize_upper_percentile: float = 99.0


class OCRConfig(BaseModel):
    """Configuration for the text recognition backend."""

    backend: str = "google_vision"
    language_hints: list[str] = Field(default_factory=lambda: ["es"])
    call_timeout_seconds: float = 30.0
    request_timeout_seconds: float = 90.0
    tesseract_cmd: str | None = None
    tesseract_lang: str = "spa"
    psm: int = 3


class APIConfig(BaseModel):
    """Configuration for the upload endpoint and CORS."""

    max_upload_bytes: int = MAX_UPLOAD_BYTES
    allowed_content_types: list[str] = Field(
        default_factory=lambda: [
            "image/jpeg",
            "image/png",
            "image/webp",
            "image/heic",
            "image/heif",
        ]
    )
    cors_origins: list[str] = Field(
        default_factory=lambda: [
            "https://tallervidesol.com",
            "https://www.tallervidesol.com",
            "https://tesis-taller-front-git-main-branco0verflows-projects.vercel.app",
        ]
    )
    frontend_origin: str | None = None

    def allowed_origins(self) -> list[str]:
        """Return the configured origins plus the front-end origin, if any."""
        origins = list(self.cors_origins)
        if self.frontend_origin and self.frontend_origin not in origins:
            origins.insert(0, self.frontend_origin)
        return origins


class ServerConfig(BaseModel):
    """Configuration for the uvicorn server."""

    host: str = "0.0.0.0"
    port: int = 3001


class AppConfig(BaseModel):
    """Top-level application configuration."""

    preprocessing: PreprocessingConfig = Field(default_factory=PreprocessingConfig)
    ocr: OCRConfig = Field(default_factory=OCRConfig)
    api: APIConfig = Field(default_factory=APIConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)
    log_level: str = "INFO"


def _apply_env_overrides(config: AppConfig, env: Mapping[str, str]) -> AppConfig:
    """Overlay PORT, FRONTEND_ORIGIN and LOG_LEVEL from the environment."""
    if env.get("PORT"):
        config.server.port = int(env["PORT"])
    if env.get("FRONTEND_ORIGIN"):
        config.api.frontend_origin = env["FRONTEND_ORIGIN"].strip()
    if env.get("LOG_LEVEL"):
        config.log_level = env["LOG_LEVEL"].strip().upper()
    return config


def load_config(
    path: Path | None = None, env: Mapping[str, str] | None = None
) -> AppConfig:
    """Load configuration from a YAML file and the environment.

    Args:
        path: Path to the YAML configuration file.
            Defaults to configs/config.yaml.
        env: Environment mapping for overrides. Defaults to ``os.environ``.

    Returns:
        Validated application configuration.
    """
    if path is None:
        path = Path("configs/config.yaml")
    if env is None:
        env = os.environ

    if path.exists():
        logger.info("Loading configuration from %s", path)
        with open(path) as f:
            raw = yaml.safe_load(f) or {}
        config = AppConfig(**raw)
    else:
        logger.info("No config file found at %s, using defaults", path)
        config = AppConfig()

    return _apply_env_overrides(config, env)

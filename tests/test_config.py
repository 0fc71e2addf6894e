"""Tests for configuration loading and validation."""

from pathlib import Path

import yaml

from src.utils.config import (
    MAX_UPLOAD_BYTES,
    APIConfig,
    AppConfig,
    OCRConfig,
    PreprocessingConfig,
    ServerConfig,
    load_config,
)


class TestPreprocessingConfig:
    """Tests for PreprocessingConfig defaults and overrides."""

    def test_defaults(self) -> None:
        cfg = PreprocessingConfig()
        assert cfg.max_width == 1600
        assert cfg.brightness == 1.08
        assert cfg.saturation == 1.15

    def test_override(self) -> None:
        cfg = PreprocessingConfig(max_width=800, brightness=1.1)
        assert cfg.max_width == 800
        assert cfg.brightness == 1.1


class TestOCRConfig:
    """Tests for OCRConfig defaults and overrides."""

    def test_defaults(self) -> None:
        cfg = OCRConfig()
        assert cfg.backend == "google_vision"
        assert cfg.language_hints == ["es"]
        assert cfg.tesseract_lang == "spa"
        assert cfg.psm == 3
        assert cfg.tesseract_cmd is None

    def test_language_hints_not_shared(self) -> None:
        first = OCRConfig()
        first.language_hints.append("en")
        assert OCRConfig().language_hints == ["es"]


class TestAPIConfig:
    """Tests for APIConfig defaults and origin handling."""

    def test_defaults(self) -> None:
        cfg = APIConfig()
        assert cfg.max_upload_bytes == MAX_UPLOAD_BYTES == 6 * 1024 * 1024
        assert "image/heic" in cfg.allowed_content_types
        assert "application/pdf" not in cfg.allowed_content_types

    def test_no_wildcard_origin(self) -> None:
        assert "*" not in APIConfig().allowed_origins()

    def test_frontend_origin_prepended(self) -> None:
        cfg = APIConfig(frontend_origin="http://localhost:5173")
        origins = cfg.allowed_origins()
        assert origins[0] == "http://localhost:5173"
        assert len(origins) == len(cfg.cors_origins) + 1

    def test_frontend_origin_not_duplicated(self) -> None:
        cfg = APIConfig(
            cors_origins=["https://a.test"], frontend_origin="https://a.test"
        )
        assert cfg.allowed_origins() == ["https://a.test"]


class TestAppConfig:
    """Tests for the top-level AppConfig."""

    def test_defaults(self) -> None:
        cfg = AppConfig()
        assert isinstance(cfg.preprocessing, PreprocessingConfig)
        assert isinstance(cfg.ocr, OCRConfig)
        assert isinstance(cfg.api, APIConfig)
        assert isinstance(cfg.server, ServerConfig)
        assert cfg.server.port == 3001
        assert cfg.log_level == "INFO"


class TestLoadConfig:
    """Tests for the load_config function."""

    def test_load_default_config(self, project_root: Path) -> None:
        cfg = load_config(project_root / "configs" / "config.yaml", env={})
        assert isinstance(cfg, AppConfig)
        assert cfg.ocr.language_hints == ["es"]
        assert cfg.api.max_upload_bytes == MAX_UPLOAD_BYTES

    def test_load_missing_file_returns_defaults(self) -> None:
        cfg = load_config(Path("/nonexistent/path/config.yaml"), env={})
        assert cfg.ocr.backend == "google_vision"

    def test_load_custom_yaml(self, tmp_path: Path) -> None:
        config_data = {
            "preprocessing": {"max_width": 1200},
            "ocr": {"backend": "tesseract", "psm": 6},
            "log_level": "DEBUG",
        }
        config_file = tmp_path / "config.yaml"
        with open(config_file, "w") as f:
            yaml.dump(config_data, f)

        cfg = load_config(config_file, env={})
        assert cfg.preprocessing.max_width == 1200
        assert cfg.ocr.backend == "tesseract"
        assert cfg.ocr.psm == 6
        assert cfg.log_level == "DEBUG"

    def test_load_empty_yaml(self, tmp_path: Path) -> None:
        config_file = tmp_path / "empty.yaml"
        config_file.write_text("")
        cfg = load_config(config_file, env={})
        assert isinstance(cfg, AppConfig)

    def test_env_overrides(self, tmp_path: Path) -> None:
        env = {
            "PORT": "8080",
            "FRONTEND_ORIGIN": "https://front.test ",
            "LOG_LEVEL": "debug",
        }
        cfg = load_config(tmp_path / "missing.yaml", env=env)
        assert cfg.server.port == 8080
        assert cfg.api.frontend_origin == "https://front.test"
        assert cfg.log_level == "DEBUG"
        assert "https://front.test" in cfg.api.allowed_origins()

    def test_empty_env_values_ignored(self, tmp_path: Path) -> None:
        cfg = load_config(tmp_path / "missing.yaml", env={"PORT": ""})
        assert cfg.server.port == 3001

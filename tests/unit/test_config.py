"""Tests for configuration management"""

from pathlib import Path

import pytest
import yaml

from media_catalog.core.config import ConfigService


def _write(path: Path, data: dict) -> str:
    with open(path, "w") as f:
        yaml.dump(data, f)
    return str(path)


class TestConfigService:
    """Test ConfigService functionality"""

    def test_load_from_yaml(self, tmp_path: Path) -> None:
        """Test loading configuration from YAML file"""
        config_file = _write(
            tmp_path / "config.yaml",
            {
                "server": {"host": "127.0.0.1", "port": 9000},
                "engine": {"path": "/var/tmp/yt-dlp"},
                "extraction": {"timeout": 10},
                "logging": {"level": "debug"},
            },
        )

        config = ConfigService(config_file).load()

        assert config.server.host == "127.0.0.1"
        assert config.server.port == 9000
        assert config.engine.path == "/var/tmp/yt-dlp"
        assert config.extraction.timeout == 10
        assert config.logging.level == "DEBUG"

    def test_load_with_defaults(self, tmp_path: Path) -> None:
        """Test loading configuration with default values"""
        config_file = tmp_path / "config.yaml"
        config_file.write_text("{}")

        config = ConfigService(str(config_file)).load()

        assert config.server.port == 8000
        assert config.engine.path == "/tmp/yt-dlp"
        assert config.engine.download_url.endswith("/yt-dlp_linux")
        assert config.extraction.timeout == 14.0
        assert config.extraction.max_output_bytes == 16 * 1024 * 1024
        assert config.security.cors_origins == ["*"]
        assert config.i18n.default_locale == "en"
        assert config.i18n.supported_locales == ["en", "ja"]

    def test_load_nonexistent_file(self) -> None:
        """Test loading when config file doesn't exist uses defaults"""
        config = ConfigService("nonexistent.yaml").load()

        assert config.server.port == 8000

    def test_config_path_from_environment(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        config_file = _write(tmp_path / "custom.yaml", {"server": {"port": 7000}})
        monkeypatch.setenv("APP_CONFIG_PATH", config_file)

        config = ConfigService().load()

        assert config.server.port == 7000

    def test_environment_variable_override(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Test environment variable overrides YAML configuration"""
        config_file = _write(
            tmp_path / "config.yaml",
            {"server": {"host": "127.0.0.1", "port": 8000}, "engine": {"path": "/a"}},
        )
        monkeypatch.setenv("APP_SERVER_PORT", "9999")
        monkeypatch.setenv("APP_ENGINE_PATH", "/b/yt-dlp")
        monkeypatch.setenv("APP_EXTRACTION_TIMEOUT", "12.5")

        config = ConfigService(config_file).load()

        assert config.server.port == 9999
        assert config.server.host == "127.0.0.1"
        assert config.engine.path == "/b/yt-dlp"
        assert config.extraction.timeout == 12.5

    @pytest.mark.parametrize("timeout", [0, -1, 15, 30])
    def test_extraction_timeout_must_stay_under_ceiling(
        self, tmp_path: Path, timeout: float
    ) -> None:
        config_file = _write(tmp_path / "config.yaml", {"extraction": {"timeout": timeout}})

        with pytest.raises(ValueError, match="timeout must be between"):
            ConfigService(config_file).load()

    def test_capture_limits_must_be_positive(self, tmp_path: Path) -> None:
        config_file = _write(tmp_path / "config.yaml", {"extraction": {"max_output_bytes": 0}})

        with pytest.raises(ValueError, match="capture limits must be positive"):
            ConfigService(config_file).load()

    def test_download_timeout_must_be_positive(self, tmp_path: Path) -> None:
        config_file = _write(tmp_path / "config.yaml", {"engine": {"download_timeout": 0}})

        with pytest.raises(ValueError, match="download_timeout must be positive"):
            ConfigService(config_file).load()

    def test_validation_log_level(self, tmp_path: Path) -> None:
        """Test log level validation"""
        config_file = _write(tmp_path / "config.yaml", {"logging": {"level": "INVALID"}})

        with pytest.raises(ValueError, match="level must be one of"):
            ConfigService(config_file).load()

    def test_config_property_requires_load(self) -> None:
        service = ConfigService("nonexistent.yaml")

        with pytest.raises(ValueError, match="Configuration not loaded"):
            _ = service.config

        service.load()
        assert service.config.server.port == 8000

"""Configuration management with YAML and environment variable support"""

import os
from typing import Any, Dict, List, Optional, Tuple, Type

import yaml
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict

# Hosting platforms cut requests off at ~15s; extraction must finish first
HOSTING_TIMEOUT_CEILING = 15.0


class BaseConfigSection(BaseSettings):
    """Base class for all config sections with correct environment variable precedence.

    Priority: environment variables, then init kwargs (YAML data), then defaults.
    """

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: Type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> Tuple[PydanticBaseSettingsSource, ...]:
        """Customize settings source priority: env vars > init kwargs > defaults."""
        return (env_settings, init_settings, dotenv_settings, file_secret_settings)


class ServerConfig(BaseConfigSection):
    """Server configuration"""

    host: str = (
        "0.0.0.0"  # nosec B104 - Intentional binding to all interfaces for containerized deployment
    )
    port: int = 8000

    model_config = SettingsConfigDict(env_prefix="APP_SERVER_")


class EngineConfig(BaseConfigSection):
    """Engine binary provisioning configuration"""

    path: str = "/tmp/yt-dlp"  # nosec B108 - ephemeral storage is the only writable path
    download_url: str = "https://github.com/yt-dlp/yt-dlp/releases/latest/download/yt-dlp_linux"
    download_timeout: float = 60.0  # seconds

    model_config = SettingsConfigDict(env_prefix="APP_ENGINE_")

    @field_validator("download_timeout")
    @classmethod
    def validate_download_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("download_timeout must be positive")
        return v


class ExtractionConfig(BaseConfigSection):
    """Engine invocation configuration"""

    timeout: float = 14.0  # seconds
    max_output_bytes: int = 16 * 1024 * 1024
    max_error_bytes: int = 64 * 1024

    model_config = SettingsConfigDict(env_prefix="APP_EXTRACTION_")

    @field_validator("timeout")
    @classmethod
    def validate_timeout(cls, v: float) -> float:
        if not 0 < v < HOSTING_TIMEOUT_CEILING:
            raise ValueError(
                f"timeout must be between 0 and {HOSTING_TIMEOUT_CEILING} seconds (exclusive)"
            )
        return v

    @field_validator("max_output_bytes", "max_error_bytes")
    @classmethod
    def validate_capture_limit(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("capture limits must be positive")
        return v


class LoggingConfig(BaseConfigSection):
    """Logging configuration"""

    level: str = "INFO"
    format: str = "json"

    model_config = SettingsConfigDict(env_prefix="APP_LOGGING_")

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(f"level must be one of {valid_levels}")
        return v_upper


class SecurityConfig(BaseConfigSection):
    """Security configuration"""

    cors_origins: List[str] = Field(default_factory=lambda: ["*"])

    model_config = SettingsConfigDict(env_prefix="APP_SECURITY_")


class I18nConfig(BaseConfigSection):
    """Localization of user-facing error messages"""

    default_locale: str = "en"
    supported_locales: List[str] = Field(default_factory=lambda: ["en", "ja"])

    model_config = SettingsConfigDict(env_prefix="APP_I18N_")


class Config(BaseSettings):
    """Main application configuration"""

    server: ServerConfig = Field(default_factory=ServerConfig)
    engine: EngineConfig = Field(default_factory=EngineConfig)
    extraction: ExtractionConfig = Field(default_factory=ExtractionConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    security: SecurityConfig = Field(default_factory=SecurityConfig)
    i18n: I18nConfig = Field(default_factory=I18nConfig)

    model_config = SettingsConfigDict(env_prefix="APP_")


class ConfigService:
    """Service for loading and managing configuration"""

    def __init__(self, config_path: Optional[str] = None):
        self.config_path = config_path or os.environ.get("APP_CONFIG_PATH", "config.yaml")
        self._config: Optional[Config] = None

    def load(self) -> Config:
        """Load configuration from YAML file with environment variable overrides."""
        config_data: Dict[str, Any] = {}

        if os.path.exists(self.config_path):
            with open(self.config_path, "r", encoding="utf-8") as f:
                yaml_data = yaml.safe_load(f)
                if yaml_data:
                    config_data = yaml_data

        self._config = Config(
            server=ServerConfig(**config_data.get("server", {})),
            engine=EngineConfig(**config_data.get("engine", {})),
            extraction=ExtractionConfig(**config_data.get("extraction", {})),
            logging=LoggingConfig(**config_data.get("logging", {})),
            security=SecurityConfig(**config_data.get("security", {})),
            i18n=I18nConfig(**config_data.get("i18n", {})),
        )

        return self._config

    @property
    def config(self) -> Config:
        """Get the loaded configuration"""
        if self._config is None:
            raise ValueError("Configuration not loaded. Call load() first.")
        return self._config

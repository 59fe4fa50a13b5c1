"""
Daemon Settings
===============

Daemon settings and environment configuration using Pydantic Settings.
Supports development, testing, and production environments.
"""

from typing import Optional
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from pathlib import Path


DEFAULT_SOCKET_PATH = "/tmp/rendererSocket"


class Settings(BaseSettings):
    """Daemon settings with environment variable support."""

    # Application Configuration
    app_name: str = Field(default="renderd", description="Application name")
    app_version: str = Field(default="1.0.0", description="Application version")
    environment: str = Field(
        default="development", description="Environment: development, testing, production"
    )
    debug: bool = Field(default=False, description="Debug mode")

    # Socket Configuration
    socket_path: Path = Field(
        default=Path(DEFAULT_SOCKET_PATH), description="Unix domain socket path"
    )
    max_request_bytes: int = Field(
        default=10 * 1024 * 1024, description="Maximum request body size, 0 disables the limit"
    )
    read_chunk_size: int = Field(default=64 * 1024, description="Socket read chunk size")

    # Rendering Configuration
    render_timeout: float = Field(
        default=30.0, description="Render timeout in seconds, 0 disables the timeout"
    )
    default_width: int = Field(default=800, description="Default render width")
    default_height: int = Field(default=600, description="Default render height")
    max_width: int = Field(default=4000, description="Maximum render width")
    max_height: int = Field(default=4000, description="Maximum render height")
    device_scale_factor: float = Field(default=1.0, description="Device pixel ratio")
    full_page: bool = Field(default=False, description="Capture full page instead of viewport")
    image_format: str = Field(default="png", description="Output image format: png, jpeg")
    jpeg_quality: int = Field(default=90, description="JPEG quality (1-100)")
    optimize_png: bool = Field(default=False, description="Re-encode PNG output with Pillow")
    templates_dir: Optional[Path] = Field(
        default=None, description="Directory of named templates"
    )

    # Browser Configuration
    playwright_headless: bool = Field(default=True, description="Run browser in headless mode")
    playwright_timeout: int = Field(default=30000, description="Playwright timeout in milliseconds")
    browser_pool_size: int = Field(default=2, description="Browser instance pool size")

    # Logging Configuration
    log_level: str = Field(default="INFO", description="Logging level")

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Validate environment value."""
        allowed = {"development", "testing", "production"}
        if v not in allowed:
            raise ValueError(f"Environment must be one of: {allowed}")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        allowed = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in allowed:
            raise ValueError(f"Log level must be one of: {allowed}")
        return v.upper()

    @field_validator("image_format")
    @classmethod
    def validate_image_format(cls, v: str) -> str:
        """Validate output image format."""
        v = v.lower()
        if v == "jpg":
            v = "jpeg"
        allowed = {"png", "jpeg"}
        if v not in allowed:
            raise ValueError(f"Image format must be one of: {allowed}")
        return v

    @field_validator("max_request_bytes", "render_timeout")
    @classmethod
    def validate_non_negative(cls, v: float) -> float:
        """Limits may be disabled with 0 but never negative."""
        if v < 0:
            raise ValueError("Value must be zero or positive")
        return v

    @field_validator("browser_pool_size", "read_chunk_size", "default_width", "default_height")
    @classmethod
    def validate_positive(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("Value must be positive")
        return v

    @field_validator("jpeg_quality")
    @classmethod
    def validate_jpeg_quality(cls, v: int) -> int:
        if not 1 <= v <= 100:
            raise ValueError("JPEG quality must be between 1 and 100")
        return v

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", case_sensitive=False, env_prefix="RENDERD_"
    )


# Global settings instance - will be initialized when needed
settings = None


def get_settings() -> Settings:
    """Get the global settings instance."""
    global settings
    if settings is None:
        settings = Settings()
    return settings


def reload_settings() -> Settings:
    """Reload settings from environment."""
    global settings
    settings = Settings()
    return settings

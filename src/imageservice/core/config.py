"""Configuration management for the Image Service.

This module provides centralized configuration management using Pydantic Settings.
All configuration is loaded from environment variables with the IMAGESERVICE_
prefix, allowing easy customization without code changes.

Environment Variable Loading
-----------------------------
Configuration values are loaded in the following priority order:
1. Environment variables (IMAGESERVICE_* prefix)
2. .env file in the project root
3. Default values defined in ImageServiceConfig

Example .env file:
    IMAGESERVICE_BASE_SIZE=200
    IMAGESERVICE_FONT_PATH=fonts/Montserrat-Regular.ttf
    IMAGESERVICE_GENERATION_WORKERS=4
    IMAGESERVICE_SERVER_PORT=8000

Global Configuration Instance
------------------------------
A global `config` instance is created automatically at module import time.
This ensures a single source of truth for all configuration values across
the application.

Usage Example
-------------
    from imageservice.core.config import config

    print(config.base_size)
    print(config.cache_control_header)

Fonts
-----
When ``font_path`` is unset the generators fall back to Pillow's bundled
scalable default font, so the service runs without any font files on disk.
Set ``font_path`` to a TrueType file to control the typeface.
"""

from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

_PACKAGE_DIR = Path(__file__).resolve().parent.parent

SECONDS_PER_DAY = 24 * 60 * 60


class ImageServiceConfig(BaseSettings):
    """Main configuration for the Image Service.

    This class uses Pydantic Settings to manage all application configuration.
    Values are loaded from environment variables with the IMAGESERVICE_ prefix,
    with fallback to defaults defined here.

    Attributes
    ----------
    Generation Settings:
        base_size : int
            Default avatar edge length and the base font size used when
            measuring text before it is scaled to fit.
        cover_aspect : float
            Cover height is ``round(width * cover_aspect)`` when no height
            is supplied.
        max_dimension : int
            Largest accepted width or height in pixels.
        font_path : Path | None
            Optional TrueType font file.  ``None`` uses Pillow's default font.

    HTTP Settings:
        cache_max_age_days : int
            Lifetime advertised in the ``Cache-Control`` header.
        generation_workers : int
            Size of the thread pool that runs CPU-bound generation.
        server_host : str
            Server bind address.
        server_port : int
            Server port.
        log_level : str
            Root log level used by the CLI entry point.

    Paths:
        static_dir : Path
            Directory served at ``/static`` (demo page assets).
        templates_dir : Path
            Directory holding ``index.html``.

    Examples
    --------
        >>> custom_config = ImageServiceConfig(base_size=256, generation_workers=2)
        >>> custom_config.default_cover_height
        320
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="IMAGESERVICE_",
        case_sensitive=False,
    )

    # Generation settings
    base_size: int = Field(
        default=200,
        description="Default avatar size and base font size for text measurement",
        ge=1,
    )
    cover_aspect: float = Field(
        default=1.25,
        description="Default cover height as a multiple of its width",
        gt=0.0,
    )
    max_dimension: int = Field(
        default=4096,
        description="Largest accepted image width or height in pixels",
        ge=1,
    )
    font_path: Path | None = Field(
        default=None,
        description="TrueType font file; unset uses Pillow's bundled font",
    )

    # HTTP settings
    cache_max_age_days: int = Field(
        default=365,
        description="max-age advertised in the Cache-Control header, in days",
        ge=0,
    )
    generation_workers: int = Field(
        default=4,
        description="Threads available for CPU-bound image generation",
        ge=1,
        le=64,
    )
    server_host: str = Field(
        default="0.0.0.0",
        description="Server bind address (0.0.0.0 for local network)",
    )
    server_port: int = Field(
        default=8000,
        description="Server port",
        ge=1024,
        le=65535,
    )
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Log level configured by the CLI entry point",
    )

    # Paths
    static_dir: Path = Field(
        default=_PACKAGE_DIR / "static",
        description="Directory served at /static",
    )
    templates_dir: Path = Field(
        default=_PACKAGE_DIR / "templates",
        description="Directory containing index.html",
    )

    @property
    def default_cover_height(self) -> int:
        """Cover height used when the request gives neither width nor height."""
        return cover_height_for(self.base_size, self.cover_aspect)

    @property
    def cache_control_header(self) -> str:
        """``Cache-Control`` value for generated images."""
        max_age = self.cache_max_age_days * SECONDS_PER_DAY
        return f"public, immutable, max-age={max_age}"


def cover_height_for(width: int, aspect: float) -> int:
    """Return the default cover height for *width* (half-to-even rounding)."""
    return max(1, round(width * aspect))


# Global configuration instance
# Loads values from environment variables (IMAGESERVICE_* prefix) and .env file.
config = ImageServiceConfig()

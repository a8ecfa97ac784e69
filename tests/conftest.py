"""Shared pytest fixtures for Image Service tests."""

import io
import shutil
import tempfile
from pathlib import Path
from typing import Callable, Generator

import pytest
from fastapi.testclient import TestClient
from PIL import Image

from imageservice.api.main import app
from imageservice.core.colors import ColorScheme, derive_colors
from imageservice.core.config import ImageServiceConfig


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files.

    Yields:
        Path to temporary directory

    Cleanup:
        Directory is removed after test completes
    """
    temp_path = Path(tempfile.mkdtemp())
    try:
        yield temp_path
    finally:
        shutil.rmtree(temp_path, ignore_errors=True)


@pytest.fixture
def test_config(temp_dir: Path) -> ImageServiceConfig:
    """Create a test configuration isolated from the environment and .env.

    Args:
        temp_dir: Temporary directory from fixture

    Returns:
        ImageServiceConfig instance for testing
    """
    static_dir = temp_dir / "static"
    templates_dir = temp_dir / "templates"
    static_dir.mkdir()
    templates_dir.mkdir()

    return ImageServiceConfig(
        _env_file=None,
        static_dir=str(static_dir),
        templates_dir=str(templates_dir),
        generation_workers=2,
    )


@pytest.fixture
def test_client() -> Generator[TestClient, None, None]:
    """TestClient with the application lifespan (worker pool) running."""
    with TestClient(app) as client:
        yield client


@pytest.fixture
def jane_colors() -> ColorScheme:
    """Colour scheme for a typical two-word name."""
    return derive_colors("Jane Doe")


@pytest.fixture
def sample_names() -> list[str]:
    """Names covering the separators and edge cases initials must handle."""
    return [
        "Jane Doe",
        "mary-jane_watson",
        "X",
        "a very long name with many many separate words in it",
        "Zoë Ångström",
        "   padded   ",
    ]


@pytest.fixture
def decode_image() -> Callable[[bytes], Image.Image]:
    """Return a helper that decodes encoded image bytes for assertions."""

    def _decode(data: bytes) -> Image.Image:
        image = Image.open(io.BytesIO(data))
        image.load()
        return image

    return _decode

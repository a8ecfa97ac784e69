"""Image Service - deterministic placeholder avatars and book covers."""

__version__ = "0.1.0"

from imageservice.core.config import ImageServiceConfig, config
from imageservice.core.generators import generate_avatar, generate_cover

__all__ = [
    "ImageServiceConfig",
    "config",
    "generate_avatar",
    "generate_cover",
]

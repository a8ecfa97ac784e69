"""Core image generation for the Image Service.

Architecture Overview
---------------------
The pipeline is a chain of pure steps; no state survives a request:

1. **Colour derivation** (colors.py):
   - Stable 32-bit hash of the text seeds a private random generator
   - Hue, saturation and lightness are drawn in a fixed order

2. **Text fitting** (text_fitting.py):
   - Text is measured once at the base size and scaled to the padded box

3. **Composition** (composer.py):
   - Radial gradient background, fitted text, optional cover border

4. **Encoding** (encoder.py):
   - PNG, JPEG or WEBP chosen from an extension string, PNG by default

5. **Pipelines** (generators.py):
   - ``generate_avatar`` / ``generate_cover`` tie the steps together

Configuration lives in config.py and is loaded from ``IMAGESERVICE_*``
environment variables.
"""

from imageservice.core.colors import ColorScheme, derive_colors
from imageservice.core.config import ImageServiceConfig, config
from imageservice.core.encoder import EncodedImage, ImageEncodingError, ImageFormat, ImageServiceError

__all__ = [
    "ColorScheme",
    "EncodedImage",
    "ImageEncodingError",
    "ImageFormat",
    "ImageServiceConfig",
    "ImageServiceError",
    "config",
    "derive_colors",
]

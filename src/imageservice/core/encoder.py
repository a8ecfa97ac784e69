"""Raster encoding of composed canvases.

The output format is chosen from a file-extension-like string.  Only three
formats exist and anything unrecognised becomes PNG, so a request for
``avatar/jane.gif`` still returns a valid image rather than an error.

=========  ===============  ============
Extension  Format           Media type
=========  ===============  ============
webp       WEBP             image/webp
jpg, jpeg  JPEG             image/jpeg
other      PNG              image/png
=========  ===============  ============

Encoder settings are left at Pillow's defaults; no quality knobs are exposed.
"""

from __future__ import annotations

import io
from dataclasses import dataclass
from enum import Enum

from PIL import Image


class ImageServiceError(Exception):
    """Base class for errors raised by the image service."""


class ImageEncodingError(ImageServiceError):
    """Raised when a canvas cannot be serialised."""


class ImageFormat(Enum):
    """Supported output formats.

    Each member's value is ``(pillow_format, media_type, extension)``.
    """

    PNG = ("PNG", "image/png", "png")
    JPEG = ("JPEG", "image/jpeg", "jpeg")
    WEBP = ("WEBP", "image/webp", "webp")

    @property
    def pillow_format(self) -> str:
        return self.value[0]

    @property
    def media_type(self) -> str:
        return self.value[1]

    @property
    def extension(self) -> str:
        return self.value[2]

    @classmethod
    def from_extension(cls, ext: str | None) -> ImageFormat:
        """Normalise an extension to a format, defaulting to PNG."""
        normalized = (ext or "").strip().lower().lstrip(".")
        if normalized == "webp":
            return cls.WEBP
        if normalized in ("jpg", "jpeg"):
            return cls.JPEG
        return cls.PNG


@dataclass(frozen=True)
class EncodedImage:
    """Encoded image bytes and their media type."""

    data: bytes
    media_type: str


def encode(canvas: Image.Image, fmt: ImageFormat) -> EncodedImage:
    """Serialise *canvas* in *fmt*.

    JPEG has no alpha channel, so RGBA canvases are flattened to RGB first.
    The canvas itself is not modified.

    Args:
        canvas: Composed image.
        fmt: Target format.

    Returns:
        The encoded bytes and media type.

    Raises:
        ImageEncodingError: If Pillow cannot encode the canvas.
    """
    image = canvas
    if fmt is ImageFormat.JPEG and canvas.mode != "RGB":
        image = canvas.convert("RGB")

    buffer = io.BytesIO()
    try:
        image.save(buffer, format=fmt.pillow_format)
    except (OSError, ValueError, KeyError) as exc:
        raise ImageEncodingError(f"Failed to encode {canvas.size} canvas as {fmt.name}") from exc
    finally:
        if image is not canvas:
            image.close()

    return EncodedImage(data=buffer.getvalue(), media_type=fmt.media_type)

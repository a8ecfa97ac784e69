"""End-to-end generation pipelines: derive colours, compose, encode.

Each call owns its canvas from creation until encoding finishes and closes it
on the way out, whether encoding succeeded or not.  Nothing is shared between
calls, so the functions are safe to run concurrently on worker threads.

Usage
-----
::

    from imageservice.core.generators import generate_avatar, generate_cover

    avatar = generate_avatar("Jane Doe", "png", 200, 200)
    cover = generate_cover("Dune", "Frank Herbert", "webp", 200, 250)

    avatar.media_type   # "image/png"
    avatar.data[:8]     # b"\\x89PNG\\r\\n\\x1a\\n"
"""

from __future__ import annotations

import logging
from pathlib import Path

from imageservice.core.colors import derive_colors
from imageservice.core.composer import compose_avatar, compose_cover
from imageservice.core.config import config
from imageservice.core.encoder import EncodedImage, ImageFormat, encode

logger = logging.getLogger(__name__)


def _resolve_format(fmt: ImageFormat | str | None) -> ImageFormat:
    if isinstance(fmt, ImageFormat):
        return fmt
    return ImageFormat.from_extension(fmt)


def _check_dimensions(width: int, height: int) -> None:
    if width < 1 or height < 1:
        raise ValueError(f"Image dimensions must be positive, got {width}x{height}")


def generate_avatar(
    name: str,
    fmt: ImageFormat | str | None,
    width: int,
    height: int,
    *,
    base_font_size: float | None = None,
    font_path: Path | str | None = None,
) -> EncodedImage:
    """Generate an initials avatar for *name*.

    Args:
        name: Name to derive colours and initials from.
        fmt: Output format, or an extension string to normalise.
        width: Image width in pixels.
        height: Image height in pixels.
        base_font_size: Measurement size; defaults to ``config.base_size``.
        font_path: Font file; defaults to ``config.font_path``.

    Returns:
        The encoded avatar.

    Raises:
        ValueError: If either dimension is below 1.
        ImageEncodingError: If the canvas cannot be encoded.
    """
    _check_dimensions(width, height)
    image_format = _resolve_format(fmt)
    colors = derive_colors(name)
    logger.debug("Avatar %r: hue=%d lightness=%.3f", name, colors.hue, colors.lightness)

    with compose_avatar(
        width,
        height,
        colors,
        name,
        base_font_size=base_font_size or config.base_size,
        font_path=font_path if font_path is not None else config.font_path,
    ) as canvas:
        return encode(canvas, image_format)


def generate_cover(
    title: str,
    author: str | None,
    fmt: ImageFormat | str | None,
    width: int,
    height: int,
    *,
    base_font_size: float | None = None,
    font_path: Path | str | None = None,
) -> EncodedImage:
    """Generate a book cover for *title*.

    Colours are derived from the title alone, so the same book keeps its
    colours whatever author string is supplied.

    Args:
        title: Cover title.
        author: Author line; ``None`` or blank draws bordered title initials.
        fmt: Output format, or an extension string to normalise.
        width: Image width in pixels.
        height: Image height in pixels.
        base_font_size: Measurement size; defaults to ``config.base_size``.
        font_path: Font file; defaults to ``config.font_path``.

    Returns:
        The encoded cover.

    Raises:
        ValueError: If either dimension is below 1.
        ImageEncodingError: If the canvas cannot be encoded.
    """
    _check_dimensions(width, height)
    image_format = _resolve_format(fmt)
    colors = derive_colors(title)
    logger.debug("Cover %r by %r: hue=%d lightness=%.3f", title, author, colors.hue, colors.lightness)

    with compose_cover(
        width,
        height,
        colors,
        title,
        author,
        base_font_size=base_font_size or config.base_size,
        font_path=font_path if font_path is not None else config.font_path,
    ) as canvas:
        return encode(canvas, image_format)

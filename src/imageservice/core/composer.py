"""Image composition: gradient backgrounds, fitted text and cover borders.

Two layouts are produced:

- **Initials** - the uppercase initials of a name, scaled to fill the canvas
  minus a 10% inset on each axis and centred.  Used for avatars and for covers
  that have no author.
- **Title** - a cover title wrapped and anchored to the top, with the author
  line anchored to the bottom at 0.6x the title size.

Both layouts paint the same radial gradient: ``start_color`` at a focal point
10% in from the top-left corner, fading to ``end_color`` at a radius equal to
the longer canvas side, clamped beyond it.  Covers additionally get an inset
border stroked twice, first in the text colour and then with the reversed
gradient, which reads as a coloured inlay.

All functions return a fresh RGBA :class:`PIL.Image.Image`.  The caller owns
it and is responsible for closing it once encoded.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path

import numpy as np
from PIL import Image, ImageDraw, ImageFont

from imageservice.core.colors import RGBA, ColorScheme
from imageservice.core.text_fitting import fit_font, load_font, wrap_text

logger = logging.getLogger(__name__)

# Cover geometry, in pixels.
BORDER_OFFSET = 10
BORDER_WIDTH = 4
CONTRAST_STROKE_WIDTH = BORDER_WIDTH + 1

AUTHOR_SCALE = 0.6
GRADIENT_FOCUS = 0.1
PADDING_FRACTION = 0.1

_TOKEN_SEPARATORS = re.compile(r"[ _-]")


def initials(name: str) -> str:
    """Return the uppercase initials of *name*.

    Tokens are separated by spaces, underscores and hyphens; empty tokens are
    skipped, so ``""`` yields ``""``.

    Examples:
        >>> initials("Jane Doe")
        'JD'
        >>> initials("mary-jane_watson")
        'MJW'
    """
    return "".join(token.strip()[0].upper() for token in _TOKEN_SEPARATORS.split(name) if token.strip())


def gradient_field(
    width: int,
    height: int,
    center: tuple[float, float],
    radius: float,
) -> np.ndarray:
    """Return the float32 blend factor of a radial gradient for every pixel.

    The factor is the distance from *center* to each pixel centre divided by
    *radius*, clamped to ``[0, 1]``.  The coordinate axes are broadcast rather
    than materialised, so the only full-size allocation is the result.
    """
    xs = np.arange(width, dtype=np.float32) + np.float32(0.5 - center[0])
    ys = np.arange(height, dtype=np.float32)[:, np.newaxis] + np.float32(0.5 - center[1])
    t = np.hypot(xs, ys)
    t /= np.float32(max(radius, 1e-6))
    np.clip(t, 0.0, 1.0, out=t)
    return t


def blend_stops(t: np.ndarray, start: RGBA, end: RGBA) -> Image.Image:
    """Interpolate two colour stops over a blend field into an RGBA image.

    Channels are interpolated one at a time straight into a uint8 buffer.
    """
    pixels = np.empty(t.shape + (4,), dtype=np.uint8)
    for index, (a, b) in enumerate(zip(start, end)):
        channel = t * np.float32(b - a)
        channel += np.float32(a)
        np.rint(channel, out=channel)
        pixels[..., index] = channel
    return Image.fromarray(pixels)


def radial_gradient(
    width: int,
    height: int,
    center: tuple[float, float],
    radius: float,
    start: RGBA,
    end: RGBA,
) -> Image.Image:
    """Render a two-stop radial gradient.

    Args:
        width: Image width.
        height: Image height.
        center: Focal point ``(x, y)`` where the gradient equals *start*.
        radius: Distance at which the gradient reaches *end*.  Pixels further
            away stay at *end*.
        start: Colour at the centre.
        end: Colour at and beyond *radius*.

    Returns:
        RGBA image of the requested size.
    """
    return blend_stops(gradient_field(width, height, center, radius), start, end)


def _background_field(width: int, height: int) -> np.ndarray:
    return gradient_field(
        width,
        height,
        (width * GRADIENT_FOCUS, height * GRADIENT_FOCUS),
        max(width, height),
    )


def _draw_text(
    canvas: Image.Image,
    text: str,
    font: ImageFont.FreeTypeFont,
    color: RGBA,
    center_x: float,
    y: float,
    vertical: str = "center",
) -> None:
    """Alpha-blend *text* onto *canvas*, positioned by its ink bounds.

    ``vertical`` picks what *y* refers to: the ink centre (``"center"``), the
    ink top (``"top"``) or the ink bottom (``"bottom"``).
    """
    if not text.strip():
        return

    overlay = Image.new("RGBA", canvas.size, (0, 0, 0, 0))
    draw = ImageDraw.Draw(overlay)
    left, top, right, bottom = draw.multiline_textbbox((0, 0), text, font=font, align="center")

    x = center_x - (left + right) / 2
    if vertical == "top":
        dy = y - top
    elif vertical == "bottom":
        dy = y - bottom
    else:
        dy = y - (top + bottom) / 2

    draw.multiline_text((x, dy), text, font=font, fill=color, align="center")
    canvas.alpha_composite(overlay)


def _draw_border(canvas: Image.Image, colors: ColorScheme, field: np.ndarray) -> None:
    """Stroke the inset cover border: contrast pass, then gradient inlay.

    *field* is the background's blend factor; the inlay reuses it with the
    stops swapped.
    """
    width, height = canvas.size
    if width <= BORDER_OFFSET * 2 or height <= BORDER_OFFSET * 2:
        logger.debug("Canvas %dx%d too small for a border", width, height)
        return
    box = (BORDER_OFFSET, BORDER_OFFSET, width - BORDER_OFFSET, height - BORDER_OFFSET)

    overlay = Image.new("RGBA", canvas.size, (0, 0, 0, 0))
    ImageDraw.Draw(overlay).rectangle(
        _centered_stroke_box(box, CONTRAST_STROKE_WIDTH),
        outline=colors.text_color,
        width=CONTRAST_STROKE_WIDTH,
    )
    canvas.alpha_composite(overlay)

    mask = Image.new("L", canvas.size, 0)
    ImageDraw.Draw(mask).rectangle(
        _centered_stroke_box(box, BORDER_WIDTH),
        outline=255,
        width=BORDER_WIDTH,
    )
    # Reversed stops so the inlay contrasts with the background beneath it.
    inlay = blend_stops(field, colors.end_color, colors.start_color)
    canvas.paste(inlay, (0, 0), mask)


def _centered_stroke_box(box: tuple[int, int, int, int], stroke: int) -> tuple[int, int, int, int]:
    # Pillow strokes inward from the box edge; grow the box so the stroke
    # straddles the nominal outline instead.
    grow = stroke // 2
    x0, y0, x1, y1 = box
    return (x0 - grow, y0 - grow, x1 + grow - 1, y1 + grow - 1)


def compose_initials(
    width: int,
    height: int,
    colors: ColorScheme,
    name: str,
    *,
    base_font_size: float,
    font_path: Path | str | None = None,
    border: bool = False,
) -> Image.Image:
    """Compose an initials image for *name*.

    Args:
        width: Canvas width.
        height: Canvas height.
        colors: Colour scheme for the background and text.
        name: Name whose initials are drawn.
        base_font_size: Size used to measure the initials before fitting.
        font_path: Font file, or ``None`` for the default font.
        border: Draw the cover border (used for covers without an author).

    Returns:
        The composed RGBA canvas.
    """
    text = initials(name)
    padding = (width // 10, height // 10)
    size = fit_font(text, base_font_size, width, height, padding, font_path=font_path)
    logger.debug("Initials %r at %.1fpt on %dx%d", text, size, width, height)

    field = _background_field(width, height)
    canvas = blend_stops(field, colors.start_color, colors.end_color)
    _draw_text(canvas, text, load_font(size, font_path), colors.text_color, width * 0.5, height * 0.5)
    if border:
        _draw_border(canvas, colors, field)
    return canvas


def compose_avatar(
    width: int,
    height: int,
    colors: ColorScheme,
    name: str,
    *,
    base_font_size: float,
    font_path: Path | str | None = None,
) -> Image.Image:
    """Compose an avatar: centred initials on the gradient background."""
    return compose_initials(
        width,
        height,
        colors,
        name,
        base_font_size=base_font_size,
        font_path=font_path,
    )


def compose_cover(
    width: int,
    height: int,
    colors: ColorScheme,
    title: str,
    author: str | None = None,
    *,
    base_font_size: float,
    font_path: Path | str | None = None,
) -> Image.Image:
    """Compose a book cover.

    With an *author* the title is wrapped inside the border and anchored to
    the top, and the author is anchored to the bottom.  Without one the
    cover falls back to bordered initials of the title.

    Args:
        width: Canvas width.
        height: Canvas height.
        colors: Colour scheme, derived from the title.
        title: Cover title.
        author: Author line, or ``None``/empty for the initials layout.
        base_font_size: Size used to measure text before fitting.
        font_path: Font file, or ``None`` for the default font.

    Returns:
        The composed RGBA canvas.
    """
    if not author or not author.strip():
        return compose_initials(
            width,
            height,
            colors,
            title,
            base_font_size=base_font_size,
            font_path=font_path,
            border=True,
        )

    inner_width = width - BORDER_OFFSET * 2
    wrap_width = inner_width - BORDER_WIDTH * 2
    padding = (width / 10 + BORDER_OFFSET / 2, height / 10)
    fit_kwargs = dict(
        font_path=font_path,
        padding_multiplier=3.0,
        wrap_width=width,
        max_size=height * 0.5,
    )

    title_size = fit_font(title, base_font_size, width, height, padding, **fit_kwargs)
    # Author size derives from the title measurement, not the author text.
    author_size = fit_font(title, base_font_size, width, height, padding, scale=AUTHOR_SCALE, **fit_kwargs)
    logger.debug("Cover title %.1fpt, author %.1fpt on %dx%d", title_size, author_size, width, height)

    field = _background_field(width, height)
    canvas = blend_stops(field, colors.start_color, colors.end_color)

    title_font = load_font(title_size, font_path)
    _draw_text(
        canvas,
        wrap_text(title, title_font, wrap_width),
        title_font,
        colors.text_color,
        width * 0.5,
        BORDER_OFFSET * 2,
        vertical="top",
    )

    author_font = load_font(author_size, font_path)
    _draw_text(
        canvas,
        wrap_text(author, author_font, wrap_width),
        author_font,
        colors.text_color,
        width * 0.5,
        height - BORDER_OFFSET * 2,
        vertical="bottom",
    )

    _draw_border(canvas, colors, field)
    return canvas

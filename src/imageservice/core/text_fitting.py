"""Font loading, text measurement and fit-to-box font sizing.

Text is measured once at a known base size, and the final size is obtained by
scaling that base size by how far the measured bounds are from the available
space.  Glyph bounds scale almost linearly with the font size, so the first
estimate is close; it is then re-measured and nudged down until the ink fits,
which usually takes one extra measurement.

The scale is applied as computed: short text such as a single initial grows
past the base size to fill the box, and long text shrinks.
"""

from __future__ import annotations

import logging
from pathlib import Path

from PIL import Image, ImageDraw, ImageFont

logger = logging.getLogger(__name__)

MIN_FONT_SIZE = 1.0


def load_font(size: float, font_path: Path | str | None = None) -> ImageFont.FreeTypeFont:
    """Load a scalable font at *size* points.

    Args:
        size: Font size; clamped to at least :data:`MIN_FONT_SIZE`.
        font_path: TrueType/OpenType file.  ``None`` selects Pillow's bundled
            default font.

    Returns:
        A FreeType font object.

    Raises:
        OSError: If *font_path* cannot be read or is not a font.
    """
    size = max(MIN_FONT_SIZE, float(size))
    if font_path is None:
        return ImageFont.load_default(size=size)
    return ImageFont.truetype(str(font_path), size)


def wrap_text(text: str, font: ImageFont.FreeTypeFont, max_width: float) -> str:
    """Greedily word-wrap *text* so each line fits in *max_width* pixels.

    Words longer than the line are kept whole on their own line.  Existing
    newlines are respected.
    """
    lines: list[str] = []
    for paragraph in text.split("\n"):
        current = ""
        for word in paragraph.split():
            candidate = f"{current} {word}" if current else word
            if current and font.getlength(candidate) > max_width:
                lines.append(current)
                current = word
            else:
                current = candidate
        lines.append(current)
    return "\n".join(lines)


def measure_text(
    text: str,
    font: ImageFont.FreeTypeFont,
    wrap_width: float | None = None,
) -> tuple[float, float]:
    """Return the ``(width, height)`` of the ink bounds of *text*.

    Args:
        text: Text to measure.
        font: Font to measure with.
        wrap_width: If given, the text is wrapped to this width first.

    Returns:
        Width and height of the glyph bounding box.  Empty or whitespace-only
        text measures ``(0, 0)``.
    """
    if wrap_width is not None:
        text = wrap_text(text, font, wrap_width)
    if not text.strip():
        return 0.0, 0.0
    # Scratch surface; textbbox never draws.
    draw = ImageDraw.Draw(Image.new("RGBA", (1, 1)))
    left, top, right, bottom = draw.multiline_textbbox((0, 0), text, font=font, align="center")
    return float(right - left), float(bottom - top)


_MAX_SHRINK_STEPS = 8


def _shrink_to_fit(
    content: str,
    size: float,
    available_width: float,
    available_height: float,
    font_path: Path | str | None,
    wrap_width: float | None,
) -> float:
    # Hinting and integer glyph bounds make ink grow slightly faster than the
    # font size, so the linear estimate can overshoot by a pixel or two.
    for _ in range(_MAX_SHRINK_STEPS):
        if size <= MIN_FONT_SIZE:
            return MIN_FONT_SIZE
        width, height = measure_text(content, load_font(size, font_path), wrap_width)
        if width <= available_width and height <= available_height:
            return size
        ratio = min(available_width / width, available_height / height)
        size = min(size * ratio, size - 0.5)
    return max(MIN_FONT_SIZE, size)


def fit_font(
    content: str,
    base_font_size: float,
    box_width: float,
    box_height: float,
    padding: tuple[float, float],
    *,
    font_path: Path | str | None = None,
    padding_multiplier: float = 2.0,
    wrap_width: float | None = None,
    max_size: float | None = None,
    scale: float = 1.0,
) -> float:
    """Compute the font size at which *content* fills the padded box.

    The text is measured at ``base_font_size``; each axis gives a scale factor
    ``available / measured`` and the smaller one wins.  The estimate is then
    re-measured and shrunk if hinting pushed the ink past the box, so the
    fitted bounds never exceed either constraint.

    Args:
        content: Text to fit.
        base_font_size: Size to measure at.
        box_width: Width of the target box in pixels.
        box_height: Height of the target box in pixels.
        padding: ``(horizontal, vertical)`` padding per side.
        font_path: Font file, or ``None`` for the default font.
        padding_multiplier: How many times each padding is subtracted from the
            box (2 for a symmetric inset).
        wrap_width: Wrap width used while measuring multi-line text.
        max_size: Upper bound applied before ``scale``.
        scale: Final multiplier, e.g. 0.6 for a secondary line.

    Returns:
        Font size, never below :data:`MIN_FONT_SIZE`.
    """
    h_padding, v_padding = padding
    font = load_font(base_font_size, font_path)
    measured_width, measured_height = measure_text(content, font, wrap_width)

    available_width = box_width - h_padding * padding_multiplier
    available_height = box_height - v_padding * padding_multiplier
    if measured_width <= 0 or measured_height <= 0 or available_width <= 0 or available_height <= 0:
        logger.debug("Degenerate text bounds for %r; using minimum font size", content)
        return MIN_FONT_SIZE

    v_scale = 1 / (measured_height / available_height)
    h_scale = 1 / (measured_width / available_width)
    size = base_font_size * min(v_scale, h_scale)
    size = _shrink_to_fit(content, size, available_width, available_height, font_path, wrap_width)

    if max_size is not None:
        size = min(size, max_size)
    size *= scale

    return max(MIN_FONT_SIZE, size)

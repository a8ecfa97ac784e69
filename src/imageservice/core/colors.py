"""Deterministic colour derivation for generated images.

Every image is coloured from its own text: the text is hashed with a stable
32-bit hash, the hash seeds a private :class:`random.Random`, and three values
are drawn from it in a fixed order (hue, saturation, lightness).  The same
text therefore always produces the same :class:`ColorScheme`, in every
process and on every platform.

Draw Order
----------
1. ``hue``        - integer in ``[0, 360)``
2. ``saturation`` - float in ``[0.1, 0.9]``
3. ``lightness``  - float in ``[0.1, 0.9]``

Changing the order or the number of draws changes every colour the service
has ever produced, so it must stay fixed.

Usage
-----
::

    from imageservice.core.colors import derive_colors

    scheme = derive_colors("Jane Doe")
    scheme.start_color   # (r, g, b, 255)
    scheme.text_color    # near-white or near-black, alpha 200
"""

from __future__ import annotations

import colorsys
import random
from dataclasses import dataclass

RGBA = tuple[int, int, int, int]

# Both hash lanes start from this value.
_HASH_SEED = ((5381 << 16) + 5381) & 0xFFFFFFFF
_HASH_MULTIPLIER = 1566083941

LIGHTNESS_OFFSET = 0.05
TEXT_ALPHA = 200
LIGHT_TEXT: RGBA = (255, 255, 255, TEXT_ALPHA)
DARK_TEXT: RGBA = (0, 0, 0, TEXT_ALPHA)


def _to_int32(value: int) -> int:
    """Wrap an arbitrary Python int to a signed 32-bit integer."""
    value &= 0xFFFFFFFF
    return value - 0x100000000 if value & 0x80000000 else value


def deterministic_hash(text: str) -> int:
    """Return a stable signed 32-bit hash of *text*.

    Python's built-in :func:`hash` is salted per process, so it cannot be
    used to seed colours.  This is a two-lane djb2 variant: even-indexed
    characters feed the first lane, odd-indexed characters the second, and
    the lanes are combined at the end.  Characters are hashed as UTF-16 code
    units so non-BMP names hash the same way as in other runtimes.

    Args:
        text: Any string, including the empty string.

    Returns:
        Integer in ``[-2**31, 2**31)``.
    """
    units = text.encode("utf-16-le")
    code_units = [int.from_bytes(units[i : i + 2], "little") for i in range(0, len(units), 2)]

    hash1 = _HASH_SEED
    hash2 = _HASH_SEED
    for i in range(0, len(code_units), 2):
        hash1 = (((hash1 << 5) + hash1) ^ code_units[i]) & 0xFFFFFFFF
        if i == len(code_units) - 1:
            break
        hash2 = (((hash2 << 5) + hash2) ^ code_units[i + 1]) & 0xFFFFFFFF

    return _to_int32(hash1 + hash2 * _HASH_MULTIPLIER)


@dataclass(frozen=True)
class ColorScheme:
    """Colours derived from a piece of text.

    Attributes:
        hue: Hue in degrees, ``0 <= hue < 360``.
        saturation: Saturation in ``[0.1, 0.9]``.
        lightness: Lightness in ``[0.1, 0.9]``.
        start_color: Gradient colour at the focal point (slightly lighter).
        end_color: Gradient colour at the edge (slightly darker).
        text_color: Semi-opaque white on dark schemes, black on light ones.
    """

    hue: int
    saturation: float
    lightness: float
    start_color: RGBA
    end_color: RGBA
    text_color: RGBA


def hsl_to_rgba(hue: float, saturation: float, lightness: float) -> RGBA:
    """Convert an HSL triple to an opaque RGBA tuple.

    ``lightness`` is clamped into ``[0, 1]`` so the +/- offsets applied to
    the gradient stops can never leave the colour space.
    """
    lightness = min(1.0, max(0.0, lightness))
    r, g, b = colorsys.hls_to_rgb((hue % 360) / 360.0, lightness, saturation)
    return (round(r * 255), round(g * 255), round(b * 255), 255)


def colors_from_seed(seed: int) -> ColorScheme:
    """Build a :class:`ColorScheme` from an integer seed.

    Args:
        seed: Seed for the private random generator.

    Returns:
        The colour scheme produced by the fixed draw sequence.
    """
    rng = random.Random(seed)

    hue = rng.randrange(0, 360)
    saturation = rng.random() * 0.8 + 0.1
    lightness = rng.random() * 0.8 + 0.1

    return ColorScheme(
        hue=hue,
        saturation=saturation,
        lightness=lightness,
        start_color=hsl_to_rgba(hue, saturation, lightness + LIGHTNESS_OFFSET),
        end_color=hsl_to_rgba(hue, saturation, lightness - LIGHTNESS_OFFSET),
        text_color=LIGHT_TEXT if lightness <= 0.5 else DARK_TEXT,
    )


def derive_colors(text: str) -> ColorScheme:
    """Derive the colour scheme for *text*."""
    return colors_from_seed(deterministic_hash(text))

"""Pydantic models for the Image Service API.

Models
------
GenerationRequest
    Validated parameters for one avatar or cover generation, built by the
    route handlers from path and query parameters.
"""

from __future__ import annotations

from pydantic import BaseModel, Field, field_validator

from imageservice.core.encoder import ImageFormat


class GenerationRequest(BaseModel):
    """Parameters for a single image generation.

    Attributes:
        text: Name for avatars, title for covers.  Colours derive from it.
        author: Optional author line (covers only).
        format: Output format.  Extension strings are accepted and
            normalised; anything unrecognised becomes PNG.
        width: Image width in pixels.
        height: Image height in pixels.
    """

    text: str = Field(
        ...,
        description="Name (avatars) or title (covers).",
    )
    author: str | None = Field(
        default=None,
        description="Author of the book (covers only).",
    )
    format: ImageFormat = Field(
        default=ImageFormat.PNG,
        description="Output format: png, jpeg or webp.",
    )
    width: int = Field(
        ...,
        ge=1,
        description="Image width in pixels.",
    )
    height: int = Field(
        ...,
        ge=1,
        description="Image height in pixels.",
    )

    @field_validator("format", mode="before")
    @classmethod
    def _normalise_format(cls, value: object) -> ImageFormat:
        if isinstance(value, ImageFormat):
            return value
        return ImageFormat.from_extension(value if isinstance(value, str) else None)

"""Integration tests for imageservice.api.main — FastAPI endpoints.

All tests use the FastAPI TestClient with the real generation pipeline.
Tests cover every endpoint:

- ``GET /`` — Demo page.
- ``GET /avatar/{name}.{ext}`` — Avatar generation.
- ``GET /cover/{title}.{ext}`` — Cover generation.
- ``GET /ping`` — Liveness probe.

Plus the cross-cutting behaviour: response timing header, cache headers,
client errors for malformed query parameters and the 500 mapping for
generation failures.
"""

from __future__ import annotations

import re

from imageservice.core.encoder import ImageEncodingError

CACHE_CONTROL = "public, immutable, max-age=31536000"


# ---------------------------------------------------------------------------
# Index page tests.
# ---------------------------------------------------------------------------


class TestIndexPage:
    """Test GET / — demo page."""

    def test_index_returns_html(self, test_client):
        """GET / should return 200 with HTML content."""
        resp = test_client.get("/")
        assert resp.status_code == 200
        assert "text/html" in resp.headers["content-type"]
        assert "Image Service" in resp.text

    def test_demo_script_served(self, test_client):
        """The demo script should be served from /static."""
        resp = test_client.get("/static/js/demo.js")
        assert resp.status_code == 200


# ---------------------------------------------------------------------------
# Avatar endpoint tests.
# ---------------------------------------------------------------------------


class TestAvatar:
    """Test GET /avatar/{name}.{ext}."""

    def test_default_size(self, test_client, decode_image):
        """No dimensions should yield a 200x200 PNG."""
        resp = test_client.get("/avatar/foo.png")
        assert resp.status_code == 200
        assert resp.headers["content-type"] == "image/png"
        image = decode_image(resp.content)
        assert image.format == "PNG"
        assert image.size == (200, 200)

    def test_custom_size(self, test_client, decode_image):
        """Width and height query parameters should set the size."""
        resp = test_client.get("/avatar/Jane%20Doe.png", params={"width": 64, "height": 48})
        assert resp.status_code == 200
        assert decode_image(resp.content).size == (64, 48)

    def test_width_only(self, test_client, decode_image):
        """A missing height should fall back to the default size."""
        resp = test_client.get("/avatar/foo.png", params={"width": 80})
        assert decode_image(resp.content).size == (80, 200)

    def test_cache_control(self, test_client):
        """Responses should be cacheable for a year and immutable."""
        resp = test_client.get("/avatar/foo.png")
        assert resp.headers["cache-control"] == CACHE_CONTROL

    def test_jpeg(self, test_client, decode_image):
        """.jpg should return JPEG bytes."""
        resp = test_client.get("/avatar/foo.jpg")
        assert resp.status_code == 200
        assert resp.headers["content-type"] == "image/jpeg"
        assert resp.content[:3] == b"\xff\xd8\xff"
        assert decode_image(resp.content).format == "JPEG"

    def test_webp(self, test_client):
        """.webp should return WEBP bytes."""
        resp = test_client.get("/avatar/foo.webp")
        assert resp.status_code == 200
        assert resp.headers["content-type"] == "image/webp"
        assert resp.content[:4] == b"RIFF"
        assert resp.content[8:12] == b"WEBP"

    def test_unknown_extension_falls_back_to_png(self, test_client):
        """An unsupported extension should be coerced to PNG, not rejected."""
        resp = test_client.get("/avatar/foo.gif")
        assert resp.status_code == 200
        assert resp.headers["content-type"] == "image/png"
        assert resp.content.startswith(b"\x89PNG\r\n\x1a\n")

    def test_dotted_name(self, test_client):
        """Only the last dot should separate the extension."""
        dotted = test_client.get("/avatar/jane.doe.png")
        plain = test_client.get("/avatar/jane.png")
        assert dotted.status_code == 200
        assert dotted.content != plain.content

    def test_deterministic(self, test_client):
        """The same URL should always return the same bytes."""
        first = test_client.get("/avatar/mary-jane_watson.png")
        second = test_client.get("/avatar/mary-jane_watson.png")
        assert first.content == second.content

    def test_blank_name(self, test_client):
        """A name with no initials should still render."""
        resp = test_client.get("/avatar/%20.png")
        assert resp.status_code == 200

    def test_non_integer_width_rejected(self, test_client):
        """A non-integer width should be a client error."""
        resp = test_client.get("/avatar/foo.png", params={"width": "wide"})
        assert resp.status_code == 422

    def test_zero_height_rejected(self, test_client):
        """Dimensions below 1 should be a client error."""
        resp = test_client.get("/avatar/foo.png", params={"height": 0})
        assert resp.status_code == 422

    def test_oversized_rejected(self, test_client):
        """Dimensions above the configured maximum should be a client error."""
        resp = test_client.get("/avatar/foo.png", params={"width": 100_000})
        assert resp.status_code == 422

    def test_missing_extension_not_found(self, test_client):
        """The route requires a name and an extension."""
        resp = test_client.get("/avatar/foo")
        assert resp.status_code == 404


# ---------------------------------------------------------------------------
# Cover endpoint tests.
# ---------------------------------------------------------------------------


class TestCover:
    """Test GET /cover/{title}.{ext}."""

    def test_default_size(self, test_client, decode_image):
        """No dimensions should yield 200x250 (round(200 * 1.25))."""
        resp = test_client.get("/cover/foo.png")
        assert resp.status_code == 200
        assert decode_image(resp.content).size == (200, 250)

    def test_height_follows_width(self, test_client, decode_image):
        """With only a width, the height should be round(width * 1.25)."""
        resp = test_client.get("/cover/foo.png", params={"width": 100})
        assert decode_image(resp.content).size == (100, 125)

    def test_explicit_size(self, test_client, decode_image):
        """Explicit dimensions should be honoured."""
        resp = test_client.get("/cover/foo.png", params={"width": 90, "height": 90})
        assert decode_image(resp.content).size == (90, 90)

    def test_with_author(self, test_client, decode_image):
        """An author should produce a different cover for the same title."""
        plain = test_client.get("/cover/Dune.png")
        authored = test_client.get("/cover/Dune.png", params={"author": "Frank Herbert"})
        assert authored.status_code == 200
        assert authored.content != plain.content
        assert decode_image(authored.content).size == (200, 250)

    def test_headers(self, test_client):
        """Covers should carry the same content-type and cache headers."""
        resp = test_client.get("/cover/Dune.webp", params={"author": "Frank Herbert"})
        assert resp.headers["content-type"] == "image/webp"
        assert resp.headers["cache-control"] == CACHE_CONTROL

    def test_content_type_names_encoded_format(self, test_client):
        """Content-Type should follow the encoded bytes, not the raw extension."""
        jpg = test_client.get("/cover/Dune.jpg")
        gif = test_client.get("/cover/Dune.gif")
        assert jpg.headers["content-type"] == "image/jpeg"
        assert gif.headers["content-type"] == "image/png"
        assert gif.content.startswith(b"\x89PNG\r\n\x1a\n")

    def test_non_integer_height_rejected(self, test_client):
        """A non-integer height should be a client error."""
        resp = test_client.get("/cover/Dune.png", params={"height": "1.5"})
        assert resp.status_code == 422


# ---------------------------------------------------------------------------
# Ping and middleware tests.
# ---------------------------------------------------------------------------


class TestPing:
    """Test GET /ping — liveness probe."""

    def test_ping(self, test_client):
        """Ping should return plaintext with a timestamp."""
        resp = test_client.get("/ping")
        assert resp.status_code == 200
        assert resp.headers["content-type"].startswith("text/plain")
        assert resp.text.startswith("pong ")


class TestResponseTiming:
    """Test the X-Response-Time middleware."""

    def test_header_on_images(self, test_client):
        """Image responses should carry X-Response-Time."""
        resp = test_client.get("/avatar/foo.png")
        assert re.fullmatch(r"\d+ ms", resp.headers["x-response-time"])

    def test_header_on_errors(self, test_client):
        """Client errors should also carry X-Response-Time."""
        resp = test_client.get("/avatar/foo.png", params={"width": "x"})
        assert "x-response-time" in resp.headers


class TestGenerationFailure:
    """Test the 500 mapping for generation failures."""

    def test_encoding_error_returns_500(self, test_client, monkeypatch):
        """An encoder failure should surface as a bare 500."""

        def _fail(*args, **kwargs):
            raise ImageEncodingError("boom")

        monkeypatch.setattr("imageservice.api.main.generate_avatar", _fail)
        resp = test_client.get("/avatar/foo.png")
        assert resp.status_code == 500
        assert resp.json() == {"detail": "Image generation failed"}
        assert "cache-control" not in resp.headers

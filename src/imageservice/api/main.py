"""Image Service — FastAPI Application.

This module is the single entry point for the web application.  It defines
the FastAPI ``app`` instance, all routes, and the ``main()`` CLI function that
launches the uvicorn server.

Architecture
------------
The application is stateless:

- **Generation** is a pure function of the route parameters, performed by
  :mod:`imageservice.core.generators`.  It is CPU-bound, so every request is
  handed to a bounded thread pool created in the application lifespan
  instead of running on the event loop.
- **Caching** is delegated to clients and CDNs: responses carry a long-lived
  ``immutable`` ``Cache-Control`` header because the same URL always yields
  the same bytes.
- **Static assets** for the demo page are served by ``StaticFiles``; the page
  itself is returned as a raw ``HTMLResponse``.
- **Timing**: an HTTP middleware stamps ``X-Response-Time`` on every response.

Endpoints
---------
========  ============================  ====================================
Method    Path                          Purpose
========  ============================  ====================================
GET       ``/``                         Demo page
GET       ``/avatar/{name}.{ext}``      Initials avatar
GET       ``/cover/{title}.{ext}``      Book cover
GET       ``/ping``                     Liveness probe
========  ============================  ====================================

Usage
-----
CLI (installed entry point)::

    imageservice

Direct invocation::

    python -m imageservice.api.main
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import AsyncIterator, Callable
from concurrent.futures import ThreadPoolExecutor
from contextlib import asynccontextmanager
from datetime import datetime
from functools import partial
from pathlib import Path

from fastapi import FastAPI, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse, JSONResponse, PlainTextResponse, Response
from fastapi.staticfiles import StaticFiles

from imageservice import __version__
from imageservice.api.models import GenerationRequest
from imageservice.core.config import config, cover_height_for
from imageservice.core.encoder import EncodedImage, ImageServiceError
from imageservice.core.generators import generate_avatar, generate_cover

logger = logging.getLogger(__name__)

STATIC_DIR: Path = config.static_dir
TEMPLATES_DIR: Path = config.templates_dir

_IMAGE_RESPONSES = {
    200: {
        "content": {"image/png": {}, "image/jpeg": {}, "image/webp": {}},
        "description": "The generated image.",
    }
}

# ---------------------------------------------------------------------------
# Application lifecycle — generation worker pool.
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Create the generation thread pool on startup and drain it on shutdown.

    Args:
        app: The FastAPI application instance.

    Yields:
        Control back to the application for the duration of its lifetime.
    """
    app.state.executor = ThreadPoolExecutor(
        max_workers=config.generation_workers,
        thread_name_prefix="imagegen",
    )
    logger.info("Generation pool started with %d workers.", config.generation_workers)

    yield

    app.state.executor.shutdown(wait=True)
    logger.info("Generation pool shut down.")


app = FastAPI(
    title="Image Service",
    description="Deterministic placeholder avatars and book covers.",
    version=__version__,
    lifespan=lifespan,
)

# Generated images are embedded from other origins, so allow any.
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["GET"],
    allow_headers=["*"],
)

app.mount("/static", StaticFiles(directory=str(STATIC_DIR), check_dir=False), name="static")


@app.middleware("http")
async def response_timing(request: Request, call_next):
    """Add ``X-Response-Time: {ms} ms`` to every response and log the request."""
    start = time.perf_counter()
    response = await call_next(request)
    elapsed_ms = (time.perf_counter() - start) * 1000
    response.headers["X-Response-Time"] = f"{elapsed_ms:.0f} ms"
    logger.info("%s %s %s %.1fms", request.method, request.url.path, response.status_code, elapsed_ms)
    return response


@app.exception_handler(ImageServiceError)
async def image_service_error_handler(request: Request, exc: ImageServiceError) -> JSONResponse:
    """Turn generation failures into a bare 500 with no partial output."""
    logger.error("Generation failed for %s: %s", request.url.path, exc, exc_info=exc)
    return JSONResponse(status_code=500, content={"detail": "Image generation failed"})


# ---------------------------------------------------------------------------
# Helpers.
# ---------------------------------------------------------------------------


async def _run_generation(func: Callable[..., EncodedImage], *args) -> EncodedImage:
    """Run a generator on the worker pool and await its result.

    Falls back to the loop's default executor when the lifespan has not run
    (e.g. a ``TestClient`` used without a ``with`` block).
    """
    executor = getattr(app.state, "executor", None)
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(executor, partial(func, *args))


def _image_response(encoded: EncodedImage) -> Response:
    return Response(
        content=encoded.data,
        media_type=encoded.media_type,
        headers={"Cache-Control": config.cache_control_header},
    )


# ---------------------------------------------------------------------------
# Routes.
# ---------------------------------------------------------------------------


@app.get("/", response_class=HTMLResponse, include_in_schema=False)
async def index() -> HTMLResponse:
    """Serve the demo page.

    Raises:
        HTTPException: 404 if ``index.html`` is not found.
    """
    index_path = TEMPLATES_DIR / "index.html"
    if index_path.exists():
        return HTMLResponse(content=index_path.read_text(encoding="utf-8"))
    raise HTTPException(status_code=404, detail="index.html not found")


@app.get(
    "/avatar/{name}.{ext}",
    name="GenerateAvatar",
    response_class=Response,
    responses=_IMAGE_RESPONSES,
)
async def get_avatar(
    name: str,
    ext: str,
    width: int | None = Query(
        default=None,
        ge=1,
        le=config.max_dimension,
        description=f"Image width in pixels, default {config.base_size}",
    ),
    height: int | None = Query(
        default=None,
        ge=1,
        le=config.max_dimension,
        description=f"Image height in pixels, default {config.base_size}",
    ),
) -> Response:
    """Generate an initials avatar for *name*.

    ``ext`` selects the format (``png``, ``jpg``/``jpeg``, ``webp``);
    anything else is served as PNG.  ``Content-Type`` names the format
    actually encoded, so ``.jpg`` is served as ``image/jpeg`` and ``.gif``
    as ``image/png``.
    """
    req = GenerationRequest(
        text=name,
        format=ext,
        width=width if width is not None else config.base_size,
        height=height if height is not None else config.base_size,
    )
    encoded = await _run_generation(generate_avatar, req.text, req.format, req.width, req.height)
    return _image_response(encoded)


@app.get(
    "/cover/{title}.{ext}",
    name="GenerateCover",
    response_class=Response,
    responses=_IMAGE_RESPONSES,
)
async def get_cover(
    title: str,
    ext: str,
    author: str | None = Query(
        default=None,
        description="Author of the book; omit for an initials cover",
    ),
    width: int | None = Query(
        default=None,
        ge=1,
        le=config.max_dimension,
        description=f"Image width in pixels, default {config.base_size}",
    ),
    height: int | None = Query(
        default=None,
        ge=1,
        le=config.max_dimension,
        description=f"Image height in pixels, default {config.default_cover_height}",
    ),
) -> Response:
    """Generate a book cover for *title*.

    When only ``width`` is supplied the height follows the cover aspect
    ratio of that width.  Formats and ``Content-Type`` follow the same rules
    as :func:`get_avatar`.
    """
    cover_width = width if width is not None else config.base_size
    cover_height = height if height is not None else cover_height_for(cover_width, config.cover_aspect)
    req = GenerationRequest(
        text=title,
        author=author,
        format=ext,
        width=cover_width,
        height=min(cover_height, config.max_dimension),
    )
    encoded = await _run_generation(generate_cover, req.text, req.author, req.format, req.width, req.height)
    return _image_response(encoded)


@app.get("/ping", response_class=PlainTextResponse)
async def ping() -> str:
    """Liveness probe returning the server time."""
    return f"pong {datetime.now().astimezone().isoformat()}"


# ---------------------------------------------------------------------------
# CLI entry point.
# ---------------------------------------------------------------------------


def main() -> None:
    """Launch the uvicorn ASGI server.

    Reads host, port and log level from :data:`~imageservice.core.config.config`
    (``IMAGESERVICE_SERVER_HOST``, ``IMAGESERVICE_SERVER_PORT``,
    ``IMAGESERVICE_LOG_LEVEL``).  Defaults to ``0.0.0.0:8000``.

    This function is registered as the ``imageservice`` console script in
    ``pyproject.toml``.
    """
    import uvicorn

    logging.basicConfig(
        level=config.log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    uvicorn.run(
        "imageservice.api.main:app",
        host=config.server_host,
        port=config.server_port,
        reload=False,
    )


if __name__ == "__main__":
    main()

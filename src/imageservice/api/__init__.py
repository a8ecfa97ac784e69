"""Image Service — FastAPI HTTP layer.

Modules
-------
main
    FastAPI application with all route handlers and the ``main()`` CLI
    entry point.
models
    Pydantic model for validated generation parameters.
"""

"""
HTTP boundary for CV generation.

Thin FastAPI layer over RenderingService: request parsing, structured error
bodies, and PDF/HTML responses. All rendering semantics live in the contexts.
"""

from safira.api.main import create_app

__all__ = ["create_app"]

"""
Rendering Context

Responsibilities:
- Owns the headless browser engine and its lifecycle
- Rasterizes HTML documents into A4 PDFs in isolated browser contexts
- Bounds concurrency and retries transient export failures
- Orchestrates validate -> template -> rasterize for callers

Owns: Rendering engine, PDF generation, service lifecycle
Never: Modifies template content or CV data
"""

from safira.contexts.rendering.rasterizer import DocumentRasterizer, PlaywrightRasterizer
from safira.contexts.rendering.service import RenderingService, ServiceState

__all__ = [
    "DocumentRasterizer",
    "PlaywrightRasterizer",
    "RenderingService",
    "ServiceState",
]

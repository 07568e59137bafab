"""
SAFIRA CV - résumé rendering service for the SafiraJobs backend

Turns structured CV data into print-ready documents using a catalog of
HTML templates and a headless browser.

Architecture:
- Intake Context: CV data model and request validation
- Templating Context: Template catalog, formatting helpers and HTML generation
- Rendering Context: HTML to PDF rasterization and service lifecycle
"""

__version__ = "0.1.0"

"""
Templating Context

Responsibilities:
- Owns the template catalog (layout family + theme per visual template)
- Resolves legacy template ids to canonical ones
- Binds CV documents to Jinja2 layouts and produces self-contained HTML
- Provides the display formatting helpers used by every layout

Owns: Template catalog, HTML template corpus, display formatting
Never: Launches the rendering engine or produces PDF bytes
"""

from safira.contexts.templating.html_generator import HTMLGenerator, render_html
from safira.contexts.templating.registries import TemplateDescriptor, TemplateRegistry

__all__ = [
    # Catalog
    "TemplateRegistry",
    "TemplateDescriptor",
    # HTML generation
    "HTMLGenerator",
    "render_html",
]

"""
HTML Generator

Binds a CVDocument to a catalog template and produces a self-contained HTML
document ready for rasterization.
"""

import time
from typing import Any, Mapping, Union

from jinja2 import TemplateError

from safira.contexts.intake.cv_data_structure import CVDocument
from safira.contexts.intake.validator import missing_identity_fields
from safira.contexts.templating.logger import log_binding_failure, log_html_generated
from safira.contexts.templating.registries import TemplateDescriptor, TemplateRegistry
from safira.exceptions import RenderError

CVInput = Union[CVDocument, Mapping[str, Any]]


class HTMLGenerator:
    """Renders CV data into HTML with one of the catalog templates."""

    def __init__(self, template_registry: TemplateRegistry = None):
        self.template_registry = template_registry or TemplateRegistry()

    def render(self, cv_data: CVInput, template_id: str) -> str:
        """
        Generate the HTML document for a CV.

        Args:
            cv_data: CVDocument or raw wire-format mapping
            template_id: Canonical template id or legacy alias

        Returns:
            Complete HTML document (inline CSS, no external resources)

        Raises:
            UnknownTemplateError: If template_id does not resolve
            RenderError: If identity fields are missing or binding fails
        """
        descriptor = self.template_registry.resolve(template_id)
        cv = cv_data if isinstance(cv_data, CVDocument) else CVDocument.from_dict(cv_data)

        missing = missing_identity_fields(cv.personal_info)
        if missing:
            log_binding_failure(descriptor.id, ValueError(f"missing identity fields: {missing}"))
            raise RenderError()

        return self.render_document(cv, descriptor)

    def render_document(self, cv: CVDocument, descriptor: TemplateDescriptor) -> str:
        """
        Render an already-validated CVDocument with a resolved descriptor.

        Jinja2 failures (undefined attributes, syntax errors in the corpus,
        helper exceptions) are logged in full and surfaced as a generic
        RenderError.
        """
        start_time = time.time()
        try:
            template = self.template_registry.get_template(descriptor.layout_family)
            html = template.render(cv=cv, theme=descriptor.theme, descriptor=descriptor)
        except (TemplateError, TypeError, AttributeError, ValueError) as e:
            log_binding_failure(descriptor.id, e)
            raise RenderError() from e

        log_html_generated(descriptor.id, descriptor.layout_family, len(html), time.time() - start_time)
        return html


def render_html(cv_data: CVInput, template_id: str, template_registry: TemplateRegistry = None) -> str:
    """
    Convenience wrapper around HTMLGenerator.render.

    Args:
        cv_data: CVDocument or raw wire-format mapping
        template_id: Canonical template id or legacy alias
        template_registry: Registry to use (a fresh one when None)

    Returns:
        Complete HTML document
    """
    return HTMLGenerator(template_registry).render(cv_data, template_id)

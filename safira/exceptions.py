"""
Error taxonomy shared by all SAFIRA contexts.

Every failure surfaced to a caller is one of these types. Each carries a
category string and an HTTP status so the API layer can turn it into the
structured error body without inspecting the message.
"""

from typing import Any, Dict, List, Optional


class SafiraError(Exception):
    """
    Base class for errors surfaced by the rendering pipeline.

    Attributes:
        message: Human-readable description, safe to show to end users
        category: Stable machine-readable error identifier
        http_status: Status code the HTTP boundary should respond with
    """

    category = "internal_error"
    http_status = 500

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        """Structured error body, never containing stack traces or engine output."""
        return {"success": False, "error": self.category, "message": self.message}


class ValidationError(SafiraError):
    """
    Caller input is structurally invalid (missing identity fields, unknown template).

    Always recoverable by fixing the request.
    """

    category = "validation_error"
    http_status = 400


class UnknownTemplateError(ValidationError):
    """
    Template id did not resolve to a catalog entry, even after alias resolution.

    Attributes:
        template_id: The id that was requested
        valid_ids: Every id the registry accepts (canonical ids and aliases)
    """

    def __init__(self, template_id: str, valid_ids: Optional[List[str]] = None):
        self.template_id = template_id
        self.valid_ids = list(valid_ids or [])
        message = f"Invalid template '{template_id}'."
        if self.valid_ids:
            message += f" Must be one of: {', '.join(self.valid_ids)}"
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        body = super().to_dict()
        body["validTemplates"] = self.valid_ids
        return body


class RenderError(SafiraError):
    """
    Template binding failed against the supplied CV data.

    Treated as a caller-input problem; the message stays generic so internal
    field paths are not leaked.
    """

    category = "render_error"
    http_status = 422

    def __init__(self, message: str = "CV data could not be rendered with the selected template."):
        super().__init__(message)


class RasterizeError(SafiraError):
    """
    The rendering engine crashed, timed out or failed to export a PDF.

    Transient: resubmitting the same input may succeed.
    """

    category = "rasterize_error"
    http_status = 503

    def __init__(self, message: str = "PDF export failed.", original_error: Optional[Exception] = None):
        self.original_error = original_error
        super().__init__(message)


class EngineUnavailableError(SafiraError):
    """Headless browser failed to launch, has died, or the service is shutting down."""

    category = "engine_unavailable"
    http_status = 503

    def __init__(self, message: str = "PDF rendering engine is unavailable.", original_error: Optional[Exception] = None):
        self.original_error = original_error
        super().__init__(message)

"""
Templating context logger.

Provides logging interface for templating context with automatic [template] prefix.
All templating modules should import from this module, not from loguru directly.
"""

from loguru import logger

CONTEXT_PREFIX = "[template]"


def _log_info(message: str) -> None:
    """Log info message with [template] prefix."""
    logger.info(f"{CONTEXT_PREFIX} {message}")


def _log_error(message: str) -> None:
    """Log error message with [template] prefix."""
    logger.error(f"{CONTEXT_PREFIX} {message}")


def _log_warning(message: str) -> None:
    """Log warning message with [template] prefix."""
    logger.warning(f"{CONTEXT_PREFIX} {message}")


def _log_debug(message: str) -> None:
    """Log debug message with [template] prefix."""
    logger.debug(f"{CONTEXT_PREFIX} {message}")


# High-level templating-specific logging helpers


def log_catalog_loaded(catalog_path, template_count: int, alias_count: int) -> None:
    """Log successful catalog load."""
    _log_info(f"Loaded {template_count} templates and {alias_count} aliases")
    _log_debug(f"  Catalog: {catalog_path}")


def log_html_generated(template_id: str, layout_family: str, html_length: int, elapsed_time: float) -> None:
    """Log completion of an HTML render."""
    _log_debug(
        f"Rendered '{template_id}' ({layout_family}): {html_length} chars ({elapsed_time * 1000:.1f}ms)"
    )


def log_binding_failure(template_id: str, error: Exception) -> None:
    """
    Log a template binding failure with full detail.

    The detail stays in the logs; callers only ever see a generic RenderError.
    """
    _log_error(f"Binding failed for template '{template_id}': {type(error).__name__}")
    logger.opt(raw=True).debug(f"{CONTEXT_PREFIX}   {error}\n")

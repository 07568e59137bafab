"""
Rendering context logger.

Provides logging interface for rendering context with automatic [render] prefix.
All rendering modules should import from this module, not from loguru directly.
"""

from pathlib import Path
from typing import Optional

from loguru import logger

from safira.utils.logger import setup_logger as _setup_logger

CONTEXT_PREFIX = "[render]"


def setup_rendering_logger(log_dir: Optional[Path] = None, engine: str = "chromium") -> Optional[Path]:
    """
    Setup logger for rendering context.

    Configures loguru with provenance tracking and rendering-specific context.

    Args:
        log_dir: Directory for this rendering session (None = console only)
        engine: Rasterization engine name recorded in the provenance header

    Returns:
        Path to log file, or None
    """
    return _setup_logger(
        context_name="render",
        log_dir=log_dir,
        extra_provenance={"Rasterization engine": engine},
    )


# Wrapper functions with automatic [render] prefix


def _log_info(message: str) -> None:
    """Log info message with [render] prefix."""
    logger.info(f"{CONTEXT_PREFIX} {message}")


def _log_success(message: str) -> None:
    """Log success message with [render] prefix."""
    logger.success(f"{CONTEXT_PREFIX} {message}")


def _log_error(message: str) -> None:
    """Log error message with [render] prefix."""
    logger.error(f"{CONTEXT_PREFIX} {message}")


def _log_warning(message: str) -> None:
    """Log warning message with [render] prefix."""
    logger.warning(f"{CONTEXT_PREFIX} {message}")


def _log_debug(message: str) -> None:
    """Log debug message with [render] prefix."""
    logger.debug(f"{CONTEXT_PREFIX} {message}")


# High-level rendering-specific logging helpers


def log_state_change(old_state, new_state) -> None:
    """Log a service lifecycle transition."""
    _log_debug(f"Service state: {old_state.value} -> {new_state.value}")


def log_render_start(full_name: str, template_id: str, attempt: int) -> None:
    """Log start of a PDF render with context."""
    if attempt == 1:
        _log_info(f"Generating CV PDF for {full_name} using '{template_id}'")
    else:
        _log_warning(f"Retrying PDF export for {full_name} (attempt {attempt})")


def log_render_result(
    full_name: str,
    template_id: str,
    elapsed_time: float,
    pdf_size: Optional[int] = None,
    error: Optional[Exception] = None,
) -> None:
    """
    Log PDF render result.

    Args:
        full_name: Applicant name used for the log line
        template_id: Canonical template id
        elapsed_time: Time taken, including retries
        pdf_size: Size of the produced PDF in bytes (None on failure)
        error: Error that ended the render (None on success)
    """
    if error is None:
        _log_success(f"{full_name}: '{template_id}' PDF ready, {pdf_size} bytes ({elapsed_time:.2f}s)")
    else:
        _log_error(f"{full_name}: '{template_id}' PDF failed ({elapsed_time:.2f}s)")
        _log_error(f"  {error.category}: {error.message}")
        if getattr(error, "original_error", None) is not None:
            # Engine output stays in the logs, never in responses
            logger.opt(raw=True).debug(f"{CONTEXT_PREFIX}   engine error: {error.original_error}\n")


def log_engine_launched(engine: str, elapsed_time: float) -> None:
    """Log a successful engine launch."""
    _log_success(f"{engine} launched ({elapsed_time:.2f}s)")


def log_engine_failure(engine: str, error: Exception) -> None:
    """Log an engine launch failure or crash; detail goes to debug."""
    _log_error(f"{engine} unavailable: {type(error).__name__}")
    logger.opt(raw=True).debug(f"{CONTEXT_PREFIX}   {error}\n")


def log_engine_closed(engine: str, in_flight: int = 0) -> None:
    """Log engine shutdown, noting renders abandoned after the grace period."""
    if in_flight:
        _log_warning(f"{engine} closed with {in_flight} render(s) still in flight")
    else:
        _log_info(f"{engine} closed")

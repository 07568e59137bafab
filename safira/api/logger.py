"""
API logger.

Provides logging interface for the HTTP boundary with automatic [api] prefix.
"""

from pathlib import Path
from typing import Optional

from loguru import logger

from safira.utils.logger import setup_logger as _setup_logger

CONTEXT_PREFIX = "[api]"


def setup_api_logger(log_dir: Optional[Path] = None, host: str = "", port: int = 0) -> Optional[Path]:
    """
    Setup logger for the API process.

    Args:
        log_dir: Directory for this server session (None = console only)
        host: Bind address recorded in the provenance header
        port: Bind port recorded in the provenance header

    Returns:
        Path to log file, or None
    """
    return _setup_logger(
        context_name="api",
        log_dir=log_dir,
        extra_provenance={"Listening on": f"{host}:{port}"},
    )


def _log_info(message: str) -> None:
    """Log info message with [api] prefix."""
    logger.info(f"{CONTEXT_PREFIX} {message}")


def _log_warning(message: str) -> None:
    """Log warning message with [api] prefix."""
    logger.warning(f"{CONTEXT_PREFIX} {message}")


def log_request_failure(method: str, path: str, error: Exception) -> None:
    """Log a request that ended in a structured SafiraError response."""
    _log_warning(f"{method} {path} -> {error.http_status} {error.category}: {error.message}")


def log_unexpected_error(method: str, path: str, error: Exception) -> None:
    """Log an unhandled exception with its traceback; the client only sees a generic 500."""
    logger.opt(exception=error).error(f"{CONTEXT_PREFIX} {method} {path} -> 500 {type(error).__name__}")

"""
Intake context logger.

Provides logging interface for intake context with automatic [intake] prefix.
"""

from loguru import logger

CONTEXT_PREFIX = "[intake]"


def _log_warning(message: str) -> None:
    """Log warning message with [intake] prefix."""
    logger.warning(f"{CONTEXT_PREFIX} {message}")


def _log_debug(message: str) -> None:
    """Log debug message with [intake] prefix."""
    logger.debug(f"{CONTEXT_PREFIX} {message}")


def log_rejected_input(reason: str) -> None:
    """Log a request rejected at the validation boundary."""
    _log_warning(f"Rejected CV data: {reason}")


def log_malformed_field(field_path: str, error: Exception) -> None:
    """Log the exact location of a structurally malformed field."""
    _log_warning(f"Malformed CV field at '{field_path}': {error}")

"""
Shared utilities for SAFIRA.

Common functionality used across contexts:
- Logger setup
- PDF inspection
- Text processing
- Timestamps
"""

from safira.utils.timestamp import now

__all__ = ["now"]

"""
Text processing utilities for formatting and display.
"""

import re

# Anything outside this set is replaced in download filenames
UNSAFE_FILENAME_CHARS = re.compile(r"[^A-Za-z0-9_.-]")


def sanitize_filename(name: str, replacement: str = "_") -> str:
    """
    Replace characters that are unsafe in a Content-Disposition filename.

    Example:
        >>> sanitize_filename("Biruh_Tesfaye O'Neil_CV.pdf")
        "Biruh_Tesfaye_O_Neil_CV.pdf"
    """
    return UNSAFE_FILENAME_CHARS.sub(replacement, name)


def cv_filename(first_name: str, last_name: str, extension: str = "pdf") -> str:
    """
    Download filename for a CV, "<First>_<Last>_CV.<ext>", sanitized.

    Non-ASCII names (e.g. Ge'ez script) collapse to underscores.
    """
    return sanitize_filename(f"{first_name.strip()}_{last_name.strip()}_CV.{extension}")


def truncate_display(text: str, max_len: int) -> str:
    """
    Truncate text for display with ellipsis if needed.

    Example:
        >>> truncate_display("this is a very long string", 10)
        "this is..."
    """
    return text if len(text) <= max_len else text[: max_len - 3] + "..."

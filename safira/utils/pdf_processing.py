"""
PDF processing utilities for inspecting rendered CVs.

Helper functions:
    page_count: Quick page count without full extraction.
    extract_page_texts: Text of each page, via pdfplumber.
    extract_text: Whole-document text.
    normalize_for_matching: Text normalization for fuzzy matching.
    same_visible_text: Compare two PDFs by their extracted text.

Every function accepts either a path or the raw PDF bytes returned by the
rendering service.
"""

import io
from pathlib import Path
from typing import BinaryIO, List, Optional, Union

import pdfplumber
from PyPDF2 import PdfReader
from PyPDF2.errors import PdfReadError

PDFSource = Union[str, Path, bytes]


def _open(pdf: PDFSource) -> Union[str, BinaryIO]:
    """Normalize a PDF source into something PdfReader and pdfplumber accept."""
    if isinstance(pdf, (bytes, bytearray)):
        return io.BytesIO(pdf)
    return str(pdf)


def page_count(pdf: PDFSource) -> Optional[int]:
    """Get page count from PDF, or None if unreadable."""
    try:
        reader = PdfReader(_open(pdf))
        return len(reader.pages)
    except (PdfReadError, OSError, ValueError):
        return None


def extract_page_texts(pdf: PDFSource) -> List[str]:
    """
    Extract the text of every page, top to bottom.

    Args:
        pdf: Path to a PDF file or PDF bytes

    Returns:
        One string per page (empty string for pages without text)
    """
    with pdfplumber.open(_open(pdf)) as document:
        return [page.extract_text() or "" for page in document.pages]


def extract_text(pdf: PDFSource) -> str:
    """Extract the text of the whole document, pages joined by newlines."""
    return "\n".join(extract_page_texts(pdf))


def normalize_for_matching(text: str) -> str:
    """Keep only lowercase alphanumeric characters for fuzzy text matching."""
    return "".join(c for c in text.lower() if c.isalnum())


def contains_text(pdf: PDFSource, text: str) -> bool:
    """Check whether text appears anywhere in the document (normalized match)."""
    return normalize_for_matching(text) in normalize_for_matching(extract_text(pdf))


def same_visible_text(first: PDFSource, second: PDFSource) -> bool:
    """
    Compare two PDFs by extracted text rather than bytes.

    PDF bytes embed creation timestamps, so two renders of the same input are
    compared by what a reader sees: same page count and same text per page.
    """
    first_pages = extract_page_texts(first)
    second_pages = extract_page_texts(second)
    if len(first_pages) != len(second_pages):
        return False
    return all(
        normalize_for_matching(a) == normalize_for_matching(b) for a, b in zip(first_pages, second_pages)
    )

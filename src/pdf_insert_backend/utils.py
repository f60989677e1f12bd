"""
Small helpers for filenames and response headers.

This module provides helper functions for:
- Sanitizing download filenames before they go into a header
- Building Content-Disposition values for PDF downloads
- Splitting filenames into stem and extension
"""

from __future__ import annotations

import re
from pathlib import Path

# Characters kept in download filenames: alphanumerics, dots, underscores and hyphens
SANITIZE_PATTERN = re.compile(r"[^a-zA-Z0-9._-]+")


def sanitize_filename(filename: str, fallback: str = "document.pdf") -> str:
    """
    Make a filename safe to place in a Content-Disposition header.

    Args:
        filename: Requested filename
        fallback: Returned when nothing usable is left after cleaning

    Returns:
        The cleaned filename, always ending in .pdf

    Example:
        >>> sanitize_filename("my report!.pdf")
        "my-report.pdf"
        >>> sanitize_filename("@#$")
        "document.pdf"
    """
    stem, _ = split_extension(filename.strip())
    cleaned = SANITIZE_PATTERN.sub("-", stem).strip("-_.")
    if not cleaned:
        return fallback
    return f"{cleaned}.pdf"


def attachment_disposition(filename: str) -> str:
    return f"attachment; filename={sanitize_filename(filename)}"


def split_extension(filename: str) -> tuple[str, str]:
    """
    Split a filename into stem and extension components.

    Example:
        >>> split_extension("document.pdf")
        ("document", ".pdf")
    """
    path = Path(filename)
    return path.stem, path.suffix

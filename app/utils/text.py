"""Text utilities for form fields and stored file names."""
import os
import re
from typing import Optional


def is_blank(value: Optional[str]) -> bool:
    """True for None, empty strings and whitespace-only strings."""
    return value is None or str(value).strip() == ""


def clean_field(value: Optional[str]) -> Optional[str]:
    """Trim a form field, returning None when it is blank.

    Examples:
        >>> clean_field("  Acme ")
        'Acme'
        >>> clean_field("   ") is None
        True
    """
    if is_blank(value):
        return None
    return str(value).strip()


def original_basename(filename: str) -> str:
    """Strip any client-side directory components from an upload name.

    Browsers on Windows may send ``C:\\Users\\me\\mapper.xlsx``; both
    separator styles are removed.
    """
    return re.split(r"[\\/]", filename or "")[-1].strip()


def safe_name_component(text: str) -> str:
    """Make a title usable inside a file name (no path separators)."""
    # Remove control characters, keep unicode letters
    text = re.sub(r'[\x00-\x1F\x7F]', '', text)
    return re.sub(r'[\\/]', '_', text).strip()


def strip_extension(path: str) -> str:
    """Base name of a stored file without directory or extension.

    Examples:
        >>> strip_extension("uploads/Acme_mapper.xlsx")
        'Acme_mapper'
    """
    return os.path.splitext(os.path.basename(path))[0]

"""
Field normalization for ProviderMatch.

Comparison rules for the identity fields of directory records. All text
comparisons are case-insensitive and ignore leading/trailing whitespace;
internal whitespace is kept. Phone numbers additionally lose all internal
whitespace, but punctuation such as "+", "-" and parentheses is kept.
"""

import re
import logging
from typing import Any, Optional
import pandas as pd

logger = logging.getLogger(__name__)

WHITESPACE_PATTERN = re.compile(r'\s+')


def clean_value(value: Any) -> Optional[str]:
    """
    Convert a raw field value into an optional string.

    Rows coming from pandas carry NaN for empty cells; those become None
    just like missing keys.

    Args:
        value: Raw field value

    Returns:
        String value or None if missing
    """
    if value is None:
        return None
    if not isinstance(value, str) and pd.isna(value):
        return None
    return str(value)


def normalize_text(value: Any) -> str:
    """
    Normalize a name, company or email for comparison.

    Args:
        value: Raw field value

    Returns:
        Lowercased, trimmed string ("" when missing)
    """
    value = clean_value(value)
    if value is None:
        return ""
    return value.strip().lower()


def normalize_email(value: Any) -> str:
    """Normalize an email address (trim + lowercase)."""
    return normalize_text(value)


def normalize_phone(value: Any) -> str:
    """
    Normalize a phone number for comparison.

    Only whitespace is removed: "027 321 3749" and "0273213749" compare
    equal, "+64 27 321 3749" and "027-321-3749" do not.

    Args:
        value: Raw phone value

    Returns:
        Phone number without any whitespace ("" when missing)
    """
    value = clean_value(value)
    if value is None:
        return ""
    return WHITESPACE_PATTERN.sub('', value)


def is_blank(value: Any) -> bool:
    """True if the value is missing or whitespace-only."""
    return normalize_text(value) == ""

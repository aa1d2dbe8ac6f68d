"""
Text utilities for matching operator-supplied names.

Used for column header matching and place name comparison.
"""

import re
from typing import Optional

_COLUMN_SEPARATORS = re.compile(r"[_\s-]+")


def normalize_column_name(name: Optional[str]) -> str:
    """
    Normalize a column header or alias for matching.

    Case, underscores, spaces and hyphens are ignored:
    - "Place Name" → "placename"
    - "PLACE-NAME" → "placename"
    - "place_name" → "placename"

    Args:
        name: Raw header text or alias

    Returns:
        Normalized string ("" for empty input)
    """
    if not name:
        return ""
    return _COLUMN_SEPARATORS.sub("", name).lower()


def normalize_place_name(name: Optional[str]) -> Optional[str]:
    """
    Normalize a place name for duplicate comparison.

    - "  Pine Lake RV Park " → "pine lake rv park"

    Returns:
        Case-folded, trimmed name, or None if input is empty
    """
    if not name:
        return None
    name = str(name).strip()
    if not name:
        return None
    return name.casefold()

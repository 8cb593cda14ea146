"""Name normalization utilities for ingredient matching.

Ingredient names are unique case-insensitively, and spreadsheet imports
refer to ingredients by free-text names. Both concerns go through the same
deterministic normalization so that "Garlic Flakes", "garlic  flakes" and
"GARLIC-FLAKES" all compare equal.

Examples:
    >>> normalize_name("  Master Puff ")
    'master puff'

    >>> create_slug("Chicken Mayonnaise")
    'chicken_mayonnaise'

    >>> create_slug("Crème Fraîche")
    'creme_fraiche'
"""

import re
import unicodedata


def normalize_name(name: str) -> str:
    """Normalize a free-text name for case-insensitive comparison.

    Algorithm:
        1. Normalize Unicode to NFD and drop non-ASCII marks
        2. Convert to lowercase
        3. Treat hyphens and underscores as spaces
        4. Collapse runs of whitespace and strip the ends

    Args:
        name: Name to normalize

    Returns:
        Normalized name (may be empty if the input was blank)
    """
    normalized = unicodedata.normalize("NFD", name)
    normalized = normalized.encode("ascii", "ignore").decode("ascii")
    normalized = normalized.lower()
    normalized = re.sub(r"[\-_]+", " ", normalized)
    normalized = re.sub(r"\s+", " ", normalized)
    return normalized.strip()


def create_slug(name: str) -> str:
    """Generate a deterministic slug from an ingredient name.

    The slug is the normalized name with non-alphanumeric characters
    removed and words joined by underscores. It backs the unique
    constraint that makes ingredient names case-insensitive.

    Args:
        name: Ingredient name to convert to slug

    Returns:
        Slug string (lowercase, alphanumeric + underscores only)

    Examples:
        >>> create_slug("Cake Flour (Sifted)")
        'cake_flour_sifted'

        >>> create_slug("100% Beef Mince")
        '100_beef_mince'
    """
    slug = normalize_name(name)
    slug = re.sub(r"\s+", "_", slug)
    slug = re.sub(r"[^a-z0-9_]", "", slug)
    slug = re.sub(r"_+", "_", slug)
    return slug.strip("_")

"""Text normalization shared by context building and term matching."""
import re
import unicodedata
from typing import Optional


_EDGE_PUNCTUATION = re.compile(r"^\W+|\W+$")


def normalize_text(text: Optional[str]) -> str:
    """Strip diacritics and lower-case text.

    Args:
        text: Raw text (may be None or empty)

    Returns:
        Accent-free, lower-cased text
    """
    if not text:
        return ""

    decomposed = unicodedata.normalize("NFD", text)
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return stripped.lower()


def normalize_term(term: Optional[str]) -> str:
    """Normalize a literal query term.

    Same as normalize_text, and also trims leading/trailing non-word
    characters so that "(python," compares equal to "python".

    Args:
        term: Raw term text

    Returns:
        Normalized term, possibly empty
    """
    return _EDGE_PUNCTUATION.sub("", normalize_text(term))

from __future__ import annotations
import unicodedata


def normalize_query(text: str) -> str:
    """
    Normalize text for matching:
      * Unicode NFC so composed/decomposed accents compare equal
      * leading/trailing whitespace trimmed
      * case-insensitive via .casefold()
    Inner whitespace is kept; symbol names never contain it, so a query with
    inner spaces simply matches nothing.
    """
    if not text:
        return ""
    return unicodedata.normalize("NFC", text).strip().casefold()


def sort_key_for(display_name: str) -> str:
    """Comparison key for an entry name; computed once per Entry."""
    return normalize_query(display_name)


def leading_char(text: str) -> str:
    """First character of the normalized text, or "" for empty input."""
    norm = normalize_query(text)
    return norm[0] if norm else ""

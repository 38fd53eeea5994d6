"""
Slug generation for survey titles.

A slug is the lowercase, hyphenated identifier a survey is stored and looked up
under.  Generation is a pure text transform; it does not guarantee uniqueness.
"""

from __future__ import annotations

import re
import unicodedata

_INVALID_CHARS_RE = re.compile(r"[^a-z0-9\s-]")
_WHITESPACE_RUN_RE = re.compile(r"\s+")
_WHITESPACE_RE = re.compile(r"\s")


def remove_diacritics(text: str) -> str:
    """Map accented letters to their unaccented base form (e.g. 'é' -> 'e')."""
    decomposed = unicodedata.normalize("NFD", text)
    stripped = "".join(c for c in decomposed if unicodedata.category(c) != "Mn")
    return unicodedata.normalize("NFC", stripped)


def generate_slug(title: str, max_length: int) -> str:
    """
    Build a URL-safe slug from a survey title.

    Args:
        title: Free-text survey title.
        max_length: Upper bound on the length of the returned slug.
    Returns:
        A string made only of ``[a-z0-9-]``, at most ``max_length`` long.
        Truncation may cut a word in half.
    Raises:
        ValueError: If ``max_length`` is negative.
    """
    if max_length < 0:
        raise ValueError("max_length must not be negative")

    s = remove_diacritics(title).lower()
    s = _INVALID_CHARS_RE.sub("", s)
    s = _WHITESPACE_RUN_RE.sub(" ", s).strip()
    s = s[:max_length].strip()
    return _WHITESPACE_RE.sub("-", s)

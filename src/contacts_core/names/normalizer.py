# src/contacts_core/names/normalizer.py

"""
Name normalization for approximate matching.

normalize() folds a display name to the form used for matching:
compatibility decomposition (full-width -> ASCII), accents dropped, case folded,
everything that is not a letter removed.
"""

from __future__ import annotations

import functools
import unicodedata
from collections.abc import Iterable


def _cmp(a, b) -> int:
    return (a > b) - (a < b)


def _letters_and_digits_only(name: str | None) -> str:
    if not name:
        return ""
    return "".join(c for c in name if c.isalnum())


def _strip_accents(text: str) -> str:
    decomposed = unicodedata.normalize("NFKD", text)
    return "".join(c for c in decomposed if not unicodedata.combining(c))


def _accent_count(text: str) -> int:
    return sum(1 for c in unicodedata.normalize("NFD", text) if unicodedata.combining(c))


def normalize(name: str | None) -> str:
    """
    Converts the supplied name to a string that can be used for approximate matching.
    Non-letters are dropped, so "Hélène", "hEL\\uFF25NE" and "h-e?l e+n=e" all give "helene".
    """
    if not name:
        return ""
    decomposed = unicodedata.normalize("NFKD", name.casefold())
    return "".join(c for c in decomposed if c.isalpha() and not unicodedata.combining(c))


def compare_complexity(name1: str | None, name2: str | None) -> int:
    """
    Compares the "complexity" of two names: accents first, then mixed case,
    then length. Positive when name1 is the more complex one.
    """
    clean1 = _letters_and_digits_only(name1)
    clean2 = _letters_and_digits_only(name2)

    diff = _cmp(_strip_accents(clean1).casefold(), _strip_accents(clean2).casefold())
    if diff != 0:
        return diff

    diff = _cmp(_accent_count(clean1), _accent_count(clean2))
    if diff != 0:
        return diff

    # Code point order puts uppercase first; negate so the name with capitals wins.
    diff = -_cmp(clean1, clean2)
    if diff != 0:
        return diff

    diff = len(clean1) - len(clean2)
    if diff != 0:
        return diff

    return len(name1 or "") - len(name2 or "")


def most_complex(names: Iterable[str | None]) -> str | None:
    """Pick the canonical display form among names that normalize identically."""
    candidates = [n for n in names if n]
    if not candidates:
        return None
    return max(candidates, key=functools.cmp_to_key(compare_complexity))

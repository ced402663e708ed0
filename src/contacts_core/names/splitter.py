# src/contacts_core/names/splitter.py

from __future__ import annotations

"""
Name splitter.

Splits a full display name into prefix, given names, middle name, family name and suffix.
Four configurable dictionaries drive the heuristics (all matched case-insensitively):
- prefixes ("Mr", "Ms", ...),
- family-name prefixes ("von", "st", "d'", ...),
- suffixes ("Jr", "M.D.", ...),
- conjunctions ("&", "and", ...).
"""

import re
from collections.abc import Iterable
from dataclasses import dataclass

MAX_TOKENS = 10

_TOKEN_RE = re.compile(r"[^\s.,]+|\.")


@dataclass(slots=True, frozen=True)
class StructuredName:
    prefix: str | None = None
    given_names: str | None = None
    middle_name: str | None = None
    family_name: str | None = None
    suffix: str | None = None

    def is_empty(self) -> bool:
        return not any((self.prefix, self.given_names, self.middle_name, self.family_name, self.suffix))


class _NameTokenizer:
    """
    Up to MAX_TOKENS name tokens; spaces and commas separate tokens,
    a period marks the token it follows as "dotted" and is itself dropped.
    """

    def __init__(self, full_name: str) -> None:
        self.tokens: list[str] = []
        self._dotted: set[int] = set()

        for m in _TOKEN_RE.finditer(full_name):
            if len(self.tokens) >= MAX_TOKENS:
                break
            token = m.group(0)
            if token == ".":
                if self.tokens:
                    self._dotted.add(len(self.tokens) - 1)
                continue
            self.tokens.append(token)

        self.start = 0
        self.end = len(self.tokens)

    def has_dot(self, index: int) -> bool:
        return index in self._dotted

    def remaining(self) -> int:
        return self.end - self.start


def _dictionary(entries: Iterable[str] | str | None) -> frozenset[str]:
    if entries is None:
        return frozenset()
    if isinstance(entries, str):
        entries = entries.split(",")
    return frozenset(e.strip().upper() for e in entries if e and e.strip())


class NameSplitter:
    def __init__(
        self,
        *,
        prefixes: Iterable[str] | str | None = None,
        family_name_prefixes: Iterable[str] | str | None = None,
        suffixes: Iterable[str] | str | None = None,
        conjunctions: Iterable[str] | str | None = None,
    ) -> None:
        self._prefixes = _dictionary(prefixes)
        self._family_name_prefixes = _dictionary(family_name_prefixes)
        self._suffixes = _dictionary(suffixes)
        self._conjunctions = _dictionary(conjunctions)
        self._max_suffix_length = max((len(s) for s in self._suffixes), default=0)

    @classmethod
    def from_settings(cls, settings) -> NameSplitter:
        return cls(
            prefixes=settings.name_prefixes,
            family_name_prefixes=settings.name_family_name_prefixes,
            suffixes=settings.name_suffixes,
            conjunctions=settings.name_conjunctions,
        )

    # ---- public API ----

    def split(self, full_name: str | None) -> StructuredName:
        """
        Parse a full name. Missing components stay None; a single remaining
        token is taken as the family name.
        """
        if not full_name:
            return StructuredName()

        tokens = _NameTokenizer(full_name)
        if tokens.remaining() == 0:
            return StructuredName()

        prefix = self._parse_prefix(tokens)

        suffix = None
        if tokens.end > 2:
            suffix = self._parse_suffix(tokens)

        family_name = self._parse_family_name(tokens)
        middle_name = self._parse_middle_name(tokens)
        given_names = self._parse_given_names(tokens)

        return StructuredName(
            prefix=prefix,
            given_names=given_names,
            middle_name=middle_name,
            family_name=family_name,
            suffix=suffix,
        )

    def join(self, name: StructuredName) -> str | None:
        """Display name from the given and family components."""
        if name.given_names and name.family_name:
            return f"{name.given_names} {name.family_name}"
        if name.family_name:
            return name.family_name
        if name.given_names:
            return name.given_names
        return None

    # ---- parsing steps ----

    def _parse_prefix(self, tokens: _NameTokenizer) -> str | None:
        if tokens.remaining() == 0:
            return None
        first = tokens.tokens[tokens.start]
        if first.upper() in self._prefixes:
            tokens.start += 1
            return first
        return None

    def _parse_suffix(self, tokens: _NameTokenizer) -> str | None:
        if tokens.remaining() == 0:
            return None

        pos = tokens.end - 1
        last = tokens.tokens[pos]

        # Longer than every known suffix: cannot match even with dots.
        if len(last) > self._max_suffix_length:
            return None

        normalized = last.upper()
        if normalized in self._suffixes:
            tokens.end = pos
            return last

        # Multi-token suffixes such as "M.D." or "D D S" are matched in their dotted form.
        if tokens.has_dot(pos):
            last += "."
        normalized += "."

        while len(normalized) <= self._max_suffix_length:
            if normalized in self._suffixes:
                tokens.end = pos
                return last

            if pos == tokens.start:
                break

            pos -= 1
            token = tokens.tokens[pos]
            if tokens.has_dot(pos):
                last = f"{token}.{last}"
            else:
                last = f"{token} {last}"
            normalized = f"{token.upper()}.{normalized}"

        return None

    def _parse_family_name(self, tokens: _NameTokenizer) -> str | None:
        if tokens.remaining() == 0:
            return None

        family_name = tokens.tokens[tokens.end - 1]
        tokens.end -= 1

        if tokens.remaining() > 0:
            prefix = tokens.tokens[tokens.end - 1]
            normalized = prefix.upper()
            if normalized in self._family_name_prefixes or f"{normalized}." in self._family_name_prefixes:
                if tokens.has_dot(tokens.end - 1):
                    prefix += "."
                family_name = f"{prefix} {family_name}"
                tokens.end -= 1

        return family_name

    def _parse_middle_name(self, tokens: _NameTokenizer) -> str | None:
        if tokens.remaining() <= 1:
            return None

        if tokens.remaining() == 2 or tokens.tokens[tokens.end - 2].upper() not in self._conjunctions:
            middle = tokens.tokens[tokens.end - 1]
            tokens.end -= 1
            return middle

        return None

    def _parse_given_names(self, tokens: _NameTokenizer) -> str | None:
        if tokens.remaining() == 0:
            return None

        if tokens.remaining() == 1:
            return tokens.tokens[tokens.start]

        parts = []
        for i in range(tokens.start, tokens.end):
            token = tokens.tokens[i]
            parts.append(f"{token}." if tokens.has_dot(i) else token)
        return " ".join(parts)

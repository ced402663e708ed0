# src/contacts_core/names/matcher.py

from __future__ import annotations

from .distance import NameDistance
from .normalizer import compare_complexity, most_complex, normalize
from .splitter import NameSplitter, StructuredName


class NameMatcher:
    """Bundles the pure name utilities behind one configured object."""

    def __init__(self, splitter: NameSplitter, distance: NameDistance) -> None:
        self.splitter = splitter
        self.distance = distance

    @classmethod
    def from_settings(cls, settings) -> NameMatcher:
        return cls(
            NameSplitter.from_settings(settings),
            NameDistance(settings.name_distance_max_length),
        )

    def normalize(self, name: str | None) -> str:
        return normalize(name)

    def compare_complexity(self, name1: str | None, name2: str | None) -> int:
        return compare_complexity(name1, name2)

    def most_complex(self, names) -> str | None:
        return most_complex(names)

    def get_distance(self, name1: str | None, name2: str | None) -> float:
        """Similarity of two raw names (both normalized first)."""
        return self.distance.get_distance(normalize(name1), normalize(name2))

    def split(self, full_name: str | None) -> StructuredName:
        return self.splitter.split(full_name)

    def join(self, name: StructuredName) -> str | None:
        return self.splitter.join(name)

# src/contacts_core/names/distance.py

from __future__ import annotations

# A shorter name that is an exact prefix of the longer one is a full match at this length.
MIN_EXACT_PREFIX_LENGTH = 3

# More mismatched characters than this and the names are considered unrelated.
MAX_MISMATCHES = 4

MAX_DIFFERENCES = 5.0

DEFAULT_MAX_LENGTH = 30


class NameDistance:
    """
    A string distance calculator, particularly suited for name matching.

    Counts mismatched characters and transpositions (Jaro-Winkler style);
    there must be no more than 4 mismatched characters and fewer than 5 total
    differences between the strings to yield a non-zero score.

    Inputs are expected to be normalized (see normalizer.normalize).
    """

    def __init__(self, max_length: int = DEFAULT_MAX_LENGTH) -> None:
        if max_length <= 0:
            raise ValueError("max_length must be positive")
        self._max_length = int(max_length)

    @property
    def max_length(self) -> int:
        return self._max_length

    def get_distance(self, name1: str | None, name2: str | None) -> float:
        """Similarity in [0, 1]; 1.0 is an exact (or long-prefix) match. Symmetric."""
        name1 = name1 or ""
        name2 = name2 or ""

        if not name1 and not name2:
            return 1.0
        if not name1 or not name2:
            return 0.0

        # Shorter first; ties ordered lexicographically so the result is symmetric.
        if (len(name1), name1) <= (len(name2), name2):
            s1, s2 = name1, name2
        else:
            s1, s2 = name2, name1

        if len(s1) >= MIN_EXACT_PREFIX_LENGTH and s2.startswith(s1):
            return 1.0

        len1 = min(len(s1), self._max_length)
        len2 = min(len(s2), self._max_length)

        flags1 = [False] * len1
        flags2 = [False] * len2

        window = max(0, len2 // 2 - 1)

        matches = 0
        for i in range(len1):
            c1 = s1[i]
            lo = max(0, i - window)
            hi = min(len2, i + window + 1)
            for j in range(lo, hi):
                if not flags2[j] and c1 == s2[j]:
                    flags1[i] = flags2[j] = True
                    matches += 1
                    break

        mismatches = (len1 - matches) + (len2 - matches)
        if mismatches > MAX_MISMATCHES:
            return 0.0

        transpositions = 0
        j = 0
        for i in range(len1):
            if flags1[i]:
                while not flags2[j]:
                    j += 1
                if s1[i] != s2[j]:
                    transpositions += 1
                j += 1

        differences = (mismatches + transpositions) / 2.0
        return max(0.0, 1.0 - differences / MAX_DIFFERENCES)

# src/contacts_core/aggregation/scoring.py

from __future__ import annotations

"""
Match scoring for contact aggregation.

MatchScorer accumulates, per candidate raw contact, a primary score (name matches)
and a secondary score (phone / email / identity / nickname matches), then picks
the candidates that qualify for automatic aggregation.
"""

import logging
from dataclasses import dataclass
from enum import IntEnum

from ..names.distance import NameDistance

logger = logging.getLogger(__name__)

# Suggest to aggregate contacts if their match score is equal or greater than this.
SCORE_THRESHOLD_SUGGEST = 50

SCORE_THRESHOLD_NO_NAME = 50

# Automatically aggregate contacts at or above this score.
SCORE_THRESHOLD_PRIMARY = 70

# Automatically aggregate at or above this score when there is also a secondary match.
SCORE_THRESHOLD_SECONDARY = 50

PHONE_MATCH_SCORE = 71
EMAIL_MATCH_SCORE = 71
IDENTITY_MATCH_SCORE = 71
NICKNAME_MATCH_SCORE = 71

MAX_MATCHED_NAME_LENGTH = 30

# Scores are multiplied by this to leave room for the match count as a tie-breaker.
SCORE_SCALE = 1000

MAX_SCORE = 100

APPROXIMATE_MATCH_THRESHOLD = 0.82
APPROXIMATE_MATCH_THRESHOLD_FOR_EMAIL = 0.95


class MatchingAlgorithm(IntEnum):
    EXACT = 0
    CONSERVATIVE = 1
    APPROXIMATE = 2


class NameLookupType(IntEnum):
    NAME_EXACT = 0
    NAME_VARIANT = 1
    NAME_COLLATION_KEY = 2
    NICKNAME = 3
    EMAIL_BASED_NICKNAME = 4


_T = NameLookupType

# (candidate name type, name type) -> (min score, max score)
_SCORE_RANGES: dict[tuple[NameLookupType, NameLookupType], tuple[int, int]] = {
    (_T.NAME_EXACT, _T.NAME_EXACT): (99, 99),
    (_T.NAME_VARIANT, _T.NAME_VARIANT): (90, 90),
    (_T.NAME_COLLATION_KEY, _T.NAME_COLLATION_KEY): (50, 80),
    (_T.EMAIL_BASED_NICKNAME, _T.NAME_COLLATION_KEY): (30, 60),
    (_T.NICKNAME, _T.NAME_COLLATION_KEY): (50, 60),
    (_T.EMAIL_BASED_NICKNAME, _T.EMAIL_BASED_NICKNAME): (50, 60),
    (_T.NAME_COLLATION_KEY, _T.EMAIL_BASED_NICKNAME): (50, 60),
    (_T.NICKNAME, _T.EMAIL_BASED_NICKNAME): (50, 60),
    (_T.NICKNAME, _T.NICKNAME): (50, 60),
    (_T.NAME_COLLATION_KEY, _T.NICKNAME): (50, 60),
    (_T.EMAIL_BASED_NICKNAME, _T.NICKNAME): (50, 60),
}


def score_range(candidate_name_type: NameLookupType, name_type: NameLookupType) -> tuple[int, int]:
    return _SCORE_RANGES.get((candidate_name_type, name_type), (0, 0))


@dataclass(slots=True)
class MatchScore:
    raw_contact_id: int
    contact_id: int
    primary_score: int = 0
    secondary_score: int = 0
    keep_in: bool = False
    keep_out: bool = False
    match_count: int = 0

    def update_primary_score(self, score: int) -> None:
        self.primary_score = max(self.primary_score, score)
        self.match_count += 1

    def update_secondary_score(self, score: int) -> None:
        self.secondary_score = max(self.secondary_score, score)
        self.match_count += 1

    @property
    def score(self) -> int:
        """Combined score; of two equal scores the one with more matching elements wins."""
        if self.keep_out:
            return 0
        if self.keep_in:
            return MAX_SCORE * SCORE_SCALE
        return max(self.primary_score, self.secondary_score) * SCORE_SCALE + self.match_count

    def __str__(self) -> str:
        return (
            f"{self.raw_contact_id}/{self.contact_id}: "
            f"{self.primary_score}/{self.secondary_score}({self.match_count})"
        )


class MatchScorer:
    """
    Per-pass scoring state. Not thread-safe; one instance per aggregation pass.
    """

    def __init__(self) -> None:
        self._scores: dict[int, MatchScore] = {}
        self._distance_conservative = NameDistance()
        self._distance_approximate = NameDistance(MAX_MATCHED_NAME_LENGTH)

    def _get(self, raw_contact_id: int, contact_id: int) -> MatchScore:
        score = self._scores.get(raw_contact_id)
        if score is None:
            score = MatchScore(raw_contact_id=raw_contact_id, contact_id=contact_id)
            self._scores[raw_contact_id] = score
        return score

    def get(self, raw_contact_id: int) -> MatchScore | None:
        return self._scores.get(raw_contact_id)

    def __len__(self) -> int:
        return len(self._scores)

    # ---- primary (name) matches ----

    def match_name(
        self,
        raw_contact_id: int,
        contact_id: int,
        candidate_name_type: NameLookupType,
        candidate_name: str,
        name_type: NameLookupType,
        name: str,
        algorithm: MatchingAlgorithm = MatchingAlgorithm.APPROXIMATE,
    ) -> None:
        """
        Compare two normalized names and update the candidate's primary score.
        An exact match scores the maximum of the type pair's range; an approximate one
        scales within the range by distance, provided it clears the match threshold.
        """
        min_score, max_score = score_range(candidate_name_type, name_type)
        if max_score == 0:
            return

        if candidate_name == name:
            self._get(raw_contact_id, contact_id).update_primary_score(max_score)
            return

        if algorithm == MatchingAlgorithm.EXACT:
            return

        if min_score == max_score:
            return

        name_distance = (
            self._distance_conservative
            if algorithm == MatchingAlgorithm.CONSERVATIVE
            else self._distance_approximate
        )
        distance = name_distance.get_distance(candidate_name, name)

        email_based = NameLookupType.EMAIL_BASED_NICKNAME in (candidate_name_type, name_type)
        threshold = APPROXIMATE_MATCH_THRESHOLD_FOR_EMAIL if email_based else APPROXIMATE_MATCH_THRESHOLD

        if distance > threshold:
            score = int(min_score + (max_score - min_score) * (1.0 - distance))
        else:
            score = 0

        self._get(raw_contact_id, contact_id).update_primary_score(score)

    def match_no_name(self, raw_contact_id: int, contact_id: int) -> None:
        self._get(raw_contact_id, contact_id).update_primary_score(SCORE_THRESHOLD_NO_NAME)

    # ---- secondary matches ----

    def match_identity(self, raw_contact_id: int, contact_id: int) -> None:
        self._get(raw_contact_id, contact_id).update_secondary_score(IDENTITY_MATCH_SCORE)

    def update_score_with_phone_number_match(self, raw_contact_id: int, contact_id: int) -> None:
        self._get(raw_contact_id, contact_id).update_secondary_score(PHONE_MATCH_SCORE)

    def update_score_with_email_match(self, raw_contact_id: int, contact_id: int) -> None:
        self._get(raw_contact_id, contact_id).update_secondary_score(EMAIL_MATCH_SCORE)

    def update_score_with_nickname_match(self, raw_contact_id: int, contact_id: int) -> None:
        self._get(raw_contact_id, contact_id).update_secondary_score(NICKNAME_MATCH_SCORE)

    # ---- overrides ----

    def keep_in(self, raw_contact_id: int, contact_id: int) -> None:
        self._get(raw_contact_id, contact_id).keep_in = True

    def keep_out(self, raw_contact_id: int, contact_id: int) -> None:
        self._get(raw_contact_id, contact_id).keep_out = True

    def clear(self) -> None:
        self._scores.clear()

    # ---- picking ----

    def prepare_secondary_match_candidates(self) -> list[int]:
        """
        Raw contacts whose secondary score alone is strong enough to aggregate on.
        Resets the primary score of every non-primary match so that only name matching
        done after this call counts.
        """
        raw_contact_ids: list[int] = []
        for score in self._scores.values():
            if score.keep_out or score.primary_score > SCORE_THRESHOLD_PRIMARY:
                continue
            if score.secondary_score >= SCORE_THRESHOLD_PRIMARY:
                raw_contact_ids.append(score.raw_contact_id)
            score.primary_score = 0
        return raw_contact_ids

    def pick_best_matches(self, threshold: int | None = None) -> list[MatchScore]:
        """
        Without a threshold: every candidate that qualifies for automatic aggregation
        (keep-in, a primary name match, or a no-name match backed by a secondary match).

        With a threshold: candidates whose combined score reaches it, best first.
        """
        if threshold is None:
            matches = []
            for score in self._scores.values():
                if score.keep_out:
                    continue
                if score.keep_in:
                    matches.append(score)
                    continue
                if score.primary_score >= SCORE_THRESHOLD_PRIMARY or (
                    score.primary_score == SCORE_THRESHOLD_NO_NAME
                    and score.secondary_score > SCORE_THRESHOLD_SECONDARY
                ):
                    matches.append(score)
            return matches

        scaled = int(threshold) * SCORE_SCALE
        ordered = sorted(self._scores.values(), key=lambda s: s.score, reverse=True)
        return [s for s in ordered if s.score >= scaled]

    def __str__(self) -> str:
        return "[" + ", ".join(str(s) for s in self._scores.values()) + "]"

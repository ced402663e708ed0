# tests/test_match_scorer.py

from __future__ import annotations

from contacts_core.aggregation.scoring import (
    SCORE_SCALE,
    SCORE_THRESHOLD_PRIMARY,
    MatchingAlgorithm,
    MatchScorer,
    NameLookupType,
    score_range,
)

KEY = NameLookupType.NAME_COLLATION_KEY


def test_exact_collation_key_match_scores_max() -> None:
    scorer = MatchScorer()
    scorer.match_name(1, 10, KEY, "johnsmith", KEY, "johnsmith")

    score = scorer.get(1)
    assert score is not None
    assert score.primary_score == 80
    assert [s.raw_contact_id for s in scorer.pick_best_matches()] == [1]


def test_approximate_match_stays_below_primary_threshold() -> None:
    scorer = MatchScorer()
    scorer.match_name(1, 10, KEY, "abcdef", KEY, "abcxdef")

    score = scorer.get(1)
    assert score is not None
    assert 50 <= score.primary_score < SCORE_THRESHOLD_PRIMARY
    assert scorer.pick_best_matches() == []


def test_distant_names_score_zero() -> None:
    scorer = MatchScorer()
    scorer.match_name(1, 10, KEY, "sallycarrera", KEY, "salliecarerra")
    assert scorer.get(1).primary_score == 0


def test_email_based_names_need_closer_match() -> None:
    scorer = MatchScorer()
    scorer.match_name(1, 10, NameLookupType.EMAIL_BASED_NICKNAME, "abcdef", KEY, "abcxdef")
    assert scorer.get(1).primary_score == 0


def test_exact_algorithm_ignores_near_misses() -> None:
    scorer = MatchScorer()
    scorer.match_name(1, 10, KEY, "abcdef", KEY, "abcxdef", MatchingAlgorithm.EXACT)
    assert scorer.get(1) is None


def test_unscored_type_pair_is_ignored() -> None:
    assert score_range(NameLookupType.NAME_EXACT, NameLookupType.NAME_VARIANT) == (0, 0)
    scorer = MatchScorer()
    scorer.match_name(1, 10, NameLookupType.NAME_EXACT, "a", NameLookupType.NAME_VARIANT, "a")
    assert len(scorer) == 0


def test_keep_in_and_keep_out() -> None:
    scorer = MatchScorer()
    scorer.match_name(1, 10, KEY, "johnsmith", KEY, "johnsmith")
    scorer.keep_out(1, 10)
    scorer.keep_in(2, 20)

    picked = scorer.pick_best_matches()
    assert [s.raw_contact_id for s in picked] == [2]
    assert scorer.get(1).score == 0


def test_no_name_with_secondary_match_qualifies() -> None:
    scorer = MatchScorer()
    scorer.match_no_name(1, 10)
    assert scorer.pick_best_matches() == []

    scorer.update_score_with_phone_number_match(1, 10)
    assert [s.raw_contact_id for s in scorer.pick_best_matches()] == [1]


def test_pick_best_matches_with_threshold_orders_by_score() -> None:
    scorer = MatchScorer()
    scorer.match_name(1, 10, KEY, "abcdef", KEY, "abcxdef")
    scorer.match_name(2, 20, NameLookupType.NAME_VARIANT, "x", NameLookupType.NAME_VARIANT, "x")
    scorer.update_score_with_email_match(3, 30)

    picked = scorer.pick_best_matches(50)
    assert [s.raw_contact_id for s in picked] == [2, 3, 1]
    assert picked[0].score == 90 * SCORE_SCALE + 1

    assert [s.raw_contact_id for s in scorer.pick_best_matches(SCORE_THRESHOLD_PRIMARY)] == [2, 3]


def test_prepare_secondary_match_candidates_resets_primary() -> None:
    scorer = MatchScorer()
    scorer.match_name(1, 10, KEY, "abcdef", KEY, "abcxdef")
    scorer.update_score_with_email_match(1, 10)
    scorer.match_name(2, 20, KEY, "johnsmith", KEY, "johnsmith")
    scorer.update_score_with_nickname_match(2, 20)

    assert scorer.prepare_secondary_match_candidates() == [1]
    assert scorer.get(1).primary_score == 0
    # Strong primary matches are left alone.
    assert scorer.get(2).primary_score == 80


def test_clear_resets_pass() -> None:
    scorer = MatchScorer()
    scorer.match_identity(1, 10)
    scorer.clear()
    assert len(scorer) == 0
    assert scorer.pick_best_matches() == []

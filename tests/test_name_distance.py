# tests/test_name_distance.py

from __future__ import annotations

import pytest

from contacts_core.names.distance import NameDistance
from contacts_core.names.matcher import NameMatcher
from contacts_core.names.splitter import NameSplitter


@pytest.fixture()
def distance() -> NameDistance:
    return NameDistance(30)


def test_exact_match(distance: NameDistance) -> None:
    assert distance.get_distance("dwayne", "dwayne") == 1.0


def test_no_match(distance: NameDistance) -> None:
    assert distance.get_distance("abcd", "efgh") == 0.0


def test_mismatches(distance: NameDistance) -> None:
    assert distance.get_distance("abcdef", "abcdex") == pytest.approx(0.8)
    assert distance.get_distance("abcdef", "abcxex") == pytest.approx(0.6)
    assert distance.get_distance("abcdef", "abxxex") == 0.0


def test_transpositions(distance: NameDistance) -> None:
    assert distance.get_distance("abcdef", "cbadef") == pytest.approx(0.8)
    assert distance.get_distance("abcdef", "abfdec") == pytest.approx(0.6)
    assert distance.get_distance("abcdef", "cbafed") == pytest.approx(0.6)
    assert distance.get_distance("abcdef", "fedcba") == 0.0


def test_transpositions_score_above_substitutions(distance: NameDistance) -> None:
    # Both differ from "abcdef" in two positions.
    swapped = distance.get_distance("abcdef", "cbadef")
    substituted = distance.get_distance("abcdef", "abcxex")
    assert 0.0 < substituted < swapped < 1.0


def test_mismatches_and_transpositions(distance: NameDistance) -> None:
    assert distance.get_distance("sallycarrera", "salliecarerra") == pytest.approx(0.3)


def test_prefix_is_full_match(distance: NameDistance) -> None:
    assert distance.get_distance("joh", "johnathan") == 1.0
    # Too short to count as a prefix match.
    assert distance.get_distance("jo", "johnathan") == 0.0


def test_symmetric(distance: NameDistance) -> None:
    pairs = [("abcdef", "cbafed"), ("sallycarrera", "salliecarerra"), ("abcdef", "abcxex")]
    for a, b in pairs:
        assert distance.get_distance(a, b) == distance.get_distance(b, a)


def test_empty_inputs(distance: NameDistance) -> None:
    assert distance.get_distance("", "") == 1.0
    assert distance.get_distance(None, None) == 1.0
    assert distance.get_distance("abc", "") == 0.0
    assert distance.get_distance(None, "abc") == 0.0


def test_truncation_to_max_length() -> None:
    d = NameDistance(4)
    # Differences past the fourth character are ignored.
    assert d.get_distance("abcdxx", "abcdyy") == 1.0


def test_invalid_max_length() -> None:
    with pytest.raises(ValueError):
        NameDistance(0)


def test_matcher_normalizes_before_measuring() -> None:
    m = NameMatcher(NameSplitter(), NameDistance(30))
    assert m.get_distance("Hélène", "HELENE") == 1.0
    assert m.get_distance("Sally Carrera", "Sallie Carerra") == pytest.approx(0.3)

from __future__ import annotations

import pytest

from metrics.confusion import precision_recall_f1, score_counts, score_match
from schemas.defects import ExpectedDefect
from schemas.scores import MatchResult


def test_precision_recall_f1_basic() -> None:
    """2 hits, 1 spurious, 1 missed -> 2/3 across the board."""
    p, r, f1 = precision_recall_f1(2, 1, 1)
    assert p == pytest.approx(2 / 3)
    assert r == pytest.approx(2 / 3)
    assert f1 == pytest.approx(2 / 3)


def test_all_zero_is_perfect() -> None:
    """Nothing expected and nothing reported is a correct result, not an undefined one."""
    assert precision_recall_f1(0, 0, 0) == (1.0, 1.0, 1.0)


def test_degenerate_denominators_are_zero() -> None:
    """Only false positives: recall has no denominator and falls to 0, as does F1."""
    assert precision_recall_f1(0, 3, 0) == (0.0, 0.0, 0.0)
    assert precision_recall_f1(0, 0, 2) == (0.0, 0.0, 0.0)


def test_negative_counts_rejected() -> None:
    """Negative counts are a caller error."""
    with pytest.raises(ValueError):
        precision_recall_f1(-1, 0, 0)


def test_score_match_uses_result_counts() -> None:
    """A result with only missed defects scores zero."""
    expected = [ExpectedDefect(rule_id="navigable/link-name", selector_pattern="a", impact="serious")]
    scores = score_match(MatchResult.nothing_found(expected))
    assert scores == score_counts(0, 0, 1)
    assert scores.f1 == 0.0


def test_scoring_is_repeatable() -> None:
    """Scoring the same counts twice gives identical results."""
    assert score_counts(3, 1, 2) == score_counts(3, 1, 2)
    assert precision_recall_f1(3, 1, 2) == precision_recall_f1(3, 1, 2)

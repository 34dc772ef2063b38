from __future__ import annotations

import pytest

from metrics.fix_delta import (
    aggregate_fix_summaries,
    compute_fix_delta,
    identity_key,
    summarize_fix_attempts,
)
from schemas.defects import StructuredDefect
from schemas.scores import FixAttempt, FixDelta


def _d(rule_id: str, selector: str, impact: str = "serious") -> StructuredDefect:
    return StructuredDefect(rule_id=rule_id, selector=selector, impact=impact)


BEFORE = [
    _d("text-alternatives/img-alt", "img.hero"),
    _d("labels-and-names/button-name", "button.close"),
    _d("navigable/link-name", "a.more"),
]


def test_identity_key_ignores_impact() -> None:
    """Identity is rule id plus selector only."""
    assert identity_key(_d("navigable/link-name", "a.more", "minor")) == "navigable/link-name|a.more"
    assert identity_key(_d("navigable/link-name", "a.more", "critical")) == "navigable/link-name|a.more"


def test_fixed_and_regressed_counts() -> None:
    """Two defects removed, one introduced, against a baseline of 3."""
    after = [_d("navigable/link-name", "a.more"), _d("aria/aria-roles", "div[role=foo]")]

    delta = compute_fix_delta(BEFORE, after, original_count=3)

    assert delta.fixed_count == 2
    assert delta.regression_count == 1
    assert delta.fix_rate == pytest.approx(2 / 3)
    assert delta.regression_rate == pytest.approx(1 / 3)
    assert delta.net_improvement == pytest.approx(1 / 3)


def test_new_defect_on_same_element_is_a_regression() -> None:
    """A different rule on a fixed element counts as both fixed and regressed."""
    after = [_d("aria/aria-roles", "img.hero")] + BEFORE[1:]
    delta = compute_fix_delta(BEFORE, after, original_count=3)
    assert (delta.fixed_count, delta.regression_count) == (1, 1)


def test_rates_undefined_without_baseline() -> None:
    """A zero baseline is excluded, never clamped."""
    delta = FixDelta(original_count=0, fixed_count=0, regression_count=0)
    with pytest.raises(ValueError):
        _ = delta.fix_rate
    assert summarize_fix_attempts("c1", "hybrid", [FixAttempt(delta=delta)], original_count=0) is None


def test_errored_attempts_excluded_from_rates() -> None:
    """Errors are recorded per attempt but do not count as zero fixes."""
    attempts = [
        FixAttempt(run_index=0, delta=FixDelta(original_count=4, fixed_count=4, regression_count=0)),
        FixAttempt(run_index=1, error="Timeout after 30000ms"),
        FixAttempt(run_index=2, delta=FixDelta(original_count=4, fixed_count=2, regression_count=1)),
    ]

    summary = summarize_fix_attempts("c1", "hybrid", attempts, original_count=4)

    assert summary is not None
    assert summary.attempt_count == 3
    assert summary.successful_count == 2
    assert summary.errors == ("Timeout after 30000ms",)
    assert summary.fix_rates == (1.0, 0.5)
    assert summary.mean_fix_rate == pytest.approx(0.75)
    assert summary.mean_regression_rate == pytest.approx(0.125)
    assert summary.mean_net_improvement == pytest.approx(0.625)
    assert summary.mean_fixed_count == pytest.approx(3.0)


def test_shared_baseline_is_used_for_every_attempt() -> None:
    """Rates divide by the case baseline, not by each attempt's own count."""
    attempts = [FixAttempt(delta=FixDelta(original_count=2, fixed_count=2, regression_count=0))]
    summary = summarize_fix_attempts("c1", "generator", attempts, original_count=4)
    assert summary.fix_rates == (0.5,)


def test_aggregate_fix_summaries_per_source() -> None:
    """Dataset fix rates are a mean of case means for the requested source only."""
    ok = FixDelta(original_count=2, fixed_count=2, regression_count=0)
    half = FixDelta(original_count=2, fixed_count=1, regression_count=0)
    summaries = [
        summarize_fix_attempts("a", "hybrid", [FixAttempt(delta=ok)], original_count=2),
        summarize_fix_attempts("b", "hybrid", [FixAttempt(delta=half)], original_count=2),
        summarize_fix_attempts("c", "hybrid", [FixAttempt(error="Rate limited")], original_count=2),
        summarize_fix_attempts("a", "generator", [FixAttempt(delta=half)], original_count=2),
    ]

    hybrid = aggregate_fix_summaries("hybrid", summaries)
    generator = aggregate_fix_summaries("generator", summaries)

    assert hybrid.case_count == 2
    assert hybrid.mean_fix_rate == pytest.approx(0.75)
    assert hybrid.stddev_fix_rate == pytest.approx(0.25)
    assert generator.case_count == 1
    assert generator.mean_fix_rate == pytest.approx(0.5)


def test_single_fix_and_single_regression() -> None:
    """Removing the only defect fixes it; keeping it and adding another is one regression."""
    before = [StructuredDefect(rule_id="r1", selector="img", impact="serious")]
    added = StructuredDefect(rule_id="r2", selector="a", impact="serious")

    fixed = compute_fix_delta(before, [], original_count=1)
    regressed = compute_fix_delta(before, before + [added], original_count=1)

    assert (fixed.fixed_count, fixed.regression_count) == (1, 0)
    assert (regressed.fixed_count, regressed.regression_count) == (0, 1)


def test_fix_delta_is_repeatable() -> None:
    """The same before/after pair always gives the same delta."""
    after = [_d("navigable/link-name", "a.more"), _d("navigable/bypass", "body")]
    assert compute_fix_delta(BEFORE, after, 3) == compute_fix_delta(BEFORE, after, 3)

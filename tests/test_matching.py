from __future__ import annotations

from metrics.matching import (
    impact_bonus,
    match_reported_defects,
    match_structured_defects,
    to_structured_defects,
)
from schemas.defects import ExpectedDefect, FreeTextDefect, Impact, StructuredDefect

IMG_ALT = "text-alternatives/img-alt"
FORM_LABEL = "labels-and-names/form-label"


def _expected(rule_id: str, pattern: str, impact: str = "critical") -> ExpectedDefect:
    return ExpectedDefect(rule_id=rule_id, selector_pattern=pattern, impact=impact)


def _report(element: str, issue: str, criterion: str, impact: str = "critical") -> FreeTextDefect:
    return FreeTextDefect(element=element, issue=issue, criterion=criterion, impact=impact)


def _actual(rule_id: str, selector: str, impact: str = "critical") -> StructuredDefect:
    return StructuredDefect(rule_id=rule_id, selector=selector, impact=impact)


def test_impact_bonus_scale() -> None:
    """Same tier +2, neighbouring tier +1, further apart 0."""
    assert impact_bonus(Impact.SERIOUS, Impact.SERIOUS) == 2
    assert impact_bonus(Impact.SERIOUS, Impact.CRITICAL) == 1
    assert impact_bonus(Impact.MODERATE, Impact.SERIOUS) == 1
    assert impact_bonus(Impact.MINOR, Impact.CRITICAL) == 0


def test_single_report_matches_expected() -> None:
    """Candidate rule plus element evidence gives one true positive."""
    expected = [_expected(IMG_ALT, "img.hero")]
    reported = [_report("img.hero", "Image missing alt attribute", "1.1.1")]

    result = match_reported_defects(reported, expected)

    assert (result.true_positives, result.false_positives, result.false_negatives) == (1, 0, 0)
    assert result.matched_pairs[0].expected == expected[0]
    assert result.matched_pairs[0].reported == reported[0]


def test_wrong_rule_never_matches() -> None:
    """A report whose candidates exclude the expected rule is a false positive, whatever the element."""
    expected = [_expected(IMG_ALT, "img.hero")]
    reported = [_report("img.hero", "Link has no accessible name", "2.4.4")]

    result = match_reported_defects(reported, expected)

    assert (result.true_positives, result.false_positives, result.false_negatives) == (0, 1, 1)


def test_zero_score_is_not_a_match() -> None:
    """Right rule, unrelated element, impact two tiers away: no evidence, no match."""
    expected = [_expected(IMG_ALT, "img.hero", impact="critical")]
    reported = [_report("footer p", "Image missing alt attribute", "1.1.1", impact="minor")]

    result = match_reported_defects(reported, expected)

    assert result.true_positives == 0
    assert result.unmatched_reported == (reported[0],)
    assert result.unmatched_expected == (expected[0],)


def test_impact_agreement_alone_is_enough_evidence() -> None:
    """With no element overlap, a matching impact still gives a positive score."""
    expected = [_expected(IMG_ALT, "img.hero", impact="serious")]
    reported = [_report("footer p", "Image missing alt attribute", "1.1.1", impact="serious")]

    assert match_reported_defects(reported, expected).true_positives == 1


def test_expected_defect_consumed_once() -> None:
    """Two identical reports cannot both claim the same expected defect."""
    expected = [_expected(IMG_ALT, "img.hero")]
    report = _report("img.hero", "Image missing alt attribute", "1.1.1")

    result = match_reported_defects([report, report], expected)

    assert (result.true_positives, result.false_positives, result.false_negatives) == (1, 1, 0)


def test_greedy_assignment_depends_on_report_order() -> None:
    """The first report takes the first tied expected defect; reordering can change the result."""
    expected = [
        _expected(FORM_LABEL, "input#email"),
        _expected(FORM_LABEL, "input[name=bio]"),
    ]
    vague = _report("input", "Input has no label", "4.1.2", impact="minor")
    precise = _report("#email", "Input has no label", "4.1.2", impact="minor")

    vague_first = match_reported_defects([vague, precise], expected)
    precise_first = match_reported_defects([precise, vague], expected)

    assert (vague_first.true_positives, vague_first.false_positives, vague_first.false_negatives) == (1, 1, 1)
    assert vague_first.matched_pairs[0].expected == expected[0]
    assert precise_first.true_positives == 2


def test_inputs_are_not_mutated() -> None:
    """Matching leaves both input lists intact."""
    expected = [_expected(IMG_ALT, "img.hero")]
    reported = [_report("img.hero", "Image missing alt attribute", "1.1.1")]

    match_reported_defects(reported, expected)

    assert len(expected) == 1
    assert len(reported) == 1


def test_nothing_expected_nothing_reported() -> None:
    """Empty inputs produce an empty result."""
    result = match_reported_defects([], [])
    assert (result.true_positives, result.false_positives, result.false_negatives) == (0, 0, 0)


def test_structured_match_requires_rule_impact_and_containment() -> None:
    """Expected pattern must sit inside the actual selector; leftovers are false positives."""
    expected = [_expected(IMG_ALT, "img.hero")]
    actual = [
        _actual(IMG_ALT, "img.logo"),
        _actual(IMG_ALT, "body > main > img.hero"),
    ]

    result = match_structured_defects(actual, expected)

    assert (result.true_positives, result.false_positives, result.false_negatives) == (1, 1, 0)
    assert result.matched_pairs[0].reported == actual[1]
    assert result.unmatched_reported == (actual[0],)


def test_structured_match_direction_and_impact() -> None:
    """Actual selector inside the pattern does not count, nor does a different impact."""
    expected = [_expected(IMG_ALT, "main img.hero")]
    assert match_structured_defects([_actual(IMG_ALT, "img.hero")], expected).true_positives == 0

    expected = [_expected(IMG_ALT, "img.hero", impact="critical")]
    assert match_structured_defects([_actual(IMG_ALT, "img.hero", impact="serious")], expected).true_positives == 0


def test_structured_duplicate_expected_needs_two_actuals() -> None:
    """Each actual defect satisfies at most one expected defect."""
    expected = [_expected(IMG_ALT, "img"), _expected(IMG_ALT, "img")]
    result = match_structured_defects([_actual(IMG_ALT, "img.hero")], expected)
    assert (result.true_positives, result.false_positives, result.false_negatives) == (1, 0, 1)


def test_to_structured_defects_attribution() -> None:
    """Matched reports take the expected rule; others their first candidate or 'unknown'."""
    expected = [_expected(IMG_ALT, "img.hero")]
    reported = [
        _report("img.hero", "Image missing alt attribute", "4.1.2"),
        _report("a.more", "Link has no accessible name", "2.4.4", impact="serious"),
        _report("div.x", "Looks a bit odd", "9.9.9", impact="minor"),
    ]

    out = to_structured_defects(reported, expected)

    assert [d.rule_id for d in out] == [IMG_ALT, "navigable/link-name", "unknown"]
    assert [d.selector for d in out] == ["img.hero", "a.more", "div.x"]
    assert out[1].impact == Impact.SERIOUS


def test_single_report_matches_by_criterion_and_element() -> None:
    """'missing alt' on img with 1.1.1 is one hit against the img-alt expectation."""
    result = match_reported_defects(
        [_report("img", "missing alt", "1.1.1")],
        [_expected(IMG_ALT, "img")],
    )
    assert (result.true_positives, result.false_positives, result.false_negatives) == (1, 0, 0)


def test_counts_partition_expected_and_reported() -> None:
    """tp+fn covers every expected defect and tp+fp every report, for both matchers."""
    expected = [_expected(IMG_ALT, "img.hero"), _expected(FORM_LABEL, "input#email")]
    reported = [
        _report("img.hero", "Image missing alt text", "1.1.1"),
        _report("h4", "Heading levels skip from h1 to h4", "", "moderate"),
    ]
    actual = [_actual(IMG_ALT, "main img.hero"), _actual("navigable/bypass", "body", "serious")]

    for result in (match_reported_defects(reported, expected), match_structured_defects(actual, expected)):
        assert (result.true_positives, result.false_positives, result.false_negatives) == (1, 1, 1)
        assert result.true_positives + result.false_negatives == len(expected)
        assert result.true_positives + result.false_positives == 2


def test_greedy_assignment_is_repeatable() -> None:
    """The same inputs in the same order always give the same assignment."""
    expected = [_expected(IMG_ALT, "img"), _expected(IMG_ALT, "img.logo")]
    reported = [_report("img.logo", "missing alt", "1.1.1"), _report("img", "missing alt", "1.1.1")]

    first = match_reported_defects(reported, expected)
    second = match_reported_defects(reported, expected)

    assert first == second
    assert [p.expected.selector_pattern for p in first.matched_pairs] == [
        p.expected.selector_pattern for p in second.matched_pairs
    ]

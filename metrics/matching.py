"""
Assignment between reported and expected defects.

- match_reported_defects: greedy single pass over free-text reports (input order is the tie-break).
- match_structured_defects: exact predicate match between two structured sets.
Both consume each expected defect at most once and never mutate their inputs.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Sequence, Set

from metrics.candidates import candidate_rule_ids
from metrics.element_match import element_match_score
from schemas.defects import ExpectedDefect, FreeTextDefect, Impact, StructuredDefect
from schemas.scores import MatchedPair, MatchResult
from schemas.taxonomy import UNKNOWN_RULE_ID

logger = logging.getLogger(__name__)


def impact_bonus(reported: Impact, expected: Impact) -> int:
    """+2 for the same impact, +1 for neighbours on the ordered scale, else 0."""
    if reported == expected:
        return 2
    if reported.is_adjacent(expected):
        return 1
    return 0


def _best_expected_index(
    defect: FreeTextDefect,
    expected: Sequence[ExpectedDefect],
    consumed: Set[int],
) -> Optional[int]:
    candidates = set(candidate_rule_ids(defect))
    if not candidates:
        return None

    best_idx: Optional[int] = None
    best_score = 0
    for i, ev in enumerate(expected):
        if i in consumed or ev.rule_id not in candidates:
            continue
        score = element_match_score(defect.element, ev.selector_pattern) + impact_bonus(defect.impact, ev.impact)
        # strict '>' keeps the first-seen expected defect on ties
        if score > best_score:
            best_score = score
            best_idx = i
    return best_idx


def match_reported_defects(
    reported: Sequence[FreeTextDefect],
    expected: Sequence[ExpectedDefect],
) -> MatchResult:
    """
    Greedy one-to-one assignment of free-text reports to expected defects.

    For each report in input order: restrict to unconsumed expected defects whose rule id is a
    candidate of the report, score element similarity + impact bonus, take the strictly highest
    positive score. Reports with no positive-scoring candidate are false positives; expected
    defects never consumed are false negatives. Deliberately not globally optimal.
    """
    consumed: Set[int] = set()
    matched: List[MatchedPair] = []
    unmatched_reported: List[FreeTextDefect] = []

    for defect in reported:
        idx = _best_expected_index(defect, expected, consumed)
        if idx is None:
            unmatched_reported.append(defect)
            continue
        consumed.add(idx)
        matched.append(MatchedPair(expected=expected[idx], reported=defect))

    unmatched_expected = [ev for i, ev in enumerate(expected) if i not in consumed]
    return MatchResult(
        matched_pairs=tuple(matched),
        unmatched_reported=tuple(unmatched_reported),
        unmatched_expected=tuple(unmatched_expected),
    )


def structured_matches(actual: StructuredDefect, expected: ExpectedDefect) -> bool:
    """Same rule id, same impact, and the expected pattern is contained in the actual selector."""
    return (
        actual.rule_id == expected.rule_id
        and actual.impact == expected.impact
        and expected.selector_pattern in actual.selector
    )


def match_structured_defects(
    actual: Sequence[StructuredDefect],
    expected: Sequence[ExpectedDefect],
) -> MatchResult:
    """
    Exact matching of structured detector output against expected defects.
    Each expected defect consumes the first unconsumed actual defect satisfying the predicate;
    leftover actual defects are false positives in their original order.
    """
    consumed: Set[int] = set()
    matched: List[MatchedPair] = []
    missing: List[ExpectedDefect] = []

    for ev in expected:
        hit = next(
            (i for i, av in enumerate(actual) if i not in consumed and structured_matches(av, ev)),
            None,
        )
        if hit is None:
            missing.append(ev)
            continue
        consumed.add(hit)
        matched.append(MatchedPair(expected=ev, reported=actual[hit]))

    leftovers = [av for i, av in enumerate(actual) if i not in consumed]
    return MatchResult(
        matched_pairs=tuple(matched),
        unmatched_reported=tuple(leftovers),
        unmatched_expected=tuple(missing),
    )


def to_structured_defects(
    reported: Sequence[FreeTextDefect],
    expected: Sequence[ExpectedDefect],
) -> List[StructuredDefect]:
    """
    Attribute free-text reports to rule ids for storage alongside detector output.
    Matched reports take the expected rule id; unmatched reports take their primary
    candidate, or 'unknown' when no signal fires. Nothing is dropped.
    """
    result = match_reported_defects(reported, expected)
    out: List[StructuredDefect] = []
    for pair in result.matched_pairs:
        out.append(
            StructuredDefect(
                rule_id=pair.expected.rule_id,
                selector=pair.reported.element,
                impact=pair.reported.impact,
                message=pair.reported.issue or None,
            )
        )
    unknown = 0
    for defect in result.unmatched_reported:
        candidates = candidate_rule_ids(defect)
        if not candidates:
            unknown += 1
        out.append(
            StructuredDefect(
                rule_id=candidates[0] if candidates else UNKNOWN_RULE_ID,
                selector=defect.element,
                impact=defect.impact,
                message=defect.issue or None,
            )
        )
    if unknown:
        logger.info("%d report(s) could not be attributed to a known rule", unknown)
    return out

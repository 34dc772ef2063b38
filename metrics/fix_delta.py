"""
Fix / regression accounting across a before/after remediation diff.

Identity key is "<ruleId>|<selector>". Fixed = before-keys missing after; regression = after-keys
missing before. Rates are relative to an original count captured once per case; a case with
original count 0 is excluded. Errored attempts are recorded and excluded from the averages.
"""

from __future__ import annotations

import logging
from typing import Iterable, List, Optional, Sequence, Set

from metrics.aggregate import mean_or_zero, population_stddev
from schemas.defects import StructuredDefect
from schemas.scores import FixAttempt, FixCaseSummary, FixDatasetAggregate, FixDelta

logger = logging.getLogger(__name__)


def identity_key(defect: StructuredDefect) -> str:
    return f"{defect.rule_id}|{defect.selector}"


def identity_keys(defects: Iterable[StructuredDefect]) -> Set[str]:
    return {identity_key(d) for d in defects}


def compute_fix_delta(
    before: Sequence[StructuredDefect],
    after: Sequence[StructuredDefect],
    original_count: int,
) -> FixDelta:
    before_keys = identity_keys(before)
    after_keys = identity_keys(after)
    return FixDelta(
        original_count=original_count,
        fixed_count=len(before_keys - after_keys),
        regression_count=len(after_keys - before_keys),
    )


def summarize_fix_attempts(
    case_id: str,
    source: str,
    attempts: Sequence[FixAttempt],
    original_count: int,
) -> Optional[FixCaseSummary]:
    """
    Per-case fix summary over repeated attempts against one shared baseline.
    Returns None when original_count is 0 (the case is excluded from fix scoring).
    """
    if original_count <= 0:
        logger.debug("Case %s (%s): original count is 0, excluded from fix scoring", case_id, source)
        return None

    fix_rates: List[float] = []
    regression_rates: List[float] = []
    net: List[float] = []
    fixed_counts: List[int] = []
    regression_counts: List[int] = []
    reaudit_counts: List[int] = []
    errors: List[str] = []

    for attempt in attempts:
        if attempt.error is not None or attempt.delta is None:
            errors.append(attempt.error or "No result")
            continue
        # rates always use the shared baseline, not the attempt's own count
        fr = attempt.delta.fixed_count / original_count
        rr = attempt.delta.regression_count / original_count
        fix_rates.append(fr)
        regression_rates.append(rr)
        net.append(fr - rr)
        fixed_counts.append(attempt.delta.fixed_count)
        regression_counts.append(attempt.delta.regression_count)
        if attempt.reaudit_count is not None:
            reaudit_counts.append(attempt.reaudit_count)

    if errors:
        logger.warning("Case %s (%s): %d/%d fix attempt(s) failed", case_id, source, len(errors), len(attempts))

    return FixCaseSummary(
        case_id=case_id,
        source=source,
        original_count=original_count,
        attempt_count=len(attempts),
        fix_rates=tuple(fix_rates),
        regression_rates=tuple(regression_rates),
        net_improvements=tuple(net),
        mean_fix_rate=mean_or_zero(fix_rates),
        mean_regression_rate=mean_or_zero(regression_rates),
        mean_net_improvement=mean_or_zero(net),
        mean_fixed_count=mean_or_zero(fixed_counts) if fixed_counts else None,
        mean_regression_count=mean_or_zero(regression_counts) if regression_counts else None,
        mean_reaudit_count=mean_or_zero(reaudit_counts) if reaudit_counts else None,
        errors=tuple(errors),
    )


def aggregate_fix_summaries(source: str, summaries: Sequence[FixCaseSummary]) -> FixDatasetAggregate:
    """Mean of per-case mean rates; cases with no successful attempt are left out."""
    scored = [s for s in summaries if s.source == source and s.successful_count > 0]
    fix = [s.mean_fix_rate for s in scored]
    regr = [s.mean_regression_rate for s in scored]
    net = [s.mean_net_improvement for s in scored]
    return FixDatasetAggregate(
        source=source,
        case_count=len(scored),
        mean_fix_rate=mean_or_zero(fix),
        mean_regression_rate=mean_or_zero(regr),
        mean_net_improvement=mean_or_zero(net),
        stddev_fix_rate=population_stddev(fix),
        stddev_regression_rate=population_stddev(regr),
        stddev_net_improvement=population_stddev(net),
    )

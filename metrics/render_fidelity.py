"""
Render-fidelity comparison: multiset agreement on (ruleId, impact) fingerprints.

Kept separate from the greedy assignment in metrics.matching: this mode has no element signal
and counts matches as sum over keys of min(ground truth count, observed count).
"""

from __future__ import annotations

import logging
from collections import Counter
from typing import List, Optional, Sequence, Tuple

from metrics.aggregate import INCONSISTENCY_THRESHOLD, mean_or_zero, population_stddev
from schemas.benchmark import RenderRunRecord
from schemas.defects import DefectFingerprint
from schemas.scores import FingerprintComparison, RenderCaseScore, RenderDatasetAggregate

logger = logging.getLogger(__name__)


def compare_fingerprints(
    ground_truth: Sequence[DefectFingerprint],
    observed: Sequence[DefectFingerprint],
) -> FingerprintComparison:
    gt_counts = Counter(f.key for f in ground_truth)
    obs_counts = Counter(f.key for f in observed)
    matched = sum(min(gt_counts[k], obs_counts[k]) for k in gt_counts.keys() | obs_counts.keys())
    return FingerprintComparison(
        matched=matched,
        missing=len(ground_truth) - matched,
        extra=len(observed) - matched,
    )


def run_rates(ground_truth_count: int, comparison: FingerprintComparison, observed_count: int) -> Tuple[float, float]:
    """(parity, extra_rate) for one run. With an empty ground truth, parity is 1 only if nothing was observed."""
    if ground_truth_count > 0:
        return comparison.matched / ground_truth_count, comparison.extra / ground_truth_count
    parity = 1.0 if observed_count == 0 else 0.0
    return parity, float(comparison.extra)


def score_render_case(
    case_id: str,
    ground_truth: Sequence[DefectFingerprint],
    runs: Sequence[RenderRunRecord],
    *,
    difficulty: Optional[str] = None,
    threshold: float = INCONSISTENCY_THRESHOLD,
) -> RenderCaseScore:
    """Per-case render scores. Errored runs are listed in errors and excluded from the rates."""
    gt_count = len(ground_truth)
    parity_rates: List[float] = []
    extra_rates: List[float] = []
    exact: List[bool] = []
    durations: List[float] = []
    errors: List[str] = []

    for run in runs:
        if run.error is not None:
            errors.append(f"run {run.run_index}: {run.error}")
            continue
        comparison = compare_fingerprints(ground_truth, run.observed)
        parity, extra = run_rates(gt_count, comparison, len(run.observed))
        parity_rates.append(parity)
        extra_rates.append(extra)
        exact.append(comparison.exact)
        durations.append(run.duration_ms)

    parity_std = population_stddev(parity_rates)
    inconsistent = len(parity_rates) > 1 and parity_std > threshold
    if inconsistent:
        logger.info("Render case %s inconsistent: parity stddev %.3f", case_id, parity_std)

    return RenderCaseScore(
        case_id=case_id,
        difficulty=difficulty,
        ground_truth_count=gt_count,
        parity_rates=tuple(parity_rates),
        extra_rates=tuple(extra_rates),
        exact_matches=tuple(exact),
        durations_ms=tuple(durations),
        mean_parity=mean_or_zero(parity_rates),
        mean_extra=mean_or_zero(extra_rates),
        exact_match_rate=(sum(exact) / len(exact)) if exact else 0.0,
        mean_duration_ms=mean_or_zero(durations),
        parity_stddev=parity_std,
        inconsistent=inconsistent,
        errors=tuple(errors),
    )


def aggregate_render_cases(scores: Sequence[RenderCaseScore]) -> RenderDatasetAggregate:
    parity = [s.mean_parity for s in scores]
    extra = [s.mean_extra for s in scores]
    return RenderDatasetAggregate(
        case_count=len(scores),
        mean_parity=mean_or_zero(parity),
        stddev_parity=population_stddev(parity),
        mean_extra=mean_or_zero(extra),
        stddev_extra=population_stddev(extra),
        exact_match_rate=mean_or_zero([s.exact_match_rate for s in scores]),
        mean_duration_ms=mean_or_zero([s.mean_duration_ms for s in scores]),
    )

"""
Trial and dataset aggregation.

- A failed trial is scored as "found nothing" (tp=0, fp=0, fn=|expected|, P/R/F1=0), never dropped.
- Mean and population stddev (not Bessel-corrected) over per-trial P/R/F1/duration.
- Dataset level is a mean of per-case means, so every case weighs the same regardless of trial count.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from statistics import mean, pstdev
from typing import Callable, Dict, List, Mapping, Optional, Sequence

from metrics.confusion import score_match
from schemas.config import DEFAULT_INCONSISTENCY_THRESHOLD
from schemas.defects import TokenUsage
from schemas.scores import CaseAggregate, DatasetAggregate, MatchResult, MetricSummary, TrialScore

logger = logging.getLogger(__name__)

INCONSISTENCY_THRESHOLD = DEFAULT_INCONSISTENCY_THRESHOLD


def mean_or_zero(values: Sequence[float]) -> float:
    return mean(values) if values else 0.0


def population_stddev(values: Sequence[float]) -> float:
    """Population stddev; 0.0 for fewer than two samples."""
    return pstdev(values) if len(values) > 1 else 0.0


@dataclass(frozen=True)
class TrialOutcome:
    """What one trial produced: a MatchResult, or an error tag when the external call failed."""

    match_result: Optional[MatchResult] = None
    duration_ms: float = 0.0
    tokens: Optional[TokenUsage] = None
    error: Optional[str] = None


def failed_trial_score(
    expected_count: int,
    error: str,
    *,
    run_index: int = 0,
    duration_ms: float = 0.0,
    tokens: Optional[TokenUsage] = None,
) -> TrialScore:
    return TrialScore(
        run_index=run_index,
        tp=0,
        fp=0,
        fn=expected_count,
        precision=0.0,
        recall=0.0,
        f1=0.0,
        duration_ms=duration_ms,
        tokens=tokens,
        error=error,
    )


def score_trial(
    match_result: Optional[MatchResult],
    *,
    expected_count: int,
    run_index: int = 0,
    duration_ms: float = 0.0,
    tokens: Optional[TokenUsage] = None,
    error: Optional[str] = None,
) -> TrialScore:
    """Score one trial. error (or a missing match_result) yields the failure sentinel."""
    if error is not None or match_result is None:
        return failed_trial_score(
            expected_count,
            error or "No result",
            run_index=run_index,
            duration_ms=duration_ms,
            tokens=tokens,
        )
    scores = score_match(match_result)
    return TrialScore(
        run_index=run_index,
        tp=match_result.true_positives,
        fp=match_result.false_positives,
        fn=match_result.false_negatives,
        precision=scores.precision,
        recall=scores.recall,
        f1=scores.f1,
        duration_ms=duration_ms,
        tokens=tokens,
    )


def _summary(trials: Sequence[TrialScore], fn: Callable[[Sequence[float]], float]) -> MetricSummary:
    return MetricSummary(
        precision=fn([t.precision for t in trials]),
        recall=fn([t.recall for t in trials]),
        f1=fn([t.f1 for t in trials]),
        duration_ms=fn([t.duration_ms for t in trials]),
    )


def aggregate_case(
    case_id: str,
    trials: Sequence[TrialScore],
    *,
    expected_count: int = 0,
    threshold: float = INCONSISTENCY_THRESHOLD,
) -> CaseAggregate:
    """Mean/stddev over one case's trials; flags the case when F1 stddev exceeds threshold (>= 2 trials)."""
    stddev = _summary(trials, population_stddev)
    inconsistent = len(trials) >= 2 and stddev.f1 > threshold
    if inconsistent:
        logger.info(
            "Case %s inconsistent: F1 stddev %.3f > %.3f (runs: %s)",
            case_id,
            stddev.f1,
            threshold,
            ", ".join(f"{t.f1:.3f}" for t in trials),
        )
    return CaseAggregate(
        case_id=case_id,
        expected_count=expected_count,
        trials=tuple(trials),
        mean=_summary(trials, mean_or_zero),
        stddev=stddev,
        inconsistent=inconsistent,
        error_count=sum(1 for t in trials if t.failed),
    )


def aggregate_trials(
    case_id: str,
    produce: Callable[[int], TrialOutcome],
    runs: int,
    *,
    expected_count: int,
    threshold: float = INCONSISTENCY_THRESHOLD,
) -> CaseAggregate:
    """
    Run `produce(run_index)` for each of `runs` trials, one after the other, and aggregate.
    An exception escaping `produce` becomes a failed trial; the case is never aborted.
    """
    if runs < 0:
        raise ValueError(f"runs must be >= 0, got {runs}")
    scores: List[TrialScore] = []
    for run_index in range(runs):
        try:
            outcome = produce(run_index)
        except Exception as e:
            logger.warning("Case %s trial %d raised %s: %s", case_id, run_index, type(e).__name__, e)
            outcome = TrialOutcome(error=f"Exec error: {e}")
        if outcome.error is not None:
            logger.warning("Case %s trial %d failed: %s", case_id, run_index, outcome.error)
        scores.append(
            score_trial(
                outcome.match_result,
                expected_count=expected_count,
                run_index=run_index,
                duration_ms=outcome.duration_ms,
                tokens=outcome.tokens,
                error=outcome.error,
            )
        )
    return aggregate_case(case_id, scores, expected_count=expected_count, threshold=threshold)


def aggregate_dataset(cases: Sequence[CaseAggregate]) -> DatasetAggregate:
    """Mean of per-case means and population stddev across them. Cases without trials are skipped."""
    scored = [c for c in cases if c.trial_count > 0]
    means = [c.mean for c in scored]

    def _over(field: str, fn: Callable[[Sequence[float]], float]) -> float:
        return fn([getattr(m, field) for m in means])

    return DatasetAggregate(
        case_count=len(scored),
        mean=MetricSummary(
            precision=_over("precision", mean_or_zero),
            recall=_over("recall", mean_or_zero),
            f1=_over("f1", mean_or_zero),
            duration_ms=_over("duration_ms", mean_or_zero),
        ),
        stddev=MetricSummary(
            precision=_over("precision", population_stddev),
            recall=_over("recall", population_stddev),
            f1=_over("f1", population_stddev),
            duration_ms=_over("duration_ms", population_stddev),
        ),
    )


def aggregate_by_group(
    cases: Sequence[CaseAggregate],
    groups: Mapping[str, str],
) -> Dict[str, DatasetAggregate]:
    """Dataset aggregate per group label (e.g. difficulty). groups maps case_id -> label."""
    buckets: Dict[str, List[CaseAggregate]] = {}
    for case in cases:
        label = groups.get(case.case_id)
        if label is None:
            continue
        buckets.setdefault(label, []).append(case)
    return {label: aggregate_dataset(members) for label, members in buckets.items()}

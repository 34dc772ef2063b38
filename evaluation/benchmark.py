"""
End-to-end scoring of recorded benchmark results.

Per case:
- detector: structured detector runs scored with match_structured_defects; a case without a run scores "found nothing".
- generator: free-text trials scored with match_reported_defects; failed trials count as "found nothing".
- fixes: remediation attempts per source (hybrid / generator), errored attempts excluded from rates.
Dataset level: mean of per-case means, per-difficulty breakdown, usage totals.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional, Sequence

from metrics.aggregate import TrialOutcome, aggregate_by_group, aggregate_dataset, aggregate_trials
from metrics.fix_delta import aggregate_fix_summaries, compute_fix_delta, summarize_fix_attempts
from metrics.matching import match_reported_defects, match_structured_defects
from metrics.render_fidelity import aggregate_render_cases, score_render_case
from observability.logging import BenchmarkLogger
from observability.metrics import UsageCollector
from schemas.benchmark import (
    BenchmarkResults,
    CaseResults,
    DetectorRun,
    FixRunRecord,
    RenderBenchmarkResults,
    TrialRecord,
)
from schemas.config import BenchmarkConfig
from schemas.report import BenchmarkReport, CaseReport, GroupAggregate, RenderBenchmarkReport
from schemas.scores import CaseAggregate, FixAttempt, FixCaseSummary, FixDelta, MatchResult

logger = logging.getLogger(__name__)

FIX_SOURCES = ("hybrid", "generator")
DIFFICULTY_ORDER = ("easy", "medium", "hard")


def score_detector_runs(case_id: str, case: CaseResults, threshold: float) -> CaseAggregate:
    expected = case.expected_violations
    runs: Sequence[DetectorRun] = case.detector_runs
    if not runs:
        # no recorded run: nothing found, every expected defect missed
        missing = TrialOutcome(MatchResult.nothing_found(expected))
        return aggregate_trials(case_id, lambda i: missing, 1, expected_count=len(expected), threshold=threshold)

    def produce(i: int) -> TrialOutcome:
        run = runs[i]
        if run.error is not None:
            return TrialOutcome(duration_ms=run.duration_ms, error=run.error)
        return TrialOutcome(match_structured_defects(run.defects, expected), duration_ms=run.duration_ms)

    return aggregate_trials(case_id, produce, len(runs), expected_count=len(expected), threshold=threshold)


def score_generator_trials(
    case_id: str,
    expected_case: CaseResults,
    trials: Sequence[TrialRecord],
    threshold: float,
) -> CaseAggregate:
    expected = expected_case.expected_violations

    def produce(i: int) -> TrialOutcome:
        trial = trials[i]
        if trial.error is not None:
            return TrialOutcome(duration_ms=trial.duration_ms, tokens=trial.tokens, error=trial.error)
        return TrialOutcome(
            match_reported_defects(trial.defects, expected),
            duration_ms=trial.duration_ms,
            tokens=trial.tokens,
        )

    return aggregate_trials(case_id, produce, len(trials), expected_count=len(expected), threshold=threshold)


def fix_attempt_from_record(record: FixRunRecord, original_count: int) -> FixAttempt:
    """Turn a recorded remediation attempt into a FixAttempt against the shared baseline."""
    if record.error is not None:
        return FixAttempt(
            run_index=record.run_index,
            duration_ms=record.duration_ms,
            tokens=record.tokens,
            error=record.error,
        )
    reaudit = record.reaudit_violation_count
    if record.before is not None and record.after is not None:
        delta = compute_fix_delta(record.before, record.after, original_count)
        if reaudit is None:
            reaudit = len(record.after)
    else:
        delta = FixDelta(
            original_count=original_count,
            fixed_count=record.fixed_count,
            regression_count=record.regression_count,
        )
    return FixAttempt(
        run_index=record.run_index,
        duration_ms=record.duration_ms,
        delta=delta,
        reaudit_count=reaudit,
        tokens=record.tokens,
    )


def _fix_records(case: CaseResults, source: str) -> List[FixRunRecord]:
    return list(case.hybrid_fix if source == "hybrid" else case.generator_fix)


def baseline_count(case: CaseResults) -> int:
    """Original defect count, captured once per case and shared by every attempt of every source."""
    first = (case.hybrid_fix or case.generator_fix or [None])[0]
    return first.original_violation_count if first is not None else 0


def score_fixes(case_id: str, case: CaseResults) -> List[FixCaseSummary]:
    if not case.expected_violations:
        return []
    original = baseline_count(case)
    out: List[FixCaseSummary] = []
    for source in FIX_SOURCES:
        records = _fix_records(case, source)
        if not records:
            continue
        attempts = [fix_attempt_from_record(r, original) for r in records]
        summary = summarize_fix_attempts(case_id, source, attempts, original)
        if summary is not None:
            out.append(summary)
    return out


def score_case(case_id: str, case: CaseResults, threshold: float) -> CaseReport:
    detector = score_detector_runs(case_id, case, threshold)
    generator = score_generator_trials(case_id, case, case.generator_runs, threshold)
    return CaseReport(
        case_id=case_id,
        description=case.description,
        difficulty=case.difficulty,
        expected_count=len(case.expected_violations),
        detector=detector,
        generator=generator,
        fixes=score_fixes(case_id, case),
    )


def _ordered_groups(labels: Sequence[str]) -> List[str]:
    known = [d for d in DIFFICULTY_ORDER if d in labels]
    return known + sorted(set(labels) - set(known))


def score_benchmark(results: BenchmarkResults, config: Optional[BenchmarkConfig] = None) -> BenchmarkReport:
    config = config or BenchmarkConfig()
    threshold = config.inconsistency_threshold
    usage = UsageCollector()
    bench_log = BenchmarkLogger()
    trial_errors: List[str] = []
    case_reports: List[CaseReport] = []

    for case_id, case in results.cases.items():
        report = score_case(case_id, case, threshold)
        case_reports.append(report)
        for trial in case.generator_runs:
            usage.record_call(trial.tokens, trial.error)
            if trial.error is not None:
                trial_errors.append(f"{case_id} run {trial.run_index}: {trial.error}")
        for record in list(case.hybrid_fix) + list(case.generator_fix):
            usage.record_call(record.tokens, record.error)
        for trial in report.generator.trials:
            bench_log.log_trial(
                case_id, trial.run_index, trial.duration_ms, trial.error, tp=trial.tp, fp=trial.fp, fn=trial.fn
            )
        bench_log.log_case(case_id, report.generator.mean.f1, report.generator.stddev.f1, report.generator.inconsistent)

    difficulty_of: Dict[str, str] = {r.case_id: r.difficulty for r in case_reports if r.difficulty}
    detector_groups = aggregate_by_group([r.detector for r in case_reports], difficulty_of)
    generator_groups = aggregate_by_group([r.generator for r in case_reports], difficulty_of)
    by_difficulty = {
        label: GroupAggregate(
            detector=detector_groups.get(label, aggregate_dataset([])),
            generator=generator_groups.get(label, aggregate_dataset([])),
        )
        for label in _ordered_groups(list(difficulty_of.values()))
    }

    all_fix_summaries = [s for r in case_reports for s in r.fixes]
    fixes = {
        source: aggregate_fix_summaries(source, all_fix_summaries)
        for source in FIX_SOURCES
        if any(s.source == source for s in all_fix_summaries)
    }

    return BenchmarkReport(
        config=results.config,
        case_count=len(case_reports),
        total_expected=sum(r.expected_count for r in case_reports),
        cases=case_reports,
        detector=aggregate_dataset([r.detector for r in case_reports]),
        generator=aggregate_dataset([r.generator for r in case_reports]),
        by_difficulty=by_difficulty,
        inconsistent_cases=[r.case_id for r in case_reports if r.generator.inconsistent],
        fixes=fixes,
        trial_errors=trial_errors,
        usage=usage.get_summary(),
    )


def score_render_benchmark(
    results: RenderBenchmarkResults,
    config: Optional[BenchmarkConfig] = None,
) -> RenderBenchmarkReport:
    config = config or BenchmarkConfig()
    usage = UsageCollector()
    scores = []
    run_errors: List[str] = []
    for case_id, case in results.cases.items():
        score = score_render_case(
            case_id,
            case.ground_truth,
            case.runs,
            difficulty=case.difficulty,
            threshold=config.inconsistency_threshold,
        )
        scores.append(score)
        run_errors.extend(f"{case_id} {e}" for e in score.errors)
        for run in case.runs:
            usage.record_call(run.tokens, run.error)

    labels = [s.difficulty for s in scores if s.difficulty]
    by_difficulty = {
        label: aggregate_render_cases([s for s in scores if s.difficulty == label])
        for label in _ordered_groups(labels)
    }
    return RenderBenchmarkReport(
        config=results.config,
        cases=scores,
        aggregate=aggregate_render_cases(scores),
        by_difficulty=by_difficulty,
        inconsistent_cases=[s.case_id for s in scores if s.inconsistent],
        run_errors=run_errors,
        usage=usage.get_summary(),
    )

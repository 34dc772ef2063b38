"""
Fixture validation.

The first recorded detector run of every manifest case is compared with the case's expected
defects using the exact matcher. A case passes only when nothing expected is missing and the
detector reported nothing unexpected.
"""

from __future__ import annotations

import logging
from typing import Optional

from metrics.matching import match_structured_defects
from schemas.benchmark import BenchmarkResults, CaseResults, Manifest, TestCase
from schemas.report import CaseValidation, ValidationReport

logger = logging.getLogger(__name__)


def validate_case(case: TestCase, recorded: Optional[CaseResults]) -> CaseValidation:
    expected = case.expected_violations
    run = recorded.detector_runs[0] if recorded is not None and recorded.detector_runs else None
    if run is None or run.error is not None:
        return CaseValidation(
            case_id=case.id,
            description=case.description,
            missing=list(expected),
            error=run.error if run is not None else "No detector run recorded",
        )

    result = match_structured_defects(run.defects, expected)
    return CaseValidation(
        case_id=case.id,
        description=case.description,
        passed=not result.unmatched_expected and not result.unmatched_reported,
        matched=result.true_positives,
        missing=list(result.unmatched_expected),
        unexpected=list(result.unmatched_reported),
    )


def validate_cases(manifest: Manifest, results: BenchmarkResults) -> ValidationReport:
    """Validate every manifest case, in manifest order, against the recorded detector output."""
    cases = [validate_case(case, results.cases.get(case.id)) for case in manifest.cases]
    failed = [c.case_id for c in cases if not c.passed]
    if failed:
        logger.warning("%d/%d case(s) failed validation: %s", len(failed), len(cases), ", ".join(failed))
    return ValidationReport(cases=cases, passed_count=len(cases) - len(failed), failed_count=len(failed))

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Union

import pandas as pd

from schemas.report import BenchmarkReport

logger = logging.getLogger(__name__)

CASE_COLUMNS = [
    "case_id",
    "difficulty",
    "expected_count",
    "detector_precision",
    "detector_recall",
    "detector_f1",
    "generator_precision",
    "generator_recall",
    "generator_f1",
    "generator_f1_stddev",
    "generator_trials",
    "generator_errors",
    "inconsistent",
    "hybrid_fix_rate",
    "hybrid_regression_rate",
    "generator_fix_rate",
    "generator_regression_rate",
    "hybrid_reaudit_count",
    "generator_reaudit_count",
]


def _case_row(case) -> Dict[str, Any]:
    row: Dict[str, Any] = {
        "case_id": case.case_id,
        "difficulty": case.difficulty,
        "expected_count": case.expected_count,
        "detector_precision": case.detector.mean.precision,
        "detector_recall": case.detector.mean.recall,
        "detector_f1": case.detector.mean.f1,
        "generator_precision": case.generator.mean.precision,
        "generator_recall": case.generator.mean.recall,
        "generator_f1": case.generator.mean.f1,
        "generator_f1_stddev": case.generator.stddev.f1,
        "generator_trials": case.generator.trial_count,
        "generator_errors": case.generator.error_count,
        "inconsistent": case.generator.inconsistent,
    }
    for summary in case.fixes:
        row[f"{summary.source}_fix_rate"] = summary.mean_fix_rate
        row[f"{summary.source}_regression_rate"] = summary.mean_regression_rate
        row[f"{summary.source}_reaudit_count"] = summary.mean_reaudit_count
    return row


def report_to_dataframe(report: BenchmarkReport) -> pd.DataFrame:
    """One row per case; fix columns are NaN where a source has no summary."""
    rows: List[Dict[str, Any]] = [_case_row(c) for c in report.cases]
    return pd.DataFrame.from_records(rows, columns=CASE_COLUMNS)


def write_report(report: BenchmarkReport, outdir: Union[str, Path]) -> Path:
    """Write report.json (full report) and per_case.csv into outdir. Returns outdir."""
    out = Path(outdir)
    out.mkdir(parents=True, exist_ok=True)
    with open(out / "report.json", "w", encoding="utf-8") as f:
        json.dump(report.model_dump(mode="json"), f, ensure_ascii=False, indent=2)
    report_to_dataframe(report).to_csv(out / "per_case.csv", index=False)
    logger.info("Report written to %s (%d case(s))", out, report.case_count)
    return out

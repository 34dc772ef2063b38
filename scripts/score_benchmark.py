#!/usr/bin/env python3
"""
Score recorded benchmark results and write the report.

Reads a results JSON (detector runs, generator trials, fix attempts per case) and writes
report.json + per_case.csv into --out_dir. With --render, reads render-fidelity results instead
and writes render_report.json. With --validate, checks the recorded detector output against the
manifest (--manifest or manifest_path in the config) and exits 1 when any case fails.

Usage:
  python scripts/score_benchmark.py --results bench/results/latest.json --out_dir reports/latest
  python scripts/score_benchmark.py --results bench/results/render-latest.json --render --out_dir reports/render
  python scripts/score_benchmark.py --results results.json --config experiments/configs/benchmark.yaml
  python scripts/score_benchmark.py --results bench/results/latest.json --validate --manifest bench/manifest.json
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import List, Optional

from data.datasets.loader import load_benchmark_results, load_manifest, load_render_results
from evaluation.benchmark import score_benchmark, score_render_benchmark
from evaluation.export import write_report
from evaluation.validation import validate_cases
from observability.logging import setup_from_config
from schemas.report import BenchmarkReport, ValidationReport
from tools.config_loader import load_config


def print_summary(report: BenchmarkReport) -> None:
    print(f"  Cases: {report.case_count}, Expected violations: {report.total_expected}")
    for label, agg in (("Detector", report.detector), ("Generator", report.generator)):
        m, s = agg.mean, agg.stddev
        print(
            f"  {label:<10} P {m.precision:.3f}  R {m.recall:.3f}  F1 {m.f1:.3f} +/- {s.f1:.3f}"
            f"  ({agg.case_count} cases, {m.duration_ms:.0f}ms avg)"
        )
    for difficulty, group in report.by_difficulty.items():
        print(f"  [{difficulty}] detector F1 {group.detector.mean.f1:.3f} | generator F1 {group.generator.mean.f1:.3f}")
    for source, fix in report.fixes.items():
        print(
            f"  Fix ({source}): fix {fix.mean_fix_rate:.3f}  regression {fix.mean_regression_rate:.3f}"
            f"  net {fix.mean_net_improvement:.3f}  ({fix.case_count} cases)"
        )
    if report.inconsistent_cases:
        print(f"  Inconsistent: {', '.join(report.inconsistent_cases)}")
    if report.trial_errors:
        print(f"  Trial errors: {len(report.trial_errors)}")


def print_validation(report: ValidationReport) -> None:
    for case in report.cases:
        status = "PASS" if case.passed else "FAIL"
        print(f"  {status} {case.case_id}: {case.description}")
        if case.error:
            print(f"     {case.error}")
        if case.missing:
            print(f"     Missing ({len(case.missing)}):")
            for m in case.missing:
                print(f"       - {m.rule_id} [{m.impact.value}] selector~\"{m.selector_pattern}\"")
        if case.unexpected:
            print(f"     Unexpected ({len(case.unexpected)}):")
            for u in case.unexpected:
                print(f"       - {u.rule_id} [{u.impact.value}] {u.selector}")
    total = report.passed_count + report.failed_count
    print(f"Results: {report.passed_count} passed, {report.failed_count} failed, {total} total")


def main(argv: Optional[List[str]] = None) -> int:
    ap = argparse.ArgumentParser(
        description="Score recorded accessibility benchmark results",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    ap.add_argument("--results", type=str, required=True, help="Path to the recorded results JSON")
    ap.add_argument("--out_dir", type=str, default="reports/latest", help="Output directory for the report")
    ap.add_argument("--config", type=str, default=None, help="Optional benchmark YAML config")
    ap.add_argument("--render", action="store_true", help="Score render-fidelity results instead")
    ap.add_argument("--validate", action="store_true", help="Check recorded detector output against the manifest")
    ap.add_argument("--manifest", type=str, default=None, help="Manifest JSON for --validate (default: config manifest_path)")
    args = ap.parse_args(argv)

    config = load_config(args.config)
    logger = setup_from_config(config)

    results_path = Path(args.results)
    if not results_path.is_file():
        print(f"[ERROR] Results file not found: {results_path}", file=sys.stderr)
        return 1

    if args.validate:
        manifest_file = args.manifest or config.manifest_path
        if not manifest_file or not Path(manifest_file).is_file():
            print(f"[ERROR] Manifest not found: {manifest_file}", file=sys.stderr)
            return 1
        validation = validate_cases(load_manifest(manifest_file), load_benchmark_results(results_path))
        print_validation(validation)
        return 0 if validation.failed_count == 0 else 1

    if args.render:
        render_report = score_render_benchmark(load_render_results(results_path), config)
        out_dir = Path(args.out_dir)
        out_dir.mkdir(parents=True, exist_ok=True)
        with open(out_dir / "render_report.json", "w", encoding="utf-8") as f:
            json.dump(render_report.model_dump(mode="json"), f, ensure_ascii=False, indent=2)
        agg = render_report.aggregate
        print(f"  Render parity {agg.mean_parity:.3f} +/- {agg.stddev_parity:.3f}  exact {agg.exact_match_rate:.3f}")
        logger.info("Render report written to %s", out_dir)
        return 0

    report = score_benchmark(load_benchmark_results(results_path), config)
    write_report(report, args.out_dir)
    print_summary(report)
    return 0


if __name__ == "__main__":
    sys.exit(main())

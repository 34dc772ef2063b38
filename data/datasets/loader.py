from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, Union

from schemas.benchmark import BenchmarkResults, Manifest, RenderBenchmarkResults, TestCase

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


def _read_json(path: PathLike) -> Dict[str, Any]:
    with open(path, "r", encoding="utf-8") as f:
        obj = json.load(f)
    if not isinstance(obj, dict):
        raise ValueError(f"Expected a JSON object at the root of {path}")
    return obj


def load_manifest(path: PathLike) -> Manifest:
    """Load the test-case manifest. Case ids must be unique."""
    manifest = Manifest.model_validate(_read_json(path))
    logger.info(
        "Loaded manifest %s: %d case(s), %d expected defect(s)", path, len(manifest.cases), manifest.total_expected
    )
    return manifest


def load_benchmark_results(path: PathLike) -> BenchmarkResults:
    """Load recorded detection/remediation results keyed by case id."""
    results = BenchmarkResults.model_validate(_read_json(path))
    logger.info("Loaded results %s: %d case(s)", path, len(results.cases))
    return results


def load_render_results(path: PathLike) -> RenderBenchmarkResults:
    results = RenderBenchmarkResults.model_validate(_read_json(path))
    logger.info("Loaded render results %s: %d case(s)", path, len(results.cases))
    return results


def resolve_case_path(manifest_path: PathLike, case: TestCase) -> Path:
    """
    Resolve a case's document path.
    - Absolute paths are returned unchanged.
    - Relative paths are joined with the manifest's directory.
    """
    if not case.file:
        raise ValueError(f"Case {case.id} has no document path")
    p = Path(case.file)
    if p.is_absolute():
        return p.resolve()
    return (Path(manifest_path).parent / p).resolve()

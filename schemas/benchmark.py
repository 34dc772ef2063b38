from __future__ import annotations

from typing import Dict, List, Literal, Optional

from pydantic import Field, model_validator

from .defects import (
    DefectFingerprint,
    ExpectedDefect,
    FreeTextDefect,
    StructuredDefect,
    TokenUsage,
    WireRecord,
)

CaseMode = Literal["fragment", "document"]
Difficulty = Literal["easy", "medium", "hard"]


class TestCase(WireRecord):
    """One fixture: an input document plus the defects it is known to contain."""

    __test__ = False  # keep pytest from collecting this model

    id: str = Field(min_length=1)
    file: str = Field(default="", description="Document path relative to the manifest.")
    description: str = ""
    mode: CaseMode = "document"
    difficulty: Difficulty = "medium"
    categories: List[str] = Field(default_factory=list)
    expected_violations: List[ExpectedDefect] = Field(default_factory=list)


class Manifest(WireRecord):
    version: str = "1"
    cases: List[TestCase] = Field(default_factory=list)

    @model_validator(mode="after")
    def _unique_ids(self) -> "Manifest":
        seen = set()
        for case in self.cases:
            if case.id in seen:
                raise ValueError(f"duplicate case id in manifest: {case.id}")
            seen.add(case.id)
        return self

    @property
    def total_expected(self) -> int:
        return sum(len(c.expected_violations) for c in self.cases)


class DetectorRun(WireRecord):
    """One run of the deterministic structured detector."""

    run_index: int = 0
    duration_ms: float = Field(default=0.0, ge=0.0)
    defects: List[StructuredDefect] = Field(default_factory=list)
    error: Optional[str] = None


class TrialRecord(WireRecord):
    """One trial of the free-text generator. error is set when the trial failed."""

    run_index: int = 0
    duration_ms: float = Field(default=0.0, ge=0.0)
    defects: List[FreeTextDefect] = Field(default_factory=list)
    tokens: Optional[TokenUsage] = None
    error: Optional[str] = None

    @property
    def failed(self) -> bool:
        return self.error is not None


class FixRunRecord(WireRecord):
    """
    One remediation attempt. Either the before/after defect sets or the
    precomputed fixed/regression counts must be present on success.
    """

    run_index: int = 0
    duration_ms: float = Field(default=0.0, ge=0.0)
    original_violation_count: int = Field(default=0, ge=0)
    before: Optional[List[StructuredDefect]] = None
    after: Optional[List[StructuredDefect]] = None
    fixed_count: Optional[int] = Field(default=None, ge=0)
    regression_count: Optional[int] = Field(default=None, ge=0)
    reaudit_violation_count: Optional[int] = Field(default=None, ge=0)
    tokens: Optional[TokenUsage] = None
    error: Optional[str] = None

    @model_validator(mode="after")
    def _has_outcome(self) -> "FixRunRecord":
        if self.error is not None:
            return self
        has_sets = self.before is not None and self.after is not None
        has_counts = self.fixed_count is not None and self.regression_count is not None
        if not (has_sets or has_counts):
            raise ValueError("successful fix run needs before/after defects or fixed/regression counts")
        return self


class RunConfigInfo(WireRecord):
    runs: int = 1
    model: str = ""
    timeout: float = 0
    timestamp: str = ""


class CaseResults(WireRecord):
    description: str = ""
    mode: CaseMode = "document"
    difficulty: Difficulty = "medium"
    expected_violations: List[ExpectedDefect] = Field(default_factory=list)
    detector_runs: List[DetectorRun] = Field(default_factory=list)
    generator_runs: List[TrialRecord] = Field(default_factory=list)
    hybrid_fix: List[FixRunRecord] = Field(default_factory=list)
    generator_fix: List[FixRunRecord] = Field(default_factory=list)


class BenchmarkResults(WireRecord):
    config: RunConfigInfo = Field(default_factory=RunConfigInfo)
    cases: Dict[str, CaseResults] = Field(default_factory=dict)


class RenderRunRecord(WireRecord):
    run_index: int = 0
    duration_ms: float = Field(default=0.0, ge=0.0)
    observed: List[DefectFingerprint] = Field(default_factory=list)
    tokens: Optional[TokenUsage] = None
    error: Optional[str] = None


class RenderCaseResults(WireRecord):
    description: str = ""
    difficulty: Difficulty = "medium"
    ground_truth: List[DefectFingerprint] = Field(default_factory=list)
    runs: List[RenderRunRecord] = Field(default_factory=list)


class RenderBenchmarkResults(WireRecord):
    config: RunConfigInfo = Field(default_factory=RunConfigInfo)
    cases: Dict[str, RenderCaseResults] = Field(default_factory=dict)

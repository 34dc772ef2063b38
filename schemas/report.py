from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from .benchmark import RunConfigInfo
from .defects import ExpectedDefect, StructuredDefect
from .scores import (
    CaseAggregate,
    DatasetAggregate,
    FixCaseSummary,
    FixDatasetAggregate,
    RenderCaseScore,
    RenderDatasetAggregate,
)


class CaseReport(BaseModel):
    """Scores of one case: structured detector, free-text generator trials, remediation."""

    case_id: str
    description: str = ""
    difficulty: Optional[str] = None
    expected_count: int = 0
    detector: CaseAggregate
    generator: CaseAggregate
    fixes: List[FixCaseSummary] = Field(default_factory=list)


class GroupAggregate(BaseModel):
    detector: DatasetAggregate = Field(default_factory=DatasetAggregate)
    generator: DatasetAggregate = Field(default_factory=DatasetAggregate)


class BenchmarkReport(BaseModel):
    config: RunConfigInfo = Field(default_factory=RunConfigInfo)
    case_count: int = 0
    total_expected: int = 0
    cases: List[CaseReport] = Field(default_factory=list)
    detector: DatasetAggregate = Field(default_factory=DatasetAggregate)
    generator: DatasetAggregate = Field(default_factory=DatasetAggregate)
    by_difficulty: Dict[str, GroupAggregate] = Field(default_factory=dict)
    inconsistent_cases: List[str] = Field(default_factory=list)
    fixes: Dict[str, FixDatasetAggregate] = Field(default_factory=dict)
    trial_errors: List[str] = Field(default_factory=list)
    usage: Dict[str, Any] = Field(default_factory=dict)


class RenderBenchmarkReport(BaseModel):
    config: RunConfigInfo = Field(default_factory=RunConfigInfo)
    cases: List[RenderCaseScore] = Field(default_factory=list)
    aggregate: RenderDatasetAggregate = Field(default_factory=RenderDatasetAggregate)
    by_difficulty: Dict[str, RenderDatasetAggregate] = Field(default_factory=dict)
    inconsistent_cases: List[str] = Field(default_factory=list)
    run_errors: List[str] = Field(default_factory=list)
    usage: Dict[str, Any] = Field(default_factory=dict)


class CaseValidation(BaseModel):
    """Recorded detector output of one fixture checked against its expected defects."""

    case_id: str
    description: str = ""
    passed: bool = False
    matched: int = 0
    missing: List[ExpectedDefect] = Field(default_factory=list)
    unexpected: List[StructuredDefect] = Field(default_factory=list)
    error: Optional[str] = None


class ValidationReport(BaseModel):
    cases: List[CaseValidation] = Field(default_factory=list)
    passed_count: int = 0
    failed_count: int = 0

from __future__ import annotations

from typing import List, Optional, Tuple, Union

from pydantic import BaseModel, Field, computed_field

from .defects import ExpectedDefect, FreeTextDefect, StructuredDefect, TokenUsage

ReportedDefect = Union[FreeTextDefect, StructuredDefect]

_FROZEN = {"frozen": True}


class MatchedPair(BaseModel):
    model_config = _FROZEN

    expected: ExpectedDefect
    reported: ReportedDefect


class MatchResult(BaseModel):
    """
    Outcome of matching one reported set against one expected set.
    Counts are derived from the lists, so tp+fn == |expected| and tp+fp == |reported| hold by construction.
    """

    model_config = _FROZEN

    matched_pairs: Tuple[MatchedPair, ...] = ()
    unmatched_reported: Tuple[ReportedDefect, ...] = ()
    unmatched_expected: Tuple[ExpectedDefect, ...] = ()

    @computed_field  # type: ignore[misc]
    @property
    def true_positives(self) -> int:
        return len(self.matched_pairs)

    @computed_field  # type: ignore[misc]
    @property
    def false_positives(self) -> int:
        return len(self.unmatched_reported)

    @computed_field  # type: ignore[misc]
    @property
    def false_negatives(self) -> int:
        return len(self.unmatched_expected)

    @classmethod
    def nothing_found(cls, expected: List[ExpectedDefect] | Tuple[ExpectedDefect, ...]) -> "MatchResult":
        """Sentinel for a run that produced no usable report: every expected defect is missed."""
        return cls(unmatched_expected=tuple(expected))


class ConfusionScores(BaseModel):
    model_config = _FROZEN

    precision: float = Field(ge=0.0, le=1.0)
    recall: float = Field(ge=0.0, le=1.0)
    f1: float = Field(ge=0.0, le=1.0)


class TrialScore(BaseModel):
    """Per-trial scores derived from one MatchResult (or from the failure sentinel)."""

    model_config = _FROZEN

    run_index: int = 0
    tp: int = Field(ge=0)
    fp: int = Field(ge=0)
    fn: int = Field(ge=0)
    precision: float
    recall: float
    f1: float
    duration_ms: float = Field(default=0.0, ge=0.0)
    tokens: Optional[TokenUsage] = None
    error: Optional[str] = None

    @property
    def failed(self) -> bool:
        return self.error is not None


class MetricSummary(BaseModel):
    model_config = _FROZEN

    precision: float = 0.0
    recall: float = 0.0
    f1: float = 0.0
    duration_ms: float = 0.0


class CaseAggregate(BaseModel):
    """All trial scores of one case with their mean and population stddev."""

    model_config = _FROZEN

    case_id: str
    expected_count: int = Field(default=0, ge=0)
    trials: Tuple[TrialScore, ...] = ()
    mean: MetricSummary = Field(default_factory=MetricSummary)
    stddev: MetricSummary = Field(default_factory=MetricSummary)
    inconsistent: bool = False
    error_count: int = 0

    @property
    def trial_count(self) -> int:
        return len(self.trials)


class DatasetAggregate(BaseModel):
    """Mean of per-case means (cases weighted equally) and stddev across cases."""

    model_config = _FROZEN

    case_count: int = 0
    mean: MetricSummary = Field(default_factory=MetricSummary)
    stddev: MetricSummary = Field(default_factory=MetricSummary)


class FixDelta(BaseModel):
    model_config = _FROZEN

    original_count: int = Field(ge=0)
    fixed_count: int = Field(ge=0)
    regression_count: int = Field(ge=0)

    def _require_baseline(self) -> int:
        if self.original_count == 0:
            raise ValueError("fix rates are undefined for original_count == 0; exclude the case instead")
        return self.original_count

    @property
    def fix_rate(self) -> float:
        return self.fixed_count / self._require_baseline()

    @property
    def regression_rate(self) -> float:
        return self.regression_count / self._require_baseline()

    @property
    def net_improvement(self) -> float:
        return self.fix_rate - self.regression_rate


class FixAttempt(BaseModel):
    """One remediation attempt. delta is None when the attempt errored."""

    model_config = _FROZEN

    run_index: int = 0
    duration_ms: float = 0.0
    delta: Optional[FixDelta] = None
    reaudit_count: Optional[int] = None
    tokens: Optional[TokenUsage] = None
    error: Optional[str] = None


class FixCaseSummary(BaseModel):
    model_config = _FROZEN

    case_id: str
    source: str
    original_count: int = Field(gt=0)
    attempt_count: int = 0
    fix_rates: Tuple[float, ...] = ()
    regression_rates: Tuple[float, ...] = ()
    net_improvements: Tuple[float, ...] = ()
    mean_fix_rate: float = 0.0
    mean_regression_rate: float = 0.0
    mean_net_improvement: float = 0.0
    mean_fixed_count: Optional[float] = None
    mean_regression_count: Optional[float] = None
    mean_reaudit_count: Optional[float] = None
    errors: Tuple[str, ...] = ()

    @property
    def successful_count(self) -> int:
        return len(self.fix_rates)


class FixDatasetAggregate(BaseModel):
    model_config = _FROZEN

    source: str
    case_count: int = 0
    mean_fix_rate: float = 0.0
    mean_regression_rate: float = 0.0
    mean_net_improvement: float = 0.0
    stddev_fix_rate: float = 0.0
    stddev_regression_rate: float = 0.0
    stddev_net_improvement: float = 0.0


class FingerprintComparison(BaseModel):
    model_config = _FROZEN

    matched: int = Field(ge=0)
    missing: int = Field(ge=0)
    extra: int = Field(ge=0)

    @property
    def exact(self) -> bool:
        return self.missing == 0 and self.extra == 0


class RenderCaseScore(BaseModel):
    model_config = _FROZEN

    case_id: str
    difficulty: Optional[str] = None
    ground_truth_count: int = 0
    parity_rates: Tuple[float, ...] = ()
    extra_rates: Tuple[float, ...] = ()
    exact_matches: Tuple[bool, ...] = ()
    durations_ms: Tuple[float, ...] = ()
    mean_parity: float = 0.0
    mean_extra: float = 0.0
    exact_match_rate: float = 0.0
    mean_duration_ms: float = 0.0
    parity_stddev: float = 0.0
    inconsistent: bool = False
    errors: Tuple[str, ...] = ()


class RenderDatasetAggregate(BaseModel):
    model_config = _FROZEN

    case_count: int = 0
    mean_parity: float = 0.0
    stddev_parity: float = 0.0
    mean_extra: float = 0.0
    stddev_extra: float = 0.0
    exact_match_rate: float = 0.0
    mean_duration_ms: float = 0.0

from .benchmark import (
    BenchmarkResults,
    CaseResults,
    DetectorRun,
    FixRunRecord,
    Manifest,
    RenderBenchmarkResults,
    RenderCaseResults,
    RenderRunRecord,
    RunConfigInfo,
    TestCase,
    TrialRecord,
)
from .config import BenchmarkConfig
from .defects import (
    DefectFingerprint,
    ExpectedDefect,
    FreeTextDefect,
    Impact,
    StructuredDefect,
    TokenUsage,
)
from .report import (
    BenchmarkReport,
    CaseReport,
    CaseValidation,
    GroupAggregate,
    RenderBenchmarkReport,
    ValidationReport,
)
from .scores import (
    CaseAggregate,
    ConfusionScores,
    DatasetAggregate,
    FingerprintComparison,
    FixAttempt,
    FixCaseSummary,
    FixDatasetAggregate,
    FixDelta,
    MatchedPair,
    MatchResult,
    MetricSummary,
    RenderCaseScore,
    RenderDatasetAggregate,
    TrialScore,
)
from .taxonomy import CRITERION_TO_RULES, UNKNOWN_RULE_ID, rules_for_criterion

__all__ = [
    "BenchmarkResults",
    "CaseResults",
    "DetectorRun",
    "FixRunRecord",
    "Manifest",
    "RenderBenchmarkResults",
    "RenderCaseResults",
    "RenderRunRecord",
    "RunConfigInfo",
    "TestCase",
    "TrialRecord",
    "BenchmarkConfig",
    "DefectFingerprint",
    "ExpectedDefect",
    "FreeTextDefect",
    "Impact",
    "StructuredDefect",
    "TokenUsage",
    "BenchmarkReport",
    "CaseReport",
    "CaseValidation",
    "GroupAggregate",
    "RenderBenchmarkReport",
    "ValidationReport",
    "CaseAggregate",
    "ConfusionScores",
    "DatasetAggregate",
    "FingerprintComparison",
    "FixAttempt",
    "FixCaseSummary",
    "FixDatasetAggregate",
    "FixDelta",
    "MatchedPair",
    "MatchResult",
    "MetricSummary",
    "RenderCaseScore",
    "RenderDatasetAggregate",
    "TrialScore",
    "CRITERION_TO_RULES",
    "UNKNOWN_RULE_ID",
    "rules_for_criterion",
]
